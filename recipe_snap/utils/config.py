"""Configuration management for Recipe Snap.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv

from recipe_snap.models.models import normalize_media_type


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Recognition Capability: which backend answers the two flows
        # "gemini": remote Gemini vision/text models (requires GEMINI_API_KEY)
        # "static": fixed placeholder answers, no network (demo and tests)
        self.RECOGNITION_CAPABILITY: str = os.getenv("RECOGNITION_CAPABILITY", "gemini").lower()
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Image Detection Model: vision model used for dish and ingredient detection
        self.IMAGE_DETECTION_MODEL: str = os.getenv("IMAGE_DETECTION_MODEL", "gemini-2.5-flash-lite")
        # Recipe Model: text model used to compose a recipe from detected ingredients
        self.RECIPE_MODEL: str = os.getenv("RECIPE_MODEL", "gemini-2.5-flash")
        # Temperature: 0.0 = deterministic, 1.0 = max randomness
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.2"))
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "2048"))

        # Retry Configuration for transient Gemini failures (exponential backoff)
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
        # DELAY_BETWEEN_RETRIES: initial delay in seconds, doubled after each attempt
        self.DELAY_BETWEEN_RETRIES: int = int(os.getenv("DELAY_BETWEEN_RETRIES", "1"))
        # Upper bound for a whole flow (identify dish / generate recipe), in seconds
        self.FLOW_TIMEOUT_SECONDS: float = float(os.getenv("FLOW_TIMEOUT_SECONDS", "60"))

        # Maximum decoded image size (in MB) accepted at the boundary. Default: 5 MB
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
        # Media types accepted in a photo data URI (comma-separated, aliases such as image/jpg normalized)
        self.ALLOWED_MEDIA_TYPES: list[str] = [
            normalize_media_type(media_type)
            for media_type in os.getenv("ALLOWED_MEDIA_TYPES", "image/jpeg,image/png,image/webp").split(",")
            if media_type.strip()
        ]
        # Minimum confidence score (0.0 - 1.0) for a detected ingredient to be kept. Default: 0.7
        self.MIN_INGREDIENT_CONFIDENCE: float = float(os.getenv("MIN_INGREDIENT_CONFIDENCE", "0.7"))
        # Minimum number of usable ingredients needed to compose a recipe. Default: 1
        self.MIN_INGREDIENTS: int = int(os.getenv("MIN_INGREDIENTS", "1"))

        # Image Compression: re-encode images before sending them to the model
        self.COMPRESS_IMG: bool = _env_bool("COMPRESS_IMG", "true")
        # Only compress if image size is above this (in KB)
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))

        # Server bind
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "7777"))

    def validate(self) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If required API keys are missing or invalid values provided.
        """
        if self.RECOGNITION_CAPABILITY not in ("gemini", "static"):
            raise ValueError(
                f"RECOGNITION_CAPABILITY must be 'gemini' or 'static', got: {self.RECOGNITION_CAPABILITY}"
            )
        if self.RECOGNITION_CAPABILITY == "gemini" and not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required when RECOGNITION_CAPABILITY=gemini")
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}")
        if self.MAX_OUTPUT_TOKENS < 512:
            raise ValueError(f"MAX_OUTPUT_TOKENS must be at least 512, got: {self.MAX_OUTPUT_TOKENS}")
        if self.MAX_RETRIES < 1:
            raise ValueError(f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}")
        if self.DELAY_BETWEEN_RETRIES < 1:
            raise ValueError(
                f"DELAY_BETWEEN_RETRIES must be at least 1 second, got: {self.DELAY_BETWEEN_RETRIES}"
            )
        if self.FLOW_TIMEOUT_SECONDS <= 0:
            raise ValueError(f"FLOW_TIMEOUT_SECONDS must be positive, got: {self.FLOW_TIMEOUT_SECONDS}")
        if self.MAX_IMAGE_SIZE_MB < 1:
            raise ValueError(f"MAX_IMAGE_SIZE_MB must be at least 1, got: {self.MAX_IMAGE_SIZE_MB}")
        if not self.ALLOWED_MEDIA_TYPES:
            raise ValueError("ALLOWED_MEDIA_TYPES must list at least one media type")
        for media_type in self.ALLOWED_MEDIA_TYPES:
            if not media_type.startswith("image/"):
                raise ValueError(f"ALLOWED_MEDIA_TYPES entries must be image types, got: {media_type}")
        if not (0.0 <= self.MIN_INGREDIENT_CONFIDENCE <= 1.0):
            raise ValueError(
                f"MIN_INGREDIENT_CONFIDENCE must be between 0.0 and 1.0, got: {self.MIN_INGREDIENT_CONFIDENCE}"
            )
        if self.MIN_INGREDIENTS < 1:
            raise ValueError(f"MIN_INGREDIENTS must be at least 1, got: {self.MIN_INGREDIENTS}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
