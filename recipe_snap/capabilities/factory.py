"""Capability selection from configuration."""

from functools import lru_cache
from typing import Optional

from recipe_snap.capabilities.base import RecognitionCapability
from recipe_snap.capabilities.gemini import GeminiCapability
from recipe_snap.capabilities.static import StaticCapability
from recipe_snap.utils.config import Config, config as default_config
from recipe_snap.utils.logger import logger


def build_capability(cfg: Optional[Config] = None) -> RecognitionCapability:
    """Create the capability named by RECOGNITION_CAPABILITY.

    Raises:
        ValueError: For an unknown capability name or missing credentials.
    """
    cfg = cfg or default_config

    if cfg.RECOGNITION_CAPABILITY == "static":
        logger.info("Using static recognition capability (placeholder answers)")
        return StaticCapability()

    if cfg.RECOGNITION_CAPABILITY == "gemini":
        logger.info(
            f"Using Gemini recognition capability (vision={cfg.IMAGE_DETECTION_MODEL}, recipe={cfg.RECIPE_MODEL})"
        )
        return GeminiCapability(
            api_key=cfg.GEMINI_API_KEY,
            vision_model=cfg.IMAGE_DETECTION_MODEL,
            recipe_model=cfg.RECIPE_MODEL,
            max_retries=cfg.MAX_RETRIES,
            retry_delay=cfg.DELAY_BETWEEN_RETRIES,
        )

    raise ValueError(f"Unknown RECOGNITION_CAPABILITY: {cfg.RECOGNITION_CAPABILITY}")


@lru_cache(maxsize=1)
def get_capability() -> RecognitionCapability:
    """Process-wide capability built from the module-level config."""
    return build_capability()
