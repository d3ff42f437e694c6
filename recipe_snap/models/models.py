"""Data models and schemas for Recipe Snap.

Defines Pydantic models for the photo payload, the flow results and the HTTP
request/response bodies. All models use Pydantic v2. Result models serialize
with the camelCase field names existing callers expect (``dishName``,
``recipeName``, ``photoDataUri``) while accepting snake_case in Python code.
"""

import base64
import binascii
import re
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from recipe_snap.models.errors import InvalidInput


_DATA_URI_RE = re.compile(
    r"^data:(?P<media_type>[A-Za-z0-9.+-]+/[A-Za-z0-9.+-]+)(?P<params>(?:;[^;,]+=[^;,]*)*);base64,(?P<data>.*)$",
    re.DOTALL,
)

# Media type spellings browsers and cameras emit that mean the same thing
_MEDIA_TYPE_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
}


def normalize_media_type(media_type: str) -> str:
    media_type = media_type.strip().lower()
    return _MEDIA_TYPE_ALIASES.get(media_type, media_type)


def decoded_length(encoded: str) -> int:
    """Byte length of a padded base64 string once decoded."""
    return len(encoded) * 3 // 4 - (len(encoded) - len(encoded.rstrip("=")))


class PhotoPayload(BaseModel):
    """An encoded photo plus its declared media type.

    Parsed from and rendered back to a ``data:<mimetype>;base64,<encoded_data>``
    URI. Decoding then re-encoding is byte-exact: ``data`` holds exactly the
    decoded bytes of the URI.
    """

    model_config = ConfigDict(frozen=True)

    media_type: Annotated[str, Field(min_length=1, description="Declared media type, e.g. image/jpeg")]
    data: Annotated[bytes, Field(description="Decoded image bytes")]

    @field_validator("media_type")
    @classmethod
    def normalize(cls, v: str) -> str:
        v = normalize_media_type(v)
        if not v:
            raise ValueError("media type must not be blank")
        return v

    @classmethod
    def from_data_uri(cls, data_uri: Optional[str], max_bytes: Optional[int] = None) -> "PhotoPayload":
        """Parse a data URI into a PhotoPayload.

        Only the URI shape is checked here (scheme, media type, base64, non-empty),
        plus the decoded size when ``max_bytes`` is given. The size is computed
        from the encoded length so oversized payloads are never decoded.
        Whether the bytes are an acceptable image is decided by
        ``recipe_snap.utils.images.validate_photo``.

        Raises:
            InvalidInput: If the URI is missing, empty, too large or not a base64 data URI.
        """
        if not data_uri or not isinstance(data_uri, str) or not data_uri.strip():
            raise InvalidInput("Photo is missing. Expected a data URI 'data:<mimetype>;base64,<encoded_data>'.")

        match = _DATA_URI_RE.match(data_uri.strip())
        if not match:
            raise InvalidInput("Photo must be a data URI of the form 'data:<mimetype>;base64,<encoded_data>'.")

        encoded = "".join(match.group("data").split())
        if not encoded:
            raise InvalidInput("Photo data is empty.")

        if max_bytes is not None and decoded_length(encoded) > max_bytes:
            raise InvalidInput(f"Image too large. Maximum size is {max_bytes / (1024 * 1024):g}MB.")

        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidInput(f"Photo data is not valid base64: {e}") from e

        if not data:
            raise InvalidInput("Photo data is empty.")

        return cls(media_type=match.group("media_type"), data=data)

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        # Never dump image bytes into logs or tracebacks
        return f"PhotoPayload(media_type={self.media_type!r}, size_bytes={self.size_bytes})"

    __str__ = __repr__


class DishIdentification(BaseModel):
    """Name of the dish in a photo and how confident the capability is.

    Confidence is an opaque ranking signal in [0, 1]; no calibration is implied.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, frozen=True)

    dish_name: Annotated[
        str, Field(alias="dishName", min_length=1, max_length=200, description="The name of the identified dish.")
    ]
    confidence: Annotated[
        float,
        Field(
            ge=0.0,
            le=1.0,
            allow_inf_nan=False,
            description="The confidence level of the identification (0-1).",
        ),
    ]


class IngredientList(BaseModel):
    """Ingredients detected in a photo, in detection order."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    ingredients: Annotated[List[str], Field(default_factory=list, max_length=50)]

    @field_validator("ingredients")
    @classmethod
    def drop_blank(cls, v: List[str]) -> List[str]:
        return [ingredient for ingredient in v if ingredient]

    def __len__(self) -> int:
        return len(self.ingredients)


class Recipe(BaseModel):
    """A generated recipe.

    ``instructions`` are ordered steps; their order is the order to perform them.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, frozen=True)

    recipe_name: Annotated[
        str, Field(alias="recipeName", min_length=1, max_length=200, description="The name of the generated recipe.")
    ]
    ingredients: Annotated[
        List[str],
        Field(min_length=1, max_length=100, description="The list of ingredients required for the recipe."),
    ]
    instructions: Annotated[
        List[str],
        Field(min_length=1, max_length=100, description="The step-by-step instructions to prepare the recipe."),
    ]

    @field_validator("ingredients", "instructions")
    @classmethod
    def no_blank_entries(cls, v: List[str]) -> List[str]:
        cleaned = [item.strip() for item in v]
        if any(not item for item in cleaned):
            raise ValueError("entries must not be blank")
        return cleaned


class IngredientDetectionOutput(BaseModel):
    """Raw ingredient detection returned by a recognition capability.

    Contains detected ingredients with confidence scores and an optional description.
    Ingredient names and score keys are normalized to stripped lowercase so they
    can be matched against each other.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    ingredients: Annotated[List[str], Field(max_length=50, description="List of detected ingredients (0-50 items)")]
    confidence_scores: Annotated[
        dict[str, float], Field(description="Confidence scores for each ingredient (0.0 < score <= 1.0)")
    ]
    image_description: Annotated[
        Optional[str],
        Field(None, max_length=500, description="Natural language description of the image (max 500 chars)"),
    ]

    @field_validator("ingredients", mode="before")
    @classmethod
    def normalize_ingredients(cls, v):
        if not isinstance(v, list):
            raise ValueError("ingredients must be a list")
        return [str(ingredient).strip().lower() for ingredient in v if str(ingredient).strip()]

    @field_validator("confidence_scores", mode="before")
    @classmethod
    def validate_confidence_scores(cls, v: dict) -> dict:
        """Validate confidence scores: each value must be 0.0 < score <= 1.0."""
        if not isinstance(v, dict):
            raise ValueError("confidence_scores must be a dictionary")

        validated = {}
        for ingredient, score in v.items():
            if not isinstance(ingredient, str):
                raise ValueError("Confidence score keys must be strings")

            try:
                f = float(score)
            except (ValueError, TypeError):
                raise ValueError(f"Confidence score must be numeric for {ingredient}")

            if not (0.0 < f <= 1.0):
                raise ValueError(f"Confidence score must be 0.0 < score <= 1.0, got {f} for {ingredient}")

            validated[ingredient.strip().lower()] = f

        return validated

    @model_validator(mode="after")
    def validate_scores_match_ingredients(self) -> "IngredientDetectionOutput":
        """Validate that all ingredients have confidence scores."""
        missing_scores = set(self.ingredients) - set(self.confidence_scores)
        if missing_scores:
            raise ValueError(f"Missing confidence scores for: {missing_scores}")
        return self


# ============================================================================
# HTTP request/response bodies
# ============================================================================


class PhotoRequest(BaseModel):
    """Request body shared by both flows."""

    model_config = ConfigDict(populate_by_name=True)

    photo_data_uri: Annotated[
        str,
        Field(
            alias="photoDataUri",
            description=(
                "A photo of ingredients or a dish, as a data URI that must include a MIME type and use "
                "Base64 encoding. Expected format: 'data:<mimetype>;base64,<encoded_data>'."
            ),
        ),
    ]


class ErrorResponse(BaseModel):
    error: str
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    capability: str
