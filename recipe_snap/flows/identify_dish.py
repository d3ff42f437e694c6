"""Identify dish flow: photo -> dish name and confidence.

- DishIdentifier: the operation, bound to one recognition capability
- identify_dish_from_image(): convenience entry point taking a data URI
"""

import time
from typing import Optional

from recipe_snap.capabilities.base import RecognitionCapability
from recipe_snap.capabilities.factory import get_capability
from recipe_snap.flows.pipeline import guarded, with_timeout
from recipe_snap.models.errors import Unavailable
from recipe_snap.models.models import DishIdentification, PhotoPayload
from recipe_snap.utils.config import config
from recipe_snap.utils.images import photo_from_data_uri, validate_photo
from recipe_snap.utils.logger import logger


OPERATION = "identify_dish"


class DishIdentifier:
    def __init__(self, capability: RecognitionCapability, timeout_seconds: Optional[float] = None) -> None:
        self.capability = capability
        self.timeout_seconds = timeout_seconds

    async def identify(self, photo: PhotoPayload) -> DishIdentification:
        """Identify the dish in a photo.

        Raises:
            InvalidInput: If the photo is missing or not an acceptable image.
            Unavailable: If the capability fails or the timeout expires.
        """
        validate_photo(photo)
        started = time.perf_counter()
        logger.info(f"Identifying dish from {photo!r}", extra={"operation": OPERATION})

        result = await with_timeout(
            OPERATION,
            guarded(OPERATION, self.capability.identify_dish(photo)),
            self.timeout_seconds,
        )
        if not isinstance(result, DishIdentification):
            raise Unavailable(f"{OPERATION}: capability returned {type(result).__name__}, not a dish identification.")

        logger.info(
            f"Identified dish '{result.dish_name}' (confidence {result.confidence:.2f}) "
            f"in {(time.perf_counter() - started) * 1000:.0f}ms",
            extra={"operation": OPERATION},
        )
        return result


async def identify_dish_from_image(
    photo_data_uri: str, capability: Optional[RecognitionCapability] = None
) -> DishIdentification:
    """Identify the dish in a ``data:<mimetype>;base64,...`` photo."""
    photo = photo_from_data_uri(photo_data_uri)
    identifier = DishIdentifier(capability or get_capability(), timeout_seconds=config.FLOW_TIMEOUT_SECONDS)
    return await identifier.identify(photo)
