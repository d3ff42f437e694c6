"""Client state for a single user driving the two flows.

The Client holds at most one photo, one dish identification and one recipe.
Each operation replaces its own result, or discards it and records an error;
the other operation's result is never touched. Only one request may be in
flight at a time: a second invocation while one is pending is rejected with an
alert rather than queued.

Front-ends (the terminal runner, tests) render from the public attributes:
``photo``, ``dish``, ``dish_error``, ``recipe``, ``recipe_error``, ``alert``.
"""

from typing import Optional

from pydantic import ValidationError

from recipe_snap.flows.generate_recipe import RecipeGenerator
from recipe_snap.flows.identify_dish import DishIdentifier
from recipe_snap.models.errors import FlowError, InvalidInput
from recipe_snap.models.models import DishIdentification, PhotoPayload, Recipe
from recipe_snap.utils.images import photo_from_data_uri
from recipe_snap.utils.logger import logger


NO_PHOTO_ALERT = "Please upload an image first."
BUSY_ALERT = "A request is already in progress. Please wait for it to finish."


class Client:
    def __init__(self, dish_identifier: DishIdentifier, recipe_generator: RecipeGenerator) -> None:
        self.dish_identifier = dish_identifier
        self.recipe_generator = recipe_generator

        self.photo: Optional[PhotoPayload] = None
        self.dish: Optional[DishIdentification] = None
        self.dish_error: Optional[str] = None
        self.recipe: Optional[Recipe] = None
        self.recipe_error: Optional[str] = None
        self.alert: Optional[str] = None
        self._in_flight: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    def load_photo(self, data_uri: str) -> bool:
        """Keep the photo encoded in a data URI; an invalid URI leaves the previous photo in place."""
        try:
            photo = photo_from_data_uri(data_uri)
        except InvalidInput as e:
            self.alert = f"Invalid image: {e.message}"
            logger.warning(self.alert)
            return False
        self.photo = photo
        self.alert = None
        logger.debug(f"Client loaded {photo!r}")
        return True

    def load_photo_bytes(self, data: bytes, media_type: str) -> bool:
        if not data:
            self.alert = "Invalid image: Photo data is empty."
            return False
        try:
            photo = PhotoPayload(media_type=media_type, data=data)
        except ValidationError as e:
            self.alert = f"Invalid image: media type {media_type!r} is not valid."
            logger.warning(f"{self.alert} ({e.error_count()} error(s))")
            return False
        self.photo = photo
        self.alert = None
        return True

    def _begin(self, operation: str) -> bool:
        if self.photo is None:
            self.alert = NO_PHOTO_ALERT
            return False
        if self._in_flight is not None:
            self.alert = BUSY_ALERT
            logger.warning(f"Rejected {operation}: {self._in_flight} still in flight")
            return False
        self._in_flight = operation
        self.alert = None
        return True

    async def identify_dish(self) -> bool:
        """Run the identify-dish flow on the held photo. Returns True on success."""
        if not self._begin("identify_dish"):
            return False
        try:
            self.dish = await self.dish_identifier.identify(self.photo)
            self.dish_error = None
            return True
        except FlowError as e:
            self.dish = None
            self.dish_error = e.message
            self.alert = f"Failed to identify dish: {e.message}"
            logger.error(f"Error identifying dish: {e.message}")
            return False
        finally:
            self._in_flight = None

    async def generate_recipe(self) -> bool:
        """Run the generate-recipe flow on the held photo. Returns True on success."""
        if not self._begin("generate_recipe"):
            return False
        try:
            self.recipe = await self.recipe_generator.generate(self.photo)
            self.recipe_error = None
            return True
        except FlowError as e:
            self.recipe = None
            self.recipe_error = e.message
            self.alert = f"Failed to generate recipe: {e.message}"
            logger.error(f"Error generating recipe: {e.message}")
            return False
        finally:
            self._in_flight = None
