"""Recognition capability interface.

A capability is the swappable unit of recognition/generation logic behind
the two flows. The flows only ever talk to this interface; which
implementation answers is decided by configuration (see factory.py).

Implementations receive photos that have already passed validate_photo().
They signal failure by raising Unavailable (or returning data that fails
model validation, which the flows turn into Unavailable).
"""

from abc import ABC, abstractmethod

from recipe_snap.models.models import DishIdentification, IngredientDetectionOutput, PhotoPayload, Recipe


class RecognitionCapability(ABC):
    name = "abstract"

    @abstractmethod
    async def identify_dish(self, photo: PhotoPayload) -> DishIdentification:
        """Name the dish shown in the photo."""

    @abstractmethod
    async def detect_ingredients(self, photo: PhotoPayload) -> IngredientDetectionOutput:
        """List the ingredients visible in the photo with confidence scores."""

    @abstractmethod
    async def compose_recipe(self, ingredients: list[str]) -> Recipe:
        """Create a recipe from a non-empty list of ingredient names."""

    async def aclose(self) -> None:
        """Release any held clients. Default: nothing to release."""
