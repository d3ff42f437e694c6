"""Generate recipe flow: photo -> ingredients -> recipe.

Two stages run strictly in sequence by a Pipeline:
1. IngredientExtractor: PhotoPayload -> IngredientList
   (capability detection, confidence filtering, de-duplication)
2. RecipeComposer: IngredientList -> Recipe
   (fails with InsufficientIngredients below MIN_INGREDIENTS)

If either stage fails, the whole operation fails and no partial recipe is returned.
"""

import time
from typing import Optional

from recipe_snap.capabilities.base import RecognitionCapability
from recipe_snap.capabilities.factory import get_capability
from recipe_snap.flows.pipeline import Pipeline, Stage, with_timeout
from recipe_snap.models.errors import InsufficientIngredients, Unavailable
from recipe_snap.models.models import IngredientDetectionOutput, IngredientList, PhotoPayload, Recipe
from recipe_snap.utils.config import config
from recipe_snap.utils.images import photo_from_data_uri, validate_photo
from recipe_snap.utils.logger import logger


OPERATION = "generate_recipe"


def filter_ingredients_by_confidence(
    ingredients: list[str], confidence_scores: dict[str, float], threshold: Optional[float] = None
) -> list[str]:
    """Filter ingredients by confidence threshold.

    Removes ingredients that scored below the threshold. Preserves order of
    remaining ingredients; missing scores count as 0.0.

    Args:
        ingredients: List of ingredient names.
        confidence_scores: Dict mapping ingredient name to confidence score (0.0-1.0).
        threshold: Minimum score to keep. Default: MIN_INGREDIENT_CONFIDENCE.

    Returns:
        Filtered list; empty if nothing meets the threshold.
    """
    if threshold is None:
        threshold = config.MIN_INGREDIENT_CONFIDENCE

    filtered = [ingredient for ingredient in ingredients if confidence_scores.get(ingredient, 0.0) >= threshold]

    if len(filtered) < len(ingredients):
        logger.debug(
            f"Filtered ingredients: {len(ingredients)} → {len(filtered)} (confidence threshold: {threshold})"
        )

    return filtered


class IngredientExtractor(Stage):
    name = "extract_ingredients"

    def __init__(self, capability: RecognitionCapability, min_confidence: Optional[float] = None) -> None:
        self.capability = capability
        self.min_confidence = min_confidence

    async def run(self, photo: PhotoPayload) -> IngredientList:
        validate_photo(photo)
        detection = await self.capability.detect_ingredients(photo)
        if not isinstance(detection, IngredientDetectionOutput):
            raise Unavailable("Ingredient detection returned an unexpected result.")

        kept = filter_ingredients_by_confidence(detection.ingredients, detection.confidence_scores, self.min_confidence)
        # Remove duplicates, preserve order
        unique = list(dict.fromkeys(kept))
        logger.info(f"Detected ingredients: {unique}", extra={"operation": OPERATION})
        return IngredientList(ingredients=unique)


class RecipeComposer(Stage):
    name = "compose_recipe"

    def __init__(self, capability: RecognitionCapability, min_ingredients: int = 1) -> None:
        if min_ingredients < 1:
            raise ValueError("min_ingredients must be at least 1")
        self.capability = capability
        self.min_ingredients = min_ingredients

    async def run(self, ingredient_list: IngredientList) -> Recipe:
        if len(ingredient_list) < self.min_ingredients:
            if not ingredient_list.ingredients:
                raise InsufficientIngredients(
                    "No ingredients detected with sufficient confidence. Please try another image."
                )
            raise InsufficientIngredients(
                f"Only {len(ingredient_list)} ingredient(s) detected, at least {self.min_ingredients} needed. "
                "Please try another image."
            )

        recipe = await self.capability.compose_recipe(list(ingredient_list.ingredients))
        if not isinstance(recipe, Recipe):
            raise Unavailable("Recipe composition returned an unexpected result.")
        return recipe


class RecipeGenerator:
    def __init__(
        self,
        capability: RecognitionCapability,
        min_ingredients: int = 1,
        min_confidence: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.capability = capability
        self.timeout_seconds = timeout_seconds
        self.pipeline = Pipeline(
            OPERATION,
            [
                IngredientExtractor(capability, min_confidence=min_confidence),
                RecipeComposer(capability, min_ingredients=min_ingredients),
            ],
        )

    async def generate(self, photo: PhotoPayload) -> Recipe:
        """Generate a recipe from a photo of ingredients or a dish.

        Raises:
            InvalidInput: If the photo is missing or not an acceptable image.
            InsufficientIngredients: If too few ingredients were detected.
            Unavailable: If the capability fails or the timeout expires.
        """
        validate_photo(photo)
        started = time.perf_counter()
        logger.info(f"Generating recipe from {photo!r}", extra={"operation": OPERATION})

        recipe = await with_timeout(OPERATION, self.pipeline.run(photo), self.timeout_seconds)

        logger.info(
            f"Generated recipe '{recipe.recipe_name}' with {len(recipe.ingredients)} ingredients and "
            f"{len(recipe.instructions)} steps in {(time.perf_counter() - started) * 1000:.0f}ms",
            extra={"operation": OPERATION},
        )
        return recipe


async def generate_recipe_from_image(
    photo_data_uri: str, capability: Optional[RecognitionCapability] = None
) -> Recipe:
    """Generate a recipe from a ``data:<mimetype>;base64,...`` photo."""
    photo = photo_from_data_uri(photo_data_uri)
    generator = RecipeGenerator(
        capability or get_capability(),
        min_ingredients=config.MIN_INGREDIENTS,
        timeout_seconds=config.FLOW_TIMEOUT_SECONDS,
    )
    return await generator.generate(photo)
