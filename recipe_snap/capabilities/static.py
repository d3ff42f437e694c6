"""Static recognition capability.

Answers every photo with the same placeholder data: the dish is a Caprese
Salad, the ingredients are tomato, basil and mozzarella, and the recipe is a
four-ingredient, five-step Caprese Salad. Needs no network or credentials,
so it backs demos and tests (RECOGNITION_CAPABILITY=static).
"""

from recipe_snap.capabilities.base import RecognitionCapability
from recipe_snap.models.models import DishIdentification, IngredientDetectionOutput, PhotoPayload, Recipe
from recipe_snap.utils.logger import logger


DISH = DishIdentification(dish_name="Caprese Salad", confidence=0.9)

DETECTED_INGREDIENTS = IngredientDetectionOutput(
    ingredients=["tomato", "basil", "mozzarella"],
    confidence_scores={"tomato": 0.95, "basil": 0.9, "mozzarella": 0.92},
    image_description="Sliced tomato and mozzarella with fresh basil leaves",
)

CAPRESE_SALAD = Recipe(
    recipe_name="Caprese Salad",
    ingredients=["tomato", "basil", "mozzarella", "balsamic glaze"],
    instructions=[
        "Slice the tomatoes and mozzarella.",
        "Arrange the tomato and mozzarella slices on a plate, alternating them.",
        "Garnish with fresh basil leaves.",
        "Drizzle with balsamic glaze.",
        "Serve immediately.",
    ],
)


class StaticCapability(RecognitionCapability):
    name = "static"

    def __init__(
        self,
        dish: DishIdentification = DISH,
        detection: IngredientDetectionOutput = DETECTED_INGREDIENTS,
        recipe: Recipe = CAPRESE_SALAD,
    ) -> None:
        self.dish = dish
        self.detection = detection
        self.recipe = recipe

    async def identify_dish(self, photo: PhotoPayload) -> DishIdentification:
        logger.debug(f"static: identify_dish({photo!r}) -> {self.dish.dish_name}")
        return self.dish

    async def detect_ingredients(self, photo: PhotoPayload) -> IngredientDetectionOutput:
        logger.debug(f"static: detect_ingredients({photo!r}) -> {self.detection.ingredients}")
        return self.detection

    async def compose_recipe(self, ingredients: list[str]) -> Recipe:
        logger.debug(f"static: compose_recipe({ingredients}) -> {self.recipe.recipe_name}")
        return self.recipe
