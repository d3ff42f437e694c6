"""Unit tests for the identify-dish and generate-recipe flows.

Tests cover:
- Successful identification and recipe generation (static capability)
- Eager photo validation (InvalidInput before any capability call)
- Confidence filtering, de-duplication and InsufficientIngredients
- Capability failures and timeouts mapped to Unavailable
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from recipe_snap.capabilities.static import StaticCapability
from recipe_snap.flows.generate_recipe import (
    IngredientExtractor,
    RecipeComposer,
    RecipeGenerator,
    filter_ingredients_by_confidence,
    generate_recipe_from_image,
)
from recipe_snap.flows.identify_dish import DishIdentifier, identify_dish_from_image
from recipe_snap.models.errors import InsufficientIngredients, InvalidInput, Unavailable
from recipe_snap.models.models import (
    DishIdentification,
    IngredientDetectionOutput,
    IngredientList,
    PhotoPayload,
    Recipe,
)
from tests.helpers import to_data_uri


class RecordingCapability(StaticCapability):
    """Static answers, remembering which ingredients reached compose_recipe."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.composed_with = None

    async def compose_recipe(self, ingredients: list[str]) -> Recipe:
        self.composed_with = ingredients
        return await super().compose_recipe(ingredients)


class SlowCapability(StaticCapability):
    async def identify_dish(self, photo):
        await asyncio.sleep(5)
        return await super().identify_dish(photo)

    async def compose_recipe(self, ingredients):
        await asyncio.sleep(5)
        return await super().compose_recipe(ingredients)


def detection(**scores) -> IngredientDetectionOutput:
    return IngredientDetectionOutput(ingredients=list(scores), confidence_scores=scores)


def spy_capability() -> AsyncMock:
    return AsyncMock(spec=StaticCapability)


class TestFilterIngredientsByConfidence:
    """Test confidence score filtering."""

    def test_filters_low_confidence(self):
        result = filter_ingredients_by_confidence(
            ["tomato", "basil", "salt"], {"tomato": 0.95, "basil": 0.5, "salt": 0.8}, threshold=0.7
        )
        assert result == ["tomato", "salt"]

    def test_threshold_is_inclusive(self):
        assert filter_ingredients_by_confidence(["tomato"], {"tomato": 0.7}, threshold=0.7) == ["tomato"]

    def test_missing_score_is_dropped(self):
        assert filter_ingredients_by_confidence(["tomato", "basil"], {"tomato": 0.9}, threshold=0.5) == ["tomato"]

    def test_default_threshold_from_config(self):
        assert filter_ingredients_by_confidence(["tomato", "basil"], {"tomato": 0.71, "basil": 0.69}) == ["tomato"]

    def test_empty(self):
        assert filter_ingredients_by_confidence([], {}) == []


class TestDishIdentifier:
    """Test the identify-dish flow."""

    @pytest.mark.asyncio
    async def test_identifies_dish(self, photo):
        result = await DishIdentifier(StaticCapability()).identify(photo)
        assert result == DishIdentification(dish_name="Caprese Salad", confidence=0.9)

    @pytest.mark.asyncio
    async def test_same_photo_same_shape(self, photo):
        identifier = DishIdentifier(StaticCapability())
        first = await identifier.identify(photo)
        second = await identifier.identify(photo)
        assert first.model_dump().keys() == second.model_dump().keys()
        assert 0.0 <= second.confidence <= 1.0

    @pytest.mark.asyncio
    async def test_empty_photo_never_reaches_capability(self):
        capability = spy_capability()
        with pytest.raises(InvalidInput):
            await DishIdentifier(capability).identify(PhotoPayload(media_type="image/png", data=b""))
        capability.identify_dish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_image_never_reaches_capability(self):
        capability = spy_capability()
        with pytest.raises(InvalidInput):
            await DishIdentifier(capability).identify(PhotoPayload(media_type="image/png", data=b"not an image"))
        capability.identify_dish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_capability_crash_is_unavailable(self, photo):
        capability = spy_capability()
        capability.identify_dish.side_effect = RuntimeError("model exploded")

        with pytest.raises(Unavailable, match="model exploded"):
            await DishIdentifier(capability).identify(photo)

    @pytest.mark.asyncio
    async def test_capability_unavailable_propagates(self, photo):
        capability = spy_capability()
        capability.identify_dish.side_effect = Unavailable("quota exceeded")

        with pytest.raises(Unavailable, match="quota exceeded"):
            await DishIdentifier(capability).identify(photo)

    @pytest.mark.asyncio
    async def test_wrong_result_type_is_unavailable(self, photo):
        capability = spy_capability()
        capability.identify_dish.return_value = {"dishName": "Pho", "confidence": 0.5}

        with pytest.raises(Unavailable, match="not a dish identification"):
            await DishIdentifier(capability).identify(photo)

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self, photo):
        with pytest.raises(Unavailable, match="timed out"):
            await DishIdentifier(SlowCapability(), timeout_seconds=0.01).identify(photo)


class TestIdentifyDishFromImage:
    @pytest.mark.asyncio
    async def test_data_uri(self, png_data_uri):
        result = await identify_dish_from_image(png_data_uri, capability=StaticCapability())
        assert result.dish_name == "Caprese Salad"

    @pytest.mark.asyncio
    async def test_default_capability_from_config(self, jpeg_data_uri):
        result = await identify_dish_from_image(jpeg_data_uri)
        assert result.dish_name == "Caprese Salad"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["", "not a data uri", "data:image/png;base64,"])
    async def test_malformed_uri_is_invalid_input(self, value):
        with pytest.raises(InvalidInput):
            await identify_dish_from_image(value, capability=StaticCapability())


class TestIngredientExtractor:
    @pytest.mark.asyncio
    async def test_filters_and_deduplicates(self, photo):
        capability = StaticCapability(
            detection=IngredientDetectionOutput(
                ingredients=["tomato", "Basil", "tomato", "onion"],
                confidence_scores={"tomato": 0.9, "basil": 0.8, "onion": 0.3},
            )
        )

        result = await IngredientExtractor(capability).run(photo)

        assert result == IngredientList(ingredients=["tomato", "basil"])

    @pytest.mark.asyncio
    async def test_custom_threshold(self, photo):
        capability = StaticCapability(detection=detection(tomato=0.9, onion=0.3))
        result = await IngredientExtractor(capability, min_confidence=0.2).run(photo)
        assert result.ingredients == ["tomato", "onion"]

    @pytest.mark.asyncio
    async def test_rejects_invalid_photo(self):
        with pytest.raises(InvalidInput):
            await IngredientExtractor(StaticCapability()).run(PhotoPayload(media_type="image/png", data=b"x"))


class TestRecipeComposer:
    def test_min_ingredients_must_be_positive(self):
        with pytest.raises(ValueError):
            RecipeComposer(StaticCapability(), min_ingredients=0)

    @pytest.mark.asyncio
    async def test_empty_list_is_insufficient(self):
        capability = spy_capability()
        with pytest.raises(InsufficientIngredients, match="No ingredients detected"):
            await RecipeComposer(capability).run(IngredientList(ingredients=[]))
        capability.compose_recipe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_below_minimum_is_insufficient(self):
        with pytest.raises(InsufficientIngredients, match="Only 2 ingredient\\(s\\) detected, at least 3 needed"):
            await RecipeComposer(StaticCapability(), min_ingredients=3).run(
                IngredientList(ingredients=["tomato", "basil"])
            )

    @pytest.mark.asyncio
    async def test_wrong_result_type_is_unavailable(self):
        capability = spy_capability()
        capability.compose_recipe.return_value = None
        with pytest.raises(Unavailable):
            await RecipeComposer(capability).run(IngredientList(ingredients=["tomato"]))


class TestRecipeGenerator:
    """Test the two-stage generate-recipe flow."""

    @pytest.mark.asyncio
    async def test_caprese_photo_end_to_end(self, photo):
        capability = RecordingCapability()

        recipe = await RecipeGenerator(capability).generate(photo)

        assert recipe.recipe_name == "Caprese Salad"
        assert len(recipe.ingredients) == 4
        assert len(recipe.instructions) == 5
        assert capability.composed_with == ["tomato", "basil", "mozzarella"]

    @pytest.mark.asyncio
    async def test_only_confident_ingredients_reach_composer(self, photo):
        capability = RecordingCapability(detection=detection(egg=0.95, ham=0.4, cheese=0.8))

        await RecipeGenerator(capability, min_confidence=0.7).generate(photo)

        assert capability.composed_with == ["egg", "cheese"]

    @pytest.mark.asyncio
    async def test_no_confident_ingredients(self, photo):
        capability = RecordingCapability(detection=detection(egg=0.2))

        with pytest.raises(InsufficientIngredients, match="No ingredients detected with sufficient confidence"):
            await RecipeGenerator(capability).generate(photo)

        assert capability.composed_with is None

    @pytest.mark.asyncio
    async def test_nothing_detected(self, photo):
        capability = RecordingCapability(detection=IngredientDetectionOutput(ingredients=[], confidence_scores={}))

        with pytest.raises(InsufficientIngredients):
            await RecipeGenerator(capability).generate(photo)

    @pytest.mark.asyncio
    async def test_min_ingredients(self, photo):
        capability = RecordingCapability(detection=detection(egg=0.9, ham=0.9))

        with pytest.raises(InsufficientIngredients, match="at least 3 needed"):
            await RecipeGenerator(capability, min_ingredients=3).generate(photo)

    @pytest.mark.asyncio
    async def test_invalid_photo_never_reaches_capability(self):
        capability = spy_capability()
        with pytest.raises(InvalidInput):
            await RecipeGenerator(capability).generate(PhotoPayload(media_type="image/jpeg", data=b"junk"))
        capability.detect_ingredients.assert_not_awaited()
        capability.compose_recipe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_detection_failure_stops_before_composition(self, photo):
        capability = spy_capability()
        capability.detect_ingredients.side_effect = ConnectionError("network down")

        with pytest.raises(Unavailable, match="network down"):
            await RecipeGenerator(capability).generate(photo)

        capability.compose_recipe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_composition_failure_is_unavailable(self, photo):
        capability = spy_capability()
        capability.detect_ingredients.return_value = detection(egg=0.9)
        capability.compose_recipe.side_effect = Unavailable("Recognition service could not produce a result.")

        with pytest.raises(Unavailable, match="could not produce a result"):
            await RecipeGenerator(capability).generate(photo)

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self, photo):
        with pytest.raises(Unavailable, match="generate_recipe timed out"):
            await RecipeGenerator(SlowCapability(), timeout_seconds=0.01).generate(photo)

    def test_pipeline_stages(self):
        generator = RecipeGenerator(StaticCapability())
        assert [stage.name for stage in generator.pipeline.stages] == ["extract_ingredients", "compose_recipe"]


class TestGenerateRecipeFromImage:
    @pytest.mark.asyncio
    async def test_data_uri(self, jpeg_data_uri):
        recipe = await generate_recipe_from_image(jpeg_data_uri, capability=StaticCapability())
        assert recipe.recipe_name == "Caprese Salad"

    @pytest.mark.asyncio
    async def test_mismatched_declared_type_is_invalid_input(self, png_bytes):
        with pytest.raises(InvalidInput, match="not a valid image/jpeg image"):
            await generate_recipe_from_image(to_data_uri(png_bytes, "image/jpeg"), capability=StaticCapability())
