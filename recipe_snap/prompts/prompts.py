"""Prompts for the Gemini recognition capability.

Each prompt asks for a single JSON object so the response can be parsed
leniently (see recipe_snap.capabilities.gemini.parse_gemini_json) and then
validated against the matching Pydantic model.
"""

DISH_IDENTIFICATION_PROMPT = """You are an expert food identifier. Given a photo of a dish, identify the dish and provide a confidence level.

Return ONLY valid JSON with exactly these keys:
- "dish_name": the common name of the dish (string)
- "confidence": how confident you are in the identification, from 0.0 to 1.0 (number)

Example: {"dish_name": "Caprese Salad", "confidence": 0.92}

If the photo does not show food, return your best guess with a low confidence."""


INGREDIENT_EXTRACTION_PROMPT = """Extract all food ingredients visible in this photo of ingredients or a dish.

Return ONLY valid JSON with:
- "ingredients": list of ingredient names (strings, singular, lowercase)
- "confidence_scores": dict mapping each ingredient name to a confidence from 0.0 to 1.0
- "image_description": one short sentence describing the photo

Example: {"ingredients": ["tomato", "basil"], "confidence_scores": {"tomato": 0.95, "basil": 0.88}, "image_description": "Sliced tomatoes with basil leaves"}

If no ingredients are visible, return an empty "ingredients" list and an empty "confidence_scores" dict."""


def get_recipe_prompt(ingredients: list[str]) -> str:
    """Build the recipe composition prompt for a list of detected ingredients.

    Args:
        ingredients: Ingredient names detected in the photo, in detection order.

    Returns:
        str: Prompt asking for one recipe as JSON.
    """
    ingredient_text = ", ".join(ingredients)
    return f"""You are a professional chef. Create one recipe that is based on these ingredients: {ingredient_text}.

You may add common pantry items (oil, salt, pepper, vinegar, herbs) when the dish needs them.

Return ONLY valid JSON with exactly these keys:
- "recipe_name": the name of the recipe (string)
- "ingredients": every ingredient the recipe requires (list of strings, at least one)
- "instructions": the preparation steps in the order they must be performed (list of strings, at least one)

Example: {{"recipe_name": "Caprese Salad", "ingredients": ["tomato", "basil", "mozzarella", "balsamic glaze"], "instructions": ["Slice the tomatoes and mozzarella.", "Arrange the slices on a plate, alternating them.", "Garnish with fresh basil leaves.", "Drizzle with balsamic glaze.", "Serve immediately."]}}"""
