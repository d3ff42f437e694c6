"""Gemini recognition capability.

Answers both flows with Google's Gemini models through the google-genai SDK:
- identify_dish(): vision model, DISH_IDENTIFICATION_PROMPT + photo
- detect_ingredients(): vision model, INGREDIENT_EXTRACTION_PROMPT + photo
- compose_recipe(): text model, get_recipe_prompt(ingredients)

Every call asks for a JSON object, parses it leniently (models sometimes wrap
JSON in prose) and validates it against the matching Pydantic model.

Retry Strategy (component-level, the flows never retry):
- Transient errors (network, timeouts, 429/5xx): retry with exponential backoff
- Unparsable or schema-invalid output: retried the same way
- Permanent errors (invalid API key, malformed request): fail immediately
- Exhausted retries or permanent failure: raise Unavailable
"""

import asyncio
import json
import re
from typing import Callable, Optional, TypeVar

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel, ValidationError

from recipe_snap.capabilities.base import RecognitionCapability
from recipe_snap.models.errors import Unavailable
from recipe_snap.models.models import DishIdentification, IngredientDetectionOutput, PhotoPayload, Recipe
from recipe_snap.prompts.prompts import DISH_IDENTIFICATION_PROMPT, INGREDIENT_EXTRACTION_PROMPT, get_recipe_prompt
from recipe_snap.utils.config import config
from recipe_snap.utils.images import prepare_for_model
from recipe_snap.utils.logger import logger


ModelT = TypeVar("ModelT", bound=BaseModel)

TRANSIENT_STATUS_CODES = (408, 429, 500, 502, 503, 504)
TRANSIENT_KEYWORDS = ("timeout", "timed out", "connection", "retryable", "unavailable")
# Status codes must appear as whole words: "5000 characters" is not a 500
TRANSIENT_STATUS_RE = re.compile(r"\b(?:408|429|500|502|503|504)\b")


def parse_gemini_json(response_text: Optional[str]) -> Optional[dict]:
    """Parse a JSON object from a Gemini response, tolerating text around it.

    Tries multiple parsing strategies:
    1. Direct json.loads() on full response
    2. Regex extraction of the outermost {...} block
    3. Returns None if both fail

    Args:
        response_text: Raw response text from Gemini API (may include non-JSON text).

    Returns:
        Parsed dict, or None if no JSON object could be recovered.
    """
    if not response_text:
        return None

    try:
        parsed = json.loads(response_text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        logger.debug("Direct JSON parse failed, trying regex extraction")

    json_match = re.search(r"\{.*\}", response_text, re.DOTALL)
    if json_match:
        try:
            parsed = json.loads(json_match.group())
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            logger.debug("Regex JSON extraction failed")

    logger.warning("Failed to parse JSON from Gemini response")
    return None


def parse_model_output(response_text: Optional[str], model: type[ModelT]) -> Optional[ModelT]:
    """Parse and validate a Gemini response into ``model``; None if either step fails."""
    parsed = parse_gemini_json(response_text)
    if parsed is None:
        return None
    try:
        return model.model_validate(parsed)
    except ValidationError as e:
        logger.warning(f"Gemini response does not match {model.__name__}: {e.error_count()} error(s)")
        return None


def is_transient_error(error: Exception) -> bool:
    """Whether an API failure is worth retrying (network, timeouts, 429/5xx)."""
    if isinstance(error, genai_errors.APIError):
        return error.code in TRANSIENT_STATUS_CODES
    if isinstance(error, (asyncio.TimeoutError, ConnectionError, TimeoutError)):
        return True
    error_str = str(error).lower()
    if TRANSIENT_STATUS_RE.search(error_str):
        return True
    return any(keyword in error_str for keyword in TRANSIENT_KEYWORDS)


class GeminiCapability(RecognitionCapability):
    name = "gemini"

    def __init__(
        self,
        api_key: str,
        vision_model: str = "gemini-2.5-flash-lite",
        recipe_model: str = "gemini-2.5-flash",
        max_retries: int = 3,
        retry_delay: float = 1,
        client: Optional[genai.Client] = None,
    ) -> None:
        """Initialize the capability.

        Args:
            api_key: Gemini API key.
            vision_model: Model used for dish and ingredient detection.
            recipe_model: Model used for recipe composition.
            max_retries: Attempts per call, including the first (default: 3 = 1s + 2s delays).
            retry_delay: Initial backoff delay in seconds, doubled after each attempt.
            client: Pre-built genai client (tests inject a mock).

        Raises:
            ValueError: If api_key is empty and no client is given.
        """
        if not api_key and client is None:
            raise ValueError("GEMINI_API_KEY is required for the gemini capability")

        self.vision_model = vision_model
        self.recipe_model = recipe_model
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = client or genai.Client(api_key=api_key)

    async def aclose(self) -> None:
        """Close the SDK client and its HTTP connections."""
        self._client.close()
        logger.debug("Gemini client closed")

    def _generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=config.TEMPERATURE,
            max_output_tokens=config.MAX_OUTPUT_TOKENS,
            response_mime_type="application/json",
        )

    async def _generate_text(self, model: str, contents: list) -> Optional[str]:
        # The SDK client is synchronous; keep the event loop free
        response = await asyncio.to_thread(
            self._client.models.generate_content,
            model=model,
            contents=contents,
            config=self._generation_config(),
        )
        return response.text

    async def _generate_with_retries(
        self,
        operation: str,
        model: str,
        contents: list,
        parse: Callable[[Optional[str]], Optional[ModelT]],
    ) -> ModelT:
        """Call Gemini and parse the answer, retrying transient failures with exponential backoff.

        Raises:
            Unavailable: On permanent API errors or once all attempts are used up.
        """
        delay_seconds = self.retry_delay
        last_problem = "no usable response"

        for attempt in range(1, self.max_retries + 1):
            try:
                text = await self._generate_text(model, contents)
            except Exception as e:
                if not is_transient_error(e):
                    logger.warning(f"{operation}: permanent Gemini error, not retrying: {e}")
                    raise Unavailable(f"Recognition service rejected the request: {e}") from e
                last_problem = str(e)
                logger.debug(f"{operation}: transient error on attempt {attempt}/{self.max_retries}: {e}")
            else:
                result = parse(text)
                if result is not None:
                    return result
                last_problem = "response could not be parsed"
                logger.debug(f"{operation}: unusable response on attempt {attempt}/{self.max_retries}")

            if attempt < self.max_retries:
                logger.debug(f"{operation}: retrying in {delay_seconds}s")
                await asyncio.sleep(delay_seconds)
                delay_seconds *= 2

        logger.warning(f"{operation}: exhausted all {self.max_retries} attempts ({last_problem})")
        raise Unavailable(f"Recognition service could not produce a result ({last_problem}).")

    def _image_contents(self, prompt: str, photo: PhotoPayload) -> list:
        photo = prepare_for_model(photo)
        return [prompt, types.Part.from_bytes(data=photo.data, mime_type=photo.media_type)]

    async def identify_dish(self, photo: PhotoPayload) -> DishIdentification:
        return await self._generate_with_retries(
            "identify_dish",
            self.vision_model,
            self._image_contents(DISH_IDENTIFICATION_PROMPT, photo),
            lambda text: parse_model_output(text, DishIdentification),
        )

    async def detect_ingredients(self, photo: PhotoPayload) -> IngredientDetectionOutput:
        return await self._generate_with_retries(
            "detect_ingredients",
            self.vision_model,
            self._image_contents(INGREDIENT_EXTRACTION_PROMPT, photo),
            lambda text: parse_model_output(text, IngredientDetectionOutput),
        )

    async def compose_recipe(self, ingredients: list[str]) -> Recipe:
        return await self._generate_with_retries(
            "compose_recipe",
            self.recipe_model,
            [get_recipe_prompt(ingredients)],
            lambda text: parse_model_output(text, Recipe),
        )
