"""Pytest configuration and fixtures for integration tests.

Integration tests call the live Gemini API, so they load .env from the
project root and skip the whole directory when GEMINI_API_KEY is missing.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from recipe_snap.capabilities.gemini import GeminiCapability
from recipe_snap.utils.config import config as app_config


def pytest_configure(config):
    """Load .env before collection so the key check below sees it."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: Integration tests require a valid GEMINI_API_KEY")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip every integration test when no Gemini key is configured."""
    if not os.getenv("GEMINI_API_KEY"):
        pytest.skip(
            "Integration tests skipped. Missing API key: GEMINI_API_KEY. Please set it in your .env file.",
            allow_module_level=True,
        )


@pytest.fixture
def gemini() -> GeminiCapability:
    return GeminiCapability(
        api_key=os.environ["GEMINI_API_KEY"],
        vision_model=app_config.IMAGE_DETECTION_MODEL,
        recipe_model=app_config.RECIPE_MODEL,
        max_retries=app_config.MAX_RETRIES,
        retry_delay=app_config.DELAY_BETWEEN_RETRIES,
    )
