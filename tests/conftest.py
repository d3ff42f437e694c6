"""Shared pytest configuration and fixtures.

Unit tests run against the static capability so that importing the
module-level config never requires a GEMINI_API_KEY. This must happen before
any recipe_snap module is imported.
"""

import os

os.environ["RECOGNITION_CAPABILITY"] = "static"

import pytest

from recipe_snap.models.models import PhotoPayload
from tests.helpers import make_image_bytes, to_data_uri


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def png_data_uri(png_bytes) -> str:
    return to_data_uri(png_bytes, "image/png")


@pytest.fixture
def jpeg_data_uri(jpeg_bytes) -> str:
    return to_data_uri(jpeg_bytes, "image/jpeg")


@pytest.fixture
def photo(png_bytes) -> PhotoPayload:
    return PhotoPayload(media_type="image/png", data=png_bytes)
