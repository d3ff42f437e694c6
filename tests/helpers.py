"""Image and data URI builders shared by the test suites."""

import base64
from io import BytesIO

from PIL import Image


def make_image_bytes(fmt: str = "PNG", size: tuple[int, int] = (32, 32), color=(200, 40, 40)) -> bytes:
    """Render a real, decodable image of the given format."""
    mode = "RGBA" if fmt == "PNG" else "RGB"
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 255)
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def to_data_uri(data: bytes, media_type: str) -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"
