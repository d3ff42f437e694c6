"""Photo validation and preparation.

Validation is eager: every flow calls validate_photo() on its PhotoPayload
before any recognition capability runs, so malformed or oversized photos are
rejected at the boundary with InvalidInput.

Core Functions:
- validate_image_format(): Sniffed type must be an allowed image type matching the declared one
- validate_image_size(): Check MAX_IMAGE_SIZE_MB limit
- verify_image_decodable(): Pillow must be able to parse the image
- photo_from_data_uri(): Parse a data URI, rejecting oversized payloads before decoding
- validate_photo(): All of the above, raising InvalidInput on the first failure
- compress_image(): Re-encode large images as JPEG before sending them to a model
- prepare_for_model(): Optional compression, returning a new PhotoPayload
"""

from io import BytesIO
from typing import Optional

import filetype
from PIL import Image, UnidentifiedImageError

from recipe_snap.models.errors import InvalidInput
from recipe_snap.models.models import PhotoPayload, normalize_media_type
from recipe_snap.utils.config import config
from recipe_snap.utils.logger import logger


def sniff_media_type(image_bytes: bytes) -> Optional[str]:
    """Detect the media type from magic bytes, or None if unknown."""
    kind = filetype.guess(image_bytes)
    if kind is None:
        return None
    return normalize_media_type(kind.mime)


def validate_image_format(image_bytes: bytes, declared_media_type: Optional[str] = None) -> bool:
    """Validate image format against ALLOWED_MEDIA_TYPES.

    Uses filetype library to detect actual file format from magic bytes,
    not from the declared type. If a declared type is given it must agree
    with the detected one.

    Args:
        image_bytes: Raw image bytes.
        declared_media_type: Media type the caller claims the bytes are.

    Returns:
        True if valid format, False otherwise.
    """
    detected = sniff_media_type(image_bytes)
    if detected is None or detected not in config.ALLOWED_MEDIA_TYPES:
        logger.warning(f"Invalid image format: {detected}. Allowed: {', '.join(config.ALLOWED_MEDIA_TYPES)}")
        return False
    if declared_media_type is not None and normalize_media_type(declared_media_type) != detected:
        logger.warning(f"Declared media type {declared_media_type} does not match detected {detected}")
        return False
    return True


def validate_image_size(image_bytes: bytes) -> bool:
    """Validate image size against MAX_IMAGE_SIZE_MB.

    Args:
        image_bytes: Raw image bytes.

    Returns:
        True if size valid, False if exceeds limit.
    """
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > config.MAX_IMAGE_SIZE_MB:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {config.MAX_IMAGE_SIZE_MB}MB")
        return False
    return True


def verify_image_decodable(image_bytes: bytes) -> bool:
    """Check that Pillow can parse the image structure (truncated/corrupt files fail)."""
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.verify()
        return True
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.warning(f"Image could not be decoded: {e}")
        return False


def max_image_bytes() -> int:
    return int(config.MAX_IMAGE_SIZE_MB * 1024 * 1024)


def photo_from_data_uri(data_uri: Optional[str]) -> PhotoPayload:
    """Parse a data URI, rejecting payloads over MAX_IMAGE_SIZE_MB before decoding them."""
    return PhotoPayload.from_data_uri(data_uri, max_bytes=max_image_bytes())


def validate_photo(photo: Optional[PhotoPayload]) -> PhotoPayload:
    """Reject anything that is not an acceptable image.

    Raises:
        InvalidInput: With a user-facing reason for the first failed check.
    """
    if photo is None or not photo.data:
        raise InvalidInput("Photo is missing or empty.")

    if photo.media_type not in config.ALLOWED_MEDIA_TYPES:
        raise InvalidInput(
            f"Unsupported media type {photo.media_type}. Allowed: {', '.join(config.ALLOWED_MEDIA_TYPES)}."
        )

    if not validate_image_size(photo.data):
        raise InvalidInput(f"Image too large. Maximum size is {config.MAX_IMAGE_SIZE_MB}MB.")

    if not validate_image_format(photo.data, photo.media_type):
        raise InvalidInput(f"Photo content is not a valid {photo.media_type} image.")

    if not verify_image_decodable(photo.data):
        raise InvalidInput("Photo could not be decoded as an image.")

    return photo


def compress_image(image_bytes: bytes, max_width: int = 1024) -> bytes:
    """Compress image for API transmission using Pillow.

    Uses JPEG format with quality=85 + optimize + progressive for optimal size/quality trade-off.
    Resizes oversized images and converts color modes to RGB.
    Only compresses if image size is above COMPRESS_IMG_THRESHOLD_KB.

    Args:
        image_bytes: Raw image bytes to compress
        max_width: Maximum image width in pixels

    Returns:
        Compressed JPEG bytes, or the original bytes if below threshold or compression failed
    """
    size_kb = len(image_bytes) / 1024
    if size_kb < config.COMPRESS_IMG_THRESHOLD_KB:
        logger.debug(
            f"Image size {size_kb:.1f}KB below compression threshold "
            f"({config.COMPRESS_IMG_THRESHOLD_KB}KB), skipping compression"
        )
        return image_bytes

    try:
        img = Image.open(BytesIO(image_bytes))

        # Convert RGBA/LA/P to RGB for JPEG output
        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            rgb_img = Image.new("RGB", img.size, (255, 255, 255))
            rgb_img.paste(img, mask=img.split()[-1])
            img = rgb_img
        elif img.mode != "RGB":
            img = img.convert("RGB")

        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed_bytes = output.getvalue()
    except (OSError, ValueError) as e:
        logger.warning(f"Image compression failed, sending original: {e}")
        return image_bytes

    if len(compressed_bytes) >= len(image_bytes):
        logger.debug("Compressed image is not smaller, sending original")
        return image_bytes

    logger.debug(
        f"Image compressed: {size_kb:.1f}KB → {len(compressed_bytes) / 1024:.1f}KB "
        f"({(1 - len(compressed_bytes) / len(image_bytes)) * 100:.1f}% reduction)"
    )
    return compressed_bytes


def prepare_for_model(photo: PhotoPayload) -> PhotoPayload:
    """Return the payload to send to a remote model, compressed when enabled."""
    if not config.COMPRESS_IMG:
        return photo
    compressed = compress_image(photo.data)
    if compressed is photo.data:
        return photo
    return PhotoPayload(media_type="image/jpeg", data=compressed)
