"""Decodes image bytes with Pillow and estimates their in-memory cost."""

import io
import logging

from PIL import Image, UnidentifiedImageError

from catinfo.domain.models.common import CostBytes
from catinfo.domain.models.errors import DecodingError

logger = logging.getLogger(__name__)


def decode_image(raw_bytes: bytes) -> Image.Image:
    """Decodes encoded image bytes into a fully loaded Pillow image.

    Raises:
        DecodingError: If the bytes are empty, truncated or not an image.
    """
    if not raw_bytes:
        raise DecodingError("Cannot decode an empty image payload")
    try:
        image = Image.open(io.BytesIO(raw_bytes))
        image.load() # Pillow decodes lazily
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodingError(f"Failed to decode image ({len(raw_bytes)} bytes): {e}") from e
    return image


def image_cost(image: Image.Image) -> CostBytes:
    """Approximate size of the decoded pixel buffer."""
    return CostBytes(image.width * image.height * len(image.getbands()))
