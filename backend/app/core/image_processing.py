"""Image input utilities for artwork uploads.

Accepts raw bytes, base64 strings and ``data:`` URLs, and decodes them
with Pillow for pixel sampling.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Optional, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from app.services.ai.common.errors import InvalidImage

logger = logging.getLogger(__name__)

ImageInput = Union[bytes, bytearray, str]

IMAGE_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif", "image/bmp", "image/tiff"}


def is_image_upload(content_type: Optional[str], filename: Optional[str]) -> bool:
    """Return True if the upload looks like an image we can process."""
    if content_type and content_type.lower() in IMAGE_CONTENT_TYPES:
        return True
    if filename:
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        return ext in {"jpg", "jpeg", "png", "webp", "gif", "bmp", "tiff"}
    return False


def strip_data_url(value: str) -> str:
    """Return the base64 payload of a ``data:image/...;base64,`` URL."""
    value = value.strip()
    if value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value


def to_image_bytes(image: ImageInput, *, max_bytes: Optional[int] = None) -> bytes:
    """Normalise *image* to raw bytes.

    Raises ``InvalidImage`` for empty input, bad base64 or oversize payloads.
    """
    if isinstance(image, (bytes, bytearray)):
        content = bytes(image)
    elif isinstance(image, str):
        payload = "".join(strip_data_url(image).split())
        if not payload:
            raise InvalidImage("Empty image payload")
        try:
            content = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidImage("Image is not valid base64") from exc
    else:
        raise InvalidImage(f"Unsupported image input type: {type(image).__name__}")

    if not content:
        raise InvalidImage("Empty image payload")
    if max_bytes is not None and len(content) > max_bytes:
        raise InvalidImage(f"Image exceeds {max_bytes} bytes")
    return content


def to_base64(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


def load_rgba(content: bytes) -> Image.Image:
    """Decode *content*, auto-orient and convert to RGBA at full resolution.

    No resampling: every returned pixel is an original pixel value.
    Raises ``InvalidImage`` when Pillow cannot read the bytes.
    """
    try:
        img = Image.open(io.BytesIO(content))
        img = ImageOps.exif_transpose(img)  # auto-orient
        return img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise InvalidImage("Could not decode image") from exc
