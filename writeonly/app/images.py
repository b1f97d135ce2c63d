"""Turn pasted or dropped image data into a Markdown image token."""

from __future__ import annotations

import base64
import logging
import re
import time
from typing import Optional

logger = logging.getLogger(__name__)

VALID_IMAGE_TYPES = (
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
    "image/svg+xml",
)

_EXTENSION_RE = re.compile(r"\.[^.]+$")
_UNSAFE_NAME_CHARS_RE = re.compile(r"[^a-zA-Z0-9_-]")


class UnsupportedImageError(ValueError):
    """Raised when image data of an unsupported MIME type is ingested."""


def is_valid_image_type(mime_type: Optional[str]) -> bool:
    return (mime_type or "").lower() in VALID_IMAGE_TYPES


def generate_image_name(filename: Optional[str] = None, now: Optional[float] = None) -> str:
    """Derive the alt text for an image from its file name.

    The extension is dropped and anything outside ``[a-zA-Z0-9_-]`` becomes
    an underscore. Without a file name the current time in milliseconds is
    used instead.
    """
    if filename:
        base_name = _EXTENSION_RE.sub("", filename)
        return _UNSAFE_NAME_CHARS_RE.sub("_", base_name) or "image"
    stamp = time.time() if now is None else now
    return f"image_{int(stamp * 1000)}"


def to_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type.lower()};base64,{encoded}"


def image_markdown(data: bytes, mime_type: str, filename: Optional[str] = None) -> str:
    """Return ``![name](data:...)`` for ``data``.

    Raises:
        UnsupportedImageError: ``mime_type`` is not one of :data:`VALID_IMAGE_TYPES`.
    """
    if not is_valid_image_type(mime_type):
        logger.warning(f"Unsupported image type: {mime_type}")
        raise UnsupportedImageError(f"Unsupported image type: {mime_type}")
    return f"![{generate_image_name(filename)}]({to_data_url(data, mime_type)})"
