"""Link and image target classification."""

from __future__ import annotations

import html
import logging
from typing import Optional

logger = logging.getLogger(__name__)

RELATIVE_PREFIXES = ("/", "#", "./", "../")
# Protocol-relative targets; browsers read "/\" like "//".
NETWORK_PREFIXES = ("//", "/\\")
SAFE_SCHEMES = ("http://", "https://", "mailto:")
DATA_IMAGE_PREFIX = "data:image/"


def sanitize_url(url: Optional[str], allow_data_images: bool = False) -> Optional[str]:
    """Return ``url`` unchanged when it is safe to emit, otherwise ``None``.

    Relative targets are accepted as-is, except protocol-relative ones
    (``//host``) which leave the site. Anything else must use one of
    :data:`SAFE_SCHEMES` once lower-cased and trimmed. Character references
    are decoded before the scheme check so ``&#106;avascript:`` is seen as
    ``javascript:``. ``data:image/`` sources are accepted only when
    ``allow_data_images`` is set, which callers do for image sources and
    never for link targets.
    """
    if not url:
        return None
    if url.startswith(RELATIVE_PREFIXES) and not url.startswith(NETWORK_PREFIXES):
        return url
    normalized = html.unescape(url).strip().lower()
    if normalized.startswith(SAFE_SCHEMES):
        return url
    if allow_data_images and normalized.startswith(DATA_IMAGE_PREFIX):
        return url
    logger.debug(f"Rejected unsafe URL {url[:80]!r}")
    return None


def is_safe_url(url: Optional[str], allow_data_images: bool = False) -> bool:
    return sanitize_url(url, allow_data_images=allow_data_images) is not None
