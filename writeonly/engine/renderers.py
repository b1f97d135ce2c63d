"""Interchangeable Markdown rendering strategies."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .library_renderer import render_with_library
from .parser import render

logger = logging.getLogger(__name__)

Renderer = Callable[[str], str]

DEFAULT_RENDERER = "rules"
RENDERERS: dict[str, Renderer] = {
    "rules": render,
    "markdown": render_with_library,
}


def get_renderer(name: Optional[str] = None) -> Renderer:
    """Return the renderer registered as ``name``; unknown names fall back to the default."""
    if not name:
        return RENDERERS[DEFAULT_RENDERER]
    renderer = RENDERERS.get(name)
    if renderer is None:
        logger.warning(f"Unknown renderer {name!r}; using {DEFAULT_RENDERER!r}")
        return RENDERERS[DEFAULT_RENDERER]
    return renderer
