"""The editing surface's buffer, cursor and update cycle.

One :class:`EditorSession` owns the text and the selection. Each input
event runs, in order: the smart-editing transform (if the key has one), a
full render, a full highlight, and persistence of the raw text.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from writeonly.app.images import image_markdown
from writeonly.app.sample import SAMPLE_MARKDOWN
from writeonly.app.storage import EditorStorage
from writeonly.engine.editing import EditResult, apply_key, clamp_selection
from writeonly.engine.highlighter import highlight
from writeonly.engine.renderers import DEFAULT_RENDERER, get_renderer

logger = logging.getLogger(__name__)


class RenderedView(NamedTuple):
    html: str
    overlay: str
    saved: bool


class EditorSession:
    def __init__(self, storage: EditorStorage, renderer: Optional[str] = None) -> None:
        self.storage = storage
        self.renderer_name = renderer or DEFAULT_RENDERER
        self._render = get_renderer(self.renderer_name)
        self.text = ""
        self.sel_start = 0
        self.sel_end = 0

    def load(self) -> str:
        """Load saved text, falling back to the sample document when nothing usable is stored."""
        saved = self.storage.load()
        if saved:
            self.text = saved
        else:
            logger.debug("No saved content; starting from the sample document")
            self.text = SAMPLE_MARKDOWN
        self.sel_start = self.sel_end = 0
        return self.text

    def set_text(self, text: str, sel_start: Optional[int] = None, sel_end: Optional[int] = None) -> None:
        self.text = text
        start = len(text) if sel_start is None else sel_start
        end = start if sel_end is None else sel_end
        self.set_selection(start, end)

    def set_selection(self, sel_start: int, sel_end: int) -> None:
        self.sel_start, self.sel_end = clamp_selection(self.text, sel_start, sel_end)

    def handle_key(self, key: str) -> EditResult:
        result = apply_key(self.text, self.sel_start, self.sel_end, key)
        if result.handled:
            self.text = result.text
            self.sel_start, self.sel_end = result.sel_start, result.sel_end
        return result

    def insert_text(self, snippet: str) -> None:
        """Replace the selection with ``snippet`` and put the cursor after it."""
        cursor = self.sel_start + len(snippet)
        self.text = self.text[: self.sel_start] + snippet + self.text[self.sel_end :]
        self.sel_start = self.sel_end = cursor

    def insert_image(self, data: bytes, mime_type: str, filename: Optional[str] = None) -> str:
        token = image_markdown(data, mime_type, filename)
        self.insert_text(token)
        return token

    def render(self) -> str:
        return self._render(self.text)

    def overlay(self) -> str:
        # Trailing newline keeps the overlay's last line as tall as the text area's.
        return highlight(self.text) + "\n"

    def update(self) -> RenderedView:
        html = self.render()
        overlay = self.overlay()
        saved = self.storage.save(self.text)
        if not saved:
            logger.warning("Content could not be saved; continuing without persistence")
        return RenderedView(html, overlay, saved)
