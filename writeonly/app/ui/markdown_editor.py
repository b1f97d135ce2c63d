from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Optional

from pygments import lex
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound
from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QMimeData, Qt
from PySide6.QtGui import (
    QColor,
    QFont,
    QFontDatabase,
    QImage,
    QKeyEvent,
    QSyntaxHighlighter,
    QTextCharFormat,
    QTextCursor,
)
from PySide6.QtWidgets import QPlainTextEdit

from writeonly.app import config
from writeonly.app.images import UnsupportedImageError, image_markdown, is_valid_image_type
from writeonly.engine.editing import ENTER_KEY, TAB_KEY, EditResult, apply_key
from writeonly.engine.highlighter import (
    BOLD_CLASS,
    CODE_CLASS,
    HEADING_CLASS,
    ITALIC_CLASS,
    LINK_CLASS,
    LIST_CLASS,
    highlight_spans,
)

logger = logging.getLogger(__name__)

FENCE = "```"

_EDIT_KEYS = {
    int(Qt.Key.Key_Tab): TAB_KEY,
    int(Qt.Key.Key_Return): ENTER_KEY,
    int(Qt.Key.Key_Enter): ENTER_KEY,
}
_BLOCKING_MODIFIERS = (
    Qt.KeyboardModifier.ShiftModifier
    | Qt.KeyboardModifier.ControlModifier
    | Qt.KeyboardModifier.AltModifier
    | Qt.KeyboardModifier.MetaModifier
)


def py_to_qt_offset(text: str, offset: int) -> int:
    """Convert a code point offset into ``text`` to a Qt (UTF-16) position."""
    return offset + sum(1 for ch in text[:offset] if ord(ch) > 0xFFFF)


def qt_to_py_offset(text: str, position: int) -> int:
    """Convert a Qt (UTF-16) position in ``text`` back to a code point offset."""
    units = 0
    for index, ch in enumerate(text):
        if units >= position:
            return index
        units += 2 if ord(ch) > 0xFFFF else 1
    return len(text)


def image_to_png(image: QImage) -> bytes:
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(data.data())


def _monospace_family() -> str:
    mono_font = QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont)
    return mono_font.family() or "Courier New"


class MarkdownHighlighter(QSyntaxHighlighter):
    """Colours the raw Markdown in place.

    Prose lines take their spans from :func:`highlight_spans`; lines inside
    a fenced block are lexed with Pygments for the fence's language.
    """

    CODE_BLOCK_STATE = 1

    def __init__(self, parent) -> None:  # type: ignore[override]
        super().__init__(parent)
        mono_family = _monospace_family()

        heading = QTextCharFormat()
        heading.setForeground(QColor("#6cb4ff"))
        heading.setFontWeight(QFont.Weight.DemiBold)

        bold = QTextCharFormat()
        bold.setForeground(QColor("#ffd479"))
        bold.setFontWeight(QFont.Weight.Bold)

        italic = QTextCharFormat()
        italic.setForeground(QColor("#ffa7c4"))
        italic.setFontItalic(True)

        link = QTextCharFormat()
        link.setForeground(QColor("#61afef"))
        link.setFontUnderline(True)

        code = QTextCharFormat()
        code.setForeground(QColor("#a3ffab"))
        code.setBackground(QColor("#2a2a2a"))
        code.setFontFamily(mono_family)
        code.setFontFixedPitch(True)

        list_marker = QTextCharFormat()
        list_marker.setForeground(QColor("#c678dd"))

        self.span_formats: dict[str, QTextCharFormat] = {
            HEADING_CLASS: heading,
            BOLD_CLASS: bold,
            ITALIC_CLASS: italic,
            LINK_CLASS: link,
            CODE_CLASS: code,
            LIST_CLASS: list_marker,
        }

        self.code_block = QTextCharFormat(code)
        self.code_fence_format = QTextCharFormat()
        self.code_fence_format.setForeground(QColor("#555555"))

        self._init_pygments(config.load_pygments_style())

    def _init_pygments(self, style_name: str) -> None:
        try:
            self._pygments_style = get_style_by_name(style_name)
        except ClassNotFound:
            logger.warning(f"Unknown Pygments style {style_name!r}; using monokai")
            self._pygments_style = get_style_by_name("monokai")
        self._format_cache: dict[str, QTextCharFormat] = {}
        self._lexer_cache: dict[str, object] = {}

    def set_pygments_style(self, style_name: str) -> None:
        """Update the Pygments style and rehighlight."""
        self._init_pygments(style_name)
        self.rehighlight()

    def _lexer_for_language(self, lang: str):
        cache_key = lang.lower()
        lexer = self._lexer_cache.get(cache_key)
        if lexer is None:
            try:
                lexer = get_lexer_by_name(cache_key) if cache_key else TextLexer()
            except ClassNotFound:
                lexer = TextLexer()
            self._lexer_cache[cache_key] = lexer
        return lexer

    def _format_for_token(self, token) -> QTextCharFormat:
        key = str(token)
        fmt = self._format_cache.get(key)
        if fmt is not None:
            return fmt
        style = self._pygments_style.style_for_token(token)
        fmt = QTextCharFormat(self.code_block)
        if style.get("color"):
            fmt.setForeground(QColor(f"#{style['color']}"))
        if style.get("bold"):
            fmt.setFontWeight(QFont.Weight.Bold)
        if style.get("italic"):
            fmt.setFontItalic(True)
        if style.get("underline"):
            fmt.setFontUnderline(True)
        self._format_cache[key] = fmt
        return fmt

    def _fence_language(self) -> str:
        """Language of the fence that opened the current code block."""
        block = self.currentBlock().previous()
        while block.isValid():
            text = block.text()
            if text.startswith(FENCE):
                return "".join(ch for ch in text[len(FENCE):] if ch.isalnum())
            block = block.previous()
        return ""

    def _highlight_code_line(self, text: str) -> None:
        self.setFormat(0, py_to_qt_offset(text, len(text)), self.code_block)
        col = 0
        for token_type, value in lex(text, self._lexer_for_language(self._fence_language())):
            end = min(col + len(value), len(text))
            if end > col:
                start_qt = py_to_qt_offset(text, col)
                self.setFormat(start_qt, py_to_qt_offset(text, end) - start_qt, self._format_for_token(token_type))
            col = end
            if col >= len(text):
                break

    def highlightBlock(self, text: str) -> None:  # type: ignore[override]
        in_code_block = self.previousBlockState() == self.CODE_BLOCK_STATE
        if text.startswith(FENCE):
            # A closing fence ends the block; an opening one starts it.
            self.setCurrentBlockState(0 if in_code_block else self.CODE_BLOCK_STATE)
            self.setFormat(0, py_to_qt_offset(text, len(text)), self.code_fence_format)
            return
        if in_code_block:
            self.setCurrentBlockState(self.CODE_BLOCK_STATE)
            self._highlight_code_line(text)
            return
        self.setCurrentBlockState(0)
        for span in highlight_spans(text):
            fmt = self.span_formats.get(span.css_class)
            if fmt is None:
                continue
            start = py_to_qt_offset(text, span.start)
            self.setFormat(start, py_to_qt_offset(text, span.end) - start, fmt)


class MarkdownEditor(QPlainTextEdit):
    """Plain-text Markdown editor with list continuation, indenting and image paste."""

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        font = QFont(_monospace_family())
        font.setPointSize(config.load_editor_font_size())
        self.setFont(font)
        self.setTabChangesFocus(False)
        self.setPlaceholderText("Start writing Markdown...")
        self.highlighter = MarkdownHighlighter(self.document())

    def set_font_size(self, size: int) -> None:
        font = self.font()
        font.setPointSize(max(6, size))
        self.setFont(font)
        config.save_editor_font_size(size)

    def selection_offsets(self) -> tuple[int, int]:
        """Current selection as code point offsets into ``toPlainText()``."""
        text = self.toPlainText()
        cursor = self.textCursor()
        return (
            qt_to_py_offset(text, cursor.selectionStart()),
            qt_to_py_offset(text, cursor.selectionEnd()),
        )

    def apply_edit_key(self, key: str) -> EditResult:
        """Run the smart-editing transform for ``key`` against the document.

        A handled edit is applied as a single splice so it lands on the
        undo stack as one step.
        """
        text = self.toPlainText()
        sel_start, sel_end = self.selection_offsets()
        result = apply_key(text, sel_start, sel_end, key)
        if not result.handled or result.splice is None:
            return result
        splice = result.splice
        cursor = QTextCursor(self.document())
        cursor.beginEditBlock()
        cursor.setPosition(py_to_qt_offset(text, splice.start))
        cursor.setPosition(py_to_qt_offset(text, splice.end), QTextCursor.MoveMode.KeepAnchor)
        cursor.insertText(splice.replacement)
        cursor.endEditBlock()
        cursor.setPosition(py_to_qt_offset(result.text, result.sel_start))
        self.setTextCursor(cursor)
        return result

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        key = _EDIT_KEYS.get(int(event.key()))
        if key and not event.modifiers() & _BLOCKING_MODIFIERS:
            if self.apply_edit_key(key).handled:
                event.accept()
                return
        super().keyPressEvent(event)

    def insert_image(self, data: bytes, mime_type: str, filename: Optional[str] = None) -> Optional[str]:
        """Insert ``data`` at the cursor as an inline image; ``None`` if the type is rejected."""
        try:
            token = image_markdown(data, mime_type, filename)
        except UnsupportedImageError:
            return None
        self.textCursor().insertText(token)
        return token

    def _image_paths(self, source: QMimeData) -> list[Path]:
        paths = []
        if not source.hasUrls():
            return paths
        for url in source.urls():
            if not url.isLocalFile():
                continue
            path = Path(url.toLocalFile())
            mime_type, _ = mimetypes.guess_type(path.name)
            if path.is_file() and is_valid_image_type(mime_type):
                paths.append(path)
        return paths

    def canInsertFromMimeData(self, source: QMimeData) -> bool:  # type: ignore[override]
        if source.hasImage() or self._image_paths(source):
            return True
        return super().canInsertFromMimeData(source)

    def insertFromMimeData(self, source: QMimeData) -> None:  # type: ignore[override]
        # 1) Dropped image files keep their own name and type
        paths = self._image_paths(source)
        if paths:
            for path in paths:
                mime_type, _ = mimetypes.guess_type(path.name)
                try:
                    data = path.read_bytes()
                except OSError as exc:
                    logger.error(f"Failed to read dropped image {path}: {exc}")
                    continue
                self.insert_image(data, mime_type or "", path.name)
            return

        # 2) Clipboard bitmaps are embedded as PNG
        if source.hasImage():
            image = source.imageData()
            if isinstance(image, QImage) and not image.isNull():
                self.insert_image(image_to_png(image), "image/png")
                return

        # 3) Rich text pastes as its plain text
        if source.hasText():
            self.textCursor().insertText(source.text())
            return

        super().insertFromMimeData(source)
