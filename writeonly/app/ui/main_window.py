from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QByteArray, Qt
from PySide6.QtGui import QAction, QKeySequence, QTextCursor
from PySide6.QtWidgets import QFileDialog, QMainWindow, QMessageBox, QSplitter, QTextBrowser

from writeonly.app import config
from writeonly.app.export import (
    EXPORT_FORMATS,
    build_html_document,
    export_filename,
    export_markdown,
    write_export,
)
from writeonly.app.pdf_export import export_pdf
from writeonly.app.session import EditorSession
from writeonly.app.storage import DIVIDER_MAX, DIVIDER_MIN, EditorStorage
from writeonly.app.ui.markdown_editor import MarkdownEditor, qt_to_py_offset

logger = logging.getLogger(__name__)

DEFAULT_DIVIDER = 50.0
# QSplitter distributes sizes by relative weight, so any fixed total works.
_SPLITTER_UNITS = 1000

_EXPORT_FILTERS = {
    "md": "Markdown (*.md)",
    "html": "HTML (*.html)",
    "pdf": "PDF (*.pdf)",
}


class MainWindow(QMainWindow):
    def __init__(self, storage: EditorStorage, renderer: Optional[str] = None, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("WriteOnly")
        self.storage = storage
        self.session = EditorSession(storage, renderer)

        self.editor = MarkdownEditor()
        self.preview = QTextBrowser()
        self.preview.setOpenExternalLinks(True)

        self.splitter = QSplitter(Qt.Orientation.Horizontal)
        self.splitter.addWidget(self.editor)
        self.splitter.addWidget(self.preview)
        self.splitter.setChildrenCollapsible(False)
        self.splitter.setHandleWidth(6)
        self.splitter.splitterMoved.connect(self._on_splitter_moved)
        self.setCentralWidget(self.splitter)

        self._build_menus()
        self.editor.textChanged.connect(self._on_text_changed)
        self._divider_restored = False
        self._restore_geometry()
        self._load_document()

    def _build_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")
        export_menu = file_menu.addMenu("&Export")
        for fmt in EXPORT_FORMATS:
            action = QAction(f"Export as {fmt.upper()}...", self)
            action.triggered.connect(lambda _checked=False, f=fmt: self._export_interactive(f))
            export_menu.addAction(action)
        file_menu.addSeparator()
        clear_action = QAction("&Clear Saved Content", self)
        clear_action.triggered.connect(self._clear_saved_content)
        file_menu.addAction(clear_action)
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

    def _load_document(self) -> None:
        text = self.session.load()
        # setPlainText fires textChanged, which renders and saves.
        self.editor.setPlainText(text)
        self.editor.moveCursor(QTextCursor.MoveOperation.Start)

    def _on_text_changed(self) -> None:
        text = self.editor.toPlainText()
        cursor = self.editor.textCursor()
        self.session.set_text(
            text,
            qt_to_py_offset(text, cursor.selectionStart()),
            qt_to_py_offset(text, cursor.selectionEnd()),
        )
        view = self.session.update()
        self.preview.setHtml(view.html)
        if not view.saved:
            self.statusBar().showMessage("Changes could not be saved", 5000)

    # --- divider -----------------------------------------------------------

    def divider_position(self) -> Optional[float]:
        sizes = self.splitter.sizes()
        total = sum(sizes)
        if total <= 0:
            return None
        return sizes[0] * 100.0 / total

    def set_divider_position(self, position: float) -> None:
        position = min(max(position, DIVIDER_MIN), DIVIDER_MAX)
        left = int(_SPLITTER_UNITS * position / 100.0)
        self.splitter.setSizes([left, _SPLITTER_UNITS - left])

    def _restore_divider(self) -> None:
        position = self.storage.load_divider_position()
        self.set_divider_position(DEFAULT_DIVIDER if position is None else position)

    def showEvent(self, event) -> None:  # type: ignore[override]
        super().showEvent(event)
        # Sizes only stick once the splitter has real geometry.
        if not self._divider_restored:
            self._divider_restored = True
            self._restore_divider()

    def _on_splitter_moved(self, _pos: int, _index: int) -> None:
        position = self.divider_position()
        if position is None:
            return
        if not DIVIDER_MIN <= position <= DIVIDER_MAX:
            self.set_divider_position(position)
            position = min(max(position, DIVIDER_MIN), DIVIDER_MAX)
        self.storage.save_divider_position(position)

    # --- geometry ----------------------------------------------------------

    def _restore_geometry(self) -> None:
        geometry_str = config.load_window_geometry()
        if geometry_str:
            self.restoreGeometry(QByteArray.fromBase64(geometry_str.encode("ascii")))
        else:
            self.resize(1200, 800)

    def _save_geometry(self) -> None:
        geometry = self.saveGeometry().toBase64().data().decode("ascii")
        config.save_window_geometry(geometry)

    # --- export ------------------------------------------------------------

    def export_to(self, fmt: str, path: Path) -> Path:
        """Write the current document to ``path`` in ``fmt`` (``md``, ``html`` or ``pdf``)."""
        if fmt == "md":
            return write_export(path, export_markdown(self.session.text))
        if fmt == "html":
            return write_export(path, build_html_document(self.session.render()))
        if fmt == "pdf":
            return export_pdf(self.session.render(), path)
        raise ValueError(f"Unknown export format: {fmt}")

    def _export_interactive(self, fmt: str) -> None:
        suggested = export_filename(EXPORT_FORMATS[fmt].extension)
        path_str, _ = QFileDialog.getSaveFileName(self, "Export", suggested, _EXPORT_FILTERS[fmt])
        if not path_str:
            return
        try:
            written = self.export_to(fmt, Path(path_str))
        except OSError as exc:
            logger.error(f"Export to {path_str} failed: {exc}")
            QMessageBox.warning(self, "Export Failed", f"Could not write {path_str}:\n{exc}")
            return
        self.statusBar().showMessage(f"Exported to {written}", 5000)

    def _clear_saved_content(self) -> None:
        if self.storage.clear():
            self.statusBar().showMessage("Saved content cleared", 5000)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._save_geometry()
        return super().closeEvent(event)
