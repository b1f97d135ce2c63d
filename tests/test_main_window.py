import pytest
from PySide6.QtWidgets import QApplication

from writeonly.app.sample import SAMPLE_MARKDOWN
from writeonly.app.storage import MemoryEditorStorage
from writeonly.app.ui.main_window import MainWindow


@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication([])


@pytest.fixture
def window(app, global_config):
    win = MainWindow(MemoryEditorStorage())
    win.show()
    yield win
    win.close()


def test_starts_with_sample_document(window):
    assert window.editor.toPlainText() == SAMPLE_MARKDOWN
    assert window.storage.load() == SAMPLE_MARKDOWN


def test_typing_updates_preview_and_storage(window):
    window.editor.setPlainText("# Fresh")
    assert window.storage.load() == "# Fresh"
    assert "Fresh" in window.preview.toPlainText()


def test_saved_divider_is_restored(app, global_config):
    storage = MemoryEditorStorage("x")
    storage.save_divider_position(30)
    win = MainWindow(storage)
    win.show()
    app.processEvents()
    assert win.divider_position() == pytest.approx(30, abs=1)
    win.close()


def test_divider_is_clamped(window):
    window.set_divider_position(5)
    assert window.divider_position() == pytest.approx(20, abs=1)


def test_export_markdown_and_html(window, tmp_path):
    window.editor.setPlainText("# Out")
    md = window.export_to("md", tmp_path / "doc.md")
    html = window.export_to("html", tmp_path / "doc.html")
    assert md.read_text(encoding="utf-8") == "# Out"
    assert "<h1>Out</h1>" in html.read_text(encoding="utf-8")


def test_export_unknown_format(window, tmp_path):
    with pytest.raises(ValueError):
        window.export_to("docx", tmp_path / "doc.docx")


def test_close_saves_geometry(app, global_config):
    from writeonly.app import config

    win = MainWindow(MemoryEditorStorage("x"))
    win.show()
    win.close()
    assert config.load_window_geometry()
