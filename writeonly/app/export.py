"""Markdown and HTML export.

Exports never post-process the rendered HTML; the preview body is dropped
into the ``export.html`` document template as-is.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import NamedTuple, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

FILENAME_PREFIX = "writeonly"
DOCUMENT_TITLE = "WriteOnly Export"


class ExportFormat(NamedTuple):
    extension: str
    mime_type: str


EXPORT_FORMATS: dict[str, ExportFormat] = {
    "md": ExportFormat("md", "text/markdown"),
    "html": ExportFormat("html", "text/html"),
    "pdf": ExportFormat("pdf", "application/pdf"),
}

_environment = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
)


def get_export_format(name: str) -> ExportFormat:
    try:
        return EXPORT_FORMATS[name]
    except KeyError:
        raise ValueError(f"Unknown export format: {name}") from None


def export_filename(extension: str, now: Optional[datetime] = None) -> str:
    """``writeonly_YYYYMMDD_HHMM.<extension>`` in local time."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M")
    return f"{FILENAME_PREFIX}_{stamp}.{extension}"


def export_markdown(text: str) -> str:
    return text


def build_html_document(body_html: str, title: str = DOCUMENT_TITLE) -> str:
    """Wrap rendered preview HTML in a standalone, styled document."""
    template = _environment.get_template("export.html")
    return template.render(title=title, body=Markup(body_html))


def write_export(path: Path, content: str) -> Path:
    path = Path(path)
    path.write_text(content, encoding="utf-8")
    return path
