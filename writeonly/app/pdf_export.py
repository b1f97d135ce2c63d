from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QMarginsF
from PySide6.QtGui import QPageLayout, QPageSize, QPdfWriter, QTextDocument

from writeonly.app.export import DOCUMENT_TITLE, build_html_document

logger = logging.getLogger(__name__)

PAGE_MARGIN_MM = 10.0


def export_pdf(body_html: str, path: Path) -> Path:
    """Print the styled export document to an A4 portrait PDF at ``path``.

    Needs a running QGuiApplication for font access.
    """
    path = Path(path)
    writer = QPdfWriter(str(path))
    writer.setTitle(DOCUMENT_TITLE)
    writer.setPageSize(QPageSize(QPageSize.PageSizeId.A4))
    writer.setPageOrientation(QPageLayout.Orientation.Portrait)
    writer.setPageMargins(
        QMarginsF(PAGE_MARGIN_MM, PAGE_MARGIN_MM, PAGE_MARGIN_MM, PAGE_MARGIN_MM),
        QPageLayout.Unit.Millimeter,
    )
    document = QTextDocument()
    document.setHtml(build_html_document(body_html))
    document.print_(writer)
    # The file is only complete once the writer is gone.
    del writer
    logger.info(f"Exported PDF to {path}")
    return path
