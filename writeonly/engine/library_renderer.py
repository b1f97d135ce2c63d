"""Python-Markdown backed renderer.

The grammar comes from Python-Markdown; link and image output is still
ours. Raw HTML is switched off at both the block and inline level, and a
tree-processor re-applies :func:`~writeonly.engine.urls.sanitize_url` to
every ``<a>`` and ``<img>`` the library produced.
"""

from __future__ import annotations

import logging
from typing import Optional
from xml.etree import ElementTree as etree

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import AMP_SUBSTITUTE

from .parser import PLACEHOLDER_HTML
from .urls import sanitize_url

logger = logging.getLogger(__name__)

LINK_REL = "noopener noreferrer nofollow"
LINK_TARGET = "_blank"
BASE_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]


def _append_text(parent: etree.Element, index: int, text: Optional[str]) -> None:
    """Append ``text`` right before position ``index`` among ``parent``'s children."""
    if not text:
        return
    if index == 0:
        parent.text = (parent.text or "") + text
    else:
        previous = parent[index - 1]
        previous.tail = (previous.tail or "") + text


def _unwrap(parent: etree.Element, index: int) -> None:
    """Replace ``parent[index]`` by its own text and children."""
    child = parent[index]
    grandchildren = list(child)
    _append_text(parent, index, child.text)
    parent.remove(child)
    for offset, grandchild in enumerate(grandchildren):
        parent.insert(index + offset, grandchild)
    if grandchildren:
        last = grandchildren[-1]
        last.tail = (last.tail or "") + (child.tail or "")
    else:
        _append_text(parent, index, child.tail)


def _replace_with_text(parent: etree.Element, index: int, text: str) -> None:
    child = parent[index]
    _append_text(parent, index, text + (child.tail or ""))
    parent.remove(child)


def _decoded_target(value: Optional[str]) -> Optional[str]:
    """Undo the placeholder the automail pattern uses for ``&`` in obfuscated hrefs."""
    if value is None:
        return None
    return value.replace(AMP_SUBSTITUTE, "&")


class SafeLinkTreeprocessor(Treeprocessor):
    """Drop unsafe link/image targets and harden the rest."""

    def run(self, root: etree.Element) -> None:
        self._sanitize_children(root)

    def _sanitize_children(self, parent: etree.Element) -> None:
        index = 0
        while index < len(parent):
            child = parent[index]
            if child.tag == "a":
                if sanitize_url(_decoded_target(child.get("href"))) is None:
                    # Promoted children are revisited at the same index.
                    _unwrap(parent, index)
                    continue
                child.set("target", LINK_TARGET)
                child.set("rel", LINK_REL)
            elif child.tag == "img":
                if sanitize_url(_decoded_target(child.get("src")), allow_data_images=True) is None:
                    _replace_with_text(parent, index, child.get("alt", ""))
                    continue
            self._sanitize_children(child)
            index += 1


class SafeLinkExtension(Extension):
    """Disable raw HTML passthrough and register :class:`SafeLinkTreeprocessor`."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.preprocessors.deregister("html_block", strict=False)
        md.inlinePatterns.deregister("html", strict=False)
        # After "inline" (20) and "prettify" (10) so every link exists.
        md.treeprocessors.register(SafeLinkTreeprocessor(md), "safe_links", 1)


def build_markdown() -> markdown.Markdown:
    return markdown.Markdown(extensions=[*BASE_EXTENSIONS, SafeLinkExtension()])


def render_with_library(text: str) -> str:
    """Render ``text`` with Python-Markdown under the same link rules as :func:`render`."""
    if not text or not text.strip():
        return PLACEHOLDER_HTML
    # A fresh instance per call; Markdown objects carry per-document state.
    return build_markdown().convert(text)
