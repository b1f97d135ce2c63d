"""Overlay highlighting for the raw editor text.

Unlike :mod:`writeonly.engine.parser` nothing is replaced here: every rule
wraps a match in a ``<span class="...">`` and leaves the characters alone,
so the overlay lines up character for character with the text area it is
drawn behind. :func:`strip_markers` undoes the wrapping.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from .escaping import escape
from .parser import LINK_TARGET
from .rules import Rule, apply_rules, rule

HEADING_CLASS = "heading"
BOLD_CLASS = "bold"
ITALIC_CLASS = "italic"
LINK_CLASS = "link"
CODE_CLASS = "code"
LIST_CLASS = "list"


def _wrap(css_class: str) -> str:
    return rf'<span class="{css_class}">\1</span>'


HIGHLIGHT_RULES: tuple[Rule, ...] = (
    rule("heading", r"^(#{1,6} .+)$", _wrap(HEADING_CLASS), re.MULTILINE),
    rule("bold_star", r"(\*\*.*?\*\*)", _wrap(BOLD_CLASS)),
    rule("bold_underscore", r"(__.*?__)", _wrap(BOLD_CLASS)),
    # A single marker touching another marker belongs to a bold span.
    rule("italic_star", r"(?<!\*)(\*(?!\*).*?(?<!\*)\*)(?!\*)", _wrap(ITALIC_CLASS)),
    rule("italic_underscore", r"(?<!_)(_(?!_).*?(?<!_)_)(?!_)", _wrap(ITALIC_CLASS)),
    rule("link", rf'(!?\[[^\]]+\]\({LINK_TARGET}(?:\s+"[^"\n]*")?\))', _wrap(LINK_CLASS)),
    rule("inline_code", r"(`[^`]+`)", _wrap(CODE_CLASS)),
    rule("unordered_marker", r"^([*-] )", _wrap(LIST_CLASS), re.MULTILINE),
    rule("ordered_marker", r"^([0-9]+\. )", _wrap(LIST_CLASS), re.MULTILINE),
)

_MARKER_RE = re.compile(r'<span class="[a-z]+">|</span>')
_OVERLAY_TOKEN_RE = re.compile(
    r'<span class="(?P<open>[a-z]+)">|(?P<close></span>)|(?P<entity>&(?:amp|lt|gt);)|(?P<text>[^<&]+)'
)


class HighlightSpan(NamedTuple):
    start: int
    end: int
    css_class: str


def highlight(text: str) -> str:
    """Return the escaped ``text`` with style spans wrapped around recognised tokens."""
    if not text:
        return ""
    return apply_rules(escape(text), HIGHLIGHT_RULES)


def strip_markers(overlay: str) -> str:
    """Remove every span inserted by :func:`highlight`."""
    return _MARKER_RE.sub("", overlay)


def highlight_spans(text: str) -> list[HighlightSpan]:
    """Map the overlay for ``text`` back onto offsets into ``text``.

    Spans are ordered by start offset, outer spans before the spans nested
    inside them.
    """
    spans: list[HighlightSpan] = []
    stack: list[tuple[str, int]] = []
    pos = 0
    for match in _OVERLAY_TOKEN_RE.finditer(highlight(text)):
        if match.group("open"):
            stack.append((match.group("open"), pos))
        elif match.group("close"):
            if stack:
                css_class, start = stack.pop()
                if pos > start:
                    spans.append(HighlightSpan(start, pos, css_class))
        elif match.group("entity"):
            pos += 1
        else:
            pos += len(match.group("text"))
    spans.sort(key=lambda span: (span.start, -span.end))
    return spans
