"""HTML escaping shared by the parser and the syntax highlighter.

Escaping is not idempotent: ``escape("&amp;")`` yields ``"&amp;amp;"``.
Callers run it exactly once per fragment, before any markup is built
around that fragment.
"""

from __future__ import annotations

_TEXT_REPLACEMENTS = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
)

_QUOTE_REPLACEMENTS = (
    ('"', "&quot;"),
    ("'", "&#039;"),
)


def escape(text: str, quote: bool = False) -> str:
    """Escape ``&``, ``<`` and ``>``; with ``quote`` also both quote characters."""
    for raw, entity in _TEXT_REPLACEMENTS:
        text = text.replace(raw, entity)
    if quote:
        text = escape_quotes(text)
    return text


def escape_quotes(text: str) -> str:
    """Escape only quote characters.

    Used when a fragment that already went through :func:`escape` is placed
    inside an attribute value.
    """
    for raw, entity in _QUOTE_REPLACEMENTS:
        text = text.replace(raw, entity)
    return text
