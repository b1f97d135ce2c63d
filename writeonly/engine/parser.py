"""Markdown → HTML rule engine.

The renderer is a fixed pipeline over the whole document:

1. normalise line endings and escape the text,
2. lift fenced code blocks and inline code spans out of the text
   (:data:`CODE_RULES`) so later rules cannot touch their contents,
3. run :data:`MARKUP_RULES` in order (headings, emphasis, strikethrough,
   blockquotes, rules, images, links, list items, list grouping),
4. wrap the remaining prose lines in paragraphs,
5. put the code back.

Nothing here raises on malformed input; unmatched markup stays in the
output as escaped literal text.
"""

from __future__ import annotations

import re
from typing import Optional

from .escaping import escape, escape_quotes
from .rules import Rule, apply_rules, rule
from .urls import sanitize_url

PLACEHOLDER_HTML = '<p class="placeholder">Your preview will appear here...</p>'

UL_OPEN = "<!--UL_ITEM-->"
UL_CLOSE = "<!--/UL_ITEM-->"
OL_OPEN = "<!--OL_ITEM-->"
OL_CLOSE = "<!--/OL_ITEM-->"

LINK_ATTRS = 'target="_blank" rel="noopener noreferrer"'

BLOCK_PREFIXES = ("<h", "<ul", "<ol", "<li", "<blockquote", "<pre", "<hr", "</")

# Stashed code is referenced by NUL-delimited tokens; NUL never survives
# normalisation so user text cannot forge one.
_STASH_MARK = "\x00"
_BLOCK_TOKEN = _STASH_MARK + "B"
_STASH_TOKEN_RE = re.compile(r"\x00[BI](\d+)\x00")


# --- code ---------------------------------------------------------------

def _render_fence(match: re.Match[str]) -> str:
    lang = re.sub(r"[^A-Za-z0-9]", "", match.group(1))
    # Content is already escaped; only quotes are added so a stashed block
    # restored into an attribute value cannot close it.
    code = escape_quotes(match.group(2).strip())
    return f'<pre><code class="language-{lang}">{code}</code></pre>'


def _render_inline_code(match: re.Match[str]) -> str:
    return f"<code>{escape_quotes(match.group(1))}</code>"


FENCED_CODE = rule(
    "fenced_code",
    r"^```([A-Za-z0-9_]*)[ \t]*\n(.*?)```",
    _render_fence,
    re.MULTILINE | re.DOTALL,
)
INLINE_CODE = rule("inline_code", r"`([^`]+)`", _render_inline_code)

CODE_RULES: tuple[Rule, ...] = (FENCED_CODE, INLINE_CODE)


# --- headings / emphasis / block markers ---------------------------------

# Six down to one so "######" is never read as a shorter heading.
HEADING_RULES: tuple[Rule, ...] = tuple(
    rule(f"heading_{level}", rf"^{'#' * level} (.+)$", rf"<h{level}>\1</h{level}>", re.MULTILINE)
    for level in range(6, 0, -1)
)

# Triple before double before single. A single marker never starts on a
# line made only of that marker, which keeps "***" and "___" available to
# the horizontal rule.
EMPHASIS_RULES: tuple[Rule, ...] = (
    rule("bold_italic_star", r"\*\*\*(.+?)\*\*\*", r"<strong><em>\1</em></strong>"),
    rule("bold_star", r"\*\*(.+?)\*\*", r"<strong>\1</strong>"),
    rule("italic_star", r"\*(?!\*+$)(.+?)\*", r"<em>\1</em>", re.MULTILINE),
    rule("bold_italic_underscore", r"___(.+?)___", r"<strong><em>\1</em></strong>"),
    rule("bold_underscore", r"__(.+?)__", r"<strong>\1</strong>"),
    rule("italic_underscore", r"_(?!_+$)(.+?)_", r"<em>\1</em>", re.MULTILINE),
)

STRIKETHROUGH = rule("strikethrough", r"~~(.+?)~~", r"<del>\1</del>")
BLOCKQUOTE = rule("blockquote", r"^&gt; (.+)$", r"<blockquote>\1</blockquote>", re.MULTILINE)
HORIZONTAL_RULE = rule("horizontal_rule", r"^(?:---|\*\*\*|___)$", "<hr>", re.MULTILINE)


# --- images and links ----------------------------------------------------

def _title_attr(title: Optional[str]) -> str:
    if not title:
        return ""
    return f' title="{escape_quotes(title)}"'


def _render_image(match: re.Match[str]) -> str:
    alt, src, title = match.group(1), match.group(2), match.group(3)
    safe_src = sanitize_url(src, allow_data_images=True)
    if safe_src is None:
        return alt
    return f'<img src="{escape_quotes(safe_src)}" alt="{escape_quotes(alt)}"{_title_attr(title)}>'


def _render_link(match: re.Match[str]) -> str:
    label, href, title = match.group(1), match.group(2), match.group(3)
    safe_href = sanitize_url(href)
    if safe_href is None:
        return label
    return f'<a href="{escape_quotes(safe_href)}"{_title_attr(title)} {LINK_ATTRS}>{label}</a>'


# A target may hold one level of balanced parentheses.
LINK_TARGET = r"(?:[^()\s]|\([^()\s]*\))+?"
LINK_TITLE = r'\s+"([^"\n]*)"'

IMAGE = rule("image", rf"!\[([^\]]*)\]\(({LINK_TARGET})(?:{LINK_TITLE})?\)", _render_image)
LINK = rule("link", rf"\[([^\]]+)\]\(({LINK_TARGET})(?:{LINK_TITLE})?\)", _render_link)


# --- lists ----------------------------------------------------------------

def _grouper(tag: str, open_marker: str, close_marker: str):
    def replace(match: re.Match[str]) -> str:
        run = match.group(0)
        trailing = "\n" if run.endswith("\n") else ""
        items = run.rstrip("\n").replace(open_marker, "<li>").replace(close_marker, "</li>")
        return f"<{tag}>{items}</{tag}>{trailing}"

    return replace


UNORDERED_ITEM = rule("unordered_item", r"^[*-] (.+)$", rf"{UL_OPEN}\1{UL_CLOSE}", re.MULTILINE)
ORDERED_ITEM = rule("ordered_item", r"^[0-9]+\. (.+)$", rf"{OL_OPEN}\1{OL_CLOSE}", re.MULTILINE)
UNORDERED_GROUP = rule(
    "unordered_group",
    rf"(?:{re.escape(UL_OPEN)}.*{re.escape(UL_CLOSE)}\n?)+",
    _grouper("ul", UL_OPEN, UL_CLOSE),
)
ORDERED_GROUP = rule(
    "ordered_group",
    rf"(?:{re.escape(OL_OPEN)}.*{re.escape(OL_CLOSE)}\n?)+",
    _grouper("ol", OL_OPEN, OL_CLOSE),
)


MARKUP_RULES: tuple[Rule, ...] = (
    *HEADING_RULES,
    *EMPHASIS_RULES,
    STRIKETHROUGH,
    BLOCKQUOTE,
    HORIZONTAL_RULE,
    IMAGE,
    LINK,
    UNORDERED_ITEM,
    ORDERED_ITEM,
    UNORDERED_GROUP,
    ORDERED_GROUP,
)


class _CodeStash:
    """Per-call store for rendered code, keyed by position."""

    def __init__(self) -> None:
        self._chunks: list[str] = []

    def _put(self, kind: str, html: str) -> str:
        self._chunks.append(html)
        return f"{_STASH_MARK}{kind}{len(self._chunks) - 1}{_STASH_MARK}"

    def protect(self, text: str) -> str:
        text = FENCED_CODE.pattern.sub(lambda m: self._put("B", FENCED_CODE.render_match(m)), text)
        return INLINE_CODE.pattern.sub(lambda m: self._put("I", INLINE_CODE.render_match(m)), text)

    def restore(self, text: str) -> str:
        return _STASH_TOKEN_RE.sub(lambda m: self._chunks[int(m.group(1))], text)


def is_block_line(line: str) -> bool:
    return line.startswith(BLOCK_PREFIXES) or line.startswith(_BLOCK_TOKEN)


def wrap_paragraphs(text: str) -> str:
    """Group consecutive prose lines into ``<p>`` elements.

    Block lines pass through and close any open paragraph; blank lines
    close it without emitting anything.
    """
    result: list[str] = []
    paragraph: list[str] = []

    def flush() -> None:
        if paragraph:
            result.append("<p>" + " ".join(paragraph) + "</p>")
            paragraph.clear()

    for line in text.split("\n"):
        if not line.strip():
            flush()
            continue
        if is_block_line(line):
            flush()
            result.append(line)
        else:
            paragraph.append(line)
    flush()
    return "\n".join(result)


def normalize_source(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "\ufffd")


def render(text: str) -> str:
    """Render Markdown ``text`` to sanitized HTML."""
    if not text or not text.strip():
        return PLACEHOLDER_HTML
    source = escape(normalize_source(text))
    stash = _CodeStash()
    source = stash.protect(source)
    source = apply_rules(source, MARKUP_RULES)
    return stash.restore(wrap_paragraphs(source))
