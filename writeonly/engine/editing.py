"""Structure-aware edits applied to the raw buffer before a render.

:func:`apply_key` is a pure function of the buffer, the selection and the
key name (DOM ``KeyboardEvent.key`` spelling: ``"Tab"``, ``"Enter"``).
When it returns ``handled=False`` the host performs its default action.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

INDENT = "    "

TAB_KEY = "Tab"
ENTER_KEY = "Enter"

UNORDERED_ITEM_RE = re.compile(r"^(\s*)([-*])\s(.*)$")
UNORDERED_BARE_RE = re.compile(r"^(\s*)([-*])()$")
ORDERED_ITEM_RE = re.compile(r"^(\s*)([0-9]+)\.\s(.*)$")
ORDERED_BARE_RE = re.compile(r"^(\s*)([0-9]+)\.()$")


@dataclass(frozen=True)
class Splice:
    """``text[start:end]`` of the input was replaced by ``replacement``."""

    start: int
    end: int
    replacement: str

    def apply(self, text: str) -> str:
        return text[: self.start] + self.replacement + text[self.end :]


@dataclass(frozen=True)
class EditResult:
    text: str
    sel_start: int
    sel_end: int
    handled: bool
    splice: Optional[Splice] = None


@dataclass(frozen=True)
class ListItem:
    indent: str
    marker: str
    content: str
    ordered: bool

    def next_marker(self) -> str:
        if self.ordered:
            return f"{int(self.marker) + 1}."
        return self.marker

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()


def clamp_selection(text: str, sel_start: int, sel_end: int) -> tuple[int, int]:
    """Clamp both offsets into ``[0, len(text)]`` and order them."""
    length = len(text)
    start = min(max(sel_start, 0), length)
    end = min(max(sel_end, 0), length)
    if start > end:
        start, end = end, start
    return start, end


def line_start(text: str, position: int) -> int:
    return text.rfind("\n", 0, position) + 1


def parse_list_item(line: str) -> Optional[ListItem]:
    """Classify ``line`` as an unordered or ordered list item, or ``None``."""
    match = UNORDERED_ITEM_RE.match(line) or UNORDERED_BARE_RE.match(line)
    if match:
        return ListItem(match.group(1), match.group(2), match.group(3), ordered=False)
    match = ORDERED_ITEM_RE.match(line) or ORDERED_BARE_RE.match(line)
    if match:
        return ListItem(match.group(1), match.group(2), match.group(3), ordered=True)
    return None


def _splice(text: str, start: int, end: int, replacement: str, cursor: int) -> EditResult:
    splice = Splice(start, end, replacement)
    return EditResult(splice.apply(text), cursor, cursor, True, splice)


def _not_handled(text: str, sel_start: int, sel_end: int) -> EditResult:
    return EditResult(text, sel_start, sel_end, False)


def indent_selection(text: str, sel_start: int, sel_end: int) -> EditResult:
    return _splice(text, sel_start, sel_end, INDENT, sel_start + len(INDENT))


def continue_list(text: str, sel_start: int, sel_end: int) -> EditResult:
    """Continue or close the list item the cursor is on.

    Only the part of the line before the cursor is classified. A bare
    marker ends the list: everything from the line start to the cursor is
    replaced by one newline.
    """
    start = line_start(text, sel_start)
    item = parse_list_item(text[start:sel_start])
    if item is None:
        return _not_handled(text, sel_start, sel_end)
    if item.is_empty:
        return _splice(text, start, sel_start, "\n", start + 1)
    continuation = f"\n{item.indent}{item.next_marker()} "
    return _splice(text, sel_start, sel_end, continuation, sel_start + len(continuation))


def apply_key(text: str, sel_start: int, sel_end: int, key: str) -> EditResult:
    """Apply the smart-editing behaviour bound to ``key``."""
    sel_start, sel_end = clamp_selection(text, sel_start, sel_end)
    if key == TAB_KEY:
        return indent_selection(text, sel_start, sel_end)
    if key == ENTER_KEY:
        return continue_list(text, sel_start, sel_end)
    return _not_handled(text, sel_start, sel_end)
