"""Ordered regex rewrite rules.

Both the parser and the highlighter are a fixed sequence of pattern →
replacement rewrites. Keeping each one a named :class:`Rule` makes the
order explicit and lets tests exercise a single stage.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Union

Replacement = Union[str, Callable[["re.Match[str]"], str]]


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: "re.Pattern[str]"
    replacement: Replacement

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)

    def render_match(self, match: "re.Match[str]") -> str:
        if callable(self.replacement):
            return self.replacement(match)
        return match.expand(self.replacement)


def rule(name: str, pattern: str, replacement: Replacement, flags: int = 0) -> Rule:
    """Compile ``pattern`` and build a :class:`Rule`."""
    return Rule(name, re.compile(pattern, flags), replacement)


def apply_rules(text: str, rules: Iterable[Rule]) -> str:
    for current in rules:
        text = current.apply(text)
    return text


def find_rule(rules: Iterable[Rule], name: str) -> Rule:
    for current in rules:
        if current.name == name:
            return current
    raise KeyError(name)
