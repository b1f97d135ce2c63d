"""Persistence of the editor buffer and layout state.

The editing session never talks to a storage backend directly; it is handed
an :class:`EditorStorage`. Every method swallows I/O errors after logging
them and reports failure through its return value, so a broken disk never
blocks editing.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

CONTENT_FILE = "content.md"
LAYOUT_FILE = "layout.json"
DIVIDER_KEY = "divider_position"
DIVIDER_MIN = 20.0
DIVIDER_MAX = 80.0


class EditorStorage(Protocol):
    def save(self, content: str) -> bool: ...

    def load(self) -> Optional[str]: ...

    def has_saved_content(self) -> bool: ...

    def clear(self) -> bool: ...

    def save_divider_position(self, position: float) -> bool: ...

    def load_divider_position(self) -> Optional[float]: ...


def valid_divider_position(value: object) -> Optional[float]:
    """Return ``value`` as a percentage in [20, 80], or ``None``."""
    if isinstance(value, bool):
        return None
    try:
        position = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if position != position or not DIVIDER_MIN <= position <= DIVIDER_MAX:
        return None
    return position


class FileEditorStorage:
    """Stores the document and layout as files inside ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.content_path = self.root / CONTENT_FILE
        self.layout_path = self.root / LAYOUT_FILE

    def save(self, content: str) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self.content_path.write_text(content, encoding="utf-8")
            return True
        except OSError as exc:
            logger.error(f"Failed to save content to {self.content_path}: {exc}")
            return False

    def load(self) -> Optional[str]:
        if not self.content_path.exists():
            return None
        try:
            return self.content_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error(f"Failed to load content from {self.content_path}: {exc}")
            return None

    def has_saved_content(self) -> bool:
        try:
            return self.content_path.is_file()
        except OSError:
            return False

    def clear(self) -> bool:
        try:
            self.content_path.unlink(missing_ok=True)
            return True
        except OSError as exc:
            logger.error(f"Failed to clear content at {self.content_path}: {exc}")
            return False

    def _read_layout(self) -> dict:
        if not self.layout_path.exists():
            return {}
        try:
            payload = json.loads(self.layout_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.error(f"Failed to read layout from {self.layout_path}: {exc}")
            return {}
        return payload if isinstance(payload, dict) else {}

    def save_divider_position(self, position: float) -> bool:
        layout = self._read_layout()
        layout[DIVIDER_KEY] = position
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self.layout_path.write_text(json.dumps(layout, indent=2), encoding="utf-8")
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.error(f"Failed to save divider position to {self.layout_path}: {exc}")
            return False

    def load_divider_position(self) -> Optional[float]:
        return valid_divider_position(self._read_layout().get(DIVIDER_KEY))


class MemoryEditorStorage:
    """In-process storage, used by tests and throwaway sessions."""

    def __init__(self, content: Optional[str] = None) -> None:
        self._content = content
        self._divider: Optional[float] = None

    def save(self, content: str) -> bool:
        self._content = content
        return True

    def load(self) -> Optional[str]:
        return self._content

    def has_saved_content(self) -> bool:
        return self._content is not None

    def clear(self) -> bool:
        self._content = None
        return True

    def save_divider_position(self, position: float) -> bool:
        self._divider = position
        return True

    def load_divider_position(self) -> Optional[float]:
        return valid_divider_position(self._divider)
