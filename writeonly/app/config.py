from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

GLOBAL_CONFIG = Path(os.getenv("WRITEONLY_CONFIG") or Path.home() / ".writeonly_config.json")

DEFAULT_RENDERER = "rules"
RENDERER_CHOICES = ("rules", "markdown")
DEFAULT_WEBSERVER_HOST = "127.0.0.1"


def init_settings() -> None:
    GLOBAL_CONFIG.parent.mkdir(parents=True, exist_ok=True)


def _read_global_config() -> dict:
    """Return the parsed global config, or an empty dict on error/missing."""
    if not GLOBAL_CONFIG.exists():
        return {}
    try:
        payload = json.loads(GLOBAL_CONFIG.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return payload if isinstance(payload, dict) else {}


def _update_global_config(updates: dict) -> None:
    """Merge updates into global config file."""
    existing = _read_global_config()
    existing.update(updates)
    GLOBAL_CONFIG.write_text(json.dumps(existing, indent=2), encoding="utf-8")


def default_data_dir() -> Path:
    base = os.getenv("XDG_DATA_HOME")
    root = Path(base) if base else Path.home() / ".local" / "share"
    return root / "writeonly"


def load_data_dir() -> Path:
    """Directory holding the saved document and layout state."""
    payload = _read_global_config()
    data_dir = payload.get("data_dir")
    if isinstance(data_dir, str) and data_dir.strip():
        return Path(data_dir).expanduser()
    return default_data_dir()


def save_data_dir(path: Optional[str]) -> None:
    _update_global_config({"data_dir": path})


def load_renderer(default: str = DEFAULT_RENDERER) -> str:
    """Load the preview renderer strategy ("rules" or "markdown")."""
    payload = _read_global_config()
    renderer = payload.get("renderer")
    if isinstance(renderer, str) and renderer in RENDERER_CHOICES:
        return renderer
    return default


def save_renderer(renderer: str) -> None:
    if renderer not in RENDERER_CHOICES:
        raise ValueError(f"Unknown renderer: {renderer}")
    _update_global_config({"renderer": renderer})


def load_pygments_style(default: str = "monokai") -> str:
    """Load preferred Pygments style for code fences."""
    payload = _read_global_config()
    style = payload.get("pygments_style")
    if isinstance(style, str) and style.strip():
        return style.strip()
    return default


def save_pygments_style(style: str) -> None:
    _update_global_config({"pygments_style": style})


def load_editor_font_size(default: int = 13) -> int:
    payload = _read_global_config()
    size = payload.get("editor_font_size")
    try:
        return max(6, int(size)) if size is not None else default
    except (TypeError, ValueError):
        return default


def save_editor_font_size(size: int) -> None:
    _update_global_config({"editor_font_size": max(6, int(size))})


def load_window_geometry() -> Optional[str]:
    payload = _read_global_config()
    geometry = payload.get("window_geometry")
    return geometry if isinstance(geometry, str) else None


def save_window_geometry(geometry: str) -> None:
    _update_global_config({"window_geometry": geometry})


def load_webserver_bind() -> tuple[str, int]:
    """Return the (host, port) for web server mode; port 0 picks a free one."""
    payload = _read_global_config()
    host = payload.get("webserver_host")
    port = payload.get("webserver_port")
    if not isinstance(host, str) or not host.strip():
        host = DEFAULT_WEBSERVER_HOST
    try:
        port = int(port) if port is not None else 0
    except (TypeError, ValueError):
        port = 0
    return host, port


def save_webserver_bind(host: str, port: int) -> None:
    _update_global_config({"webserver_host": host, "webserver_port": int(port)})
