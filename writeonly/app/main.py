from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path

from writeonly.app import config
from writeonly.app.storage import FileEditorStorage


# ============================================================================
# DEBUG CONFIGURATION - Environment Variables
# ============================================================================
# WRITEONLY_LOG_LEVEL      - Root log level name (default WARNING)
# WRITEONLY_DEBUG_ENGINE   - DEBUG logging for parser/URL rejections
# WRITEONLY_DEBUG_STORAGE  - DEBUG logging for persistence
#
# Examples:
#   export WRITEONLY_DEBUG_ENGINE=1
#   WRITEONLY_LOG_LEVEL=INFO writeonly --webserver
# ============================================================================

_DEBUG_LOGGERS = {
    "WRITEONLY_DEBUG_ENGINE": "writeonly.engine",
    "WRITEONLY_DEBUG_STORAGE": "writeonly.app.storage",
}


def _debug_enabled(var_name: str) -> bool:
    """Check if a debug flag is enabled."""
    return os.getenv(var_name, "0") not in ("0", "false", "False", "", None)


def _configure_logging() -> None:
    level_name = os.getenv("WRITEONLY_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    for var_name, logger_name in _DEBUG_LOGGERS.items():
        if _debug_enabled(var_name):
            logging.getLogger(logger_name).setLevel(logging.DEBUG)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WriteOnly Markdown editor.")
    parser.add_argument("--data-dir", help="Directory for the saved document and layout.")
    parser.add_argument(
        "--renderer",
        choices=config.RENDERER_CHOICES,
        help="Preview renderer (default: configured value or 'rules').",
    )
    parser.add_argument(
        "--webserver",
        nargs="?",
        const="",
        help="Start web server mode [bind:port]. Default: configured bind or 127.0.0.1:0",
    )
    return parser.parse_args(argv)


def _parse_bind(bind_str: str) -> tuple[str, int]:
    """Split ``host[:port]``; empty parts fall back to the configured bind."""
    default_host, default_port = config.load_webserver_bind()
    if not bind_str:
        return default_host, default_port
    if ":" in bind_str:
        host, port_str = bind_str.rsplit(":", 1)
        try:
            port = int(port_str)
        except ValueError:
            port = default_port
    else:
        host = bind_str
        port = default_port
    return host or default_host, port


def _resolve_data_dir(args: argparse.Namespace) -> Path:
    if args.data_dir:
        return Path(args.data_dir).expanduser().resolve()
    return config.load_data_dir()


def _run_webserver_mode(args: argparse.Namespace) -> None:
    """Run in headless web server mode."""
    import signal

    from writeonly.webserver import WebServer

    host, port = _parse_bind(args.webserver)
    data_dir = _resolve_data_dir(args)
    renderer = args.renderer or config.load_renderer()

    web_server = WebServer(str(data_dir), renderer=renderer)
    actual_host, actual_port = web_server.start(host, port)

    print("\nWriteOnly Web Server started")
    print(f"  Data: {data_dir}")
    print(f"  URL:  http://{actual_host}:{actual_port}/")
    print("\nPress Ctrl+C to stop.\n")

    def signal_handler(sig, frame):
        print("\n\nShutting down web server...")
        web_server.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        while web_server.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n\nShutting down web server...")
        web_server.stop()


def _run_desktop(args: argparse.Namespace) -> int:
    from PySide6.QtWidgets import QApplication

    from writeonly.app.ui.main_window import MainWindow

    storage = FileEditorStorage(_resolve_data_dir(args))
    renderer = args.renderer or config.load_renderer()
    qt_app = QApplication(sys.argv)
    window = MainWindow(storage, renderer=renderer)
    window.show()
    return qt_app.exec()


def main() -> None:
    args = _parse_args(sys.argv[1:])
    _configure_logging()
    config.init_settings()

    if args.webserver is not None:
        _run_webserver_mode(args)
        return

    sys.exit(_run_desktop(args))


if __name__ == "__main__":  # pragma: no cover - manual entry point
    main()
