"""
WriteOnly Web Server - browser front end for the editing session.

Serves a single-page editor and a small JSON API that runs the same
transform, render, highlight and persist cycle as the desktop window.
"""

import io
import logging
import socket
import threading
from pathlib import Path
from typing import Optional

from flask import Flask, abort, jsonify, render_template, request, send_file
from markupsafe import Markup

from writeonly.app.export import build_html_document, export_filename, export_markdown, get_export_format
from writeonly.app.images import UnsupportedImageError
from writeonly.app.session import EditorSession, RenderedView
from writeonly.app.storage import EditorStorage, FileEditorStorage, valid_divider_position

logger = logging.getLogger(__name__)

WEB_EXPORT_FORMATS = ("md", "html")


class WebServer:
    """Web server exposing one editing session over HTTP."""

    def __init__(self, data_dir: str, renderer: Optional[str] = None, storage: Optional[EditorStorage] = None):
        """
        Initialize web server.

        Args:
            data_dir: Directory holding the saved document and layout
            renderer: Preview strategy name ("rules" or "markdown")
            storage: Optional storage backend, defaults to files in data_dir
        """
        self.data_dir = Path(data_dir).expanduser().resolve()
        self.storage = storage if storage is not None else FileEditorStorage(self.data_dir)
        self.session = EditorSession(self.storage, renderer)
        self.session.load()
        self._lock = threading.Lock()
        self.app = Flask(
            __name__,
            template_folder=str(Path(__file__).parent / "templates"),
            static_folder=str(Path(__file__).parent / "static"),
        )
        self.server_thread: Optional[threading.Thread] = None
        self.is_running = False
        self.host = "127.0.0.1"
        self.port = 0
        self.actual_port = 0

        self._setup_routes()

    def _view_payload(self, view: RenderedView) -> dict:
        return {
            "text": self.session.text,
            "sel_start": self.session.sel_start,
            "sel_end": self.session.sel_end,
            "html": view.html,
            "overlay": view.overlay,
            "saved": view.saved,
        }

    def _apply_client_state(self, payload: dict) -> None:
        """Copy the browser's buffer and selection into the session."""
        text = payload.get("text")
        if not isinstance(text, str):
            abort(400, description="'text' must be a string")
        sel_start = payload.get("sel_start")
        sel_end = payload.get("sel_end")
        if sel_start is not None and not isinstance(sel_start, int):
            abort(400, description="'sel_start' must be an integer")
        if sel_end is not None and not isinstance(sel_end, int):
            abort(400, description="'sel_end' must be an integer")
        self.session.set_text(text, sel_start, sel_end)

    def _setup_routes(self):
        """Setup Flask routes."""

        @self.app.route("/")
        def index():
            """Serve the editor page with the current document pre-rendered."""
            with self._lock:
                text = self.session.text
                html = self.session.render()
                overlay = self.session.overlay()
                divider = self.storage.load_divider_position()
            return render_template(
                "index.html",
                text=text,
                preview=Markup(html),
                overlay=Markup(overlay),
                divider=divider if divider is not None else 50.0,
            )

        @self.app.route("/api/update", methods=["POST"])
        def api_update():
            """Render, highlight and save the posted buffer."""
            payload = request.get_json(silent=True) or {}
            with self._lock:
                self._apply_client_state(payload)
                view = self.session.update()
                return jsonify(self._view_payload(view))

        @self.app.route("/api/key", methods=["POST"])
        def api_key():
            """Run the smart-editing transform for a key press."""
            payload = request.get_json(silent=True) or {}
            key = payload.get("key")
            if not isinstance(key, str):
                abort(400, description="'key' must be a string")
            with self._lock:
                self._apply_client_state(payload)
                result = self.session.handle_key(key)
                if not result.handled:
                    return jsonify({"handled": False})
                view = self.session.update()
                return jsonify({"handled": True, **self._view_payload(view)})

        @self.app.route("/api/content", methods=["GET"])
        def api_content():
            with self._lock:
                return jsonify({"text": self.session.text, "saved": self.storage.has_saved_content()})

        @self.app.route("/api/layout", methods=["GET", "PUT"])
        def api_layout():
            """Read or store the editor/preview divider position (percent)."""
            if request.method == "GET":
                with self._lock:
                    return jsonify({"divider_position": self.storage.load_divider_position()})
            payload = request.get_json(silent=True) or {}
            position = valid_divider_position(payload.get("divider_position"))
            if position is None:
                abort(400, description="divider_position must be a number between 20 and 80")
            with self._lock:
                saved = self.storage.save_divider_position(position)
            return jsonify({"divider_position": position, "saved": saved})

        @self.app.route("/api/image", methods=["POST"])
        def api_image():
            """Embed an uploaded image at the cursor as a data URL."""
            upload = request.files.get("image")
            if upload is None:
                abort(400, description="missing 'image' upload")
            data = upload.read()
            form = request.form
            with self._lock:
                if "text" in form:
                    self._apply_client_state(
                        {
                            "text": form["text"],
                            "sel_start": form.get("sel_start", type=int),
                            "sel_end": form.get("sel_end", type=int),
                        }
                    )
                try:
                    token = self.session.insert_image(data, upload.mimetype, upload.filename)
                except UnsupportedImageError as exc:
                    return jsonify({"error": str(exc)}), 415
                view = self.session.update()
                return jsonify({"markdown": token, **self._view_payload(view)})

        @self.app.route("/export/<fmt>", methods=["POST"])
        def export(fmt: str):
            """Download the document as Markdown or as a standalone HTML page."""
            if fmt not in WEB_EXPORT_FORMATS:
                abort(404)
            export_format = get_export_format(fmt)
            payload = request.get_json(silent=True) or {}
            with self._lock:
                if "text" in payload:
                    self._apply_client_state(payload)
                if fmt == "md":
                    content = export_markdown(self.session.text)
                else:
                    content = build_html_document(self.session.render())
            logger.info(f"Exporting document as {fmt}")
            return send_file(
                io.BytesIO(content.encode("utf-8")),
                mimetype=export_format.mime_type,
                as_attachment=True,
                download_name=export_filename(export_format.extension),
            )

    def _find_free_port(self) -> int:
        """Find a free port on the system."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("", 0))
            s.listen(1)
            port = s.getsockname()[1]
        return port

    def start(self, host: str = "127.0.0.1", port: int = 0) -> tuple[str, int]:
        """
        Start the web server.

        Args:
            host: Host to bind to (default: 127.0.0.1)
            port: Port to bind to (0 = auto-pick)

        Returns:
            Tuple of (actual_host, actual_port)
        """
        if self.is_running:
            logger.warning("Server already running")
            return self.host, self.actual_port

        self.host = host
        self.port = port if port > 0 else self._find_free_port()

        if host not in ("127.0.0.1", "localhost"):
            logger.warning(
                "WARNING: You are exposing your editor over the network! "
                f"Server accessible at: {host}:{self.port}"
            )

        def run_server():
            try:
                self.app.run(
                    host=self.host,
                    port=self.port,
                    debug=False,
                    use_reloader=False,
                )
            except OSError as e:
                logger.error(f"Server error: {e}")
                self.is_running = False

        self.server_thread = threading.Thread(target=run_server, daemon=True)
        self.server_thread.start()
        self.is_running = True
        self.actual_port = self.port

        logger.info(f"Web server started: {self.get_url()}")

        return self.host, self.actual_port

    def stop(self):
        """Stop the web server."""
        if not self.is_running:
            return

        # The development server has no shutdown hook; the daemon thread dies with the process.
        self.is_running = False
        logger.info("Web server stopped")

    def get_url(self) -> Optional[str]:
        """Get the server URL if running."""
        if not self.is_running:
            return None
        return f"http://{self.host}:{self.actual_port}/"
