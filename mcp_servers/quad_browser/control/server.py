"""
Loopback HTTP listener for the control API.

Binds 127.0.0.1 only. Runs a ThreadingHTTPServer in a daemon thread so the
hosting shell keeps its own main loop.
"""

from __future__ import annotations

import json
import logging
import threading
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .api import ControlApi

logger = logging.getLogger("mcp.quad.control")

LOOPBACK = "127.0.0.1"


def parse_body(raw: bytes) -> dict[str, Any]:
    """Decode a JSON object body. Anything unparseable counts as no params."""
    if not raw:
        return {}
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _make_handler(api: ControlApi) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        server_version = "QuadBrowserAPI/1.0"

        def _send(self, status: int, payload: Any | None) -> None:
            body = b"" if payload is None else json.dumps(payload, ensure_ascii=False).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Access-Control-Allow-Headers", "Content-Type")
            self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            if body:
                self.wfile.write(body)

        def _read_body(self) -> bytes:
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                length = 0
            return self.rfile.read(length) if length > 0 else b""

        def _dispatch(self) -> None:
            params = parse_body(self._read_body())
            path = urllib.parse.urlsplit(self.path).path
            try:
                result = api.handle(path, params)
            except Exception as exc:  # noqa: BLE001
                logger.exception("api_error path=%s", path)
                self._send(500, {"error": str(exc) or exc.__class__.__name__})
                return
            self._send(200, result)

        def do_POST(self) -> None:  # noqa: N802
            self._dispatch()

        def do_GET(self) -> None:  # noqa: N802
            self._dispatch()

        def do_OPTIONS(self) -> None:  # noqa: N802
            self._send(200, None)

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            logger.debug("http %s", format % args)

    return Handler


class ControlServer:
    """Owns the loopback listener and its serving thread."""

    def __init__(self, api: ControlApi, *, port: int = 19850) -> None:
        self.api = api
        self.port = port
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int]:
        if self._httpd is not None:
            host, port = self._httpd.server_address[:2]
            return str(host), int(port)
        return LOOPBACK, self.port

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        httpd = ThreadingHTTPServer((LOOPBACK, self.port), _make_handler(self.api))
        httpd.daemon_threads = True
        self._httpd = httpd
        # Port 0 binds an ephemeral port; report the real one.
        self.port = int(httpd.server_address[1])
        t = threading.Thread(target=httpd.serve_forever, name="quad-control-api", daemon=True)
        self._thread = t
        t.start()
        logger.info("Quad Browser API Server: http://%s:%s", LOOPBACK, self.port)

    def stop(self) -> None:
        httpd = self._httpd
        if httpd is None:
            return
        httpd.shutdown()
        httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        self._httpd = None
        self._thread = None
