"""
Reference shell backed by Chromium over the DevTools protocol.

Each pane is one page target. The shell keeps its own ordered slot list of
target ids (the on-screen order); targets closed behind its back simply drop
out of `list_panes()`.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import websocket

from ..adapters.registry import AdapterRegistry, adapter_registry
from ..bridge.snippets import Snippet
from ..config import QuadConfig, expand_path
from .base import FrameEvaluationError, Pane, SaveResult
from .launcher import ShellLauncher

logger = logging.getLogger("mcp.quad.shell")


class CdpConnection:
    """Low-level CDP WebSocket connection."""

    def __init__(self, ws_url: str, timeout: float = 10.0) -> None:
        try:
            self.ws = websocket.create_connection(ws_url, timeout=timeout)
        except (websocket.WebSocketException, OSError) as exc:
            raise FrameEvaluationError(f"Frame not reachable: {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send CDP command and wait for response."""
        msg_id = self._next_id
        self._next_id += 1
        msg: dict[str, Any] = {"id": msg_id, "method": method}
        if params:
            msg["params"] = params
        try:
            self.ws.send(json.dumps(msg))
        except (websocket.WebSocketException, OSError) as exc:
            raise FrameEvaluationError(str(exc)) from exc
        return self._recv_until(msg_id)

    def _recv_until(self, expected_id: int) -> dict[str, Any]:
        deadline = time.time() + self.timeout
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                raise FrameEvaluationError(f"Frame evaluation timed out ({int(self.timeout * 1000)}ms)")
            try:
                self.ws.settimeout(min(0.5, remaining))
                raw = self.ws.recv()
            except (websocket.WebSocketTimeoutException, TimeoutError):
                continue
            except (websocket.WebSocketException, OSError) as exc:
                raise FrameEvaluationError(str(exc)) from exc

            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                continue
            # Events carry no id; skip until our response arrives.
            if not isinstance(data, dict) or data.get("id") != expected_id:
                continue
            if "error" in data:
                error = data["error"]
                message = error.get("message") if isinstance(error, dict) else None
                raise FrameEvaluationError(str(message or error))
            result = data.get("result")
            return result if isinstance(result, dict) else {}

    def close(self) -> None:
        try:
            self.ws.close()
        except (websocket.WebSocketException, OSError):
            pass


@dataclass(frozen=True)
class CdpTarget:
    target_id: str
    ws_url: str


def _exception_text(details: dict[str, Any]) -> str:
    exc = details.get("exception")
    if isinstance(exc, dict) and exc.get("description"):
        return str(exc["description"]).splitlines()[0]
    return str(details.get("text") or "Script threw in frame")


class CdpShell:
    """ShellPort implementation over a local Chromium."""

    def __init__(
        self,
        config: QuadConfig,
        launcher: ShellLauncher | None = None,
        registry: AdapterRegistry | None = None,
        connection_factory: Any = CdpConnection,
    ) -> None:
        self.config = config
        self.launcher = launcher or ShellLauncher(config)
        self.registry = registry or adapter_registry
        self.connection_factory = connection_factory
        self._slots: list[str] = []
        self._lock = threading.Lock()

    def open_panes(self, urls: list[str] | None = None) -> list[str]:
        """Open one target per URL and make them the pane slots, in order."""
        opened = []
        for url in urls if urls is not None else self.config.pane_urls:
            target = self.launcher.open_target(url)
            opened.append(str(target.get("id")))
        with self._lock:
            self._slots = opened
        logger.info("opened %s panes", len(opened))
        return opened

    def list_panes(self) -> list[Pane]:
        pages = [t for t in self.launcher.list_targets() if isinstance(t, dict) and t.get("type") == "page"]
        by_id = {str(t.get("id")): t for t in pages}
        with self._lock:
            if not self._slots:
                # Attached to a browser we did not open: adopt its tabs, oldest first.
                self._slots = [str(t.get("id")) for t in reversed(pages)]
            slots = list(self._slots)

        panes: list[Pane] = []
        for target_id in slots:
            target = by_id.get(target_id)
            if target is None:
                continue
            url = str(target.get("url") or "")
            handle = CdpTarget(target_id=target_id, ws_url=str(target.get("webSocketDebuggerUrl") or ""))
            panes.append(Pane(index=len(panes) + 1, source=self.registry.label_for_url(url), url=url, handle=handle))
        return panes

    def _connect(self, pane: Pane) -> CdpConnection:
        handle = pane.handle
        if not isinstance(handle, CdpTarget) or not handle.ws_url:
            raise FrameEvaluationError(f"Pane {pane.index} has no debuggable frame")
        return self.connection_factory(handle.ws_url, timeout=self.config.frame_timeout)

    def evaluate(self, pane: Pane, snippet: Snippet) -> Any:
        conn = self._connect(pane)
        try:
            result = conn.send(
                "Runtime.evaluate",
                {"expression": snippet.source, "returnByValue": True, "awaitPromise": True},
            )
        finally:
            conn.close()
        details = result.get("exceptionDetails")
        if isinstance(details, dict):
            raise FrameEvaluationError(_exception_text(details))
        value = result.get("result")
        return value.get("value") if isinstance(value, dict) else None

    def assign_address(self, pane: Pane, url: str) -> None:
        conn = self._connect(pane)
        try:
            result = conn.send("Page.navigate", {"url": url})
        finally:
            conn.close()
        if result.get("errorText"):
            raise FrameEvaluationError(str(result["errorText"]))

    def layout(self) -> int:
        return self.config.split_mode

    def save_json(self, serialized: str, suggested_name: str) -> SaveResult:
        path = Path(expand_path(self.config.export_dir)) / suggested_name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(serialized, encoding="utf-8")
        except OSError as exc:
            logger.warning("export_save_failed path=%s error=%s", path, exc)
            return SaveResult(success=False, error=str(exc))
        logger.info("export saved to %s", path)
        return SaveResult(success=True, path=str(path))
