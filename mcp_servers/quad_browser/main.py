"""
MCP server that lets an LLM client drive Quad Browser.

Claude Desktop / Claude Code
    -> MCP (stdio, newline-delimited JSON-RPC 2.0)   [this module]
    -> HTTP POST 127.0.0.1:19850                     [control API in the shell]
    -> in-frame snippets                             [content bridge]
    -> ChatGPT / Gemini / Claude / Grok panes

Only JSON-RPC goes to stdout; diagnostics go to stderr through logging.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Callable
from typing import IO, Any

from .config import QuadConfig
from .http_client import HttpClientError
from .server.contract import (
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    SERVER_INFO,
    initialize_result,
    select_protocol,
    tools_list,
)
from .server.framing import LineBuffer
from .server.registry import ToolRegistry, create_default_registry
from .server.types import ToolInputError, ToolResult

logger = logging.getLogger("mcp.quad")

__all__ = ["McpServer", "main"]

_write_lock = threading.Lock()


def _write_message(payload: dict[str, Any]) -> None:
    """Write one JSON-RPC message to stdout."""
    line = (json.dumps(payload, ensure_ascii=False) + "\n").encode()
    with _write_lock:
        sys.stdout.buffer.write(line)
        sys.stdout.buffer.flush()


def _redact_arguments(arguments: dict[str, Any]) -> dict[str, Any]:
    safe = dict(arguments)
    prompt = safe.get("prompt")
    if isinstance(prompt, str):
        safe["prompt"] = f"<{len(prompt)} chars>"
    url = safe.get("url")
    if isinstance(url, str):
        safe["url"] = url.split("?")[0]
    return safe


def _error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"code": code, "message": message}}


class McpServer:
    """JSON-RPC front end with registry-based tool dispatch."""

    def __init__(
        self,
        config: QuadConfig | None = None,
        registry: ToolRegistry | None = None,
        writer: Callable[[dict[str, Any]], None] = _write_message,
    ) -> None:
        self.config = config or QuadConfig.from_env()
        self.registry = registry or create_default_registry()
        self.writer = writer
        self.buffer = LineBuffer()

    # ─────────────────────────────────────────────────────────────────────────
    # Tool calls
    # ─────────────────────────────────────────────────────────────────────────

    def handle_call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        logger.info("tool=%s args=%s", name, _redact_arguments(arguments))
        try:
            if not name:
                return ToolResult.error("Missing tool name")
            if not self.registry.has(name):
                return ToolResult.error(f"Unknown tool: {name}", tool=name)
            return self.registry.dispatch(name, self.config, arguments)
        except ToolInputError as e:
            logger.info("tool_input_error tool=%s reason=%s", e.tool, e.reason)
            return ToolResult.error(e.reason, tool=e.tool, suggestion=e.suggestion or None)
        except HttpClientError as e:
            logger.warning("http_error %s", e)
            return ToolResult.error(str(e), tool=name)
        except Exception as exc:  # noqa: BLE001
            logger.exception("tool_call_failed")
            return ToolResult.error(str(exc), tool=name)

    # ─────────────────────────────────────────────────────────────────────────
    # JSON-RPC
    # ─────────────────────────────────────────────────────────────────────────

    def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Process one decoded message and return the reply (None for notifications)."""
        if not isinstance(message, dict):
            return _error(None, INVALID_REQUEST, "Invalid Request: message must be an object")

        request_id = message.get("id")
        if message.get("jsonrpc") != JSONRPC_VERSION:
            return _error(request_id, INVALID_REQUEST, 'Invalid Request: jsonrpc must be "2.0"')

        method = message.get("method")
        params = message.get("params")
        params = params if isinstance(params, dict) else {}
        is_notification = "id" not in message

        if method == "notifications/initialized":
            return None

        if method == "initialize":
            protocol = select_protocol(params.get("protocolVersion"))
            reply = {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": initialize_result(protocol)}
        elif method == "tools/list":
            reply = {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": {"tools": tools_list()}}
        elif method == "tools/call":
            arguments = params.get("arguments")
            result = self.handle_call_tool(str(params.get("name") or ""), arguments if isinstance(arguments, dict) else {})
            reply = {
                "jsonrpc": JSONRPC_VERSION,
                "id": request_id,
                "result": {"content": result.to_content_list(), "isError": result.is_error},
            }
        elif method == "ping":
            reply = {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": {}}
        else:
            reply = _error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        return None if is_notification else reply

    def _respond(self, message: Any) -> None:
        reply = self.handle_message(message)
        if reply is not None:
            self.writer(reply)

    def dispatch(self, message: Any) -> threading.Thread | None:
        """Handle a message. Tool calls run on their own thread so intake continues."""
        if isinstance(message, dict) and message.get("method") == "tools/call":
            t = threading.Thread(target=self._respond, args=(message,), name="quad-tool-call", daemon=True)
            t.start()
            return t
        self._respond(message)
        return None

    def feed(self, chunk: str | bytes) -> list[threading.Thread]:
        """Push raw stdin data through the line framing and dispatch complete messages."""
        return self._dispatch_lines(self.buffer.feed(chunk))

    def finish(self) -> list[threading.Thread]:
        return self._dispatch_lines(self.buffer.flush())

    def _dispatch_lines(self, lines: list[str]) -> list[threading.Thread]:
        workers = []
        for line in lines:
            try:
                message = json.loads(line)
            except json.JSONDecodeError as exc:
                logger.warning("JSON parse error: %s", exc)
                continue
            worker = self.dispatch(message)
            if worker is not None:
                workers.append(worker)
        return workers

    def serve(self, stream: IO[bytes]) -> None:
        """Read until EOF, then wait for in-flight tool calls."""
        workers: list[threading.Thread] = []
        while True:
            chunk = stream.read1(65536) if hasattr(stream, "read1") else stream.read(65536)
            if not chunk:
                break
            workers.extend(self.feed(chunk))
            workers = [w for w in workers if w.is_alive()]
        workers.extend(self.finish())
        for w in workers:
            w.join(timeout=self.config.api_timeout + 1.0)


def main() -> None:
    """Main entry point for the MCP server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    server = McpServer()
    logger.info(
        "%s MCP server v%s | control API %s | tools: %s",
        SERVER_INFO["name"],
        SERVER_INFO["version"],
        server.config.api_base_url,
        ", ".join(server.registry.tool_names),
    )
    server.serve(sys.stdin.buffer)


if __name__ == "__main__":
    main()
