"""
Tests for the stdio MCP front end.

Covers:
- JSON-RPC envelope validation and method routing
- Line framing across chunks
- Local argument validation (no control API contact)
- Forwarding to a live control API and transport failures
"""

from __future__ import annotations

import io
import json
import socket
from collections.abc import Generator
from contextlib import closing
from typing import Any

import pytest

from conftest import FakeShell
from mcp_servers.quad_browser import main as mcp_server
from mcp_servers.quad_browser.bridge import ContentBridge
from mcp_servers.quad_browser.config import QuadConfig
from mcp_servers.quad_browser.control import ControlApi, ControlServer
from mcp_servers.quad_browser.server import registry as registry_module


def _free_port() -> int:
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class Captured:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    def __call__(self, payload: dict[str, Any]) -> None:
        self.messages.append(payload)


def _server(port: int | None = None, timeout: float = 5.0) -> tuple[mcp_server.McpServer, Captured]:
    out = Captured()
    cfg = QuadConfig(api_port=port or _free_port(), api_timeout=timeout)
    return mcp_server.McpServer(config=cfg, writer=out), out


def _call(server: mcp_server.McpServer, name: str, arguments: dict[str, Any] | None = None, request_id: Any = 7) -> dict[str, Any]:
    reply = server.handle_message(
        {"jsonrpc": "2.0", "id": request_id, "method": "tools/call", "params": {"name": name, "arguments": arguments or {}}}
    )
    assert reply is not None
    return reply


def _payload(reply: dict[str, Any]) -> Any:
    return json.loads(reply["result"]["content"][0]["text"])


@pytest.fixture
def live_api(fake_shell: FakeShell) -> Generator[ControlServer, None, None]:
    server = ControlServer(ControlApi(ContentBridge(fake_shell, api_port=19850)), port=0)
    server.start()
    try:
        yield server
    finally:
        server.stop()


@pytest.fixture
def no_network(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, Any]]:
    calls: list[tuple[str, Any]] = []

    def fake_post(endpoint: str, payload: Any, config: QuadConfig) -> Any:
        calls.append((endpoint, payload))
        return {"ok": True}

    monkeypatch.setattr(registry_module, "post_json", fake_post)
    return calls


# ═══════════════════════════════════════════════════════════════════════════════
# PROTOCOL
# ═══════════════════════════════════════════════════════════════════════════════


def test_initialize_returns_server_metadata() -> None:
    server, _ = _server()
    reply = server.handle_message({"jsonrpc": "2.0", "id": "init-1", "method": "initialize", "params": {}})
    assert reply["id"] == "init-1"
    result = reply["result"]
    assert result["protocolVersion"] == "2024-11-05"
    assert result["serverInfo"]["name"] == "quad-browser"
    assert "tools" in result["capabilities"]


def test_initialize_negotiates_supported_protocol() -> None:
    server, _ = _server()
    reply = server.handle_message(
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2025-06-18"}}
    )
    assert reply["result"]["protocolVersion"] == "2025-06-18"


def test_tools_list_mirrors_control_routes() -> None:
    server, _ = _server()
    reply = server.handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    tools = {t["name"]: t for t in reply["result"]["tools"]}
    assert set(tools) == {"get_responses", "send_prompt", "export_json", "navigate", "get_status"}
    assert tools["send_prompt"]["inputSchema"]["required"] == ["prompt"]
    pane = tools["navigate"]["inputSchema"]["properties"]["pane"]
    assert (pane["minimum"], pane["maximum"]) == (1, 4)
    assert tools["navigate"]["inputSchema"]["required"] == ["pane", "url"]
    assert tools["export_json"]["inputSchema"]["required"] == []


def test_initialized_notification_gets_no_reply() -> None:
    server, out = _server()
    server.dispatch({"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert out.messages == []


def test_notification_without_id_is_silent_even_for_unknown_method() -> None:
    server, _ = _server()
    assert server.handle_message({"jsonrpc": "2.0", "method": "foo/bar"}) is None


def test_unknown_method_is_method_not_found() -> None:
    server, _ = _server()
    reply = server.handle_message({"jsonrpc": "2.0", "id": 3, "method": "resources/list"})
    assert reply["error"]["code"] == -32601
    assert reply["id"] == 3


@pytest.mark.parametrize("version", ["1.0", None, 2.0])
def test_wrong_jsonrpc_version_is_invalid_request(version: Any) -> None:
    server, _ = _server()
    message: dict[str, Any] = {"id": 4, "method": "tools/list"}
    if version is not None:
        message["jsonrpc"] = version
    reply = server.handle_message(message)
    assert reply["error"]["code"] == -32600
    assert reply["id"] == 4
    assert "result" not in reply


def test_non_object_message_is_invalid_request() -> None:
    server, _ = _server()
    reply = server.handle_message([1, 2, 3])
    assert reply["error"]["code"] == -32600
    assert reply["id"] is None


def test_ping() -> None:
    server, _ = _server()
    assert server.handle_message({"jsonrpc": "2.0", "id": 9, "method": "ping"})["result"] == {}


# ═══════════════════════════════════════════════════════════════════════════════
# FRAMING
# ═══════════════════════════════════════════════════════════════════════════════


def test_split_chunks_are_reassembled_into_one_call() -> None:
    server, out = _server()
    server.feed('{"jsonrpc":"2.0","id":1,"method":"to')
    assert out.messages == []
    server.feed('ols/list"}\n')
    assert len(out.messages) == 1
    assert out.messages[0]["id"] == 1
    assert len(out.messages[0]["result"]["tools"]) == 5


def test_malformed_line_is_dropped_and_stream_continues(caplog: pytest.LogCaptureFixture) -> None:
    server, out = _server()
    server.feed(b'{not json}\n{"jsonrpc":"2.0","id":2,"method":"ping"}\n')
    assert [m["id"] for m in out.messages] == [2]
    assert "JSON parse error" in caplog.text


def test_serve_reads_until_eof() -> None:
    server, out = _server()
    stream = io.BufferedReader(
        io.BytesIO(b'{"jsonrpc":"2.0","id":1,"method":"initialize"}\n{"jsonrpc":"2.0","id":2,"method":"tools/list"}')
    )
    server.serve(stream)
    assert [m["id"] for m in out.messages] == [1, 2]


def test_tool_calls_run_off_the_intake_thread(no_network: list[tuple[str, Any]]) -> None:
    server, out = _server()
    workers = server.feed(
        '{"jsonrpc":"2.0","id":"a","method":"tools/call","params":{"name":"get_status"}}\n'
        '{"jsonrpc":"2.0","id":"b","method":"ping"}\n'
    )
    assert len(workers) == 1
    for w in workers:
        w.join(timeout=5)
    assert {m["id"] for m in out.messages} == {"a", "b"}


class ChunkedStream:
    """Byte stream whose read1() hands back fixed chunks, like a pipe."""

    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = list(chunks)

    def read1(self, size: int = -1) -> bytes:
        return self.chunks.pop(0) if self.chunks else b""


def test_serve_keeps_prompt_text_split_inside_a_character(no_network: list[tuple[str, Any]]) -> None:
    server, out = _server()
    line = (
        '{"jsonrpc":"2.0","id":3,"method":"tools/call",'
        '"params":{"name":"send_prompt","arguments":{"prompt":"日本語"}}}\n'
    ).encode()
    cut = line.index("本".encode()) + 1
    server.serve(ChunkedStream([line[:cut], line[cut:]]))
    assert no_network == [("/api/send-prompt", {"prompt": "日本語"})]
    assert [m["id"] for m in out.messages] == [3]


# ═══════════════════════════════════════════════════════════════════════════════
# TOOL VALIDATION (never reaches the control API)
# ═══════════════════════════════════════════════════════════════════════════════


def test_send_prompt_without_prompt_is_structured_error(no_network: list[tuple[str, Any]]) -> None:
    server, _ = _server()
    reply = _call(server, "send_prompt", {})
    assert reply["result"]["isError"] is True
    payload = _payload(reply)
    assert payload["error"] == "prompt is required"
    assert payload["tool"] == "send_prompt"
    assert no_network == []


@pytest.mark.parametrize(
    "arguments",
    [
        {"url": "example.com"},
        {"pane": 2},
        {"pane": 5, "url": "example.com"},
        {"pane": 0, "url": "example.com"},
        {"pane": "2", "url": "example.com"},
        {"pane": True, "url": "example.com"},
        {"pane": 2, "url": ""},
        {"pane": 2, "url": 42},
    ],
)
def test_navigate_validation(no_network: list[tuple[str, Any]], arguments: dict[str, Any]) -> None:
    server, _ = _server()
    reply = _call(server, "navigate", arguments)
    assert reply["result"]["isError"] is True
    assert "error" in _payload(reply)
    assert no_network == []


def test_unknown_tool_is_structured_error(no_network: list[tuple[str, Any]]) -> None:
    server, _ = _server()
    reply = _call(server, "click_send")
    assert reply["result"]["isError"] is True
    assert _payload(reply)["error"] == "Unknown tool: click_send"
    assert no_network == []


def test_tools_forward_to_routes(no_network: list[tuple[str, Any]]) -> None:
    server, _ = _server()
    _call(server, "get_responses")
    _call(server, "send_prompt", {"prompt": "hi"})
    _call(server, "export_json", {"context": "ctx"})
    _call(server, "navigate", {"pane": 3.0, "url": "claude.ai"})
    _call(server, "get_status")
    assert no_network == [
        ("/api/get-responses", {}),
        ("/api/send-prompt", {"prompt": "hi"}),
        ("/api/export", {"context": "ctx"}),
        ("/api/navigate", {"pane": 3, "url": "claude.ai"}),
        ("/api/status", {}),
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# END TO END OVER HTTP
# ═══════════════════════════════════════════════════════════════════════════════


def test_get_responses_end_to_end(live_api: ControlServer) -> None:
    server, _ = _server(port=live_api.address[1])
    reply = _call(server, "get_responses", request_id={"opaque": [1]})
    assert reply["id"] == {"opaque": [1]}
    assert reply["result"]["isError"] is False
    items = _payload(reply)["items"]
    assert [i["content"] for i in items] == ["latest answer", "gemini new", "claude reply", "grok says hi"]


def test_navigate_end_to_end(live_api: ControlServer, fake_shell: FakeShell) -> None:
    server, _ = _server(port=live_api.address[1])
    reply = _call(server, "navigate", {"pane": 2, "url": "example.com"})
    assert _payload(reply) == {"success": True, "pane": 2, "url": "https://example.com"}
    assert fake_shell.assigned == [(2, "https://example.com")]


def test_control_api_error_payload_is_flagged(live_api: ControlServer, fake_shell: FakeShell) -> None:
    def boom() -> int:
        raise RuntimeError("shell gone")

    fake_shell.layout = boom  # type: ignore[method-assign]
    server, _ = _server(port=live_api.address[1])
    reply = _call(server, "get_status")
    assert reply["result"]["isError"] is True
    assert _payload(reply) == {"error": "shell gone"}


def test_transport_failure_tells_operator_to_start_shell() -> None:
    port = _free_port()
    server, _ = _server(port=port, timeout=2.0)
    reply = _call(server, "get_status")
    assert reply["result"]["isError"] is True
    message = _payload(reply)["error"]
    assert "Quad Browser connection error" in message
    assert "Make sure Quad Browser is running" in message
    assert f"http://127.0.0.1:{port}/api/status" in message


def test_silent_control_api_times_out_with_limit_in_ms() -> None:
    # Listening socket that never accepts: the connect succeeds, no reply ever comes.
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        server, _ = _server(port=listener.getsockname()[1], timeout=0.2)
        reply = _call(server, "get_status")
    assert reply["result"]["isError"] is True
    assert "Quad Browser API timed out (200ms)" in _payload(reply)["error"]


def test_contract_snapshot_lists_the_catalog() -> None:
    from mcp_servers.quad_browser.server.contract import contract_snapshot

    snap = contract_snapshot()
    assert snap["protocolVersion"] == "2024-11-05"
    assert [t["name"] for t in snap["tools"]] == ["get_responses", "send_prompt", "export_json", "navigate", "get_status"]
