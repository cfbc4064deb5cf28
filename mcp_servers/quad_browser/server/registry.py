"""
Tool registry with dispatch table for the MCP front end.

Every tool validates its arguments locally and then forwards to one control API
route. Invalid arguments never reach the network.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..control.api import EXPORT, GET_RESPONSES, NAVIGATE, SEND_PROMPT, STATUS
from ..http_client import post_json
from .definitions import MAX_PANE, MIN_PANE
from .types import ToolInputError, ToolResult

if TYPE_CHECKING:
    from ..config import QuadConfig

logger = logging.getLogger("mcp.quad.registry")

HandlerFunc = Callable[["QuadConfig", dict[str, Any]], ToolResult]


def _get_responses(config: QuadConfig, arguments: dict[str, Any]) -> ToolResult:
    return ToolResult.json(post_json(GET_RESPONSES, {}, config))


def _send_prompt(config: QuadConfig, arguments: dict[str, Any]) -> ToolResult:
    prompt = arguments.get("prompt")
    if not isinstance(prompt, str) or not prompt:
        raise ToolInputError("send_prompt", "prompt is required", "Pass a non-empty string as prompt")
    return ToolResult.json(post_json(SEND_PROMPT, {"prompt": prompt}, config))


def _export_json(config: QuadConfig, arguments: dict[str, Any]) -> ToolResult:
    payload: dict[str, Any] = {"context": arguments.get("context")}
    if arguments.get("save") is True:
        payload["save"] = True
    return ToolResult.json(post_json(EXPORT, payload, config))


def _navigate(config: QuadConfig, arguments: dict[str, Any]) -> ToolResult:
    pane = arguments.get("pane")
    url = arguments.get("url")
    if pane is None or url is None or url == "":
        raise ToolInputError("navigate", "pane and url are required", "Example: navigate(pane=2, url='gemini.google.com')")
    if isinstance(pane, float) and pane.is_integer():
        pane = int(pane)
    if isinstance(pane, bool) or not isinstance(pane, int) or not MIN_PANE <= pane <= MAX_PANE:
        raise ToolInputError("navigate", f"pane must be an integer in {MIN_PANE}-{MAX_PANE}", "Use 1=ChatGPT, 2=Gemini, 3=Claude, 4=Grok")
    if not isinstance(url, str):
        raise ToolInputError("navigate", "url must be a string")
    return ToolResult.json(post_json(NAVIGATE, {"pane": pane, "url": url}, config))


def _get_status(config: QuadConfig, arguments: dict[str, Any]) -> ToolResult:
    return ToolResult.json(post_json(STATUS, {}, config))


class ToolRegistry:
    """Registry for tool handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, HandlerFunc] = {}

    def register(self, name: str, handler: HandlerFunc) -> None:
        self._handlers[name] = handler

    def has(self, name: str) -> bool:
        return name in self._handlers

    def dispatch(self, name: str, config: QuadConfig, arguments: dict[str, Any]) -> ToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(f"Unknown tool: {name}")
        return handler(config, arguments)

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers.keys())


def create_default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register("get_responses", _get_responses)
    registry.register("send_prompt", _send_prompt)
    registry.register("export_json", _export_json)
    registry.register("navigate", _navigate)
    registry.register("get_status", _get_status)
    return registry


__all__ = ["HandlerFunc", "ToolRegistry", "create_default_registry"]
