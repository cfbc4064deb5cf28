"""
Control API route table.

Routes map to bridge operations. Unknown routes are a normal (200) payload with
an `error` field; only the HTTP layer turns exceptions into a 500.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..bridge.content import ContentBridge

logger = logging.getLogger("mcp.quad.control")

RouteHandler = Callable[[ContentBridge, dict[str, Any]], Any]

GET_RESPONSES = "/api/get-responses"
SEND_PROMPT = "/api/send-prompt"
EXPORT = "/api/export"
NAVIGATE = "/api/navigate"
STATUS = "/api/status"


def _get_responses(bridge: ContentBridge, params: dict[str, Any]) -> Any:
    return bridge.extract_all().to_dict()


def _send_prompt(bridge: ContentBridge, params: dict[str, Any]) -> Any:
    prompt = params.get("prompt")
    prompt = prompt if isinstance(prompt, str) else ""
    results = bridge.inject_all(prompt)
    return {"results": [r.to_dict() for r in results], "prompt": prompt}


def _export(bridge: ContentBridge, params: dict[str, Any]) -> Any:
    context = params.get("context")
    return bridge.export(context if isinstance(context, str) else None, save=params.get("save") is True)


def _navigate(bridge: ContentBridge, params: dict[str, Any]) -> Any:
    return bridge.navigate(params.get("pane"), params.get("url"))


def _status(bridge: ContentBridge, params: dict[str, Any]) -> Any:
    return bridge.status()


ROUTES: dict[str, RouteHandler] = {
    GET_RESPONSES: _get_responses,
    SEND_PROMPT: _send_prompt,
    EXPORT: _export,
    NAVIGATE: _navigate,
    STATUS: _status,
}


class ControlApi:
    """Dispatches control-plane routes to the content bridge."""

    def __init__(self, bridge: ContentBridge) -> None:
        self.bridge = bridge
        self._routes: dict[str, RouteHandler] = dict(ROUTES)

    @property
    def routes(self) -> list[str]:
        return list(self._routes.keys())

    def handle(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Run the route for `path`. Exceptions propagate to the transport layer."""
        handler = self._routes.get(path)
        if handler is None:
            logger.info("unknown_endpoint path=%s", path)
            return {"error": "Unknown endpoint", "endpoint": path}
        return handler(self.bridge, params if isinstance(params, dict) else {})
