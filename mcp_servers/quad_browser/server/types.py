"""
Type definitions for MCP tool responses.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ToolContent:
    """Single content item in tool response."""

    type: str
    text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """Result of a tool execution."""

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False
    # Raw payload for tests/logging; not part of the MCP wire format.
    data: Any | None = None

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        """JSON text result. Control-plane payloads carrying `error` are flagged."""
        is_error = isinstance(data, dict) and data.get("error") not in (None, False)
        return cls(content=[ToolContent(type="text", text=_dump(data))], is_error=is_error, data=data)

    @classmethod
    def error(
        cls,
        message: str,
        *,
        tool: str | None = None,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ToolResult:
        payload: dict[str, Any] = {"error": message}
        if tool:
            payload["tool"] = tool
        if suggestion:
            payload["suggestion"] = suggestion
        if details:
            payload["details"] = details
        return cls(content=[ToolContent(type="text", text=_dump(payload))], is_error=True, data=payload)

    def to_content_list(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self.content]


@dataclass
class ToolInputError(Exception):
    """Invalid tool arguments, caught before anything leaves the process."""

    tool: str
    reason: str
    suggestion: str = ""

    def __str__(self) -> str:
        return f"[{self.tool}] {self.reason}"


def _dump(data: Any) -> str:
    if isinstance(data, str):
        return data
    return json.dumps(data, ensure_ascii=False, indent=2)
