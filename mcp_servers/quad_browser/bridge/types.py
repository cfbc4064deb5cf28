"""Result types produced by the content bridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def iso_now() -> str:
    """UTC timestamp, millisecond precision, `Z` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(slots=True)
class ExtractionResult:
    source: str
    url: str
    content: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "url": self.url, "content": self.content, "error": self.error}


@dataclass(slots=True)
class AggregateResponse:
    items: list[ExtractionResult] = field(default_factory=list)
    timestamp: str = field(default_factory=iso_now)

    def to_dict(self) -> dict[str, Any]:
        return {"items": [item.to_dict() for item in self.items], "timestamp": self.timestamp}


@dataclass(slots=True)
class InjectionResult:
    source: str
    success: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"source": self.source, "success": self.success}
        if self.error is not None:
            out["error"] = self.error
        return out
