"""
Shell port: the contract between the content bridge and whatever hosts the panes.

The shell owns the panes (their order, labels, frames) and the only persistence
boundary (saving an export). The bridge discovers panes through `list_panes()`
on every call and never keeps them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..bridge.snippets import Snippet


class FrameEvaluationError(RuntimeError):
    """A snippet could not be evaluated in a pane's frame (not loaded, blocked, gone, timed out)."""


@dataclass(frozen=True)
class Pane:
    """One displayed content frame."""

    index: int  # 1-based on-screen position
    source: str  # site label
    url: str
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def lock_key(self) -> Any:
        try:
            hash(self.handle)
        except TypeError:
            return self.index
        return self.handle if self.handle is not None else self.index


@dataclass(frozen=True)
class SaveResult:
    success: bool
    path: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.path:
            out["path"] = self.path
        if self.error:
            out["error"] = self.error
        return out


class ShellPort(Protocol):
    """Services the hosting shell exposes to the bridge."""

    def list_panes(self) -> Sequence[Pane]:
        """Currently attached panes, in on-screen order."""
        ...

    def evaluate(self, pane: Pane, snippet: Snippet) -> Any:
        """Run `snippet.source` inside the pane's frame and return its (JSON) value.

        Raises FrameEvaluationError when the frame cannot run it.
        """
        ...

    def assign_address(self, pane: Pane, url: str) -> None:
        """Update the pane's displayed address and redirect its frame."""
        ...

    def layout(self) -> int:
        """How many panes are simultaneously visible (1, 2 or 4)."""
        ...

    def save_json(self, serialized: str, suggested_name: str) -> SaveResult:
        """Persist an already-serialized JSON payload."""
        ...
