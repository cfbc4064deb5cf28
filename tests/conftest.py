from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import pytest

from mcp_servers.quad_browser.bridge.snippets import EXTRACT, INJECT, Snippet
from mcp_servers.quad_browser.shell.base import FrameEvaluationError, Pane, SaveResult


@dataclass
class FakeFrame:
    """In-memory stand-in for one pane's document."""

    source: str
    url: str
    # selector -> rendered texts of matching elements, in DOM order
    dom: dict[str, list[str]] = field(default_factory=dict)
    body: str = ""
    # selector -> tag name of the first matching input element
    inputs: dict[str, str] = field(default_factory=dict)
    fail: Exception | None = None
    filled: list[tuple[str, str, str]] = field(default_factory=list)


class FakeShell:
    """ShellPort fake: answers snippets from FakeFrame data and records every call."""

    def __init__(self, frames: list[FakeFrame], split_mode: int = 4, delay: float = 0.0) -> None:
        self.frames = frames
        self.split_mode = split_mode
        self.delay = delay
        self.evaluated: list[tuple[int, Snippet]] = []
        self.assigned: list[tuple[int, str]] = []
        self.saved: list[tuple[str, str]] = []
        self.active: dict[int, int] = {}
        self.max_active: dict[int, int] = {}
        self._lock = threading.Lock()

    def list_panes(self) -> list[Pane]:
        return [Pane(index=i, source=f.source, url=f.url, handle=f"frame-{i}") for i, f in enumerate(self.frames, 1)]

    def _frame(self, pane: Pane) -> FakeFrame:
        try:
            return self.frames[pane.index - 1]
        except IndexError:
            raise FrameEvaluationError("Target closed") from None

    def evaluate(self, pane: Pane, snippet: Snippet) -> Any:
        with self._lock:
            self.evaluated.append((pane.index, snippet))
            self.active[pane.index] = self.active.get(pane.index, 0) + 1
            self.max_active[pane.index] = max(self.max_active.get(pane.index, 0), self.active[pane.index])
        try:
            if self.delay:
                threading.Event().wait(self.delay)
            frame = self._frame(pane)
            if frame.fail is not None:
                raise frame.fail
            if snippet.kind == EXTRACT:
                return self._extract(frame, snippet)
            if snippet.kind == INJECT:
                return self._inject(frame, snippet)
            raise AssertionError(f"unexpected snippet kind {snippet.kind}")
        finally:
            with self._lock:
                self.active[pane.index] -= 1

    @staticmethod
    def _extract(frame: FakeFrame, snippet: Snippet) -> dict[str, Any]:
        probes = []
        for selector in snippet.params["selectors"]:
            texts = frame.dom.get(selector, [])
            probes.append({"selector": selector, "count": len(texts), "text": texts[-1] if texts else None})
        matched = any(p["count"] > 0 for p in probes)
        return {"probes": probes, "body": "" if matched else frame.body[: snippet.params["cap"]]}

    @staticmethod
    def _inject(frame: FakeFrame, snippet: Snippet) -> dict[str, Any]:
        prompt = snippet.params["prompt"]
        for selector in snippet.params["selectors"]:
            tag = frame.inputs.get(selector)
            if tag is None:
                continue
            mode = "value" if tag in ("TEXTAREA", "INPUT") else "text"
            frame.filled.append((selector, prompt, mode))
            return {"matched": selector, "mode": mode}
        return {"matched": None}

    def assign_address(self, pane: Pane, url: str) -> None:
        frame = self._frame(pane)
        frame.url = url
        self.assigned.append((pane.index, url))

    def layout(self) -> int:
        return self.split_mode

    def save_json(self, serialized: str, suggested_name: str) -> SaveResult:
        self.saved.append((serialized, suggested_name))
        return SaveResult(success=True, path=f"/exports/{suggested_name}")


@pytest.fixture
def four_frames() -> list[FakeFrame]:
    return [
        FakeFrame(
            source="ChatGPT",
            url="https://chatgpt.com/c/1",
            dom={'[data-message-author-role="assistant"] .markdown': ["first answer", "  latest answer\n"]},
            inputs={"#prompt-textarea": "DIV"},
        ),
        FakeFrame(
            source="Gemini",
            url="https://gemini.google.com/app",
            dom={".model-response-text": ["gemini old", "gemini new"]},
            inputs={"rich-textarea .ql-editor": "DIV"},
        ),
        FakeFrame(
            source="Claude",
            url="https://claude.ai/chat/1",
            dom={".prose": ["claude reply"]},
            inputs={"textarea": "TEXTAREA"},
        ),
        FakeFrame(
            source="Grok",
            url="https://grok.com",
            dom={'[data-testid="grok-message"]': ["grok says hi"]},
            inputs={'textarea[placeholder*="Ask"]': "TEXTAREA"},
        ),
    ]


@pytest.fixture
def fake_shell(four_frames: list[FakeFrame]) -> FakeShell:
    return FakeShell(four_frames)
