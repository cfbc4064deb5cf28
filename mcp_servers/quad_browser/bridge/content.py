"""
Content bridge: runs adapter-driven snippets inside pane frames.

Panes are re-discovered from the shell on every call and evaluated one after
another. A pane that throws, hangs until the shell's timeout, or disappears
mid-batch becomes an error entry for that pane only; the rest of the batch keeps
its order.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from ..adapters.base import SiteAdapter
from ..adapters.registry import AdapterRegistry, adapter_registry
from ..shell.base import FrameEvaluationError, Pane, ShellPort
from .snippets import Snippet, build_extract_snippet, build_inject_snippet
from .types import AggregateResponse, ExtractionResult, InjectionResult, iso_now

logger = logging.getLogger("mcp.quad.bridge")

PANE_NOT_FOUND = "Pane not found"
URL_REQUIRED = "url is required"
DEFAULT_EXPORT_CONTEXT = "Quad Browser export"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def normalize_url(raw: str | None) -> str:
    """Prefix https:// when the address carries no scheme."""
    url = str(raw or "").strip()
    if _SCHEME_RE.match(url) or url.startswith("about:"):
        return url
    return "https://" + url


def _coerce_pane_index(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        return int(raw.strip())
    return None


def select_latest(report: Any, adapter: SiteAdapter) -> str:
    """Apply the selector fallback policy to an extraction probe report.

    The first selector with at least one match wins and its last match is the
    latest message. Without any match the capped body text is used.
    """
    if not isinstance(report, dict) or not isinstance(report.get("probes"), list):
        raise FrameEvaluationError(f"Unexpected extraction result: {type(report).__name__}")
    for probe in report["probes"]:
        if not isinstance(probe, dict):
            continue
        try:
            count = int(probe.get("count") or 0)
        except (TypeError, ValueError):
            count = 0
        if count >= 1:
            return str(probe.get("text") or "")
    body = report.get("body")
    return str(body or "")[: adapter.body_text_cap]


def _error_text(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class ContentBridge:
    """Extraction, injection, navigation and status over the shell's panes."""

    def __init__(
        self,
        shell: ShellPort,
        registry: AdapterRegistry | None = None,
        *,
        api_port: int = 19850,
    ) -> None:
        self.shell = shell
        self.registry = registry or adapter_registry
        self.api_port = api_port
        self._locks: dict[Any, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ─────────────────────────────────────────────────────────────────────────
    # Pane access
    # ─────────────────────────────────────────────────────────────────────────

    def panes(self) -> list[Pane]:
        panes = list(self.shell.list_panes())
        live = {pane.lock_key for pane in panes}
        with self._locks_guard:
            for key in [k for k in self._locks if k not in live]:
                del self._locks[key]
        return panes

    @contextmanager
    def _pane_lock(self, pane: Pane) -> Generator[None, None, None]:
        # Concurrent HTTP requests may batch over the same panes; one frame op at a time.
        with self._locks_guard:
            lock = self._locks.setdefault(pane.lock_key, threading.Lock())
        with lock:
            yield

    def _evaluate(self, pane: Pane, snippet: Snippet) -> Any:
        with self._pane_lock(pane):
            return self.shell.evaluate(pane, snippet)

    # ─────────────────────────────────────────────────────────────────────────
    # Per-pane operations
    # ─────────────────────────────────────────────────────────────────────────

    def extract(self, pane: Pane) -> ExtractionResult:
        adapter = self.registry.resolve(pane.source)
        try:
            report = self._evaluate(pane, build_extract_snippet(adapter))
            content = select_latest(report, adapter)
        except Exception as exc:  # noqa: BLE001
            logger.info("extract_failed pane=%s source=%s error=%s", pane.index, pane.source, exc)
            return ExtractionResult(source=pane.source, url=pane.url, content="", error=_error_text(exc))
        return ExtractionResult(source=pane.source, url=pane.url, content=content.strip(), error=None)

    def inject(self, pane: Pane, prompt: str) -> bool:
        """Fill the pane's input field. Returns True iff some input selector matched."""
        adapter = self.registry.resolve(pane.source)
        outcome = self._evaluate(pane, build_inject_snippet(adapter, prompt))
        if isinstance(outcome, dict):
            return bool(outcome.get("matched"))
        return bool(outcome)

    # ─────────────────────────────────────────────────────────────────────────
    # Batch operations
    # ─────────────────────────────────────────────────────────────────────────

    def extract_all(self) -> AggregateResponse:
        items = [self.extract(pane) for pane in self.panes()]
        return AggregateResponse(items=items)

    def inject_all(self, prompt: str | None) -> list[InjectionResult]:
        text = prompt if isinstance(prompt, str) else ""
        results: list[InjectionResult] = []
        for pane in self.panes():
            try:
                results.append(InjectionResult(source=pane.source, success=self.inject(pane, text)))
            except Exception as exc:  # noqa: BLE001
                logger.info("inject_failed pane=%s source=%s error=%s", pane.index, pane.source, exc)
                results.append(InjectionResult(source=pane.source, success=False, error=_error_text(exc)))
        return results

    def navigate(self, pane_number: Any, url: str | None) -> dict[str, Any]:
        index = _coerce_pane_index(pane_number)
        panes = self.panes()
        if index is None or not 1 <= index <= len(panes):
            return {"success": False, "error": PANE_NOT_FOUND}
        if not isinstance(url, str) or not url.strip():
            return {"success": False, "error": URL_REQUIRED}
        pane = panes[index - 1]
        nav_url = normalize_url(url)
        with self._pane_lock(pane):
            self.shell.assign_address(pane, nav_url)
        logger.info("navigated pane=%s url=%s", index, nav_url)
        return {"success": True, "pane": index, "url": nav_url}

    def status(self) -> dict[str, Any]:
        return {
            "splitMode": self.shell.layout(),
            "panes": [{"number": i, "source": pane.source, "url": pane.url} for i, pane in enumerate(self.panes(), 1)],
            "apiPort": self.api_port,
            "timestamp": iso_now(),
        }

    def export(self, context: str | None = None, *, save: bool = False) -> dict[str, Any]:
        """Structure the current responses for export; optionally hand them to the shell to save."""
        responses = self.extract_all()
        payload: dict[str, Any] = {
            "context": context or DEFAULT_EXPORT_CONTEXT,
            "timestamp": responses.timestamp,
            "items": [{**item.to_dict(), "note": ""} for item in responses.items],
        }
        if save:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
            stamp = re.sub(r"[:.]", "-", responses.timestamp)
            payload["saved"] = self.shell.save_json(serialized, f"quad-export-{stamp}.json").to_dict()
        return payload
