"""Shell port and the reference CDP-backed shell."""

from __future__ import annotations

from .base import FrameEvaluationError, Pane, SaveResult, ShellPort

__all__ = ["FrameEvaluationError", "Pane", "SaveResult", "ShellPort"]
