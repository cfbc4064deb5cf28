from __future__ import annotations

from .content import ContentBridge, normalize_url
from .types import AggregateResponse, ExtractionResult, InjectionResult

__all__ = ["AggregateResponse", "ContentBridge", "ExtractionResult", "InjectionResult", "normalize_url"]
