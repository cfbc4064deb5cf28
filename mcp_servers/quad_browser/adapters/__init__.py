"""
Site adapters: per-site selector policy for chat front ends.

Hosted chat UIs change markup often, so every site carries an ordered list of
selectors for the latest response and for the prompt field. The bridge tries them
in order; unknown sites get a generic fallback.
"""

from __future__ import annotations

from .base import SiteAdapter
from .registry import AdapterRegistry, adapter_registry

__all__ = ["AdapterRegistry", "SiteAdapter", "adapter_registry"]
