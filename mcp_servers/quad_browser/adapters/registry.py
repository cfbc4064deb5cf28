from __future__ import annotations

import urllib.parse

from .base import SiteAdapter
from .sites import BUILTIN_ADAPTERS, FALLBACK


class AdapterRegistry:
    """Registry of site adapters keyed by exact site label."""

    def __init__(self, fallback: SiteAdapter = FALLBACK) -> None:
        self._adapters: dict[str, SiteAdapter] = {}
        self.fallback = fallback

    def register(self, adapter: SiteAdapter) -> None:
        self._adapters[str(adapter.name)] = adapter

    def available(self) -> list[str]:
        return list(self._adapters.keys())

    def resolve(self, label: str | None) -> SiteAdapter:
        """Return the adapter for `label`, or the fallback. Never raises."""
        if not isinstance(label, str):
            return self.fallback
        return self._adapters.get(label, self.fallback)

    def label_for_url(self, url: str | None) -> str:
        """Best-effort site label for a page URL (used by shells that don't label panes)."""
        try:
            host = urllib.parse.urlsplit(str(url or "")).hostname or ""
        except ValueError:
            return self.fallback.name
        for adapter in self._adapters.values():
            if adapter.matches_host(host):
                return adapter.name
        return self.fallback.name


def create_default_registry() -> AdapterRegistry:
    registry = AdapterRegistry()
    for adapter in BUILTIN_ADAPTERS:
        registry.register(adapter)
    return registry


adapter_registry = create_default_registry()
