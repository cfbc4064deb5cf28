from __future__ import annotations

from dataclasses import dataclass

BODY_TEXT_CAP = 5000


@dataclass(frozen=True)
class SiteAdapter:
    """Selector policy for one site label. Holds no frame references."""

    name: str
    response_selectors: tuple[str, ...]
    input_selectors: tuple[str, ...]
    hosts: tuple[str, ...] = ()
    body_text_cap: int = BODY_TEXT_CAP

    def matches_host(self, host: str) -> bool:
        host = (host or "").strip().lower().rstrip(".")
        if not host:
            return False
        for raw in self.hosts:
            allowed = raw.strip().lower().lstrip(".")
            if host == allowed or host.endswith("." + allowed):
                return True
        return False
