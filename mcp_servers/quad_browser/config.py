from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger("mcp.quad.config")

LOOPBACK_HOSTS = {"127.0.0.1", "localhost", "::1"}

DEFAULT_PANE_URLS: list[str] = [
    "https://chatgpt.com",
    "https://gemini.google.com",
    "https://claude.ai",
    "https://grok.com",
]

DEFAULT_BINARY_CANDIDATES: list[str] = [
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/local/bin/chromium",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
]


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def _default_export_dir() -> str:
    desktop = Path.home() / "Desktop"
    return str(desktop if desktop.is_dir() else Path.home())


@dataclass
class QuadConfig:
    api_host: str = "127.0.0.1"
    api_port: int = 19850
    api_timeout: float = 30.0
    cdp_port: int = 9222
    binary_path: str = "google-chrome"
    profile_path: str = "~/.quad-browser/profile"
    split_mode: int = 4
    pane_urls: list[str] = field(default_factory=lambda: list(DEFAULT_PANE_URLS))
    frame_timeout: float = 10.0
    export_dir: str = field(default_factory=_default_export_dir)
    headless: bool = False

    @staticmethod
    def normalize_host(raw: str | None) -> str:
        host = (raw or "").strip().lower()
        if not host:
            return "127.0.0.1"
        if host not in LOOPBACK_HOSTS:
            logger.warning("QUAD_API_HOST=%s is not a loopback address; using 127.0.0.1", host)
            return "127.0.0.1"
        return host

    @staticmethod
    def normalize_split_mode(raw: str | None) -> int:
        try:
            mode = int((raw or "").strip() or 4)
        except ValueError:
            return 4
        return mode if mode in (1, 2, 4) else 4

    @classmethod
    def detect_binary(cls) -> str:
        env_path = os.environ.get("QUAD_BROWSER_BINARY")
        if env_path:
            return expand_path(env_path)
        for candidate in DEFAULT_BINARY_CANDIDATES:
            path = Path(candidate)
            if path.exists() and os.access(str(path), os.X_OK):
                return str(path)
        # Last resort: rely on PATH lookup
        return "google-chrome"

    @classmethod
    def from_env(cls) -> QuadConfig:
        urls_raw = os.environ.get("QUAD_PANE_URLS", "")
        pane_urls = [u.strip() for u in urls_raw.split(",") if u.strip()] or list(DEFAULT_PANE_URLS)
        return cls(
            api_host=cls.normalize_host(os.environ.get("QUAD_API_HOST")),
            api_port=int(os.environ.get("QUAD_API_PORT", "19850")),
            api_timeout=float(os.environ.get("QUAD_API_TIMEOUT", "30")),
            cdp_port=int(os.environ.get("QUAD_CDP_PORT", "9222")),
            binary_path=cls.detect_binary(),
            profile_path=expand_path(os.environ.get("QUAD_BROWSER_PROFILE", "~/.quad-browser/profile")),
            split_mode=cls.normalize_split_mode(os.environ.get("QUAD_SPLIT_MODE")),
            pane_urls=pane_urls,
            frame_timeout=float(os.environ.get("QUAD_FRAME_TIMEOUT", "10")),
            export_dir=expand_path(os.environ.get("QUAD_EXPORT_DIR") or _default_export_dir()),
            headless=os.environ.get("QUAD_HEADLESS", "0") == "1",
        )

    @property
    def api_base_url(self) -> str:
        host = f"[{self.api_host}]" if ":" in self.api_host else self.api_host
        return f"http://{host}:{self.api_port}"
