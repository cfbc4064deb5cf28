from __future__ import annotations

import contextlib
import json
import logging
import socket
import subprocess
import time
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.error import URLError
from urllib.request import Request, urlopen

from ..config import QuadConfig, expand_path

logger = logging.getLogger("mcp.quad.launcher")


@dataclass
class LaunchResult:
    command: list[str]
    started: bool
    message: str


class ShellLauncher:
    """Starts the Chromium that hosts the panes and talks to its CDP HTTP endpoints."""

    def __init__(self, config: QuadConfig | None = None) -> None:
        self.config = config or QuadConfig.from_env()
        self.process: subprocess.Popen | None = None

    @property
    def _endpoint(self) -> str:
        return f"http://127.0.0.1:{self.config.cdp_port}"

    def build_launch_command(self) -> list[str]:
        flags = [
            f"--remote-debugging-port={self.config.cdp_port}",
            f"--user-data-dir={expand_path(self.config.profile_path)}",
            "--remote-allow-origins=*",
            "--no-first-run",
            "--no-default-browser-check",
        ]
        if self.config.headless:
            flags.append("--headless=new")
        else:
            flags.append("--start-maximized")
        return [self.config.binary_path, *flags]

    def cdp_ready(self, timeout: float = 0.4) -> bool:
        """Return True if the CDP HTTP endpoint responds."""
        try:
            with urlopen(f"{self._endpoint}/json/version", timeout=timeout) as resp:
                return resp.status == 200
        except (OSError, TimeoutError, URLError):
            return False

    def _port_available(self, timeout: float = 0.2) -> bool:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            try:
                return sock.connect_ex(("127.0.0.1", self.config.cdp_port)) != 0
            except OSError:
                return False

    def ensure_running(self, timeout: float = 10.0) -> LaunchResult:
        if self.cdp_ready():
            return LaunchResult([], False, "Chrome already listening on CDP port")
        if not self._port_available():
            return LaunchResult([], False, f"Port {self.config.cdp_port} already in use")

        with contextlib.suppress(OSError):
            Path(expand_path(self.config.profile_path)).mkdir(parents=True, exist_ok=True)
        cmd = self.build_launch_command()
        try:
            self.process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            return LaunchResult(cmd, False, str(exc))

        deadline = time.time() + timeout
        while time.time() < deadline:
            if self.cdp_ready():
                return LaunchResult(cmd, True, "Chrome launched")
            time.sleep(0.1)
        return LaunchResult(cmd, False, "Chrome launch timed out")

    def stop(self, *, timeout: float = 2.0) -> bool:
        """Best-effort stop of the launcher-owned Chrome process."""
        proc = self.process
        if proc is None:
            return False
        if proc.poll() is not None:
            return True
        with contextlib.suppress(Exception):
            proc.terminate()
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            with contextlib.suppress(Exception):
                proc.kill()
        return True

    def list_targets(self) -> list[dict[str, Any]]:
        try:
            req = Request(f"{self._endpoint}/json/list", headers={"User-Agent": "quad-browser"})
            with urlopen(req, timeout=1.0) as resp:
                payload = json.loads(resp.read().decode())
        except (URLError, OSError, json.JSONDecodeError):
            return []
        return payload if isinstance(payload, list) else []

    def open_target(self, url: str) -> dict[str, Any]:
        """Open a new page target (one pane) at `url`."""
        endpoint = f"{self._endpoint}/json/new?{urllib.parse.quote(url, safe=':/?&=#%')}"
        req = Request(endpoint, method="PUT", headers={"User-Agent": "quad-browser"})
        with urlopen(req, timeout=5.0) as resp:
            return json.loads(resp.read().decode())
