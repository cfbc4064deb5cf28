"""
Quad Browser shell: hosts the panes and serves the loopback control API.

Launches (or attaches to) Chromium on the CDP port, opens one pane per configured
URL and exposes the control API on 127.0.0.1. The MCP server in `main` talks to
this process over HTTP.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from .bridge.content import ContentBridge
from .config import QuadConfig
from .control.api import ControlApi
from .control.server import ControlServer
from .shell.cdp import CdpShell
from .shell.launcher import ShellLauncher

logger = logging.getLogger("mcp.quad.shell")


def build_control_server(config: QuadConfig, shell: CdpShell) -> ControlServer:
    bridge = ContentBridge(shell, api_port=config.api_port)
    server = ControlServer(ControlApi(bridge), port=config.api_port)
    return server


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    config = QuadConfig.from_env()
    launcher = ShellLauncher(config)
    launch = launcher.ensure_running()
    logger.info("chrome: %s", launch.message)
    if not launcher.cdp_ready():
        logger.error("CDP endpoint on port %s is not reachable; cannot host panes", config.cdp_port)
        sys.exit(1)

    shell = CdpShell(config, launcher=launcher)
    if launch.started:
        shell.open_panes()

    server = build_control_server(config, shell)
    try:
        server.start()
    except OSError as exc:
        logger.error("API Server error: %s", exc)
        launcher.stop()
        sys.exit(1)

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    stop.wait()

    server.stop()
    launcher.stop()


if __name__ == "__main__":
    main()
