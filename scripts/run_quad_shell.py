#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[quad-shell] binary={os.environ.get('QUAD_BROWSER_BINARY', 'auto')} | "
    f"profile={os.environ.get('QUAD_BROWSER_PROFILE', '~/.quad-browser/profile')} | "
    f"cdp={os.environ.get('QUAD_CDP_PORT', '9222')} | "
    f"api={os.environ.get('QUAD_API_PORT', '19850')}",
    file=sys.stderr,
)

from mcp_servers.quad_browser.shell_main import main  # noqa: E402

if __name__ == "__main__":
    main()
