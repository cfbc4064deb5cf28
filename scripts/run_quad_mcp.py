#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[quad-mcp] api=http://{os.environ.get('QUAD_API_HOST', '127.0.0.1')}:{os.environ.get('QUAD_API_PORT', '19850')} | "
    f"timeout={os.environ.get('QUAD_API_TIMEOUT', '30')}s",
    file=sys.stderr,
)

from mcp_servers.quad_browser.main import main  # noqa: E402

if __name__ == "__main__":
    main()
