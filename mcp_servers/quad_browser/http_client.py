from __future__ import annotations

import json
import socket
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .config import QuadConfig


class HttpClientError(Exception):
    pass


def _decode(body: bytes) -> Any:
    text = body.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return {"raw": text}


def post_json(endpoint: str, payload: dict[str, Any] | None, config: QuadConfig) -> Any:
    """POST a JSON body to the control API and return the decoded reply.

    Non-2xx replies still carry a JSON body (e.g. the 500 `{error}` payload) and are
    returned as-is. Only transport failures raise.
    """
    url = config.api_base_url + endpoint
    data = json.dumps(payload or {}, ensure_ascii=False).encode("utf-8")
    req = Request(
        url,
        data=data,
        method="POST",
        headers={"Content-Type": "application/json", "User-Agent": "quad-browser-mcp/1.0"},
    )
    timeout_ms = int(config.api_timeout * 1000)
    try:
        with urlopen(req, timeout=config.api_timeout) as resp:
            return _decode(resp.read())
    except HTTPError as exc:
        return _decode(exc.read())
    except (TimeoutError, socket.timeout) as exc:
        raise HttpClientError(f"Quad Browser API timed out ({timeout_ms}ms)") from exc
    except (URLError, OSError) as exc:
        reason = getattr(exc, "reason", exc)
        if isinstance(reason, (TimeoutError, socket.timeout)):
            raise HttpClientError(f"Quad Browser API timed out ({timeout_ms}ms)") from exc
        raise HttpClientError(
            f"Quad Browser connection error: {reason}\n"
            "Make sure Quad Browser is running.\n"
            f"Expected API endpoint: {url}"
        ) from exc
