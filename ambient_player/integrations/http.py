"""Blocking JSON-over-HTTP helper shared by the REST collaborators."""
from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any, Mapping, Optional

from ..errors import AmbientPlayerError


def _resolve_timeout(timeout_seconds: Any) -> Optional[float]:
    try:
        value = float(timeout_seconds)
    except (TypeError, ValueError):
        return None
    if value <= 0:
        return None
    return value


def request_json(
    url: str,
    *,
    service: str,
    error_cls: type[AmbientPlayerError],
    method: str = "GET",
    payload: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout_seconds: Any = None,
) -> Any:
    """Send a request and decode the JSON body.

    Transport, HTTP status, and decoding failures are raised as ``error_cls``
    with the original exception chained.
    """
    request_headers = dict(headers or {})
    body = None
    if payload is not None:
        body = json.dumps(payload).encode("utf-8")
        request_headers.setdefault("Content-Type", "application/json")
    http_request = urllib.request.Request(
        url,
        data=body,
        headers=request_headers,
        method=method,
    )
    request_timeout = _resolve_timeout(timeout_seconds)
    try:
        if request_timeout is None:
            response_ctx = urllib.request.urlopen(http_request)
        else:
            response_ctx = urllib.request.urlopen(http_request, timeout=request_timeout)
        with response_ctx as response:
            raw_response = response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        error_payload = exc.read().decode("utf-8", errors="replace").strip()
        snippet = error_payload[:500] if error_payload else "No body"
        raise error_cls(f"{service} HTTP {exc.code}: {snippet}") from exc
    except urllib.error.URLError as exc:
        raise error_cls(f"Failed to reach {service} endpoint: {exc.reason}") from exc
    except TimeoutError as exc:
        raise error_cls(f"{service} request timed out.") from exc
    except OSError as exc:
        raise error_cls(f"{service} connection error: {exc}") from exc

    try:
        return json.loads(raw_response)
    except json.JSONDecodeError as exc:
        raise error_cls(f"{service} returned invalid JSON.") from exc
