"""Uniform success/error bodies for every API response."""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Dict, Optional

from fastapi import Request

from analytics.types import isoformat_utc

_UNWRAPPED_KEYS = ("data", "meta", "cursor")


def utcnow_iso() -> str:
    return isoformat_utc(datetime.now(tz=UTC))


def request_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def success_envelope(request: Request, payload: Any) -> Dict[str, Any]:
    """Wrap a service payload.

    ``data``/``meta``/``cursor`` keys of a dict payload are lifted into the
    envelope; any other keys sit next to the data under ``payload``.
    """
    body: Dict[str, Any] = {
        "success": True,
        "timestamp": utcnow_iso(),
        "path": request_path(request),
    }
    if not isinstance(payload, dict):
        body["data"] = payload
        return body
    if "success" in payload:
        return payload

    rest = {key: value for key, value in payload.items() if key not in _UNWRAPPED_KEYS}
    inner = payload.get("data")
    if inner is None:
        body["data"] = rest
    elif rest:
        body["data"] = {"payload": inner, **rest}
    else:
        body["data"] = inner

    if "meta" in payload:
        body["meta"] = payload["meta"]
    if "cursor" in payload:
        body["meta"] = {**(body.get("meta") or {}), "cursor": payload["cursor"]}
    return body


def error_envelope(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {
            "statusCode": status_code,
            "message": message,
            "code": code,
            "details": details,
        },
        "timestamp": utcnow_iso(),
        "path": request_path(request),
    }


__all__ = ["error_envelope", "request_path", "success_envelope", "utcnow_iso"]
