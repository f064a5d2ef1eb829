"""Opaque pagination tokens for the property list.

A token is base64 of ``{"offset": n}``. Decoding never raises: a corrupt,
tampered or stale token restarts pagination at offset 0.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Optional

_LOGGER = logging.getLogger(__name__)


def encode_cursor(offset: int) -> Optional[str]:
    if offset <= 0:
        return None
    payload = json.dumps({"offset": int(offset)}, separators=(",", ":"))
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(token: Optional[str]) -> int:
    if not token:
        return 0
    try:
        decoded = base64.b64decode(str(token), validate=True).decode("utf-8")
        parsed = json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        _LOGGER.debug("Discarding unreadable page token %r: %s", token, exc)
        return 0

    if not isinstance(parsed, dict):
        return 0
    offset = parsed.get("offset")
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        return 0
    return offset


__all__ = ["decode_cursor", "encode_cursor"]
