from __future__ import annotations

import json
from typing import Any, Optional

from . import fields


def dumps(obj: Any) -> str:
    """Serialize *obj* as compact JSON, the form the venue signs and expects."""

    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def request_frame(action: str, params: Any, oid: str) -> str:
    """
    Serialize a correlated request.

    Layout:
        {"e": action, "data": params, "oid": oid}
    """

    frame = {
        fields.EVENT: action,
        fields.DATA:  params,
        fields.OID:   oid,
    }

    return dumps(frame)


def auth_frame(key: str, signature: str, timestamp: float) -> str:
    frame = {
        fields.EVENT: fields.AUTH,
        fields.AUTH_BLOCK: {
            "key":       key,
            "signature": signature,
            "timestamp": timestamp,
        },
        fields.OID: fields.AUTH,
    }

    return dumps(frame)


def ping_frame() -> str:
    return '{"e": "ping"}'


def parse_frame(raw) -> Optional[dict]:
    """
    Deserialize an inbound frame. Returns None if the frame is not a JSON
    object; the caller decides what to do about that.
    """

    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        frame = json.loads(raw)
    except ValueError:
        # UnicodeDecodeError is a ValueError.
        return None

    if not isinstance(frame, dict):
        return None

    return frame


def is_success(frame: dict) -> bool:
    return frame.get(fields.STATUS) == fields.OK


def error_of(data: Any) -> Any:
    """Pull the server's error description out of a reply payload."""

    if isinstance(data, dict):
        return data.get(fields.ERROR)
    return data
