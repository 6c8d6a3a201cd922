"""Redaction for debug logging.

Store requests carry the API key in two headers, and MQTT bootstraps carry
broker credentials. Rows and header dicts pass through :func:`redact_for_log`
before they reach a log.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SECRET_KEYS = frozenset({"apikey", "api_key", "authorization", "password", "mqtt_password", "token"})
_MAX_DEPTH = 4


def _short(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Copy of a header dict, bootstrap dict or row list with secrets masked."""
    if isinstance(value, Mapping):
        if _depth >= _MAX_DEPTH:
            return "<nested>"
        return {
            str(key): "<redacted>"
            if str(key).lower() in _SECRET_KEYS
            else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        if _depth >= _MAX_DEPTH:
            return "<nested>"
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, str):
        return _short(value, max_string)
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return _short(repr(value), max_string)
