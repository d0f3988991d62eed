"""Helpers for safe debug logging.

rosbridge frames can carry authentication material (``auth`` ops) and large
blobs such as compressed images or point clouds.  This module redacts
sensitive fields and truncates long values before frames reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "secret",
        "mac",
        "token",
        "authorization",
        "cookie",
    }
)

_MAX_SEQUENCE_ITEMS = 32


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        items = [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value[:_MAX_SEQUENCE_ITEMS]]
        if len(value) > _MAX_SEQUENCE_ITEMS:
            items.append(f"<+{len(value) - _MAX_SEQUENCE_ITEMS} items>")
        return items

    # Fallback: represent unknown objects without dumping internals.
    return repr(value)
