"""Helpers for safe debug logging.

Login payloads carry the ERP password, every request carries the session
cookie and provider calls carry API keys.  Save payloads can also hold
thousands of history rows.  :func:`redact_for_log` hides the former and
shortens the latter before a payload reaches a DEBUG log.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_REDACTED = "<redacted>"

# Compared lower-cased.
_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "interno",
        "token",
        "authorization",
        "access-key",
        "access_key",
        "cgruchave",
        "cusuchave",
    }
)

# Session identifiers keep a short prefix so log lines can be correlated.
_SESSION_KEYS: frozenset[str] = frozenset({"jsessionid", "cookie"})
_SESSION_PREFIX = 6


def _mask_session(value: Any) -> str:
    # service.sbr wraps scalars as {"$": value}
    if isinstance(value, Mapping) and "$" in value:
        value = value["$"]
    if not isinstance(value, str) or not value:
        return _REDACTED
    text = value.removeprefix("JSESSIONID=")
    return f"{text[:_SESSION_PREFIX]}…{_REDACTED}"


def redact_for_log(
    value: Any,
    *,
    max_string: int = 512,
    max_items: int = 20,
    _depth: int = 0,
) -> Any:
    """Return a redacted, size-bounded copy of *value* for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    child = {"max_string": max_string, "max_items": max_items, "_depth": _depth + 1}

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            lowered = key.lower()
            if lowered in _SECRET_KEYS:
                redacted[key] = _REDACTED
            elif lowered in _SESSION_KEYS:
                redacted[key] = _mask_session(v)
            else:
                redacted[key] = redact_for_log(v, **child)
        return redacted

    if isinstance(value, Sequence):
        items = [redact_for_log(v, **child) for v in value[:max_items]]
        if len(value) > max_items:
            items.append(f"<+{len(value) - max_items} more>")
        return items

    return repr(value)
