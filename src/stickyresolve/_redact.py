"""Helpers for safe debug logging of resolve payloads.

Resolve requests carry the flag client secret and authority responses carry
opaque resolve tokens.  Neither belongs in a log line, so payloads pass
through :func:`redact_for_log` before being emitted at DEBUG.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

# Compared after lower-casing and dropping ``_``/``-``, so ``clientSecret``,
# ``client_secret`` and ``Client-Secret`` all match.
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "clientsecret",
        "secret",
        "password",
        "apikey",
        "token",
        "accesstoken",
        "resolvetoken",
        "authorization",
        "cookie",
    }
)


def _is_sensitive(key: str) -> bool:
    return key.replace("_", "").replace("-", "").lower() in _SENSITIVE_KEYS


def _scrub(value: Any, max_string: int) -> Any:
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if _is_sensitive(str(key)) else _scrub(item, max_string)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_scrub(item, max_string) for item in value]
    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value


def redact_for_log(payload: Mapping[str, Any], *, max_string: int = 256, max_flags: int = 20) -> dict[str, Any]:
    """Return a copy of a resolve request or response body fit for debug logs.

    Secret and token fields are replaced at any depth (the evaluation
    context is caller-supplied and may carry its own credentials), long
    strings are truncated and a long ``flags`` list is shortened.
    """
    redacted: dict[str, Any] = _scrub(payload, max_string)
    flags = redacted.get("flags")
    if isinstance(flags, list) and len(flags) > max_flags:
        redacted["flags"] = [*flags[:max_flags], f"<+{len(flags) - max_flags} more>"]
    return redacted
