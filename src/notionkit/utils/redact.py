"""Redaction of request/response dumps.

:func:`redact` must be applied to anything the transport writes out for
debugging.  It guarantees that:

* values under sensitive keys (``Authorization``, ``*token*``,
  ``*secret*`` ...) are masked, keeping at most the last four characters of
  the integration token;
* the integration token never appears in any string value, wherever it is
  nested;
* raw ``bytes`` values are replaced with ``<binary:N_bytes>``.
"""

from __future__ import annotations

import re
from typing import Any

# A key is sensitive if any of these substrings appears in its lowercased
# name.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "api_key",
    "api-key",
})

_BEARER_RE = re.compile(r"(Bearer\s+)\S+")


def _mask_token(value: str, token: str | None) -> str:
    if token and token in value:
        suffix = token[-4:] if len(token) >= 4 else "****"
        placeholder = f"<redacted:...{suffix}>"
        if token in placeholder:
            placeholder = "<redacted>"
        value = value.replace(token, placeholder)
    return _BEARER_RE.sub(lambda m: f"{m.group(1)}<redacted>", value)


def _redact_value(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, token)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    if isinstance(value, str):
        return _mask_token(value, token)
    return value


def _redact_dict(d: dict, token: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            if isinstance(value, str):
                masked = _mask_token(value, token)
                result[key] = masked if masked != value else "<redacted>"
            else:
                result[key] = "<redacted>"
        else:
            result[key] = _redact_value(value, token)
    return result


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a redacted copy of *payload*; the input is never mutated.

    Examples
    --------
    >>> redact({"Authorization": "Bearer secret_abc123"})
    {'Authorization': 'Bearer <redacted>'}
    """
    return _redact_dict(payload, token)
