"""Credential redaction for everything a human may read.

Two entry points:

* :func:`sanitize_message` scrubs a free-form string (an error body, a log
  message). Every occurrence of the configured token and every
  ``Bearer <credential>`` substring is replaced with ``[REDACTED]``.
* :func:`redact` returns a deep copy of a request/response payload with the
  same rule applied to every string, and with values under sensitive keys
  (``authorization``, ``token``, ...) masked regardless of content.
"""

from __future__ import annotations

import copy
import re
from typing import Any

REDACTION_MARKER = "[REDACTED]"

_BEARER_RE = re.compile(r"(Bearer\s+)(?!\[REDACTED\])\S+", re.IGNORECASE)

# Substrings: if any of these appear in a key name (case-insensitive), the
# value is redacted.
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


def sanitize_message(text: str, token: str | None = None) -> str:
    """Return *text* with the token and any bearer credential redacted.

    Parameters
    ----------
    text:
        The string to clean. Non-string values are converted with ``str``.
    token:
        The integration token. When given, every literal occurrence is
        replaced before the generic ``Bearer`` pattern runs.

    Returns
    -------
    str
        The sanitized string. It never contains *token*.

    Examples
    --------
    >>> sanitize_message("bad header: Bearer secret_abc", "secret_abc")
    'bad header: Bearer [REDACTED]'
    """
    if not isinstance(text, str):
        text = str(text)
    if token:
        text = text.replace(token, REDACTION_MARKER)
    return _BEARER_RE.sub(lambda m: f"{m.group(1)}{REDACTION_MARKER}", text)


def _redact_value(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, token)
    if isinstance(value, list):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, str):
        return sanitize_message(value, token)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def _redact_dict(d: dict, token: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            if isinstance(value, str) and value.lower().startswith("bearer "):
                result[key] = sanitize_message(value, token)
            else:
                result[key] = REDACTION_MARKER
        else:
            result[key] = _redact_value(value, token)
    return result


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitize (typically a request body or a set of
        headers).
    token:
        The integration token. Any occurrence of this exact string anywhere
        in the payload is replaced.

    Returns
    -------
    dict
        A new dictionary. The original *payload* is never mutated.

    Examples
    --------
    >>> redact({"Authorization": "Bearer ntn_abc123"})
    {'Authorization': 'Bearer [REDACTED]'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, token)
