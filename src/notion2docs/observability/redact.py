"""Secret redaction for debug dumps.

Request/response payloads pass through :func:`redact` before they are
written anywhere.  Values under sensitive keys (``Authorization``,
``access_token``, ``refresh_token``, ``client_secret`` ...) are masked,
``Bearer`` credentials are replaced, and every explicitly supplied secret
is scrubbed from all string values in the tree.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable
from typing import Any

# If any of these substrings appear in a key name (case-insensitive), the
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

_BEARER_RE = re.compile(r"(Bearer\s+)\S+")


def _placeholder(secret: str) -> str:
    suffix = secret[-4:] if len(secret) >= 8 else "****"
    return f"<redacted:...{suffix}>"


def _scrub(value: str, secrets: list[str]) -> str:
    for secret in secrets:
        if secret in value:
            value = value.replace(secret, _placeholder(secret))
    return _BEARER_RE.sub(lambda m: f"{m.group(1)}<redacted>", value)


def _redact_value(value: Any, secrets: list[str]) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, secrets)
    if isinstance(value, list):
        return [_redact_value(item, secrets) for item in value]
    if isinstance(value, str):
        return _scrub(value, secrets)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def _redact_dict(d: dict, secrets: list[str]) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = "<redacted>"
        else:
            result[key] = _redact_value(value, secrets)
    return result


def redact(payload: dict, secrets: Iterable[str | None] = ()) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitize (request body, headers, response).
    secrets:
        Known secret strings (API tokens) to scrub wherever they appear.
        ``None`` and empty entries are ignored.

    Returns
    -------
    dict
        A new dictionary; *payload* is never mutated.

    Examples
    --------
    >>> redact({"Authorization": "Bearer ntn_abc123"})
    {'Authorization': '<redacted>'}
    """
    known = [s for s in secrets if s]
    return _redact_dict(copy.deepcopy(payload), known)


def mask_sensitive_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Shallow copy of *fields* with credential-like keys masked.

    Used on structured log fields, which may hold arbitrary objects and
    are therefore not deep-copied.
    """
    return {
        key: "<redacted>"
        if isinstance(key, str) and any(pat in key.lower() for pat in _SENSITIVE_KEY_PATTERNS)
        else value
        for key, value in fields.items()
    }
