"""Masking for identity-provider payloads that end up in logs."""

from __future__ import annotations

from typing import Any

import httpx

_MAX_DEPTH = 20
_MAX_TEXT_CHARS = 500
_MASK = "***"

# Substring match against lower-cased keys.
SENSITIVE_KEY_MARKERS = (
    "password",
    "secret",
    "token",
    "apikey",
    "credential",
    "authorization",
    "assertion",
)


def is_sensitive_key(key: object) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in SENSITIVE_KEY_MARKERS)


def redact_sensitive_fields(value: Any, _depth: int = 0) -> Any:
    """Copy ``value`` with every sensitive mapping value replaced by ``***``.

    Anything nested deeper than the depth limit is masked as a whole.
    """
    if _depth >= _MAX_DEPTH:
        return _MASK
    if isinstance(value, dict):
        return {
            key: _MASK if is_sensitive_key(key) else redact_sensitive_fields(item, _depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact_sensitive_fields(item, _depth + 1) for item in value]
    return value


def describe_error_body(response: httpx.Response) -> object:
    """Loggable form of an error response: redacted JSON, or truncated text."""
    try:
        return redact_sensitive_fields(response.json())
    except ValueError:
        return response.text[:_MAX_TEXT_CHARS]
