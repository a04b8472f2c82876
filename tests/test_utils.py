from __future__ import annotations

from datetime import datetime, timezone

import httpx

from scan_scheduler.utils.masking import describe_error_body, redact_sensitive_fields
from scan_scheduler.utils.time import ensure_aware, utc_now_iso


def test_redact_sensitive_fields_nested() -> None:
    payload = {
        "error": "invalid_client",
        "details": [{"Client_Secret": "x", "hint": "check id"}],
        "access_token": "abc",
    }

    assert redact_sensitive_fields(payload) == {
        "error": "invalid_client",
        "details": [{"Client_Secret": "***", "hint": "check id"}],
        "access_token": "***",
    }


def test_redact_masks_subtree_past_depth_limit() -> None:
    value: object = "leaf"
    for _ in range(25):
        value = {"level": value}

    redacted = redact_sensitive_fields(value)
    for _ in range(20):
        redacted = redacted["level"]  # type: ignore[index]

    assert redacted == "***"


def test_describe_error_body_json_and_text() -> None:
    json_response = httpx.Response(401, json={"error": "unauthorized", "assertion": "abc"})
    text_response = httpx.Response(502, text="x" * 600)

    assert describe_error_body(json_response) == {"error": "unauthorized", "assertion": "***"}
    assert describe_error_body(text_response) == "x" * 500


def test_ensure_aware() -> None:
    naive = datetime(2026, 1, 1, 8, 0)

    assert ensure_aware(naive).tzinfo is timezone.utc
    aware = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)
    assert ensure_aware(aware) is aware


def test_utc_now_iso_has_offset() -> None:
    assert utc_now_iso().endswith("+00:00")
