from __future__ import annotations

from trade_journal.errors import NotFoundError
from trade_journal.observability.redaction import (
    REDACTED,
    is_sensitive_key,
    redact,
    redact_processor,
    safe_error,
)


def test_sensitive_keys_are_case_insensitive() -> None:
    assert is_sensitive_key("Authorization")
    assert is_sensitive_key("share_token")
    assert not is_sensitive_key("symbol")


def test_redact_nested() -> None:
    payload = {"user": {"email": "a@example.com", "name": "Ana"}, "items": [{"token": "x"}, 3]}
    assert redact(payload) == {
        "user": {"email": REDACTED, "name": "Ana"},
        "items": [{"token": REDACTED}, 3],
    }


def test_processor_keeps_event_name() -> None:
    event = {"event": "login", "mentee_email": "b@example.com", "extra": {"password": "p"}}
    out = redact_processor(None, "info", event)
    assert out == {"event": "login", "mentee_email": REDACTED, "extra": {"password": REDACTED}}


def test_safe_error() -> None:
    assert safe_error(NotFoundError("Trade not found")) == {
        "name": "NotFoundError",
        "message": "Trade not found",
        "code": "not_found",
    }
    assert safe_error({"error": "boom", "code": 7}) == {"message": "boom", "code": "7"}
    assert safe_error("plain") == {"message": "plain"}
    assert safe_error(42) == {"message": "Unknown error occurred"}
