"""
trade_journal.observability.redaction

Helpers that keep personal data and credentials out of logs.

Responsibilities:
- Reduce exceptions to a safe `{name, message, code}` summary (no tracebacks).
- Recursively mask sensitive keys in mappings.
- Provide a structlog processor that applies the masking to every event.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "[REDACTED]"

SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "email",
        "e-mail",
        "actor_email",
        "mentee_email",
        "mentor_email",
        "password",
        "token",
        "access_token",
        "refresh_token",
        "accesstoken",
        "refreshtoken",
        "invite_token",
        "share_token",
        "session",
        "session_id",
        "sessionid",
        "cookie",
        "auth",
        "authorization",
        "secret",
        "jwt_secret",
        "key",
        "api_key",
        "apikey",
        "credential",
        "credentials",
        "ip_address",
    }
)


def is_sensitive_key(key: str) -> bool:
    return key.lower() in SENSITIVE_KEYS


def safe_error(error: BaseException | object) -> dict[str, str]:
    """
    Summarise an error for logging without stack traces or payload data.
    """

    if isinstance(error, BaseException):
        out = {"name": type(error).__name__, "message": str(error)}
        code = getattr(error, "code", None)
        if code is not None:
            out["code"] = str(code)
        return out
    if isinstance(error, Mapping):
        out = {"message": str(error.get("message") or error.get("error") or "Unknown error")}
        if error.get("code") is not None:
            out["code"] = str(error["code"])
        if error.get("name") is not None:
            out["name"] = str(error["name"])
        return out
    if isinstance(error, str):
        return {"message": error}
    return {"message": "Unknown error occurred"}


def redact(value: Any, *, _depth: int = 0) -> Any:
    # Depth guard: log payloads are shallow in practice; stop descending past 8 levels.
    if _depth > 8:
        return value
    if isinstance(value, Mapping):
        return {
            k: (REDACTED if isinstance(k, str) and is_sensitive_key(k) else redact(v, _depth=_depth + 1))
            for k, v in value.items()
        }
    if isinstance(value, list | tuple):
        return [redact(v, _depth=_depth + 1) for v in value]
    return value


def redact_processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in list(event_dict):
        if key == "event":
            continue
        if is_sensitive_key(key):
            event_dict[key] = REDACTED
        else:
            event_dict[key] = redact(event_dict[key])
    return event_dict


# --- Module Notes -----------------------------------------------------------
# `redact_processor` runs inside the structlog chain configured in observability.logging.
