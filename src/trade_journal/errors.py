"""
trade_journal.errors

Domain exceptions raised by the service layer.

Responsibilities:
- Give services a small, HTTP-agnostic vocabulary for failures.
- Carry a stable machine-readable `code` and the HTTP status the API maps it to.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    status_code: int = 400
    code: str = "domain_error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"


class PermissionDeniedError(DomainError):
    status_code = 403
    code = "permission_denied"


class ConflictError(DomainError):
    status_code = 409
    code = "conflict"


class InvalidStateError(DomainError):
    status_code = 409
    code = "invalid_state"


class ValidationFailedError(DomainError):
    status_code = 422
    code = "validation_failed"

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["errors"] = self.errors
        return payload


# --- Module Notes -----------------------------------------------------------
# The API layer registers a single exception handler for `DomainError` (see api.app).
# Services should not import FastAPI/Starlette types.
