"""
trade_journal.auth.models

Auth domain models.

Responsibilities:
- Define the token-derived identity (`Principal`) and the resolved caller (`CurrentUser`).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Identity carried by a validated bearer token.
    """

    subject: str

    @property
    def user_id(self) -> uuid.UUID | None:
        try:
            return uuid.UUID(self.subject)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """
    Caller resolved against the users table; role and status are authoritative.
    """

    id: uuid.UUID
    email: str
    name: str | None
    role: str
    status: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
