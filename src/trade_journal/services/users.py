"""
trade_journal.services.users

User identity resolution.

Responsibilities:
- Upsert users for the dev token route (local identity bootstrap).
- Resolve a token subject to a `CurrentUser` and record logins.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import User, UserRole, UserStatus, _utcnow
from trade_journal.db.repositories.users import UserRepo
from trade_journal.observability.logging import get_logger, short_id

log = get_logger(__name__)


def to_current_user(user: User) -> CurrentUser:
    return CurrentUser(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role.value,
        status=user.status.value,
    )


class UserService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = UserRepo(session)

    async def upsert_for_token(
        self,
        *,
        email: str,
        name: str | None = None,
        role: UserRole | None = None,
        status: UserStatus | None = None,
    ) -> User:
        user = await self._repo.get_by_email(email.strip().lower())
        if user is None:
            user = await self._repo.create(
                email=email,
                name=name,
                role=role or UserRole.user,
                status=status or UserStatus.approved,
            )
            log.info("user_created", user=short_id(user.id), role=user.role.value)
        else:
            if name is not None:
                user.name = name
            if role is not None:
                user.role = role
            if status is not None:
                user.status = status
        user.last_login_at = _utcnow()
        await self._session.commit()
        return user

    async def resolve(self, user_id: uuid.UUID) -> CurrentUser | None:
        user = await self._repo.get(user_id)
        return to_current_user(user) if user else None
