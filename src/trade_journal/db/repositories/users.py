"""
trade_journal.db.repositories.users

Repository for `User` entities.

Responsibilities:
- Look users up by id / email and upsert them for the dev identity flow.
- Filtered listing and status/role counts for the admin console.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import User, UserRole, UserStatus


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_many(self, user_ids: list[uuid.UUID]) -> dict[uuid.UUID, User]:
        if not user_ids:
            return {}
        stmt = select(User).where(User.id.in_(user_ids))
        return {u.id: u for u in (await self._session.execute(stmt)).scalars().all()}

    async def create(
        self,
        *,
        email: str,
        name: str | None,
        role: UserRole,
        status: UserStatus,
    ) -> User:
        user = User(email=email.strip().lower(), name=name, role=role, status=status)
        self._session.add(user)
        await self._session.flush()
        return user

    async def list(
        self,
        *,
        status: UserStatus | None = None,
        role: UserRole | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[User]:
        stmt = select(User)
        if status is not None:
            stmt = stmt.where(User.status == status)
        if role is not None:
            stmt = stmt.where(User.role == role)
        stmt = stmt.order_by(User.created_at.desc()).limit(limit).offset(offset)
        return list((await self._session.execute(stmt)).scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        stmt = select(User.status, func.count()).group_by(User.status)
        rows = (await self._session.execute(stmt)).all()
        return {str(status): count for status, count in rows}

    async def count_where(self, *conditions) -> int:
        stmt = select(func.count()).select_from(User).where(*conditions)
        return int((await self._session.execute(stmt)).scalar_one())

    async def count_created_since(self, since: datetime) -> int:
        return await self.count_where(User.created_at >= since)

    async def count_logged_in_since(self, since: datetime) -> int:
        return await self.count_where(User.last_login_at >= since)

    async def delete(self, user: User) -> None:
        await self._session.delete(user)
        await self._session.flush()
