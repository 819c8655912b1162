"""
trade_journal.services.admin

Administrative user management.

Responsibilities:
- List users and summary stats.
- Change status/role and delete users; every change is audited with before/after values.
"""

from __future__ import annotations

import uuid
from datetime import datetime, time
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import User, UserRole, UserStatus, _utcnow
from trade_journal.db.repositories.users import UserRepo
from trade_journal.errors import InvalidStateError, NotFoundError
from trade_journal.observability.logging import get_logger, short_id
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.audit import AuditService, TargetUser

log = get_logger(__name__)


class AdminService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        audit: AuditService | None = None,
        cache: MentorPermissionCache | None = None,
    ) -> None:
        self._session = session
        self._users = UserRepo(session)
        self._audit = audit or AuditService(session)
        self._cache = cache

    async def _target(self, admin: CurrentUser, user_id: uuid.UUID) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if user.id == admin.id:
            raise InvalidStateError("Admins cannot change their own account here")
        return user

    async def list_users(
        self,
        *,
        status: UserStatus | None = None,
        role: UserRole | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[User]:
        return await self._users.list(status=status, role=role, limit=limit, offset=offset)

    async def stats(self) -> dict[str, Any]:
        by_status = await self._users.count_by_status()
        today = datetime.combine(_utcnow().date(), time.min)
        return {
            "total": sum(by_status.values()),
            "by_status": {s.value: by_status.get(s.value, 0) for s in UserStatus},
            "admins": await self._users.count_where(User.role == UserRole.admin),
            "signups_today": await self._users.count_created_since(today),
            "logins_today": await self._users.count_logged_in_since(today),
        }

    async def change_status(
        self,
        admin: CurrentUser,
        user_id: uuid.UUID,
        status: UserStatus,
        *,
        reason: str | None = None,
    ) -> User:
        user = await self._target(admin, user_id)
        old = user.status
        if old == status:
            return user

        user.status = status
        if status == UserStatus.approved:
            user.approved_at = _utcnow()
            user.approved_by = admin.id
        await self._audit.log_user_status_change(
            actor=admin,
            target=TargetUser.of(user),
            old_status=old.value,
            new_status=status.value,
            reason=reason,
        )
        await self._session.commit()
        log.info("user_status_changed", user=short_id(user.id), old=old.value, new=status.value)
        return user

    async def change_role(
        self,
        admin: CurrentUser,
        user_id: uuid.UUID,
        role: UserRole,
        *,
        reason: str | None = None,
    ) -> User:
        user = await self._target(admin, user_id)
        old = user.role
        if old == role:
            return user

        user.role = role
        await self._audit.log_user_role_change(
            actor=admin,
            target=TargetUser.of(user),
            old_role=old.value,
            new_role=role.value,
            reason=reason,
        )
        await self._session.commit()
        log.info("user_role_changed", user=short_id(user.id), old=old.value, new=role.value)
        return user

    async def delete_user(self, admin: CurrentUser, user_id: uuid.UUID) -> None:
        user = await self._target(admin, user_id)
        target = TargetUser.of(user)
        previous_status = user.status.value
        await self._users.delete(user)
        await self._audit.log_user_deletion(actor=admin, target=target, previous_status=previous_status)
        await self._session.commit()
        if self._cache is not None:
            self._cache.invalidate_all()
        log.info("user_deleted", user=short_id(user_id), previous_status=previous_status)

    async def audit_logs(self, **filters: Any) -> list[Any]:
        return await self._audit.list_logs(**filters)
