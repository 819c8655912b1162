"""
trade_journal.db.repositories.audit

Repository for `AuditLog` entities.

Responsibilities:
- Append audit rows (never updated or deleted by the application).
- Filtered, newest-first listing for the admin console.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import AuditLog


class AuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, **fields: Any) -> AuditLog:
        row = AuditLog(**fields)
        self._session.add(row)
        await self._session.flush()
        return row

    async def list(
        self,
        *,
        action: str | None = None,
        resource_type: str | None = None,
        actor_id: uuid.UUID | None = None,
        target_user_id: uuid.UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditLog]:
        stmt = select(AuditLog)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        if resource_type:
            stmt = stmt.where(AuditLog.resource_type == resource_type)
        if actor_id is not None:
            stmt = stmt.where(AuditLog.user_id == actor_id)
        if target_user_id is not None:
            stmt = stmt.where(AuditLog.target_user_id == target_user_id)
        stmt = stmt.order_by(desc(AuditLog.created_at)).limit(limit).offset(offset)
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Writes go through `services.audit.AuditService`, which wraps `add` in a SAVEPOINT.
