"""
trade_journal.db.repositories.routines

Repository for `DailyRoutine` checklists (one row per account and day).
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import DailyRoutine


class RoutineRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, routine_id: uuid.UUID) -> DailyRoutine | None:
        return await self._session.get(DailyRoutine, routine_id)

    async def get_by_date(self, account_id: uuid.UUID, day: date) -> DailyRoutine | None:
        stmt = select(DailyRoutine).where(DailyRoutine.account_id == account_id, DailyRoutine.date == day)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list(
        self,
        *,
        account_ids: list[uuid.UUID],
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[DailyRoutine]:
        if not account_ids:
            return []
        stmt = select(DailyRoutine).where(DailyRoutine.account_id.in_(account_ids))
        if date_from is not None:
            stmt = stmt.where(DailyRoutine.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(DailyRoutine.date <= date_to)
        stmt = stmt.order_by(desc(DailyRoutine.date))
        return list((await self._session.execute(stmt)).scalars().all())

    async def upsert(
        self, *, user_id: uuid.UUID, account_id: uuid.UUID, day: date, checks: dict[str, Any]
    ) -> DailyRoutine:
        routine = await self.get_by_date(account_id, day)
        if routine is None:
            routine = DailyRoutine(user_id=user_id, account_id=account_id, date=day)
            self._session.add(routine)
        for key, value in checks.items():
            setattr(routine, key, value)
        await self._session.flush()
        return routine

    async def delete(self, routine: DailyRoutine) -> None:
        await self._session.delete(routine)
        await self._session.flush()
