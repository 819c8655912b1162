"""
trade_journal.services.routines

Daily routine checklists per account.

Responsibilities:
- Save (create or overwrite) the checklist for an account and day.
- Owner-scoped listing, lookup by day and deletion.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import DailyRoutine
from trade_journal.db.repositories.accounts import AccountRepo
from trade_journal.db.repositories.routines import RoutineRepo
from trade_journal.errors import NotFoundError
from trade_journal.observability.logging import get_logger, short_id

log = get_logger(__name__)

ROUTINE_CHECKS = ("aerobic", "diet", "reading", "meditation", "pre_market", "prayer")


class RoutineService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = RoutineRepo(session)
        self._accounts = AccountRepo(session)

    async def _own_account(self, user: CurrentUser, account_id: uuid.UUID) -> None:
        account = await self._accounts.get(account_id)
        if account is None or account.user_id != user.id:
            raise NotFoundError("Account not found")

    async def save(self, user: CurrentUser, account_id: uuid.UUID, day: date, data: dict[str, Any]) -> DailyRoutine:
        await self._own_account(user, account_id)
        # Unchecked items are stored as False, so a save always overwrites the whole day.
        checks = {k: bool(data.get(k, False)) for k in ROUTINE_CHECKS}
        routine = await self._repo.upsert(user_id=user.id, account_id=account_id, day=day, checks=checks)
        await self._session.commit()
        log.info("routine_saved", account_id=short_id(account_id), day=day.isoformat(), done=sum(checks.values()))
        return routine

    async def list(
        self,
        user: CurrentUser,
        account_id: uuid.UUID,
        *,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[DailyRoutine]:
        await self._own_account(user, account_id)
        return await self._repo.list(account_ids=[account_id], date_from=date_from, date_to=date_to)

    async def for_day(self, user: CurrentUser, account_id: uuid.UUID, day: date) -> DailyRoutine | None:
        await self._own_account(user, account_id)
        return await self._repo.get_by_date(account_id, day)

    async def delete(self, user: CurrentUser, routine_id: uuid.UUID) -> None:
        routine = await self._repo.get(routine_id)
        if routine is None or routine.user_id != user.id:
            raise NotFoundError("Routine not found")
        await self._repo.delete(routine)
        await self._session.commit()
