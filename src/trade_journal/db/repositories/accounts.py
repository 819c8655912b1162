"""
trade_journal.db.repositories.accounts

Repository for trading `Account` entities and per-user `UserSettings`.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import Account, Trade, UserSettings


class AccountRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: uuid.UUID, **fields: Any) -> Account:
        account = Account(user_id=user_id, **fields)
        account.current_balance = account.initial_balance
        self._session.add(account)
        await self._session.flush()
        return account

    async def get(self, account_id: uuid.UUID) -> Account | None:
        return await self._session.get(Account, account_id)

    async def list_for_user(self, user_id: uuid.UUID) -> list[Account]:
        stmt = select(Account).where(Account.user_id == user_id).order_by(Account.created_at)
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_by_ids(self, account_ids: list[uuid.UUID]) -> list[Account]:
        if not account_ids:
            return []
        stmt = select(Account).where(Account.id.in_(account_ids)).order_by(Account.created_at)
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, account: Account) -> None:
        await self._session.delete(account)
        await self._session.flush()

    async def refresh_balance(self, account_id: uuid.UUID) -> Account | None:
        account = await self.get(account_id)
        if account is None:
            return None
        # Closed trades only; open trades carry no realised pnl.
        stmt = select(func.coalesce(func.sum(Trade.pnl), 0.0)).where(
            Trade.account_id == account_id, Trade.exit_price.is_not(None)
        )
        realised = float((await self._session.execute(stmt)).scalar_one())
        account.current_balance = account.initial_balance + realised
        await self._session.flush()
        return account


class SettingsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: uuid.UUID) -> UserSettings | None:
        return await self._session.get(UserSettings, user_id)

    async def create(self, *, user_id: uuid.UUID, **fields: Any) -> UserSettings:
        row = UserSettings(user_id=user_id, **fields)
        self._session.add(row)
        await self._session.flush()
        return row
