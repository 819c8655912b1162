"""
trade_journal.services.accounts

Trading accounts and per-user settings.

Responsibilities:
- Owner-scoped account CRUD and balance recomputation.
- Per-user settings with defaults materialised on first read.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import Account, UserSettings
from trade_journal.db.repositories.accounts import AccountRepo, SettingsRepo
from trade_journal.db.repositories.mentor import MentorRepo
from trade_journal.errors import NotFoundError
from trade_journal.observability.logging import get_logger, short_id
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.audit import AuditAction, AuditService

log = get_logger(__name__)

DEFAULT_CURRENCIES = ["USD", "BRL", "EUR", "GBP"]
DEFAULT_LEVERAGES = ["1:30", "1:50", "1:100", "1:200", "1:500"]
DEFAULT_ASSETS: dict[str, float] = {
    "EURUSD": 100000,
    "GBPUSD": 100000,
    "USDJPY": 100000,
    "XAUUSD": 100,
    "US30": 1,
    "NQ": 1,
    "MNQ": 1,
    "ES": 1,
    "MES": 1,
}

_ACCOUNT_FIELDS = ("name", "currency", "initial_balance", "leverage", "max_drawdown")
_SETTINGS_FIELDS = ("currencies", "leverages", "assets", "strategies", "setups")


class AccountService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        cache: MentorPermissionCache | None = None,
        audit: AuditService | None = None,
    ) -> None:
        self._session = session
        self._repo = AccountRepo(session)
        self._cache = cache
        self._audit = audit or AuditService(session)

    async def get_owned(self, user: CurrentUser, account_id: uuid.UUID) -> Account:
        account = await self._repo.get(account_id)
        # Other users' accounts are indistinguishable from missing ones.
        if account is None or account.user_id != user.id:
            raise NotFoundError("Account not found")
        return account

    async def create(self, user: CurrentUser, data: dict[str, Any]) -> Account:
        account = await self._repo.create(
            user_id=user.id, **{k: v for k, v in data.items() if k in _ACCOUNT_FIELDS}
        )
        await self._session.commit()
        log.info("account_created", account_id=short_id(account.id), currency=account.currency)
        return account

    async def list(self, user: CurrentUser) -> list[Account]:
        return await self._repo.list_for_user(user.id)

    async def update(self, user: CurrentUser, account_id: uuid.UUID, data: dict[str, Any]) -> Account:
        account = await self.get_owned(user, account_id)
        for key, value in data.items():
            if key in _ACCOUNT_FIELDS and value is not None:
                setattr(account, key, value)
        await self._repo.refresh_balance(account.id)
        await self._session.commit()
        return account

    async def delete(self, user: CurrentUser, account_id: uuid.UUID) -> None:
        account = await self.get_owned(user, account_id)
        snapshot = {"name": account.name, "currency": account.currency}
        await self._repo.delete(account)
        await self._audit.log_event(
            actor=user,
            action=AuditAction.account_delete,
            resource_type="account",
            resource_id=account_id,
            old_values=snapshot,
            new_values={"deleted": True},
        )
        await self._session.commit()
        await self._invalidate_mentors(user.id)
        log.info("account_deleted", account_id=short_id(account_id))

    async def _invalidate_mentors(self, mentee_id: uuid.UUID) -> None:
        if self._cache is None:
            return
        for mentor_id in await MentorRepo(self._session).mentor_ids_for_mentee(mentee_id):
            self._cache.invalidate(mentor_id)


class SettingsService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = SettingsRepo(session)

    async def get(self, user: CurrentUser) -> UserSettings:
        row = await self._repo.get(user.id)
        if row is None:
            row = await self._repo.create(
                user_id=user.id,
                currencies=list(DEFAULT_CURRENCIES),
                leverages=list(DEFAULT_LEVERAGES),
                assets=dict(DEFAULT_ASSETS),
                strategies=[],
                setups=[],
            )
            await self._session.commit()
        return row

    async def update(self, user: CurrentUser, data: dict[str, Any]) -> UserSettings:
        row = await self.get(user)
        for key, value in data.items():
            if key in _SETTINGS_FIELDS and value is not None:
                # Reassign (not mutate) so SQLAlchemy notices the JSON change.
                setattr(row, key, list(value) if isinstance(value, list) else dict(value))
        await self._session.commit()
        return row

    async def multiplier_for(self, user_id: uuid.UUID, symbol: str) -> float:
        row = await self._repo.get(user_id)
        assets = row.assets if row is not None else DEFAULT_ASSETS
        return float(assets.get(symbol.upper(), assets.get(symbol, 1)) or 1)
