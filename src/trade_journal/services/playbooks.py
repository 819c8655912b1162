"""
trade_journal.services.playbooks

Personal playbooks (named strategies with rule groups).

Responsibilities:
- Owner-scoped playbook CRUD.
- Per-playbook performance over trades tagged with the playbook's strategy name.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.analytics.breakdowns import calculate_tag_metrics
from trade_journal.analytics.metrics import calculate_trade_metrics
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import Playbook
from trade_journal.db.repositories.accounts import AccountRepo
from trade_journal.db.repositories.playbooks import PlaybookRepo
from trade_journal.db.repositories.trades import TradeRepo
from trade_journal.errors import NotFoundError

_PLAYBOOK_FIELDS = ("account_id", "name", "description", "icon", "color", "rule_groups")


class PlaybookService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = PlaybookRepo(session)
        self._accounts = AccountRepo(session)
        self._trades = TradeRepo(session)

    async def get_owned(self, user: CurrentUser, playbook_id: uuid.UUID) -> Playbook:
        playbook = await self._repo.get(playbook_id)
        if playbook is None or playbook.user_id != user.id:
            raise NotFoundError("Playbook not found")
        return playbook

    async def _check_account(self, user: CurrentUser, account_id: uuid.UUID | None) -> None:
        if account_id is None:
            return
        account = await self._accounts.get(account_id)
        if account is None or account.user_id != user.id:
            raise NotFoundError("Account not found")

    async def create(self, user: CurrentUser, data: dict[str, Any]) -> Playbook:
        values = {k: v for k, v in data.items() if k in _PLAYBOOK_FIELDS and v is not None}
        await self._check_account(user, values.get("account_id"))
        playbook = await self._repo.create(user_id=user.id, **values)
        await self._session.commit()
        return playbook

    async def list(self, user: CurrentUser) -> list[Playbook]:
        return await self._repo.list_for_user(user.id)

    async def update(self, user: CurrentUser, playbook_id: uuid.UUID, changes: dict[str, Any]) -> Playbook:
        playbook = await self.get_owned(user, playbook_id)
        if "account_id" in changes:
            await self._check_account(user, changes["account_id"])
        for key, value in changes.items():
            if key in _PLAYBOOK_FIELDS:
                setattr(playbook, key, value)
        await self._session.commit()
        return playbook

    async def delete(self, user: CurrentUser, playbook_id: uuid.UUID) -> None:
        playbook = await self.get_owned(user, playbook_id)
        await self._repo.delete(playbook)
        await self._session.commit()

    async def metrics(self, user: CurrentUser, playbook_id: uuid.UUID) -> dict[str, Any]:
        playbook = await self.get_owned(user, playbook_id)
        account_ids = [playbook.account_id] if playbook.account_id is not None else None
        trades = await self._trades.list(
            user_id=user.id, account_ids=account_ids, strategy=playbook.name, newest_first=False
        )
        return {
            "playbook_id": playbook.id,
            "name": playbook.name,
            "metrics": calculate_trade_metrics(trades).to_dict(),
            "tags": [m.to_dict() for m in calculate_tag_metrics(trades)],
        }
