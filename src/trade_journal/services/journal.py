"""
trade_journal.services.journal

Journal entries and public share links.

Responsibilities:
- Owner-scoped journal CRUD with a primary trade, extra linked trades and image metadata.
- Text search within one account.
- Pro/contra trade arguments attached to an entry.
- Create/reuse/revoke time-limited share links.
- Resolve a share token into a read-only view (counts views).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import ArgumentSide, JournalEntry, SharedJournal, Trade, TradeArgument, _utcnow
from trade_journal.db.repositories.accounts import AccountRepo
from trade_journal.db.repositories.journal import ArgumentRepo, JournalRepo, ShareRepo
from trade_journal.db.repositories.trades import TradeRepo
from trade_journal.errors import NotFoundError
from trade_journal.observability.logging import get_logger, short_id
from trade_journal.services.audit import AuditAction, AuditService

log = get_logger(__name__)

_ENTRY_FIELDS = ("account_id", "date", "title", "asset", "trade_id", "emotion", "analysis", "notes")

SEARCH_LIMIT = 50


@dataclass(frozen=True, slots=True)
class SharedJournalView:
    entry: JournalEntry
    trade: Trade | None
    share: SharedJournal


class JournalService:
    def __init__(self, session: AsyncSession, *, audit: AuditService | None = None) -> None:
        self._session = session
        self._repo = JournalRepo(session)
        self._shares = ShareRepo(session)
        self._arguments = ArgumentRepo(session)
        self._accounts = AccountRepo(session)
        self._trades = TradeRepo(session)
        self._audit = audit or AuditService(session)

    async def get_owned(self, user: CurrentUser, entry_id: uuid.UUID) -> JournalEntry:
        entry = await self._repo.get(entry_id)
        if entry is None or entry.user_id != user.id:
            raise NotFoundError("Journal entry not found")
        return entry

    async def _own_account(self, user: CurrentUser, account_id: uuid.UUID) -> None:
        account = await self._accounts.get(account_id)
        if account is None or account.user_id != user.id:
            raise NotFoundError("Account not found")

    async def _own_trades(self, user: CurrentUser, trade_ids: list[uuid.UUID]) -> list[Trade]:
        wanted = list(dict.fromkeys(trade_ids))
        trades = await self._trades.owned(user.id, wanted)
        if len(trades) != len(wanted):
            raise NotFoundError("Trade not found")
        by_id = {t.id: t for t in trades}
        return [by_id[i] for i in wanted]

    async def _check_links(self, user: CurrentUser, values: dict[str, Any]) -> None:
        await self._own_account(user, values["account_id"])
        if values.get("trade_id") is not None:
            await self._own_trades(user, [values["trade_id"]])

    async def create(self, user: CurrentUser, data: dict[str, Any]) -> JournalEntry:
        values = {k: data.get(k) for k in _ENTRY_FIELDS}
        await self._check_links(user, values)
        linked = await self._own_trades(user, data.get("trade_ids") or [])
        entry = await self._repo.create(user_id=user.id, **values)
        if data.get("images"):
            await self._repo.replace_images(entry, data["images"])
        if linked:
            await self._repo.set_trades(entry, linked)
        await self._session.commit()
        log.info("journal_entry_created", entry_id=short_id(entry.id), linked_trades=len(linked))
        return entry

    async def update(self, user: CurrentUser, entry_id: uuid.UUID, changes: dict[str, Any]) -> JournalEntry:
        entry = await self.get_owned(user, entry_id)
        values = {k: getattr(entry, k) for k in _ENTRY_FIELDS}
        values.update({k: v for k, v in changes.items() if k in _ENTRY_FIELDS})
        await self._check_links(user, values)
        for key, value in values.items():
            setattr(entry, key, value)
        if changes.get("images") is not None:
            await self._repo.replace_images(entry, changes["images"])
        # A given list replaces every link; an absent one leaves them alone.
        if changes.get("trade_ids") is not None:
            await self._repo.set_trades(entry, await self._own_trades(user, changes["trade_ids"]))
        await self._session.commit()
        return entry

    async def delete(self, user: CurrentUser, entry_id: uuid.UUID) -> None:
        entry = await self.get_owned(user, entry_id)
        await self._repo.delete(entry)
        await self._session.commit()
        log.info("journal_entry_deleted", entry_id=short_id(entry_id))

    async def list(
        self,
        user: CurrentUser,
        *,
        account_id: uuid.UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[JournalEntry]:
        return await self._repo.list(
            user_id=user.id,
            account_ids=[account_id] if account_id is not None else None,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
            offset=offset,
        )

    async def search(self, user: CurrentUser, account_id: uuid.UUID, query: str) -> list[JournalEntry]:
        await self._own_account(user, account_id)
        query = query.strip()
        if not query:
            return []
        return await self._repo.search(user_id=user.id, account_id=account_id, query=query, limit=SEARCH_LIMIT)

    # --- linked trades -------------------------------------------------------

    async def link_trade(self, user: CurrentUser, entry_id: uuid.UUID, trade_id: uuid.UUID) -> JournalEntry:
        entry = await self.get_owned(user, entry_id)
        (trade,) = await self._own_trades(user, [trade_id])
        if trade.id not in entry.trade_ids:
            await self._repo.set_trades(entry, [*entry.linked_trades, trade])
            await self._session.commit()
        return entry

    async def unlink_trade(self, user: CurrentUser, entry_id: uuid.UUID, trade_id: uuid.UUID) -> JournalEntry:
        entry = await self.get_owned(user, entry_id)
        if trade_id not in entry.trade_ids:
            raise NotFoundError("Trade is not linked to this entry")
        await self._repo.set_trades(entry, [t for t in entry.linked_trades if t.id != trade_id])
        await self._session.commit()
        return entry

    # --- arguments -----------------------------------------------------------

    async def arguments(self, user: CurrentUser, entry_id: uuid.UUID) -> list[TradeArgument]:
        entry = await self.get_owned(user, entry_id)
        return await self._arguments.list_for_entry(entry.id)

    async def add_argument(
        self, user: CurrentUser, entry_id: uuid.UUID, *, side: ArgumentSide, argument: str
    ) -> TradeArgument:
        entry = await self.get_owned(user, entry_id)
        row = await self._arguments.create(journal_entry_id=entry.id, side=side, argument=argument.strip(), weight=1)
        await self._session.commit()
        return row

    async def remove_argument(self, user: CurrentUser, argument_id: uuid.UUID) -> None:
        row = await self._arguments.get(argument_id)
        if row is None:
            raise NotFoundError("Argument not found")
        # Ownership follows the parent entry.
        await self.get_owned(user, row.journal_entry_id)
        await self._arguments.delete(row)
        await self._session.commit()

    # --- share links ---------------------------------------------------------

    async def create_share_link(
        self, user: CurrentUser, entry_id: uuid.UUID, *, ttl_days: int
    ) -> SharedJournal:
        entry = await self.get_owned(user, entry_id)
        now = _utcnow()
        existing = await self._shares.active_for_entry(entry.id, now=now)
        if existing is not None:
            return existing

        share = await self._shares.create(
            journal_entry_id=entry.id, user_id=user.id, expires_at=now + timedelta(days=ttl_days)
        )
        await self._audit.log_event(
            actor=user,
            action=AuditAction.journal_share_create,
            resource_type="journal_entry",
            resource_id=entry.id,
            new_values={"expires_at": share.expires_at},
        )
        await self._session.commit()
        return share

    async def revoke_share_links(self, user: CurrentUser, entry_id: uuid.UUID) -> int:
        entry = await self.get_owned(user, entry_id)
        shares = await self._shares.list_for_entry(entry.id)
        for share in shares:
            await self._shares.delete(share)
        await self._audit.log_event(
            actor=user,
            action=AuditAction.journal_share_revoke,
            resource_type="journal_entry",
            resource_id=entry.id,
            old_values={"links": len(shares)},
        )
        await self._session.commit()
        return len(shares)

    async def view_shared(self, token: uuid.UUID) -> SharedJournalView:
        share = await self._shares.get_by_token(token)
        # Expired and unknown links look the same to the caller.
        if share is None or share.expires_at <= _utcnow():
            raise NotFoundError("Shared journal not found or expired")
        entry = await self._repo.get(share.journal_entry_id)
        if entry is None:
            raise NotFoundError("Shared journal not found or expired")

        share.view_count += 1
        trade = await self._trades.get(entry.trade_id) if entry.trade_id else None
        await self._session.commit()
        log.info("shared_journal_viewed", entry_id=short_id(entry.id), views=share.view_count)
        return SharedJournalView(entry=entry, trade=trade, share=share)
