"""
trade_journal.db.repositories.journal

Repository for journal entries and what hangs off them.

Responsibilities:
- Journal entry CRUD with date-range listing and text search.
- Replace-all image metadata and linked-trade updates.
- Pro/contra trade arguments per entry.
- Public share links (token lookup, active link reuse).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import JournalEntry, JournalImage, SharedJournal, Trade, TradeArgument


class JournalRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> JournalEntry:
        entry = JournalEntry(**fields)
        entry.images = []
        entry.linked_trades = []
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def get(self, entry_id: uuid.UUID) -> JournalEntry | None:
        return await self._session.get(JournalEntry, entry_id)

    async def delete(self, entry: JournalEntry) -> None:
        await self._session.delete(entry)
        await self._session.flush()

    async def list(
        self,
        *,
        user_id: uuid.UUID,
        account_ids: list[uuid.UUID] | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[JournalEntry]:
        stmt = select(JournalEntry).where(JournalEntry.user_id == user_id)
        if account_ids is not None:
            stmt = stmt.where(JournalEntry.account_id.in_(account_ids))
        if date_from is not None:
            stmt = stmt.where(JournalEntry.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(JournalEntry.date <= date_to)
        stmt = stmt.order_by(desc(JournalEntry.date), desc(JournalEntry.created_at))
        if limit is not None:
            stmt = stmt.limit(limit).offset(offset)
        return list((await self._session.execute(stmt)).scalars().all())

    async def entry_dates(self, user_id: uuid.UUID) -> list[date]:
        stmt = (
            select(JournalEntry.date)
            .where(JournalEntry.user_id == user_id)
            .distinct()
            .order_by(desc(JournalEntry.date))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def search(
        self, *, user_id: uuid.UUID, account_id: uuid.UUID, query: str, limit: int = 50
    ) -> list[JournalEntry]:
        # Case-insensitive substring match; LIKE wildcards in the query are literal.
        escaped = query.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        stmt = (
            select(JournalEntry)
            .where(
                JournalEntry.user_id == user_id,
                JournalEntry.account_id == account_id,
                or_(
                    func.lower(JournalEntry.title).like(pattern, escape="\\"),
                    func.lower(JournalEntry.notes).like(pattern, escape="\\"),
                    func.lower(JournalEntry.analysis).like(pattern, escape="\\"),
                ),
            )
            .order_by(desc(JournalEntry.date), desc(JournalEntry.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def set_trades(self, entry: JournalEntry, trades: list[Trade]) -> None:
        entry.linked_trades = list(trades)
        await self._session.flush()

    async def replace_images(self, entry: JournalEntry, images: list[dict[str, Any]]) -> None:
        # delete-orphan cascade removes the previous rows on flush.
        rows = [
            JournalImage(
                url=img["url"],
                path=img.get("path") or img["url"],
                timeframe=img.get("timeframe") or "",
                display_order=img.get("display_order", index),
            )
            for index, img in enumerate(images)
        ]
        entry.images = sorted(rows, key=lambda row: row.display_order)
        await self._session.flush()


class ShareRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, *, journal_entry_id: uuid.UUID, user_id: uuid.UUID, expires_at: datetime
    ) -> SharedJournal:
        share = SharedJournal(journal_entry_id=journal_entry_id, user_id=user_id, expires_at=expires_at)
        self._session.add(share)
        await self._session.flush()
        return share

    async def active_for_entry(self, journal_entry_id: uuid.UUID, *, now: datetime) -> SharedJournal | None:
        stmt = (
            select(SharedJournal)
            .where(SharedJournal.journal_entry_id == journal_entry_id, SharedJournal.expires_at > now)
            .order_by(desc(SharedJournal.expires_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_token(self, token: uuid.UUID) -> SharedJournal | None:
        stmt = select(SharedJournal).where(SharedJournal.share_token == token)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_entry(self, journal_entry_id: uuid.UUID) -> list[SharedJournal]:
        stmt = select(SharedJournal).where(SharedJournal.journal_entry_id == journal_entry_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, share: SharedJournal) -> None:
        await self._session.delete(share)
        await self._session.flush()


class ArgumentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> TradeArgument:
        argument = TradeArgument(**fields)
        self._session.add(argument)
        await self._session.flush()
        return argument

    async def get(self, argument_id: uuid.UUID) -> TradeArgument | None:
        return await self._session.get(TradeArgument, argument_id)

    async def list_for_entry(self, journal_entry_id: uuid.UUID) -> list[TradeArgument]:
        stmt = (
            select(TradeArgument)
            .where(TradeArgument.journal_entry_id == journal_entry_id)
            .order_by(asc(TradeArgument.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, argument: TradeArgument) -> None:
        await self._session.delete(argument)
        await self._session.flush()
