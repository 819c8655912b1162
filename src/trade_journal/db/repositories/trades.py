"""
trade_journal.db.repositories.trades

Repository for `Trade` and `TradeComment` entities.

Responsibilities:
- CRUD and filtered listing of trades (account, symbol, direction, outcome, dates).
- Bulk reads used by analytics, leaderboard and mentor views.
- Trade comments.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import Trade, TradeComment, TradeOutcome


class TradeRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> Trade:
        trade = Trade(**fields)
        self._session.add(trade)
        await self._session.flush()
        return trade

    async def get(self, trade_id: uuid.UUID) -> Trade | None:
        return await self._session.get(Trade, trade_id)

    async def delete(self, trade: Trade) -> None:
        await self._session.delete(trade)
        await self._session.flush()

    async def owned(self, user_id: uuid.UUID, trade_ids: list[uuid.UUID]) -> list[Trade]:
        if not trade_ids:
            return []
        stmt = select(Trade).where(Trade.user_id == user_id, Trade.id.in_(trade_ids))
        return list((await self._session.execute(stmt)).scalars().all())

    def _filtered(
        self,
        *,
        user_id: uuid.UUID | None = None,
        account_ids: list[uuid.UUID] | None = None,
        symbol: str | None = None,
        direction: str | None = None,
        outcome: str | None = None,
        strategy: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ):
        stmt = select(Trade)
        if user_id is not None:
            stmt = stmt.where(Trade.user_id == user_id)
        if account_ids is not None:
            stmt = stmt.where(Trade.account_id.in_(account_ids))
        if symbol:
            stmt = stmt.where(Trade.symbol == symbol)
        if direction:
            stmt = stmt.where(Trade.direction == direction)
        if outcome:
            stmt = stmt.where(Trade.outcome == outcome)
        if strategy is not None:
            stmt = stmt.where(Trade.strategy == strategy)
        if date_from is not None:
            stmt = stmt.where(Trade.entry_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Trade.entry_date <= date_to)
        return stmt

    async def list(
        self, *, limit: int | None = None, offset: int = 0, newest_first: bool = True, **filters: Any
    ) -> list[Trade]:
        stmt = self._filtered(**filters)
        if newest_first:
            stmt = stmt.order_by(desc(Trade.entry_date), desc(Trade.entry_time), desc(Trade.created_at))
        else:
            stmt = stmt.order_by(Trade.entry_date, Trade.entry_time, Trade.created_at)
        if limit is not None:
            stmt = stmt.limit(limit).offset(offset)
        return list((await self._session.execute(stmt)).scalars().all())

    async def count(self, **filters: Any) -> int:
        stmt = select(func.count()).select_from(self._filtered(**filters).subquery())
        return int((await self._session.execute(stmt)).scalar_one())

    async def closed_for_users(self, user_ids: list[uuid.UUID]) -> list[Trade]:
        if not user_ids:
            return []
        stmt = (
            select(Trade)
            .where(Trade.user_id.in_(user_ids), Trade.outcome != TradeOutcome.pending)
            .order_by(Trade.entry_date)
        )
        return list((await self._session.execute(stmt)).scalars().all())


class CommentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, trade_id: uuid.UUID, user_id: uuid.UUID, content: str) -> TradeComment:
        comment = TradeComment(trade_id=trade_id, user_id=user_id, content=content)
        self._session.add(comment)
        await self._session.flush()
        return comment

    async def get(self, comment_id: uuid.UUID) -> TradeComment | None:
        return await self._session.get(TradeComment, comment_id)

    async def list_for_trade(self, trade_id: uuid.UUID) -> list[TradeComment]:
        stmt = (
            select(TradeComment)
            .where(TradeComment.trade_id == trade_id)
            .order_by(TradeComment.created_at)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, comment: TradeComment) -> None:
        await self._session.delete(comment)
        await self._session.flush()
