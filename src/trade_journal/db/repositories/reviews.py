"""
trade_journal.db.repositories.reviews

Repository for `MentorReview` entities.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import MentorReview


class ReviewRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> MentorReview:
        review = MentorReview(**fields)
        self._session.add(review)
        await self._session.flush()
        return review

    async def get(self, review_id: uuid.UUID) -> MentorReview | None:
        return await self._session.get(MentorReview, review_id)

    async def delete(self, review: MentorReview) -> None:
        await self._session.delete(review)
        await self._session.flush()

    async def list(
        self,
        *,
        mentor_id: uuid.UUID | None = None,
        mentee_id: uuid.UUID | None = None,
        trade_id: uuid.UUID | None = None,
    ) -> list[MentorReview]:
        stmt = select(MentorReview)
        if mentor_id is not None:
            stmt = stmt.where(MentorReview.mentor_id == mentor_id)
        if mentee_id is not None:
            stmt = stmt.where(MentorReview.mentee_id == mentee_id)
        if trade_id is not None:
            stmt = stmt.where(MentorReview.trade_id == trade_id)
        stmt = stmt.order_by(desc(MentorReview.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def mark_read(self, review_ids: list[uuid.UUID], *, mentee_id: uuid.UUID) -> int:
        if not review_ids:
            return 0
        stmt = (
            update(MentorReview)
            .where(MentorReview.id.in_(review_ids), MentorReview.mentee_id == mentee_id)
            .values(is_read=True)
        )
        result = await self._session.execute(stmt)
        return int(result.rowcount or 0)

    async def unread_count(self, mentee_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(MentorReview).where(
            MentorReview.mentee_id == mentee_id, MentorReview.is_read.is_(False)
        )
        return int((await self._session.execute(stmt)).scalar_one())
