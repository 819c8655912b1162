"""
trade_journal.services.reviews

Mentor reviews of a mentee's trades and journal entries.

Responsibilities:
- Create/update/delete reviews (mentor side, accepted mentorship required).
- Listing for mentors, mentees and per trade; read tracking for mentees.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import MentorReview, ReviewType
from trade_journal.db.repositories.journal import JournalRepo
from trade_journal.db.repositories.mentor import MentorRepo
from trade_journal.db.repositories.reviews import ReviewRepo
from trade_journal.db.repositories.trades import TradeRepo
from trade_journal.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from trade_journal.observability.logging import get_logger, short_id
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.mentor import MentorService

log = get_logger(__name__)


def _check_rating(rating: int | None) -> None:
    if rating is not None and not 1 <= rating <= 5:
        raise ValidationFailedError(
            "Rating must be between 1 and 5",
            errors=[{"field": "rating", "message": "Rating must be between 1 and 5", "code": "OUT_OF_RANGE"}],
        )


class ReviewService:
    def __init__(self, session: AsyncSession, *, cache: MentorPermissionCache) -> None:
        self._session = session
        self._repo = ReviewRepo(session)
        self._mentor = MentorRepo(session)
        self._trades = TradeRepo(session)
        self._journal = JournalRepo(session)
        self._access = MentorService(session, cache=cache)

    async def _own_review(self, mentor: CurrentUser, review_id: uuid.UUID) -> MentorReview:
        review = await self._repo.get(review_id)
        if review is None or review.mentor_id != mentor.id:
            raise NotFoundError("Review not found")
        return review

    async def create(
        self,
        mentor: CurrentUser,
        *,
        mentee_id: uuid.UUID,
        review_type: ReviewType,
        content: str,
        trade_id: uuid.UUID | None = None,
        journal_entry_id: uuid.UUID | None = None,
        rating: int | None = None,
    ) -> MentorReview:
        if await self._mentor.accepted_between(mentor.id, mentee_id) is None:
            raise PermissionDeniedError("No active mentorship with this user")
        _check_rating(rating)

        if trade_id is not None:
            trade = await self._trades.get(trade_id)
            if (
                trade is None
                or trade.user_id != mentee_id
                or not await self._access.can_view_trade(mentor, trade)
            ):
                raise NotFoundError("Trade not found")
        if journal_entry_id is not None:
            entry = await self._journal.get(journal_entry_id)
            if (
                entry is None
                or entry.user_id != mentee_id
                or not await self._access.can_view_journal_entry(mentor, entry)
            ):
                raise NotFoundError("Journal entry not found")

        review = await self._repo.create(
            mentor_id=mentor.id,
            mentee_id=mentee_id,
            trade_id=trade_id,
            journal_entry_id=journal_entry_id,
            review_type=review_type,
            content=content.strip(),
            rating=rating,
        )
        await self._session.commit()
        log.info(
            "review_created",
            review_id=short_id(review.id),
            mentee_id=short_id(mentee_id),
            review_type=review_type.value,
        )
        return review

    async def update(
        self,
        mentor: CurrentUser,
        review_id: uuid.UUID,
        *,
        content: str | None = None,
        rating: int | None = None,
    ) -> MentorReview:
        review = await self._own_review(mentor, review_id)
        if content is not None:
            review.content = content.strip()
        if rating is not None:
            _check_rating(rating)
            review.rating = rating
        await self._session.commit()
        return review

    async def delete(self, mentor: CurrentUser, review_id: uuid.UUID) -> None:
        review = await self._own_review(mentor, review_id)
        await self._repo.delete(review)
        await self._session.commit()
        log.info("review_deleted", review_id=short_id(review_id))

    async def for_mentee(self, mentor: CurrentUser, mentee_id: uuid.UUID) -> list[MentorReview]:
        return await self._repo.list(mentor_id=mentor.id, mentee_id=mentee_id)

    async def mine(self, mentee: CurrentUser) -> list[MentorReview]:
        return await self._repo.list(mentee_id=mentee.id)

    async def for_trade(self, user: CurrentUser, trade_id: uuid.UUID) -> list[MentorReview]:
        trade = await self._trades.get(trade_id)
        if trade is None:
            raise NotFoundError("Trade not found")
        if trade.user_id == user.id:
            return await self._repo.list(trade_id=trade.id)
        if not await self._access.can_view_trade(user, trade):
            raise NotFoundError("Trade not found")
        return await self._repo.list(trade_id=trade.id, mentor_id=user.id)

    async def mark_read(self, mentee: CurrentUser, review_ids: list[uuid.UUID]) -> int:
        updated = await self._repo.mark_read(review_ids, mentee_id=mentee.id)
        await self._session.commit()
        return updated

    async def unread_count(self, mentee: CurrentUser) -> int:
        return await self._repo.unread_count(mentee.id)
