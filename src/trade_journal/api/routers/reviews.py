"""
trade_journal.api.routers.reviews

Mentor reviews of mentee trades and journal entries.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.api.deps import db_session, permission_cache_dep
from trade_journal.api.schemas import ReviewOut
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import ReviewType
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.reviews import ReviewService

router = APIRouter(prefix="/v1/reviews", tags=["reviews"])


class ReviewCreate(BaseModel):
    mentee_id: uuid.UUID
    review_type: ReviewType
    content: str = Field(min_length=1, max_length=10_000)
    trade_id: uuid.UUID | None = None
    journal_entry_id: uuid.UUID | None = None
    # Range is enforced by the service so the error carries a field entry.
    rating: int | None = None


class ReviewUpdate(BaseModel):
    content: str | None = Field(default=None, min_length=1, max_length=10_000)
    rating: int | None = None


class MarkReadRequest(BaseModel):
    review_ids: list[uuid.UUID] = Field(default_factory=list)


def _reviews(
    session: AsyncSession = Depends(db_session),
    cache: MentorPermissionCache = Depends(permission_cache_dep),
) -> ReviewService:
    return ReviewService(session, cache=cache)


@router.post("", response_model=ReviewOut, status_code=HTTP_201_CREATED)
async def create_review(
    body: ReviewCreate,
    user: CurrentUser = Depends(get_current_user),
    svc: ReviewService = Depends(_reviews),
) -> ReviewOut:
    review = await svc.create(user, **body.model_dump())
    return ReviewOut.model_validate(review)


@router.get("/mine", response_model=list[ReviewOut])
async def my_reviews(
    user: CurrentUser = Depends(get_current_user),
    svc: ReviewService = Depends(_reviews),
) -> list[ReviewOut]:
    return [ReviewOut.model_validate(r) for r in await svc.mine(user)]


@router.get("/unread-count")
async def unread_count(
    user: CurrentUser = Depends(get_current_user),
    svc: ReviewService = Depends(_reviews),
) -> dict[str, int]:
    return {"unread": await svc.unread_count(user)}


@router.post("/mark-read")
async def mark_read(
    body: MarkReadRequest,
    user: CurrentUser = Depends(get_current_user),
    svc: ReviewService = Depends(_reviews),
) -> dict[str, int]:
    return {"updated": await svc.mark_read(user, body.review_ids)}


@router.get("/mentee/{mentee_id}", response_model=list[ReviewOut])
async def reviews_for_mentee(
    mentee_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: ReviewService = Depends(_reviews),
) -> list[ReviewOut]:
    return [ReviewOut.model_validate(r) for r in await svc.for_mentee(user, mentee_id)]


@router.get("/trade/{trade_id}", response_model=list[ReviewOut])
async def reviews_for_trade(
    trade_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: ReviewService = Depends(_reviews),
) -> list[ReviewOut]:
    return [ReviewOut.model_validate(r) for r in await svc.for_trade(user, trade_id)]


@router.patch("/{review_id}", response_model=ReviewOut)
async def update_review(
    review_id: uuid.UUID,
    body: ReviewUpdate,
    user: CurrentUser = Depends(get_current_user),
    svc: ReviewService = Depends(_reviews),
) -> ReviewOut:
    review = await svc.update(user, review_id, content=body.content, rating=body.rating)
    return ReviewOut.model_validate(review)


@router.delete("/{review_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: ReviewService = Depends(_reviews),
) -> Response:
    await svc.delete(user, review_id)
    return Response(status_code=HTTP_204_NO_CONTENT)
