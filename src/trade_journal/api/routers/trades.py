"""
trade_journal.api.routers.trades

Trade CRUD, validation, R-multiple and comments.

Responsibilities:
- Owner-scoped trade endpoints returning non-blocking validation warnings.
- Stateless validation endpoint for live form feedback.
- Trade comments for owners and commenting mentors.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.analytics.timeframes import format_r_multiple
from trade_journal.api.deps import db_session, permission_cache_dep
from trade_journal.api.schemas import IssueOut, TradeOut
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import TradeDirection, TradeOutcome
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.trades import CommentService, TradeService
from trade_journal.validation import validate_field, validate_trade

router = APIRouter(prefix="/v1/trades", tags=["trades"])


class TradeBase(BaseModel):
    stop_loss: float | None = None
    take_profit: float | None = None
    exit_price: float | None = None
    commission: float = 0.0
    swap: float = 0.0
    tf_analysis: str | None = Field(default=None, max_length=16)
    tf_entry: str | None = Field(default=None, max_length=16)
    tags: str | None = None
    strategy: str | None = Field(default=None, max_length=128)
    setup: str | None = Field(default=None, max_length=128)
    notes: str | None = None
    entry_time: time | None = None
    exit_date: date | None = None
    exit_time: time | None = None
    pnl: float | None = None


class TradeCreate(TradeBase):
    account_id: uuid.UUID
    symbol: str = Field(max_length=32)
    direction: TradeDirection
    entry_price: float
    lot: float
    entry_date: date


class TradeUpdate(TradeBase):
    account_id: uuid.UUID | None = None
    symbol: str | None = Field(default=None, max_length=32)
    direction: TradeDirection | None = None
    entry_price: float | None = None
    lot: float | None = None
    entry_date: date | None = None
    commission: float | None = None
    swap: float | None = None


class TradeWriteResponse(BaseModel):
    trade: TradeOut
    warnings: list[IssueOut] = Field(default_factory=list)


class TradePageResponse(BaseModel):
    items: list[TradeOut]
    total: int
    limit: int
    offset: int


class ValidateRequest(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)
    field: str | None = None


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class CommentOut(BaseModel):
    id: uuid.UUID
    trade_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime


def _write_response(result) -> TradeWriteResponse:
    return TradeWriteResponse(
        trade=TradeOut.model_validate(result.trade),
        warnings=[IssueOut(**w.to_dict()) for w in result.warnings],
    )


@router.post("", response_model=TradeWriteResponse, status_code=HTTP_201_CREATED)
async def create_trade(
    body: TradeCreate,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> TradeWriteResponse:
    data = body.model_dump(exclude={"pnl"})
    result = await TradeService(session).create(user, data, pnl_override=body.pnl)
    return _write_response(result)


@router.get("", response_model=TradePageResponse)
async def list_trades(
    account_id: uuid.UUID | None = None,
    symbol: str | None = None,
    direction: TradeDirection | None = None,
    outcome: TradeOutcome | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> TradePageResponse:
    page = await TradeService(session).list(
        user,
        account_id=account_id,
        symbol=symbol,
        direction=direction,
        outcome=outcome,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return TradePageResponse(
        items=[TradeOut.model_validate(t) for t in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.post("/validate")
async def validate_trade_input(
    body: ValidateRequest,
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, Any]:
    if body.field is not None:
        issues = validate_field(body.field, body.values.get(body.field), body.values)
        return {"field": body.field, "issues": [i.to_dict() for i in issues]}
    return validate_trade(body.values).to_dict()


@router.get("/{trade_id}", response_model=TradeOut)
async def get_trade(
    trade_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> TradeOut:
    return TradeOut.model_validate(await TradeService(session).get_owned(user, trade_id))


@router.patch("/{trade_id}", response_model=TradeWriteResponse)
async def update_trade(
    trade_id: uuid.UUID,
    body: TradeUpdate,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> TradeWriteResponse:
    changes = body.model_dump(exclude_unset=True, exclude={"pnl"})
    result = await TradeService(session).update(user, trade_id, changes, pnl_override=body.pnl)
    return _write_response(result)


@router.delete("/{trade_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_trade(
    trade_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> Response:
    await TradeService(session).delete(user, trade_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.get("/{trade_id}/r-multiple")
async def trade_r_multiple(
    trade_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    value = await TradeService(session).r_multiple(user, trade_id)
    return {"trade_id": str(trade_id), "r_multiple": value, "formatted": format_r_multiple(value)}


def _comments(
    session: AsyncSession = Depends(db_session),
    cache: MentorPermissionCache = Depends(permission_cache_dep),
) -> CommentService:
    return CommentService(session, cache=cache)


@router.post("/{trade_id}/comments", response_model=CommentOut, status_code=HTTP_201_CREATED)
async def add_comment(
    trade_id: uuid.UUID,
    body: CommentCreate,
    user: CurrentUser = Depends(get_current_user),
    svc: CommentService = Depends(_comments),
) -> CommentOut:
    comment = await svc.add(user, trade_id, body.content)
    return CommentOut.model_validate(comment, from_attributes=True)


@router.get("/{trade_id}/comments", response_model=list[CommentOut])
async def list_comments(
    trade_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CommentService = Depends(_comments),
) -> list[CommentOut]:
    comments = await svc.list(user, trade_id)
    return [CommentOut.model_validate(c, from_attributes=True) for c in comments]


@router.delete("/comments/{comment_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CommentService = Depends(_comments),
) -> Response:
    await svc.delete(user, comment_id)
    return Response(status_code=HTTP_204_NO_CONTENT)
