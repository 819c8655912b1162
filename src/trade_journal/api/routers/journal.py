"""
trade_journal.api.routers.journal

Journal entries, share links and the public shared view.

Responsibilities:
- Owner-scoped journal CRUD (`/v1/journal`), search and linked trades.
- Pro/contra trade arguments per entry.
- Create/revoke share links for an entry.
- Public read-only view by share token (`/v1/shared/{token}`), no auth.
"""

from __future__ import annotations

import uuid
import datetime as dt
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.api.deps import audit_service, db_session, settings_dep
from trade_journal.api.schemas import JournalEntryOut, TradeOut
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import ArgumentSide
from trade_journal.services.audit import AuditService
from trade_journal.services.journal import JournalService
from trade_journal.settings import Settings

router = APIRouter(prefix="/v1/journal", tags=["journal"])
shared_router = APIRouter(prefix="/v1/shared", tags=["journal"])


class ImageIn(BaseModel):
    url: str = Field(min_length=1, max_length=1024)
    path: str = Field(min_length=1, max_length=1024)
    timeframe: str = Field(default="", max_length=16)
    display_order: int = 0


class JournalCreate(BaseModel):
    account_id: uuid.UUID
    date: dt.date
    title: str = Field(min_length=1, max_length=256)
    asset: str | None = Field(default=None, max_length=32)
    trade_id: uuid.UUID | None = None
    trade_ids: list[uuid.UUID] = Field(default_factory=list)
    emotion: str | None = Field(default=None, max_length=64)
    analysis: str | None = None
    notes: str | None = None
    images: list[ImageIn] = Field(default_factory=list)


class JournalUpdate(BaseModel):
    account_id: uuid.UUID | None = None
    date: dt.date | None = None
    title: str | None = Field(default=None, min_length=1, max_length=256)
    asset: str | None = Field(default=None, max_length=32)
    trade_id: uuid.UUID | None = None
    trade_ids: list[uuid.UUID] | None = None
    emotion: str | None = Field(default=None, max_length=64)
    analysis: str | None = None
    notes: str | None = None
    images: list[ImageIn] | None = None


class ArgumentIn(BaseModel):
    side: ArgumentSide
    argument: str = Field(min_length=1, max_length=500)


class ArgumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    journal_entry_id: uuid.UUID
    side: ArgumentSide
    argument: str
    weight: int
    created_at: datetime


class ShareLinkOut(BaseModel):
    share_token: uuid.UUID
    expires_at: datetime
    view_count: int


class SharedJournalOut(BaseModel):
    entry: JournalEntryOut
    trade: TradeOut | None
    linked_trades: list[TradeOut] = Field(default_factory=list)
    expires_at: datetime
    view_count: int


def _journal(
    session: AsyncSession = Depends(db_session),
    audit: AuditService = Depends(audit_service),
) -> JournalService:
    return JournalService(session, audit=audit)


@router.post("", response_model=JournalEntryOut, status_code=HTTP_201_CREATED)
async def create_entry(
    body: JournalCreate,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> JournalEntryOut:
    return JournalEntryOut.model_validate(await svc.create(user, body.model_dump()))


@router.get("", response_model=list[JournalEntryOut])
async def list_entries(
    account_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> list[JournalEntryOut]:
    entries = await svc.list(
        user, account_id=account_id, date_from=date_from, date_to=date_to, limit=limit, offset=offset
    )
    return [JournalEntryOut.model_validate(e) for e in entries]


@router.get("/search", response_model=list[JournalEntryOut])
async def search_entries(
    account_id: uuid.UUID,
    q: str = Query(min_length=1, max_length=200),
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> list[JournalEntryOut]:
    return [JournalEntryOut.model_validate(e) for e in await svc.search(user, account_id, q)]


@router.get("/{entry_id}", response_model=JournalEntryOut)
async def get_entry(
    entry_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> JournalEntryOut:
    return JournalEntryOut.model_validate(await svc.get_owned(user, entry_id))


@router.patch("/{entry_id}", response_model=JournalEntryOut)
async def update_entry(
    entry_id: uuid.UUID,
    body: JournalUpdate,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> JournalEntryOut:
    entry = await svc.update(user, entry_id, body.model_dump(exclude_unset=True))
    return JournalEntryOut.model_validate(entry)


@router.delete("/{entry_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> Response:
    await svc.delete(user, entry_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.post("/{entry_id}/trades/{trade_id}", response_model=JournalEntryOut)
async def link_trade(
    entry_id: uuid.UUID,
    trade_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> JournalEntryOut:
    return JournalEntryOut.model_validate(await svc.link_trade(user, entry_id, trade_id))


@router.delete("/{entry_id}/trades/{trade_id}", response_model=JournalEntryOut)
async def unlink_trade(
    entry_id: uuid.UUID,
    trade_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> JournalEntryOut:
    return JournalEntryOut.model_validate(await svc.unlink_trade(user, entry_id, trade_id))


@router.get("/{entry_id}/arguments", response_model=list[ArgumentOut])
async def list_arguments(
    entry_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> list[ArgumentOut]:
    return [ArgumentOut.model_validate(a) for a in await svc.arguments(user, entry_id)]


@router.post("/{entry_id}/arguments", response_model=ArgumentOut, status_code=HTTP_201_CREATED)
async def add_argument(
    entry_id: uuid.UUID,
    body: ArgumentIn,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> ArgumentOut:
    row = await svc.add_argument(user, entry_id, side=body.side, argument=body.argument)
    return ArgumentOut.model_validate(row)


@router.delete("/arguments/{argument_id}", status_code=HTTP_204_NO_CONTENT)
async def remove_argument(
    argument_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> Response:
    await svc.remove_argument(user, argument_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.post("/{entry_id}/share", response_model=ShareLinkOut)
async def create_share_link(
    entry_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
    settings: Settings = Depends(settings_dep),
) -> ShareLinkOut:
    share = await svc.create_share_link(user, entry_id, ttl_days=settings.share_link_ttl_days)
    return ShareLinkOut.model_validate(share, from_attributes=True)


@router.delete("/{entry_id}/share")
async def revoke_share_links(
    entry_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: JournalService = Depends(_journal),
) -> dict[str, int]:
    return {"revoked": await svc.revoke_share_links(user, entry_id)}


@shared_router.get("/{token}", response_model=SharedJournalOut)
async def view_shared_journal(
    token: uuid.UUID,
    svc: JournalService = Depends(_journal),
) -> SharedJournalOut:
    view = await svc.view_shared(token)
    return SharedJournalOut(
        entry=JournalEntryOut.model_validate(view.entry),
        trade=TradeOut.model_validate(view.trade) if view.trade else None,
        linked_trades=[TradeOut.model_validate(t) for t in view.entry.linked_trades],
        expires_at=view.share.expires_at,
        view_count=view.share.view_count,
    )
