"""
trade_journal.api.routers.mentor

Mentor/mentee endpoints.

Responsibilities:
- Invite lifecycle and listings.
- Mentee-owned account permissions.
- Read-only mentee views for mentors.
- Permission cache stats for admins.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.api.deps import audit_service, db_session, permission_cache_dep, settings_dep
from trade_journal.api.schemas import (
    InviteOut,
    JournalEntryOut,
    PermissionOut,
    RoutineOut,
    TradeOut,
    UserOut,
)
from trade_journal.auth.deps import get_current_user, require_roles
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import MentorPermission
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.audit import AuditService
from trade_journal.services.mentor import MentorService
from trade_journal.settings import Settings

router = APIRouter(prefix="/v1/mentor", tags=["mentor"])


class InviteRequest(BaseModel):
    mentee_email: EmailStr
    permission: MentorPermission = MentorPermission.view


class AcceptRequest(BaseModel):
    token: uuid.UUID


class PermissionRequest(BaseModel):
    can_view_trades: bool = True
    can_view_journal: bool = True
    can_view_routines: bool = True


class MenteeOut(BaseModel):
    invite: InviteOut
    mentee: UserOut | None
    total_trades: int
    win_rate: float
    recent_trades: int
    last_trade_date: date | None


class AccountRef(BaseModel):
    id: uuid.UUID
    name: str
    currency: str


class MenteeDayOut(BaseModel):
    day: date
    entries: list[JournalEntryOut]
    routines: list[RoutineOut]


def _mentor(
    session: AsyncSession = Depends(db_session),
    cache: MentorPermissionCache = Depends(permission_cache_dep),
    audit: AuditService = Depends(audit_service),
    settings: Settings = Depends(settings_dep),
) -> MentorService:
    return MentorService(session, cache=cache, audit=audit, invite_ttl_days=settings.invite_ttl_days)


@router.post("/invites", response_model=InviteOut, status_code=HTTP_201_CREATED)
async def invite_mentee(
    body: InviteRequest,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> InviteOut:
    invite = await svc.invite_mentee(user, body.mentee_email, permission=body.permission)
    return InviteOut.model_validate(invite)


@router.get("/invites/sent", response_model=list[InviteOut])
async def sent_invites(
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[InviteOut]:
    return [InviteOut.model_validate(i) for i in await svc.sent_invites(user)]


@router.get("/invites/received", response_model=list[InviteOut])
async def received_invites(
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[InviteOut]:
    return [InviteOut.model_validate(i) for i in await svc.received_invites(user)]


@router.post("/invites/accept", response_model=InviteOut)
async def accept_invite(
    body: AcceptRequest,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> InviteOut:
    return InviteOut.model_validate(await svc.accept_invite(user, body.token))


@router.post("/invites/{invite_id}/reject", response_model=InviteOut)
async def reject_invite(
    invite_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> InviteOut:
    return InviteOut.model_validate(await svc.reject_invite(user, invite_id))


@router.post("/invites/{invite_id}/revoke", response_model=InviteOut)
async def revoke_invite(
    invite_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> InviteOut:
    return InviteOut.model_validate(await svc.revoke_invite(user, invite_id))


@router.get("/status")
async def mentor_status(
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> dict[str, bool]:
    return {"is_mentor": await svc.is_mentor(user)}


@router.get("/mentees", response_model=list[MenteeOut])
async def list_mentees(
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[MenteeOut]:
    return [
        MenteeOut(
            invite=InviteOut.model_validate(m.invite),
            mentee=UserOut.model_validate(m.mentee) if m.mentee else None,
            total_trades=m.total_trades,
            win_rate=m.win_rate,
            recent_trades=m.recent_trades,
            last_trade_date=m.last_trade_date,
        )
        for m in await svc.list_mentees(user)
    ]


@router.get("/mentors", response_model=list[InviteOut])
async def my_mentors(
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[InviteOut]:
    return [InviteOut.model_validate(i) for i in await svc.my_mentors(user)]


@router.get("/invites/{invite_id}/permissions", response_model=list[PermissionOut])
async def get_permissions(
    invite_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[PermissionOut]:
    return [PermissionOut.model_validate(p) for p in await svc.get_permissions(user, invite_id)]


@router.put("/invites/{invite_id}/permissions/{account_id}", response_model=PermissionOut)
async def set_permission(
    invite_id: uuid.UUID,
    account_id: uuid.UUID,
    body: PermissionRequest,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> PermissionOut:
    row = await svc.set_permission(user, invite_id, account_id, **body.model_dump())
    return PermissionOut.model_validate(row)


@router.delete("/invites/{invite_id}/permissions/{account_id}", status_code=HTTP_204_NO_CONTENT)
async def remove_permission(
    invite_id: uuid.UUID,
    account_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> Response:
    await svc.remove_permission(user, invite_id, account_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.get("/mentees/{mentee_id}/accounts", response_model=list[AccountRef])
async def mentee_accounts(
    mentee_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[AccountRef]:
    accounts = await svc.permitted_accounts(user, mentee_id)
    return [AccountRef(id=a.id, name=a.name, currency=a.currency) for a in accounts]


@router.get("/mentees/{mentee_id}/trades", response_model=list[TradeOut])
async def mentee_trades(
    mentee_id: uuid.UUID,
    account_id: uuid.UUID | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[TradeOut]:
    trades = await svc.mentee_trades(user, mentee_id, account_id=account_id, limit=limit, offset=offset)
    return [TradeOut.model_validate(t) for t in trades]


@router.get("/mentees/{mentee_id}/journal", response_model=list[JournalEntryOut])
async def mentee_journal(
    mentee_id: uuid.UUID,
    day: date,
    account_id: uuid.UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[JournalEntryOut]:
    entries = await svc.mentee_journal(user, mentee_id, day=day, account_id=account_id)
    return [JournalEntryOut.model_validate(e) for e in entries]


@router.get("/mentees/{mentee_id}/routines", response_model=list[RoutineOut])
async def mentee_routines(
    mentee_id: uuid.UUID,
    account_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> list[RoutineOut]:
    routines = await svc.mentee_routines(
        user, mentee_id, account_id=account_id, date_from=date_from, date_to=date_to
    )
    return [RoutineOut.model_validate(r) for r in routines]


@router.get("/mentees/{mentee_id}/day", response_model=MenteeDayOut)
async def mentee_day(
    mentee_id: uuid.UUID,
    day: date,
    account_id: uuid.UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
) -> MenteeDayOut:
    view = await svc.mentee_day(user, mentee_id, day=day, account_id=account_id)
    return MenteeDayOut(
        day=view.day,
        entries=[JournalEntryOut.model_validate(e) for e in view.entries],
        routines=[RoutineOut.model_validate(r) for r in view.routines],
    )


@router.get("/mentees/{mentee_id}/analytics")
async def mentee_analytics(
    mentee_id: uuid.UUID,
    account_id: uuid.UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    svc: MentorService = Depends(_mentor),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    return await svc.mentee_analytics(
        user, mentee_id, account_id=account_id, risk_free_rate=settings.risk_free_rate
    )


@router.get("/cache/stats", dependencies=[Depends(require_roles("admin"))])
async def cache_stats(cache: MentorPermissionCache = Depends(permission_cache_dep)) -> dict[str, int]:
    return cache.stats()


@router.delete("/cache", status_code=HTTP_204_NO_CONTENT, dependencies=[Depends(require_roles("admin"))])
async def clear_cache(cache: MentorPermissionCache = Depends(permission_cache_dep)) -> Response:
    cache.invalidate_all()
    return Response(status_code=HTTP_204_NO_CONTENT)
