"""
trade_journal.api.routers.community

Community playbook sharing and the leaderboard.

Responsibilities:
- Share/unshare, browse, star and import playbooks (`/v1/community/playbooks`).
- Leaderboard opt-in, preferences and ranking (`/v1/community/leaderboard`).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.api.deps import audit_service, db_session, settings_dep
from trade_journal.api.schemas import PlaybookOut
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.services.audit import AuditService
from trade_journal.services.community import CommunityService, LeaderboardService
from trade_journal.settings import Settings

router = APIRouter(prefix="/v1/community", tags=["community"])


class ShareRequest(BaseModel):
    playbook_id: uuid.UUID
    is_public: bool = True
    description: str | None = None


class SharedPlaybookOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    playbook_id: uuid.UUID
    user_id: uuid.UUID
    is_public: bool
    description: str | None
    stars: int
    downloads: int
    created_at: datetime
    playbook: PlaybookOut


class PublicPlaybookOut(SharedPlaybookOut):
    author_name: str | None = None
    author_stats: dict[str, Any] | None = None
    has_user_starred: bool = False


class LeaderboardPrefs(BaseModel):
    display_name: str | None = Field(default=None, min_length=1, max_length=64)
    show_win_rate: bool | None = None
    show_profit_factor: bool | None = None
    show_total_trades: bool | None = None
    show_pnl: bool | None = None


class LeaderboardStatus(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    display_name: str
    show_win_rate: bool
    show_profit_factor: bool
    show_total_trades: bool
    show_pnl: bool


def _community(
    session: AsyncSession = Depends(db_session),
    audit: AuditService = Depends(audit_service),
) -> CommunityService:
    return CommunityService(session, audit=audit)


@router.post("/playbooks", response_model=SharedPlaybookOut)
async def share_playbook(
    body: ShareRequest,
    user: CurrentUser = Depends(get_current_user),
    svc: CommunityService = Depends(_community),
) -> SharedPlaybookOut:
    shared = await svc.share_playbook(
        user, body.playbook_id, is_public=body.is_public, description=body.description
    )
    return SharedPlaybookOut.model_validate(shared)


@router.delete("/playbooks/{playbook_id}", status_code=HTTP_204_NO_CONTENT)
async def unshare_playbook(
    playbook_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CommunityService = Depends(_community),
) -> Response:
    await svc.unshare_playbook(user, playbook_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.get("/playbooks/public", response_model=list[PublicPlaybookOut])
async def list_public_playbooks(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    svc: CommunityService = Depends(_community),
) -> list[PublicPlaybookOut]:
    views = await svc.list_public(user, limit=limit, offset=offset)
    return [
        PublicPlaybookOut(
            **SharedPlaybookOut.model_validate(v.shared).model_dump(),
            author_name=v.author_name,
            author_stats=v.author_stats,
            has_user_starred=v.has_user_starred,
        )
        for v in views
    ]


@router.get("/playbooks/mine", response_model=list[SharedPlaybookOut])
async def list_my_shares(
    user: CurrentUser = Depends(get_current_user),
    svc: CommunityService = Depends(_community),
) -> list[SharedPlaybookOut]:
    return [SharedPlaybookOut.model_validate(s) for s in await svc.list_mine(user)]


@router.post("/playbooks/{shared_id}/star")
async def toggle_star(
    shared_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CommunityService = Depends(_community),
) -> dict[str, Any]:
    result = await svc.toggle_star(user, shared_id)
    return {"starred": result.starred, "stars": result.stars}


@router.post("/playbooks/{shared_id}/import", response_model=PlaybookOut, status_code=HTTP_201_CREATED)
async def import_playbook(
    shared_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: CommunityService = Depends(_community),
) -> PlaybookOut:
    return PlaybookOut.model_validate(await svc.import_playbook(user, shared_id))


@router.get("/leaderboard")
async def leaderboard(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> list[dict[str, Any]]:
    rows = await LeaderboardService(session).ranked(limit=settings.leaderboard_limit)
    return [{**r, "user_id": str(r["user_id"])} for r in rows]


@router.get("/leaderboard/me", response_model=LeaderboardStatus | None)
async def leaderboard_status(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> LeaderboardStatus | None:
    row = await LeaderboardService(session).my_status(user)
    return LeaderboardStatus.model_validate(row) if row else None


@router.post("/leaderboard", response_model=LeaderboardStatus)
async def join_leaderboard(
    body: LeaderboardPrefs,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> LeaderboardStatus:
    row = await LeaderboardService(session).join(user, body.model_dump(exclude_none=True))
    return LeaderboardStatus.model_validate(row)


@router.patch("/leaderboard", response_model=LeaderboardStatus)
async def update_leaderboard_prefs(
    body: LeaderboardPrefs,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> LeaderboardStatus:
    row = await LeaderboardService(session).update_preferences(user, body.model_dump(exclude_none=True))
    return LeaderboardStatus.model_validate(row)


@router.delete("/leaderboard", status_code=HTTP_204_NO_CONTENT)
async def leave_leaderboard(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> Response:
    await LeaderboardService(session).leave(user)
    return Response(status_code=HTTP_204_NO_CONTENT)
