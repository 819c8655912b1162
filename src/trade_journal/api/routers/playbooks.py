"""
trade_journal.api.routers.playbooks

Personal playbooks and their performance.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.api.deps import db_session
from trade_journal.api.schemas import PlaybookOut
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.services.playbooks import PlaybookService

router = APIRouter(prefix="/v1/playbooks", tags=["playbooks"])


class RuleGroup(BaseModel):
    id: str
    name: str
    rules: list[str] = Field(default_factory=list)


class PlaybookCreate(BaseModel):
    account_id: uuid.UUID | None = None
    name: str = Field(min_length=1, max_length=128)
    description: str | None = None
    icon: str | None = Field(default=None, max_length=32)
    color: str | None = Field(default=None, max_length=16)
    rule_groups: list[RuleGroup] = Field(default_factory=list)


class PlaybookUpdate(BaseModel):
    account_id: uuid.UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = None
    icon: str | None = Field(default=None, max_length=32)
    color: str | None = Field(default=None, max_length=16)
    rule_groups: list[RuleGroup] | None = None


@router.post("", response_model=PlaybookOut, status_code=HTTP_201_CREATED)
async def create_playbook(
    body: PlaybookCreate,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> PlaybookOut:
    return PlaybookOut.model_validate(await PlaybookService(session).create(user, body.model_dump()))


@router.get("", response_model=list[PlaybookOut])
async def list_playbooks(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> list[PlaybookOut]:
    return [PlaybookOut.model_validate(p) for p in await PlaybookService(session).list(user)]


@router.get("/{playbook_id}", response_model=PlaybookOut)
async def get_playbook(
    playbook_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> PlaybookOut:
    return PlaybookOut.model_validate(await PlaybookService(session).get_owned(user, playbook_id))


@router.patch("/{playbook_id}", response_model=PlaybookOut)
async def update_playbook(
    playbook_id: uuid.UUID,
    body: PlaybookUpdate,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> PlaybookOut:
    playbook = await PlaybookService(session).update(
        user, playbook_id, body.model_dump(exclude_unset=True)
    )
    return PlaybookOut.model_validate(playbook)


@router.delete("/{playbook_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_playbook(
    playbook_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> Response:
    await PlaybookService(session).delete(user, playbook_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.get("/{playbook_id}/metrics")
async def playbook_metrics(
    playbook_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    result = await PlaybookService(session).metrics(user, playbook_id)
    return {**result, "playbook_id": str(result["playbook_id"])}
