"""
trade_journal.api.routers.mental

Mental (emotional-state) entries, the zone summary and emotional profiles.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.api.deps import db_session
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import EmotionType, MentalSource, MentalZone
from trade_journal.services.mental import MentalService

router = APIRouter(prefix="/v1/mental", tags=["mental"])


class MentalBody(BaseModel):
    trigger_event: str | None = None
    emotion: str | None = Field(default=None, max_length=64)
    behavior: str | None = None
    mistake: str | None = None
    correction: str | None = None
    zone_detected: MentalZone | None = None
    source: MentalSource | None = None


class MentalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    trigger_event: str | None
    emotion: str | None
    behavior: str | None
    mistake: str | None
    correction: str | None
    zone_detected: MentalZone | None
    source: MentalSource
    created_at: datetime


class ProfileBody(BaseModel):
    first_sign: str | None = None
    corrective_actions: str | None = None
    injecting_logic: str | None = None
    anger_levels: dict[str, str] | None = None
    technical_changes: dict[str, str] | None = None
    triggers: list[str] | None = None
    history: str | None = None


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    emotion_type: EmotionType
    first_sign: str | None
    corrective_actions: str | None
    injecting_logic: str | None
    anger_levels: dict[str, str]
    technical_changes: dict[str, str]
    triggers: list[str]
    history: str | None
    occurrence_count: int
    last_occurrence: datetime | None
    updated_at: datetime


@router.post("", response_model=MentalOut, status_code=HTTP_201_CREATED)
async def create_mental_entry(
    body: MentalBody,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> MentalOut:
    return MentalOut.model_validate(await MentalService(session).create(user, body.model_dump()))


@router.get("", response_model=list[MentalOut])
async def list_mental_entries(
    limit: int = Query(default=50, ge=1, le=500),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> list[MentalOut]:
    return [MentalOut.model_validate(e) for e in await MentalService(session).list(user, limit=limit)]


@router.get("/zone")
async def zone_summary(
    last: int = Query(default=10, ge=1, le=200),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    return await MentalService(session).zone_summary(user, last=last)


@router.get("/profiles", response_model=list[ProfileOut])
async def list_profiles(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> list[ProfileOut]:
    """One profile per emotion type; missing ones are created empty."""
    return [ProfileOut.model_validate(p) for p in await MentalService(session).profiles(user)]


@router.get("/profiles/{emotion_type}", response_model=ProfileOut)
async def get_profile(
    emotion_type: EmotionType,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> ProfileOut:
    return ProfileOut.model_validate(await MentalService(session).profile(user, emotion_type))


@router.put("/profiles/{emotion_type}", response_model=ProfileOut)
async def save_profile(
    emotion_type: EmotionType,
    body: ProfileBody,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> ProfileOut:
    profile = await MentalService(session).save_profile(user, emotion_type, body.model_dump(exclude_unset=True))
    return ProfileOut.model_validate(profile)


@router.patch("/{entry_id}", response_model=MentalOut)
async def update_mental_entry(
    entry_id: uuid.UUID,
    body: MentalBody,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> MentalOut:
    entry = await MentalService(session).update(user, entry_id, body.model_dump(exclude_unset=True))
    return MentalOut.model_validate(entry)


@router.delete("/{entry_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_mental_entry(
    entry_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> Response:
    await MentalService(session).delete(user, entry_id)
    return Response(status_code=HTTP_204_NO_CONTENT)
