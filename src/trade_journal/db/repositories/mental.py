"""
trade_journal.db.repositories.mental

Repositories for `MentalEntry` logs and per-emotion `EmotionalProfile` rows.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import asc, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import EmotionalProfile, EmotionType, MentalEntry


class MentalRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> MentalEntry:
        entry = MentalEntry(**fields)
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def get(self, entry_id: uuid.UUID) -> MentalEntry | None:
        return await self._session.get(MentalEntry, entry_id)

    async def recent(self, user_id: uuid.UUID, *, limit: int | None = 50) -> list[MentalEntry]:
        stmt = (
            select(MentalEntry)
            .where(MentalEntry.user_id == user_id)
            .order_by(desc(MentalEntry.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, entry: MentalEntry) -> None:
        await self._session.delete(entry)
        await self._session.flush()


class ProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_user(self, user_id: uuid.UUID) -> list[EmotionalProfile]:
        stmt = (
            select(EmotionalProfile)
            .where(EmotionalProfile.user_id == user_id)
            .order_by(asc(EmotionalProfile.emotion_type))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get(self, user_id: uuid.UUID, emotion_type: EmotionType) -> EmotionalProfile | None:
        stmt = select(EmotionalProfile).where(
            EmotionalProfile.user_id == user_id, EmotionalProfile.emotion_type == emotion_type
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_or_create(self, user_id: uuid.UUID, emotion_type: EmotionType) -> EmotionalProfile:
        profile = await self.get(user_id, emotion_type)
        if profile is None:
            profile = EmotionalProfile(
                user_id=user_id,
                emotion_type=emotion_type,
                anger_levels={},
                technical_changes={},
                triggers=[],
                occurrence_count=0,
            )
            self._session.add(profile)
            await self._session.flush()
        return profile

    async def add_missing(self, user_id: uuid.UUID, emotion_types: list[EmotionType]) -> None:
        self._session.add_all(
            EmotionalProfile(
                user_id=user_id,
                emotion_type=t,
                anger_levels={},
                technical_changes={},
                triggers=[],
                occurrence_count=0,
            )
            for t in emotion_types
        )
        await self._session.flush()
