"""
trade_journal.services.mental

Emotional-state (mental) entries and per-emotion profiles.

Responsibilities:
- Owner-scoped CRUD of mental entries.
- Zone average (A=1, B=0, C=-1) and zone distribution over recent entries.
- One profile per emotion type (fear, greed, tilt, ...): notes, trigger lists and
  an occurrence counter bumped whenever an entry names that emotion.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import EmotionalProfile, EmotionType, MentalEntry, MentalZone, _utcnow
from trade_journal.db.repositories.mental import MentalRepo, ProfileRepo
from trade_journal.errors import NotFoundError
from trade_journal.observability.logging import get_logger

log = get_logger(__name__)

_ENTRY_FIELDS = ("trigger_event", "emotion", "behavior", "mistake", "correction", "zone_detected", "source")
_PROFILE_FIELDS = (
    "first_sign",
    "corrective_actions",
    "injecting_logic",
    "anger_levels",
    "technical_changes",
    "triggers",
    "history",
)
_PROFILE_COLLECTIONS = ("anger_levels", "technical_changes", "triggers")

ZONE_VALUES: dict[MentalZone, int] = {
    MentalZone.a_game: 1,
    MentalZone.b_game: 0,
    MentalZone.c_game: -1,
}


def zone_average(entries: list[MentalEntry]) -> float:
    if not entries:
        return 0.0
    # Entries without a detected zone count as B-Game.
    total = sum(ZONE_VALUES[e.zone_detected or MentalZone.b_game] for e in entries)
    return total / len(entries)


def zone_distribution(entries: list[MentalEntry]) -> dict[str, int]:
    counts = {zone.value: 0 for zone in MentalZone}
    for e in entries:
        counts[(e.zone_detected or MentalZone.b_game).value] += 1
    return counts


def emotion_type_of(emotion: str | None) -> EmotionType | None:
    try:
        return EmotionType(emotion.strip().lower()) if emotion else None
    except ValueError:
        return None


class MentalService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = MentalRepo(session)
        self._profiles = ProfileRepo(session)

    async def _owned(self, user: CurrentUser, entry_id: uuid.UUID) -> MentalEntry:
        entry = await self._repo.get(entry_id)
        if entry is None or entry.user_id != user.id:
            raise NotFoundError("Mental entry not found")
        return entry

    async def create(self, user: CurrentUser, data: dict[str, Any]) -> MentalEntry:
        values = {k: v for k, v in data.items() if k in _ENTRY_FIELDS and v is not None}
        entry = await self._repo.create(user_id=user.id, **values)
        emotion_type = emotion_type_of(entry.emotion)
        if emotion_type is not None:
            profile = await self._profiles.get_or_create(user.id, emotion_type)
            profile.occurrence_count += 1
            profile.last_occurrence = entry.created_at
        await self._session.commit()
        return entry

    async def list(self, user: CurrentUser, *, limit: int = 50) -> list[MentalEntry]:
        return await self._repo.recent(user.id, limit=limit)

    async def update(self, user: CurrentUser, entry_id: uuid.UUID, changes: dict[str, Any]) -> MentalEntry:
        entry = await self._owned(user, entry_id)
        for key, value in changes.items():
            if key in _ENTRY_FIELDS:
                setattr(entry, key, value)
        await self._session.commit()
        return entry

    async def delete(self, user: CurrentUser, entry_id: uuid.UUID) -> None:
        entry = await self._owned(user, entry_id)
        await self._repo.delete(entry)
        await self._session.commit()

    async def zone_summary(self, user: CurrentUser, *, last: int = 10) -> dict[str, Any]:
        entries = await self._repo.recent(user.id, limit=last)
        return {
            "entries": len(entries),
            "average": zone_average(entries),
            "distribution": zone_distribution(entries),
        }

    # --- emotional profiles --------------------------------------------------

    async def profiles(self, user: CurrentUser) -> list[EmotionalProfile]:
        existing = await self._profiles.list_for_user(user.id)
        have = {p.emotion_type for p in existing}
        missing = [t for t in EmotionType if t not in have]
        if not missing:
            return existing
        await self._profiles.add_missing(user.id, missing)
        await self._session.commit()
        log.info("emotional_profiles_initialized", created=len(missing))
        return await self._profiles.list_for_user(user.id)

    async def profile(self, user: CurrentUser, emotion_type: EmotionType) -> EmotionalProfile:
        profile = await self._profiles.get_or_create(user.id, emotion_type)
        await self._session.commit()
        return profile

    async def save_profile(
        self, user: CurrentUser, emotion_type: EmotionType, data: dict[str, Any]
    ) -> EmotionalProfile:
        profile = await self._profiles.get_or_create(user.id, emotion_type)
        for key, value in data.items():
            if key in _PROFILE_FIELDS and not (value is None and key in _PROFILE_COLLECTIONS):
                setattr(profile, key, value)
        profile.updated_at = _utcnow()
        await self._session.commit()
        return profile
