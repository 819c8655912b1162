"""
trade_journal.db.repositories.playbooks

Repositories for playbooks and their community-facing records.

Responsibilities:
- Playbook CRUD.
- Shared playbooks (upsert per playbook, public listing) and stars.
- Leaderboard opt-in rows.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import LeaderboardOptIn, Playbook, PlaybookStar, SharedPlaybook


class PlaybookRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> Playbook:
        playbook = Playbook(**fields)
        self._session.add(playbook)
        await self._session.flush()
        return playbook

    async def get(self, playbook_id: uuid.UUID) -> Playbook | None:
        return await self._session.get(Playbook, playbook_id)

    async def list_for_user(self, user_id: uuid.UUID) -> list[Playbook]:
        stmt = select(Playbook).where(Playbook.user_id == user_id).order_by(Playbook.created_at)
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, playbook: Playbook) -> None:
        await self._session.delete(playbook)
        await self._session.flush()


class SharedPlaybookRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, shared_id: uuid.UUID) -> SharedPlaybook | None:
        return await self._session.get(SharedPlaybook, shared_id)

    async def get_by_playbook(self, playbook_id: uuid.UUID) -> SharedPlaybook | None:
        stmt = select(SharedPlaybook).where(SharedPlaybook.playbook_id == playbook_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(self, **fields: Any) -> SharedPlaybook:
        shared = SharedPlaybook(**fields)
        self._session.add(shared)
        await self._session.flush()
        return shared

    async def delete(self, shared: SharedPlaybook) -> None:
        await self._session.delete(shared)
        await self._session.flush()

    async def list_public(self, *, limit: int = 50, offset: int = 0) -> list[SharedPlaybook]:
        stmt = (
            select(SharedPlaybook)
            .where(SharedPlaybook.is_public.is_(True))
            .order_by(desc(SharedPlaybook.stars), desc(SharedPlaybook.created_at))
            .limit(limit)
            .offset(offset)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_for_user(self, user_id: uuid.UUID) -> list[SharedPlaybook]:
        stmt = (
            select(SharedPlaybook)
            .where(SharedPlaybook.user_id == user_id)
            .order_by(desc(SharedPlaybook.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def starred_by(self, user_id: uuid.UUID, shared_ids: list[uuid.UUID]) -> set[uuid.UUID]:
        if not shared_ids:
            return set()
        stmt = select(PlaybookStar.shared_playbook_id).where(
            PlaybookStar.user_id == user_id, PlaybookStar.shared_playbook_id.in_(shared_ids)
        )
        return set((await self._session.execute(stmt)).scalars().all())

    async def get_star(self, shared_id: uuid.UUID, user_id: uuid.UUID) -> PlaybookStar | None:
        stmt = select(PlaybookStar).where(
            PlaybookStar.shared_playbook_id == shared_id, PlaybookStar.user_id == user_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add_star(self, shared_id: uuid.UUID, user_id: uuid.UUID) -> None:
        self._session.add(PlaybookStar(shared_playbook_id=shared_id, user_id=user_id))
        await self._session.flush()

    async def remove_star(self, star: PlaybookStar) -> None:
        await self._session.delete(star)
        await self._session.flush()

    async def count_stars(self, shared_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(PlaybookStar).where(
            PlaybookStar.shared_playbook_id == shared_id
        )
        return int((await self._session.execute(stmt)).scalar_one())


class LeaderboardRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: uuid.UUID) -> LeaderboardOptIn | None:
        return await self._session.get(LeaderboardOptIn, user_id)

    async def create(self, **fields: Any) -> LeaderboardOptIn:
        row = LeaderboardOptIn(**fields)
        self._session.add(row)
        await self._session.flush()
        return row

    async def delete(self, row: LeaderboardOptIn) -> None:
        await self._session.delete(row)
        await self._session.flush()

    async def list_all(self) -> list[LeaderboardOptIn]:
        return list((await self._session.execute(select(LeaderboardOptIn))).scalars().all())
