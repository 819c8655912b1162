"""
trade_journal.db.repositories.mentor

Repository for mentor invites and per-account mentor permissions.

Responsibilities:
- Create/look up invites by id, token, mentor and mentee email.
- Resolve accepted mentor/mentee relationships.
- Upsert/remove account permission rows for an invite.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import InviteStatus, MentorAccountPermission, MentorInvite, MentorPermission


class MentorRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_invite(
        self,
        *,
        mentor_id: uuid.UUID,
        mentor_email: str,
        mentee_email: str,
        permission: MentorPermission,
        expires_at: datetime,
    ) -> MentorInvite:
        invite = MentorInvite(
            mentor_id=mentor_id,
            mentor_email=mentor_email,
            mentee_email=mentee_email,
            permission=permission,
            status=InviteStatus.pending,
            expires_at=expires_at,
        )
        self._session.add(invite)
        await self._session.flush()
        return invite

    async def get_invite(self, invite_id: uuid.UUID) -> MentorInvite | None:
        return await self._session.get(MentorInvite, invite_id)

    async def get_by_token(self, token: uuid.UUID) -> MentorInvite | None:
        stmt = select(MentorInvite).where(MentorInvite.invite_token == token)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def pending_between(self, mentor_id: uuid.UUID, mentee_email: str) -> MentorInvite | None:
        stmt = (
            select(MentorInvite)
            .where(
                MentorInvite.mentor_id == mentor_id,
                MentorInvite.mentee_email == mentee_email,
                MentorInvite.status == InviteStatus.pending,
            )
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def accepted_between(self, mentor_id: uuid.UUID, mentee_id: uuid.UUID) -> MentorInvite | None:
        stmt = (
            select(MentorInvite)
            .where(
                MentorInvite.mentor_id == mentor_id,
                MentorInvite.mentee_id == mentee_id,
                MentorInvite.status == InviteStatus.accepted,
            )
            .order_by(desc(MentorInvite.accepted_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def sent_by(self, mentor_id: uuid.UUID) -> list[MentorInvite]:
        stmt = (
            select(MentorInvite)
            .where(MentorInvite.mentor_id == mentor_id)
            .order_by(desc(MentorInvite.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def received_by(self, email: str) -> list[MentorInvite]:
        stmt = (
            select(MentorInvite)
            .where(MentorInvite.mentee_email == email, MentorInvite.status == InviteStatus.pending)
            .order_by(desc(MentorInvite.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def accepted_for_mentor(self, mentor_id: uuid.UUID) -> list[MentorInvite]:
        stmt = select(MentorInvite).where(
            MentorInvite.mentor_id == mentor_id, MentorInvite.status == InviteStatus.accepted
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def accepted_for_mentee(self, mentee_id: uuid.UUID) -> list[MentorInvite]:
        stmt = select(MentorInvite).where(
            MentorInvite.mentee_id == mentee_id, MentorInvite.status == InviteStatus.accepted
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def count_accepted_as_mentor(self, mentor_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(MentorInvite).where(
            MentorInvite.mentor_id == mentor_id, MentorInvite.status == InviteStatus.accepted
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def mentor_ids_for_mentee(self, mentee_id: uuid.UUID) -> set[uuid.UUID]:
        stmt = select(MentorInvite.mentor_id).where(
            MentorInvite.mentee_id == mentee_id, MentorInvite.status == InviteStatus.accepted
        )
        return set((await self._session.execute(stmt)).scalars().all())

    # --- account permissions -------------------------------------------------

    async def permissions_for_invite(self, invite_id: uuid.UUID) -> list[MentorAccountPermission]:
        stmt = select(MentorAccountPermission).where(MentorAccountPermission.invite_id == invite_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def get_permission(
        self, invite_id: uuid.UUID, account_id: uuid.UUID
    ) -> MentorAccountPermission | None:
        stmt = select(MentorAccountPermission).where(
            MentorAccountPermission.invite_id == invite_id,
            MentorAccountPermission.account_id == account_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert_permission(
        self,
        *,
        invite_id: uuid.UUID,
        account_id: uuid.UUID,
        can_view_trades: bool = True,
        can_view_journal: bool = True,
        can_view_routines: bool = True,
    ) -> MentorAccountPermission:
        row = await self.get_permission(invite_id, account_id)
        if row is None:
            row = MentorAccountPermission(invite_id=invite_id, account_id=account_id)
            self._session.add(row)
        row.can_view_trades = can_view_trades
        row.can_view_journal = can_view_journal
        row.can_view_routines = can_view_routines
        await self._session.flush()
        return row

    async def delete_permission(self, row: MentorAccountPermission) -> None:
        await self._session.delete(row)
        await self._session.flush()
