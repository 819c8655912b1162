"""
trade_journal.services.mentor

Mentor/mentee workflow.

Responsibilities:
- Invite lifecycle: invite, accept, reject, revoke, plus sent/received listings.
- Per-account permissions owned by the mentee, with cache invalidation.
- Read-only mentee views (trades, journal, routines, analytics) limited to permitted accounts.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.analytics.metrics import calculate_trade_metrics
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import (
    DailyRoutine,
    InviteStatus,
    JournalEntry,
    MentorAccountPermission,
    MentorInvite,
    MentorPermission,
    Trade,
    User,
    UserRole,
    _utcnow,
)
from trade_journal.db.repositories.accounts import AccountRepo
from trade_journal.db.repositories.journal import JournalRepo
from trade_journal.db.repositories.mentor import MentorRepo
from trade_journal.db.repositories.routines import RoutineRepo
from trade_journal.db.repositories.trades import TradeRepo
from trade_journal.db.repositories.users import UserRepo
from trade_journal.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from trade_journal.observability.logging import get_logger, short_id
from trade_journal.permission_cache import CachedAccount, MentorPermissionCache
from trade_journal.services.analytics import build_dashboard
from trade_journal.services.audit import AuditAction, AuditService

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MenteeOverview:
    invite: MentorInvite
    mentee: User | None
    total_trades: int
    win_rate: float
    recent_trades: int
    last_trade_date: date | None


@dataclass(frozen=True, slots=True)
class MenteeDay:
    day: date
    entries: list[JournalEntry]
    routines: list[DailyRoutine]


class MentorService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        cache: MentorPermissionCache,
        audit: AuditService | None = None,
        invite_ttl_days: int = 7,
    ) -> None:
        self._session = session
        self._cache = cache
        self._audit = audit or AuditService(session)
        self._invite_ttl = timedelta(days=invite_ttl_days)
        self._repo = MentorRepo(session)
        self._users = UserRepo(session)
        self._accounts = AccountRepo(session)
        self._trades = TradeRepo(session)
        self._journal = JournalRepo(session)
        self._routines = RoutineRepo(session)

    # --- invites -------------------------------------------------------------

    async def invite_mentee(
        self,
        mentor: CurrentUser,
        mentee_email: str,
        *,
        permission: MentorPermission = MentorPermission.view,
    ) -> MentorInvite:
        email = mentee_email.strip().lower()
        if not email:
            raise ValidationFailedError(
                "Mentee email is required",
                errors=[{"field": "mentee_email", "message": "Mentee email is required", "code": "REQUIRED"}],
            )
        if email == mentor.email.lower():
            raise InvalidStateError("You cannot invite yourself")

        existing = await self._repo.pending_between(mentor.id, email)
        if existing is not None:
            return existing

        invite = await self._repo.create_invite(
            mentor_id=mentor.id,
            mentor_email=mentor.email.lower(),
            mentee_email=email,
            permission=permission,
            expires_at=_utcnow() + self._invite_ttl,
        )
        await self._audit.log_event(
            actor=mentor,
            action=AuditAction.mentor_invite_create,
            resource_type="mentor_invite",
            resource_id=invite.id,
            new_values={"permission": permission, "expires_at": invite.expires_at},
        )
        await self._session.commit()
        log.info("mentor_invite_created", invite=short_id(invite.id))
        return invite

    async def accept_invite(self, mentee: CurrentUser, token: uuid.UUID) -> MentorInvite:
        invite = await self._repo.get_by_token(token)
        if invite is None or invite.mentee_email != mentee.email.lower():
            raise NotFoundError("Invite not found")
        if invite.status != InviteStatus.pending:
            raise InvalidStateError(f"Invite is already {invite.status.value}")
        if invite.expires_at <= _utcnow():
            raise InvalidStateError("Invite has expired")

        invite.status = InviteStatus.accepted
        invite.mentee_id = mentee.id
        invite.accepted_at = _utcnow()
        for account in await self._accounts.list_for_user(mentee.id):
            await self._repo.upsert_permission(invite_id=invite.id, account_id=account.id)

        await self._audit.log_event(
            actor=mentee,
            action=AuditAction.mentor_invite_accept,
            resource_type="mentor_invite",
            resource_id=invite.id,
            old_values={"status": InviteStatus.pending},
            new_values={"status": InviteStatus.accepted},
        )
        await self._session.commit()
        self._cache.invalidate(invite.mentor_id)
        return invite

    async def reject_invite(self, mentee: CurrentUser, invite_id: uuid.UUID) -> MentorInvite:
        invite = await self._repo.get_invite(invite_id)
        if invite is None or invite.mentee_email != mentee.email.lower():
            raise NotFoundError("Invite not found")
        if invite.status != InviteStatus.pending:
            raise InvalidStateError(f"Invite is already {invite.status.value}")

        invite.status = InviteStatus.rejected
        await self._audit.log_event(
            actor=mentee,
            action=AuditAction.mentor_invite_reject,
            resource_type="mentor_invite",
            resource_id=invite.id,
            old_values={"status": InviteStatus.pending},
            new_values={"status": InviteStatus.rejected},
        )
        await self._session.commit()
        return invite

    async def revoke_invite(self, mentor: CurrentUser, invite_id: uuid.UUID) -> MentorInvite:
        invite = await self._repo.get_invite(invite_id)
        if invite is None or invite.mentor_id != mentor.id:
            raise NotFoundError("Invite not found")
        if invite.status not in (InviteStatus.pending, InviteStatus.accepted):
            raise InvalidStateError(f"Invite is already {invite.status.value}")

        previous = invite.status
        invite.status = InviteStatus.revoked
        await self._audit.log_event(
            actor=mentor,
            action=AuditAction.mentor_invite_revoke,
            resource_type="mentor_invite",
            resource_id=invite.id,
            old_values={"status": previous},
            new_values={"status": InviteStatus.revoked},
        )
        await self._session.commit()
        self._cache.invalidate(mentor.id)
        return invite

    async def sent_invites(self, mentor: CurrentUser) -> list[MentorInvite]:
        return await self._repo.sent_by(mentor.id)

    async def received_invites(self, user: CurrentUser) -> list[MentorInvite]:
        return await self._repo.received_by(user.email.lower())

    async def my_mentors(self, mentee: CurrentUser) -> list[MentorInvite]:
        return await self._repo.accepted_for_mentee(mentee.id)

    async def is_mentor(self, user: CurrentUser) -> bool:
        if user.role == UserRole.mentor:
            return True
        return await self._repo.count_accepted_as_mentor(user.id) > 0

    async def list_mentees(self, mentor: CurrentUser) -> list[MenteeOverview]:
        invites = await self._repo.accepted_for_mentor(mentor.id)
        users = await self._users.get_many([i.mentee_id for i in invites if i.mentee_id])
        week_ago = date.today() - timedelta(days=7)

        out: list[MenteeOverview] = []
        for invite in invites:
            if invite.mentee_id is None:
                continue
            accounts = await self.permitted_accounts(mentor, invite.mentee_id)
            trades = await self._trades.list(
                user_id=invite.mentee_id, account_ids=[a.id for a in accounts]
            )
            out.append(
                MenteeOverview(
                    invite=invite,
                    mentee=users.get(invite.mentee_id),
                    total_trades=len(trades),
                    win_rate=calculate_trade_metrics(trades).win_rate,
                    recent_trades=sum(1 for t in trades if t.entry_date >= week_ago),
                    # Trades come back newest first.
                    last_trade_date=trades[0].entry_date if trades else None,
                )
            )
        return out

    # --- account permissions -------------------------------------------------

    async def _invite_for_mentee(self, mentee: CurrentUser, invite_id: uuid.UUID) -> MentorInvite:
        invite = await self._repo.get_invite(invite_id)
        if invite is None or invite.mentee_id != mentee.id or invite.status != InviteStatus.accepted:
            raise NotFoundError("Invite not found")
        return invite

    async def get_permissions(
        self, user: CurrentUser, invite_id: uuid.UUID
    ) -> list[MentorAccountPermission]:
        invite = await self._repo.get_invite(invite_id)
        if invite is None or user.id not in (invite.mentor_id, invite.mentee_id):
            raise NotFoundError("Invite not found")
        return await self._repo.permissions_for_invite(invite.id)

    async def set_permission(
        self,
        mentee: CurrentUser,
        invite_id: uuid.UUID,
        account_id: uuid.UUID,
        *,
        can_view_trades: bool = True,
        can_view_journal: bool = True,
        can_view_routines: bool = True,
    ) -> MentorAccountPermission:
        invite = await self._invite_for_mentee(mentee, invite_id)
        account = await self._accounts.get(account_id)
        if account is None or account.user_id != mentee.id:
            raise NotFoundError("Account not found")

        row = await self._repo.upsert_permission(
            invite_id=invite.id,
            account_id=account.id,
            can_view_trades=can_view_trades,
            can_view_journal=can_view_journal,
            can_view_routines=can_view_routines,
        )
        await self._audit.log_event(
            actor=mentee,
            action=AuditAction.mentor_permission_change,
            resource_type="mentor_account_permission",
            resource_id=row.id,
            new_values={
                "account_id": account.id,
                "can_view_trades": can_view_trades,
                "can_view_journal": can_view_journal,
                "can_view_routines": can_view_routines,
            },
        )
        await self._session.commit()
        self._cache.invalidate(invite.mentor_id)
        return row

    async def remove_permission(
        self, mentee: CurrentUser, invite_id: uuid.UUID, account_id: uuid.UUID
    ) -> None:
        invite = await self._invite_for_mentee(mentee, invite_id)
        row = await self._repo.get_permission(invite.id, account_id)
        if row is None:
            raise NotFoundError("Permission not found")
        await self._repo.delete_permission(row)
        await self._audit.log_event(
            actor=mentee,
            action=AuditAction.mentor_permission_change,
            resource_type="mentor_account_permission",
            resource_id=row.id,
            old_values={"account_id": account_id},
            new_values={"removed": True},
        )
        await self._session.commit()
        self._cache.invalidate(invite.mentor_id)

    async def permitted_accounts(
        self, mentor: CurrentUser, mentee_id: uuid.UUID
    ) -> list[CachedAccount]:
        cached = self._cache.get(mentor.id, mentee_id)
        if cached is not None:
            return cached

        invite = await self._repo.accepted_between(mentor.id, mentee_id)
        if invite is None:
            return []
        rows = await self._repo.permissions_for_invite(invite.id)
        visible = [r.account_id for r in rows if r.can_view_trades]
        accounts = [
            CachedAccount(id=a.id, name=a.name, currency=a.currency)
            for a in await self._accounts.list_by_ids(visible)
        ]
        self._cache.set(mentor.id, mentee_id, accounts)
        return accounts

    async def can_view_trade(self, mentor: CurrentUser, trade: Trade) -> bool:
        accounts = await self.permitted_accounts(mentor, trade.user_id)
        return any(a.id == trade.account_id for a in accounts)

    async def can_view_journal_entry(self, mentor: CurrentUser, entry: JournalEntry) -> bool:
        invite = await self._repo.accepted_between(mentor.id, entry.user_id)
        if invite is None:
            return False
        row = await self._repo.get_permission(invite.id, entry.account_id)
        return row is not None and row.can_view_journal

    async def _scoped_account_ids(
        self, mentor: CurrentUser, mentee_id: uuid.UUID, account_id: uuid.UUID | None
    ) -> list[uuid.UUID]:
        invite = await self._repo.accepted_between(mentor.id, mentee_id)
        if invite is None:
            raise PermissionDeniedError("No active mentorship with this user")
        allowed = [a.id for a in await self.permitted_accounts(mentor, mentee_id)]
        if account_id is None:
            return allowed
        if account_id not in allowed:
            raise PermissionDeniedError("Account is not shared with you")
        return [account_id]

    # --- mentee views --------------------------------------------------------

    async def mentee_trades(
        self,
        mentor: CurrentUser,
        mentee_id: uuid.UUID,
        *,
        account_id: uuid.UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Trade]:
        account_ids = await self._scoped_account_ids(mentor, mentee_id, account_id)
        return await self._trades.list(
            user_id=mentee_id, account_ids=account_ids, limit=limit, offset=offset
        )

    async def _shared_for(
        self,
        mentor: CurrentUser,
        mentee_id: uuid.UUID,
        account_id: uuid.UUID | None,
        flag: str,
        *,
        strict: bool = True,
    ) -> list[uuid.UUID]:
        account_ids = await self._scoped_account_ids(mentor, mentee_id, account_id)
        invite = await self._repo.accepted_between(mentor.id, mentee_id)
        rows = await self._repo.permissions_for_invite(invite.id)
        allowed = {r.account_id for r in rows if getattr(r, flag)}
        account_ids = [a for a in account_ids if a in allowed]
        if strict and account_id is not None and not account_ids:
            raise PermissionDeniedError("This data is not shared for this account")
        return account_ids

    async def mentee_journal(
        self,
        mentor: CurrentUser,
        mentee_id: uuid.UUID,
        *,
        day: date,
        account_id: uuid.UUID | None = None,
    ) -> list[JournalEntry]:
        account_ids = await self._shared_for(mentor, mentee_id, account_id, "can_view_journal")
        return await self._journal.list(
            user_id=mentee_id, account_ids=account_ids, date_from=day, date_to=day
        )

    async def mentee_routines(
        self,
        mentor: CurrentUser,
        mentee_id: uuid.UUID,
        *,
        account_id: uuid.UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[DailyRoutine]:
        account_ids = await self._shared_for(mentor, mentee_id, account_id, "can_view_routines")
        return await self._routines.list(account_ids=account_ids, date_from=date_from, date_to=date_to)

    async def mentee_day(
        self,
        mentor: CurrentUser,
        mentee_id: uuid.UUID,
        *,
        day: date,
        account_id: uuid.UUID | None = None,
    ) -> MenteeDay:
        """
        Journal entries and routines of one day in a single call.

        Each half honours its own permission flag; an unshared half comes back empty.
        """
        journal_ids = await self._shared_for(
            mentor, mentee_id, account_id, "can_view_journal", strict=False
        )
        routine_ids = await self._shared_for(
            mentor, mentee_id, account_id, "can_view_routines", strict=False
        )
        entries = (
            await self._journal.list(user_id=mentee_id, account_ids=journal_ids, date_from=day, date_to=day)
            if journal_ids
            else []
        )
        routines = await self._routines.list(account_ids=routine_ids, date_from=day, date_to=day)
        return MenteeDay(day=day, entries=entries, routines=routines)

    async def mentee_analytics(
        self,
        mentor: CurrentUser,
        mentee_id: uuid.UUID,
        *,
        account_id: uuid.UUID | None = None,
        risk_free_rate: float,
    ) -> dict[str, Any]:
        account_ids = await self._scoped_account_ids(mentor, mentee_id, account_id)
        accounts = await self._accounts.list_by_ids(account_ids)
        trades = await self._trades.list(
            user_id=mentee_id, account_ids=account_ids, newest_first=False
        )
        return build_dashboard(
            trades,
            initial_balance=sum(a.initial_balance for a in accounts),
            risk_free_rate=risk_free_rate,
        )

