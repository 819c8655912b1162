"""
trade_journal.services.community

Community features: shared playbooks, stars and the opt-in leaderboard.

Responsibilities:
- Share/unshare playbooks, list public shares with their author's track record.
- Keep star counts consistent with star rows; import shared playbooks.
- Rank opted-in users and hide the fields they chose not to show.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.analytics.breakdowns import author_stats
from trade_journal.analytics.metrics import calculate_trade_metrics
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import LeaderboardOptIn, Playbook, SharedPlaybook
from trade_journal.db.repositories.journal import JournalRepo
from trade_journal.db.repositories.playbooks import (
    LeaderboardRepo,
    PlaybookRepo,
    SharedPlaybookRepo,
)
from trade_journal.db.repositories.trades import TradeRepo
from trade_journal.db.repositories.users import UserRepo
from trade_journal.errors import ConflictError, NotFoundError, PermissionDeniedError
from trade_journal.observability.logging import get_logger, short_id
from trade_journal.services.audit import AuditAction, AuditService

log = get_logger(__name__)

_PREFERENCE_FIELDS = (
    "display_name",
    "show_win_rate",
    "show_profit_factor",
    "show_total_trades",
    "show_pnl",
)


@dataclass(frozen=True, slots=True)
class SharedPlaybookView:
    shared: SharedPlaybook
    author_name: str | None
    author_stats: dict[str, Any] | None
    has_user_starred: bool


@dataclass(frozen=True, slots=True)
class StarResult:
    starred: bool
    stars: int


class CommunityService:
    def __init__(self, session: AsyncSession, *, audit: AuditService | None = None) -> None:
        self._session = session
        self._playbooks = PlaybookRepo(session)
        self._shared = SharedPlaybookRepo(session)
        self._trades = TradeRepo(session)
        self._users = UserRepo(session)
        self._audit = audit or AuditService(session)

    async def _public(self, shared_id: uuid.UUID) -> SharedPlaybook:
        shared = await self._shared.get(shared_id)
        if shared is None or not shared.is_public:
            raise NotFoundError("Shared playbook not found")
        return shared

    async def share_playbook(
        self,
        user: CurrentUser,
        playbook_id: uuid.UUID,
        *,
        is_public: bool = True,
        description: str | None = None,
    ) -> SharedPlaybook:
        playbook = await self._playbooks.get(playbook_id)
        if playbook is None or playbook.user_id != user.id:
            raise NotFoundError("Playbook not found")

        shared = await self._shared.get_by_playbook(playbook.id)
        if shared is None:
            shared = await self._shared.create(
                playbook=playbook,
                user_id=user.id,
                is_public=is_public,
                description=description or playbook.description,
            )
        else:
            shared.is_public = is_public
            if description is not None:
                shared.description = description

        await self._audit.log_event(
            actor=user,
            action=AuditAction.playbook_share,
            resource_type="playbook",
            resource_id=playbook.id,
            new_values={"is_public": is_public},
        )
        await self._session.commit()
        return shared

    async def unshare_playbook(self, user: CurrentUser, playbook_id: uuid.UUID) -> None:
        shared = await self._shared.get_by_playbook(playbook_id)
        if shared is None or shared.user_id != user.id:
            raise NotFoundError("Shared playbook not found")
        await self._shared.delete(shared)
        await self._audit.log_event(
            actor=user,
            action=AuditAction.playbook_unshare,
            resource_type="playbook",
            resource_id=playbook_id,
        )
        await self._session.commit()

    async def list_public(
        self, user: CurrentUser, *, limit: int = 50, offset: int = 0
    ) -> list[SharedPlaybookView]:
        rows = await self._shared.list_public(limit=limit, offset=offset)
        starred = await self._shared.starred_by(user.id, [r.id for r in rows])
        authors = await self._users.get_many(list({r.user_id for r in rows}))

        views: list[SharedPlaybookView] = []
        for row in rows:
            trades = await self._trades.list(
                user_id=row.user_id, strategy=row.playbook.name, newest_first=False
            )
            author = authors.get(row.user_id)
            views.append(
                SharedPlaybookView(
                    shared=row,
                    author_name=author.name if author else None,
                    author_stats=author_stats(trades),
                    has_user_starred=row.id in starred,
                )
            )
        return views

    async def list_mine(self, user: CurrentUser) -> list[SharedPlaybook]:
        return await self._shared.list_for_user(user.id)

    async def toggle_star(self, user: CurrentUser, shared_id: uuid.UUID) -> StarResult:
        shared = await self._public(shared_id)
        if shared.user_id == user.id:
            raise PermissionDeniedError("You cannot star your own playbook")

        star = await self._shared.get_star(shared.id, user.id)
        if star is None:
            try:
                await self._shared.add_star(shared.id, user.id)
            except IntegrityError as e:
                await self._session.rollback()
                raise ConflictError("Star already recorded") from e
            starred = True
        else:
            await self._shared.remove_star(star)
            starred = False

        # The counter mirrors the star rows.
        shared.stars = await self._shared.count_stars(shared.id)
        await self._session.commit()
        log.info("playbook_star_toggled", shared=short_id(shared.id), starred=starred)
        return StarResult(starred=starred, stars=shared.stars)

    async def import_playbook(self, user: CurrentUser, shared_id: uuid.UUID) -> Playbook:
        shared = await self._public(shared_id)
        source = shared.playbook
        copy = await self._playbooks.create(
            user_id=user.id,
            name=source.name,
            description=source.description,
            icon=source.icon,
            color=source.color,
            rule_groups=[dict(group) for group in source.rule_groups],
        )
        shared.downloads += 1
        await self._session.commit()
        return copy


def journal_streak(entry_dates: list[date]) -> int:
    """
    Consecutive days with a journal entry, counted back from the latest entry.

    `entry_dates` must be distinct and newest first.
    """

    if not entry_dates:
        return 0
    streak = 1
    for newer, older in zip(entry_dates, entry_dates[1:]):
        if newer - older != timedelta(days=1):
            break
        streak += 1
    return streak


class LeaderboardService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = LeaderboardRepo(session)
        self._trades = TradeRepo(session)
        self._journal = JournalRepo(session)

    async def join(self, user: CurrentUser, data: dict[str, Any]) -> LeaderboardOptIn:
        values = {k: v for k, v in data.items() if k in _PREFERENCE_FIELDS and v is not None}
        values.setdefault("display_name", user.name or user.email.split("@")[0])

        row = await self._repo.get(user.id)
        if row is None:
            row = await self._repo.create(user_id=user.id, **values)
        else:
            for key, value in values.items():
                setattr(row, key, value)
        await self._session.commit()
        return row

    async def leave(self, user: CurrentUser) -> None:
        row = await self._repo.get(user.id)
        if row is None:
            raise NotFoundError("Not on the leaderboard")
        await self._repo.delete(row)
        await self._session.commit()

    async def update_preferences(self, user: CurrentUser, changes: dict[str, Any]) -> LeaderboardOptIn:
        row = await self._repo.get(user.id)
        if row is None:
            raise NotFoundError("Not on the leaderboard")
        for key, value in changes.items():
            if key in _PREFERENCE_FIELDS and value is not None:
                setattr(row, key, value)
        await self._session.commit()
        return row

    async def my_status(self, user: CurrentUser) -> LeaderboardOptIn | None:
        return await self._repo.get(user.id)

    async def ranked(self, *, limit: int = 100) -> list[dict[str, Any]]:
        rows = await self._repo.list_all()
        trades = await self._trades.closed_for_users([r.user_id for r in rows])
        by_user: dict[uuid.UUID, list[Any]] = {}
        for trade in trades:
            by_user.setdefault(trade.user_id, []).append(trade)

        entries: list[dict[str, Any]] = []
        for row in rows:
            m = calculate_trade_metrics(by_user.get(row.user_id, []))
            streak = journal_streak(await self._journal.entry_dates(row.user_id))
            entries.append(
                {
                    "user_id": row.user_id,
                    "display_name": row.display_name,
                    "_win_rate": m.win_rate,
                    "_profit_factor": m.profit_factor,
                    "win_rate": m.win_rate if row.show_win_rate else None,
                    "profit_factor": m.profit_factor if row.show_profit_factor else None,
                    "total_trades": m.total_trades if row.show_total_trades else None,
                    "total_pnl": m.total_pnl if row.show_pnl else None,
                    "journal_streak": streak,
                }
            )

        entries.sort(key=lambda e: (e["_win_rate"], e["_profit_factor"]), reverse=True)
        ranked: list[dict[str, Any]] = []
        for position, entry in enumerate(entries[:limit], start=1):
            entry.pop("_win_rate")
            entry.pop("_profit_factor")
            ranked.append({"rank": position, **entry})
        return ranked
