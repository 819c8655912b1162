"""
trade_journal.services.export

Full data export of the caller's records as one JSON-ready document.
"""

from __future__ import annotations

from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import _utcnow
from trade_journal.db.repositories.accounts import AccountRepo
from trade_journal.db.repositories.journal import ArgumentRepo, JournalRepo
from trade_journal.db.repositories.laboratory import ExperimentRepo, RecapRepo
from trade_journal.db.repositories.mental import MentalRepo, ProfileRepo
from trade_journal.db.repositories.playbooks import PlaybookRepo
from trade_journal.db.repositories.routines import RoutineRepo
from trade_journal.db.repositories.trades import TradeRepo
from trade_journal.services.accounts import SettingsService
from trade_journal.services.audit import AuditAction, AuditService

EXPORT_VERSION = 1


def _row(obj: Any) -> dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


class ExportService:
    def __init__(self, session: AsyncSession, *, audit: AuditService | None = None) -> None:
        self._session = session
        self._audit = audit or AuditService(session)

    async def export_all(self, user: CurrentUser) -> dict[str, Any]:
        accounts = await AccountRepo(self._session).list_for_user(user.id)
        settings = await SettingsService(self._session).get(user)
        trades = await TradeRepo(self._session).list(user_id=user.id, newest_first=False)
        entries = await JournalRepo(self._session).list(user_id=user.id)
        playbooks = await PlaybookRepo(self._session).list_for_user(user.id)
        mental = await MentalRepo(self._session).recent(user.id, limit=None)
        profiles = await ProfileRepo(self._session).list_for_user(user.id)
        routines = await RoutineRepo(self._session).list(account_ids=[a.id for a in accounts])
        arguments = ArgumentRepo(self._session)
        experiments = ExperimentRepo(self._session)
        lab = await experiments.list_for_user(user.id)
        recaps = await RecapRepo(self._session).list_for_user(user.id)

        document = {
            "version": EXPORT_VERSION,
            "exported_at": _utcnow(),
            "user": {"id": user.id, "email": user.email, "name": user.name},
            "accounts": [_row(a) for a in accounts],
            "settings": _row(settings),
            "trades": [_row(t) for t in trades],
            "journal_entries": [
                {
                    **_row(e),
                    "images": [_row(i) for i in e.images],
                    "trade_ids": e.trade_ids,
                    "arguments": [_row(a) for a in await arguments.list_for_entry(e.id)],
                }
                for e in entries
            ],
            "playbooks": [_row(p) for p in playbooks],
            "mental_entries": [_row(m) for m in mental],
            "emotional_profiles": [_row(p) for p in profiles],
            "routines": [_row(r) for r in routines],
            "lab_experiments": [
                {
                    **_row(x),
                    "images": [_row(i) for i in x.images],
                    "trades": [_row(link) for link in await experiments.linked_trades(x.id)],
                }
                for x in lab
            ],
            "lab_recaps": [{**_row(r), "trade_ids": r.trade_ids} for r in recaps],
        }

        await self._audit.log_event(
            actor=user,
            action=AuditAction.data_export,
            resource_type="user",
            resource_id=user.id,
            new_values={
                "accounts": len(accounts),
                "trades": len(trades),
                "journal_entries": len(entries),
            },
        )
        await self._session.commit()
        return to_jsonable_python(document, fallback=str)
