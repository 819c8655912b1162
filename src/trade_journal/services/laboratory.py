"""
trade_journal.services.laboratory

The strategy laboratory: experiments with screenshots and pro/contra trade
evidence, plus daily and weekly recaps.

Responsibilities:
- Owner-scoped CRUD of experiments and recaps.
- Attach and detach experiment images.
- Link owned trades to an experiment as supporting (pro) or contradicting (contra)
  evidence; a trade is linked at most once per experiment.
- Replace a recap's linked trades as a whole.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import ArgumentSide, LabExperiment, LabExperimentTrade, LabRecap, Trade
from trade_journal.db.repositories.laboratory import ExperimentRepo, RecapRepo
from trade_journal.db.repositories.trades import TradeRepo
from trade_journal.errors import ConflictError, NotFoundError
from trade_journal.observability.logging import get_logger, short_id

log = get_logger(__name__)

_EXPERIMENT_FIELDS = (
    "title",
    "description",
    "experiment_type",
    "status",
    "category",
    "expected_win_rate",
    "expected_risk_reward",
    "promoted_to_playbook",
)
_RECAP_FIELDS = (
    "title",
    "trade_id",
    "what_worked",
    "what_failed",
    "emotional_state",
    "lessons_learned",
    "images",
    "review_type",
    "week_start_date",
    "week_end_date",
    "linked_type",
    "linked_id",
)

# Columns that may not be cleared by an update.
_REQUIRED = ("title", "status", "promoted_to_playbook", "review_type")


class LaboratoryService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._experiments = ExperimentRepo(session)
        self._recaps = RecapRepo(session)
        self._trades = TradeRepo(session)

    async def _owned_experiment(self, user: CurrentUser, experiment_id: uuid.UUID) -> LabExperiment:
        experiment = await self._experiments.get(experiment_id)
        if experiment is None or experiment.user_id != user.id:
            raise NotFoundError("Experiment not found")
        return experiment

    async def _owned_recap(self, user: CurrentUser, recap_id: uuid.UUID) -> LabRecap:
        recap = await self._recaps.get(recap_id)
        if recap is None or recap.user_id != user.id:
            raise NotFoundError("Recap not found")
        return recap

    async def _own_trades(self, user: CurrentUser, trade_ids: list[uuid.UUID]) -> list[Trade]:
        wanted = list(dict.fromkeys(trade_ids))
        trades = await self._trades.owned(user.id, wanted)
        if len(trades) != len(wanted):
            raise NotFoundError("Trade not found")
        by_id = {t.id: t for t in trades}
        return [by_id[i] for i in wanted]

    # --- experiments ---------------------------------------------------------

    async def create_experiment(self, user: CurrentUser, data: dict[str, Any]) -> LabExperiment:
        values = {k: v for k, v in data.items() if k in _EXPERIMENT_FIELDS and v is not None}
        experiment = await self._experiments.create(user_id=user.id, **values)
        if data.get("images"):
            await self._experiments.add_images(experiment, data["images"])
        await self._session.commit()
        log.info("experiment_created", experiment_id=short_id(experiment.id), status=experiment.status.value)
        return experiment

    async def list_experiments(self, user: CurrentUser) -> list[LabExperiment]:
        return await self._experiments.list_for_user(user.id)

    async def experiment(self, user: CurrentUser, experiment_id: uuid.UUID) -> LabExperiment:
        return await self._owned_experiment(user, experiment_id)

    async def update_experiment(
        self, user: CurrentUser, experiment_id: uuid.UUID, changes: dict[str, Any]
    ) -> LabExperiment:
        experiment = await self._owned_experiment(user, experiment_id)
        before = experiment.status
        for key, value in changes.items():
            if key in _EXPERIMENT_FIELDS and not (value is None and key in _REQUIRED):
                setattr(experiment, key, value)
        await self._session.commit()
        if experiment.status != before:
            log.info(
                "experiment_status_changed",
                experiment_id=short_id(experiment.id),
                old=before.value,
                new=experiment.status.value,
            )
        return experiment

    async def delete_experiment(self, user: CurrentUser, experiment_id: uuid.UUID) -> None:
        experiment = await self._owned_experiment(user, experiment_id)
        await self._experiments.delete(experiment)
        await self._session.commit()
        log.info("experiment_deleted", experiment_id=short_id(experiment_id))

    async def add_images(
        self, user: CurrentUser, experiment_id: uuid.UUID, images: list[dict[str, Any]]
    ) -> LabExperiment:
        experiment = await self._owned_experiment(user, experiment_id)
        await self._experiments.add_images(experiment, images)
        await self._session.commit()
        return experiment

    async def remove_images(self, user: CurrentUser, experiment_id: uuid.UUID, image_ids: list[uuid.UUID]) -> int:
        experiment = await self._owned_experiment(user, experiment_id)
        removed = await self._experiments.remove_images(experiment, set(image_ids))
        await self._session.commit()
        return removed

    async def experiment_trades(self, user: CurrentUser, experiment_id: uuid.UUID) -> list[LabExperimentTrade]:
        await self._owned_experiment(user, experiment_id)
        return await self._experiments.linked_trades(experiment_id)

    async def link_trade(
        self,
        user: CurrentUser,
        experiment_id: uuid.UUID,
        trade_id: uuid.UUID,
        category: ArgumentSide = ArgumentSide.pro,
    ) -> LabExperimentTrade:
        await self._owned_experiment(user, experiment_id)
        (trade,) = await self._own_trades(user, [trade_id])
        if await self._experiments.get_link(experiment_id, trade_id) is not None:
            raise ConflictError("Trade is already linked to this experiment")
        link = await self._experiments.link_trade(experiment_id, trade, category)
        await self._session.commit()
        log.info(
            "experiment_trade_linked",
            experiment_id=short_id(experiment_id),
            trade_id=short_id(trade_id),
            category=category.value,
        )
        return link

    async def unlink_trade(self, user: CurrentUser, experiment_id: uuid.UUID, trade_id: uuid.UUID) -> None:
        await self._owned_experiment(user, experiment_id)
        link = await self._experiments.get_link(experiment_id, trade_id)
        if link is None:
            raise NotFoundError("Trade is not linked to this experiment")
        await self._experiments.unlink(link)
        await self._session.commit()

    # --- recaps --------------------------------------------------------------

    async def create_recap(self, user: CurrentUser, data: dict[str, Any]) -> LabRecap:
        values = {k: v for k, v in data.items() if k in _RECAP_FIELDS and v is not None}
        if values.get("trade_id") is not None:
            await self._own_trades(user, [values["trade_id"]])
        linked = await self._own_trades(user, data.get("trade_ids") or [])
        recap = await self._recaps.create(user_id=user.id, **values)
        if linked:
            await self._recaps.set_trades(recap, linked)
        await self._session.commit()
        log.info("recap_created", recap_id=short_id(recap.id), review_type=recap.review_type.value)
        return recap

    async def list_recaps(self, user: CurrentUser) -> list[LabRecap]:
        return await self._recaps.list_for_user(user.id)

    async def recap(self, user: CurrentUser, recap_id: uuid.UUID) -> LabRecap:
        return await self._owned_recap(user, recap_id)

    async def update_recap(self, user: CurrentUser, recap_id: uuid.UUID, changes: dict[str, Any]) -> LabRecap:
        recap = await self._owned_recap(user, recap_id)
        if changes.get("trade_id") is not None:
            await self._own_trades(user, [changes["trade_id"]])
        for key, value in changes.items():
            if key in _RECAP_FIELDS and not (value is None and key in _REQUIRED):
                setattr(recap, key, [] if key == "images" and value is None else value)
        if changes.get("trade_ids") is not None:
            await self._recaps.set_trades(recap, await self._own_trades(user, changes["trade_ids"]))
        await self._session.commit()
        return recap

    async def delete_recap(self, user: CurrentUser, recap_id: uuid.UUID) -> None:
        recap = await self._owned_recap(user, recap_id)
        await self._recaps.delete(recap)
        await self._session.commit()
        log.info("recap_deleted", recap_id=short_id(recap_id))
