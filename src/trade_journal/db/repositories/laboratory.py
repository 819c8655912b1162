"""
trade_journal.db.repositories.laboratory

Repository for laboratory experiments (with images and linked trades) and recaps.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.db.models import (
    ArgumentSide,
    LabExperiment,
    LabExperimentImage,
    LabExperimentTrade,
    LabRecap,
    Trade,
)


class ExperimentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> LabExperiment:
        experiment = LabExperiment(**fields)
        experiment.images = []
        self._session.add(experiment)
        await self._session.flush()
        return experiment

    async def get(self, experiment_id: uuid.UUID) -> LabExperiment | None:
        return await self._session.get(LabExperiment, experiment_id)

    async def list_for_user(self, user_id: uuid.UUID) -> list[LabExperiment]:
        stmt = (
            select(LabExperiment)
            .where(LabExperiment.user_id == user_id)
            .order_by(desc(LabExperiment.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, experiment: LabExperiment) -> None:
        await self._session.delete(experiment)
        await self._session.flush()

    async def add_images(self, experiment: LabExperiment, images: list[dict[str, Any]]) -> None:
        for img in images:
            experiment.images.append(
                LabExperimentImage(image_url=img["image_url"], description=img.get("description"))
            )
        await self._session.flush()

    async def remove_images(self, experiment: LabExperiment, image_ids: set[uuid.UUID]) -> int:
        keep = [img for img in experiment.images if img.id not in image_ids]
        removed = len(experiment.images) - len(keep)
        # delete-orphan cascade drops the removed rows on flush.
        experiment.images = keep
        await self._session.flush()
        return removed

    async def get_link(self, experiment_id: uuid.UUID, trade_id: uuid.UUID) -> LabExperimentTrade | None:
        stmt = select(LabExperimentTrade).where(
            LabExperimentTrade.experiment_id == experiment_id, LabExperimentTrade.trade_id == trade_id
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def link_trade(
        self, experiment_id: uuid.UUID, trade: Trade, category: ArgumentSide
    ) -> LabExperimentTrade:
        link = LabExperimentTrade(experiment_id=experiment_id, trade_id=trade.id, category=category)
        link.trade = trade
        self._session.add(link)
        await self._session.flush()
        return link

    async def linked_trades(self, experiment_id: uuid.UUID) -> list[LabExperimentTrade]:
        stmt = (
            select(LabExperimentTrade)
            .where(LabExperimentTrade.experiment_id == experiment_id)
            .order_by(desc(LabExperimentTrade.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def unlink(self, link: LabExperimentTrade) -> None:
        await self._session.delete(link)
        await self._session.flush()


class RecapRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, **fields: Any) -> LabRecap:
        recap = LabRecap(**fields)
        recap.linked_trades = []
        self._session.add(recap)
        await self._session.flush()
        return recap

    async def get(self, recap_id: uuid.UUID) -> LabRecap | None:
        return await self._session.get(LabRecap, recap_id)

    async def list_for_user(self, user_id: uuid.UUID) -> list[LabRecap]:
        stmt = select(LabRecap).where(LabRecap.user_id == user_id).order_by(desc(LabRecap.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def set_trades(self, recap: LabRecap, trades: list[Trade]) -> None:
        recap.linked_trades = list(trades)
        await self._session.flush()

    async def delete(self, recap: LabRecap) -> None:
        await self._session.delete(recap)
        await self._session.flush()
