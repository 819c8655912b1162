"""
trade_journal.api.routers.laboratory

Strategy laboratory (`/v1/laboratory`): experiments, their images and trade
evidence, and daily/weekly recaps.
"""

from __future__ import annotations

import datetime as dt
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.api.deps import db_session
from trade_journal.api.schemas import TradeOut
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import ArgumentSide, ExperimentStatus, RecapType
from trade_journal.services.laboratory import LaboratoryService

router = APIRouter(prefix="/v1/laboratory", tags=["laboratory"])


class ImageIn(BaseModel):
    image_url: str = Field(min_length=1, max_length=1024)
    description: str | None = None


class ImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    image_url: str
    description: str | None
    uploaded_at: datetime


class ExperimentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    description: str | None = None
    experiment_type: str | None = Field(default=None, max_length=64)
    status: ExperimentStatus = ExperimentStatus.open
    category: str | None = Field(default=None, max_length=64)
    expected_win_rate: float | None = Field(default=None, ge=0, le=100)
    expected_risk_reward: float | None = Field(default=None, ge=0)
    images: list[ImageIn] = Field(default_factory=list)


class ExperimentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=256)
    description: str | None = None
    experiment_type: str | None = Field(default=None, max_length=64)
    status: ExperimentStatus | None = None
    category: str | None = Field(default=None, max_length=64)
    expected_win_rate: float | None = Field(default=None, ge=0, le=100)
    expected_risk_reward: float | None = Field(default=None, ge=0)
    promoted_to_playbook: bool | None = None


class ExperimentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    experiment_type: str | None
    status: ExperimentStatus
    category: str | None
    expected_win_rate: float | None
    expected_risk_reward: float | None
    promoted_to_playbook: bool
    images: list[ImageOut]
    created_at: datetime
    updated_at: datetime


class ImagesRemove(BaseModel):
    image_ids: list[uuid.UUID] = Field(min_length=1)


class TradeLinkIn(BaseModel):
    trade_id: uuid.UUID
    category: ArgumentSide = ArgumentSide.pro


class TradeLinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    trade_id: uuid.UUID
    category: ArgumentSide
    created_at: datetime
    trade: TradeOut


class RecapCreate(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    trade_id: uuid.UUID | None = None
    what_worked: str | None = None
    what_failed: str | None = None
    emotional_state: str | None = None
    lessons_learned: str | None = None
    images: list[str] = Field(default_factory=list)
    review_type: RecapType = RecapType.daily
    week_start_date: dt.date | None = None
    week_end_date: dt.date | None = None
    linked_type: str | None = Field(default=None, max_length=32)
    linked_id: str | None = Field(default=None, max_length=64)
    trade_ids: list[uuid.UUID] = Field(default_factory=list)


class RecapUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=256)
    trade_id: uuid.UUID | None = None
    what_worked: str | None = None
    what_failed: str | None = None
    emotional_state: str | None = None
    lessons_learned: str | None = None
    images: list[str] | None = None
    review_type: RecapType | None = None
    week_start_date: dt.date | None = None
    week_end_date: dt.date | None = None
    linked_type: str | None = Field(default=None, max_length=32)
    linked_id: str | None = Field(default=None, max_length=64)
    trade_ids: list[uuid.UUID] | None = None


class RecapOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    trade_id: uuid.UUID | None
    what_worked: str | None
    what_failed: str | None
    emotional_state: str | None
    lessons_learned: str | None
    images: list[str]
    review_type: RecapType
    week_start_date: dt.date | None
    week_end_date: dt.date | None
    linked_type: str | None
    linked_id: str | None
    trade_ids: list[uuid.UUID] = Field(default_factory=list)
    created_at: datetime


def _lab(session: AsyncSession = Depends(db_session)) -> LaboratoryService:
    return LaboratoryService(session)


# --- experiments ----------------------------------------------------------------


@router.post("/experiments", response_model=ExperimentOut, status_code=HTTP_201_CREATED)
async def create_experiment(
    body: ExperimentCreate,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> ExperimentOut:
    return ExperimentOut.model_validate(await svc.create_experiment(user, body.model_dump()))


@router.get("/experiments", response_model=list[ExperimentOut])
async def list_experiments(
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> list[ExperimentOut]:
    return [ExperimentOut.model_validate(e) for e in await svc.list_experiments(user)]


@router.get("/experiments/{experiment_id}", response_model=ExperimentOut)
async def get_experiment(
    experiment_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> ExperimentOut:
    return ExperimentOut.model_validate(await svc.experiment(user, experiment_id))


@router.patch("/experiments/{experiment_id}", response_model=ExperimentOut)
async def update_experiment(
    experiment_id: uuid.UUID,
    body: ExperimentUpdate,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> ExperimentOut:
    experiment = await svc.update_experiment(user, experiment_id, body.model_dump(exclude_unset=True))
    return ExperimentOut.model_validate(experiment)


@router.delete("/experiments/{experiment_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_experiment(
    experiment_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> Response:
    await svc.delete_experiment(user, experiment_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.post("/experiments/{experiment_id}/images", response_model=ExperimentOut, status_code=HTTP_201_CREATED)
async def add_experiment_images(
    experiment_id: uuid.UUID,
    body: list[ImageIn],
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> ExperimentOut:
    experiment = await svc.add_images(user, experiment_id, [img.model_dump() for img in body])
    return ExperimentOut.model_validate(experiment)


@router.post("/experiments/{experiment_id}/images/remove")
async def remove_experiment_images(
    experiment_id: uuid.UUID,
    body: ImagesRemove,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> dict[str, int]:
    """Delete the listed images; ids that are not on the experiment are ignored."""
    return {"removed": await svc.remove_images(user, experiment_id, body.image_ids)}


@router.get("/experiments/{experiment_id}/trades", response_model=list[TradeLinkOut])
async def list_experiment_trades(
    experiment_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> list[TradeLinkOut]:
    return [TradeLinkOut.model_validate(link) for link in await svc.experiment_trades(user, experiment_id)]


@router.post("/experiments/{experiment_id}/trades", response_model=TradeLinkOut, status_code=HTTP_201_CREATED)
async def link_experiment_trade(
    experiment_id: uuid.UUID,
    body: TradeLinkIn,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> TradeLinkOut:
    link = await svc.link_trade(user, experiment_id, body.trade_id, body.category)
    return TradeLinkOut.model_validate(link)


@router.delete("/experiments/{experiment_id}/trades/{trade_id}", status_code=HTTP_204_NO_CONTENT)
async def unlink_experiment_trade(
    experiment_id: uuid.UUID,
    trade_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> Response:
    await svc.unlink_trade(user, experiment_id, trade_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


# --- recaps ---------------------------------------------------------------------


@router.post("/recaps", response_model=RecapOut, status_code=HTTP_201_CREATED)
async def create_recap(
    body: RecapCreate,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> RecapOut:
    return RecapOut.model_validate(await svc.create_recap(user, body.model_dump()))


@router.get("/recaps", response_model=list[RecapOut])
async def list_recaps(
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> list[RecapOut]:
    return [RecapOut.model_validate(r) for r in await svc.list_recaps(user)]


@router.get("/recaps/{recap_id}", response_model=RecapOut)
async def get_recap(
    recap_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> RecapOut:
    return RecapOut.model_validate(await svc.recap(user, recap_id))


@router.patch("/recaps/{recap_id}", response_model=RecapOut)
async def update_recap(
    recap_id: uuid.UUID,
    body: RecapUpdate,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> RecapOut:
    return RecapOut.model_validate(await svc.update_recap(user, recap_id, body.model_dump(exclude_unset=True)))


@router.delete("/recaps/{recap_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_recap(
    recap_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: LaboratoryService = Depends(_lab),
) -> Response:
    await svc.delete_recap(user, recap_id)
    return Response(status_code=HTTP_204_NO_CONTENT)
