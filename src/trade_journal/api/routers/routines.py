"""
trade_journal.api.routers.routines

Daily routine checklists (`/v1/routines`).
"""

from __future__ import annotations

import datetime as dt
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_204_NO_CONTENT

from trade_journal.api.deps import db_session
from trade_journal.api.schemas import RoutineOut
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.services.routines import RoutineService

router = APIRouter(prefix="/v1/routines", tags=["routines"])


class RoutineSave(BaseModel):
    account_id: uuid.UUID
    date: dt.date
    aerobic: bool = False
    diet: bool = False
    reading: bool = False
    meditation: bool = False
    pre_market: bool = False
    prayer: bool = False


def _routines(session: AsyncSession = Depends(db_session)) -> RoutineService:
    return RoutineService(session)


@router.put("", response_model=RoutineOut)
async def save_routine(
    body: RoutineSave,
    user: CurrentUser = Depends(get_current_user),
    svc: RoutineService = Depends(_routines),
) -> RoutineOut:
    checks = body.model_dump(exclude={"account_id", "date"})
    return RoutineOut.model_validate(await svc.save(user, body.account_id, body.date, checks))


@router.get("", response_model=list[RoutineOut])
async def list_routines(
    account_id: uuid.UUID,
    date_from: date | None = None,
    date_to: date | None = None,
    user: CurrentUser = Depends(get_current_user),
    svc: RoutineService = Depends(_routines),
) -> list[RoutineOut]:
    routines = await svc.list(user, account_id, date_from=date_from, date_to=date_to)
    return [RoutineOut.model_validate(r) for r in routines]


@router.get("/day", response_model=RoutineOut | None)
async def routine_for_day(
    account_id: uuid.UUID,
    day: date,
    user: CurrentUser = Depends(get_current_user),
    svc: RoutineService = Depends(_routines),
) -> RoutineOut | None:
    routine = await svc.for_day(user, account_id, day)
    return RoutineOut.model_validate(routine) if routine is not None else None


@router.delete("/{routine_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_routine(
    routine_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: RoutineService = Depends(_routines),
) -> Response:
    await svc.delete(user, routine_id)
    return Response(status_code=HTTP_204_NO_CONTENT)
