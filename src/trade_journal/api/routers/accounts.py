"""
trade_journal.api.routers.accounts

Trading accounts and per-user settings.

Responsibilities:
- Owner-scoped account CRUD (`/v1/accounts`).
- Read/update the user's lists and asset multipliers (`/v1/settings`).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from trade_journal.api.deps import audit_service, db_session, permission_cache_dep
from trade_journal.api.schemas import AccountOut
from trade_journal.auth.deps import get_current_user
from trade_journal.auth.models import CurrentUser
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.accounts import AccountService, SettingsService
from trade_journal.services.audit import AuditService

router = APIRouter(prefix="/v1", tags=["accounts"])


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    currency: str = Field(default="USD", min_length=1, max_length=8)
    initial_balance: float = Field(default=0.0, ge=0)
    leverage: str = Field(default="1:100", max_length=16)
    max_drawdown: float = Field(default=0.0, ge=0)


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    currency: str | None = Field(default=None, min_length=1, max_length=8)
    initial_balance: float | None = Field(default=None, ge=0)
    leverage: str | None = Field(default=None, max_length=16)
    max_drawdown: float | None = Field(default=None, ge=0)


class SettingsBody(BaseModel):
    currencies: list[str] | None = None
    leverages: list[str] | None = None
    assets: dict[str, float] | None = None
    strategies: list[str] | None = None
    setups: list[str] | None = None


class SettingsOut(BaseModel):
    currencies: list[str]
    leverages: list[str]
    assets: dict[str, float]
    strategies: list[str]
    setups: list[str]


def _accounts(
    session: AsyncSession = Depends(db_session),
    cache: MentorPermissionCache = Depends(permission_cache_dep),
    audit: AuditService = Depends(audit_service),
) -> AccountService:
    return AccountService(session, cache=cache, audit=audit)


@router.post("/accounts", response_model=AccountOut, status_code=HTTP_201_CREATED)
async def create_account(
    body: AccountCreate,
    user: CurrentUser = Depends(get_current_user),
    svc: AccountService = Depends(_accounts),
) -> AccountOut:
    return AccountOut.model_validate(await svc.create(user, body.model_dump()))


@router.get("/accounts", response_model=list[AccountOut])
async def list_accounts(
    user: CurrentUser = Depends(get_current_user),
    svc: AccountService = Depends(_accounts),
) -> list[AccountOut]:
    return [AccountOut.model_validate(a) for a in await svc.list(user)]


@router.get("/accounts/{account_id}", response_model=AccountOut)
async def get_account(
    account_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: AccountService = Depends(_accounts),
) -> AccountOut:
    return AccountOut.model_validate(await svc.get_owned(user, account_id))


@router.patch("/accounts/{account_id}", response_model=AccountOut)
async def update_account(
    account_id: uuid.UUID,
    body: AccountUpdate,
    user: CurrentUser = Depends(get_current_user),
    svc: AccountService = Depends(_accounts),
) -> AccountOut:
    account = await svc.update(user, account_id, body.model_dump(exclude_unset=True))
    return AccountOut.model_validate(account)


@router.delete("/accounts/{account_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_account(
    account_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    svc: AccountService = Depends(_accounts),
) -> Response:
    await svc.delete(user, account_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.get("/settings", response_model=SettingsOut)
async def get_settings_route(
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> SettingsOut:
    row = await SettingsService(session).get(user)
    return SettingsOut.model_validate(row, from_attributes=True)


@router.put("/settings", response_model=SettingsOut)
async def update_settings_route(
    body: SettingsBody,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> SettingsOut:
    row = await SettingsService(session).update(user, body.model_dump(exclude_none=True))
    return SettingsOut.model_validate(row, from_attributes=True)
