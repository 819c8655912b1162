"""
trade_journal.api.routers.dev_auth

Development token minting (disabled in prod).

Responsibilities:
- Upsert a user by email with the requested role/status.
- Mint a short-lived JWT whose subject is the user id.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from trade_journal.api.deps import db_session, settings_dep
from trade_journal.auth.jwt import JwtConfig, issue_token
from trade_journal.db.models import UserRole, UserStatus
from trade_journal.services.users import UserService
from trade_journal.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    email: EmailStr
    name: str | None = Field(default=None, max_length=256)
    role: UserRole | None = None
    status: UserStatus | None = None
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: uuid.UUID


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    user = await UserService(session).upsert_for_token(
        email=body.email, name=body.name, role=body.role, status=body.status
    )
    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=str(user.id),
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token, user_id=user.id)
