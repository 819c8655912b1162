"""
trade_journal.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Resolve the principal to an active `CurrentUser` from the users table.
- Enforce role checks via reusable dependency factories.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from trade_journal.api.deps import db_session, settings_dep
from trade_journal.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from trade_journal.auth.models import CurrentUser, Principal
from trade_journal.services.users import UserService
from trade_journal.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    subject = str(payload.get("sub", ""))
    if not subject:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    return Principal(subject=subject)


async def _resolve(principal: Principal, session: AsyncSession) -> CurrentUser:
    user_id = principal.user_id
    user = await UserService(session).resolve(user_id) if user_id is not None else None
    if user is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unknown user")
    if user.status in ("suspended", "banned"):
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="account_suspended")
    return user


async def get_user_allow_pending(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> CurrentUser:
    return await _resolve(principal, session)


async def get_current_user(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> CurrentUser:
    user = await _resolve(principal, session)
    if user.status == "pending":
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="account_pending")
    return user


def require_roles(*required: str):
    required_set = frozenset(required)

    def _dep(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        # Admin bypasses role checks.
        if user.is_admin:
            return user
        if user.role not in required_set:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user

    return _dep


# --- Module Notes -----------------------------------------------------------
# Authorization reads role/status from the users table on every request, so admin
# changes (suspension, role updates) apply without waiting for tokens to expire.
