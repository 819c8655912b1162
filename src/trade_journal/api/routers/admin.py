"""
trade_journal.api.routers.admin

Admin-only user management and audit log listing.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_204_NO_CONTENT

from trade_journal.api.deps import audit_service, db_session, permission_cache_dep
from trade_journal.api.schemas import UserOut
from trade_journal.auth.deps import require_roles
from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import UserRole, UserStatus
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.admin import AdminService
from trade_journal.services.audit import AuditService

router = APIRouter(prefix="/v1/admin", tags=["admin"])

_admin_only = require_roles("admin")


class StatusChange(BaseModel):
    status: UserStatus
    reason: str | None = Field(default=None, max_length=1000)


class RoleChange(BaseModel):
    role: UserRole
    reason: str | None = Field(default=None, max_length=1000)


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    actor_email: str | None
    action: str
    resource_type: str
    resource_id: str
    target_user_id: uuid.UUID | None
    target_user_email: str | None
    target_user_name: str | None
    old_values: dict[str, Any]
    new_values: dict[str, Any]
    reason: str | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


def _admin(
    session: AsyncSession = Depends(db_session),
    audit: AuditService = Depends(audit_service),
    cache: MentorPermissionCache = Depends(permission_cache_dep),
) -> AdminService:
    return AdminService(session, audit=audit, cache=cache)


@router.get("/users", response_model=list[UserOut])
async def list_users(
    status: UserStatus | None = None,
    role: UserRole | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    admin: CurrentUser = Depends(_admin_only),
    svc: AdminService = Depends(_admin),
) -> list[UserOut]:
    users = await svc.list_users(status=status, role=role, limit=limit, offset=offset)
    return [UserOut.model_validate(u) for u in users]


@router.get("/stats")
async def user_stats(
    admin: CurrentUser = Depends(_admin_only),
    svc: AdminService = Depends(_admin),
) -> dict[str, Any]:
    return await svc.stats()


@router.patch("/users/{user_id}/status", response_model=UserOut)
async def change_status(
    user_id: uuid.UUID,
    body: StatusChange,
    admin: CurrentUser = Depends(_admin_only),
    svc: AdminService = Depends(_admin),
) -> UserOut:
    user = await svc.change_status(admin, user_id, body.status, reason=body.reason)
    return UserOut.model_validate(user)


@router.patch("/users/{user_id}/role", response_model=UserOut)
async def change_role(
    user_id: uuid.UUID,
    body: RoleChange,
    admin: CurrentUser = Depends(_admin_only),
    svc: AdminService = Depends(_admin),
) -> UserOut:
    user = await svc.change_role(admin, user_id, body.role, reason=body.reason)
    return UserOut.model_validate(user)


@router.delete("/users/{user_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    admin: CurrentUser = Depends(_admin_only),
    svc: AdminService = Depends(_admin),
) -> Response:
    await svc.delete_user(admin, user_id)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.get("/audit-logs", response_model=list[AuditLogOut])
async def audit_logs(
    action: str | None = None,
    resource_type: str | None = None,
    actor_id: uuid.UUID | None = None,
    target_user_id: uuid.UUID | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    admin: CurrentUser = Depends(_admin_only),
    svc: AdminService = Depends(_admin),
) -> list[AuditLogOut]:
    rows = await svc.audit_logs(
        action=action,
        resource_type=resource_type,
        actor_id=actor_id,
        target_user_id=target_user_id,
        limit=limit,
        offset=offset,
    )
    return [AuditLogOut.model_validate(r) for r in rows]
