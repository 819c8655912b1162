"""
trade_journal.services.audit

Audit trail for sensitive actions.

Responsibilities:
- Record who did what to which resource, with before/after values and request context.
- Keep target-user snapshots so rows stay meaningful after the user is deleted.
- Never fail the caller's operation: writes run inside a SAVEPOINT and errors are logged.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession

from trade_journal.auth.models import CurrentUser
from trade_journal.db.models import AuditLog, User
from trade_journal.db.repositories.audit import AuditRepo
from trade_journal.observability.logging import get_logger
from trade_journal.observability.middleware import client_ip
from trade_journal.observability.redaction import safe_error

log = get_logger(__name__)


class AuditAction(enum.StrEnum):
    delete_user = "delete_user"
    user_status_change = "user_status_change"
    user_role_change = "user_role_change"
    account_delete = "account_delete"
    mentor_invite_create = "mentor_invite_create"
    mentor_invite_accept = "mentor_invite_accept"
    mentor_invite_reject = "mentor_invite_reject"
    mentor_invite_revoke = "mentor_invite_revoke"
    mentor_permission_change = "mentor_permission_change"
    journal_share_create = "journal_share_create"
    journal_share_revoke = "journal_share_revoke"
    playbook_share = "playbook_share"
    playbook_unshare = "playbook_unshare"
    data_export = "data_export"


@dataclass(frozen=True, slots=True)
class RequestMeta:
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: Any) -> RequestMeta:
        return cls(ip_address=client_ip(request), user_agent=request.headers.get("user-agent"))


@dataclass(frozen=True, slots=True)
class TargetUser:
    id: uuid.UUID
    email: str | None = None
    name: str | None = None

    @classmethod
    def of(cls, user: User | CurrentUser) -> TargetUser:
        return cls(id=user.id, email=user.email, name=user.name)


def _json_safe(values: dict[str, Any] | None) -> dict[str, Any]:
    if not values:
        return {}
    return to_jsonable_python(values, fallback=str)


class AuditService:
    def __init__(self, session: AsyncSession, *, meta: RequestMeta | None = None) -> None:
        self._session = session
        self._meta = meta or RequestMeta()

    async def log_event(
        self,
        *,
        actor: CurrentUser,
        action: AuditAction | str,
        resource_type: str,
        resource_id: uuid.UUID | str,
        target: TargetUser | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        reason: str | None = None,
        session_id: str | None = None,
    ) -> AuditLog | None:
        action_value = action.value if isinstance(action, AuditAction) else str(action)
        try:
            async with self._session.begin_nested():
                row = await AuditRepo(self._session).add(
                    user_id=actor.id,
                    actor_email=actor.email,
                    action=action_value,
                    resource_type=resource_type,
                    resource_id=str(resource_id),
                    target_user_id=target.id if target else None,
                    target_user_email=target.email if target else None,
                    target_user_name=target.name if target else None,
                    old_values=_json_safe(old_values),
                    new_values=_json_safe(new_values),
                    reason=reason,
                    session_id=session_id,
                    ip_address=self._meta.ip_address,
                    user_agent=self._meta.user_agent,
                )
        except Exception as e:  # noqa: BLE001
            log.warning("audit_write_failed", action=action_value, error=safe_error(e))
            return None

        log.info("audit_event", action=action_value, resource_type=resource_type, resource_id=str(resource_id))
        return row

    async def log_user_deletion(
        self, *, actor: CurrentUser, target: TargetUser, previous_status: str | None = None
    ) -> AuditLog | None:
        return await self.log_event(
            actor=actor,
            action=AuditAction.delete_user,
            resource_type="user",
            resource_id=target.id,
            target=target,
            old_values={"status": previous_status} if previous_status else None,
            new_values={"deleted": True},
        )

    async def log_user_status_change(
        self,
        *,
        actor: CurrentUser,
        target: TargetUser,
        old_status: str,
        new_status: str,
        reason: str | None = None,
    ) -> AuditLog | None:
        return await self.log_event(
            actor=actor,
            action=AuditAction.user_status_change,
            resource_type="user",
            resource_id=target.id,
            target=target,
            old_values={"status": old_status},
            new_values={"status": new_status},
            reason=reason,
        )

    async def log_user_role_change(
        self,
        *,
        actor: CurrentUser,
        target: TargetUser,
        old_role: str,
        new_role: str,
        reason: str | None = None,
    ) -> AuditLog | None:
        return await self.log_event(
            actor=actor,
            action=AuditAction.user_role_change,
            resource_type="user",
            resource_id=target.id,
            target=target,
            old_values={"role": old_role},
            new_values={"role": new_role},
            reason=reason,
        )

    async def list_logs(
        self,
        *,
        action: str | None = None,
        resource_type: str | None = None,
        actor_id: uuid.UUID | None = None,
        target_user_id: uuid.UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditLog]:
        return await AuditRepo(self._session).list(
            action=action,
            resource_type=resource_type,
            actor_id=actor_id,
            target_user_id=target_user_id,
            limit=limit,
            offset=offset,
        )


# --- Module Notes -----------------------------------------------------------
# Audit rows are written in the caller's transaction; they become durable when the
# calling service commits. `ip_address` is redacted from logs but stored on the row.
