"""
trade_journal.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and DB sessions.
- Encapsulate app.state access patterns (settings/sessionmaker/permission cache).
- Build the per-request audit context.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.services.audit import AuditService, RequestMeta
from trade_journal.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The settings instance is the one passed to `create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


def permission_cache_dep(request: Request) -> MentorPermissionCache:
    return request.app.state.permission_cache  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def request_meta(request: Request) -> RequestMeta:
    return RequestMeta.from_request(request)


def audit_service(
    session: AsyncSession = Depends(db_session),
    meta: RequestMeta = Depends(request_meta),
) -> AuditService:
    return AuditService(session, meta=meta)
