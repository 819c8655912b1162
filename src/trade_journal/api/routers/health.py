"""
trade_journal.api.routers.health

Liveness and readiness endpoints for the journal API.

Responsibilities:
- `/healthz`: process is up; reports service name and version.
- `/readyz`: database answers and the mentor permission cache is reachable.
  Answers 503 instead of 500 when the database is down.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from trade_journal import __version__
from trade_journal.api.deps import db_session, permission_cache_dep, settings_dep
from trade_journal.observability.logging import get_logger
from trade_journal.observability.redaction import safe_error
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.settings import Settings

log = get_logger(__name__)

router = APIRouter()


@router.get("/healthz")
async def healthz(settings: Settings = Depends(settings_dep)) -> dict[str, str]:
    return {"status": "ok", "service": settings.service_name, "version": __version__}


@router.get("/readyz", response_model=None)
async def readyz(
    session: AsyncSession = Depends(db_session),
    cache: MentorPermissionCache = Depends(permission_cache_dep),
) -> dict[str, Any] | JSONResponse:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.warning("readiness_check_failed", error=safe_error(e))
        return JSONResponse({"status": "unavailable", "database": "down"}, status_code=HTTP_503_SERVICE_UNAVAILABLE)
    return {"status": "ready", "database": "up", "permission_cache": cache.stats()}
