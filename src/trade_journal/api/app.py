"""
trade_journal.api.app

FastAPI app factory for the trade journal service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine/session factory, permission cache).
- Map domain errors to HTTP responses in one place.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from trade_journal import __version__
from trade_journal.api.routers.accounts import router as accounts_router
from trade_journal.api.routers.admin import router as admin_router
from trade_journal.api.routers.analytics import router as analytics_router
from trade_journal.api.routers.community import router as community_router
from trade_journal.api.routers.dev_auth import router as dev_auth_router
from trade_journal.api.routers.health import router as health_router
from trade_journal.api.routers.journal import router as journal_router
from trade_journal.api.routers.journal import shared_router
from trade_journal.api.routers.laboratory import router as laboratory_router
from trade_journal.api.routers.me import router as me_router
from trade_journal.api.routers.mental import router as mental_router
from trade_journal.api.routers.mentor import router as mentor_router
from trade_journal.api.routers.playbooks import router as playbooks_router
from trade_journal.api.routers.reviews import router as reviews_router
from trade_journal.api.routers.routines import router as routines_router
from trade_journal.api.routers.trades import router as trades_router
from trade_journal.db.init_db import init_db
from trade_journal.db.session import create_engine, create_sessionmaker
from trade_journal.errors import DomainError
from trade_journal.observability.logging import configure_logging, get_logger
from trade_journal.observability.middleware import RequestContextMiddleware
from trade_journal.permission_cache import MentorPermissionCache
from trade_journal.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod uses Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Trade Journal",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.permission_cache = MentorPermissionCache(ttl_seconds=settings.permission_cache_ttl_seconds)

    @app.exception_handler(DomainError)
    async def _domain_error(request: Request, exc: DomainError) -> JSONResponse:
        log.info("domain_error", code=exc.code, status=exc.status_code, path=request.url.path)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(me_router)
    app.include_router(accounts_router)
    app.include_router(trades_router)
    app.include_router(journal_router)
    app.include_router(shared_router)
    app.include_router(routines_router)
    app.include_router(mental_router)
    app.include_router(playbooks_router)
    app.include_router(laboratory_router)
    app.include_router(community_router)
    app.include_router(mentor_router)
    app.include_router(reviews_router)
    app.include_router(analytics_router)
    app.include_router(admin_router)
    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business rules live in services and analytics.
