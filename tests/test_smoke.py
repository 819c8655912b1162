"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.
"""

from __future__ import annotations

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from trade_journal import __version__
from trade_journal.api.app import create_app
from trade_journal.api.deps import db_session
from trade_journal.settings import Settings


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "trade-journal", "version": __version__}

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"
    assert r.json()["permission_cache"]["total_mentors"] == 0


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz", headers={"x-request-id": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"


@pytest.mark.asyncio
async def test_dev_token_disabled_in_prod(tmp_path) -> None:
    settings = Settings(env="prod", database_url=f"sqlite+aiosqlite:///{tmp_path}/prod.db")
    app = create_app(settings=settings)
    transport = httpx.ASGITransport(app=app)
    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.post("/v1/dev/token", json={"email": "someone@example.com"})
            assert r.status_code == 404



class _DownSession:
    async def execute(self, *_args, **_kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("refused"))


@pytest.mark.asyncio
async def test_readyz_reports_database_outage(app, client: httpx.AsyncClient) -> None:
    async def _down():
        yield _DownSession()

    app.dependency_overrides[db_session] = _down
    try:
        r = await client.get("/readyz")
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 503
    assert r.json() == {"status": "unavailable", "database": "down"}


def test_prod_start_needs_a_real_secret(tmp_path, monkeypatch) -> None:
    from trade_journal.api import __main__ as entry

    started = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda *a, **kw: started.append(kw))
    db = f"sqlite+aiosqlite:///{tmp_path}/entry.db"

    monkeypatch.setattr(entry, "get_settings", lambda: Settings(env="prod", database_url=db))
    with pytest.raises(SystemExit):
        entry.main()
    assert started == []

    monkeypatch.setattr(
        entry, "get_settings", lambda: Settings(env="prod", database_url=db, jwt_secret="s3cret-for-prod")
    )
    entry.main()
    assert started[0]["access_log"] is False
