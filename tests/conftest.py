"""
tests.conftest

Shared fixtures: an app bound to a throwaway SQLite file and an HTTP client.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from trade_journal.api.app import create_app
from trade_journal.settings import Settings

Login = Callable[..., Awaitable[dict[str, str]]]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path}/test.db",
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not drive lifespan; do it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def login(client: httpx.AsyncClient) -> Login:
    """
    Upsert a user through the dev token route and return auth headers.
    """

    async def _login(email: str, **fields: str) -> dict[str, str]:
        r = await client.post("/v1/dev/token", json={"email": email, **fields})
        assert r.status_code == 200, r.text
        return {"authorization": f"Bearer {r.json()['access_token']}"}

    return _login
