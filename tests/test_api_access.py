from __future__ import annotations

import jwt
import pytest


@pytest.mark.asyncio
async def test_missing_token_is_401(client) -> None:
    r = await client.get("/v1/accounts")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_is_401(client) -> None:
    r = await client.get("/v1/accounts", headers={"authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_profile(client, login) -> None:
    headers = await login("ana@example.com", name="Ana")
    r = await client.get("/v1/me", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["email"] == "ana@example.com"
    assert body["role"] == "user"
    assert body["status"] == "approved"


@pytest.mark.asyncio
async def test_pending_user_can_only_read_profile(client, login) -> None:
    headers = await login("new@example.com", status="pending")
    r = await client.get("/v1/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "pending"

    r = await client.get("/v1/accounts", headers=headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "account_pending"


@pytest.mark.asyncio
async def test_suspension_applies_to_existing_tokens(client, login) -> None:
    headers = await login("bob@example.com")
    assert (await client.get("/v1/accounts", headers=headers)).status_code == 200

    await login("bob@example.com", status="suspended")
    r = await client.get("/v1/accounts", headers=headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "account_suspended"
    assert (await client.get("/v1/me", headers=headers)).status_code == 403


@pytest.mark.asyncio
async def test_admin_routes_need_admin_role(client, login) -> None:
    user = await login("user@example.com")
    assert (await client.get("/v1/admin/users", headers=user)).status_code == 403

    admin = await login("root@example.com", role="admin")
    assert (await client.get("/v1/admin/users", headers=admin)).status_code == 200


@pytest.mark.asyncio
async def test_other_users_rows_are_hidden(client, login) -> None:
    owner = await login("owner@example.com")
    other = await login("other@example.com")
    account = (await client.post("/v1/accounts", json={"name": "Main"}, headers=owner)).json()

    r = await client.get(f"/v1/accounts/{account['id']}", headers=other)
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_role_comes_from_the_user_row(client, login) -> None:
    r = await client.post("/v1/dev/token", json={"email": "later@example.com"})
    token = r.json()["access_token"]
    assert "roles" not in jwt.decode(token, options={"verify_signature": False})

    headers = {"authorization": f"Bearer {token}"}
    assert (await client.get("/v1/admin/users", headers=headers)).status_code == 403
    # Re-minting as admin updates the row; the first token picks it up.
    await login("later@example.com", role="admin")
    assert (await client.get("/v1/admin/users", headers=headers)).status_code == 200
