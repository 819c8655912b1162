from __future__ import annotations

import pytest
from starlette.requests import Request

from trade_journal.db.repositories.audit import AuditRepo
from trade_journal.observability.middleware import client_ip


async def _user_id(client, headers) -> str:
    return (await client.get("/v1/me", headers=headers)).json()["id"]


@pytest.mark.asyncio
async def test_approve_pending_user(client, login) -> None:
    admin = await login("root@example.com", role="admin")
    pending = await login("wait@example.com", status="pending")
    user_id = await _user_id(client, pending)

    listed = (await client.get("/v1/admin/users", params={"status": "pending"}, headers=admin)).json()
    assert [u["id"] for u in listed] == [user_id]

    r = await client.patch(
        f"/v1/admin/users/{user_id}/status", json={"status": "approved", "reason": "verified"}, headers=admin
    )
    assert r.status_code == 200
    assert r.json()["status"] == "approved"
    assert r.json()["approved_at"] is not None

    # The old token works as soon as the row changes.
    assert (await client.get("/v1/accounts", headers=pending)).status_code == 200

    logs = (await client.get("/v1/admin/audit-logs", params={"action": "user_status_change"}, headers=admin)).json()
    assert len(logs) == 1
    assert logs[0]["target_user_id"] == user_id
    assert logs[0]["old_values"] == {"status": "pending"}
    assert logs[0]["new_values"] == {"status": "approved"}
    assert logs[0]["reason"] == "verified"


@pytest.mark.asyncio
async def test_same_status_is_a_no_op(client, login) -> None:
    admin = await login("root@example.com", role="admin")
    user_id = await _user_id(client, await login("ok@example.com"))
    await client.patch(f"/v1/admin/users/{user_id}/status", json={"status": "approved"}, headers=admin)
    logs = (await client.get("/v1/admin/audit-logs", headers=admin)).json()
    assert logs == []


@pytest.mark.asyncio
async def test_role_change_and_self_guard(client, login) -> None:
    admin = await login("root@example.com", role="admin")
    admin_id = await _user_id(client, admin)
    user_id = await _user_id(client, await login("coach@example.com"))

    r = await client.patch(f"/v1/admin/users/{user_id}/role", json={"role": "mentor"}, headers=admin)
    assert r.json()["role"] == "mentor"

    r = await client.patch(f"/v1/admin/users/{admin_id}/role", json={"role": "user"}, headers=admin)
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_delete_user(client, login) -> None:
    admin = await login("root@example.com", role="admin")
    victim = await login("gone@example.com")
    user_id = await _user_id(client, victim)
    await client.post("/v1/accounts", json={"name": "Main"}, headers=victim)

    assert (await client.delete(f"/v1/admin/users/{user_id}", headers=admin)).status_code == 204
    assert (await client.get("/v1/me", headers=victim)).status_code == 401
    assert (await client.delete(f"/v1/admin/users/{user_id}", headers=admin)).status_code == 404

    logs = (await client.get("/v1/admin/audit-logs", params={"target_user_id": user_id}, headers=admin)).json()
    assert [log["action"] for log in logs] == ["delete_user"]
    assert logs[0]["target_user_email"] == "gone@example.com"


@pytest.mark.asyncio
async def test_stats(client, login) -> None:
    admin = await login("root@example.com", role="admin")
    await login("a@example.com")
    await login("b@example.com", status="pending")

    stats = (await client.get("/v1/admin/stats", headers=admin)).json()
    assert stats["total"] == 3
    assert stats["by_status"]["pending"] == 1
    assert stats["admins"] == 1
    assert stats["signups_today"] == 3


@pytest.mark.asyncio
async def test_failed_audit_write_keeps_the_change(client, login, monkeypatch) -> None:
    admin = await login("root@example.com", role="admin")
    user_id = await _user_id(client, await login("wait@example.com", status="pending"))

    add = AuditRepo.add

    async def _broken_add(self, **fields):
        # resource_type is NOT NULL, so the insert fails inside the savepoint.
        return await add(self, **{**fields, "resource_type": None})

    monkeypatch.setattr(AuditRepo, "add", _broken_add)
    r = await client.patch(f"/v1/admin/users/{user_id}/status", json={"status": "approved"}, headers=admin)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "approved"
    monkeypatch.undo()

    listed = (await client.get("/v1/admin/users", params={"status": "approved"}, headers=admin)).json()
    assert user_id in [u["id"] for u in listed]
    assert (await client.get("/v1/admin/audit-logs", headers=admin)).json() == []


@pytest.mark.asyncio
async def test_audit_records_forwarded_client_ip(client, login) -> None:
    admin = await login("root@example.com", role="admin")
    user_id = await _user_id(client, await login("wait@example.com", status="pending"))

    r = await client.patch(
        f"/v1/admin/users/{user_id}/status",
        json={"status": "approved"},
        headers={**admin, "x-forwarded-for": "203.0.113.9, 10.0.0.1", "user-agent": "ops-console/1.0"},
    )
    assert r.status_code == 200
    await client.patch(f"/v1/admin/users/{user_id}/status", json={"status": "suspended"}, headers=admin)

    logs = (await client.get("/v1/admin/audit-logs", headers=admin)).json()
    by_status = {log["new_values"]["status"]: log for log in logs}
    assert by_status["approved"]["ip_address"] == "203.0.113.9"
    assert by_status["approved"]["user_agent"] == "ops-console/1.0"
    # Without proxy headers the socket peer is recorded.
    assert by_status["suspended"]["ip_address"] == "127.0.0.1"


def _request(headers: dict[str, str], peer: tuple[str, int] | None = ("10.0.0.2", 5000)) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": [(k.encode(), v.encode()) for k, v in headers.items()],
            "client": peer,
        }
    )


def test_client_ip_prefers_forwarded_headers() -> None:
    assert client_ip(_request({"x-forwarded-for": " 198.51.100.4 , 10.0.0.1"})) == "198.51.100.4"
    assert client_ip(_request({"x-real-ip": "198.51.100.7"})) == "198.51.100.7"
    assert client_ip(_request({})) == "10.0.0.2"
    assert client_ip(_request({}, peer=None)) is None
