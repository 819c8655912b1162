from __future__ import annotations

import pytest


async def _account(client, headers, name: str = "Main") -> str:
    r = await client.post("/v1/accounts", json={"name": name}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["id"]


@pytest.mark.asyncio
async def test_save_overwrites_the_day(client, login) -> None:
    headers = await login("early@example.com")
    account_id = await _account(client, headers)

    body = {"account_id": account_id, "date": "2024-06-03", "aerobic": True, "meditation": True}
    r = await client.put("/v1/routines", json=body, headers=headers)
    assert r.status_code == 200, r.text
    first = r.json()
    assert first["aerobic"] is True
    assert first["reading"] is False

    # Saving the same day updates the row; unchecked items go back to False.
    r = await client.put(
        "/v1/routines", json={"account_id": account_id, "date": "2024-06-03", "reading": True}, headers=headers
    )
    second = r.json()
    assert second["id"] == first["id"]
    assert (second["aerobic"], second["meditation"], second["reading"]) == (False, False, True)

    day = await client.get(
        "/v1/routines/day", params={"account_id": account_id, "day": "2024-06-03"}, headers=headers
    )
    assert day.json()["id"] == first["id"]
    empty = await client.get(
        "/v1/routines/day", params={"account_id": account_id, "day": "2024-06-04"}, headers=headers
    )
    assert empty.status_code == 200
    assert empty.json() is None


@pytest.mark.asyncio
async def test_list_is_newest_first_and_filtered(client, login) -> None:
    headers = await login("early@example.com")
    account_id = await _account(client, headers)
    other_id = await _account(client, headers, "Other")
    for day in ("2024-06-01", "2024-06-03", "2024-06-02"):
        await client.put("/v1/routines", json={"account_id": account_id, "date": day}, headers=headers)
    await client.put("/v1/routines", json={"account_id": other_id, "date": "2024-06-02"}, headers=headers)

    listed = (await client.get("/v1/routines", params={"account_id": account_id}, headers=headers)).json()
    assert [r["date"] for r in listed] == ["2024-06-03", "2024-06-02", "2024-06-01"]

    ranged = (
        await client.get(
            "/v1/routines",
            params={"account_id": account_id, "date_from": "2024-06-02", "date_to": "2024-06-02"},
            headers=headers,
        )
    ).json()
    assert [r["account_id"] for r in ranged] == [account_id]


@pytest.mark.asyncio
async def test_routines_are_owner_scoped(client, login) -> None:
    owner = await login("owner@example.com")
    other = await login("other@example.com")
    account_id = await _account(client, owner)
    routine = (
        await client.put("/v1/routines", json={"account_id": account_id, "date": "2024-06-03"}, headers=owner)
    ).json()

    r = await client.put("/v1/routines", json={"account_id": account_id, "date": "2024-06-04"}, headers=other)
    assert r.status_code == 404
    assert (await client.get("/v1/routines", params={"account_id": account_id}, headers=other)).status_code == 404
    assert (await client.delete(f"/v1/routines/{routine['id']}", headers=other)).status_code == 404

    assert (await client.delete(f"/v1/routines/{routine['id']}", headers=owner)).status_code == 204
    assert (await client.get("/v1/routines", params={"account_id": account_id}, headers=owner)).json() == []
