from __future__ import annotations

import pytest


async def _trade(client, headers, symbol: str = "ES") -> str:
    account = (await client.post("/v1/accounts", json={"name": f"Lab {symbol}"}, headers=headers)).json()
    r = await client.post(
        "/v1/trades",
        json={
            "account_id": account["id"],
            "symbol": symbol,
            "direction": "Long",
            "entry_price": 10.0,
            "lot": 1.0,
            "entry_date": "2024-06-03",
        },
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["trade"]["id"]


async def _experiment(client, headers, **fields) -> dict:
    r = await client.post("/v1/laboratory/experiments", json={"title": "ORB fade", **fields}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_experiment_lifecycle(client, login) -> None:
    headers = await login("lab@example.com")
    exp = await _experiment(
        client,
        headers,
        expected_win_rate=55,
        images=[{"image_url": "https://img.example.com/setup.png", "description": "setup"}],
    )
    assert exp["status"] == "open"
    assert exp["promoted_to_playbook"] is False
    assert [i["description"] for i in exp["images"]] == ["setup"]

    url = f"/v1/laboratory/experiments/{exp['id']}"
    r = await client.patch(url, json={"status": "testing", "category": "reversal"}, headers=headers)
    assert r.status_code == 200
    assert (r.json()["status"], r.json()["category"]) == ("testing", "reversal")
    # A null title is ignored rather than clearing the column.
    r = await client.patch(url, json={"title": None, "promoted_to_playbook": True}, headers=headers)
    assert r.json()["title"] == "ORB fade"
    assert r.json()["promoted_to_playbook"] is True

    listed = (await client.get("/v1/laboratory/experiments", headers=headers)).json()
    assert [e["id"] for e in listed] == [exp["id"]]

    assert (await client.delete(url, headers=headers)).status_code == 204
    assert (await client.get(url, headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_experiment_images(client, login) -> None:
    headers = await login("lab@example.com")
    exp = await _experiment(client, headers)
    url = f"/v1/laboratory/experiments/{exp['id']}/images"

    r = await client.post(
        url,
        json=[{"image_url": "https://img.example.com/a.png"}, {"image_url": "https://img.example.com/b.png"}],
        headers=headers,
    )
    assert r.status_code == 201, r.text
    images = r.json()["images"]
    assert len(images) == 2

    r = await client.post(
        f"{url}/remove",
        json={"image_ids": [images[0]["id"], "00000000-0000-0000-0000-000000000000"]},
        headers=headers,
    )
    assert r.json() == {"removed": 1}
    remaining = (await client.get(f"/v1/laboratory/experiments/{exp['id']}", headers=headers)).json()["images"]
    assert [i["id"] for i in remaining] == [images[1]["id"]]


@pytest.mark.asyncio
async def test_experiment_trade_evidence(client, login) -> None:
    headers = await login("lab@example.com")
    exp = await _experiment(client, headers)
    pro = await _trade(client, headers, "ES")
    contra = await _trade(client, headers, "NQ")
    url = f"/v1/laboratory/experiments/{exp['id']}/trades"

    r = await client.post(url, json={"trade_id": pro}, headers=headers)
    assert r.status_code == 201, r.text
    assert r.json()["category"] == "pro"
    assert r.json()["trade"]["symbol"] == "ES"
    await client.post(url, json={"trade_id": contra, "category": "contra"}, headers=headers)

    r = await client.post(url, json={"trade_id": pro, "category": "contra"}, headers=headers)
    assert r.status_code == 409

    links = (await client.get(url, headers=headers)).json()
    assert {(link["trade_id"], link["category"]) for link in links} == {(pro, "pro"), (contra, "contra")}

    assert (await client.delete(f"{url}/{pro}", headers=headers)).status_code == 204
    assert (await client.delete(f"{url}/{pro}", headers=headers)).status_code == 404
    assert [link["trade_id"] for link in (await client.get(url, headers=headers)).json()] == [contra]


@pytest.mark.asyncio
async def test_laboratory_is_owner_scoped(client, login) -> None:
    owner = await login("owner@example.com")
    other = await login("other@example.com")
    exp = await _experiment(client, owner)
    foreign_trade = await _trade(client, owner)
    own_exp = await _experiment(client, other)

    assert (await client.get(f"/v1/laboratory/experiments/{exp['id']}", headers=other)).status_code == 404
    r = await client.patch(f"/v1/laboratory/experiments/{exp['id']}", json={"status": "validated"}, headers=other)
    assert r.status_code == 404
    assert (await client.get("/v1/laboratory/experiments", headers=other)).json()[0]["id"] == own_exp["id"]

    r = await client.post(
        f"/v1/laboratory/experiments/{own_exp['id']}/trades", json={"trade_id": foreign_trade}, headers=other
    )
    assert r.status_code == 404
    r = await client.post("/v1/laboratory/recaps", json={"title": "x", "trade_ids": [foreign_trade]}, headers=other)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_recaps(client, login) -> None:
    headers = await login("lab@example.com")
    first = await _trade(client, headers, "ES")
    second = await _trade(client, headers, "NQ")

    r = await client.post(
        "/v1/laboratory/recaps",
        json={
            "title": "Week 23",
            "review_type": "weekly",
            "week_start_date": "2024-06-03",
            "week_end_date": "2024-06-07",
            "what_worked": "waiting for the retest",
            "images": ["https://img.example.com/w23.png"],
            "trade_ids": [first, second],
        },
        headers=headers,
    )
    assert r.status_code == 201, r.text
    recap = r.json()
    assert recap["review_type"] == "weekly"
    assert sorted(recap["trade_ids"]) == sorted([first, second])

    url = f"/v1/laboratory/recaps/{recap['id']}"
    r = await client.patch(url, json={"lessons_learned": "size down on Fridays"}, headers=headers)
    assert r.json()["lessons_learned"] == "size down on Fridays"
    assert len(r.json()["trade_ids"]) == 2
    r = await client.patch(url, json={"trade_ids": [second]}, headers=headers)
    assert r.json()["trade_ids"] == [second]

    assert [x["id"] for x in (await client.get("/v1/laboratory/recaps", headers=headers)).json()] == [recap["id"]]
    assert (await client.delete(url, headers=headers)).status_code == 204
    assert (await client.get(url, headers=headers)).status_code == 404
