from __future__ import annotations

import pytest


async def _setup(client, headers) -> tuple[str, str]:
    account = (await client.post("/v1/accounts", json={"name": "Main"}, headers=headers)).json()
    trade = (
        await client.post(
            "/v1/trades",
            json={
                "account_id": account["id"],
                "symbol": "ES",
                "direction": "Short",
                "entry_price": 50.0,
                "lot": 1.0,
                "entry_date": "2024-06-03",
            },
            headers=headers,
        )
    ).json()["trade"]
    return account["id"], trade["id"]


async def _entry(client, headers, account_id: str, **fields) -> dict:
    body = {"account_id": account_id, "date": "2024-06-03", "title": "Monday", **fields}
    r = await client.post("/v1/journal", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_journal_crud_with_images(client, login) -> None:
    headers = await login("writer@example.com")
    account_id, trade_id = await _setup(client, headers)
    images = [
        {"url": "https://img.example.com/b.png", "path": "u/b.png", "timeframe": "5m", "display_order": 1},
        {"url": "https://img.example.com/a.png", "path": "u/a.png", "timeframe": "4H", "display_order": 0},
    ]
    entry = await _entry(client, headers, account_id, trade_id=trade_id, images=images)
    assert [i["timeframe"] for i in entry["images"]] == ["4H", "5m"]
    assert entry["trade_id"] == trade_id

    r = await client.patch(
        f"/v1/journal/{entry['id']}", json={"notes": "followed plan", "images": []}, headers=headers
    )
    assert r.status_code == 200
    assert r.json()["notes"] == "followed plan"
    assert r.json()["images"] == []

    listed = (await client.get("/v1/journal", params={"date_from": "2024-06-01"}, headers=headers)).json()
    assert [e["id"] for e in listed] == [entry["id"]]

    assert (await client.delete(f"/v1/journal/{entry['id']}", headers=headers)).status_code == 204
    assert (await client.get(f"/v1/journal/{entry['id']}", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_entry_cannot_link_foreign_trade(client, login) -> None:
    owner = await login("owner@example.com")
    other = await login("other@example.com")
    _, trade_id = await _setup(client, owner)
    account_id, _ = await _setup(client, other)
    r = await client.post(
        "/v1/journal",
        json={"account_id": account_id, "date": "2024-06-03", "title": "x", "trade_id": trade_id},
        headers=other,
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_share_link_lifecycle(client, login) -> None:
    headers = await login("writer@example.com")
    account_id, trade_id = await _setup(client, headers)
    entry = await _entry(client, headers, account_id, trade_id=trade_id)

    link = (await client.post(f"/v1/journal/{entry['id']}/share", headers=headers)).json()
    again = (await client.post(f"/v1/journal/{entry['id']}/share", headers=headers)).json()
    assert again["share_token"] == link["share_token"]

    # Public view needs no token.
    r = await client.get(f"/v1/shared/{link['share_token']}")
    assert r.status_code == 200
    body = r.json()
    assert body["entry"]["title"] == "Monday"
    assert body["trade"]["id"] == trade_id
    assert body["view_count"] == 1
    assert (await client.get(f"/v1/shared/{link['share_token']}")).json()["view_count"] == 2

    r = await client.delete(f"/v1/journal/{entry['id']}/share", headers=headers)
    assert r.json() == {"revoked": 1}
    assert (await client.get(f"/v1/shared/{link['share_token']}")).status_code == 404


@pytest.mark.asyncio
async def test_unknown_share_token(client) -> None:
    r = await client.get("/v1/shared/00000000-0000-0000-0000-000000000000")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_only_owner_can_share(client, login) -> None:
    owner = await login("owner@example.com")
    other = await login("other@example.com")
    account_id, _ = await _setup(client, owner)
    entry = await _entry(client, owner, account_id)
    assert (await client.post(f"/v1/journal/{entry['id']}/share", headers=other)).status_code == 404


@pytest.mark.asyncio
async def test_mental_entries_and_zone(client, login) -> None:
    headers = await login("mind@example.com")
    for zone in ("A-Game", "C-Game", None):
        body = {"emotion": "calm", "zone_detected": zone} if zone else {"emotion": "unsure"}
        r = await client.post("/v1/mental", json=body, headers=headers)
        assert r.status_code == 201, r.text

    entries = (await client.get("/v1/mental", headers=headers)).json()
    assert len(entries) == 3
    assert entries[0]["source"] == "grid"

    zone = (await client.get("/v1/mental/zone", params={"last": 10}, headers=headers)).json()
    assert zone["entries"] == 3
    assert zone["distribution"]["A-Game"] == 1

    entry_id = entries[0]["id"]
    r = await client.patch(f"/v1/mental/{entry_id}", json={"mistake": "revenge trade"}, headers=headers)
    assert r.json()["mistake"] == "revenge trade"
    assert (await client.delete(f"/v1/mental/{entry_id}", headers=headers)).status_code == 204


async def _trade(client, headers, account_id: str, symbol: str = "NQ") -> str:
    r = await client.post(
        "/v1/trades",
        json={
            "account_id": account_id,
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


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_account_scoped(client, login) -> None:
    headers = await login("writer@example.com")
    account_id, _ = await _setup(client, headers)
    other_account = (await client.post("/v1/accounts", json={"name": "Other"}, headers=headers)).json()["id"]
    hit = await _entry(client, headers, account_id, title="Opening Drive", notes="waited for VWAP")
    await _entry(client, headers, account_id, title="Chop day", analysis="no edge")
    await _entry(client, headers, other_account, title="vwap reclaim")

    r = await client.get("/v1/journal/search", params={"account_id": account_id, "q": "VwAp"}, headers=headers)
    assert r.status_code == 200
    assert [e["id"] for e in r.json()] == [hit["id"]]

    # LIKE wildcards are matched literally.
    r = await client.get("/v1/journal/search", params={"account_id": account_id, "q": "%"}, headers=headers)
    assert r.json() == []


@pytest.mark.asyncio
async def test_search_needs_own_account(client, login) -> None:
    owner = await login("owner@example.com")
    other = await login("other@example.com")
    account_id, _ = await _setup(client, owner)
    r = await client.get("/v1/journal/search", params={"account_id": account_id, "q": "x"}, headers=other)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_entry_links_several_trades(client, login) -> None:
    headers = await login("writer@example.com")
    account_id, first = await _setup(client, headers)
    second = await _trade(client, headers, account_id)
    third = await _trade(client, headers, account_id, symbol="CL")

    entry = await _entry(client, headers, account_id, trade_ids=[first, second, first])
    assert sorted(entry["trade_ids"]) == sorted([first, second])

    r = await client.post(f"/v1/journal/{entry['id']}/trades/{third}", headers=headers)
    assert r.status_code == 200
    assert set(r.json()["trade_ids"]) == {first, second, third}
    # Linking twice is a no-op.
    r = await client.post(f"/v1/journal/{entry['id']}/trades/{third}", headers=headers)
    assert len(r.json()["trade_ids"]) == 3

    r = await client.delete(f"/v1/journal/{entry['id']}/trades/{first}", headers=headers)
    assert set(r.json()["trade_ids"]) == {second, third}
    assert (await client.delete(f"/v1/journal/{entry['id']}/trades/{first}", headers=headers)).status_code == 404

    r = await client.patch(f"/v1/journal/{entry['id']}", json={"trade_ids": [first]}, headers=headers)
    assert r.json()["trade_ids"] == [first]
    r = await client.patch(f"/v1/journal/{entry['id']}", json={"notes": "kept"}, headers=headers)
    assert r.json()["trade_ids"] == [first]

    link = (await client.post(f"/v1/journal/{entry['id']}/share", headers=headers)).json()
    shared = (await client.get(f"/v1/shared/{link['share_token']}")).json()
    assert [t["id"] for t in shared["linked_trades"]] == [first]


@pytest.mark.asyncio
async def test_linked_trades_must_be_owned(client, login) -> None:
    owner = await login("owner@example.com")
    other = await login("other@example.com")
    _, foreign = await _setup(client, owner)
    account_id, mine = await _setup(client, other)

    r = await client.post(
        "/v1/journal",
        json={"account_id": account_id, "date": "2024-06-03", "title": "x", "trade_ids": [mine, foreign]},
        headers=other,
    )
    assert r.status_code == 404

    entry = await _entry(client, other, account_id, trade_ids=[mine])
    assert (await client.post(f"/v1/journal/{entry['id']}/trades/{foreign}", headers=other)).status_code == 404
    r = await client.patch(f"/v1/journal/{entry['id']}", json={"trade_ids": [foreign]}, headers=other)
    assert r.status_code == 404
    assert (await client.get(f"/v1/journal/{entry['id']}", headers=other)).json()["trade_ids"] == [mine]


@pytest.mark.asyncio
async def test_trade_arguments(client, login) -> None:
    headers = await login("writer@example.com")
    stranger = await login("stranger@example.com")
    account_id, _ = await _setup(client, headers)
    entry = await _entry(client, headers, account_id)
    url = f"/v1/journal/{entry['id']}/arguments"

    r = await client.post(url, json={"side": "pro", "argument": "HTF trend up"}, headers=headers)
    assert r.status_code == 201, r.text
    pro = r.json()
    r = await client.post(url, json={"side": "contra", "argument": "News in 10 minutes"}, headers=headers)
    assert r.status_code == 201
    assert (await client.post(url, json={"side": "maybe", "argument": "x"}, headers=headers)).status_code == 422

    listed = (await client.get(url, headers=headers)).json()
    assert {(a["side"], a["argument"]) for a in listed} == {
        ("pro", "HTF trend up"),
        ("contra", "News in 10 minutes"),
    }

    assert (await client.get(url, headers=stranger)).status_code == 404
    assert (await client.delete(f"/v1/journal/arguments/{pro['id']}", headers=stranger)).status_code == 404
    assert (await client.delete(f"/v1/journal/arguments/{pro['id']}", headers=headers)).status_code == 204
    assert len((await client.get(url, headers=headers)).json()) == 1


@pytest.mark.asyncio
async def test_emotional_profiles(client, login) -> None:
    headers = await login("mind@example.com")
    profiles = (await client.get("/v1/mental/profiles", headers=headers)).json()
    assert {p["emotion_type"] for p in profiles} == {
        "fear",
        "greed",
        "fomo",
        "tilt",
        "revenge",
        "hesitation",
        "overconfidence",
    }
    # Listing again does not create duplicates.
    assert len((await client.get("/v1/mental/profiles", headers=headers)).json()) == 7

    r = await client.put(
        "/v1/mental/profiles/tilt",
        json={
            "first_sign": "clicking faster",
            "triggers": ["two losses in a row"],
            "anger_levels": {"1": "irritated", "5": "revenge trading"},
        },
        headers=headers,
    )
    assert r.status_code == 200, r.text
    tilt = r.json()
    assert tilt["first_sign"] == "clicking faster"
    assert tilt["triggers"] == ["two losses in a row"]
    assert tilt["occurrence_count"] == 0

    for emotion in ("Tilt", " tilt ", "calm"):
        await client.post("/v1/mental", json={"emotion": emotion}, headers=headers)
    tilt = (await client.get("/v1/mental/profiles/tilt", headers=headers)).json()
    assert tilt["occurrence_count"] == 2
    assert tilt["last_occurrence"] is not None
    assert tilt["anger_levels"]["5"] == "revenge trading"

    assert (await client.get("/v1/mental/profiles/boredom", headers=headers)).status_code == 422
