from __future__ import annotations

import pytest


async def _seed(client, headers) -> str:
    account = (
        await client.post("/v1/accounts", json={"name": "Main", "initial_balance": 1000.0}, headers=headers)
    ).json()
    for day, exit_price, tf in (("2024-01-08", 110.0, "4H"), ("2024-01-09", 95.0, "4H"), ("2024-02-12", 130.0, None)):
        r = await client.post(
            "/v1/trades",
            json={
                "account_id": account["id"],
                "symbol": "ES",
                "direction": "Long",
                "entry_price": 100.0,
                "lot": 1.0,
                "entry_date": day,
                "entry_time": "10:00:00",
                "exit_date": day,
                "exit_time": "10:45:00",
                "exit_price": exit_price,
                "tags": "trend",
                "tf_analysis": tf,
            },
            headers=headers,
        )
        assert r.status_code == 201, r.text
    return account["id"]


@pytest.mark.asyncio
async def test_dashboard(client, login) -> None:
    headers = await login("quant@example.com")
    account_id = await _seed(client, headers)

    r = await client.get("/v1/analytics/dashboard", params={"account_id": account_id}, headers=headers)
    assert r.status_code == 200
    data = r.json()
    assert data["metrics"]["total_trades"] == 3
    assert data["metrics"]["total_pnl"] == 35.0
    assert data["streaks"]["max_win_streak"] == 1
    assert data["hold_times"]["avg_all_minutes"] == 45.0
    assert data["score"]["grade"] in {"S", "A", "B", "C", "D", "F"}
    assert len(data["radar"]) == 6
    assert [m["month"] for m in data["monthly"]] == ["2024-01", "2024-02"]
    assert data["tags"][0]["key"] == "trend"
    assert {g["key"] for g in data["timeframes"]["analysis"]} == {"4H", "Undefined"}


@pytest.mark.asyncio
async def test_dashboard_for_foreign_account(client, login) -> None:
    owner = await login("quant@example.com")
    other = await login("other@example.com")
    account_id = await _seed(client, owner)
    r = await client.get("/v1/analytics/dashboard", params={"account_id": account_id}, headers=other)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_timeframe_and_session_helpers(client, login) -> None:
    headers = await login("quant@example.com")
    r = await client.get(
        "/v1/analytics/timeframe-alignment", params={"analysis_tf": "H4", "entry_tf": "M5"}, headers=headers
    )
    body = r.json()
    assert body["valid"] is True
    assert body["analysis_classification"] == "HTF"
    assert body["recommended"] == "5m"

    r = await client.get("/v1/analytics/session", params={"entry_time": "10:00"}, headers=headers)
    assert r.json() == {"session": "London-NY Overlap"}


@pytest.mark.asyncio
async def test_tax_report(client, login) -> None:
    headers = await login("quant@example.com")
    await _seed(client, headers)
    r = await client.post("/v1/analytics/tax", json={"year": 2024}, headers=headers)
    assert r.status_code == 200
    report = r.json()
    assert len(report["months"]) == 12
    jan, feb = report["months"][0], report["months"][1]
    assert jan["net_result"] == 5.0
    assert jan["darf"]["code"] == "6015"
    assert feb["taxable_basis"] == 30.0
    assert report["closing_loss"] == 0.0


@pytest.mark.asyncio
async def test_export(client, login) -> None:
    headers = await login("quant@example.com")
    await _seed(client, headers)
    await client.post("/v1/playbooks", json={"name": "ORB"}, headers=headers)
    await client.get("/v1/mental/profiles", headers=headers)
    await client.post("/v1/laboratory/experiments", json={"title": "Gap fill"}, headers=headers)

    r = await client.get("/v1/export", headers=headers)
    assert r.status_code == 200
    doc = r.json()
    assert doc["user"]["email"] == "quant@example.com"
    assert len(doc["accounts"]) == 1
    assert len(doc["trades"]) == 3
    assert [p["name"] for p in doc["playbooks"]] == ["ORB"]
    assert doc["mental_entries"] == []
    assert len(doc["emotional_profiles"]) == 7
    assert [x["title"] for x in doc["lab_experiments"]] == ["Gap fill"]
    assert doc["lab_experiments"][0]["trades"] == []
    assert doc["routines"] == []
    assert doc["lab_recaps"] == []
