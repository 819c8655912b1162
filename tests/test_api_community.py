from __future__ import annotations

from datetime import date

import pytest

from trade_journal.services.community import journal_streak


def test_journal_streak() -> None:
    assert journal_streak([]) == 0
    days = [date(2024, 1, 5), date(2024, 1, 4), date(2024, 1, 3), date(2024, 1, 1)]
    assert journal_streak(days) == 3


async def _account(client, headers) -> str:
    return (await client.post("/v1/accounts", json={"name": "Main"}, headers=headers)).json()["id"]


async def _closed_trade(client, headers, account_id: str, exit_price: float, strategy: str | None = None) -> None:
    r = await client.post(
        "/v1/trades",
        json={
            "account_id": account_id,
            "symbol": "ES",
            "direction": "Long",
            "entry_price": 100.0,
            "lot": 1.0,
            "entry_date": "2024-04-01",
            "exit_price": exit_price,
            "strategy": strategy,
        },
        headers=headers,
    )
    assert r.status_code == 201, r.text


async def _playbook(client, headers, name: str = "ORB") -> dict:
    r = await client.post(
        "/v1/playbooks",
        json={"name": name, "rule_groups": [{"id": "g1", "name": "Entry", "rules": ["Wait for break"]}]},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_playbook_crud_and_metrics(client, login) -> None:
    headers = await login("author@example.com")
    account_id = await _account(client, headers)
    await _closed_trade(client, headers, account_id, 110.0, strategy="ORB")
    await _closed_trade(client, headers, account_id, 95.0, strategy="ORB")
    await _closed_trade(client, headers, account_id, 120.0, strategy="Other")
    playbook = await _playbook(client, headers)

    metrics = (await client.get(f"/v1/playbooks/{playbook['id']}/metrics", headers=headers)).json()
    assert metrics["metrics"]["total_trades"] == 2
    assert metrics["metrics"]["profit_factor"] == 2.0

    r = await client.patch(f"/v1/playbooks/{playbook['id']}", json={"color": "#fff"}, headers=headers)
    assert r.json()["color"] == "#fff"
    assert len((await client.get("/v1/playbooks", headers=headers)).json()) == 1
    assert (await client.delete(f"/v1/playbooks/{playbook['id']}", headers=headers)).status_code == 204


@pytest.mark.asyncio
async def test_share_star_and_import(client, login) -> None:
    author = await login("author@example.com", name="Author")
    reader = await login("reader@example.com")
    account_id = await _account(client, author)
    await _closed_trade(client, author, account_id, 110.0, strategy="ORB")
    playbook = await _playbook(client, author)

    r = await client.post(
        "/v1/community/playbooks",
        json={"playbook_id": playbook["id"], "description": "Opening range"},
        headers=author,
    )
    assert r.status_code == 200, r.text
    shared = r.json()
    assert shared["playbook"]["name"] == "ORB"

    public = (await client.get("/v1/community/playbooks/public", headers=reader)).json()
    assert len(public) == 1
    assert public[0]["author_name"] == "Author"
    assert public[0]["author_stats"]["total_trades"] == 1
    assert public[0]["has_user_starred"] is False

    star = (await client.post(f"/v1/community/playbooks/{shared['id']}/star", headers=reader)).json()
    assert star == {"starred": True, "stars": 1}
    public = (await client.get("/v1/community/playbooks/public", headers=reader)).json()
    assert public[0]["has_user_starred"] is True
    unstar = (await client.post(f"/v1/community/playbooks/{shared['id']}/star", headers=reader)).json()
    assert unstar == {"starred": False, "stars": 0}

    r = await client.post(f"/v1/community/playbooks/{shared['id']}/star", headers=author)
    assert r.status_code == 403

    r = await client.post(f"/v1/community/playbooks/{shared['id']}/import", headers=reader)
    assert r.status_code == 201
    assert r.json()["rule_groups"][0]["rules"] == ["Wait for break"]
    assert len((await client.get("/v1/playbooks", headers=reader)).json()) == 1

    mine = (await client.get("/v1/community/playbooks/mine", headers=author)).json()
    assert mine[0]["downloads"] == 1

    assert (await client.delete(f"/v1/community/playbooks/{playbook['id']}", headers=author)).status_code == 204
    assert (await client.get("/v1/community/playbooks/public", headers=reader)).json() == []


@pytest.mark.asyncio
async def test_private_share_is_hidden(client, login) -> None:
    author = await login("author@example.com")
    reader = await login("reader@example.com")
    playbook = await _playbook(client, author)
    await client.post(
        "/v1/community/playbooks", json={"playbook_id": playbook["id"], "is_public": False}, headers=author
    )
    assert (await client.get("/v1/community/playbooks/public", headers=reader)).json() == []


@pytest.mark.asyncio
async def test_leaderboard(client, login) -> None:
    good = await login("good@example.com", name="Good")
    weak = await login("weak@example.com")
    shy = await login("shy@example.com")

    good_account = await _account(client, good)
    await _closed_trade(client, good, good_account, 110.0)
    weak_account = await _account(client, weak)
    await _closed_trade(client, weak, weak_account, 110.0)
    await _closed_trade(client, weak, weak_account, 90.0)
    await _closed_trade(client, shy, await _account(client, shy), 200.0)

    assert (await client.get("/v1/community/leaderboard/me", headers=good)).json() is None

    joined = (await client.post("/v1/community/leaderboard", json={}, headers=good)).json()
    assert joined["display_name"] == "Good"
    assert joined["show_pnl"] is False
    weak_row = (await client.post("/v1/community/leaderboard", json={"show_pnl": True}, headers=weak)).json()
    assert weak_row["display_name"] == "weak"

    board = (await client.get("/v1/community/leaderboard", headers=shy)).json()
    assert [(e["rank"], e["display_name"]) for e in board] == [(1, "Good"), (2, "weak")]
    assert board[0]["total_pnl"] is None
    assert board[1]["total_pnl"] == 0.0
    assert board[1]["win_rate"] == 50.0

    r = await client.patch("/v1/community/leaderboard", json={"show_win_rate": False}, headers=good)
    assert r.json()["show_win_rate"] is False
    board = (await client.get("/v1/community/leaderboard", headers=shy)).json()
    assert board[0]["win_rate"] is None
    assert board[0]["display_name"] == "Good"

    assert (await client.delete("/v1/community/leaderboard", headers=good)).status_code == 204
    assert (await client.delete("/v1/community/leaderboard", headers=good)).status_code == 404
    assert (await client.patch("/v1/community/leaderboard", json={}, headers=shy)).status_code == 404
