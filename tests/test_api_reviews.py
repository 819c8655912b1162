from __future__ import annotations

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def pair(client, login):
    mentor = await login("coach@example.com")
    mentee = await login("student@example.com")
    mentee_id = (await client.get("/v1/me", headers=mentee)).json()["id"]
    account = (await client.post("/v1/accounts", json={"name": "Main"}, headers=mentee)).json()
    trade = (
        await client.post(
            "/v1/trades",
            json={
                "account_id": account["id"],
                "symbol": "ES",
                "direction": "Long",
                "entry_price": 10.0,
                "lot": 1.0,
                "entry_date": "2024-05-02",
            },
            headers=mentee,
        )
    ).json()["trade"]
    invite = (
        await client.post(
            "/v1/mentor/invites",
            json={"mentee_email": "student@example.com", "permission": "comment"},
            headers=mentor,
        )
    ).json()
    await client.post("/v1/mentor/invites/accept", json={"token": invite["invite_token"]}, headers=mentee)
    return {"mentor": mentor, "mentee": mentee, "mentee_id": mentee_id, "trade_id": trade["id"]}


@pytest.mark.asyncio
async def test_review_lifecycle(client, pair) -> None:
    body = {
        "mentee_id": pair["mentee_id"],
        "review_type": "correction",
        "content": "Stop was too tight",
        "trade_id": pair["trade_id"],
        "rating": 3,
    }
    r = await client.post("/v1/reviews", json=body, headers=pair["mentor"])
    assert r.status_code == 201, r.text
    review = r.json()
    assert review["is_read"] is False

    assert (await client.get("/v1/reviews/unread-count", headers=pair["mentee"])).json() == {"unread": 1}
    mine = (await client.get("/v1/reviews/mine", headers=pair["mentee"])).json()
    assert [m["id"] for m in mine] == [review["id"]]

    by_trade = (await client.get(f"/v1/reviews/trade/{pair['trade_id']}", headers=pair["mentee"])).json()
    assert len(by_trade) == 1

    r = await client.post("/v1/reviews/mark-read", json={"review_ids": [review["id"]]}, headers=pair["mentee"])
    assert r.json() == {"updated": 1}
    assert (await client.get("/v1/reviews/unread-count", headers=pair["mentee"])).json() == {"unread": 0}

    r = await client.patch(f"/v1/reviews/{review['id']}", json={"rating": 4}, headers=pair["mentor"])
    assert r.json()["rating"] == 4
    # Only the author may edit.
    r = await client.patch(f"/v1/reviews/{review['id']}", json={"rating": 5}, headers=pair["mentee"])
    assert r.status_code == 404

    listed = (await client.get(f"/v1/reviews/mentee/{pair['mentee_id']}", headers=pair["mentor"])).json()
    assert len(listed) == 1
    assert (await client.delete(f"/v1/reviews/{review['id']}", headers=pair["mentor"])).status_code == 204


@pytest.mark.asyncio
async def test_rating_out_of_range(client, pair) -> None:
    body = {"mentee_id": pair["mentee_id"], "review_type": "comment", "content": "ok", "rating": 6}
    r = await client.post("/v1/reviews", json=body, headers=pair["mentor"])
    assert r.status_code == 422
    assert r.json()["errors"][0]["field"] == "rating"


@pytest.mark.asyncio
async def test_review_requires_mentorship(client, login, pair) -> None:
    stranger = await login("stranger@example.com")
    body = {"mentee_id": pair["mentee_id"], "review_type": "comment", "content": "hello"}
    assert (await client.post("/v1/reviews", json=body, headers=stranger)).status_code == 403


@pytest.mark.asyncio
async def test_commenting_mentor_can_comment_on_trades(client, pair) -> None:
    r = await client.post(
        f"/v1/trades/{pair['trade_id']}/comments", json={"content": "Nice entry"}, headers=pair["mentor"]
    )
    assert r.status_code == 201
    comments = (await client.get(f"/v1/trades/{pair['trade_id']}/comments", headers=pair["mentee"])).json()
    assert [c["content"] for c in comments] == ["Nice entry"]
