"""End-to-end auction flow against PostgreSQL."""

import asyncio

import pytest
from httpx import AsyncClient

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]

NEW_AUCTION = {
    "item_name": "Integration lamp",
    "description": "Brass",
    "base_price_cents": 1000,
    "start_delay_minutes": 0,
    "live_duration_minutes": 30,
}


async def _balance(client: AsyncClient, headers: dict[str, str]) -> int:
    resp = await client.get("/api/v1/account/profile", headers=headers)
    return resp.json()["data"]["balance_cents"]


async def test_full_lifecycle(client: AsyncClient, signup) -> None:
    seller = await signup(client, "seller")
    alice = await signup(client, "alice", 10_000)
    bob = await signup(client, "bob", 10_000)

    created = await client.post("/api/v1/auctions", json=NEW_AUCTION, headers=seller)
    auction_id = created.json()["data"]["id"]

    first = await client.post(
        f"/api/v1/auctions/{auction_id}/bids", json={"amount_cents": 1500}, headers=alice
    )
    assert first.status_code == 201
    low = await client.post(
        f"/api/v1/auctions/{auction_id}/bids", json={"amount_cents": 1200}, headers=bob
    )
    assert low.json()["code"] == 4003
    top = await client.post(
        f"/api/v1/auctions/{auction_id}/bids", json={"amount_cents": 4000}, headers=bob
    )
    assert top.status_code == 201

    end = await client.post(f"/api/v1/auctions/{auction_id}/end", headers=seller)
    assert end.json()["data"]["status"] == "SETTLED"
    again = await client.post(f"/api/v1/auctions/{auction_id}/end", headers=seller)
    assert again.json()["code"] == 3004

    assert await _balance(client, seller) == 4000
    assert await _balance(client, bob) == 6000
    assert await _balance(client, alice) == 10_000

    ledger = await client.get("/api/v1/account/ledger", headers=bob)
    assert ledger.json()["data"]["items"][0]["entry_type"] == "SETTLEMENT_PAYMENT"


async def test_concurrent_bids_keep_single_highest(client: AsyncClient, signup) -> None:
    seller = await signup(client, "seller")
    bidders = [await signup(client, f"b{i}", 100_000) for i in range(8)]
    created = await client.post("/api/v1/auctions", json=NEW_AUCTION, headers=seller)
    auction_id = created.json()["data"]["id"]

    amounts = [2000 + 100 * i for i in range(len(bidders))]
    responses = await asyncio.gather(
        *(
            client.post(
                f"/api/v1/auctions/{auction_id}/bids", json={"amount_cents": a}, headers=h
            )
            for a, h in zip(amounts, bidders)
        )
    )
    assert all(r.status_code in (201, 422) for r in responses)

    detail = await client.get(f"/api/v1/auctions/{auction_id}", headers=seller)
    stored = [b["amount_cents"] for b in reversed(detail.json()["data"]["bids"])]
    assert stored == sorted(stored)
    assert detail.json()["data"]["highest_bid_cents"] == max(amounts)


async def test_delete_rules(client: AsyncClient, signup) -> None:
    seller = await signup(client, "seller")
    bidder = await signup(client, "bidder", 5_000)

    plain = await client.post("/api/v1/auctions", json=NEW_AUCTION, headers=seller)
    deleted = await client.delete(f"/api/v1/auctions/{plain.json()['data']['id']}", headers=seller)
    assert deleted.json()["data"]["deleted"] is True

    bid_on = await client.post("/api/v1/auctions", json=NEW_AUCTION, headers=seller)
    auction_id = bid_on.json()["data"]["id"]
    await client.post(
        f"/api/v1/auctions/{auction_id}/bids", json={"amount_cents": 1500}, headers=bidder
    )
    blocked = await client.delete(f"/api/v1/auctions/{auction_id}", headers=seller)
    assert blocked.json()["code"] == 3005
