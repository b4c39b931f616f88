"""AuctionExpirySweeper with a fake session factory and mocked Redis."""

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import DBAPIError

from src.ah_common.errors import AlreadyFinalizedError
from src.ah_scheduler.sweeper import LEASE_KEY, AuctionExpirySweeper


def _sweeper(service, db, lease_granted: bool = True) -> tuple[AuctionExpirySweeper, AsyncMock]:
    redis = AsyncMock()
    redis.set.return_value = True if lease_granted else None

    @asynccontextmanager
    async def session_factory():
        yield db

    async def get_redis():
        return redis

    return AuctionExpirySweeper(service, session_factory, get_redis, lease_seconds=5), redis


class TestSweepOnce:
    async def test_finalizes_expired_only(
        self, service, db, clock, accounts, auctions, auction_request
    ) -> None:
        accounts.balances["alice"] = 10_000
        short = await service.create_auction(
            db, "seller", auction_request(start_delay_minutes=0, live_duration_minutes=5)
        )
        long = await service.create_auction(
            db, "seller", auction_request(start_delay_minutes=0, live_duration_minutes=120)
        )
        await service.place_bid(db, "alice", short.id, 2000)
        clock.advance(timedelta(minutes=10))

        sweeper, redis = _sweeper(service, db)
        report = await sweeper.sweep_once()

        assert (report.expired, report.settled) == (1, 1)
        assert auctions.auctions[short.id].finalized is True
        assert auctions.auctions[long.id].finalized is False
        assert accounts.balances["seller"] == 2000
        redis.set.assert_awaited_once()
        assert redis.set.await_args.args[0] == LEASE_KEY
        assert redis.set.await_args.kwargs == {"nx": True, "px": 5000}

    async def test_skips_without_lease(self, service, db, clock, auctions, auction_request):
        view = await service.create_auction(
            db, "seller", auction_request(start_delay_minutes=0, live_duration_minutes=1)
        )
        clock.advance(timedelta(minutes=5))
        sweeper, _ = _sweeper(service, db, lease_granted=False)

        report = await sweeper.sweep_once()

        assert report.skipped is True
        assert auctions.auctions[view.id].finalized is False

    async def test_winner_cannot_pay_counted_and_left_open(
        self, service, db, clock, accounts, auctions, auction_request
    ) -> None:
        accounts.balances["alice"] = 10_000
        view = await service.create_auction(
            db, "seller", auction_request(start_delay_minutes=0, live_duration_minutes=1)
        )
        await service.place_bid(db, "alice", view.id, 9000)
        accounts.balances["alice"] = 0
        clock.advance(timedelta(minutes=5))
        sweeper, _ = _sweeper(service, db)

        report = await sweeper.sweep_once()

        assert report.winner_cannot_pay == 1
        assert report.settled == 0
        assert auctions.auctions[view.id].finalized is False


@pytest.mark.parametrize("granted", [True, None])
async def test_lease_result_coerced_to_bool(service, db, granted) -> None:
    sweeper, redis = _sweeper(service, db)
    redis.set.return_value = granted
    assert await sweeper._acquire_lease() is bool(granted)


class TestSweepRacesSellerEnd:
    async def test_seller_ends_between_listing_and_locking(
        self, service, db, clock, accounts, auctions, auction_request, monkeypatch
    ) -> None:
        accounts.balances["alice"] = 10_000
        view = await service.create_auction(
            db, "seller", auction_request(start_delay_minutes=0, live_duration_minutes=1)
        )
        await service.place_bid(db, "alice", view.id, 4000)
        clock.advance(timedelta(minutes=5))

        list_expired = service.list_expired_ids

        async def list_then_seller_ends(session):
            ids = await list_expired(session)
            await service.end_auction(session, "seller", view.id)
            return ids

        monkeypatch.setattr(service, "list_expired_ids", list_then_seller_ends)
        sweeper, _ = _sweeper(service, db)

        report = await sweeper.sweep_once()

        assert (report.expired, report.settled, report.already_finalized) == (1, 0, 1)
        assert report.failed == 0
        assert accounts.balances["alice"] == 6000
        assert accounts.balances["seller"] == 4000
        assert len([e for e in accounts.entries if e.reference_id == view.id]) == 2

    async def test_concurrent_seller_end_and_sweep_settle_once(
        self, service, db, clock, accounts, auctions, auction_request
    ) -> None:
        accounts.balances["alice"] = 10_000
        view = await service.create_auction(
            db, "seller", auction_request(start_delay_minutes=0, live_duration_minutes=1)
        )
        await service.place_bid(db, "alice", view.id, 4000)
        clock.advance(timedelta(minutes=5))
        sweeper, _ = _sweeper(service, db)

        seller_result, report = await asyncio.gather(
            service.end_auction(db, "seller", view.id),
            sweeper.sweep_once(),
            return_exceptions=True,
        )

        seller_settled = not isinstance(seller_result, Exception)
        if not seller_settled:
            assert isinstance(seller_result, AlreadyFinalizedError)
        assert int(seller_settled) + report.settled == 1
        assert report.failed == 0
        assert auctions.auctions[view.id].finalized is True
        assert accounts.balances["alice"] == 6000
        assert accounts.balances["seller"] == 4000


class TestSweepFailures:
    async def test_unexpected_error_does_not_abort_batch(
        self, service, db, clock, auction_request, monkeypatch
    ) -> None:
        ids = []
        for _ in range(3):
            view = await service.create_auction(
                db, "seller", auction_request(start_delay_minutes=0, live_duration_minutes=1)
            )
            ids.append(view.id)
        clock.advance(timedelta(minutes=5))

        end_auction = service.end_auction
        calls: list[str] = []

        async def end_failing_first(session, caller_id, auction_id):
            calls.append(auction_id)
            if auction_id == ids[0]:
                raise DBAPIError("UPDATE auctions", {}, Exception("deadlock detected"))
            return await end_auction(session, caller_id, auction_id)

        monkeypatch.setattr(service, "end_auction", end_failing_first)
        sweeper, _ = _sweeper(service, db)

        report = await sweeper.sweep_once()

        assert sorted(calls) == sorted(ids)
        assert (report.expired, report.settled, report.failed) == (3, 2, 1)
