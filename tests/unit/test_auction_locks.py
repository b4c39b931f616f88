import asyncio

import pytest

from src.ah_auction.infrastructure.locks import AuctionLocks
from src.ah_common.errors import UnavailableError


class TestAuctionLocks:
    async def test_serializes_same_auction(self) -> None:
        locks = AuctionLocks(timeout_seconds=1.0)
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("auc-1"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    async def test_different_auctions_do_not_block(self) -> None:
        locks = AuctionLocks(timeout_seconds=0.05)
        async with locks.hold("auc-1"):
            async with locks.hold("auc-2"):
                assert locks.is_locked("auc-1") and locks.is_locked("auc-2")

    async def test_bounded_wait(self) -> None:
        locks = AuctionLocks(timeout_seconds=0.01)
        async with locks.hold("auc-1"):
            with pytest.raises(UnavailableError):
                async with locks.hold("auc-1"):
                    pass
        assert not locks.is_locked("auc-1")

    async def test_released_on_error(self) -> None:
        locks = AuctionLocks(timeout_seconds=0.05)
        with pytest.raises(RuntimeError):
            async with locks.hold("auc-1"):
                raise RuntimeError("boom")
        assert not locks.is_locked("auc-1")

    async def test_finished_units_leave_no_entries(self) -> None:
        locks = AuctionLocks(timeout_seconds=0.05)
        for i in range(1000):
            async with locks.hold(f"auc-{i}"):
                assert len(locks) == 1
        assert len(locks) == 0

    async def test_entry_kept_while_waiter_queued(self) -> None:
        locks = AuctionLocks(timeout_seconds=1.0)
        entered = asyncio.Event()
        release = asyncio.Event()

        async def holder() -> None:
            async with locks.hold("auc-1"):
                entered.set()
                await release.wait()

        async def waiter() -> None:
            async with locks.hold("auc-1"):
                pass

        holder_task = asyncio.create_task(holder())
        await entered.wait()
        waiter_task = asyncio.create_task(waiter())
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(holder_task, waiter_task)
        assert len(locks) == 0

    async def test_timed_out_waiter_leaves_no_entry(self) -> None:
        locks = AuctionLocks(timeout_seconds=0.01)
        async with locks.hold("auc-1"):
            with pytest.raises(UnavailableError):
                async with locks.hold("auc-1"):
                    pass
            assert len(locks) == 1
        assert len(locks) == 0
