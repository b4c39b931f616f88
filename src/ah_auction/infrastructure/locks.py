"""In-process per-auction locks.

Every mutation of an auction holds that auction's lock for the whole unit of
work, so bids on one auction are admitted one at a time while bids on other
auctions proceed in parallel. The row lock taken by load_aggregate covers
the multi-process case; this lock keeps a single process from queueing
transactions on that row lock.

Acquisition is bounded: a caller that waits longer than the timeout gets
UnavailableError (transient, retryable) instead of hanging.

Entries are reference-counted and dropped as soon as nobody holds or waits
on them, so the map only ever contains auctions with a unit in flight.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from config.settings import settings
from src.ah_common.errors import UnavailableError


@dataclass
class _Slot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class AuctionLocks:
    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._timeout = (
            settings.AUCTION_LOCK_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self._slots: dict[str, _Slot] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def is_locked(self, auction_id: str) -> bool:
        slot = self._slots.get(auction_id)
        return slot is not None and slot.lock.locked()

    @asynccontextmanager
    async def hold(self, auction_id: str) -> AsyncIterator[None]:
        slot = self._slots.setdefault(auction_id, _Slot())
        slot.users += 1
        try:
            try:
                await asyncio.wait_for(slot.lock.acquire(), timeout=self._timeout)
            except TimeoutError:
                raise UnavailableError(f"Auction {auction_id} is busy, please retry") from None
            try:
                yield
            finally:
                slot.lock.release()
        finally:
            slot.users -= 1
            if slot.users == 0:
                del self._slots[auction_id]
