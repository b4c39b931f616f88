"""In-memory repositories and fixtures for service-level unit tests.

The fakes yield to the event loop inside every call so concurrent tasks
interleave the way they would against a real database.
"""

import asyncio
import dataclasses
import itertools
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.ah_account.domain.models import Account, LedgerEntry
from src.ah_auction.application.schemas import CreateAuctionRequest
from src.ah_auction.application.service import AuctionService
from src.ah_auction.domain.models import Auction, AuctionAggregate, Bid, BidSummary
from src.ah_auction.infrastructure.locks import AuctionLocks
from src.ah_common.datetime_utils import FixedClock
from src.ah_common.errors import AccountNotFoundError, AuctionNotFoundError, InsufficientBalanceError

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class InMemoryAccountRepository:
    def __init__(self) -> None:
        self.balances: dict[str, int] = {}
        self.entries: list[LedgerEntry] = []
        self._ids = itertools.count(1)
        self.lock_calls: list[list[str]] = []

    def open(self, user_id: str, balance: int = 0) -> None:
        self.balances[user_id] = balance

    def _account(self, user_id: str) -> Account:
        return Account(
            id=f"acc-{user_id}", user_id=user_id,
            available_balance=self.balances[user_id], version=0,
            created_at=T0, updated_at=T0,
        )

    def _entry(self, user_id, entry_type, amount, reference_type, reference_id, description):
        entry = LedgerEntry(
            id=next(self._ids), user_id=user_id, entry_type=entry_type, amount=amount,
            balance_after=self.balances[user_id], reference_type=reference_type,
            reference_id=reference_id, description=description, created_at=T0,
        )
        self.entries.append(entry)
        return entry

    async def get_account_by_user_id(self, db, user_id):
        await asyncio.sleep(0)
        return self._account(user_id) if user_id in self.balances else None

    async def lock_accounts(self, db, user_ids):
        await asyncio.sleep(0)
        ordered = sorted(set(user_ids))
        self.lock_calls.append(ordered)
        return [u for u in ordered if u in self.balances]

    async def credit(self, db, user_id, amount, entry_type, reference_type, reference_id, description):
        await asyncio.sleep(0)
        if user_id not in self.balances:
            raise AccountNotFoundError(user_id)
        self.balances[user_id] += amount
        entry = self._entry(user_id, entry_type, amount, reference_type, reference_id, description)
        return self._account(user_id), entry

    async def debit(self, db, user_id, amount, entry_type, reference_type, reference_id, description):
        await asyncio.sleep(0)
        if user_id not in self.balances:
            raise AccountNotFoundError(user_id)
        if self.balances[user_id] < amount:
            raise InsufficientBalanceError(amount, self.balances[user_id])
        self.balances[user_id] -= amount
        entry = self._entry(user_id, entry_type, -amount, reference_type, reference_id, description)
        return self._account(user_id), entry

    async def list_ledger_entries(self, db, user_id, cursor_id, limit, entry_type):
        rows = [e for e in reversed(self.entries) if e.user_id == user_id]
        if cursor_id is not None:
            rows = [e for e in rows if e.id < cursor_id]
        if entry_type is not None:
            rows = [e for e in rows if e.entry_type == entry_type]
        return rows[:limit]


class InMemoryAuctionRepository:
    def __init__(self) -> None:
        self.auctions: dict[str, Auction] = {}
        self.bids: dict[str, list[Bid]] = {}

    async def load_aggregate(self, db, auction_id, for_update=False):
        await asyncio.sleep(0)
        auction = self.auctions.get(auction_id)
        if auction is None:
            return None
        return AuctionAggregate(
            auction=dataclasses.replace(auction), bids=list(self.bids.get(auction_id, []))
        )

    async def create(self, db, auction):
        await asyncio.sleep(0)
        stored = dataclasses.replace(auction, created_at=auction.posted_time)
        self.auctions[auction.id] = stored
        self.bids[auction.id] = []
        return dataclasses.replace(stored)

    def _get(self, auction_id: str) -> Auction:
        if auction_id not in self.auctions:
            raise AuctionNotFoundError(auction_id)
        return self.auctions[auction_id]

    async def update_description(self, db, auction_id, description):
        await asyncio.sleep(0)
        self._get(auction_id).description = description
        return dataclasses.replace(self.auctions[auction_id])

    async def mark_activated(self, db, auction_id, now):
        await asyncio.sleep(0)
        auction = self._get(auction_id)
        auction.posted_time = now
        auction.start_delay = timedelta(0)
        return dataclasses.replace(auction)

    async def mark_finalized(self, db, auction_id, now):
        await asyncio.sleep(0)
        auction = self._get(auction_id)
        auction.finalized = True
        auction.finalized_at = now
        auction.live_duration = timedelta(0)

    async def insert_bid(self, db, bid):
        await asyncio.sleep(0)
        self.bids[bid.auction_id].append(bid)

    async def delete(self, db, auction_id):
        await asyncio.sleep(0)
        self._get(auction_id)
        del self.auctions[auction_id]
        del self.bids[auction_id]

    async def list_unfinalized(self, db):
        return [dataclasses.replace(a) for a in self.auctions.values() if not a.finalized]

    async def list_by_seller(self, db, seller_id):
        return [dataclasses.replace(a) for a in self.auctions.values() if a.seller_id == seller_id]

    async def get_bid_summaries(self, db, auction_ids):
        out = {}
        for auction_id in auction_ids:
            agg = AuctionAggregate(self.auctions[auction_id], self.bids.get(auction_id, []))
            summary = agg.summary()
            if summary is not None:
                out[auction_id] = BidSummary(highest=summary.highest, count=summary.count)
        return out


@pytest.fixture
def db() -> MagicMock:
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture
def accounts() -> InMemoryAccountRepository:
    repo = InMemoryAccountRepository()
    for user_id in ("seller", "alice", "bob", "carol"):
        repo.open(user_id)
    return repo


@pytest.fixture
def auctions() -> InMemoryAuctionRepository:
    return InMemoryAuctionRepository()


@pytest.fixture
def service(auctions, accounts, clock) -> AuctionService:
    return AuctionService(
        repo=auctions, account_repo=accounts, clock=clock,
        locks=AuctionLocks(timeout_seconds=1.0),
    )


def make_request(**overrides) -> CreateAuctionRequest:
    fields = {
        "item_name": "Vintage lamp",
        "description": "Brass, works",
        "base_price_cents": 1000,
        "start_delay_minutes": 10,
        "live_duration_minutes": 60,
    }
    fields.update(overrides)
    return CreateAuctionRequest(**fields)


@pytest.fixture
def auction_request():
    """Factory for CreateAuctionRequest with sensible defaults (10 min delay, 60 min live)."""
    return make_request


@pytest.fixture
async def live_auction(service, db, clock) -> str:
    """Auction created by 'seller' at T0, clock moved to the start of its live window."""
    view = await service.create_auction(db, "seller", make_request())
    clock.advance(timedelta(minutes=10))
    return view.id
