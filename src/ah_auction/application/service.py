"""AuctionService: the single entry point for every auction operation.

Each mutation is one unit of work against one auction aggregate:

    acquire the auction's lock (bounded wait)
      read `now` once
      load auction + bids with a row lock
      authorize (ownership, phase) and validate
      write
    commit, or roll back on any failure

Queries read `now` once and classify every row against that same instant.
Listings never hold locks.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_account.domain.ledger import Ledger
from src.ah_account.domain.repository import AccountRepositoryProtocol
from src.ah_account.infrastructure.persistence import AccountRepository
from src.ah_auction.application.schemas import (
    AuctionDetail,
    AuctionListResponse,
    AuctionResultResponse,
    AuctionView,
    BidResponse,
    CreateAuctionRequest,
    DeleteAuctionResponse,
    SettlementResponse,
)
from src.ah_auction.domain.models import Auction, AuctionAggregate, Bid
from src.ah_auction.domain.phase import authorize, classify
from src.ah_auction.domain.repository import AuctionRepositoryProtocol
from src.ah_auction.domain.settlement import SettlementEngine
from src.ah_auction.infrastructure.locks import AuctionLocks
from src.ah_auction.infrastructure.persistence import AuctionRepository
from src.ah_common.datetime_utils import Clock, SystemClock
from src.ah_common.enums import AuctionAction, AuctionPhase
from src.ah_common.errors import AuctionNotFoundError, InvalidAuctionTermsError
from src.ah_common.transaction import run_in_transaction
from src.ah_risk.bid_validator import BidContext, BidValidator

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _check_terms(auction: Auction) -> None:
    if auction.base_price <= 0:
        raise InvalidAuctionTermsError("base price must be positive")
    if auction.start_delay < timedelta(0):
        raise InvalidAuctionTermsError("start delay must not be negative")
    if auction.live_duration <= timedelta(0):
        raise InvalidAuctionTermsError("live duration must be positive")
    if not auction.item_name.strip():
        raise InvalidAuctionTermsError("item name must not be empty")


class AuctionService:
    def __init__(
        self,
        repo: AuctionRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        clock: Clock | None = None,
        locks: AuctionLocks | None = None,
    ) -> None:
        self._repo: AuctionRepositoryProtocol = repo or AuctionRepository()
        self._ledger = Ledger(account_repo or AccountRepository())
        self._clock: Clock = clock or SystemClock()
        self._locks = locks or AuctionLocks()
        self._settlement = SettlementEngine(self._ledger, self._repo)
        self._validator = BidValidator()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_auction(
        self, db: AsyncSession, caller_id: str, req: CreateAuctionRequest
    ) -> AuctionView:
        now = self._clock.now()
        auction = Auction(
            id=str(uuid.uuid4()),
            seller_id=caller_id,
            item_name=req.item_name,
            description=req.description,
            image_url=req.image_url,
            base_price=req.base_price_cents,
            posted_time=now,
            start_delay=timedelta(minutes=req.start_delay_minutes),
            live_duration=timedelta(minutes=req.live_duration_minutes),
        )
        _check_terms(auction)
        created = await run_in_transaction(db, lambda: self._repo.create(db, auction))
        logger.info(
            "Auction %s created by %s: base=%d starts=%s ends=%s",
            created.id, caller_id, created.base_price, created.starts_at, created.ends_at,
        )
        return AuctionView.build(created, None, now)

    async def edit_description(
        self, db: AsyncSession, caller_id: str, auction_id: str, description: str
    ) -> AuctionView:
        async def work(aggregate: AuctionAggregate, now: datetime) -> AuctionView:
            authorize(aggregate, AuctionAction.EDIT, caller_id, now)
            aggregate.auction = await self._repo.update_description(db, auction_id, description)
            return AuctionView.from_aggregate(aggregate, now)

        return await self._mutate(db, auction_id, work)

    async def activate(self, db: AsyncSession, caller_id: str, auction_id: str) -> AuctionView:
        async def work(aggregate: AuctionAggregate, now: datetime) -> AuctionView:
            authorize(aggregate, AuctionAction.ACTIVATE, caller_id, now)
            aggregate.auction = await self._repo.mark_activated(db, auction_id, now)
            logger.info("Auction %s activated early by %s", auction_id, caller_id)
            return AuctionView.from_aggregate(aggregate, now)

        return await self._mutate(db, auction_id, work)

    async def place_bid(
        self, db: AsyncSession, caller_id: str, auction_id: str, amount: int
    ) -> BidResponse:
        async def work(aggregate: AuctionAggregate, now: datetime) -> BidResponse:
            auction = aggregate.auction
            phase = authorize(aggregate, AuctionAction.BID, caller_id, now)
            balance = await self._ledger.balance_of(db, caller_id)
            decision = self._validator.validate(
                BidContext(
                    auction_id=auction.id,
                    phase=phase,
                    base_price=auction.base_price,
                    highest_bid=aggregate.highest_amount,
                    seller_id=auction.seller_id,
                    bidder_id=caller_id,
                    bidder_balance=balance,
                    amount=amount,
                )
            )
            if not decision.accepted:
                logger.info(
                    "Bid rejected: auction=%s bidder=%s amount=%d reason=%s",
                    auction_id, caller_id, amount, decision.reason.value,  # type: ignore[union-attr]
                )
            decision.raise_for_rejection()

            bid = Bid(
                id=str(uuid.uuid4()),
                auction_id=auction_id,
                bidder_id=caller_id,
                amount=amount,
                created_at=now,
            )
            await self._repo.insert_bid(db, bid)
            aggregate.bids.append(bid)
            logger.info(
                "Bid accepted: auction=%s bidder=%s amount=%d", auction_id, caller_id, amount
            )
            return BidResponse.from_bid(bid, aggregate.bid_count)

        return await self._mutate(db, auction_id, work)

    async def end_auction(
        self, db: AsyncSession, caller_id: str, auction_id: str
    ) -> SettlementResponse:
        """Finalize: seller at any phase before finalization, or the sweeper.

        Raises WinnerCannotPayError (and leaves the auction open) when the
        winner's balance no longer covers the winning bid.
        """

        async def work(aggregate: AuctionAggregate, now: datetime) -> SettlementResponse:
            authorize(aggregate, AuctionAction.END, caller_id, now)
            outcome = await self._settlement.finalize(db, aggregate, now)
            outcome.raise_for_rejection()
            return SettlementResponse.from_outcome(outcome)

        return await self._mutate(db, auction_id, work)

    async def delete_listing(
        self, db: AsyncSession, caller_id: str, auction_id: str
    ) -> DeleteAuctionResponse:
        async def work(aggregate: AuctionAggregate, now: datetime) -> DeleteAuctionResponse:
            authorize(aggregate, AuctionAction.DELETE, caller_id, now)
            await self._repo.delete(db, auction_id)
            logger.info("Auction %s deleted by %s", auction_id, caller_id)
            return DeleteAuctionResponse(auction_id=auction_id, deleted=True)

        return await self._mutate(db, auction_id, work)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_upcoming(self, db: AsyncSession) -> AuctionListResponse:
        return await self._list_in_phase(db, AuctionPhase.UPCOMING)

    async def list_live(self, db: AsyncSession) -> AuctionListResponse:
        return await self._list_in_phase(db, AuctionPhase.LIVE)

    async def list_mine(self, db: AsyncSession, caller_id: str) -> AuctionListResponse:
        now = self._clock.now()
        auctions = await self._repo.list_by_seller(db, caller_id)
        return await self._to_list(db, auctions, now)

    async def list_expired_ids(self, db: AsyncSession) -> list[str]:
        """Unfinalized auctions whose window has elapsed (awaiting settlement)."""
        now = self._clock.now()
        auctions = await self._repo.list_unfinalized(db)
        return [a.id for a in auctions if classify(a, now) is AuctionPhase.ENDED]

    async def get_auction(self, db: AsyncSession, auction_id: str) -> AuctionDetail:
        now = self._clock.now()
        aggregate = await self._load(db, auction_id)
        return AuctionDetail.from_aggregate(aggregate, now)

    async def auction_result(self, db: AsyncSession, auction_id: str) -> AuctionResultResponse:
        now = self._clock.now()
        aggregate = await self._load(db, auction_id)
        return AuctionResultResponse.from_aggregate(aggregate, now)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _mutate(
        self,
        db: AsyncSession,
        auction_id: str,
        work: Callable[[AuctionAggregate, datetime], Awaitable[T]],
    ) -> T:
        async def unit() -> T:
            now = self._clock.now()
            aggregate = await self._repo.load_aggregate(db, auction_id, for_update=True)
            if aggregate is None:
                raise AuctionNotFoundError(auction_id)
            return await work(aggregate, now)

        async with self._locks.hold(auction_id):
            return await run_in_transaction(db, unit)

    async def _load(self, db: AsyncSession, auction_id: str) -> AuctionAggregate:
        aggregate = await self._repo.load_aggregate(db, auction_id)
        if aggregate is None:
            raise AuctionNotFoundError(auction_id)
        return aggregate

    async def _list_in_phase(
        self, db: AsyncSession, phase: AuctionPhase
    ) -> AuctionListResponse:
        now = self._clock.now()
        auctions = [
            a for a in await self._repo.list_unfinalized(db) if classify(a, now) is phase
        ]
        return await self._to_list(db, auctions, now)

    async def _to_list(
        self, db: AsyncSession, auctions: list[Auction], now: datetime
    ) -> AuctionListResponse:
        summaries = await self._repo.get_bid_summaries(db, [a.id for a in auctions])
        items = [AuctionView.build(a, summaries.get(a.id), now) for a in auctions]
        return AuctionListResponse(items=items, total=len(items))


_service: AuctionService | None = None


def get_auction_service() -> AuctionService:
    global _service  # noqa: PLW0603
    if _service is None:
        _service = AuctionService()
    return _service
