"""Auction settlement: move the winning amount from winner to seller, once.

Finalize runs inside the caller's unit of work:

    1. no bids          -> mark finalized, nothing moves
    2. lock accounts    -> winner and seller rows, in user_id order
    3. debit winner     -> fails closed if the balance no longer covers the bid
    4. credit seller
    5. mark finalized   -> live_duration zeroed, finalized flag set

Balances are not reserved while bidding, so step 3 is the real affordability
check. When it fails the outcome is REJECTED and nothing is written; the
caller rolls the unit back and the auction stays unfinalized, so the seller
(or the sweeper) can retry once the winner is solvent again.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_account.domain.ledger import Ledger
from src.ah_auction.domain.models import AuctionAggregate
from src.ah_auction.domain.repository import AuctionRepositoryProtocol
from src.ah_common.enums import LedgerEntryType, SettlementRejectReason, SettlementStatus
from src.ah_common.errors import (
    AlreadyFinalizedError,
    InsufficientBalanceError,
    WinnerCannotPayError,
)

logger = logging.getLogger(__name__)

_REFERENCE_TYPE = "AUCTION"


@dataclass(frozen=True)
class SettlementOutcome:
    status: SettlementStatus
    auction_id: str
    seller_id: str
    winner_id: str | None = None
    amount: int | None = None
    reason: SettlementRejectReason | None = None
    finalized_at: datetime | None = None

    def raise_for_rejection(self) -> None:
        if self.status is SettlementStatus.REJECTED:
            raise WinnerCannotPayError(self.auction_id, self.winner_id or "", self.amount or 0)


class SettlementEngine:
    def __init__(self, ledger: Ledger, repo: AuctionRepositoryProtocol) -> None:
        self._ledger = ledger
        self._repo = repo

    async def finalize(
        self, db: AsyncSession, aggregate: AuctionAggregate, now: datetime
    ) -> SettlementOutcome:
        auction = aggregate.auction
        if auction.finalized:
            raise AlreadyFinalizedError(auction.id)

        winner = aggregate.winning_bid
        if winner is None:
            await self._mark_finalized(db, aggregate, now)
            logger.info("Auction %s finalized with no bids", auction.id)
            return SettlementOutcome(
                status=SettlementStatus.SETTLED_NO_BIDS,
                auction_id=auction.id,
                seller_id=auction.seller_id,
                finalized_at=now,
            )

        await self._ledger.lock_accounts(db, winner.bidder_id, auction.seller_id)
        try:
            await self._ledger.debit(
                db,
                winner.bidder_id,
                winner.amount,
                LedgerEntryType.SETTLEMENT_PAYMENT,
                reference_type=_REFERENCE_TYPE,
                reference_id=auction.id,
                description=f"Won auction: {auction.item_name}",
            )
        except InsufficientBalanceError:
            logger.warning(
                "Auction %s: winner %s cannot pay %d, settlement rejected",
                auction.id, winner.bidder_id, winner.amount,
            )
            return SettlementOutcome(
                status=SettlementStatus.REJECTED,
                auction_id=auction.id,
                seller_id=auction.seller_id,
                winner_id=winner.bidder_id,
                amount=winner.amount,
                reason=SettlementRejectReason.WINNER_CANNOT_PAY,
            )

        await self._ledger.credit(
            db,
            auction.seller_id,
            winner.amount,
            LedgerEntryType.SETTLEMENT_RECEIPT,
            reference_type=_REFERENCE_TYPE,
            reference_id=auction.id,
            description=f"Sold: {auction.item_name}",
        )
        await self._mark_finalized(db, aggregate, now)
        logger.info(
            "Auction %s settled: winner=%s seller=%s amount=%d",
            auction.id, winner.bidder_id, auction.seller_id, winner.amount,
        )
        return SettlementOutcome(
            status=SettlementStatus.SETTLED,
            auction_id=auction.id,
            seller_id=auction.seller_id,
            winner_id=winner.bidder_id,
            amount=winner.amount,
            finalized_at=now,
        )

    async def _mark_finalized(
        self, db: AsyncSession, aggregate: AuctionAggregate, now: datetime
    ) -> None:
        await self._repo.mark_finalized(db, aggregate.auction.id, now)
        aggregate.auction.finalized = True
        aggregate.auction.finalized_at = now
        aggregate.auction.live_duration = timedelta(0)
