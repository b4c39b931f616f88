"""Ordered bid admission rules.

Rules run in a fixed order and the first failure wins:

    1. SELF_BID           bidder is the seller
    2. AUCTION_NOT_LIVE   phase at the operation's `now` is not LIVE
    3. BID_TOO_LOW        amount <= max(base_price, highest_bid)
    4. INSUFFICIENT_FUNDS amount > bidder's available balance

The validator is pure: callers supply the phase, the current highest bid and
the bidder's balance, all read inside the same unit of work that will insert
the bid.
"""

from dataclasses import dataclass

from src.ah_common.enums import AuctionPhase, BidRejectReason
from src.ah_common.errors import (
    AuctionNotLiveError,
    BidTooLowError,
    InsufficientFundsForBidError,
    SelfBidError,
)
from src.ah_risk.rules.auction_live import check_auction_live
from src.ah_risk.rules.balance_check import check_bidder_funds
from src.ah_risk.rules.bid_floor import bid_floor, check_bid_floor
from src.ah_risk.rules.self_bid import check_self_bid


@dataclass(frozen=True)
class BidContext:
    auction_id: str
    phase: AuctionPhase
    base_price: int
    highest_bid: int | None
    seller_id: str
    bidder_id: str
    bidder_balance: int
    amount: int

    @property
    def floor(self) -> int:
        return bid_floor(self.base_price, self.highest_bid)


@dataclass(frozen=True)
class BidDecision:
    context: BidContext
    reason: BidRejectReason | None = None

    @property
    def accepted(self) -> bool:
        return self.reason is None

    def raise_for_rejection(self) -> None:
        """Raise the AppError matching `reason`; no-op for accepted bids."""
        ctx = self.context
        if self.reason is None:
            return
        if self.reason is BidRejectReason.SELF_BID:
            raise SelfBidError()
        if self.reason is BidRejectReason.AUCTION_NOT_LIVE:
            raise AuctionNotLiveError(ctx.auction_id, ctx.phase.value)
        if self.reason is BidRejectReason.BID_TOO_LOW:
            raise BidTooLowError(ctx.amount, ctx.floor)
        raise InsufficientFundsForBidError(ctx.amount, ctx.bidder_balance)


class BidValidator:
    def validate(self, ctx: BidContext) -> BidDecision:
        checks = (
            lambda: check_self_bid(ctx.bidder_id, ctx.seller_id),
            lambda: check_auction_live(ctx.phase),
            lambda: check_bid_floor(ctx.amount, ctx.base_price, ctx.highest_bid),
            lambda: check_bidder_funds(ctx.amount, ctx.bidder_balance),
        )
        for check in checks:
            reason = check()
            if reason is not None:
                return BidDecision(context=ctx, reason=reason)
        return BidDecision(context=ctx)
