"""Domain models for ah_auction: pure dataclasses, no SQLAlchemy dependency.

An Auction and its Bids form one aggregate: they are loaded, validated and
committed together, never as separate reads of "the auction row" and "the
bids table".
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta


@dataclass
class Auction:
    id: str
    seller_id: str
    item_name: str
    description: str
    image_url: str | None
    base_price: int              # cents, > 0
    posted_time: datetime        # set on create, reset on activate
    start_delay: timedelta       # posted_time -> live
    live_duration: timedelta     # live -> ended; zeroed when finalized
    finalized: bool = False
    finalized_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def starts_at(self) -> datetime:
        return self.posted_time + self.start_delay

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + self.live_duration


@dataclass(frozen=True)
class Bid:
    """Accepted bid. Immutable; bids are append-only."""

    id: str
    auction_id: str
    bidder_id: str
    amount: int                  # cents, > 0
    created_at: datetime


@dataclass(frozen=True)
class BidSummary:
    """Highest bid + bid count, used by listing queries."""

    highest: Bid
    count: int


@dataclass
class AuctionAggregate:
    auction: Auction
    bids: list[Bid] = field(default_factory=list)

    @property
    def winning_bid(self) -> Bid | None:
        """Max amount, ties broken by earliest submission."""
        if not self.bids:
            return None
        return min(self.bids, key=lambda b: (-b.amount, b.created_at))

    @property
    def highest_amount(self) -> int | None:
        winner = self.winning_bid
        return winner.amount if winner else None

    @property
    def bid_count(self) -> int:
        return len(self.bids)

    def summary(self) -> BidSummary | None:
        winner = self.winning_bid
        return BidSummary(highest=winner, count=len(self.bids)) if winner else None
