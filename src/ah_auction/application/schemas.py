"""Pydantic request/response schemas for ah_auction API.

Durations are accepted in minutes (what sellers type) and stored in seconds.
Money is always cents plus a display string.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.ah_auction.domain.models import Auction, AuctionAggregate, Bid, BidSummary
from src.ah_auction.domain.phase import classify
from src.ah_auction.domain.settlement import SettlementOutcome
from src.ah_common.cents import cents_or_none_to_display, cents_to_display

MAX_START_DELAY_MINUTES = 60 * 24 * 30
MAX_LIVE_DURATION_MINUTES = 60 * 24 * 30


def _strip_not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v.strip()


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateAuctionRequest(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    image_url: str | None = Field(None, max_length=1000)
    base_price_cents: int = Field(..., gt=0)
    start_delay_minutes: int = Field(0, ge=0, le=MAX_START_DELAY_MINUTES)
    live_duration_minutes: int = Field(..., gt=0, le=MAX_LIVE_DURATION_MINUTES)

    @field_validator("item_name", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_not_blank(v)


class EditDescriptionRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=5000)

    @field_validator("description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _strip_not_blank(v)


class PlaceBidRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Bid amount in cents")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AuctionView(BaseModel):
    id: str
    seller_id: str
    item_name: str
    description: str
    image_url: str | None
    base_price_cents: int
    base_price_display: str
    phase: str
    posted_time: datetime
    starts_at: datetime
    ends_at: datetime
    finalized: bool
    highest_bid_cents: int | None
    highest_bid_display: str | None
    highest_bidder_id: str | None
    bid_count: int

    @classmethod
    def build(
        cls, auction: Auction, summary: BidSummary | None, now: datetime
    ) -> "AuctionView":
        highest = summary.highest if summary else None
        return cls(
            id=auction.id,
            seller_id=auction.seller_id,
            item_name=auction.item_name,
            description=auction.description,
            image_url=auction.image_url,
            base_price_cents=auction.base_price,
            base_price_display=cents_to_display(auction.base_price),
            phase=classify(auction, now).value,
            posted_time=auction.posted_time,
            starts_at=auction.starts_at,
            ends_at=auction.ends_at,
            finalized=auction.finalized,
            highest_bid_cents=highest.amount if highest else None,
            highest_bid_display=cents_or_none_to_display(highest.amount if highest else None),
            highest_bidder_id=highest.bidder_id if highest else None,
            bid_count=summary.count if summary else 0,
        )

    @classmethod
    def from_aggregate(cls, aggregate: AuctionAggregate, now: datetime) -> "AuctionView":
        return cls.build(aggregate.auction, aggregate.summary(), now)


class AuctionListResponse(BaseModel):
    items: list[AuctionView]
    total: int


class BidItem(BaseModel):
    id: str
    bidder_id: str
    amount_cents: int
    amount_display: str
    created_at: datetime

    @classmethod
    def from_bid(cls, bid: Bid) -> "BidItem":
        return cls(
            id=bid.id,
            bidder_id=bid.bidder_id,
            amount_cents=bid.amount,
            amount_display=cents_to_display(bid.amount),
            created_at=bid.created_at,
        )


class AuctionDetail(AuctionView):
    bids: list[BidItem]

    @classmethod
    def from_aggregate(cls, aggregate: AuctionAggregate, now: datetime) -> "AuctionDetail":
        view = AuctionView.from_aggregate(aggregate, now)
        newest_first = sorted(aggregate.bids, key=lambda b: b.created_at, reverse=True)
        return cls(**view.model_dump(), bids=[BidItem.from_bid(b) for b in newest_first])


class BidResponse(BaseModel):
    bid_id: str
    auction_id: str
    bidder_id: str
    amount_cents: int
    amount_display: str
    bid_count: int
    created_at: datetime

    @classmethod
    def from_bid(cls, bid: Bid, bid_count: int) -> "BidResponse":
        return cls(
            bid_id=bid.id,
            auction_id=bid.auction_id,
            bidder_id=bid.bidder_id,
            amount_cents=bid.amount,
            amount_display=cents_to_display(bid.amount),
            bid_count=bid_count,
            created_at=bid.created_at,
        )


class SettlementResponse(BaseModel):
    auction_id: str
    status: str
    seller_id: str
    winner_id: str | None
    amount_cents: int | None
    amount_display: str | None
    finalized_at: datetime | None

    @classmethod
    def from_outcome(cls, outcome: SettlementOutcome) -> "SettlementResponse":
        return cls(
            auction_id=outcome.auction_id,
            status=outcome.status.value,
            seller_id=outcome.seller_id,
            winner_id=outcome.winner_id,
            amount_cents=outcome.amount,
            amount_display=cents_or_none_to_display(outcome.amount),
            finalized_at=outcome.finalized_at,
        )


class AuctionResultResponse(BaseModel):
    """Who is winning (LIVE) or who won (ENDED)."""

    auction_id: str
    item_name: str
    phase: str
    finalized: bool
    finalized_at: datetime | None
    winner_id: str | None
    winning_bid_cents: int | None
    winning_bid_display: str | None
    bid_count: int

    @classmethod
    def from_aggregate(
        cls, aggregate: AuctionAggregate, now: datetime
    ) -> "AuctionResultResponse":
        auction = aggregate.auction
        winner = aggregate.winning_bid
        return cls(
            auction_id=auction.id,
            item_name=auction.item_name,
            phase=classify(auction, now).value,
            finalized=auction.finalized,
            finalized_at=auction.finalized_at,
            winner_id=winner.bidder_id if winner else None,
            winning_bid_cents=winner.amount if winner else None,
            winning_bid_display=cents_or_none_to_display(winner.amount if winner else None),
            bid_count=aggregate.bid_count,
        )


class DeleteAuctionResponse(BaseModel):
    auction_id: str
    deleted: bool
