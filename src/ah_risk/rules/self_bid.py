"""Sellers may not bid on their own listings."""

from src.ah_common.enums import BidRejectReason
from src.ah_common.identity import same_user


def is_self_bid(bidder_id: str, seller_id: str) -> bool:
    return same_user(bidder_id, seller_id)


def check_self_bid(bidder_id: str, seller_id: str) -> BidRejectReason | None:
    return BidRejectReason.SELF_BID if is_self_bid(bidder_id, seller_id) else None
