from src.ah_common.enums import BidRejectReason


def bid_floor(base_price: int, highest_bid: int | None) -> int:
    """Amount a new bid must strictly exceed."""
    return max(base_price, highest_bid or 0)


def check_bid_floor(
    amount: int, base_price: int, highest_bid: int | None
) -> BidRejectReason | None:
    """Reject unless amount > max(base_price, highest_bid).

    A bid equal to the base price or to the current highest bid is too low.
    """
    if amount <= bid_floor(base_price, highest_bid):
        return BidRejectReason.BID_TOO_LOW
    return None
