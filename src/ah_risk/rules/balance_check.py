from src.ah_common.enums import BidRejectReason


def check_bidder_funds(amount: int, bidder_balance: int) -> BidRejectReason | None:
    """Bidder must hold the full amount at bid time.

    Nothing is reserved; the winner's balance is checked again when the
    auction settles.
    """
    return BidRejectReason.INSUFFICIENT_FUNDS if amount > bidder_balance else None
