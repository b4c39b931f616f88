from src.ah_common.enums import AuctionPhase, BidRejectReason


def check_auction_live(phase: AuctionPhase) -> BidRejectReason | None:
    """Bids are accepted only while the auction is LIVE."""
    return None if phase is AuctionPhase.LIVE else BidRejectReason.AUCTION_NOT_LIVE
