"""Global enums: string values must match DB CHECK constraints exactly."""

from enum import Enum


class AuctionPhase(str, Enum):
    """Derived lifecycle stage. Computed from timestamps, never stored."""
    UPCOMING = "UPCOMING"
    LIVE = "LIVE"
    ENDED = "ENDED"


class AuctionAction(str, Enum):
    EDIT = "EDIT"
    ACTIVATE = "ACTIVATE"
    BID = "BID"
    END = "END"
    DELETE = "DELETE"


class BidRejectReason(str, Enum):
    SELF_BID = "SELF_BID"
    AUCTION_NOT_LIVE = "AUCTION_NOT_LIVE"
    BID_TOO_LOW = "BID_TOO_LOW"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"


class SettlementStatus(str, Enum):
    SETTLED = "SETTLED"
    SETTLED_NO_BIDS = "SETTLED_NO_BIDS"
    REJECTED = "REJECTED"


class SettlementRejectReason(str, Enum):
    WINNER_CANNOT_PAY = "WINNER_CANNOT_PAY"


class LedgerEntryType(str, Enum):
    # Deposit/Withdraw
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    # Settlement (winner + seller paired)
    SETTLEMENT_PAYMENT = "SETTLEMENT_PAYMENT"
    SETTLEMENT_RECEIPT = "SETTLEMENT_RECEIPT"
