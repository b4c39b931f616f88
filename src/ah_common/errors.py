"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account/Ledger
  3xxx: Auction lifecycle
  4xxx: Bid
  5xxx: Settlement
  9xxx: System

Every concrete error belongs to one category (ValidationError,
AuthorizationError, PhaseError, FundsError, ConflictError, UnavailableError)
so callers can branch on the kind of failure without matching codes.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- Categories ---

class ValidationError(AppError):
    """Malformed, missing or unknown input. Caller error, never retried."""


class AuthorizationError(AppError):
    """Caller is not allowed to perform the operation on this resource."""


class PhaseError(AppError):
    """Operation is illegal in the auction's current phase."""


class FundsError(AppError):
    """A balance does not cover the requested amount."""


class ConflictError(AppError):
    """Lost a race for the same aggregate. Safe to retry."""

    def __init__(self, detail: str = "Concurrent modification, please retry") -> None:
        super().__init__(9001, detail, 409)


class UnavailableError(AppError):
    """Storage or lock did not answer in time. Transient."""

    def __init__(self, detail: str = "Service temporarily unavailable") -> None:
        super().__init__(9002, detail, 503)


# --- 1xxx: Auth/User ---

class UsernameExistsError(ValidationError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class InvalidCredentialsError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


# --- 2xxx: Account/Ledger ---

class InsufficientBalanceError(FundsError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class AccountNotFoundError(ValidationError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


class InvalidAmountError(ValidationError):
    def __init__(self, amount: int) -> None:
        super().__init__(2003, f"Amount must be positive, got {amount}", 422)


# --- 3xxx: Auction lifecycle ---

class AuctionNotFoundError(ValidationError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(3001, f"Auction not found: {auction_id}", 404)


class NotAuctionOwnerError(AuthorizationError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(3002, f"Only the seller may modify auction {auction_id}", 403)


class IllegalPhaseError(PhaseError):
    def __init__(self, action: str, phase: str) -> None:
        super().__init__(3003, f"Cannot {action.lower()} an auction that is {phase}", 409)


class AlreadyFinalizedError(PhaseError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(3004, f"Auction already finalized: {auction_id}", 409)


class AuctionHasBidsError(PhaseError):
    def __init__(self, auction_id: str, bid_count: int) -> None:
        super().__init__(
            3005, f"Auction {auction_id} has {bid_count} bid(s) and cannot be deleted", 409
        )


class InvalidAuctionTermsError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(3006, f"Invalid auction terms: {detail}", 422)


# --- 4xxx: Bid ---

class SelfBidError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(4001, "Sellers cannot bid on their own auction", 403)


class AuctionNotLiveError(PhaseError):
    def __init__(self, auction_id: str, phase: str) -> None:
        super().__init__(4002, f"Auction {auction_id} is not live (phase={phase})", 409)


class BidTooLowError(ValidationError):
    def __init__(self, amount: int, floor: int) -> None:
        super().__init__(4003, f"Bid {amount} cents must exceed {floor} cents", 422)


class InsufficientFundsForBidError(FundsError):
    def __init__(self, amount: int, available: int) -> None:
        super().__init__(
            4004,
            f"Bid {amount} cents exceeds available balance {available} cents",
            422,
        )


# --- 5xxx: Settlement ---

class WinnerCannotPayError(FundsError):
    def __init__(self, auction_id: str, winner_id: str, amount: int) -> None:
        super().__init__(
            5001,
            f"Winner {winner_id} cannot pay {amount} cents for auction {auction_id}",
            422,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9003, detail, 500)
