"""Pydantic schemas and cursor utilities for ah_account API."""

import base64
import binascii
import json

from pydantic import BaseModel, Field

from src.ah_common.cents import cents_to_display

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on garbage."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Amount to deposit in cents")


class WithdrawRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Amount to withdraw in cents")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ProfileResponse(BaseModel):
    user_id: str
    username: str
    balance_cents: int
    balance_display: str

    @classmethod
    def from_cents(cls, user_id: str, username: str, balance: int) -> "ProfileResponse":
        return cls(
            user_id=user_id,
            username=username,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
        )


class BalanceChangeResponse(BaseModel):
    """Result of a deposit or withdrawal."""

    balance_cents: int
    balance_display: str
    amount_cents: int
    amount_display: str
    ledger_entry_id: int

    @classmethod
    def from_result(cls, balance: int, amount: int, entry_id: int) -> "BalanceChangeResponse":
        return cls(
            balance_cents=balance,
            balance_display=cents_to_display(balance),
            amount_cents=amount,
            amount_display=cents_to_display(amount),
            ledger_entry_id=entry_id,
        )


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
