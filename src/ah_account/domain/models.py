"""Domain models for ah_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    user_id: str
    available_balance: int   # cents, never negative
    version: int
    created_at: datetime
    updated_at: datetime


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # cents, positive=income negative=expense
    balance_after: int               # cents, available_balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
