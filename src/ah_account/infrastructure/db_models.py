"""ORM mirror of the accounts and ledger_entries tables (migrations 003/004).

Only Alembic reads these; the repository talks raw SQL. Constraint and index
names match the migrations so autogenerate reports no drift.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.ah_common.database import Base
from src.ah_common.enums import LedgerEntryType

_ENTRY_TYPES = ", ".join(f"'{t.value}'" for t in LedgerEntryType)


class AccountORM(Base):
    """One per user, opened at registration with a zero balance."""

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_accounts_user_id"),
        CheckConstraint("available_balance >= 0", name="ck_accounts_available_gte_0"),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")
    )
    # same string as auctions.seller_id / bids.bidder_id
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    available_balance: Mapped[int] = mapped_column(
        BigInteger, nullable=False, server_default=text("0")
    )
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )


class LedgerEntryORM(Base):
    """Append-only money movements. amount is signed, balance_after never negative."""

    __tablename__ = "ledger_entries"
    __table_args__ = (
        CheckConstraint(f"entry_type IN ({_ENTRY_TYPES})", name="ck_ledger_entry_type"),
        CheckConstraint("balance_after >= 0", name="ck_ledger_balance_gte_0"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_type: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # "AUCTION" + auction id for settlement rows, NULL for deposits/withdrawals
    reference_type: Mapped[str | None] = mapped_column(String(30))
    reference_id: Mapped[str | None] = mapped_column(String(64))
    description: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )


Index("idx_ledger_user_time", LedgerEntryORM.user_id, LedgerEntryORM.created_at.desc())
Index(
    "idx_ledger_reference",
    LedgerEntryORM.reference_type,
    LedgerEntryORM.reference_id,
    postgresql_where=LedgerEntryORM.reference_id.isnot(None),
)
