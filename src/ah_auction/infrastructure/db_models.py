"""SQLAlchemy ORM models for the auctions and bids tables.

persistence.py uses raw text() SQL; these models give Alembic autogenerate a
metadata target. Migrations 005/006 are the authoritative DDL.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.ah_common.database import Base


class AuctionORM(Base):
    __tablename__ = "auctions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    seller_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    base_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    posted_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    start_delay_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    live_duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class BidORM(Base):
    __tablename__ = "bids"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    auction_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("auctions.id", ondelete="RESTRICT"), nullable=False
    )
    bidder_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # NOTE: No updated_at; bids are append-only
