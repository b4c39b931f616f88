"""Repository protocol for the auction aggregate.

Mutating methods never commit; the application service owns the unit of
work. load_aggregate(for_update=True) must lock the auction row so that a
second unit touching the same auction waits for the first to finish.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.domain.models import Auction, AuctionAggregate, Bid, BidSummary


class AuctionRepositoryProtocol(Protocol):
    async def load_aggregate(
        self, db: AsyncSession, auction_id: str, for_update: bool = False
    ) -> AuctionAggregate | None: ...

    async def create(self, db: AsyncSession, auction: Auction) -> Auction: ...

    async def update_description(
        self, db: AsyncSession, auction_id: str, description: str
    ) -> Auction: ...

    async def mark_activated(
        self, db: AsyncSession, auction_id: str, now: datetime
    ) -> Auction: ...

    async def mark_finalized(
        self, db: AsyncSession, auction_id: str, now: datetime
    ) -> None: ...

    async def insert_bid(self, db: AsyncSession, bid: Bid) -> None: ...

    async def delete(self, db: AsyncSession, auction_id: str) -> None: ...

    async def list_unfinalized(self, db: AsyncSession) -> list[Auction]: ...

    async def list_by_seller(self, db: AsyncSession, seller_id: str) -> list[Auction]: ...

    async def get_bid_summaries(
        self, db: AsyncSession, auction_ids: list[str]
    ) -> dict[str, BidSummary]: ...
