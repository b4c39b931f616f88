"""AuctionRepository: raw SQL over the auctions and bids tables.

Durations are stored as whole seconds. The aggregate load takes a row lock on
the auction (SELECT ... FOR UPDATE) so bids, edits and settlement on the same
auction serialize at the database as well as in-process.

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime, timedelta

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ah_auction.domain.models import Auction, AuctionAggregate, Bid, BidSummary
from src.ah_common.errors import AuctionNotFoundError

_AUCTION_COLUMNS = """
    id, seller_id, item_name, description, image_url, base_price,
    posted_time, start_delay_seconds, live_duration_seconds,
    finalized, finalized_at, created_at, updated_at
"""

_GET_AUCTION_SQL = text(f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE id = :auction_id")

_GET_AUCTION_FOR_UPDATE_SQL = text(
    f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE id = :auction_id FOR UPDATE"
)

_GET_BIDS_SQL = text("""
    SELECT id, auction_id, bidder_id, amount, created_at
    FROM bids
    WHERE auction_id = :auction_id
    ORDER BY created_at ASC, id ASC
""")

_INSERT_AUCTION_SQL = text(f"""
    INSERT INTO auctions
        (id, seller_id, item_name, description, image_url, base_price,
         posted_time, start_delay_seconds, live_duration_seconds)
    VALUES
        (:id, :seller_id, :item_name, :description, :image_url, :base_price,
         :posted_time, :start_delay_seconds, :live_duration_seconds)
    RETURNING {_AUCTION_COLUMNS}
""")

_UPDATE_DESCRIPTION_SQL = text(f"""
    UPDATE auctions
    SET description = :description, updated_at = NOW()
    WHERE id = :auction_id
    RETURNING {_AUCTION_COLUMNS}
""")

# Activation restarts the clock: posted_time = now, no start delay.
_MARK_ACTIVATED_SQL = text(f"""
    UPDATE auctions
    SET posted_time = :now, start_delay_seconds = 0, updated_at = NOW()
    WHERE id = :auction_id
    RETURNING {_AUCTION_COLUMNS}
""")

_MARK_FINALIZED_SQL = text("""
    UPDATE auctions
    SET finalized = TRUE, finalized_at = :now, live_duration_seconds = 0,
        updated_at = NOW()
    WHERE id = :auction_id AND finalized = FALSE
    RETURNING id
""")

_INSERT_BID_SQL = text("""
    INSERT INTO bids (id, auction_id, bidder_id, amount, created_at)
    VALUES (:id, :auction_id, :bidder_id, :amount, :created_at)
""")

_DELETE_AUCTION_SQL = text("DELETE FROM auctions WHERE id = :auction_id RETURNING id")

_LIST_UNFINALIZED_SQL = text(
    f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE finalized = FALSE ORDER BY posted_time ASC"
)

_LIST_BY_SELLER_SQL = text(
    f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE seller_id = :seller_id"
    " ORDER BY created_at DESC"
)

# One row per auction: its winning bid (max amount, earliest on ties) and
# the total bid count.
_BID_SUMMARIES_SQL = text("""
    SELECT DISTINCT ON (auction_id)
           id, auction_id, bidder_id, amount, created_at,
           COUNT(*) OVER (PARTITION BY auction_id) AS bid_count
    FROM bids
    WHERE auction_id = ANY(:auction_ids)
    ORDER BY auction_id, amount DESC, created_at ASC
""")


def _row_to_auction(row: object) -> Auction:
    return Auction(
        id=row.id,  # type: ignore[attr-defined]
        seller_id=row.seller_id,  # type: ignore[attr-defined]
        item_name=row.item_name,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        image_url=row.image_url,  # type: ignore[attr-defined]
        base_price=row.base_price,  # type: ignore[attr-defined]
        posted_time=row.posted_time,  # type: ignore[attr-defined]
        start_delay=timedelta(seconds=row.start_delay_seconds),  # type: ignore[attr-defined]
        live_duration=timedelta(seconds=row.live_duration_seconds),  # type: ignore[attr-defined]
        finalized=row.finalized,  # type: ignore[attr-defined]
        finalized_at=row.finalized_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_bid(row: object) -> Bid:
    return Bid(
        id=row.id,  # type: ignore[attr-defined]
        auction_id=row.auction_id,  # type: ignore[attr-defined]
        bidder_id=row.bidder_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AuctionRepository:
    async def load_aggregate(
        self, db: AsyncSession, auction_id: str, for_update: bool = False
    ) -> AuctionAggregate | None:
        sql = _GET_AUCTION_FOR_UPDATE_SQL if for_update else _GET_AUCTION_SQL
        row = (await db.execute(sql, {"auction_id": auction_id})).fetchone()
        if row is None:
            return None
        bid_rows = (await db.execute(_GET_BIDS_SQL, {"auction_id": auction_id})).fetchall()
        return AuctionAggregate(
            auction=_row_to_auction(row), bids=[_row_to_bid(r) for r in bid_rows]
        )

    async def create(self, db: AsyncSession, auction: Auction) -> Auction:
        result = await db.execute(
            _INSERT_AUCTION_SQL,
            {
                "id": auction.id,
                "seller_id": auction.seller_id,
                "item_name": auction.item_name,
                "description": auction.description,
                "image_url": auction.image_url,
                "base_price": auction.base_price,
                "posted_time": auction.posted_time,
                "start_delay_seconds": int(auction.start_delay.total_seconds()),
                "live_duration_seconds": int(auction.live_duration.total_seconds()),
            },
        )
        return _row_to_auction(result.fetchone())

    async def update_description(
        self, db: AsyncSession, auction_id: str, description: str
    ) -> Auction:
        result = await db.execute(
            _UPDATE_DESCRIPTION_SQL, {"auction_id": auction_id, "description": description}
        )
        return self._one_or_not_found(result.fetchone(), auction_id)

    async def mark_activated(
        self, db: AsyncSession, auction_id: str, now: datetime
    ) -> Auction:
        result = await db.execute(_MARK_ACTIVATED_SQL, {"auction_id": auction_id, "now": now})
        return self._one_or_not_found(result.fetchone(), auction_id)

    async def mark_finalized(self, db: AsyncSession, auction_id: str, now: datetime) -> None:
        result = await db.execute(_MARK_FINALIZED_SQL, {"auction_id": auction_id, "now": now})
        if result.fetchone() is None:
            raise AuctionNotFoundError(auction_id)

    async def insert_bid(self, db: AsyncSession, bid: Bid) -> None:
        await db.execute(
            _INSERT_BID_SQL,
            {
                "id": bid.id,
                "auction_id": bid.auction_id,
                "bidder_id": bid.bidder_id,
                "amount": bid.amount,
                "created_at": bid.created_at,
            },
        )

    async def delete(self, db: AsyncSession, auction_id: str) -> None:
        result = await db.execute(_DELETE_AUCTION_SQL, {"auction_id": auction_id})
        if result.fetchone() is None:
            raise AuctionNotFoundError(auction_id)

    async def list_unfinalized(self, db: AsyncSession) -> list[Auction]:
        rows = (await db.execute(_LIST_UNFINALIZED_SQL)).fetchall()
        return [_row_to_auction(r) for r in rows]

    async def list_by_seller(self, db: AsyncSession, seller_id: str) -> list[Auction]:
        rows = (await db.execute(_LIST_BY_SELLER_SQL, {"seller_id": seller_id})).fetchall()
        return [_row_to_auction(r) for r in rows]

    async def get_bid_summaries(
        self, db: AsyncSession, auction_ids: list[str]
    ) -> dict[str, BidSummary]:
        if not auction_ids:
            return {}
        rows = (
            await db.execute(_BID_SUMMARIES_SQL, {"auction_ids": list(auction_ids)})
        ).fetchall()
        return {
            r.auction_id: BidSummary(highest=_row_to_bid(r), count=r.bid_count) for r in rows
        }

    @staticmethod
    def _one_or_not_found(row: object, auction_id: str) -> Auction:
        if row is None:
            raise AuctionNotFoundError(auction_id)
        return _row_to_auction(row)
