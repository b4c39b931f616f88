"""006: create bids table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id              VARCHAR(64)     PRIMARY KEY,
            auction_id      VARCHAR(64)     NOT NULL
                            REFERENCES auctions (id) ON DELETE RESTRICT,
            bidder_id       VARCHAR(64)     NOT NULL,
            amount          BIGINT          NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL,

            CONSTRAINT ck_bids_amount_gt_0        CHECK (amount > 0),
            CONSTRAINT uq_bids_auction_amount     UNIQUE (auction_id, amount)
        );
    """)
    op.execute("""
        CREATE INDEX idx_bids_auction_ranking
        ON bids (auction_id, amount DESC, created_at ASC);
    """)
    op.execute("CREATE INDEX idx_bids_bidder ON bids (bidder_id, created_at DESC);")
    op.execute("COMMENT ON TABLE bids IS 'Accepted bids, append-only, strictly increasing per auction';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
