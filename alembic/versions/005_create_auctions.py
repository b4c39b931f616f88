"""005: create auctions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE auctions (
            id                      VARCHAR(64)     PRIMARY KEY,
            seller_id               VARCHAR(64)     NOT NULL,
            item_name               VARCHAR(200)    NOT NULL,
            description             TEXT            NOT NULL,
            image_url               VARCHAR(1000),
            base_price              BIGINT          NOT NULL,
            posted_time             TIMESTAMPTZ     NOT NULL,
            start_delay_seconds     INTEGER         NOT NULL DEFAULT 0,
            live_duration_seconds   INTEGER         NOT NULL,
            finalized               BOOLEAN         NOT NULL DEFAULT FALSE,
            finalized_at            TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),

            CONSTRAINT ck_auctions_base_price_gt_0   CHECK (base_price > 0),
            CONSTRAINT ck_auctions_start_delay_gte_0 CHECK (start_delay_seconds >= 0),
            CONSTRAINT ck_auctions_duration_gte_0    CHECK (live_duration_seconds >= 0),
            CONSTRAINT ck_auctions_finalized_at      CHECK (finalized = (finalized_at IS NOT NULL))
        );
    """)
    op.execute("CREATE INDEX idx_auctions_seller ON auctions (seller_id, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_auctions_open
        ON auctions (posted_time)
        WHERE finalized = FALSE;
    """)
    op.execute("""
        CREATE TRIGGER trg_auctions_updated_at
            BEFORE UPDATE ON auctions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE auctions IS 'Listings; phase is derived from times + finalized';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS auctions CASCADE;")
