"""002: create auctions and bids

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE auctions (
            id              BIGSERIAL    PRIMARY KEY,
            seller_id       VARCHAR(64)  NOT NULL,
            title           VARCHAR(150) NOT NULL,
            description     TEXT         NOT NULL DEFAULT '',
            category        VARCHAR(80)  NOT NULL,
            image_url       VARCHAR(255),
            start_price     BIGINT       NOT NULL,
            current_price   BIGINT       NOT NULL,
            min_increment   BIGINT       NOT NULL DEFAULT 100,
            max_increment   BIGINT,
            reserve_price   BIGINT,
            buy_now_price   BIGINT,
            deposit_amount  BIGINT       NOT NULL DEFAULT 0,
            ends_at         TIMESTAMPTZ  NOT NULL,
            status          VARCHAR(20)  NOT NULL DEFAULT 'PENDING',
            winner_id       VARCHAR(64),
            final_price     BIGINT,
            is_paid         BOOLEAN      NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_auctions_status CHECK (
                status IN ('PENDING', 'APPROVED', 'REJECTED', 'CLOSED')
            ),
            CONSTRAINT ck_auctions_start_gt_0     CHECK (start_price > 0),
            CONSTRAINT ck_auctions_current_gte_start CHECK (current_price >= start_price),
            CONSTRAINT ck_auctions_min_inc_gt_0   CHECK (min_increment > 0),
            CONSTRAINT ck_auctions_max_inc CHECK (
                max_increment IS NULL OR max_increment >= min_increment
            ),
            CONSTRAINT ck_auctions_reserve CHECK (
                reserve_price IS NULL OR reserve_price >= start_price
            ),
            CONSTRAINT ck_auctions_buy_now CHECK (
                buy_now_price IS NULL OR buy_now_price >= start_price
            ),
            CONSTRAINT ck_auctions_deposit_gte_0  CHECK (deposit_amount >= 0),
            CONSTRAINT ck_auctions_winner_closed CHECK (
                winner_id IS NULL OR status = 'CLOSED'
            ),
            CONSTRAINT ck_auctions_paid_has_winner CHECK (
                NOT is_paid OR winner_id IS NOT NULL
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_auctions_expiring ON auctions (ends_at) WHERE status = 'APPROVED';
    """)

    op.execute("""
        CREATE TABLE bids (
            id                BIGSERIAL   PRIMARY KEY,
            auction_id        BIGINT      NOT NULL REFERENCES auctions(id),
            bidder_id         VARCHAR(64) NOT NULL,
            amount            BIGINT      NOT NULL,
            deposit_paid      BIGINT      NOT NULL DEFAULT 0,
            deposit_refunded  BOOLEAN     NOT NULL DEFAULT FALSE,
            refund_amount     BIGINT      NOT NULL DEFAULT 0,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_amount_gt_0   CHECK (amount > 0),
            CONSTRAINT ck_bids_deposit_gte_0 CHECK (deposit_paid >= 0),
            CONSTRAINT ck_bids_refund CHECK (
                (deposit_refunded AND refund_amount = deposit_paid)
                OR (NOT deposit_refunded AND refund_amount = 0)
            )
        );
    """)
    op.execute("CREATE INDEX idx_bids_auction ON bids (auction_id, amount DESC, created_at);")
    op.execute("CREATE INDEX idx_bids_bidder ON bids (bidder_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
    op.execute("DROP TABLE IF EXISTS auctions CASCADE;")
