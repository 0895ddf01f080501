"""001: create accounts, ledger_entries and wallet_topups

Revision ID: 001
Revises: 
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_touch_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE accounts (
            account_id  VARCHAR(64) PRIMARY KEY,
            balance     BIGINT      NOT NULL DEFAULT 0,
            version     BIGINT      NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_balance_gte_0 CHECK (balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'Wallet balances, all amounts in cents';")

    op.execute("""
        CREATE TABLE ledger_entries (
            id                  BIGSERIAL   PRIMARY KEY,
            account_id          VARCHAR(64) NOT NULL REFERENCES accounts(account_id),
            kind                VARCHAR(30) NOT NULL,
            amount              BIGINT      NOT NULL,
            balance_after       BIGINT      NOT NULL,
            related_account_id  VARCHAR(64),
            auction_id          BIGINT,
            note                VARCHAR(255),
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_kind CHECK (kind IN (
                'TOPUP', 'DEPOSIT_HOLD', 'DEPOSIT_REFUND', 'AUCTION_PAYMENT',
                'SALE_PROCEEDS', 'COMMISSION', 'INSUFFICIENT_FUNDS'
            )),
            CONSTRAINT ck_ledger_marker_zero CHECK (
                kind <> 'INSUFFICIENT_FUNDS' OR amount = 0
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_ledger_account_id ON ledger_entries (account_id, id DESC);
    """)
    op.execute("""
        CREATE INDEX idx_ledger_auction ON ledger_entries (auction_id)
            WHERE auction_id IS NOT NULL;
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS 'Append-only; sum(amount) == accounts.balance';")

    op.execute("""
        CREATE TABLE wallet_topups (
            id            BIGSERIAL   PRIMARY KEY,
            account_id    VARCHAR(64) NOT NULL,
            amount        BIGINT      NOT NULL,
            status        VARCHAR(20) NOT NULL DEFAULT 'PENDING',
            note          VARCHAR(255),
            admin_id      VARCHAR(64),
            created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            processed_at  TIMESTAMPTZ,
            CONSTRAINT ck_topups_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_topups_status CHECK (status IN ('PENDING', 'APPROVED', 'REJECTED'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_topups_pending ON wallet_topups (id DESC) WHERE status = 'PENDING';
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_topups CASCADE;")
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_touch_updated_at();")
