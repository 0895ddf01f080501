"""004: seed platform account

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Commission receiver (settings.PLATFORM_ACCOUNT_ID)
    op.execute("""
        INSERT INTO accounts (account_id, balance, version)
        VALUES ('PLATFORM', 0, 0)
        ON CONFLICT (account_id) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DELETE FROM accounts WHERE account_id = 'PLATFORM';")
