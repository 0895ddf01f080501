# src/am_settlement/domain/invariants.py
"""Store-wide money and settlement audits.

- ledger balance:       accounts.balance == SUM(ledger_entries.amount) per account
- deposit conservation: per CLOSED auction, SUM(deposit_paid)
                        == SUM(refund_amount of refunded bids) + winner's held deposit
- reserve enforcement:  no AUCTION_PAYMENT entry for a closed auction without a winner
"""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_LEDGER_MISMATCH_SQL = text("""
    SELECT a.account_id, a.balance, COALESCE(SUM(l.amount), 0) AS ledger_sum
    FROM accounts a
    LEFT JOIN ledger_entries l ON l.account_id = a.account_id
    GROUP BY a.account_id, a.balance
    HAVING a.balance <> COALESCE(SUM(l.amount), 0)
""")

_DEPOSIT_MISMATCH_SQL = text("""
    SELECT a.id AS auction_id,
           COALESCE(SUM(b.deposit_paid), 0) AS paid,
           COALESCE(SUM(CASE WHEN b.deposit_refunded THEN b.refund_amount ELSE 0 END), 0)
               AS refunded,
           COALESCE(SUM(CASE WHEN NOT b.deposit_refunded AND b.bidder_id = a.winner_id
                             THEN b.deposit_paid ELSE 0 END), 0) AS held_by_winner
    FROM auctions a
    JOIN bids b ON b.auction_id = a.id
    WHERE a.status = 'CLOSED'
    GROUP BY a.id
    HAVING COALESCE(SUM(b.deposit_paid), 0) <>
           COALESCE(SUM(CASE WHEN b.deposit_refunded THEN b.refund_amount ELSE 0 END), 0)
         + COALESCE(SUM(CASE WHEN NOT b.deposit_refunded AND b.bidder_id = a.winner_id
                             THEN b.deposit_paid ELSE 0 END), 0)
""")

_RESERVE_VIOLATION_SQL = text("""
    SELECT DISTINCT a.id AS auction_id
    FROM auctions a
    JOIN ledger_entries l ON l.auction_id = a.id AND l.kind = 'AUCTION_PAYMENT'
    WHERE a.status = 'CLOSED' AND a.winner_id IS NULL
""")


async def verify_ledger_balances(db: AsyncSession) -> list[str]:
    rows = (await db.execute(_LEDGER_MISMATCH_SQL)).fetchall()
    return [
        f"ledger balance violated: account {r.account_id} "
        f"balance={r.balance} != ledger_sum={r.ledger_sum}"
        for r in rows
    ]


async def verify_deposit_conservation(db: AsyncSession) -> list[str]:
    rows = (await db.execute(_DEPOSIT_MISMATCH_SQL)).fetchall()
    return [
        f"deposit conservation violated: auction {r.auction_id} paid={r.paid} "
        f"!= refunded({r.refunded}) + held_by_winner({r.held_by_winner})"
        for r in rows
    ]


async def verify_reserve_enforcement(db: AsyncSession) -> list[str]:
    rows = (await db.execute(_RESERVE_VIOLATION_SQL)).fetchall()
    return [
        f"reserve enforcement violated: auction {r.auction_id} has no winner "
        "but an AUCTION_PAYMENT entry"
        for r in rows
    ]


async def verify_all(db: AsyncSession) -> list[str]:
    """Run every audit. Returns violation strings, each also logged at ERROR."""
    violations: list[str] = []
    violations.extend(await verify_ledger_balances(db))
    violations.extend(await verify_deposit_conservation(db))
    violations.extend(await verify_reserve_enforcement(db))
    for msg in violations:
        logger.error(msg)
    return violations
