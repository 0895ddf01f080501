"""Winner selection and sale proceeds split. Pure functions, no I/O."""

from src.am_auction.domain.models import Bid
from src.am_common.cents import apply_rate_bps


def best_bid(bids: list[Bid]) -> Bid | None:
    """Highest amount wins; ties go to the earliest submission."""
    best: Bid | None = None
    for bid in bids:
        if best is None or bid.amount > best.amount:
            best = bid
        elif bid.amount == best.amount and _submitted_before(bid, best):
            best = bid
    return best


def _submitted_before(a: Bid, b: Bid) -> bool:
    if a.created_at is not None and b.created_at is not None and a.created_at != b.created_at:
        return a.created_at < b.created_at
    return a.id < b.id


def select_winner(bids: list[Bid], reserve_price: int | None) -> Bid | None:
    """Best bid, or None when there are no bids or the reserve is not met."""
    best = best_bid(bids)
    if best is None:
        return None
    if reserve_price is not None and best.amount < reserve_price:
        return None
    return best


def split_proceeds(final_price: int, commission_rate_bps: int) -> tuple[int, int]:
    """Return (commission, seller_share); commission is rounded half-up to the cent.

    >>> split_proceeds(100000, 500)
    (5000, 95000)
    """
    if not 0 <= commission_rate_bps < 10000:
        raise ValueError(f"commission rate out of range: {commission_rate_bps} bps")
    commission = apply_rate_bps(final_price, commission_rate_bps)
    return commission, final_price - commission


def amount_owed(final_price: int, held_deposit: int) -> int:
    """Net amount the winner still has to cover after the held deposit."""
    return max(0, final_price - held_deposit)
