"""Listing rules applied when a seller creates an auction."""

from datetime import datetime

from src.am_auction.domain.models import AuctionDraft
from src.am_common.cents import apply_rate_bps
from src.am_common.datetime_utils import ensure_utc
from src.am_common.errors import InvalidAuctionError


def compute_deposit(start_price: int, deposit_rate_bps: int) -> int:
    """Refundable hold per bidder, fixed at creation: round(start_price * rate, 2)."""
    return apply_rate_bps(start_price, deposit_rate_bps)


def validate_draft(draft: AuctionDraft, now: datetime) -> None:
    """Raise InvalidAuctionError (VALIDATION) on the first broken listing rule."""
    if not draft.title.strip():
        raise InvalidAuctionError("title is required")
    if draft.start_price <= 0:
        raise InvalidAuctionError("start_price must be positive")
    if draft.min_increment <= 0:
        raise InvalidAuctionError("min_increment must be positive")
    if draft.max_increment is not None and draft.max_increment < draft.min_increment:
        raise InvalidAuctionError("max_increment must be >= min_increment")
    if draft.reserve_price is not None and draft.reserve_price < draft.start_price:
        raise InvalidAuctionError("reserve_price must be >= start_price")
    if draft.buy_now_price is not None and draft.buy_now_price < draft.start_price:
        raise InvalidAuctionError("buy_now_price must be >= start_price")
    if (
        draft.buy_now_price is not None
        and draft.reserve_price is not None
        and draft.buy_now_price < draft.reserve_price
    ):
        raise InvalidAuctionError("buy_now_price must be >= reserve_price")
    if ensure_utc(draft.ends_at) <= now:
        raise InvalidAuctionError("ends_at must be in the future")
