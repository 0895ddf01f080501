"""Bid Validator — pure decision over a row-locked auction snapshot.

Rules, in order, first failing rule wins:
  0. amount > 0 and deposit >= 0                        else INVALID_AMOUNT
  1. status == APPROVED                                 else NOT_ACTIVE
  2. now < ends_at                                      else ENDED
  3. amount == buy_now_price (> current_price)          → buy-now, skips 4-5
  4. amount >= current_price + min_increment            else BELOW_MIN_INCREMENT
  5. amount <= current_price + max_increment (if set)   else ABOVE_MAX_INCREMENT
  6. deposit >= deposit_amount unless already held      else DEPOSIT_TOO_LOW
  7. balance >= hold to be taken                        else INSUFFICIENT_BALANCE

Rejections carry the computed boundary so a client can resubmit directly.
"""

from dataclasses import dataclass
from datetime import datetime

from src.am_auction.domain.models import Auction
from src.am_common.cents import cents_to_display
from src.am_common.datetime_utils import ensure_utc
from src.am_common.enums import AuctionStatus, RejectReason


@dataclass(frozen=True)
class Accept:
    is_buy_now: bool
    hold: int  # cents to debit as DEPOSIT_HOLD now; 0 when an earlier hold covers it


@dataclass(frozen=True)
class Reject:
    reason: RejectReason
    message: str
    boundary: int | None = None  # cents


BidDecision = Accept | Reject


def minimum_allowed(auction: Auction) -> int:
    return auction.current_price + auction.min_increment


def maximum_allowed(auction: Auction) -> int | None:
    if auction.max_increment is None:
        return None
    return auction.current_price + auction.max_increment


def is_buy_now(auction: Auction, amount: int) -> bool:
    return (
        auction.buy_now_price is not None
        and amount == auction.buy_now_price
        and auction.buy_now_price >= auction.current_price
    )


def validate(
    auction: Auction,
    amount: int,
    deposit: int,
    *,
    existing_hold: int,
    balance: int,
    now: datetime,
) -> BidDecision:
    if amount <= 0:
        return Reject(RejectReason.INVALID_AMOUNT, "Bid amount must be positive")
    if deposit < 0:
        return Reject(RejectReason.INVALID_AMOUNT, "Deposit must not be negative")

    if auction.status != AuctionStatus.APPROVED:
        return Reject(
            RejectReason.NOT_ACTIVE,
            f"Auction {auction.id} is not accepting bids (status={auction.status})",
        )
    if now >= ensure_utc(auction.ends_at):
        return Reject(RejectReason.ENDED, f"Auction {auction.id} has ended")

    buy_now = is_buy_now(auction, amount)
    if not buy_now:
        floor = minimum_allowed(auction)
        if amount < floor:
            return Reject(
                RejectReason.BELOW_MIN_INCREMENT,
                f"Bid too low: minimum allowed is {cents_to_display(floor)}",
                boundary=floor,
            )
        ceiling = maximum_allowed(auction)
        if ceiling is not None and amount > ceiling:
            return Reject(
                RejectReason.ABOVE_MAX_INCREMENT,
                f"Bid too high: maximum allowed is {cents_to_display(ceiling)}",
                boundary=ceiling,
            )

    required = auction.deposit_amount
    hold = 0
    if required > 0 and existing_hold < required:
        if deposit < required:
            return Reject(
                RejectReason.DEPOSIT_TOO_LOW,
                f"Deposit too low: required deposit is {cents_to_display(required)}",
                boundary=required,
            )
        hold = required - existing_hold
    if hold > 0 and balance < hold:
        return Reject(
            RejectReason.INSUFFICIENT_BALANCE,
            f"Insufficient balance for deposit: need {cents_to_display(hold)}, "
            f"available {cents_to_display(balance)}",
            boundary=hold,
        )
    return Accept(is_buy_now=buy_now, hold=hold)
