"""Tests for the pure bid validator (rule order, boundaries, deposit holds)."""

from datetime import UTC, datetime, timedelta

from src.am_auction.domain.models import Auction
from src.am_bidding.domain.validator import (
    Accept,
    Reject,
    is_buy_now,
    maximum_allowed,
    minimum_allowed,
    validate,
)
from src.am_common.enums import AuctionStatus, RejectReason

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _make_auction(**kwargs) -> Auction:
    defaults = dict(
        id=1,
        seller_id="seller",
        title="Vintage camera",
        description="",
        category="electronics",
        image_url=None,
        start_price=30000,
        current_price=30000,
        min_increment=100,
        max_increment=None,
        reserve_price=None,
        buy_now_price=None,
        deposit_amount=7500,
        ends_at=NOW + timedelta(hours=1),
        status=AuctionStatus.APPROVED.value,
    )
    defaults.update(kwargs)
    return Auction(**defaults)


def _validate(auction, amount, deposit=7500, existing_hold=0, balance=100000, now=NOW):
    return validate(
        auction, amount, deposit, existing_hold=existing_hold, balance=balance, now=now
    )


class TestBounds:
    def test_minimum_allowed(self) -> None:
        assert minimum_allowed(_make_auction(current_price=30100, min_increment=100)) == 30200

    def test_maximum_allowed_unbounded(self) -> None:
        assert maximum_allowed(_make_auction()) is None

    def test_maximum_allowed(self) -> None:
        assert maximum_allowed(_make_auction(max_increment=5000)) == 35000

    def test_buy_now_requires_exact_amount(self) -> None:
        auction = _make_auction(buy_now_price=50000)
        assert is_buy_now(auction, 50000)
        assert not is_buy_now(auction, 49999)

    def test_buy_now_at_current_price_still_applies(self) -> None:
        auction = _make_auction(buy_now_price=30000)
        assert is_buy_now(auction, 30000)
        assert _validate(auction, 30000) == Accept(is_buy_now=True, hold=7500)

    def test_buy_now_below_current_price_is_ordinary(self) -> None:
        auction = _make_auction(buy_now_price=50000, current_price=50100)
        assert not is_buy_now(auction, 50000)


class TestAccept:
    def test_first_bid_takes_full_deposit(self) -> None:
        # $300.00 start, $1.00 increment: $301.00 with a $75.00 deposit
        decision = _validate(_make_auction(), 30100)
        assert decision == Accept(is_buy_now=False, hold=7500)

    def test_existing_hold_is_not_taken_twice(self) -> None:
        auction = _make_auction(current_price=30100)
        decision = _validate(auction, 30200, deposit=0, existing_hold=7500)
        assert decision == Accept(is_buy_now=False, hold=0)

    def test_partial_hold_tops_up_difference(self) -> None:
        decision = _validate(_make_auction(), 30100, existing_hold=5000)
        assert isinstance(decision, Accept)
        assert decision.hold == 2500

    def test_no_deposit_required(self) -> None:
        decision = _validate(_make_auction(deposit_amount=0), 30100, deposit=0, balance=0)
        assert decision == Accept(is_buy_now=False, hold=0)

    def test_buy_now_skips_max_increment(self) -> None:
        auction = _make_auction(max_increment=1000, buy_now_price=90000)
        decision = _validate(auction, 90000)
        assert decision == Accept(is_buy_now=True, hold=7500)

    def test_exact_max_increment_accepted(self) -> None:
        decision = _validate(_make_auction(max_increment=5000), 35000)
        assert isinstance(decision, Accept)


class TestReject:
    def test_non_positive_amount(self) -> None:
        decision = _validate(_make_auction(), 0)
        assert isinstance(decision, Reject)
        assert decision.reason is RejectReason.INVALID_AMOUNT

    def test_negative_deposit(self) -> None:
        decision = _validate(_make_auction(), 30100, deposit=-1)
        assert decision.reason is RejectReason.INVALID_AMOUNT

    def test_pending_auction_not_active(self) -> None:
        decision = _validate(_make_auction(status=AuctionStatus.PENDING.value), 30100)
        assert decision.reason is RejectReason.NOT_ACTIVE

    def test_closed_auction_not_active(self) -> None:
        decision = _validate(_make_auction(status=AuctionStatus.CLOSED.value), 30100)
        assert decision.reason is RejectReason.NOT_ACTIVE

    def test_ended_at_exact_end_time(self) -> None:
        decision = _validate(_make_auction(ends_at=NOW), 30100)
        assert decision.reason is RejectReason.ENDED

    def test_naive_end_time_treated_as_utc(self) -> None:
        auction = _make_auction(ends_at=(NOW - timedelta(minutes=1)).replace(tzinfo=None))
        assert _validate(auction, 30100).reason is RejectReason.ENDED

    def test_below_min_increment_reports_floor(self) -> None:
        # current $301.00, increment $1.00: $301.50 is too low
        decision = _validate(_make_auction(current_price=30100), 30150)
        assert decision.reason is RejectReason.BELOW_MIN_INCREMENT
        assert decision.boundary == 30200
        assert decision.message == "Bid too low: minimum allowed is $302.00"

    def test_equal_to_current_price_rejected(self) -> None:
        decision = _validate(_make_auction(), 30000)
        assert decision.reason is RejectReason.BELOW_MIN_INCREMENT

    def test_above_max_increment_reports_ceiling(self) -> None:
        decision = _validate(_make_auction(max_increment=5000), 35001)
        assert decision.reason is RejectReason.ABOVE_MAX_INCREMENT
        assert decision.boundary == 35000

    def test_deposit_too_low(self) -> None:
        decision = _validate(_make_auction(), 30100, deposit=7499)
        assert decision.reason is RejectReason.DEPOSIT_TOO_LOW
        assert decision.boundary == 7500

    def test_insufficient_balance_for_hold(self) -> None:
        decision = _validate(_make_auction(), 30100, balance=7499)
        assert decision.reason is RejectReason.INSUFFICIENT_BALANCE
        assert decision.boundary == 7500

    def test_status_checked_before_amount_bounds(self) -> None:
        auction = _make_auction(status=AuctionStatus.CLOSED.value, ends_at=NOW)
        assert _validate(auction, 1).reason is RejectReason.NOT_ACTIVE
