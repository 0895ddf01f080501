"""BiddingService against the in-memory store: accept, reject, buy-now close."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from src.am_bidding.application.service import BidAccepted, BidRejected
from src.am_common.enums import AuctionStatus, LedgerEntryKind, RejectReason
from src.am_common.errors import StoreIntegrityError
from src.am_settlement.domain.models import AuctionClosed, PaymentSettled


class TestPlaceBid:
    async def test_first_bid_holds_deposit(self, market) -> None:
        # $300.00 start, $75.00 deposit; A has $100.00
        auction = await market.open_auction(30000)
        await market.fund("A", 10000)

        result = await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        assert isinstance(result, BidAccepted)
        assert result.current_price == 30100
        assert result.deposit_held == 7500
        assert not result.is_buy_now
        assert market.balance("A") == 2500
        assert market.auction(auction.id).current_price == 30100
        holds = market.entries(account_id="A", kind=LedgerEntryKind.DEPOSIT_HOLD.value)
        assert [e.amount for e in holds] == [-7500]
        assert market.ledger_sums_match()

    async def test_bid_at_current_price_rejected_with_floor(self, market) -> None:
        auction = await market.open_auction(30000)
        await market.fund("A", 10000)
        await market.fund("B", 10000)
        await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        result = await market.bidding.place_bid(market.db, "B", auction.id, 30100, 7500)

        assert isinstance(result, BidRejected)
        assert result.reason is RejectReason.BELOW_MIN_INCREMENT
        assert result.boundary == 30200
        assert "minimum allowed is $302.00" in result.message
        assert market.balance("B") == 10000
        assert len(market.bids(auction.id)) == 1

    async def test_second_bid_by_same_bidder_takes_no_new_hold(self, market) -> None:
        auction = await market.open_auction(30000)
        await market.fund("A", 10000)
        await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        result = await market.bidding.place_bid(market.db, "A", auction.id, 30500, 0)

        assert isinstance(result, BidAccepted)
        assert result.deposit_held == 0
        assert market.balance("A") == 2500
        assert [b.deposit_paid for b in market.bids(auction.id)] == [7500, 0]

    async def test_price_is_monotonic(self, market) -> None:
        auction = await market.open_auction(30000)
        for bidder in ("A", "B", "C"):
            await market.fund(bidder, 20000)

        prices = []
        for bidder, amount in [("A", 30100), ("B", 30300), ("C", 30200), ("A", 31000)]:
            await market.bidding.place_bid(market.db, bidder, auction.id, amount, 7500)
            prices.append(market.auction(auction.id).current_price)

        assert prices == sorted(prices)
        assert prices[-1] == 31000

    async def test_increment_boundary(self, market) -> None:
        auction = await market.open_auction(30000, min_increment=250)
        await market.fund("A", 10000)

        below = await market.bidding.place_bid(market.db, "A", auction.id, 30249, 7500)
        exact = await market.bidding.place_bid(market.db, "A", auction.id, 30250, 7500)

        assert below.reason is RejectReason.BELOW_MIN_INCREMENT
        assert isinstance(exact, BidAccepted)

    async def test_unknown_auction(self, market) -> None:
        result = await market.bidding.place_bid(market.db, "A", 999, 30100, 7500)
        assert result.reason is RejectReason.NOT_FOUND

    async def test_seller_cannot_bid_on_own_auction(self, market) -> None:
        auction = await market.open_auction(30000, seller_id="S")
        await market.fund("S", 10000)

        result = await market.bidding.place_bid(market.db, "S", auction.id, 30100, 7500)

        assert result.reason is RejectReason.FORBIDDEN

    async def test_ended_auction(self, market) -> None:
        auction = await market.open_auction(30000, ends_in=timedelta(minutes=5))
        await market.fund("A", 10000)
        market.now += timedelta(minutes=5)

        result = await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        assert result.reason is RejectReason.ENDED

    async def test_insufficient_balance_for_deposit(self, market) -> None:
        auction = await market.open_auction(30000)
        await market.fund("A", 5000)

        result = await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        assert result.reason is RejectReason.INSUFFICIENT_BALANCE
        assert result.boundary == 7500
        assert market.balance("A") == 5000

    async def test_rejection_rolls_back_and_emits_nothing(self, market) -> None:
        auction = await market.open_auction(30000)
        commits = market.db.commits

        await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        assert market.db.commits == commits
        assert market.db.rollbacks == 1
        assert market.broadcaster.published == []

    async def test_accepted_bid_is_broadcast_after_commit(self, market) -> None:
        auction = await market.open_auction(30000)
        await market.fund("A", 10000)

        await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        (event,) = market.broadcaster.events_named("bid_accepted")
        assert event == {
            "event": "bid_accepted",
            "auction_id": auction.id,
            "amount": 30100,
            "bidder_id": "A",
        }
        assert f"auction:{auction.id}" in market.broadcaster.topics()

    async def test_store_failure_rolls_back_everything(self, market) -> None:
        auction = await market.open_auction(30000)
        await market.fund("A", 10000)
        market.auction_repo.update_current_price = AsyncMock(
            side_effect=OperationalError("UPDATE auctions", {}, Exception("lock timeout"))
        )

        with pytest.raises(StoreIntegrityError):
            await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        assert market.balance("A") == 10000
        assert market.bids(auction.id) == []
        assert market.broadcaster.published == []


class TestBuyNow:
    async def test_buy_now_closes_and_refunds_others(self, market) -> None:
        # Buy-now $500.00 while current price sits at $400.00
        auction = await market.open_auction(30000, buy_now_price=50000)
        await market.fund("A", 20000)
        await market.fund("B", 60000)
        await market.bidding.place_bid(market.db, "A", auction.id, 40000, 7500)
        assert market.balance("A") == 12500

        result = await market.bidding.place_bid(market.db, "B", auction.id, 50000, 7500)

        assert isinstance(result, BidAccepted)
        assert result.is_buy_now
        assert isinstance(result.close, AuctionClosed)
        closed = market.auction(auction.id)
        assert closed.status == AuctionStatus.CLOSED
        assert closed.winner_id == "B"
        assert closed.final_price == 50000
        assert result.close.refunds == {"A": 7500}
        assert market.balance("A") == 20000

    async def test_buy_now_settles_when_funds_suffice(self, market) -> None:
        auction = await market.open_auction(30000, buy_now_price=50000, seller_id="S")
        await market.fund("B", 60000)

        result = await market.bidding.place_bid(market.db, "B", auction.id, 50000, 7500)

        payment = result.close.payment
        assert isinstance(payment, PaymentSettled)
        assert payment.commission == 2500
        assert payment.seller_share == 47500
        assert market.balance("B") == 10000
        assert market.balance("S") == 47500
        assert market.balance("PLATFORM") == 2500
        assert market.auction(auction.id).is_paid
        assert market.deposits_conserved(auction.id)
        assert market.ledger_sums_match()

    async def test_bids_after_buy_now_are_rejected(self, market) -> None:
        auction = await market.open_auction(30000, buy_now_price=50000)
        await market.fund("B", 60000)
        await market.fund("C", 60000)
        await market.bidding.place_bid(market.db, "B", auction.id, 50000, 7500)

        result = await market.bidding.place_bid(market.db, "C", auction.id, 50100, 7500)

        assert result.reason is RejectReason.NOT_ACTIVE

    async def test_above_buy_now_is_an_ordinary_bid(self, market) -> None:
        auction = await market.open_auction(30000, buy_now_price=50000, max_increment=100000)
        await market.fund("B", 60000)

        result = await market.bidding.place_bid(market.db, "B", auction.id, 50100, 7500)

        assert isinstance(result, BidAccepted)
        assert not result.is_buy_now
        assert market.auction(auction.id).status == AuctionStatus.APPROVED

    async def test_buy_now_at_starting_price_closes(self, market) -> None:
        auction = await market.open_auction(30000, buy_now_price=30000, seller_id="S")
        await market.fund("A", 40000)

        result = await market.bidding.place_bid(market.db, "A", auction.id, 30000, 7500)

        assert isinstance(result, BidAccepted)
        assert result.is_buy_now
        closed = market.auction(auction.id)
        assert closed.status == AuctionStatus.CLOSED
        assert closed.winner_id == "A"
        assert closed.final_price == 30000
        assert isinstance(result.close.payment, PaymentSettled)
        assert market.balance("A") == 10000
        assert market.balance("S") == 28500
        assert market.balance("PLATFORM") == 1500

    async def test_buy_now_locks_close_accounts_before_bidder(self, market) -> None:
        auction = await market.open_auction(30000, buy_now_price=50000, seller_id="mona")
        await market.fund("yuri", 20000)
        await market.fund("alex", 60000)
        await market.bidding.place_bid(market.db, "yuri", auction.id, 40000, 7500)
        assert market.wallet_repo.lock_requests == []

        await market.bidding.place_bid(market.db, "alex", auction.id, 50000, 7500)

        expected = ["PLATFORM", "alex", "mona", "yuri"]
        assert market.wallet_repo.lock_requests[0] == expected
        assert all(req == sorted(req) for req in market.wallet_repo.lock_requests)
