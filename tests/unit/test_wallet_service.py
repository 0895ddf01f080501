"""WalletApplicationService: wallet view, ledger paging, top-up workflow."""

import pytest

from src.am_common.enums import LedgerEntryKind, TopUpStatus
from src.am_common.errors import TopUpAlreadyProcessedError, TopUpNotFoundError
from src.am_wallet.application.schemas import cursor_decode, cursor_encode


class TestCursor:
    def test_roundtrip(self) -> None:
        assert cursor_decode(cursor_encode(42)) == 42

    def test_none(self) -> None:
        assert cursor_decode(None) is None

    def test_garbage_is_ignored(self) -> None:
        assert cursor_decode("not-base64!!") is None


class TestTopUps:
    async def test_request_is_pending_and_announced(self, market) -> None:
        item = await market.wallet.request_topup(market.db, "A", 50000, "bank transfer")

        assert item.status == TopUpStatus.PENDING
        assert item.amount_cents == 50000
        assert market.balance("A") == 0
        (event,) = market.broadcaster.events_named("topup_requested")
        assert event["topup_id"] == item.id
        assert market.broadcaster.topics() == ["admins"]

    async def test_approve_credits_account(self, market) -> None:
        item = await market.wallet.request_topup(market.db, "A", 50000, None)

        approved = await market.wallet.approve_topup(market.db, "admin", item.id)

        assert approved.status == TopUpStatus.APPROVED
        assert approved.admin_id == "admin"
        assert approved.processed_at is not None
        assert market.balance("A") == 50000
        (entry,) = market.entries(account_id="A")
        assert entry.kind == LedgerEntryKind.TOPUP
        assert entry.balance_after == 50000
        assert "approved" in market.store.state.notifications[-1].message

    async def test_reject_leaves_balance(self, market) -> None:
        item = await market.wallet.request_topup(market.db, "A", 50000, None)

        rejected = await market.wallet.reject_topup(market.db, "admin", item.id)

        assert rejected.status == TopUpStatus.REJECTED
        assert market.balance("A") == 0
        assert market.entries(account_id="A") == []

    async def test_double_approval_rejected(self, market) -> None:
        item = await market.wallet.request_topup(market.db, "A", 50000, None)
        await market.wallet.approve_topup(market.db, "admin", item.id)

        with pytest.raises(TopUpAlreadyProcessedError):
            await market.wallet.approve_topup(market.db, "admin", item.id)

        assert market.balance("A") == 50000

    async def test_unknown_topup(self, market) -> None:
        with pytest.raises(TopUpNotFoundError):
            await market.wallet.approve_topup(market.db, "admin", 777)

    async def test_pending_list_excludes_processed(self, market) -> None:
        first = await market.wallet.request_topup(market.db, "A", 1000, None)
        second = await market.wallet.request_topup(market.db, "B", 2000, None)
        await market.wallet.approve_topup(market.db, "admin", first.id)

        pending = await market.wallet.list_pending_topups(market.db)

        assert [t.id for t in pending] == [second.id]


class TestWalletView:
    async def test_unknown_account_has_zero_balance(self, market) -> None:
        wallet = await market.wallet.get_wallet(market.db, "nobody")
        assert wallet.balance_cents == 0
        assert wallet.balance_display == "$0.00"
        assert wallet.recent_entries == []

    async def test_ledger_pages_newest_first(self, market) -> None:
        for amount in (100, 200, 300, 400, 500):
            await market.fund("A", amount)

        page1 = await market.wallet.list_ledger(market.db, "A", None, 2, None)
        page2 = await market.wallet.list_ledger(market.db, "A", page1.next_cursor, 2, None)
        page3 = await market.wallet.list_ledger(market.db, "A", page2.next_cursor, 2, None)

        assert [e.amount_cents for e in page1.items] == [500, 400]
        assert [e.amount_cents for e in page2.items] == [300, 200]
        assert [e.amount_cents for e in page3.items] == [100]
        assert page1.has_more and page2.has_more
        assert not page3.has_more
        assert page3.next_cursor is None

    async def test_ledger_filters_by_kind(self, market) -> None:
        auction = await market.open_auction(30000)
        await market.fund("A", 10000)
        await market.bidding.place_bid(market.db, "A", auction.id, 30100, 7500)

        page = await market.wallet.list_ledger(
            market.db, "A", None, 10, LedgerEntryKind.DEPOSIT_HOLD.value
        )

        assert [e.amount_cents for e in page.items] == [-7500]
        assert page.items[0].amount_display == "-$75.00"
