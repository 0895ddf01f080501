"""In-memory store, repositories and session for service-level unit tests.

FakeSession.commit() snapshots the store and rollback() restores the last
snapshot, so a rejected or failed operation really leaves no partial writes.
"""

import copy
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

import pytest

from src.am_auction.application.service import AuctionApplicationService
from src.am_auction.domain.models import Auction, AuctionDraft, Bid, BidderBidView
from src.am_bidding.application.service import BiddingService
from src.am_common.enums import AuctionStatus, LedgerEntryKind, TopUpStatus
from src.am_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InternalError,
    TopUpNotFoundError,
)
from src.am_events.application.notifier import Notifier
from src.am_events.domain.models import Notification
from src.am_events.infrastructure.broadcaster import RecordingBroadcaster
from src.am_settlement.application.engine import SettlementEngine
from src.am_settlement.application.service import SettlementService
from src.am_wallet.application.service import WalletApplicationService
from src.am_wallet.domain.models import Account, LedgerEntry, TopUpRequest

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
PLATFORM = "PLATFORM"
COMMISSION_BPS = 500
DEPOSIT_BPS = 2500


@dataclass
class StoreState:
    accounts: dict[str, Account] = field(default_factory=dict)
    ledger: list[LedgerEntry] = field(default_factory=list)
    topups: dict[int, TopUpRequest] = field(default_factory=dict)
    auctions: dict[int, Auction] = field(default_factory=dict)
    bids: list[Bid] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)
    next_id: int = 1
    ticks: int = 0


class InMemoryStore:
    def __init__(self) -> None:
        self.state = StoreState()

    def new_id(self) -> int:
        value = self.state.next_id
        self.state.next_id += 1
        return value

    def tick(self) -> datetime:
        self.state.ticks += 1
        return NOW + timedelta(milliseconds=self.state.ticks)

    def snapshot(self) -> StoreState:
        return copy.deepcopy(self.state)

    def restore(self, snapshot: StoreState) -> None:
        self.state = copy.deepcopy(snapshot)


class FakeSession:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.commits = 0
        self.rollbacks = 0
        self._snapshot = store.snapshot()

    async def commit(self) -> None:
        self.commits += 1
        self._snapshot = self.store.snapshot()

    async def rollback(self) -> None:
        self.rollbacks += 1
        self.store.restore(self._snapshot)


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class FakeWalletRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.lock_requests: list[list[str]] = []

    async def get_account(self, db, account_id):
        account = self.store.state.accounts.get(account_id)
        return replace(account) if account else None

    async def lock_account(self, db, account_id):
        return await self.get_account(db, account_id)

    async def lock_accounts(self, db, account_ids):
        ordered = sorted(set(account_ids))
        self.lock_requests.append(ordered)
        for account_id in ordered:
            self.store.state.accounts.setdefault(account_id, Account(account_id, 0, 0))
        return [replace(self.store.state.accounts[a]) for a in ordered]

    async def credit(
        self, db, account_id, amount, kind, *, auction_id=None, related_account_id=None, note=None
    ):
        if amount <= 0:
            raise InternalError(f"credit amount must be positive, got {amount}")
        account = self.store.state.accounts.setdefault(account_id, Account(account_id, 0, 0))
        account.balance += amount
        account.version += 1
        return self._append(account, kind, amount, auction_id, related_account_id, note)

    async def debit(
        self, db, account_id, amount, kind, *, auction_id=None, related_account_id=None, note=None
    ):
        if amount <= 0:
            raise InternalError(f"debit amount must be positive, got {amount}")
        account = self.store.state.accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if account.balance < amount:
            raise InsufficientBalanceError(amount, account.balance)
        account.balance -= amount
        account.version += 1
        return self._append(account, kind, -amount, auction_id, related_account_id, note)

    async def record_marker(
        self, db, account_id, kind, *, auction_id=None, related_account_id=None, note=None
    ):
        account = self.store.state.accounts.setdefault(account_id, Account(account_id, 0, 0))
        return self._append(account, kind, 0, auction_id, related_account_id, note)

    def _append(self, account, kind, amount, auction_id, related_account_id, note):
        entry = LedgerEntry(
            id=self.store.new_id(),
            account_id=account.account_id,
            kind=LedgerEntryKind(kind).value,
            amount=amount,
            balance_after=account.balance,
            related_account_id=related_account_id,
            auction_id=auction_id,
            note=note,
            created_at=self.store.tick(),
        )
        self.store.state.ledger.append(entry)
        return entry

    async def list_entries(self, db, account_id, cursor_id, limit, kind):
        rows = [
            e
            for e in self.store.state.ledger
            if e.account_id == account_id
            and (cursor_id is None or e.id < cursor_id)
            and (kind is None or e.kind == kind)
        ]
        rows.sort(key=lambda e: e.id, reverse=True)
        return rows[:limit]

    async def create_topup(self, db, account_id, amount, note):
        topup = TopUpRequest(
            id=self.store.new_id(),
            account_id=account_id,
            amount=amount,
            status=TopUpStatus.PENDING.value,
            note=note,
            created_at=self.store.tick(),
        )
        self.store.state.topups[topup.id] = topup
        return replace(topup)

    async def lock_topup(self, db, topup_id):
        topup = self.store.state.topups.get(topup_id)
        return replace(topup) if topup else None

    async def finish_topup(self, db, topup_id, status, admin_id):
        topup = self.store.state.topups.get(topup_id)
        if topup is None or topup.status != TopUpStatus.PENDING:
            raise TopUpNotFoundError(topup_id)
        topup.status = status
        topup.admin_id = admin_id
        topup.processed_at = self.store.tick()
        return replace(topup)

    async def list_topups(self, db, account_id, status, limit):
        rows = [
            t
            for t in self.store.state.topups.values()
            if (account_id is None or t.account_id == account_id)
            and (status is None or t.status == status)
        ]
        rows.sort(key=lambda t: t.id, reverse=True)
        return [replace(t) for t in rows[:limit]]


class FakeAuctionRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def create(self, db, draft: AuctionDraft, deposit_amount: int) -> Auction:
        auction = Auction(
            id=self.store.new_id(),
            seller_id=draft.seller_id,
            title=draft.title,
            description=draft.description,
            category=draft.category,
            image_url=draft.image_url,
            start_price=draft.start_price,
            current_price=draft.start_price,
            min_increment=draft.min_increment,
            max_increment=draft.max_increment,
            reserve_price=draft.reserve_price,
            buy_now_price=draft.buy_now_price,
            deposit_amount=deposit_amount,
            ends_at=draft.ends_at,
            status=AuctionStatus.PENDING.value,
            created_at=self.store.tick(),
        )
        self.store.state.auctions[auction.id] = auction
        return replace(auction)

    async def get(self, db, auction_id):
        auction = self.store.state.auctions.get(auction_id)
        return replace(auction) if auction else None

    async def lock(self, db, auction_id):
        return await self.get(db, auction_id)

    def _row(self, auction_id: int) -> Auction:
        return self.store.state.auctions[auction_id]

    async def update_current_price(self, db, auction_id, price):
        row = self._row(auction_id)
        if row.status != AuctionStatus.APPROVED or price < row.current_price:
            raise InternalError(f"Price update rejected for auction {auction_id}")
        row.current_price = price

    async def set_status(self, db, auction_id, status):
        row = self._row(auction_id)
        if row.status != AuctionStatus.PENDING:
            raise InternalError(f"Status update rejected for auction {auction_id}")
        row.status = status

    async def mark_closed(self, db, auction_id, winner_id, final_price):
        row = self._row(auction_id)
        if row.status != AuctionStatus.APPROVED:
            raise InternalError(f"Close rejected for auction {auction_id}")
        row.status = AuctionStatus.CLOSED.value
        row.winner_id = winner_id
        row.final_price = final_price

    async def mark_paid(self, db, auction_id):
        row = self._row(auction_id)
        if row.status != AuctionStatus.CLOSED or row.winner_id is None or row.is_paid:
            raise InternalError(f"Mark-paid rejected for auction {auction_id}")
        row.is_paid = True

    async def list_expired_ids(self, db, now, limit):
        rows = [
            a
            for a in self.store.state.auctions.values()
            if a.status == AuctionStatus.APPROVED and a.ends_at <= now
        ]
        rows.sort(key=lambda a: a.ends_at)
        return [a.id for a in rows[:limit]]

    async def list_active(self, db, now, limit):
        rows = [
            a
            for a in self.store.state.auctions.values()
            if a.status == AuctionStatus.APPROVED and a.ends_at > now
        ]
        rows.sort(key=lambda a: (a.ends_at, a.id))
        return [replace(a) for a in rows[:limit]]

    async def list_by_seller(self, db, seller_id, limit):
        rows = [a for a in self.store.state.auctions.values() if a.seller_id == seller_id]
        rows.sort(key=lambda a: a.id, reverse=True)
        return [replace(a) for a in rows[:limit]]

    async def list_pending(self, db, limit):
        rows = [
            a for a in self.store.state.auctions.values() if a.status == AuctionStatus.PENDING
        ]
        rows.sort(key=lambda a: a.id)
        return [replace(a) for a in rows[:limit]]


class FakeBidRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def insert(self, db, auction_id, bidder_id, amount, deposit_paid):
        bid = Bid(
            id=self.store.new_id(),
            auction_id=auction_id,
            bidder_id=bidder_id,
            amount=amount,
            deposit_paid=deposit_paid,
            created_at=self.store.tick(),
        )
        self.store.state.bids.append(bid)
        return replace(bid)

    async def list_for_auction(self, db, auction_id):
        rows = [b for b in self.store.state.bids if b.auction_id == auction_id]
        rows.sort(key=lambda b: (b.created_at, b.id))
        return [replace(b) for b in rows]

    async def held_deposit(self, db, auction_id, bidder_id):
        return sum(
            b.deposit_paid
            for b in self.store.state.bids
            if b.auction_id == auction_id and b.bidder_id == bidder_id and b.holds_deposit
        )

    async def refund_deposits(self, db, auction_id, bidder_id):
        total = 0
        for b in self.store.state.bids:
            if b.auction_id == auction_id and b.bidder_id == bidder_id and b.holds_deposit:
                b.deposit_refunded = True
                b.refund_amount = b.deposit_paid
                total += b.refund_amount
        return total

    async def list_by_bidder(self, db, bidder_id, limit):
        rows = [b for b in self.store.state.bids if b.bidder_id == bidder_id]
        rows.sort(key=lambda b: b.id, reverse=True)
        views = []
        for b in rows[:limit]:
            a = self.store.state.auctions[b.auction_id]
            views.append(
                BidderBidView(
                    bid=replace(b),
                    auction_title=a.title,
                    auction_status=a.status,
                    current_price=a.current_price,
                    ends_at=a.ends_at,
                    winner_id=a.winner_id,
                    final_price=a.final_price,
                )
            )
        return views


class FakeNotificationRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def add(self, db, account_id, message, auction_id):
        n = Notification(
            id=self.store.new_id(),
            account_id=account_id,
            message=message,
            auction_id=auction_id,
            created_at=self.store.tick(),
        )
        self.store.state.notifications.append(n)
        return replace(n)

    async def list_for_account(self, db, account_id, limit):
        rows = [n for n in self.store.state.notifications if n.account_id == account_id]
        rows.sort(key=lambda n: n.id, reverse=True)
        return [replace(n) for n in rows[:limit]]

    async def mark_read(self, db, notification_id, account_id):
        for n in self.store.state.notifications:
            if n.id == notification_id and n.account_id == account_id:
                n.is_read = True
                return True
        return False


# ---------------------------------------------------------------------------
# Wired marketplace
# ---------------------------------------------------------------------------


class Marketplace:
    """All services wired to one in-memory store, a fixed clock and a recorder."""

    def __init__(self) -> None:
        self.now = NOW
        self.store = InMemoryStore()
        self.db = FakeSession(self.store)
        self.broadcaster = RecordingBroadcaster()
        self.wallet_repo = FakeWalletRepository(self.store)
        self.auction_repo = FakeAuctionRepository(self.store)
        self.bid_repo = FakeBidRepository(self.store)
        self.notification_repo = FakeNotificationRepository(self.store)
        self.notifier = Notifier(self.notification_repo)
        self.engine = SettlementEngine(
            auction_repo=self.auction_repo,
            bid_repo=self.bid_repo,
            wallet_repo=self.wallet_repo,
            notifier=self.notifier,
            commission_rate_bps=COMMISSION_BPS,
            platform_account_id=PLATFORM,
        )
        self.bidding = BiddingService(
            auction_repo=self.auction_repo,
            bid_repo=self.bid_repo,
            wallet_repo=self.wallet_repo,
            engine=self.engine,
            broadcaster=self.broadcaster,
            clock=self.clock,
        )
        self.settlement = SettlementService(
            engine=self.engine,
            auction_repo=self.auction_repo,
            broadcaster=self.broadcaster,
            clock=self.clock,
        )
        self.auctions = AuctionApplicationService(
            auction_repo=self.auction_repo,
            bid_repo=self.bid_repo,
            notifier=self.notifier,
            broadcaster=self.broadcaster,
            clock=self.clock,
            deposit_rate_bps=DEPOSIT_BPS,
        )
        self.wallet = WalletApplicationService(
            repo=self.wallet_repo, notifier=self.notifier, broadcaster=self.broadcaster
        )

    def clock(self) -> datetime:
        return self.now

    # -- seeding helpers (each commits, like a finished earlier request) --

    async def fund(self, account_id: str, amount: int) -> None:
        await self.wallet_repo.credit(self.db, account_id, amount, LedgerEntryKind.TOPUP)
        await self.db.commit()

    async def open_auction(
        self,
        start_price: int = 30000,
        *,
        seller_id: str = "seller",
        min_increment: int = 100,
        max_increment: int | None = None,
        reserve_price: int | None = None,
        buy_now_price: int | None = None,
        deposit_amount: int | None = None,
        ends_in: timedelta = timedelta(days=1),
    ) -> Auction:
        draft = AuctionDraft(
            seller_id=seller_id,
            title="Vintage camera",
            description="Film camera, working",
            category="electronics",
            image_url=None,
            start_price=start_price,
            ends_at=self.now + ends_in,
            min_increment=min_increment,
            max_increment=max_increment,
            reserve_price=reserve_price,
            buy_now_price=buy_now_price,
        )
        deposit = start_price * DEPOSIT_BPS // 10000 if deposit_amount is None else deposit_amount
        auction = await self.auction_repo.create(self.db, draft, deposit)
        self.store.state.auctions[auction.id].status = AuctionStatus.APPROVED.value
        await self.db.commit()
        return self.store.state.auctions[auction.id]

    # -- inspection helpers --

    def balance(self, account_id: str) -> int:
        account = self.store.state.accounts.get(account_id)
        return account.balance if account else 0

    def auction(self, auction_id: int) -> Auction:
        return self.store.state.auctions[auction_id]

    def bids(self, auction_id: int) -> list[Bid]:
        return [b for b in self.store.state.bids if b.auction_id == auction_id]

    def entries(self, *, account_id: str | None = None, kind: str | None = None):
        return [
            e
            for e in self.store.state.ledger
            if (account_id is None or e.account_id == account_id)
            and (kind is None or e.kind == kind)
        ]

    def ledger_sums_match(self) -> bool:
        for account_id, account in self.store.state.accounts.items():
            if account.balance != sum(e.amount for e in self.entries(account_id=account_id)):
                return False
        return True

    def deposits_conserved(self, auction_id: int) -> bool:
        auction = self.auction(auction_id)
        bids = self.bids(auction_id)
        paid = sum(b.deposit_paid for b in bids)
        refunded = sum(b.refund_amount for b in bids if b.deposit_refunded)
        held = sum(
            b.deposit_paid
            for b in bids
            if not b.deposit_refunded and b.bidder_id == auction.winner_id
        )
        return paid == refunded + held


@pytest.fixture
def market() -> Marketplace:
    return Marketplace()
