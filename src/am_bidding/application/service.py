"""BiddingService — validate-and-apply a bid as one transaction.

Under the auction row lock: validate, insert the bid, take the deposit hold,
raise current_price and, for a buy-now bid, run the close procedure before
committing. A rejection rolls the transaction back. Events go out only after
commit.

A buy-now bid locks every account its close will write (see
SettlementEngine) before the bidder row, keeping the account_id lock order.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_auction.domain.models import Bid
from src.am_auction.domain.repository import (
    AuctionRepositoryProtocol,
    BidRepositoryProtocol,
)
from src.am_auction.infrastructure.persistence import AuctionRepository, BidRepository
from src.am_bidding.domain.validator import Reject, is_buy_now, validate
from src.am_common.database import run_in_transaction
from src.am_common.datetime_utils import Clock, utc_now
from src.am_common.enums import LedgerEntryKind, RejectReason
from src.am_common.errors import InternalError
from src.am_events.application.publisher import publish_all
from src.am_events.domain import events
from src.am_events.domain.events import EventOutbox
from src.am_events.domain.repository import EventBroadcaster
from src.am_events.infrastructure.broadcaster import RedisEventBroadcaster
from src.am_settlement.application.engine import SettlementEngine
from src.am_settlement.domain.models import AuctionClosed, CloseOutcome
from src.am_wallet.domain.repository import WalletRepositoryProtocol
from src.am_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BidAccepted:
    bid: Bid
    current_price: int
    deposit_held: int
    is_buy_now: bool
    close: CloseOutcome | None = None


@dataclass(frozen=True)
class BidRejected:
    auction_id: int
    reason: RejectReason
    message: str
    boundary: int | None = None


BidOutcome = BidAccepted | BidRejected


class BiddingService:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol | None = None,
        bid_repo: BidRepositoryProtocol | None = None,
        wallet_repo: WalletRepositoryProtocol | None = None,
        engine: SettlementEngine | None = None,
        broadcaster: EventBroadcaster | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._wallet: WalletRepositoryProtocol = wallet_repo or WalletRepository()
        self._engine = engine or SettlementEngine(
            auction_repo=self._auctions, bid_repo=self._bids, wallet_repo=self._wallet
        )
        self._broadcaster: EventBroadcaster = broadcaster or RedisEventBroadcaster()
        self._clock = clock

    async def place_bid(
        self,
        db: AsyncSession,
        bidder_id: str,
        auction_id: int,
        amount: int,
        deposit: int,
    ) -> BidOutcome:
        outbox = EventOutbox()
        result = await run_in_transaction(
            db,
            "place_bid",
            lambda: self._apply(db, bidder_id, auction_id, amount, deposit, outbox),
            commit_if=lambda r: isinstance(r, BidAccepted),
            auction_id=auction_id,
            bidder_id=bidder_id,
        )
        if isinstance(result, BidRejected):
            logger.debug(
                "Bid rejected: auction=%s bidder=%s reason=%s",
                auction_id,
                bidder_id,
                result.reason.value,
            )
            return result
        await publish_all(self._broadcaster, outbox)
        return result

    async def _apply(
        self,
        db: AsyncSession,
        bidder_id: str,
        auction_id: int,
        amount: int,
        deposit: int,
        outbox: EventOutbox,
    ) -> BidOutcome:
        auction = await self._auctions.lock(db, auction_id)
        if auction is None:
            return BidRejected(
                auction_id, RejectReason.NOT_FOUND, f"Auction not found: {auction_id}"
            )
        if auction.seller_id == bidder_id:
            return BidRejected(
                auction_id, RejectReason.FORBIDDEN, "Sellers cannot bid on their own auction"
            )

        existing_hold = await self._bids.held_deposit(db, auction_id, bidder_id)
        if is_buy_now(auction, amount):
            await self._engine.lock_buy_now_accounts(db, auction, bidder_id)
        account = await self._wallet.lock_account(db, bidder_id)
        decision = validate(
            auction,
            amount,
            deposit,
            existing_hold=existing_hold,
            balance=account.balance if account else 0,
            now=self._clock(),
        )
        if isinstance(decision, Reject):
            return BidRejected(auction_id, decision.reason, decision.message, decision.boundary)

        bid = await self._bids.insert(db, auction_id, bidder_id, amount, decision.hold)
        if decision.hold > 0:
            await self._wallet.debit(
                db,
                bidder_id,
                decision.hold,
                LedgerEntryKind.DEPOSIT_HOLD,
                auction_id=auction_id,
                note="Bid deposit hold",
            )
        await self._auctions.update_current_price(db, auction_id, amount)
        outbox.add(events.bid_accepted(auction_id, amount, bidder_id))
        logger.info(
            "Bid accepted: auction=%s bidder=%s amount=%d hold=%d buy_now=%s",
            auction_id,
            bidder_id,
            amount,
            decision.hold,
            decision.is_buy_now,
        )

        close: CloseOutcome | None = None
        if decision.is_buy_now:
            close = await self._engine.close(db, auction_id, outbox)
            if not isinstance(close, AuctionClosed):
                # Same transaction and lock: the auction cannot have changed.
                raise InternalError(
                    f"Buy-now close failed for auction {auction_id}: {close.message}"
                )
        return BidAccepted(bid, amount, decision.hold, decision.is_buy_now, close)
