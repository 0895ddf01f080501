"""SettlementEngine — close and payment steps run inside the caller's transaction.

Nothing here commits or rolls back. The owner of the transaction
(SettlementService, or BiddingService for a buy-now bid) decides from the
returned result; events are only buffered into the outbox.

Lock order: the auction row first, then every account the close or payment
writes (refunded bidders, winner, seller, platform) in one statement ordered
by account_id, before the first balance change.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_auction.domain.models import Auction, Bid
from src.am_auction.domain.repository import (
    AuctionRepositoryProtocol,
    BidRepositoryProtocol,
)
from src.am_auction.infrastructure.persistence import AuctionRepository, BidRepository
from src.am_common.cents import cents_to_display
from src.am_common.enums import AuctionStatus, LedgerEntryKind, RejectReason
from src.am_events.application.notifier import Notifier
from src.am_events.domain import events
from src.am_events.domain.events import EventOutbox
from src.am_settlement.domain.models import (
    AuctionClosed,
    CloseOutcome,
    CloseRejected,
    PaymentInsufficient,
    PaymentOutcome,
    PaymentRejected,
    PaymentSettled,
)
from src.am_settlement.domain.winner import amount_owed, select_winner, split_proceeds
from src.am_wallet.domain.repository import WalletRepositoryProtocol
from src.am_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


class SettlementEngine:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol | None = None,
        bid_repo: BidRepositoryProtocol | None = None,
        wallet_repo: WalletRepositoryProtocol | None = None,
        notifier: Notifier | None = None,
        commission_rate_bps: int | None = None,
        platform_account_id: str | None = None,
    ) -> None:
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._wallet: WalletRepositoryProtocol = wallet_repo or WalletRepository()
        self._notifier = notifier or Notifier()
        self._commission_rate_bps = (
            settings.COMMISSION_RATE_BPS if commission_rate_bps is None else commission_rate_bps
        )
        self._platform_account_id = platform_account_id or settings.PLATFORM_ACCOUNT_ID

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    async def close(
        self, db: AsyncSession, auction_id: int, outbox: EventOutbox
    ) -> CloseOutcome:
        auction = await self._auctions.lock(db, auction_id)
        if auction is None:
            return CloseRejected(
                auction_id, RejectReason.NOT_FOUND, f"Auction not found: {auction_id}"
            )
        if auction.status == AuctionStatus.CLOSED:
            return CloseRejected(
                auction_id,
                RejectReason.ALREADY_CLOSED,
                f"Auction {auction_id} is already closed",
                winner_id=auction.winner_id,
                final_price=auction.final_price,
            )
        if auction.status != AuctionStatus.APPROVED:
            return CloseRejected(
                auction_id,
                RejectReason.NOT_ACTIVE,
                f"Auction {auction_id} is not active (status={auction.status})",
            )

        bids = await self._bids.list_for_auction(db, auction_id)
        winning_bid = select_winner(bids, auction.reserve_price)
        winner_id = winning_bid.bidder_id if winning_bid else None
        final_price = winning_bid.amount if winning_bid else None
        await self._lock_accounts(db, auction, bids, winner_id)
        await self._auctions.mark_closed(db, auction_id, winner_id, final_price)

        refunds: dict[str, int] = {}
        for bidder_id in _deposit_bidders(bids):
            if bidder_id == winner_id:
                held = await self._bids.held_deposit(db, auction_id, bidder_id)
                await self._notifier.notify(
                    db,
                    outbox,
                    bidder_id,
                    f"Your deposit of {cents_to_display(held)} for '{auction.title}' "
                    "is held pending payment.",
                    auction_id,
                )
                outbox.add(events.deposit_held(bidder_id, auction_id, held))
                continue
            refunded = await self._bids.refund_deposits(db, auction_id, bidder_id)
            if refunded <= 0:
                continue
            await self._wallet.credit(
                db,
                bidder_id,
                refunded,
                LedgerEntryKind.DEPOSIT_REFUND,
                auction_id=auction_id,
                note="Deposit refund",
            )
            refunds[bidder_id] = refunded
            await self._notifier.notify(
                db,
                outbox,
                bidder_id,
                f"Your deposit of {cents_to_display(refunded)} for '{auction.title}' "
                "has been refunded.",
                auction_id,
            )
            outbox.add(events.deposit_refunded(bidder_id, auction_id, refunded))

        payment: PaymentSettled | PaymentInsufficient | None = None
        if winner_id is not None and final_price is not None:
            payment = await self._settle(db, auction, winner_id, final_price, outbox)

        outbox.add(events.auction_closed(auction_id, winner_id, final_price))
        if winner_id is not None and final_price is not None:
            await self._notifier.notify(
                db,
                outbox,
                winner_id,
                f"Congratulations! You won '{auction.title}' "
                f"for {cents_to_display(final_price)}.",
                auction_id,
            )
        else:
            await self._notifier.notify(
                db,
                outbox,
                auction.seller_id,
                f"Your auction '{auction.title}' closed without a winner.",
                auction_id,
            )

        logger.info(
            "Auction %s closed: winner=%s final_price=%s refunds=%d",
            auction_id,
            winner_id,
            final_price,
            len(refunds),
        )
        return AuctionClosed(auction_id, winner_id, final_price, refunds, payment)

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    async def confirm_payment(
        self, db: AsyncSession, auction_id: int, winner_id: str, outbox: EventOutbox
    ) -> PaymentOutcome:
        """Explicit payment retry for a closed, unpaid auction."""
        auction = await self._auctions.lock(db, auction_id)
        if auction is None:
            return PaymentRejected(
                auction_id, RejectReason.NOT_FOUND, f"Auction not found: {auction_id}"
            )
        if auction.status != AuctionStatus.CLOSED or auction.final_price is None:
            return PaymentRejected(
                auction_id,
                RejectReason.NOT_CLOSED,
                f"Auction {auction_id} has no closed sale to pay for",
            )
        if auction.winner_id != winner_id:
            return PaymentRejected(
                auction_id,
                RejectReason.NOT_WINNER,
                f"Account {winner_id} did not win auction {auction_id}",
            )
        if auction.is_paid:
            return PaymentRejected(
                auction_id, RejectReason.ALREADY_PAID, f"Auction {auction_id} is already paid"
            )
        await self._wallet.lock_accounts(
            db, [winner_id, auction.seller_id, self._platform_account_id]
        )
        return await self._settle(db, auction, winner_id, auction.final_price, outbox)

    async def lock_buy_now_accounts(
        self, db: AsyncSession, auction: Auction, bidder_id: str
    ) -> None:
        """Pre-lock the accounts an immediate close will write, bidder included."""
        bids = await self._bids.list_for_auction(db, auction.id)
        await self._lock_accounts(db, auction, bids, bidder_id)

    async def _lock_accounts(
        self, db: AsyncSession, auction: Auction, bids: list[Bid], winner_id: str | None
    ) -> None:
        account_ids = set(_deposit_bidders(bids))
        if winner_id is not None:
            account_ids.update((winner_id, auction.seller_id, self._platform_account_id))
        await self._wallet.lock_accounts(db, sorted(account_ids))

    async def _settle(
        self,
        db: AsyncSession,
        auction: Auction,
        winner_id: str,
        final_price: int,
        outbox: EventOutbox,
    ) -> PaymentSettled | PaymentInsufficient:
        commission, seller_share = split_proceeds(final_price, self._commission_rate_bps)
        held = await self._bids.held_deposit(db, auction.id, winner_id)
        owed = amount_owed(final_price, held)

        account = await self._wallet.lock_account(db, winner_id)
        available = account.balance if account else 0
        if available < owed:
            await self._wallet.record_marker(
                db,
                winner_id,
                LedgerEntryKind.INSUFFICIENT_FUNDS,
                auction_id=auction.id,
                related_account_id=auction.seller_id,
                note=f"Payment due: {owed} cents",
            )
            await self._notifier.notify(
                db,
                outbox,
                winner_id,
                f"Payment of {cents_to_display(owed)} for '{auction.title}' is still due. "
                "Top up your wallet and confirm the payment.",
                auction.id,
            )
            outbox.add(events.payment_insufficient(auction.id, winner_id, owed))
            logger.info(
                "Payment pending for auction %s: owed=%d available=%d",
                auction.id,
                owed,
                available,
            )
            return PaymentInsufficient(auction.id, winner_id, owed, available)

        if held > 0:
            returned = await self._bids.refund_deposits(db, auction.id, winner_id)
            await self._wallet.credit(
                db,
                winner_id,
                returned,
                LedgerEntryKind.DEPOSIT_REFUND,
                auction_id=auction.id,
                note="Deposit applied to payment",
            )
        else:
            returned = 0
        await self._wallet.debit(
            db,
            winner_id,
            final_price,
            LedgerEntryKind.AUCTION_PAYMENT,
            auction_id=auction.id,
            related_account_id=auction.seller_id,
        )
        if seller_share > 0:
            await self._wallet.credit(
                db,
                auction.seller_id,
                seller_share,
                LedgerEntryKind.SALE_PROCEEDS,
                auction_id=auction.id,
                related_account_id=winner_id,
            )
        if commission > 0:
            await self._wallet.credit(
                db,
                self._platform_account_id,
                commission,
                LedgerEntryKind.COMMISSION,
                auction_id=auction.id,
                related_account_id=auction.seller_id,
            )
        await self._auctions.mark_paid(db, auction.id)

        settled = PaymentSettled(
            auction_id=auction.id,
            winner_id=winner_id,
            seller_id=auction.seller_id,
            final_price=final_price,
            commission=commission,
            seller_share=seller_share,
            deposit_returned=returned,
        )
        await self._notifier.notify(
            db,
            outbox,
            winner_id,
            f"Payment of {cents_to_display(final_price)} for '{auction.title}' completed.",
            auction.id,
        )
        await self._notifier.notify(
            db,
            outbox,
            auction.seller_id,
            f"'{auction.title}' sold: {cents_to_display(seller_share)} credited "
            f"after {cents_to_display(commission)} commission.",
            auction.id,
        )
        outbox.add(
            events.payment_settled(auction.id, winner_id, auction.seller_id, settled.amounts())
        )
        logger.info(
            "Auction %s paid: final=%d commission=%d seller_share=%d",
            auction.id,
            final_price,
            commission,
            seller_share,
        )
        return settled


def _deposit_bidders(bids: list[Bid]) -> list[str]:
    """Distinct bidders holding an un-refunded deposit, in first-bid order."""
    seen: dict[str, None] = {}
    for bid in bids:
        if bid.holds_deposit:
            seen.setdefault(bid.bidder_id, None)
    return list(seen)
