"""AuctionApplicationService — listing creation, admin moderation, read side.

Read side: detail with bid history, the public live list (soonest ending
first), a seller's own listings and the moderation queue.

create/approve/reject each run as one transaction; approval events are
published only after commit.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_auction.application.schemas import (
    AuctionDetail,
    AuctionListResponse,
    CreateAuctionRequest,
    ModerationResponse,
    MyBidItem,
    MyBidsResponse,
)
from src.am_auction.domain.repository import (
    AuctionRepositoryProtocol,
    BidRepositoryProtocol,
)
from src.am_auction.domain.rules import compute_deposit, validate_draft
from src.am_auction.infrastructure.persistence import AuctionRepository, BidRepository
from src.am_common.database import run_in_transaction
from src.am_common.datetime_utils import Clock, utc_now
from src.am_common.enums import AuctionStatus
from src.am_common.errors import AuctionNotFoundError, AuctionNotPendingError
from src.am_events.application.notifier import Notifier
from src.am_events.application.publisher import publish_all
from src.am_events.domain import events
from src.am_events.domain.events import EventOutbox
from src.am_events.domain.repository import EventBroadcaster
from src.am_events.infrastructure.broadcaster import RedisEventBroadcaster

logger = logging.getLogger(__name__)


class AuctionApplicationService:
    def __init__(
        self,
        auction_repo: AuctionRepositoryProtocol | None = None,
        bid_repo: BidRepositoryProtocol | None = None,
        notifier: Notifier | None = None,
        broadcaster: EventBroadcaster | None = None,
        clock: Clock = utc_now,
        deposit_rate_bps: int | None = None,
    ) -> None:
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._bids: BidRepositoryProtocol = bid_repo or BidRepository()
        self._notifier = notifier or Notifier()
        self._broadcaster: EventBroadcaster = broadcaster or RedisEventBroadcaster()
        self._clock = clock
        self._deposit_rate_bps = (
            settings.DEPOSIT_RATE_BPS if deposit_rate_bps is None else deposit_rate_bps
        )

    async def create_auction(
        self, db: AsyncSession, seller_id: str, body: CreateAuctionRequest
    ) -> AuctionDetail:
        draft = body.to_draft(seller_id)
        validate_draft(draft, self._clock())
        deposit = compute_deposit(draft.start_price, self._deposit_rate_bps)

        async def work() -> AuctionDetail:
            auction = await self._auctions.create(db, draft, deposit)
            return AuctionDetail.from_domain(auction)

        detail = await run_in_transaction(db, "create_auction", work, seller_id=seller_id)
        logger.info("Auction %s listed by %s (deposit=%d)", detail.id, seller_id, deposit)
        return detail

    async def approve_auction(
        self, db: AsyncSession, admin_id: str, auction_id: int
    ) -> ModerationResponse:
        return await self._moderate(db, admin_id, auction_id, AuctionStatus.APPROVED)

    async def reject_auction(
        self, db: AsyncSession, admin_id: str, auction_id: int, reason: str | None = None
    ) -> ModerationResponse:
        return await self._moderate(db, admin_id, auction_id, AuctionStatus.REJECTED, reason)

    async def _moderate(
        self,
        db: AsyncSession,
        admin_id: str,
        auction_id: int,
        target: AuctionStatus,
        reason: str | None = None,
    ) -> ModerationResponse:
        outbox = EventOutbox()

        async def work() -> ModerationResponse:
            auction = await self._auctions.lock(db, auction_id)
            if auction is None:
                raise AuctionNotFoundError(auction_id)
            if auction.status != AuctionStatus.PENDING:
                raise AuctionNotPendingError(auction_id, auction.status)
            await self._auctions.set_status(db, auction_id, target.value)
            if target is AuctionStatus.APPROVED:
                message = f"Your auction '{auction.title}' was approved and is now live."
                outbox.add(
                    events.auction_approved(auction_id, auction.title, auction.current_price)
                )
            else:
                message = f"Your auction '{auction.title}' was rejected."
                if reason:
                    message = f"{message} Reason: {reason}"
            await self._notifier.notify(db, outbox, auction.seller_id, message, auction_id)
            return ModerationResponse(auction_id=auction_id, status=target.value)

        result = await run_in_transaction(
            db, "moderate_auction", work, auction_id=auction_id, admin_id=admin_id
        )
        logger.info("Auction %s moderated by %s: %s", auction_id, admin_id, target.value)
        await publish_all(self._broadcaster, outbox)
        return result

    async def get_auction(self, db: AsyncSession, auction_id: int) -> AuctionDetail:
        auction = await self._auctions.get(db, auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        bids = await self._bids.list_for_auction(db, auction_id)
        return AuctionDetail.from_domain(auction, bids)

    async def list_my_bids(
        self, db: AsyncSession, bidder_id: str, limit: int = 50
    ) -> MyBidsResponse:
        views = await self._bids.list_by_bidder(db, bidder_id, limit)
        return MyBidsResponse(items=[MyBidItem.from_view(v) for v in views])

    async def list_active_auctions(
        self, db: AsyncSession, limit: int = 50
    ) -> AuctionListResponse:
        auctions = await self._auctions.list_active(db, self._clock(), limit)
        return AuctionListResponse(items=[AuctionDetail.from_domain(a) for a in auctions])

    async def list_seller_auctions(
        self, db: AsyncSession, seller_id: str, limit: int = 50
    ) -> AuctionListResponse:
        auctions = await self._auctions.list_by_seller(db, seller_id, limit)
        return AuctionListResponse(items=[AuctionDetail.from_domain(a) for a in auctions])

    async def list_pending_auctions(
        self, db: AsyncSession, limit: int = 100
    ) -> AuctionListResponse:
        auctions = await self._auctions.list_pending(db, limit)
        return AuctionListResponse(items=[AuctionDetail.from_domain(a) for a in auctions])
