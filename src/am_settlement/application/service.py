"""SettlementService — transaction owner for close, payment and the sweep.

Each call is one all-or-nothing transaction around SettlementEngine; buffered
events are published only after commit, and a failed publish never re-runs
the close.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_auction.domain.repository import AuctionRepositoryProtocol
from src.am_auction.infrastructure.persistence import AuctionRepository
from src.am_common.database import run_in_transaction
from src.am_common.datetime_utils import Clock, utc_now
from src.am_common.enums import RejectReason
from src.am_common.errors import AppError
from src.am_events.application.publisher import publish_all
from src.am_events.domain.events import EventOutbox
from src.am_events.domain.repository import EventBroadcaster
from src.am_events.infrastructure.broadcaster import RedisEventBroadcaster
from src.am_settlement.application.engine import SettlementEngine
from src.am_settlement.domain import invariants
from src.am_settlement.domain.models import (
    AuctionClosed,
    CloseOutcome,
    PaymentInsufficient,
    PaymentOutcome,
    PaymentSettled,
    SweepReport,
)

logger = logging.getLogger(__name__)

# A sweep may race an explicit close or a buy-now bid on the same auction.
_SWEEP_TOLERATED = (RejectReason.ALREADY_CLOSED, RejectReason.NOT_ACTIVE)


class SettlementService:
    def __init__(
        self,
        engine: SettlementEngine | None = None,
        auction_repo: AuctionRepositoryProtocol | None = None,
        broadcaster: EventBroadcaster | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._engine = engine or SettlementEngine()
        self._auctions: AuctionRepositoryProtocol = auction_repo or AuctionRepository()
        self._broadcaster: EventBroadcaster = broadcaster or RedisEventBroadcaster()
        self._clock = clock

    async def close_auction(self, db: AsyncSession, auction_id: int) -> CloseOutcome:
        outbox = EventOutbox()
        result = await run_in_transaction(
            db,
            "close_auction",
            lambda: self._engine.close(db, auction_id, outbox),
            commit_if=lambda r: isinstance(r, AuctionClosed),
            auction_id=auction_id,
        )
        if isinstance(result, AuctionClosed):
            await publish_all(self._broadcaster, outbox)
        else:
            logger.debug("Close rejected: auction=%s reason=%s", auction_id, result.reason.value)
        return result

    async def confirm_payment(
        self, db: AsyncSession, auction_id: int, winner_id: str
    ) -> PaymentOutcome:
        outbox = EventOutbox()
        result = await run_in_transaction(
            db,
            "confirm_payment",
            lambda: self._engine.confirm_payment(db, auction_id, winner_id, outbox),
            # The INSUFFICIENT_FUNDS marker is an audit record and is kept.
            commit_if=lambda r: isinstance(r, (PaymentSettled, PaymentInsufficient)),
            auction_id=auction_id,
            winner_id=winner_id,
        )
        if isinstance(result, (PaymentSettled, PaymentInsufficient)):
            await publish_all(self._broadcaster, outbox)
        return result

    async def close_expired(self, db: AsyncSession, limit: int | None = None) -> SweepReport:
        """Close every APPROVED auction past its end time, one transaction each."""
        now = self._clock()
        batch = limit or settings.SWEEP_BATCH_SIZE
        auction_ids = await self._auctions.list_expired_ids(db, now, batch)
        # End the read transaction so each close takes its own locks.
        await db.rollback()

        report = SweepReport(examined=len(auction_ids))
        for auction_id in auction_ids:
            try:
                result = await self.close_auction(db, auction_id)
            except AppError as exc:
                logger.warning("Sweep failed to close auction %s: %s", auction_id, exc.message)
                report.failed.append(auction_id)
                continue
            if isinstance(result, AuctionClosed):
                report.closed.append(auction_id)
            elif result.reason in _SWEEP_TOLERATED:
                report.skipped.append(auction_id)
            else:
                logger.warning(
                    "Sweep could not close auction %s: %s", auction_id, result.message
                )
                report.failed.append(auction_id)
        logger.info(
            "Sweep done: examined=%d closed=%d skipped=%d failed=%d",
            report.examined,
            len(report.closed),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def verify_invariants(self, db: AsyncSession) -> dict[str, object]:
        violations = await invariants.verify_all(db)
        return {"ok": len(violations) == 0, "violations": violations}
