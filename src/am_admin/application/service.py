# src/am_admin/application/service.py
"""Admin application service — moderation, top-up decisions, close, sweep, audits."""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_auction.application.service import AuctionApplicationService
from src.am_common.enums import RejectReason
from src.am_common.errors import error_for_rejection
from src.am_settlement.application.schemas import CloseResult, SweepResult
from src.am_settlement.application.service import SettlementService
from src.am_settlement.domain.models import CloseRejected
from src.am_wallet.application.service import WalletApplicationService


class AdminService:
    def __init__(
        self,
        auctions: AuctionApplicationService | None = None,
        wallet: WalletApplicationService | None = None,
        settlement: SettlementService | None = None,
    ) -> None:
        self._auctions = auctions or AuctionApplicationService()
        self._wallet = wallet or WalletApplicationService()
        self._settlement = settlement or SettlementService()

    async def approve_auction(
        self, db: AsyncSession, admin_id: str, auction_id: int
    ) -> dict[str, Any]:
        return (await self._auctions.approve_auction(db, admin_id, auction_id)).model_dump()

    async def reject_auction(
        self, db: AsyncSession, admin_id: str, auction_id: int, reason: str | None
    ) -> dict[str, Any]:
        result = await self._auctions.reject_auction(db, admin_id, auction_id, reason)
        return result.model_dump()

    async def list_pending_auctions(self, db: AsyncSession) -> dict[str, Any]:
        return (await self._auctions.list_pending_auctions(db)).model_dump()

    async def close_auction(self, db: AsyncSession, auction_id: int) -> dict[str, Any]:
        outcome = await self._settlement.close_auction(db, auction_id)
        if isinstance(outcome, CloseRejected):
            error = error_for_rejection(outcome.reason, outcome.message)
            if error.details is not None and outcome.reason is RejectReason.ALREADY_CLOSED:
                error.details["winner_id"] = outcome.winner_id
                error.details["final_price_cents"] = outcome.final_price
            raise error
        return CloseResult.from_outcome(outcome).model_dump()

    async def list_pending_topups(self, db: AsyncSession) -> list[dict[str, Any]]:
        return [t.model_dump() for t in await self._wallet.list_pending_topups(db)]

    async def approve_topup(
        self, db: AsyncSession, admin_id: str, topup_id: int
    ) -> dict[str, Any]:
        return (await self._wallet.approve_topup(db, admin_id, topup_id)).model_dump()

    async def reject_topup(
        self, db: AsyncSession, admin_id: str, topup_id: int
    ) -> dict[str, Any]:
        return (await self._wallet.reject_topup(db, admin_id, topup_id)).model_dump()

    async def sweep(self, db: AsyncSession, limit: int | None) -> dict[str, Any]:
        report = await self._settlement.close_expired(db, limit)
        return SweepResult.from_report(report).model_dump()

    async def verify_all_invariants(self, db: AsyncSession) -> dict[str, object]:
        """Run the ledger-balance, deposit-conservation and reserve audits."""
        return await self._settlement.verify_invariants(db)
