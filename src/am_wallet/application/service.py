"""WalletApplicationService — wallet view, ledger paging and top-up workflow.

Top-up approval is the only way funds enter the system: it row-locks the
request, credits the account with a TOPUP ledger entry and records the
admin decision in one transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.cents import cents_to_display
from src.am_common.database import run_in_transaction
from src.am_common.enums import LedgerEntryKind, TopUpStatus
from src.am_common.errors import TopUpAlreadyProcessedError, TopUpNotFoundError
from src.am_events.application.notifier import Notifier
from src.am_events.application.publisher import publish_all
from src.am_events.domain import events
from src.am_events.domain.events import EventOutbox
from src.am_events.domain.repository import EventBroadcaster
from src.am_events.infrastructure.broadcaster import RedisEventBroadcaster
from src.am_wallet.application.schemas import (
    LedgerEntryItem,
    LedgerResponse,
    TopUpItem,
    WalletResponse,
    cursor_decode,
    cursor_encode,
)
from src.am_wallet.domain.repository import WalletRepositoryProtocol
from src.am_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


class WalletApplicationService:
    def __init__(
        self,
        repo: WalletRepositoryProtocol | None = None,
        notifier: Notifier | None = None,
        broadcaster: EventBroadcaster | None = None,
    ) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()
        self._notifier = notifier or Notifier()
        self._broadcaster: EventBroadcaster = broadcaster or RedisEventBroadcaster()

    async def get_wallet(
        self, db: AsyncSession, account_id: str, recent: int = 10
    ) -> WalletResponse:
        account = await self._repo.get_account(db, account_id)
        entries = await self._repo.list_entries(db, account_id, None, recent, None)
        topups = await self._repo.list_topups(db, account_id, None, recent)
        balance = account.balance if account else 0
        return WalletResponse(
            account_id=account_id,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
            recent_entries=[LedgerEntryItem.from_domain(e) for e in entries],
            topups=[TopUpItem.from_domain(t) for t in topups],
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        account_id: str,
        cursor: str | None,
        limit: int,
        kind: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_entries(db, account_id, cursor_id, limit + 1, kind)
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def request_topup(
        self, db: AsyncSession, account_id: str, amount: int, note: str | None
    ) -> TopUpItem:
        outbox = EventOutbox()

        async def work() -> TopUpItem:
            topup = await self._repo.create_topup(db, account_id, amount, note)
            outbox.add(events.topup_requested(topup.id, account_id, amount))
            return TopUpItem.from_domain(topup)

        item = await run_in_transaction(db, "request_topup", work, account_id=account_id)
        await publish_all(self._broadcaster, outbox)
        return item

    async def list_pending_topups(self, db: AsyncSession, limit: int = 100) -> list[TopUpItem]:
        topups = await self._repo.list_topups(db, None, TopUpStatus.PENDING.value, limit)
        return [TopUpItem.from_domain(t) for t in topups]

    async def approve_topup(self, db: AsyncSession, admin_id: str, topup_id: int) -> TopUpItem:
        return await self._decide(db, admin_id, topup_id, TopUpStatus.APPROVED)

    async def reject_topup(self, db: AsyncSession, admin_id: str, topup_id: int) -> TopUpItem:
        return await self._decide(db, admin_id, topup_id, TopUpStatus.REJECTED)

    async def _decide(
        self, db: AsyncSession, admin_id: str, topup_id: int, decision: TopUpStatus
    ) -> TopUpItem:
        outbox = EventOutbox()

        async def work() -> TopUpItem:
            topup = await self._repo.lock_topup(db, topup_id)
            if topup is None:
                raise TopUpNotFoundError(topup_id)
            if topup.status != TopUpStatus.PENDING:
                raise TopUpAlreadyProcessedError(topup_id, topup.status)
            if decision is TopUpStatus.APPROVED:
                await self._repo.credit(
                    db,
                    topup.account_id,
                    topup.amount,
                    LedgerEntryKind.TOPUP.value,
                    note=f"Top-up #{topup_id} approved by {admin_id}",
                )
                message = f"Your top-up of {cents_to_display(topup.amount)} was approved."
            else:
                message = f"Your top-up of {cents_to_display(topup.amount)} was rejected."
            finished = await self._repo.finish_topup(db, topup_id, decision.value, admin_id)
            await self._notifier.notify(db, outbox, topup.account_id, message)
            return TopUpItem.from_domain(finished)

        item = await run_in_transaction(
            db, "decide_topup", work, topup_id=topup_id, admin_id=admin_id
        )
        logger.info("Top-up %s %s by %s", topup_id, decision.value, admin_id)
        await publish_all(self._broadcaster, outbox)
        return item
