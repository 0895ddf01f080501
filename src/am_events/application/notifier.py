"""Notifier — user-facing messages produced inside a core transaction.

Each message is stored in the notifications inbox (same transaction) and a
matching `notification` event is queued in the outbox for post-commit fan-out.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_events.domain import events
from src.am_events.domain.events import EventOutbox
from src.am_events.domain.repository import NotificationRepositoryProtocol
from src.am_events.infrastructure.persistence import NotificationRepository


class Notifier:
    def __init__(self, repo: NotificationRepositoryProtocol | None = None) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()

    async def notify(
        self,
        db: AsyncSession,
        outbox: EventOutbox,
        account_id: str,
        message: str,
        auction_id: int | None = None,
    ) -> None:
        await self._repo.add(db, account_id, message, auction_id)
        outbox.add(events.notification(account_id, message, auction_id))
