"""NotificationService — read side of the notifications inbox."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_events.application.schemas import (
    MarkReadResponse,
    NotificationItem,
    NotificationListResponse,
)
from src.am_events.domain.repository import NotificationRepositoryProtocol
from src.am_events.infrastructure.persistence import NotificationRepository


class NotificationService:
    def __init__(self, repo: NotificationRepositoryProtocol | None = None) -> None:
        self._repo: NotificationRepositoryProtocol = repo or NotificationRepository()

    async def list_notifications(
        self, db: AsyncSession, account_id: str, limit: int = 50
    ) -> NotificationListResponse:
        rows = await self._repo.list_for_account(db, account_id, limit)
        return NotificationListResponse(
            items=[NotificationItem.from_domain(n) for n in rows],
            unread=sum(1 for n in rows if not n.is_read),
        )

    async def mark_read(
        self, db: AsyncSession, account_id: str, notification_id: int
    ) -> MarkReadResponse:
        try:
            updated = await self._repo.mark_read(db, notification_id, account_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return MarkReadResponse(id=notification_id, updated=updated)
