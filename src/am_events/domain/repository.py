"""Notification inbox and broadcaster contracts."""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_events.domain.models import Notification


class NotificationRepositoryProtocol(Protocol):
    async def add(
        self, db: AsyncSession, account_id: str, message: str, auction_id: int | None
    ) -> Notification: ...

    async def list_for_account(
        self, db: AsyncSession, account_id: str, limit: int
    ) -> list[Notification]: ...

    async def mark_read(
        self, db: AsyncSession, notification_id: int, account_id: str
    ) -> bool: ...


class EventBroadcaster(Protocol):
    """Fire-and-forget fan-out keyed by topic. Delivery is not acknowledged."""

    async def publish(self, topic: str, payload: dict[str, Any]) -> None: ...
