"""Pydantic schemas for the notifications inbox API."""

from pydantic import BaseModel

from src.am_events.domain.models import Notification


class NotificationItem(BaseModel):
    id: int
    message: str
    auction_id: int | None
    is_read: bool
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, n: Notification) -> "NotificationItem":
        return cls(
            id=n.id,
            message=n.message,
            auction_id=n.auction_id,
            is_read=n.is_read,
            created_at=n.created_at.isoformat() if n.created_at else "",
        )


class NotificationListResponse(BaseModel):
    items: list[NotificationItem]
    unread: int


class MarkReadResponse(BaseModel):
    id: int
    updated: bool
