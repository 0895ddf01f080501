"""Domain models for am_events — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Notification:
    id: int
    account_id: str
    message: str
    auction_id: int | None = None
    is_read: bool = False
    created_at: datetime | None = None
