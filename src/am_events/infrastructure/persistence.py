"""NotificationRepository — notifications inbox table, written inside the
producing transaction so a rolled-back close leaves no stray messages."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.errors import InternalError
from src.am_events.domain.models import Notification

_COLUMNS = "id, account_id, message, auction_id, is_read, created_at"

_INSERT_SQL = text(f"""
    INSERT INTO notifications (account_id, message, auction_id)
    VALUES (:account_id, :message, :auction_id)
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM notifications
    WHERE account_id = :account_id
    ORDER BY id DESC
    LIMIT :limit
""")

_MARK_READ_SQL = text("""
    UPDATE notifications
    SET is_read = TRUE
    WHERE id = :notification_id AND account_id = :account_id
    RETURNING id
""")


def _row_to_notification(row: object) -> Notification:
    return Notification(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        message=row.message,  # type: ignore[attr-defined]
        auction_id=row.auction_id,  # type: ignore[attr-defined]
        is_read=bool(row.is_read),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class NotificationRepository:
    async def add(
        self, db: AsyncSession, account_id: str, message: str, auction_id: int | None
    ) -> Notification:
        result = await db.execute(
            _INSERT_SQL,
            {"account_id": account_id, "message": message, "auction_id": auction_id},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Notification insert returned no rows")
        return _row_to_notification(row)

    async def list_for_account(
        self, db: AsyncSession, account_id: str, limit: int
    ) -> list[Notification]:
        result = await db.execute(_LIST_SQL, {"account_id": account_id, "limit": limit})
        return [_row_to_notification(row) for row in result.fetchall()]

    async def mark_read(
        self, db: AsyncSession, notification_id: int, account_id: str
    ) -> bool:
        result = await db.execute(
            _MARK_READ_SQL,
            {"notification_id": notification_id, "account_id": account_id},
        )
        return result.fetchone() is not None
