"""Pydantic schemas and cursor utilities for am_wallet API."""

import base64
import json

from pydantic import BaseModel, Field

from src.am_common.cents import cents_to_display
from src.am_wallet.domain.models import LedgerEntry, TopUpRequest

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TopUpCreateRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Amount to add, in cents")
    note: str | None = Field(None, max_length=255)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LedgerEntryItem(BaseModel):
    id: int
    kind: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    related_account_id: str | None
    auction_id: int | None
    note: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, e: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id,
            kind=e.kind,
            amount_cents=e.amount,
            amount_display=cents_to_display(e.amount),
            balance_after_cents=e.balance_after,
            balance_after_display=cents_to_display(e.balance_after),
            related_account_id=e.related_account_id,
            auction_id=e.auction_id,
            note=e.note,
            created_at=e.created_at.isoformat() if e.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class TopUpItem(BaseModel):
    id: int
    account_id: str
    amount_cents: int
    amount_display: str
    status: str
    note: str | None
    admin_id: str | None
    created_at: str
    processed_at: str | None

    @classmethod
    def from_domain(cls, t: TopUpRequest) -> "TopUpItem":
        return cls(
            id=t.id,
            account_id=t.account_id,
            amount_cents=t.amount,
            amount_display=cents_to_display(t.amount),
            status=t.status,
            note=t.note,
            admin_id=t.admin_id,
            created_at=t.created_at.isoformat() if t.created_at else "",
            processed_at=t.processed_at.isoformat() if t.processed_at else None,
        )


class WalletResponse(BaseModel):
    account_id: str
    balance_cents: int
    balance_display: str
    recent_entries: list[LedgerEntryItem]
    topups: list[TopUpItem]
