"""Domain models for am_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    account_id: str
    balance: int             # cents, available balance, never negative
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    account_id: str
    kind: str                        # LedgerEntryKind value
    amount: int                      # cents, positive=credit negative=debit, 0=marker
    balance_after: int               # cents, balance snapshot after the entry
    related_account_id: str | None = None
    auction_id: int | None = None
    note: str | None = None
    created_at: datetime | None = None


@dataclass
class TopUpRequest:
    id: int
    account_id: str
    amount: int                      # cents
    status: str                      # TopUpStatus value
    note: str | None = None
    admin_id: str | None = None
    created_at: datetime | None = None
    processed_at: datetime | None = None
