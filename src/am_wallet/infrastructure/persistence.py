"""WalletRepository — concrete implementation of WalletRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A debit returning 0 rows means the balance guard failed (insufficient funds).

Transaction ownership: The CALLER (application service) is responsible for
committing or rolling back; nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.enums import LedgerEntryKind, TopUpStatus
from src.am_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InternalError,
    TopUpNotFoundError,
)
from src.am_wallet.domain.models import Account, LedgerEntry, TopUpRequest

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "account_id, balance, version, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE account_id = :account_id
""")

_LOCK_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE account_id = :account_id
    FOR UPDATE
""")

# Credits open the account on first use (seller / platform receiving proceeds).
_CREDIT_SQL = text(f"""
    INSERT INTO accounts (account_id, balance)
    VALUES (:account_id, :amount)
    ON CONFLICT (account_id) DO UPDATE
        SET balance = accounts.balance + EXCLUDED.balance,
            version = accounts.version + 1,
            updated_at = NOW()
    RETURNING {_ACCOUNT_COLUMNS}
""")

# Zero-amount markers may target an account that never held funds.
_ENSURE_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (account_id, balance)
    VALUES (:account_id, 0)
    ON CONFLICT (account_id) DO NOTHING
    RETURNING {_ACCOUNT_COLUMNS}
""")

# Multi-account lock for settlement: rows are created if missing, then locked
# in account_id order.
_ENSURE_ACCOUNTS_SQL = text("""
    INSERT INTO accounts (account_id, balance)
    SELECT id, 0 FROM unnest(CAST(:account_ids AS VARCHAR[])) AS id
    ORDER BY id
    ON CONFLICT (account_id) DO NOTHING
""")

_LOCK_ACCOUNTS_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE account_id = ANY(CAST(:account_ids AS VARCHAR[]))
    ORDER BY account_id
    FOR UPDATE
""")

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE account_id = :account_id AND balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: ledger_entries (append-only)
# ---------------------------------------------------------------------------

_LEDGER_COLUMNS = (
    "id, account_id, kind, amount, balance_after,"
    " related_account_id, auction_id, note, created_at"
)

_INSERT_LEDGER_SQL = text(f"""
    INSERT INTO ledger_entries
        (account_id, kind, amount, balance_after,
         related_account_id, auction_id, note)
    VALUES
        (:account_id, :kind, :amount, :balance_after,
         :related_account_id, :auction_id, :note)
    RETURNING {_LEDGER_COLUMNS}
""")

_LIST_LEDGER_SQL = text(f"""
    SELECT {_LEDGER_COLUMNS}
    FROM ledger_entries
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:kind AS VARCHAR) IS NULL OR kind = :kind)
    ORDER BY id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: wallet_topups
# ---------------------------------------------------------------------------

_TOPUP_COLUMNS = "id, account_id, amount, status, note, admin_id, created_at, processed_at"

_INSERT_TOPUP_SQL = text(f"""
    INSERT INTO wallet_topups (account_id, amount, status, note)
    VALUES (:account_id, :amount, 'PENDING', :note)
    RETURNING {_TOPUP_COLUMNS}
""")

_LOCK_TOPUP_SQL = text(f"""
    SELECT {_TOPUP_COLUMNS}
    FROM wallet_topups
    WHERE id = :topup_id
    FOR UPDATE
""")

_FINISH_TOPUP_SQL = text(f"""
    UPDATE wallet_topups
    SET status = :status, admin_id = :admin_id, processed_at = NOW()
    WHERE id = :topup_id AND status = 'PENDING'
    RETURNING {_TOPUP_COLUMNS}
""")

_LIST_TOPUPS_SQL = text(f"""
    SELECT {_TOPUP_COLUMNS}
    FROM wallet_topups
    WHERE (CAST(:account_id AS VARCHAR) IS NULL OR account_id = :account_id)
      AND (CAST(:status AS VARCHAR) IS NULL OR status = :status)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: object) -> Account:
    return Account(
        account_id=row.account_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        kind=row.kind,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        related_account_id=row.related_account_id,  # type: ignore[attr-defined]
        auction_id=row.auction_id,  # type: ignore[attr-defined]
        note=row.note,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_topup(row: object) -> TopUpRequest:
    return TopUpRequest(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        note=row.note,  # type: ignore[attr-defined]
        admin_id=row.admin_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        processed_at=row.processed_at,  # type: ignore[attr-defined]
    )


class WalletRepository:
    """Concrete repository — all operations atomic at the SQL level."""

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def lock_account(self, db: AsyncSession, account_id: str) -> Account | None:
        result = await db.execute(_LOCK_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def lock_accounts(self, db: AsyncSession, account_ids: list[str]) -> list[Account]:
        """Lock (creating if needed) every given account, in account_id order."""
        ordered = sorted(set(account_ids))
        if not ordered:
            return []
        await db.execute(_ENSURE_ACCOUNTS_SQL, {"account_ids": ordered})
        result = await db.execute(_LOCK_ACCOUNTS_SQL, {"account_ids": ordered})
        return [_row_to_account(row) for row in result.fetchall()]

    async def credit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        kind: str,
        *,
        auction_id: int | None = None,
        related_account_id: str | None = None,
        note: str | None = None,
    ) -> LedgerEntry:
        if amount <= 0:
            raise InternalError(f"credit amount must be positive, got {amount}")
        result = await db.execute(_CREDIT_SQL, {"account_id": account_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Credit returned no rows for account {account_id}")
        account = _row_to_account(row)
        return await self._append(
            db, account, kind, amount, auction_id, related_account_id, note
        )

    async def debit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        kind: str,
        *,
        auction_id: int | None = None,
        related_account_id: str | None = None,
        note: str | None = None,
    ) -> LedgerEntry:
        if amount <= 0:
            raise InternalError(f"debit amount must be positive, got {amount}")
        result = await db.execute(_DEBIT_SQL, {"account_id": account_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_account(db, account_id)
            if current is None:
                raise AccountNotFoundError(account_id)
            raise InsufficientBalanceError(amount, current.balance)
        account = _row_to_account(row)
        return await self._append(
            db, account, kind, -amount, auction_id, related_account_id, note
        )

    async def record_marker(
        self,
        db: AsyncSession,
        account_id: str,
        kind: str,
        *,
        auction_id: int | None = None,
        related_account_id: str | None = None,
        note: str | None = None,
    ) -> LedgerEntry:
        result = await db.execute(_ENSURE_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        account = _row_to_account(row) if row else await self.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return await self._append(
            db, account, kind, 0, auction_id, related_account_id, note
        )

    async def _append(
        self,
        db: AsyncSession,
        account: Account,
        kind: str,
        amount: int,
        auction_id: int | None,
        related_account_id: str | None,
        note: str | None,
    ) -> LedgerEntry:
        ledger_result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "account_id": account.account_id,
                "kind": LedgerEntryKind(kind).value,
                "amount": amount,
                "balance_after": account.balance,
                "related_account_id": related_account_id,
                "auction_id": auction_id,
                "note": note,
            },
        )
        ledger_row = ledger_result.fetchone()
        if ledger_row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(ledger_row)

    async def list_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        kind: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "account_id": account_id,
                "cursor_id": cursor_id,
                "kind": kind,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def create_topup(
        self, db: AsyncSession, account_id: str, amount: int, note: str | None
    ) -> TopUpRequest:
        result = await db.execute(
            _INSERT_TOPUP_SQL, {"account_id": account_id, "amount": amount, "note": note}
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Top-up insert returned no rows")
        return _row_to_topup(row)

    async def lock_topup(self, db: AsyncSession, topup_id: int) -> TopUpRequest | None:
        result = await db.execute(_LOCK_TOPUP_SQL, {"topup_id": topup_id})
        row = result.fetchone()
        return _row_to_topup(row) if row else None

    async def finish_topup(
        self, db: AsyncSession, topup_id: int, status: str, admin_id: str
    ) -> TopUpRequest:
        if status not in (TopUpStatus.APPROVED, TopUpStatus.REJECTED):
            raise InternalError(f"Cannot finish top-up with status {status}")
        result = await db.execute(
            _FINISH_TOPUP_SQL,
            {"topup_id": topup_id, "status": status, "admin_id": admin_id},
        )
        row = result.fetchone()
        if row is None:
            raise TopUpNotFoundError(topup_id)
        return _row_to_topup(row)

    async def list_topups(
        self, db: AsyncSession, account_id: str | None, status: str | None, limit: int
    ) -> list[TopUpRequest]:
        result = await db.execute(
            _LIST_TOPUPS_SQL,
            {"account_id": account_id, "status": status, "limit": limit},
        )
        return [_row_to_topup(row) for row in result.fetchall()]
