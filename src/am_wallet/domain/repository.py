"""Repository Protocol — dependency inversion for testability.

Unit tests inject an in-memory double that conforms to this Protocol.
Infrastructure layer provides the real implementation.

Every balance mutation goes through credit()/debit() so that each change has
exactly one ledger entry of equal amount (balance == sum of entries).
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_wallet.domain.models import Account, LedgerEntry, TopUpRequest


class WalletRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None: ...

    async def lock_account(self, db: AsyncSession, account_id: str) -> Account | None: ...

    async def lock_accounts(self, db: AsyncSession, account_ids: list[str]) -> list[Account]: ...

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
    ) -> LedgerEntry: ...

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
    ) -> LedgerEntry: ...

    async def record_marker(
        self,
        db: AsyncSession,
        account_id: str,
        kind: str,
        *,
        auction_id: int | None = None,
        related_account_id: str | None = None,
        note: str | None = None,
    ) -> LedgerEntry: ...

    async def list_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        kind: str | None,
    ) -> list[LedgerEntry]: ...

    async def create_topup(
        self, db: AsyncSession, account_id: str, amount: int, note: str | None
    ) -> TopUpRequest: ...

    async def lock_topup(self, db: AsyncSession, topup_id: int) -> TopUpRequest | None: ...

    async def finish_topup(
        self, db: AsyncSession, topup_id: int, status: str, admin_id: str
    ) -> TopUpRequest: ...

    async def list_topups(
        self, db: AsyncSession, account_id: str | None, status: str | None, limit: int
    ) -> list[TopUpRequest]: ...
