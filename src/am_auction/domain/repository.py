"""Repository Protocols for the Auction Store and the Bid Store.

lock() is the serialization point for everything that decides on an auction:
bids, closes and payment confirmations all read the auction row FOR UPDATE
first and hold the lock until commit/rollback.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_auction.domain.models import Auction, AuctionDraft, Bid, BidderBidView


class AuctionRepositoryProtocol(Protocol):
    async def create(
        self, db: AsyncSession, draft: AuctionDraft, deposit_amount: int
    ) -> Auction: ...

    async def get(self, db: AsyncSession, auction_id: int) -> Auction | None: ...

    async def lock(self, db: AsyncSession, auction_id: int) -> Auction | None: ...

    async def update_current_price(
        self, db: AsyncSession, auction_id: int, price: int
    ) -> None: ...

    async def set_status(self, db: AsyncSession, auction_id: int, status: str) -> None: ...

    async def mark_closed(
        self,
        db: AsyncSession,
        auction_id: int,
        winner_id: str | None,
        final_price: int | None,
    ) -> None: ...

    async def mark_paid(self, db: AsyncSession, auction_id: int) -> None: ...

    async def list_expired_ids(
        self, db: AsyncSession, now: datetime, limit: int
    ) -> list[int]: ...

    async def list_active(self, db: AsyncSession, now: datetime, limit: int) -> list[Auction]: ...

    async def list_by_seller(
        self, db: AsyncSession, seller_id: str, limit: int
    ) -> list[Auction]: ...

    async def list_pending(self, db: AsyncSession, limit: int) -> list[Auction]: ...


class BidRepositoryProtocol(Protocol):
    async def insert(
        self,
        db: AsyncSession,
        auction_id: int,
        bidder_id: str,
        amount: int,
        deposit_paid: int,
    ) -> Bid: ...

    async def list_for_auction(self, db: AsyncSession, auction_id: int) -> list[Bid]: ...

    async def held_deposit(
        self, db: AsyncSession, auction_id: int, bidder_id: str
    ) -> int: ...

    async def refund_deposits(
        self, db: AsyncSession, auction_id: int, bidder_id: str
    ) -> int: ...

    async def list_by_bidder(
        self, db: AsyncSession, bidder_id: str, limit: int
    ) -> list[BidderBidView]: ...
