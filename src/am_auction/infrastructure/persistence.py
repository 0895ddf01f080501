"""AuctionRepository / BidRepository — raw SQL over auctions and bids.

Status-changing UPDATEs carry the expected source status in their WHERE
clause; a 0-row result means the caller skipped the row lock or the row
changed underneath it, which is reported as an InternalError.

Transaction ownership: the caller commits or rolls back.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_auction.domain.models import Auction, AuctionDraft, Bid, BidderBidView
from src.am_common.errors import InternalError

# ---------------------------------------------------------------------------
# SQL: auctions
# ---------------------------------------------------------------------------

_AUCTION_COLUMNS = """
    id, seller_id, title, description, category, image_url,
    start_price, current_price, min_increment, max_increment,
    reserve_price, buy_now_price, deposit_amount, ends_at, status,
    winner_id, final_price, is_paid, created_at
"""

_INSERT_AUCTION_SQL = text(f"""
    INSERT INTO auctions
        (seller_id, title, description, category, image_url,
         start_price, current_price, min_increment, max_increment,
         reserve_price, buy_now_price, deposit_amount, ends_at, status)
    VALUES
        (:seller_id, :title, :description, :category, :image_url,
         :start_price, :start_price, :min_increment, :max_increment,
         :reserve_price, :buy_now_price, :deposit_amount, :ends_at, 'PENDING')
    RETURNING {_AUCTION_COLUMNS}
""")

_GET_AUCTION_SQL = text(f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE id = :auction_id")

_LOCK_AUCTION_SQL = text(
    f"SELECT {_AUCTION_COLUMNS} FROM auctions WHERE id = :auction_id FOR UPDATE"
)

_UPDATE_PRICE_SQL = text("""
    UPDATE auctions
    SET current_price = :price
    WHERE id = :auction_id AND status = 'APPROVED' AND current_price <= :price
""")

_SET_STATUS_SQL = text("""
    UPDATE auctions
    SET status = :status
    WHERE id = :auction_id AND status = 'PENDING'
""")

# winner_id / final_price are written exactly once, together with CLOSED.
_MARK_CLOSED_SQL = text("""
    UPDATE auctions
    SET status = 'CLOSED', winner_id = :winner_id, final_price = :final_price
    WHERE id = :auction_id AND status = 'APPROVED'
""")

_MARK_PAID_SQL = text("""
    UPDATE auctions
    SET is_paid = TRUE
    WHERE id = :auction_id AND status = 'CLOSED' AND winner_id IS NOT NULL AND is_paid = FALSE
""")

_LIST_ACTIVE_SQL = text(f"""
    SELECT {_AUCTION_COLUMNS}
    FROM auctions
    WHERE status = 'APPROVED' AND ends_at > :now
    ORDER BY ends_at ASC, id ASC
    LIMIT :limit
""")

_LIST_BY_SELLER_SQL = text(f"""
    SELECT {_AUCTION_COLUMNS}
    FROM auctions
    WHERE seller_id = :seller_id
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_LIST_PENDING_SQL = text(f"""
    SELECT {_AUCTION_COLUMNS}
    FROM auctions
    WHERE status = 'PENDING'
    ORDER BY created_at ASC, id ASC
    LIMIT :limit
""")

_LIST_EXPIRED_SQL = text("""
    SELECT id
    FROM auctions
    WHERE status = 'APPROVED' AND ends_at <= :now
    ORDER BY ends_at ASC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: bids
# ---------------------------------------------------------------------------

_BID_COLUMNS = (
    "id, auction_id, bidder_id, amount, deposit_paid,"
    " deposit_refunded, refund_amount, created_at"
)

_INSERT_BID_SQL = text(f"""
    INSERT INTO bids (auction_id, bidder_id, amount, deposit_paid)
    VALUES (:auction_id, :bidder_id, :amount, :deposit_paid)
    RETURNING {_BID_COLUMNS}
""")

_LIST_BIDS_SQL = text(f"""
    SELECT {_BID_COLUMNS}
    FROM bids
    WHERE auction_id = :auction_id
    ORDER BY created_at ASC, id ASC
""")

_HELD_DEPOSIT_SQL = text("""
    SELECT COALESCE(SUM(deposit_paid), 0)
    FROM bids
    WHERE auction_id = :auction_id AND bidder_id = :bidder_id
      AND deposit_paid > 0 AND deposit_refunded = FALSE
""")

_REFUND_DEPOSITS_SQL = text("""
    UPDATE bids
    SET deposit_refunded = TRUE, refund_amount = deposit_paid
    WHERE auction_id = :auction_id AND bidder_id = :bidder_id
      AND deposit_paid > 0 AND deposit_refunded = FALSE
    RETURNING refund_amount
""")

_LIST_BY_BIDDER_SQL = text("""
    SELECT b.id, b.auction_id, b.bidder_id, b.amount, b.deposit_paid,
           b.deposit_refunded, b.refund_amount, b.created_at,
           a.title, a.status, a.current_price, a.ends_at, a.winner_id, a.final_price
    FROM bids b
    JOIN auctions a ON a.id = b.auction_id
    WHERE b.bidder_id = :bidder_id
    ORDER BY b.created_at DESC, b.id DESC
    LIMIT :limit
""")


def _row_to_auction(row: object) -> Auction:
    return Auction(
        id=row.id,  # type: ignore[attr-defined]
        seller_id=row.seller_id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        image_url=row.image_url,  # type: ignore[attr-defined]
        start_price=row.start_price,  # type: ignore[attr-defined]
        current_price=row.current_price,  # type: ignore[attr-defined]
        min_increment=row.min_increment,  # type: ignore[attr-defined]
        max_increment=row.max_increment,  # type: ignore[attr-defined]
        reserve_price=row.reserve_price,  # type: ignore[attr-defined]
        buy_now_price=row.buy_now_price,  # type: ignore[attr-defined]
        deposit_amount=row.deposit_amount,  # type: ignore[attr-defined]
        ends_at=row.ends_at,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        winner_id=row.winner_id,  # type: ignore[attr-defined]
        final_price=row.final_price,  # type: ignore[attr-defined]
        is_paid=bool(row.is_paid),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_bid(row: object) -> Bid:
    return Bid(
        id=row.id,  # type: ignore[attr-defined]
        auction_id=row.auction_id,  # type: ignore[attr-defined]
        bidder_id=row.bidder_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        deposit_paid=row.deposit_paid,  # type: ignore[attr-defined]
        deposit_refunded=bool(row.deposit_refunded),  # type: ignore[attr-defined]
        refund_amount=row.refund_amount,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AuctionRepository:
    async def create(
        self, db: AsyncSession, draft: AuctionDraft, deposit_amount: int
    ) -> Auction:
        result = await db.execute(
            _INSERT_AUCTION_SQL,
            {
                "seller_id": draft.seller_id,
                "title": draft.title,
                "description": draft.description,
                "category": draft.category,
                "image_url": draft.image_url,
                "start_price": draft.start_price,
                "min_increment": draft.min_increment,
                "max_increment": draft.max_increment,
                "reserve_price": draft.reserve_price,
                "buy_now_price": draft.buy_now_price,
                "deposit_amount": deposit_amount,
                "ends_at": draft.ends_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Auction insert returned no rows")
        return _row_to_auction(row)

    async def get(self, db: AsyncSession, auction_id: int) -> Auction | None:
        row = (await db.execute(_GET_AUCTION_SQL, {"auction_id": auction_id})).fetchone()
        return _row_to_auction(row) if row else None

    async def lock(self, db: AsyncSession, auction_id: int) -> Auction | None:
        row = (await db.execute(_LOCK_AUCTION_SQL, {"auction_id": auction_id})).fetchone()
        return _row_to_auction(row) if row else None

    async def update_current_price(
        self, db: AsyncSession, auction_id: int, price: int
    ) -> None:
        result = await db.execute(_UPDATE_PRICE_SQL, {"auction_id": auction_id, "price": price})
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InternalError(f"Price update rejected for auction {auction_id}")

    async def set_status(self, db: AsyncSession, auction_id: int, status: str) -> None:
        result = await db.execute(_SET_STATUS_SQL, {"auction_id": auction_id, "status": status})
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InternalError(f"Status update rejected for auction {auction_id}")

    async def mark_closed(
        self,
        db: AsyncSession,
        auction_id: int,
        winner_id: str | None,
        final_price: int | None,
    ) -> None:
        result = await db.execute(
            _MARK_CLOSED_SQL,
            {"auction_id": auction_id, "winner_id": winner_id, "final_price": final_price},
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InternalError(f"Close rejected for auction {auction_id}")

    async def mark_paid(self, db: AsyncSession, auction_id: int) -> None:
        result = await db.execute(_MARK_PAID_SQL, {"auction_id": auction_id})
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InternalError(f"Mark-paid rejected for auction {auction_id}")

    async def list_expired_ids(
        self, db: AsyncSession, now: datetime, limit: int
    ) -> list[int]:
        rows = (await db.execute(_LIST_EXPIRED_SQL, {"now": now, "limit": limit})).fetchall()
        return [row.id for row in rows]

    async def list_active(self, db: AsyncSession, now: datetime, limit: int) -> list[Auction]:
        rows = (await db.execute(_LIST_ACTIVE_SQL, {"now": now, "limit": limit})).fetchall()
        return [_row_to_auction(row) for row in rows]

    async def list_by_seller(
        self, db: AsyncSession, seller_id: str, limit: int
    ) -> list[Auction]:
        rows = (
            await db.execute(_LIST_BY_SELLER_SQL, {"seller_id": seller_id, "limit": limit})
        ).fetchall()
        return [_row_to_auction(row) for row in rows]

    async def list_pending(self, db: AsyncSession, limit: int) -> list[Auction]:
        rows = (await db.execute(_LIST_PENDING_SQL, {"limit": limit})).fetchall()
        return [_row_to_auction(row) for row in rows]


class BidRepository:
    async def insert(
        self,
        db: AsyncSession,
        auction_id: int,
        bidder_id: str,
        amount: int,
        deposit_paid: int,
    ) -> Bid:
        result = await db.execute(
            _INSERT_BID_SQL,
            {
                "auction_id": auction_id,
                "bidder_id": bidder_id,
                "amount": amount,
                "deposit_paid": deposit_paid,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Bid insert returned no rows")
        return _row_to_bid(row)

    async def list_for_auction(self, db: AsyncSession, auction_id: int) -> list[Bid]:
        rows = (await db.execute(_LIST_BIDS_SQL, {"auction_id": auction_id})).fetchall()
        return [_row_to_bid(row) for row in rows]

    async def held_deposit(
        self, db: AsyncSession, auction_id: int, bidder_id: str
    ) -> int:
        result = await db.execute(
            _HELD_DEPOSIT_SQL, {"auction_id": auction_id, "bidder_id": bidder_id}
        )
        return int(result.scalar_one())

    async def refund_deposits(
        self, db: AsyncSession, auction_id: int, bidder_id: str
    ) -> int:
        rows = (
            await db.execute(
                _REFUND_DEPOSITS_SQL, {"auction_id": auction_id, "bidder_id": bidder_id}
            )
        ).fetchall()
        return sum(row.refund_amount for row in rows)

    async def list_by_bidder(
        self, db: AsyncSession, bidder_id: str, limit: int
    ) -> list[BidderBidView]:
        rows = (
            await db.execute(_LIST_BY_BIDDER_SQL, {"bidder_id": bidder_id, "limit": limit})
        ).fetchall()
        return [
            BidderBidView(
                bid=_row_to_bid(row),
                auction_title=row.title,
                auction_status=row.status,
                current_price=row.current_price,
                ends_at=row.ends_at,
                winner_id=row.winner_id,
                final_price=row.final_price,
            )
            for row in rows
        ]
