"""SQLAlchemy ORM models for am_auction.

These map to existing tables created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.am_common.database import Base


class AuctionORM(Base):
    __tablename__ = "auctions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    seller_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(80), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    current_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    min_increment: Mapped[int] = mapped_column(BigInteger, nullable=False, default=100)
    max_increment: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    reserve_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    buy_now_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    deposit_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    winner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    final_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class BidORM(Base):
    __tablename__ = "bids"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    auction_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    bidder_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    deposit_paid: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    deposit_refunded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    refund_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
