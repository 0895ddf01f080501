"""Pydantic schemas for am_auction API (listings, moderation, my-bids)."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.am_auction.domain.models import Auction, AuctionDraft, Bid, BidderBidView
from src.am_common.cents import cents_to_display

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateAuctionRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=150)
    description: str = Field("", max_length=5000)
    category: str = Field(..., min_length=1, max_length=80)
    image_url: str | None = Field(None, max_length=255)
    start_price_cents: int = Field(..., gt=0)
    min_increment_cents: int = Field(100, gt=0, description="Default $1.00")
    max_increment_cents: int | None = Field(None, gt=0)
    reserve_price_cents: int | None = Field(None, gt=0)
    buy_now_price_cents: int | None = Field(None, gt=0)
    ends_at: datetime

    def to_draft(self, seller_id: str) -> AuctionDraft:
        return AuctionDraft(
            seller_id=seller_id,
            title=self.title,
            description=self.description,
            category=self.category,
            image_url=self.image_url,
            start_price=self.start_price_cents,
            ends_at=self.ends_at,
            min_increment=self.min_increment_cents,
            max_increment=self.max_increment_cents,
            reserve_price=self.reserve_price_cents,
            buy_now_price=self.buy_now_price_cents,
        )


class RejectAuctionRequest(BaseModel):
    reason: str | None = Field(None, max_length=255)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


def _display(cents: int | None) -> str | None:
    return cents_to_display(cents) if cents is not None else None


class BidItem(BaseModel):
    id: int
    bidder_id: str
    amount_cents: int
    amount_display: str
    deposit_paid_cents: int
    deposit_refunded: bool
    refund_amount_cents: int
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, b: Bid) -> "BidItem":
        return cls(
            id=b.id,
            bidder_id=b.bidder_id,
            amount_cents=b.amount,
            amount_display=cents_to_display(b.amount),
            deposit_paid_cents=b.deposit_paid,
            deposit_refunded=b.deposit_refunded,
            refund_amount_cents=b.refund_amount,
            created_at=b.created_at.isoformat() if b.created_at else "",
        )


class AuctionDetail(BaseModel):
    id: int
    seller_id: str
    title: str
    description: str
    category: str
    image_url: str | None
    status: str
    start_price_cents: int
    current_price_cents: int
    current_price_display: str
    min_increment_cents: int
    max_increment_cents: int | None
    reserve_price_cents: int | None
    buy_now_price_cents: int | None
    buy_now_price_display: str | None
    deposit_amount_cents: int
    deposit_amount_display: str
    ends_at: str
    winner_id: str | None
    final_price_cents: int | None
    final_price_display: str | None
    is_paid: bool
    created_at: str
    bids: list[BidItem] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, a: Auction, bids: list[Bid] | None = None) -> "AuctionDetail":
        # Bid history newest first (BIGSERIAL ids follow insertion order)
        history = sorted(bids or [], key=lambda b: b.id, reverse=True)
        return cls(
            id=a.id,
            seller_id=a.seller_id,
            title=a.title,
            description=a.description,
            category=a.category,
            image_url=a.image_url,
            status=a.status,
            start_price_cents=a.start_price,
            current_price_cents=a.current_price,
            current_price_display=cents_to_display(a.current_price),
            min_increment_cents=a.min_increment,
            max_increment_cents=a.max_increment,
            reserve_price_cents=a.reserve_price,
            buy_now_price_cents=a.buy_now_price,
            buy_now_price_display=_display(a.buy_now_price),
            deposit_amount_cents=a.deposit_amount,
            deposit_amount_display=cents_to_display(a.deposit_amount),
            ends_at=a.ends_at.isoformat(),
            winner_id=a.winner_id,
            final_price_cents=a.final_price,
            final_price_display=_display(a.final_price),
            is_paid=a.is_paid,
            created_at=a.created_at.isoformat() if a.created_at else "",
            bids=[BidItem.from_domain(b) for b in history],
        )


class ModerationResponse(BaseModel):
    auction_id: int
    status: str


class MyBidItem(BaseModel):
    bid: BidItem
    auction_id: int
    auction_title: str
    auction_status: str
    current_price_cents: int
    ends_at: str
    is_winning: bool
    winner_id: str | None
    final_price_cents: int | None

    @classmethod
    def from_view(cls, v: BidderBidView) -> "MyBidItem":
        return cls(
            bid=BidItem.from_domain(v.bid),
            auction_id=v.bid.auction_id,
            auction_title=v.auction_title,
            auction_status=v.auction_status,
            current_price_cents=v.current_price,
            ends_at=v.ends_at.isoformat(),
            is_winning=v.winner_id == v.bid.bidder_id,
            winner_id=v.winner_id,
            final_price_cents=v.final_price,
        )


class MyBidsResponse(BaseModel):
    items: list[MyBidItem]


class AuctionListResponse(BaseModel):
    items: list[AuctionDetail]
