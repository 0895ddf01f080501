"""Domain models for am_auction — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.am_common.enums import AuctionStatus


@dataclass
class Auction:
    id: int
    seller_id: str
    title: str
    description: str
    category: str
    image_url: str | None
    start_price: int                 # cents
    current_price: int               # cents, non-decreasing while APPROVED
    min_increment: int               # cents, > 0
    max_increment: int | None        # cents, >= min_increment when set
    reserve_price: int | None        # cents, >= start_price when set
    buy_now_price: int | None        # cents, >= start_price when set
    deposit_amount: int              # cents, fixed at creation
    ends_at: datetime
    status: str                      # AuctionStatus value
    winner_id: str | None = None
    final_price: int | None = None
    is_paid: bool = False
    created_at: datetime | None = None

    @property
    def is_closed(self) -> bool:
        return self.status == AuctionStatus.CLOSED

    @property
    def has_winner(self) -> bool:
        return self.winner_id is not None


@dataclass
class AuctionDraft:
    """Seller input for a new listing, amounts already in cents."""

    seller_id: str
    title: str
    description: str
    category: str
    image_url: str | None
    start_price: int
    ends_at: datetime
    min_increment: int = 100
    max_increment: int | None = None
    reserve_price: int | None = None
    buy_now_price: int | None = None


@dataclass
class Bid:
    id: int
    auction_id: int
    bidder_id: str
    amount: int                      # cents
    deposit_paid: int                # cents held from the bidder's balance at bid time
    deposit_refunded: bool = False
    refund_amount: int = 0           # cents, set once by settlement
    created_at: datetime | None = None

    @property
    def holds_deposit(self) -> bool:
        return self.deposit_paid > 0 and not self.deposit_refunded


@dataclass
class BidderBidView:
    """A bidder's bid joined with the state of its auction (my-bids listing)."""

    bid: Bid
    auction_title: str
    auction_status: str
    current_price: int
    ends_at: datetime
    winner_id: str | None
    final_price: int | None
