"""Pydantic schemas for am_bidding API."""

from pydantic import BaseModel, Field

from src.am_bidding.application.service import BidAccepted
from src.am_common.cents import cents_to_display
from src.am_settlement.application.schemas import CloseResult
from src.am_settlement.domain.models import AuctionClosed


class PlaceBidRequest(BaseModel):
    auction_id: int = Field(..., gt=0)
    amount_cents: int = Field(..., gt=0, description="Bid amount in cents")
    deposit_cents: int = Field(0, ge=0, description="Deposit the bidder posts, in cents")


class PlaceBidResponse(BaseModel):
    bid_id: int
    auction_id: int
    amount_cents: int
    amount_display: str
    current_price_cents: int
    deposit_held_cents: int
    is_buy_now: bool
    close: CloseResult | None = None

    @classmethod
    def from_result(cls, result: BidAccepted) -> "PlaceBidResponse":
        close = result.close if isinstance(result.close, AuctionClosed) else None
        return cls(
            bid_id=result.bid.id,
            auction_id=result.bid.auction_id,
            amount_cents=result.bid.amount,
            amount_display=cents_to_display(result.bid.amount),
            current_price_cents=result.current_price,
            deposit_held_cents=result.deposit_held,
            is_buy_now=result.is_buy_now,
            close=CloseResult.from_outcome(close) if close else None,
        )
