"""Pydantic schemas for settlement results (payments, admin close, sweep)."""

from pydantic import BaseModel, Field

from src.am_common.cents import cents_to_display
from src.am_settlement.domain.models import (
    AuctionClosed,
    PaymentInsufficient,
    PaymentSettled,
    SweepReport,
)


class ConfirmPaymentRequest(BaseModel):
    auction_id: int = Field(..., gt=0)


class PaymentResult(BaseModel):
    auction_id: int
    status: str  # PAID | PAYMENT_DUE
    final_price_cents: int | None = None
    commission_cents: int | None = None
    seller_share_cents: int | None = None
    deposit_returned_cents: int | None = None
    net_paid_cents: int | None = None
    amount_due_cents: int | None = None
    amount_due_display: str | None = None

    @classmethod
    def from_outcome(cls, outcome: PaymentSettled | PaymentInsufficient) -> "PaymentResult":
        if isinstance(outcome, PaymentSettled):
            return cls(
                auction_id=outcome.auction_id,
                status="PAID",
                final_price_cents=outcome.final_price,
                commission_cents=outcome.commission,
                seller_share_cents=outcome.seller_share,
                deposit_returned_cents=outcome.deposit_returned,
                net_paid_cents=outcome.net_paid,
            )
        return cls(
            auction_id=outcome.auction_id,
            status="PAYMENT_DUE",
            amount_due_cents=outcome.amount_due,
            amount_due_display=cents_to_display(outcome.amount_due),
        )


class CloseResult(BaseModel):
    auction_id: int
    status: str = "CLOSED"
    winner_id: str | None
    final_price_cents: int | None
    refunds: dict[str, int]
    payment: PaymentResult | None

    @classmethod
    def from_outcome(cls, outcome: AuctionClosed) -> "CloseResult":
        return cls(
            auction_id=outcome.auction_id,
            winner_id=outcome.winner_id,
            final_price_cents=outcome.final_price,
            refunds=dict(outcome.refunds),
            payment=PaymentResult.from_outcome(outcome.payment) if outcome.payment else None,
        )


class SweepResult(BaseModel):
    examined: int
    closed: list[int]
    skipped: list[int]
    failed: list[int]

    @classmethod
    def from_report(cls, report: SweepReport) -> "SweepResult":
        return cls(
            examined=report.examined,
            closed=report.closed,
            skipped=report.skipped,
            failed=report.failed,
        )
