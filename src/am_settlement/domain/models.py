"""Typed results returned by the settlement engine.

Close and payment never raise for expected outcomes: callers branch on the
result type, and the transaction runner commits only the success variants.
"""

from dataclasses import dataclass, field

from src.am_common.enums import RejectReason


@dataclass(frozen=True)
class PaymentSettled:
    auction_id: int
    winner_id: str
    seller_id: str
    final_price: int          # cents, debited from the winner as AUCTION_PAYMENT
    commission: int           # cents, credited to the platform account
    seller_share: int         # cents, final_price - commission
    deposit_returned: int     # cents, winner's held deposit credited back

    @property
    def net_paid(self) -> int:
        """Net reduction of the winner's balance: final_price - deposit_returned."""
        return self.final_price - self.deposit_returned

    def amounts(self) -> dict[str, int]:
        return {
            "final_price": self.final_price,
            "commission": self.commission,
            "seller_share": self.seller_share,
            "deposit_returned": self.deposit_returned,
        }


@dataclass(frozen=True)
class PaymentInsufficient:
    auction_id: int
    winner_id: str
    amount_due: int           # cents, max(0, final_price - held deposit)
    available: int            # cents, winner balance at the time of the attempt


@dataclass(frozen=True)
class PaymentRejected:
    auction_id: int
    reason: RejectReason
    message: str


PaymentOutcome = PaymentSettled | PaymentInsufficient | PaymentRejected


@dataclass(frozen=True)
class AuctionClosed:
    auction_id: int
    winner_id: str | None
    final_price: int | None
    refunds: dict[str, int] = field(default_factory=dict)  # bidder_id -> cents
    payment: PaymentSettled | PaymentInsufficient | None = None

    @property
    def has_winner(self) -> bool:
        return self.winner_id is not None


@dataclass(frozen=True)
class CloseRejected:
    """Close refused. For ALREADY_CLOSED the recorded outcome is echoed back."""

    auction_id: int
    reason: RejectReason
    message: str
    winner_id: str | None = None
    final_price: int | None = None


CloseOutcome = AuctionClosed | CloseRejected


@dataclass
class SweepReport:
    examined: int = 0
    closed: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
