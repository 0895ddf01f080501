"""Global enums — must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class Role(str, Enum):
    BIDDER = "BIDDER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


class AuctionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CLOSED = "CLOSED"


class TopUpStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LedgerEntryKind(str, Enum):
    # Wallet funding (admin-approved)
    TOPUP = "TOPUP"
    # Bid deposit hold / release (bidder side)
    DEPOSIT_HOLD = "DEPOSIT_HOLD"
    DEPOSIT_REFUND = "DEPOSIT_REFUND"
    # Settlement legs (winner / seller / platform)
    AUCTION_PAYMENT = "AUCTION_PAYMENT"
    SALE_PROCEEDS = "SALE_PROCEEDS"
    COMMISSION = "COMMISSION"
    # Zero-amount audit marker: winner could not cover the net amount owed
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"


class ErrorCategory(str, Enum):
    VALIDATION = "VALIDATION"
    STATE_CONFLICT = "STATE_CONFLICT"
    RESOURCE = "RESOURCE"
    INTEGRITY = "INTEGRITY"


class RejectReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    FORBIDDEN = "FORBIDDEN"
    NOT_ACTIVE = "NOT_ACTIVE"
    ENDED = "ENDED"
    BELOW_MIN_INCREMENT = "BELOW_MIN_INCREMENT"
    ABOVE_MAX_INCREMENT = "ABOVE_MAX_INCREMENT"
    DEPOSIT_TOO_LOW = "DEPOSIT_TOO_LOW"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ALREADY_CLOSED = "ALREADY_CLOSED"
    NOT_CLOSED = "NOT_CLOSED"
    NOT_WINNER = "NOT_WINNER"
    ALREADY_PAID = "ALREADY_PAID"

    @property
    def category(self) -> "ErrorCategory":
        return _REASON_CATEGORY[self]


_REASON_CATEGORY: dict[RejectReason, ErrorCategory] = {
    RejectReason.NOT_FOUND: ErrorCategory.VALIDATION,
    RejectReason.INVALID_AMOUNT: ErrorCategory.VALIDATION,
    RejectReason.FORBIDDEN: ErrorCategory.VALIDATION,
    RejectReason.NOT_ACTIVE: ErrorCategory.STATE_CONFLICT,
    RejectReason.ENDED: ErrorCategory.STATE_CONFLICT,
    RejectReason.BELOW_MIN_INCREMENT: ErrorCategory.STATE_CONFLICT,
    RejectReason.ABOVE_MAX_INCREMENT: ErrorCategory.STATE_CONFLICT,
    RejectReason.DEPOSIT_TOO_LOW: ErrorCategory.VALIDATION,
    RejectReason.INSUFFICIENT_BALANCE: ErrorCategory.RESOURCE,
    RejectReason.ALREADY_CLOSED: ErrorCategory.STATE_CONFLICT,
    RejectReason.NOT_CLOSED: ErrorCategory.STATE_CONFLICT,
    RejectReason.NOT_WINNER: ErrorCategory.VALIDATION,
    RejectReason.ALREADY_PAID: ErrorCategory.STATE_CONFLICT,
}
