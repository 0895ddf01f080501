"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity
  2xxx: Wallet
  3xxx: Auction
  4xxx: Bid
  5xxx: Settlement
  9xxx: System

Core operations return typed rejections instead of raising; the HTTP layer
turns a rejection into one of these via error_for_rejection().
"""

from typing import Any

from src.am_common.enums import ErrorCategory, RejectReason


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        category: ErrorCategory = ErrorCategory.INTEGRITY,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.category = category
        self.details: dict[str, Any] | None = None
        super().__init__(message)


# --- 1xxx: Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401, ErrorCategory.VALIDATION)


class RoleRequiredError(AppError):
    def __init__(self, role: str) -> None:
        super().__init__(1002, f"Role {role} required", 403, ErrorCategory.VALIDATION)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
            ErrorCategory.RESOURCE,
        )


class AccountNotFoundError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(
            2002, f"Account not found: {account_id}", 404, ErrorCategory.VALIDATION
        )


class TopUpNotFoundError(AppError):
    def __init__(self, topup_id: int) -> None:
        super().__init__(
            2003, f"Top-up request not found: {topup_id}", 404, ErrorCategory.VALIDATION
        )


class TopUpAlreadyProcessedError(AppError):
    def __init__(self, topup_id: int, status: str) -> None:
        super().__init__(
            2004,
            f"Top-up request {topup_id} already processed (status={status})",
            409,
            ErrorCategory.STATE_CONFLICT,
        )


# --- 3xxx: Auction ---

class AuctionNotFoundError(AppError):
    def __init__(self, auction_id: int) -> None:
        super().__init__(
            3001, f"Auction not found: {auction_id}", 404, ErrorCategory.VALIDATION
        )


class AuctionNotActiveError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(3002, message, 409, ErrorCategory.STATE_CONFLICT)


class AuctionEndedError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(3003, message, 409, ErrorCategory.STATE_CONFLICT)


class InvalidAuctionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3004, f"Invalid auction: {detail}", 422, ErrorCategory.VALIDATION)


class AuctionNotPendingError(AppError):
    def __init__(self, auction_id: int, status: str) -> None:
        super().__init__(
            3005,
            f"Auction {auction_id} is not pending moderation (status={status})",
            409,
            ErrorCategory.STATE_CONFLICT,
        )


class AuctionAlreadyClosedError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(3006, message, 409, ErrorCategory.STATE_CONFLICT)


# --- 4xxx: Bid ---

class InvalidBidAmountError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(4001, message, 422, ErrorCategory.VALIDATION)


class BelowMinIncrementError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(4002, message, 409, ErrorCategory.STATE_CONFLICT)


class AboveMaxIncrementError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(4003, message, 409, ErrorCategory.STATE_CONFLICT)


class DepositTooLowError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(4004, message, 422, ErrorCategory.VALIDATION)


# --- 5xxx: Settlement ---

class NotWinnerError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(5001, message, 403, ErrorCategory.VALIDATION)


class AlreadyPaidError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(5002, message, 409, ErrorCategory.STATE_CONFLICT)


class AuctionNotClosedError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(5003, message, 409, ErrorCategory.STATE_CONFLICT)


class PaymentDueError(AppError):
    def __init__(self, amount_due: int, available: int) -> None:
        super().__init__(
            5004,
            f"Payment remains due: {amount_due} cents owed, {available} cents available",
            422,
            ErrorCategory.RESOURCE,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreIntegrityError(AppError):
    """Lock/transaction failure — retry the whole operation after a backoff."""

    def __init__(self, operation: str) -> None:
        super().__init__(9003, f"Operation failed, please retry: {operation}", 503)


def _error_class_for(reason: RejectReason, message: str) -> AppError:
    if reason is RejectReason.NOT_FOUND:
        return AppError(3001, message, 404, reason.category)
    if reason is RejectReason.INVALID_AMOUNT:
        return InvalidBidAmountError(message)
    if reason is RejectReason.FORBIDDEN:
        return AppError(1002, message, 403, reason.category)
    if reason is RejectReason.NOT_ACTIVE:
        return AuctionNotActiveError(message)
    if reason is RejectReason.ENDED:
        return AuctionEndedError(message)
    if reason is RejectReason.BELOW_MIN_INCREMENT:
        return BelowMinIncrementError(message)
    if reason is RejectReason.ABOVE_MAX_INCREMENT:
        return AboveMaxIncrementError(message)
    if reason is RejectReason.DEPOSIT_TOO_LOW:
        return DepositTooLowError(message)
    if reason is RejectReason.INSUFFICIENT_BALANCE:
        return AppError(2001, message, 422, reason.category)
    if reason is RejectReason.ALREADY_CLOSED:
        return AuctionAlreadyClosedError(message)
    if reason is RejectReason.NOT_CLOSED:
        return AuctionNotClosedError(message)
    if reason is RejectReason.NOT_WINNER:
        return NotWinnerError(message)
    return AlreadyPaidError(message)


def error_for_rejection(
    reason: RejectReason, message: str, boundary: int | None = None
) -> AppError:
    """Map a typed core rejection onto the HTTP error it is reported as.

    The reason (and computed boundary, in cents, when there is one) travel
    in `details` so clients can resubmit without re-reading the auction.
    """
    error = _error_class_for(reason, message)
    error.details = {"reason": reason.value}
    if boundary is not None:
        error.details["boundary_cents"] = boundary
    return error
