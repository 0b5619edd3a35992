"""Standard error codes and exception hierarchy for the booking core.

Every failure surfaced to a caller is a ``BookingError`` carrying an
``ErrorCode``. The HTTP layer maps codes to status codes; other callers
can turn any error into an ``ErrorResponse`` with ``to_error_response()``.
"""

from enum import Enum
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict

from .enums import BookingStatus


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Booking error codes (ERR_001-ERR_016)
    DATES_UNAVAILABLE = "ERR_001"
    INVALID_DATE_RANGE = "ERR_002"
    MAX_GUESTS_EXCEEDED = "ERR_003"
    INVALID_INPUT = "ERR_004"
    BOOKING_NOT_FOUND = "ERR_005"
    RESOURCE_NOT_FOUND = "ERR_006"
    UNAUTHORIZED = "ERR_007"
    PAYMENT_FAILED = "ERR_008"
    INVALID_STATUS = "ERR_009"
    INVALID_TRANSITION = "ERR_010"
    BOOKING_NOT_CANCELLABLE = "ERR_011"
    RESOURCE_INACTIVE = "ERR_012"
    STAY_TOO_LONG = "ERR_013"
    MODULE_DISABLED = "ERR_014"
    CONCURRENT_MODIFICATION = "ERR_015"
    NOTIFICATION_FAILED = "ERR_016"

    # Stripe/Payment error codes (ERR_STRIPE_001-ERR_STRIPE_002)
    INVALID_WEBHOOK_SIGNATURE = "ERR_STRIPE_001"
    STRIPE_API_ERROR = "ERR_STRIPE_002"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.DATES_UNAVAILABLE: "The requested dates are not available",
    ErrorCode.INVALID_DATE_RANGE: "Check-out date must be after check-in date",
    ErrorCode.MAX_GUESTS_EXCEEDED: "Number of guests exceeds the allowed maximum",
    ErrorCode.INVALID_INPUT: "The request contains invalid data",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.RESOURCE_NOT_FOUND: "Chalet or pool session not found",
    ErrorCode.UNAUTHORIZED: "Not authorized to perform this action on the booking",
    ErrorCode.PAYMENT_FAILED: "Payment processing failed",
    ErrorCode.INVALID_STATUS: "The booking is not in a valid status for this action",
    ErrorCode.INVALID_TRANSITION: "The requested status change is not allowed",
    ErrorCode.BOOKING_NOT_CANCELLABLE: "The booking can no longer be cancelled",
    ErrorCode.RESOURCE_INACTIVE: "This chalet or pool session is not open for booking",
    ErrorCode.STAY_TOO_LONG: "The requested stay exceeds the maximum number of nights",
    ErrorCode.MODULE_DISABLED: "Bookings for this module are currently disabled",
    ErrorCode.CONCURRENT_MODIFICATION: "The booking was changed by another request",
    ErrorCode.NOTIFICATION_FAILED: "Notification delivery failed",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.STRIPE_API_ERROR: "Stripe API error occurred",
}

# Recovery suggestions for callers
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.DATES_UNAVAILABLE: "Choose different dates using the availability calendar",
    ErrorCode.INVALID_DATE_RANGE: "Pick a check-out date after the check-in date",
    ErrorCode.MAX_GUESTS_EXCEEDED: "Reduce the number of guests",
    ErrorCode.INVALID_INPUT: "Check the request parameters and try again",
    ErrorCode.BOOKING_NOT_FOUND: "Verify the booking ID",
    ErrorCode.RESOURCE_NOT_FOUND: "Verify the chalet or pool session ID",
    ErrorCode.UNAUTHORIZED: "Sign in as the booking owner or a staff member",
    ErrorCode.PAYMENT_FAILED: "Try again or use a different payment method",
    ErrorCode.INVALID_STATUS: "Refresh the booking to see its current status",
    ErrorCode.INVALID_TRANSITION: "Refresh the booking to see its current status",
    ErrorCode.BOOKING_NOT_CANCELLABLE: "Contact the front desk for assistance",
    ErrorCode.RESOURCE_INACTIVE: "Choose another chalet or pool session",
    ErrorCode.STAY_TOO_LONG: "Split the stay into several bookings",
    ErrorCode.MODULE_DISABLED: "Try again later",
    ErrorCode.CONCURRENT_MODIFICATION: "Reload the booking and retry",
    ErrorCode.NOTIFICATION_FAILED: "The notification will be retried",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.STRIPE_API_ERROR: "Try again or contact support",
}


class ErrorResponse(BaseModel):
    """Standard error response format.

    Mirrors the ``{success: false, message, code}`` shape callers render.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Base exception raised by booking operations.

    Can be caught and converted to an ErrorResponse.
    """

    default_code: ClassVar[ErrorCode] = ErrorCode.INVALID_INPUT

    def __init__(
        self,
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code or self.default_code
        self.message = ERROR_MESSAGES[self.code]
        self.recovery = ERROR_RECOVERY[self.code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)


class ValidationError(BookingError):
    """Bad input shape or range. Never retried."""

    default_code = ErrorCode.INVALID_INPUT


class NotFoundError(BookingError):
    """Booking or resource does not exist."""

    default_code = ErrorCode.BOOKING_NOT_FOUND


class Unauthorized(BookingError):
    """Requester is neither the owner nor staff."""

    default_code = ErrorCode.UNAUTHORIZED


class DatesUnavailable(BookingError):
    """Requested dates conflict with existing bookings."""

    default_code = ErrorCode.DATES_UNAVAILABLE


class InvalidStatus(BookingError):
    """Operation not allowed for the booking's current status."""

    default_code = ErrorCode.INVALID_STATUS


class InvalidTransition(InvalidStatus):
    """Status change not present in the transition table."""

    default_code = ErrorCode.INVALID_TRANSITION

    def __init__(self, current: BookingStatus, requested: BookingStatus):
        self.current = current
        self.requested = requested
        super().__init__(
            details={
                "current_status": current.value,
                "requested_status": requested.value,
                "reason": f"Cannot change a {current.value} booking to {requested.value}",
            }
        )


class DownstreamFailure(BookingError):
    """Payment or messaging provider error."""

    default_code = ErrorCode.PAYMENT_FAILED


class ModuleDisabled(BookingError):
    """The platform module owning the resource is switched off."""

    default_code = ErrorCode.MODULE_DISABLED


# Stripe error code to user-friendly message mapping
STRIPE_ERROR_MESSAGES: dict[str, str] = {
    "card_declined": "Your card was declined. Please try a different card.",
    "expired_card": "Your card has expired. Please use a different card.",
    "insufficient_funds": "Your card has insufficient funds. Please try a different card.",
    "processing_error": "A processing error occurred. Please try again.",
    "rate_limit": "Too many requests. Please wait a moment and try again.",
    "charge_already_refunded": "This payment has already been refunded.",
    "generic_decline": "Your card was declined. Please try a different card.",
}

# Stripe error codes that indicate the caller should retry
STRIPE_RETRYABLE_ERRORS: set[str] = {
    "processing_error",
    "rate_limit",
    "lock_timeout",
    "api_connection_error",
}


def get_user_friendly_stripe_message(
    stripe_error_code: Optional[str],
    default_message: str = "Payment could not be processed. Please try again.",
) -> str:
    """Get a user-friendly message for a Stripe error code.

    Args:
        stripe_error_code: The Stripe error code (e.g., 'card_declined').
        default_message: Message to use if error code is unknown.

    Returns:
        User-friendly error message.
    """
    if stripe_error_code and stripe_error_code in STRIPE_ERROR_MESSAGES:
        return STRIPE_ERROR_MESSAGES[stripe_error_code]
    return default_message


def is_stripe_error_retryable(stripe_error_code: Optional[str]) -> bool:
    """Check if a Stripe error is likely transient and retryable."""
    return stripe_error_code in STRIPE_RETRYABLE_ERRORS if stripe_error_code else False
