"""Enumeration types for resort booking data models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class BookingKind(str, Enum):
    """What a booking reserves."""

    CHALET = "chalet"
    POOL_TICKET = "pool_ticket"


class ResourceKind(str, Enum):
    """Type of bookable resource."""

    CHALET = "chalet"
    POOL_SESSION = "pool_session"

    @property
    def booking_kind(self) -> BookingKind:
        """Booking kind created against this resource."""
        if self is ResourceKind.CHALET:
            return BookingKind.CHALET
        return BookingKind.POOL_TICKET

    @property
    def module_slug(self) -> str:
        """Slug of the platform module that owns this resource kind."""
        return "chalets" if self is ResourceKind.CHALET else "pool"


class PaymentStatus(str, Enum):
    """Payment state of a booking."""

    PENDING = "pending"
    PAID = "paid"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"
    UNPAID = "unpaid"  # Cancelled before any payment was captured


class RefundType(str, Enum):
    """How a cancellation is compensated."""

    FULL = "FULL"
    PARTIAL = "PARTIAL"
    CREDIT = "CREDIT"
    NONE = "NONE"


class RefundStatus(str, Enum):
    """Outcome of the external refund attempt."""

    NOT_REQUIRED = "not_required"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CreditType(str, Enum):
    """Origin of a user credit."""

    CANCELLATION_CREDIT = "cancellation_credit"
    POOL_TICKET_CREDIT = "pool_ticket_credit"


class NotificationStatus(str, Enum):
    """Delivery state of an outbox notification."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class NotificationEventType(str, Enum):
    """Booking events that produce customer notifications."""

    BOOKING_CREATED = "booking_created"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_MODIFIED = "booking_modified"
