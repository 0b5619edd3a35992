"""Booking model and operation inputs/results."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import BookingKind, BookingStatus, PaymentStatus, RefundStatus, RefundType


class Booking(BaseModel):
    """A chalet stay or a pool ticket.

    Amounts are stored in cents. A pool ticket covers a single day and is
    stored with ``check_out = check_in + 1 day``.
    """

    model_config = ConfigDict(strict=True)

    booking_id: str = Field(..., description="Unique booking ID")
    booking_number: str = Field(..., description="Human readable number, e.g. CH-2026-1A2B3C4D")
    kind: BookingKind
    resource_id: str = Field(..., description="Chalet or pool session reserved")
    customer_id: str | None = Field(default=None, description="Owner; None for guest bookings")
    customer_name: str
    customer_email: str | None = None
    check_in: date
    check_out: date
    number_of_guests: int = Field(..., ge=1)
    nights: int = Field(..., ge=1)
    status: BookingStatus
    payment_status: PaymentStatus
    subtotal: int = Field(..., ge=0)
    weekend_markup: int = Field(default=0, ge=0)
    total_price: int = Field(..., ge=0)
    credit_applied: int = Field(default=0, ge=0)
    amount_due: int = Field(..., ge=0, description="total_price - credit_applied")
    amount_paid: int = Field(default=0, ge=0)
    balance_due: int = Field(default=0, ge=0, description="Extra amount owed after a modification")
    payment_intent_id: str | None = None
    special_requests: str | None = None

    # Populated once cancelled
    refund_amount: int | None = Field(default=None, ge=0)
    credit_issued: int | None = Field(default=None, ge=0)
    refund_status: RefundStatus | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None

    checked_in_at: datetime | None = None
    checked_in_by: str | None = None
    checked_out_at: datetime | None = None
    checked_out_by: str | None = None

    version: int = Field(default=1, ge=1, description="Optimistic concurrency counter")
    created_at: datetime
    updated_at: datetime

    @property
    def ticket_date(self) -> date:
        """Day of a pool ticket (same as check-in)."""
        return self.check_in


class BookingCreate(BaseModel):
    """Data required to create a booking.

    For pool tickets only ``check_in`` is needed; ``check_out`` is derived.
    """

    model_config = ConfigDict(strict=True)

    resource_id: str
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_email: str | None = None
    check_in: date
    check_out: date | None = None
    number_of_guests: int
    special_requests: str | None = Field(default=None, max_length=500)
    use_credit: bool = False


class Requester(BaseModel):
    """Identity of the caller of a booking operation."""

    model_config = ConfigDict(strict=True, frozen=True)

    user_id: str | None = None
    is_staff: bool = False

    @property
    def is_anonymous(self) -> bool:
        """True for guest (unauthenticated) callers."""
        return self.user_id is None


class PaymentIntent(BaseModel):
    """External payment initiated for a booking."""

    model_config = ConfigDict(strict=True)

    payment_intent_id: str
    client_secret: str | None = None
    amount: int = Field(..., ge=0)
    currency: str
    status: str


class BookingCreated(BaseModel):
    """Result of ``create_booking``."""

    model_config = ConfigDict(strict=True)

    booking: Booking
    payment_intent: PaymentIntent | None = None


class CancellationResult(BaseModel):
    """Result of ``cancel_booking``."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str
    booking: Booking
    refund_type: RefundType
    refund_percentage: int
    days_until_check_in: int
    refund_amount: int
    credit_amount: int
    refund_status: RefundStatus


class ModificationResult(BaseModel):
    """Result of ``modify_booking_dates``."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str
    booking: Booking
    price_difference: int = Field(..., description="new total - old total (cents)")
    new_payment_required: bool = False
    refund_amount: int = 0
    refund_status: RefundStatus = RefundStatus.NOT_REQUIRED
    # Repriced intent of a booking that is still awaiting payment
    payment_intent: PaymentIntent | None = None
