"""API-specific request/response models."""

from resort_api.models.bookings import (
    BlockedDatesResponse,
    BookingCreateRequest,
    BookingDatesRequest,
    BookingListResponse,
    CancelBookingRequest,
)

__all__ = [
    "BlockedDatesResponse",
    "BookingCreateRequest",
    "BookingDatesRequest",
    "BookingListResponse",
    "CancelBookingRequest",
]
