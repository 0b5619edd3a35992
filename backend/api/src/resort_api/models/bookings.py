"""API models for booking endpoints.

Request bodies arrive as JSON, so they use lax validation to accept ISO
date strings. Responses reuse the core models.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from resort_core.models import Booking, BookingCreate


class BookingCreateRequest(BaseModel):
    """Request to book a chalet stay or pool tickets.

    The owner is derived from the caller's identity, never from the body.
    """

    model_config = ConfigDict(
        # strict=False allows string-to-date coercion from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "resource_id": "chalet-cedar",
                    "customer_name": "Rania Haddad",
                    "customer_email": "rania@example.com",
                    "check_in": "2026-07-10",
                    "check_out": "2026-07-13",
                    "number_of_guests": 4,
                    "use_credit": True,
                }
            ]
        },
    )

    resource_id: str = Field(..., min_length=1, description="Chalet or pool session ID")
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_email: str | None = Field(default=None, max_length=254)
    check_in: date = Field(..., description="Check-in or ticket date (YYYY-MM-DD)")
    check_out: date | None = Field(
        default=None,
        description="Check-out date (YYYY-MM-DD); omitted for pool tickets",
    )
    number_of_guests: int = Field(..., description="Guests (chalet) or tickets (pool)")
    special_requests: str | None = Field(default=None, max_length=500)
    use_credit: bool = Field(default=False, description="Apply available account credit")

    def to_booking_create(self) -> BookingCreate:
        return BookingCreate(**self.model_dump())


class BookingDatesRequest(BaseModel):
    """New dates for an existing booking."""

    model_config = ConfigDict(strict=False)

    check_in: date
    check_out: date | None = None


class CancelBookingRequest(BaseModel):
    """Optional reason given when cancelling."""

    model_config = ConfigDict(strict=False)

    reason: str | None = Field(default=None, max_length=500)


class BookingListResponse(BaseModel):
    """Bookings of the current user."""

    bookings: list[Booking]
    total: int


class BlockedDatesResponse(BaseModel):
    """Calendar of dates that cannot take a new booking."""

    resource_id: str
    start_date: date
    end_date: date
    blocked_dates: list[date]
