"""Booking endpoints.

Provides REST endpoints for:
- Creating bookings (guests and signed-in customers)
- Retrieving a booking (owner or staff) and the caller's bookings
- Cancelling and changing dates (owner or staff)
- Front desk transitions: confirm, check-in, check-out, no-show (staff)
- Blocked-date calendar of a chalet or pool session (public)

API Gateway validates the JWT and passes the caller's identity via the
x-user-sub and x-user-groups headers.
"""

import datetime as dt

from fastapi import APIRouter, Body, Depends, Query
from starlette.status import HTTP_201_CREATED

from resort_api.dependencies import get_booking_service, get_requester, require_staff, require_user
from resort_api.models.bookings import (
    BlockedDatesResponse,
    BookingCreateRequest,
    BookingDatesRequest,
    BookingListResponse,
    CancelBookingRequest,
)
from resort_core.models import (
    Booking,
    BookingCreated,
    CancellationResult,
    ModificationResult,
    Requester,
)
from resort_core.services.booking import BookingService

router = APIRouter(tags=["bookings"])


@router.post(
    "/bookings",
    summary="Create booking",
    description="""
Create a pending booking for a chalet stay or pool tickets.

Validates guests and dates, checks availability, prices the stay
(weekend nights carry the chalet's markup), applies account credit when
requested, and returns a Stripe PaymentIntent for the amount due.

**Notes:**
- Pool tickets take only `check_in`; each guest is one ticket
- The booking is confirmed once the payment succeeds
""",
    response_model=BookingCreated,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid guests or dates"},
        402: {"description": "Payment provider rejected the payment intent"},
        404: {"description": "Unknown chalet or pool session"},
        409: {"description": "Dates unavailable"},
        503: {"description": "Bookings for this module are disabled"},
    },
)
async def create_booking(
    body: BookingCreateRequest,
    requester: Requester = Depends(get_requester),
    service: BookingService = Depends(get_booking_service),
) -> BookingCreated:
    return service.create_booking(body.to_booking_create(), requester)


@router.get(
    "/bookings",
    summary="List my bookings",
    response_model=BookingListResponse,
)
async def list_my_bookings(
    requester: Requester = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = service.list_customer_bookings(requester)
    return BookingListResponse(bookings=bookings, total=len(bookings))


@router.get(
    "/bookings/{booking_id}",
    summary="Get booking",
    response_model=Booking,
    responses={403: {"description": "Not the owner"}, 404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str,
    requester: Requester = Depends(get_requester),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.get_booking(booking_id, requester)


@router.post(
    "/bookings/{booking_id}/cancel",
    summary="Cancel booking",
    description="""
Cancel a pending or confirmed booking.

The refund follows the cancellation policy for the time left before
check-in. Pool tickets cancelled within 24 hours become account credit.
A refund the payment provider rejects is recorded as `refund_status=failed`;
the cancellation still stands.
""",
    response_model=CancellationResult,
    responses={
        403: {"description": "Not the owner"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking can no longer be cancelled"},
    },
)
async def cancel_booking(
    booking_id: str,
    body: CancelBookingRequest | None = Body(default=None),
    requester: Requester = Depends(get_requester),
    service: BookingService = Depends(get_booking_service),
) -> CancellationResult:
    reason = body.reason if body else None
    return service.cancel_booking(booking_id, requester, reason)


@router.patch(
    "/bookings/{booking_id}/dates",
    summary="Change booking dates",
    response_model=ModificationResult,
    responses={
        403: {"description": "Not the owner"},
        404: {"description": "Booking not found"},
        409: {"description": "New dates unavailable or booking not modifiable"},
    },
)
async def modify_booking_dates(
    booking_id: str,
    body: BookingDatesRequest,
    requester: Requester = Depends(get_requester),
    service: BookingService = Depends(get_booking_service),
) -> ModificationResult:
    return service.modify_booking_dates(booking_id, requester, body.check_in, body.check_out)


@router.post(
    "/bookings/{booking_id}/confirm",
    summary="Confirm booking paid at the front desk",
    response_model=Booking,
)
async def confirm_booking(
    booking_id: str,
    staff: Requester = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.confirm_booking(booking_id, requester=staff)


@router.post("/bookings/{booking_id}/check-in", summary="Check in", response_model=Booking)
async def check_in(
    booking_id: str,
    staff: Requester = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.check_in(booking_id, staff)


@router.post("/bookings/{booking_id}/check-out", summary="Check out", response_model=Booking)
async def check_out(
    booking_id: str,
    staff: Requester = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.check_out(booking_id, staff)


@router.post("/bookings/{booking_id}/no-show", summary="Mark no-show", response_model=Booking)
async def mark_no_show(
    booking_id: str,
    staff: Requester = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.mark_no_show(booking_id, staff)


@router.get(
    "/resources/{resource_id}/availability",
    summary="Blocked dates",
    description="Dates in `[start_date, end_date)` that cannot take a new booking.",
    response_model=BlockedDatesResponse,
)
async def get_blocked_dates(
    resource_id: str,
    start_date: dt.date = Query(..., description="First date (YYYY-MM-DD)"),
    end_date: dt.date = Query(..., description="End date, exclusive (YYYY-MM-DD)"),
    service: BookingService = Depends(get_booking_service),
) -> BlockedDatesResponse:
    blocked = service.get_blocked_dates(resource_id, start_date, end_date)
    return BlockedDatesResponse(
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
        blocked_dates=blocked,
    )
