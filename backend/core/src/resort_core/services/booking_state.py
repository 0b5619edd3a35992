"""Booking lifecycle state machine.

    pending ──► confirmed ──► checked_in ──► checked_out
       │            │
       │            ├──► no_show
       ▼            ▼
    cancelled ◄─────┘

``checked_out``, ``cancelled`` and ``no_show`` are terminal. A terminal
booking keeps its status and dates; the only later writes allowed are the
refund bookkeeping fields, recording the outcome of a refund requested
when the booking was cancelled.
"""

from resort_core.models import BookingStatus, ErrorCode, InvalidStatus, InvalidTransition

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    status for status, targets in TRANSITIONS.items() if not targets
)

# Statuses whose dates may still be changed
MODIFIABLE_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


def can_transition(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in TRANSITIONS[current]


def assert_transition(current: BookingStatus, requested: BookingStatus) -> None:
    """Raise InvalidTransition unless ``current -> requested`` is allowed."""
    if not can_transition(current, requested):
        raise InvalidTransition(current, requested)


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def assert_cancellable(status: BookingStatus) -> None:
    """Reject cancellation of checked-in or terminal bookings.

    Runs before any refund logic so nothing is computed for a booking
    that cannot be cancelled.
    """
    if status == BookingStatus.CHECKED_IN or is_terminal(status):
        raise InvalidStatus(
            ErrorCode.BOOKING_NOT_CANCELLABLE,
            details={"current_status": status.value},
        )


def assert_modifiable(status: BookingStatus) -> None:
    """Only pending and confirmed bookings can change dates."""
    if status not in MODIFIABLE_STATUSES:
        raise InvalidStatus(details={"current_status": status.value})


# Fields that may still change once a booking is terminal
REFUND_BOOKKEEPING_FIELDS: frozenset[str] = frozenset({"refund_status", "payment_status"})


def assert_bookkeeping_update(status: BookingStatus, changes: dict) -> None:
    """Reject changes to a terminal booking beyond its refund bookkeeping."""
    if not is_terminal(status):
        return
    forbidden = set(changes) - REFUND_BOOKKEEPING_FIELDS
    if forbidden:
        raise InvalidStatus(
            details={"current_status": status.value, "fields": ",".join(sorted(forbidden))}
        )
