"""Availability checking and slot locking for chalets and pool sessions.

The pure helpers at the top decide whether two stays collide. Stays are
half-open ranges ``[check_in, check_out)``, so a check-out day can be the
next guest's check-in day.

``AvailabilityService`` owns the ``availability`` table, which holds one
lock item per ``(resource, night)`` for chalets and one ticket counter per
``(resource, day)`` for pool sessions. The lock items are written inside
the same DynamoDB transaction as the booking record, so two concurrent
requests for the same night cannot both succeed.
"""

import datetime as dt
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, NamedTuple

from resort_core.models import Booking, BookingKind, BookingStatus, Resource, ResourceKind

from .dynamodb import to_model

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


class StayRange(NamedTuple):
    """A half-open date range ``[check_in, check_out)``."""

    check_in: dt.date
    check_out: dt.date


def ranges_overlap(
    a_start: dt.date,
    a_end: dt.date,
    b_start: dt.date,
    b_end: dt.date,
) -> bool:
    """Return True if two half-open date ranges share at least one night."""
    return a_start < b_end and a_end > b_start


def overlapping_bookings(
    candidate: StayRange,
    existing: Iterable[Booking],
    exclude_booking_id: str | None = None,
) -> list[Booking]:
    """Bookings from ``existing`` whose stay collides with ``candidate``.

    Cancelled bookings never block. ``exclude_booking_id`` lets a booking
    being modified ignore itself.
    """
    return [
        booking
        for booking in existing
        if booking.status != BookingStatus.CANCELLED
        and booking.booking_id != exclude_booking_id
        and ranges_overlap(
            candidate.check_in, candidate.check_out, booking.check_in, booking.check_out
        )
    ]


def has_overlap(candidate: StayRange, existing: Iterable[Booking]) -> bool:
    """Return True if ``candidate`` collides with any non-cancelled booking."""
    return bool(overlapping_bookings(candidate, existing))


def nights_in_range(start: dt.date, end: dt.date) -> list[dt.date]:
    """Nights of a stay: every date from start to end (exclusive of end)."""
    return [start + dt.timedelta(days=i) for i in range((end - start).days)]


def slot_key(resource_id: str, day: dt.date) -> str:
    """Key of the lock/counter item for one resource and one date."""
    return f"{resource_id}#{day.isoformat()}"


class AvailabilityService:
    """Reads bookings per resource and builds slot lock transaction items."""

    TABLE = "availability"
    BOOKINGS_TABLE = "bookings"
    RESOURCE_INDEX = "resource_id-index"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize availability service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    # Reads

    def get_resource_bookings(self, resource_id: str) -> list[Booking]:
        """All bookings ever made against a resource."""
        items = self.db.query_by_gsi(
            table=self.BOOKINGS_TABLE,
            index_name=self.RESOURCE_INDEX,
            partition_key_name="resource_id",
            partition_key_value=resource_id,
        )
        return [to_model(Booking, item) for item in items]

    def find_conflicts(
        self,
        resource_id: str,
        check_in: dt.date,
        check_out: dt.date,
        exclude_booking_id: str | None = None,
    ) -> list[Booking]:
        """Non-cancelled chalet bookings that collide with the requested stay.

        This is a pre-check for a friendly early error. The slot locks
        written at commit time are what actually prevents double booking.
        """
        return overlapping_bookings(
            StayRange(check_in, check_out),
            self.get_resource_bookings(resource_id),
            exclude_booking_id=exclude_booking_id,
        )

    def tickets_sold(self, resource_id: str, day: dt.date) -> int:
        """Number of pool tickets sold for one day."""
        item = self.db.get_item(
            self.TABLE, {"slot_key": slot_key(resource_id, day)}, consistent_read=True
        )
        if not item:
            return 0
        return int(item.get("tickets", 0))

    def has_ticket_capacity(self, resource: Resource, day: dt.date, tickets: int) -> bool:
        """Return True if ``tickets`` more pool tickets fit on ``day``."""
        return self.tickets_sold(resource.resource_id, day) + tickets <= resource.capacity

    def get_blocked_dates(
        self,
        resource: Resource,
        start_date: dt.date,
        end_date: dt.date,
    ) -> list[dt.date]:
        """Dates in ``[start_date, end_date)`` that cannot take a new booking.

        For chalets a date is blocked when its night is locked. For pool
        sessions a date is blocked when the day is sold out.

        Args:
            resource: Chalet or pool session
            start_date: First date to report
            end_date: End of range (exclusive)

        Returns:
            Sorted list of blocked dates
        """
        days = nights_in_range(start_date, end_date)
        keys = [{"slot_key": slot_key(resource.resource_id, d)} for d in days]
        items = self.db.batch_get(self.TABLE, keys)

        blocked: list[dt.date] = []
        for item in items:
            day = dt.date.fromisoformat(item["date"])
            if resource.kind == ResourceKind.POOL_SESSION:
                if int(item.get("tickets", 0)) >= resource.capacity:
                    blocked.append(day)
            else:
                blocked.append(day)

        return sorted(blocked)

    # Transaction items

    def lock_nights_tx(
        self,
        resource_id: str,
        nights: Iterable[dt.date],
        booking_id: str,
        now: dt.datetime,
    ) -> list[dict[str, Any]]:
        """Put one lock item per night; fails if any night is already locked."""
        return [
            self.db.put_tx(
                self.TABLE,
                {
                    "slot_key": slot_key(resource_id, night),
                    "resource_id": resource_id,
                    "date": night.isoformat(),
                    "booking_id": booking_id,
                    "created_at": now.isoformat(),
                },
                condition_expression="attribute_not_exists(slot_key)",
            )
            for night in nights
        ]

    def release_nights_tx(
        self,
        resource_id: str,
        nights: Iterable[dt.date],
        booking_id: str,
    ) -> list[dict[str, Any]]:
        """Delete the lock items a booking holds; never deletes another booking's lock."""
        return [
            self.db.delete_tx(
                self.TABLE,
                {"slot_key": slot_key(resource_id, night)},
                condition_expression="attribute_not_exists(slot_key) OR booking_id = :bid",
                expression_attribute_values={":bid": booking_id},
            )
            for night in nights
        ]

    def reserve_tickets_tx(
        self,
        resource: Resource,
        day: dt.date,
        tickets: int,
    ) -> dict[str, Any]:
        """Increment the day's ticket counter, guarded by the session capacity."""
        return self.db.update_tx(
            self.TABLE,
            {"slot_key": slot_key(resource.resource_id, day)},
            update_expression="SET resource_id = :rid, #d = :day ADD tickets :n",
            expression_attribute_values={
                ":rid": resource.resource_id,
                ":day": day.isoformat(),
                ":n": tickets,
                ":limit": resource.capacity - tickets,
            },
            expression_attribute_names={"#d": "date"},
            condition_expression="attribute_not_exists(tickets) OR tickets <= :limit",
        )

    def release_tickets_tx(
        self,
        resource_id: str,
        day: dt.date,
        tickets: int,
    ) -> dict[str, Any]:
        """Give tickets back to the day's counter."""
        return self.db.update_tx(
            self.TABLE,
            {"slot_key": slot_key(resource_id, day)},
            update_expression="ADD tickets :neg",
            expression_attribute_values={":neg": -tickets, ":n": tickets},
            condition_expression="tickets >= :n",
        )

    def reserve_tx(
        self,
        resource: Resource,
        check_in: dt.date,
        check_out: dt.date,
        booking_id: str,
        guests: int,
        now: dt.datetime,
    ) -> list[dict[str, Any]]:
        """Slot items that claim a stay (chalet) or a pool day."""
        if resource.kind == ResourceKind.POOL_SESSION:
            return [self.reserve_tickets_tx(resource, check_in, guests)]
        return self.lock_nights_tx(
            resource.resource_id, nights_in_range(check_in, check_out), booking_id, now
        )

    def release_tx(self, booking: Booking) -> list[dict[str, Any]]:
        """Slot items that free everything a booking holds."""
        if booking.kind == BookingKind.POOL_TICKET:
            return [
                self.release_tickets_tx(
                    booking.resource_id, booking.check_in, booking.number_of_guests
                )
            ]
        return self.release_nights_tx(
            booking.resource_id,
            nights_in_range(booking.check_in, booking.check_out),
            booking.booking_id,
        )

    def move_tx(
        self,
        resource: Resource,
        booking: Booking,
        new_check_in: dt.date,
        new_check_out: dt.date,
        now: dt.datetime,
    ) -> list[dict[str, Any]]:
        """Slot items that move a booking to new dates.

        Chalet nights kept by both stays are left untouched; only the
        difference is locked or released.
        """
        if resource.kind == ResourceKind.POOL_SESSION:
            if new_check_in == booking.check_in:
                return []
            return [
                self.release_tickets_tx(
                    booking.resource_id, booking.check_in, booking.number_of_guests
                ),
                self.reserve_tickets_tx(resource, new_check_in, booking.number_of_guests),
            ]

        old_nights = set(nights_in_range(booking.check_in, booking.check_out))
        new_nights = set(nights_in_range(new_check_in, new_check_out))
        return self.release_nights_tx(
            booking.resource_id, sorted(old_nights - new_nights), booking.booking_id
        ) + self.lock_nights_tx(
            booking.resource_id, sorted(new_nights - old_nights), booking.booking_id, now
        )
