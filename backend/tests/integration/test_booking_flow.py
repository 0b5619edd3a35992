"""Integration tests for the complete booking flow.

Runs BookingService against moto DynamoDB tables with a mocked Stripe:
1. Create a booking (slots locked, PaymentIntent created)
2. Confirm it (webhook or staff)
3. Cancel or move it (slots released/moved, refund or credit issued)

The clock is fixed at Tuesday 2026-01-06 09:00 UTC.
"""

import datetime as dt
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from resort_core.config import BookingSettings
from resort_core.models import (
    BookingCreate,
    BookingStatus,
    CreditType,
    DatesUnavailable,
    ErrorCode,
    InvalidStatus,
    InvalidTransition,
    ModuleDisabled,
    NotFoundError,
    NotificationEventType,
    PaymentStatus,
    RefundStatus,
    RefundType,
    Requester,
    Resource,
    Unauthorized,
    ValidationError,
)
from resort_core.services.booking import BookingService
from resort_core.services.modules import ModuleStatusService
from resort_core.services.notification_service import NotificationService
from resort_core.services.resources import ResourceService
from resort_core.services.webhook_handler import WebhookHandler

NOW = dt.datetime(2026, 1, 6, 9, 0, tzinfo=dt.timezone.utc)
RANIA = Requester(user_id="user-1")
OMAR = Requester(user_id="user-2")
STAFF = Requester(user_id="staff-1", is_staff=True)


@pytest.fixture
def resources(db: Any, chalet: Resource, pool_session: Resource) -> ResourceService:
    service = ResourceService(db)
    service.save_resource(chalet)
    service.save_resource(pool_session)
    return service


@pytest.fixture
def notifications(db: Any) -> NotificationService:
    return NotificationService(db)


@pytest.fixture
def service(
    db: Any,
    resources: ResourceService,
    notifications: NotificationService,
    mock_stripe: MagicMock,
) -> BookingService:
    return BookingService(
        db,
        resources,
        mock_stripe,
        notifications,
        modules=ModuleStatusService(db),
        settings=BookingSettings(),
        now_fn=lambda: NOW,
    )


def _chalet_request(check_in: dt.date, check_out: dt.date, **overrides: Any) -> BookingCreate:
    values: dict[str, Any] = {
        "resource_id": "chalet-cedar",
        "customer_name": "Rania Haddad",
        "customer_email": "rania@example.com",
        "check_in": check_in,
        "check_out": check_out,
        "number_of_guests": 2,
    }
    values.update(overrides)
    return BookingCreate(**values)


def _pool_request(day: dt.date, guests: int = 2, **overrides: Any) -> BookingCreate:
    values: dict[str, Any] = {
        "resource_id": "pool-day",
        "customer_name": "Rania Haddad",
        "customer_email": "rania@example.com",
        "check_in": day,
        "number_of_guests": guests,
    }
    values.update(overrides)
    return BookingCreate(**values)


def _book_and_pay(
    service: BookingService,
    request: BookingCreate,
    requester: Requester = RANIA,
) -> str:
    created = service.create_booking(request, requester)
    service.confirm_booking(created.booking.booking_id)
    return created.booking.booking_id


def _blocked(service: BookingService, resource_id: str = "chalet-cedar") -> list[dt.date]:
    return service.get_blocked_dates(resource_id, dt.date(2026, 1, 1), dt.date(2026, 2, 1))


class TestCreateAndConfirm:
    def test_create_locks_nights_and_creates_intent(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA
        )

        booking = created.booking
        assert booking.status == BookingStatus.PENDING
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.total_price == 20000
        assert booking.nights == 2
        assert booking.version == 1
        assert booking.booking_number.startswith("CH-2026-")
        assert created.payment_intent.payment_intent_id == f"pi_{booking.booking_id}"
        assert _blocked(service) == [dt.date(2026, 1, 20), dt.date(2026, 1, 21)]
        assert service.get_booking(booking.booking_id, RANIA) == booking

    def test_weekend_stay_price(self, service: BookingService) -> None:
        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 23), dt.date(2026, 1, 25)), RANIA
        )

        assert created.booking.subtotal == 20000
        assert created.booking.weekend_markup == 4000
        assert created.booking.total_price == 24000

    def test_confirm_marks_paid(self, service: BookingService) -> None:
        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA
        )

        confirmed = service.confirm_booking(created.booking.booking_id)

        assert confirmed.status == BookingStatus.CONFIRMED
        assert confirmed.payment_status == PaymentStatus.PAID
        assert confirmed.amount_paid == 20000
        assert confirmed.version == 2

    def test_webhook_confirms_booking(self, db: Any, service: BookingService) -> None:
        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA
        )
        booking_id = created.booking.booking_id
        event = {
            "id": "evt_int_1",
            "type": "payment_intent.succeeded",
            "data": {
                "object": {
                    "id": f"pi_{booking_id}",
                    "amount": 20000,
                    "amount_received": 20000,
                    "metadata": {"booking_id": booking_id},
                }
            },
        }

        result, error = WebhookHandler(db, service).handle(event, "hash")

        assert (result, error) == ("success", None)
        booking = service.get_booking(booking_id, RANIA)
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.amount_paid == 20000

    def test_overlapping_request_rejected(self, service: BookingService) -> None:
        service.create_booking(_chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA)

        with pytest.raises(DatesUnavailable):
            service.create_booking(
                _chalet_request(dt.date(2026, 1, 21), dt.date(2026, 1, 23)), OMAR
            )

    def test_back_to_back_stays_allowed(self, service: BookingService) -> None:
        service.create_booking(_chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA)

        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 22), dt.date(2026, 1, 24)), OMAR
        )

        assert created.booking.status == BookingStatus.PENDING

    def test_lost_race_cancels_payment_intent(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        """Both requests pass the pre-check; the night locks decide."""
        first = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA
        )

        with patch.object(service.availability, "find_conflicts", return_value=[]):
            with pytest.raises(DatesUnavailable) as exc_info:
                service.create_booking(
                    _chalet_request(dt.date(2026, 1, 21), dt.date(2026, 1, 23)), OMAR
                )

        assert exc_info.value.details == {"reason": "booking_conflict"}
        mock_stripe.cancel_payment_intent.assert_called_once()
        assert service.list_customer_bookings(OMAR) == []
        assert _blocked(service) == [dt.date(2026, 1, 20), dt.date(2026, 1, 21)]
        assert service.get_booking(first.booking.booking_id, RANIA).status == BookingStatus.PENDING

    def test_creation_queues_notification(
        self, service: BookingService, notifications: NotificationService
    ) -> None:
        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA
        )

        pending = notifications.get_pending()
        assert len(pending) == 1
        assert pending[0].event_type == NotificationEventType.BOOKING_CREATED
        assert pending[0].booking_id == created.booking.booking_id


class TestCreateRejections:
    def test_unknown_resource(self, service: BookingService) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            service.create_booking(
                _chalet_request(
                    dt.date(2026, 1, 20), dt.date(2026, 1, 22), resource_id="chalet-missing"
                ),
                RANIA,
            )

        assert exc_info.value.code == ErrorCode.RESOURCE_NOT_FOUND

    def test_inactive_resource(
        self, service: BookingService, resources: ResourceService, chalet: Resource
    ) -> None:
        resources.save_resource(chalet.model_copy(update={"is_active": False}))

        with pytest.raises(ValidationError) as exc_info:
            service.create_booking(
                _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA
            )

        assert exc_info.value.code == ErrorCode.RESOURCE_INACTIVE

    def test_module_disabled(self, db: Any, service: BookingService) -> None:
        ModuleStatusService(db).set_enabled("pool", False)

        with pytest.raises(ModuleDisabled) as exc_info:
            service.create_booking(_pool_request(dt.date(2026, 1, 7)), RANIA)

        assert exc_info.value.details == {"module": "pool"}

    def test_too_many_guests(self, service: BookingService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.create_booking(
                _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22), number_of_guests=7),
                RANIA,
            )

        assert exc_info.value.code == ErrorCode.MAX_GUESTS_EXCEEDED


class TestCancel:
    def test_full_refund_releases_nights(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        result = service.cancel_booking(booking_id, RANIA)

        assert result.refund_type == RefundType.FULL
        assert result.days_until_check_in == 14
        assert result.refund_amount == 20000
        assert result.credit_amount == 0
        assert result.refund_status == RefundStatus.SUCCEEDED
        mock_stripe.create_refund.assert_called_once_with(
            payment_intent_id=f"pi_{booking_id}",
            amount_cents=20000,
            reason="booking_cancelled",
            idempotency_key=f"refund_{booking_id}_3",
        )

        stored = service.get_booking(booking_id, RANIA)
        assert stored.status == BookingStatus.CANCELLED
        assert stored.payment_status == PaymentStatus.REFUNDED
        assert stored.refund_status == RefundStatus.SUCCEEDED
        assert stored.version == 4
        assert _blocked(service) == []

    def test_partial_refund(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 14), dt.date(2026, 1, 16))
        )

        result = service.cancel_booking(booking_id, RANIA)

        assert result.refund_percentage == 50
        assert result.refund_amount == 10000
        assert result.booking.payment_status == PaymentStatus.PARTIALLY_REFUNDED

    def test_unpaid_booking_has_nothing_to_refund(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA
        )

        result = service.cancel_booking(created.booking.booking_id, RANIA)

        assert result.refund_amount == 0
        assert result.refund_status == RefundStatus.NOT_REQUIRED
        assert result.booking.payment_status == PaymentStatus.UNPAID
        mock_stripe.create_refund.assert_not_called()
        mock_stripe.cancel_payment_intent.assert_called_once_with(
            f"pi_{created.booking.booking_id}"
        )
        assert _blocked(service) == []

    def test_late_pool_cancellation_becomes_credit(self, service: BookingService) -> None:
        booking_id = _book_and_pay(service, _pool_request(dt.date(2026, 1, 7)))

        result = service.cancel_booking(booking_id, RANIA)

        assert result.refund_type == RefundType.CREDIT
        assert result.refund_amount == 0
        assert result.credit_amount == 3000
        balance = service.get_user_credits(RANIA)
        assert balance.total == 3000
        credit = balance.credits[0]
        assert credit.credit_type == CreditType.POOL_TICKET_CREDIT
        assert credit.source_booking_id == booking_id
        assert credit.expires_at == NOW + dt.timedelta(days=90)

    def test_credit_pays_next_booking(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        booking_id = _book_and_pay(service, _pool_request(dt.date(2026, 1, 7)))
        service.cancel_booking(booking_id, RANIA)
        mock_stripe.create_payment_intent.reset_mock()

        created = service.create_booking(
            _pool_request(dt.date(2026, 1, 8), use_credit=True), RANIA
        )

        assert created.payment_intent is None
        assert created.booking.credit_applied == 3000
        assert created.booking.amount_due == 0
        assert created.booking.payment_status == PaymentStatus.PAID
        mock_stripe.create_payment_intent.assert_not_called()
        assert service.get_user_credits(RANIA).total == 0

    def test_checked_in_booking_cannot_be_cancelled(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )
        service.check_in(booking_id, STAFF)

        with pytest.raises(InvalidStatus) as exc_info:
            service.cancel_booking(booking_id, STAFF)

        assert exc_info.value.code == ErrorCode.BOOKING_NOT_CANCELLABLE
        mock_stripe.create_refund.assert_not_called()
        assert service.get_booking(booking_id, STAFF).status == BookingStatus.CHECKED_IN

    def test_cancel_twice(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )
        service.cancel_booking(booking_id, RANIA)

        with pytest.raises(InvalidStatus):
            service.cancel_booking(booking_id, RANIA)

    def test_cancelled_dates_can_be_rebooked(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )
        service.cancel_booking(booking_id, RANIA)

        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), OMAR
        )

        assert created.booking.customer_id == "user-2"

    def test_credit_paid_ticket_returns_its_credit(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        earned = _book_and_pay(service, _pool_request(dt.date(2026, 1, 7)))
        service.cancel_booking(earned, RANIA)
        booking_id = _book_and_pay(
            service, _pool_request(dt.date(2026, 1, 28), use_credit=True)
        )
        assert service.get_user_credits(RANIA).total == 0

        result = service.cancel_booking(booking_id, RANIA)

        assert result.refund_type == RefundType.FULL
        assert result.refund_amount == 0
        assert result.credit_amount == 3000
        assert result.refund_status == RefundStatus.NOT_REQUIRED
        assert result.booking.payment_status == PaymentStatus.REFUNDED
        assert service.get_user_credits(RANIA).total == 3000
        mock_stripe.create_refund.assert_not_called()

    def test_partly_credit_paid_stay_splits_refund(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        earned = _book_and_pay(service, _pool_request(dt.date(2026, 1, 7)))
        service.cancel_booking(earned, RANIA)
        booking_id = _book_and_pay(
            service,
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22), use_credit=True),
        )

        result = service.cancel_booking(booking_id, RANIA)

        assert result.refund_amount == 17000
        assert result.credit_amount == 3000
        assert mock_stripe.create_refund.call_args.kwargs["amount_cents"] == 17000
        stored = service.get_booking(booking_id, RANIA)
        assert stored.payment_status == PaymentStatus.REFUNDED
        assert stored.refund_status == RefundStatus.SUCCEEDED
        balance = service.get_user_credits(RANIA)
        assert balance.total == 3000
        assert balance.credits[0].credit_type == CreditType.CANCELLATION_CREDIT
        assert balance.credits[0].source_booking_id == booking_id

    def test_past_ticket_cannot_be_cancelled(
        self,
        db: Any,
        resources: ResourceService,
        notifications: NotificationService,
        mock_stripe: MagicMock,
        service: BookingService,
    ) -> None:
        booking_id = _book_and_pay(service, _pool_request(dt.date(2026, 1, 7)))
        later = BookingService(
            db,
            resources,
            mock_stripe,
            notifications,
            settings=BookingSettings(),
            now_fn=lambda: NOW + dt.timedelta(days=5),
        )

        with pytest.raises(ValidationError) as exc_info:
            later.cancel_booking(booking_id, RANIA)

        assert exc_info.value.code == ErrorCode.INVALID_DATE_RANGE
        stored = later.get_booking(booking_id, RANIA)
        assert stored.status == BookingStatus.CONFIRMED
        assert later.get_user_credits(RANIA).total == 0


class TestModify:
    def test_more_expensive_dates_add_balance(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        result = service.modify_booking_dates(
            booking_id, RANIA, dt.date(2026, 1, 23), dt.date(2026, 1, 25)
        )

        assert result.price_difference == 4000
        assert result.new_payment_required is True
        assert result.booking.total_price == 24000
        assert result.booking.balance_due == 4000
        assert result.booking.amount_paid == 20000
        assert _blocked(service) == [dt.date(2026, 1, 23), dt.date(2026, 1, 24)]

    def test_cheaper_dates_refund_difference(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 23), dt.date(2026, 1, 25))
        )

        result = service.modify_booking_dates(
            booking_id, RANIA, dt.date(2026, 1, 20), dt.date(2026, 1, 22)
        )

        assert result.price_difference == -4000
        assert result.refund_amount == 4000
        assert result.refund_status == RefundStatus.SUCCEEDED
        assert result.booking.amount_paid == 20000
        assert result.booking.payment_status == PaymentStatus.PARTIALLY_REFUNDED
        assert mock_stripe.create_refund.call_args.kwargs["idempotency_key"] == (
            f"modify_{booking_id}_3"
        )

    def test_conflicting_dates(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )
        _book_and_pay(service, _chalet_request(dt.date(2026, 1, 23), dt.date(2026, 1, 25)), OMAR)

        with pytest.raises(DatesUnavailable):
            service.modify_booking_dates(
                booking_id, RANIA, dt.date(2026, 1, 24), dt.date(2026, 1, 26)
            )

        assert service.get_booking(booking_id, RANIA).check_in == dt.date(2026, 1, 20)

    def test_overlapping_own_dates(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        result = service.modify_booking_dates(
            booking_id, RANIA, dt.date(2026, 1, 21), dt.date(2026, 1, 22)
        )

        assert result.booking.nights == 1
        assert _blocked(service) == [dt.date(2026, 1, 21)]

    def test_pending_booking_intent_follows_price(
        self, service: BookingService, mock_stripe: MagicMock
    ) -> None:
        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA
        )
        booking_id = created.booking.booking_id

        result = service.modify_booking_dates(
            booking_id, RANIA, dt.date(2026, 1, 23), dt.date(2026, 1, 25)
        )

        assert result.payment_intent.amount == 24000
        assert result.booking.amount_due == 24000
        assert result.booking.balance_due == 0
        mock_stripe.update_payment_intent_amount.assert_called_once_with(f"pi_{booking_id}", 24000)

        confirmed = service.confirm_booking(booking_id, amount_paid=24000)
        assert confirmed.amount_paid == confirmed.total_price == 24000

    def test_unchanged_dates(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        with pytest.raises(ValidationError) as exc_info:
            service.modify_booking_dates(
                booking_id, RANIA, dt.date(2026, 1, 20), dt.date(2026, 1, 22)
            )

        assert exc_info.value.code == ErrorCode.INVALID_INPUT


class TestStaffAndAccess:
    def test_check_in_and_out(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        checked_in = service.check_in(booking_id, STAFF)
        checked_out = service.check_out(booking_id, STAFF)

        assert checked_in.checked_in_by == "staff-1"
        assert checked_out.status == BookingStatus.CHECKED_OUT
        assert checked_out.checked_out_at == NOW

    def test_no_show_after_check_in(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )
        checked_in = service.check_in(booking_id, STAFF)

        with pytest.raises(InvalidTransition):
            service.mark_no_show(booking_id, STAFF)

        assert service.get_booking(booking_id, STAFF) == checked_in

    def test_check_out_of_confirmed_booking(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        with pytest.raises(InvalidTransition) as exc_info:
            service.check_out(booking_id, STAFF)

        assert exc_info.value.details["current_status"] == "confirmed"
        stored = service.get_booking(booking_id, STAFF)
        assert stored.status == BookingStatus.CONFIRMED
        assert stored.version == 2
        assert stored.checked_out_at is None

    def test_check_in_of_cancelled_booking(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )
        cancelled = service.cancel_booking(booking_id, RANIA).booking

        with pytest.raises(InvalidTransition):
            service.check_in(booking_id, STAFF)

        assert service.get_booking(booking_id, STAFF) == cancelled

    def test_customer_cannot_check_in(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        with pytest.raises(Unauthorized):
            service.check_in(booking_id, RANIA)

    def test_no_show_keeps_nights(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        booking = service.mark_no_show(booking_id, STAFF)

        assert booking.status == BookingStatus.NO_SHOW
        assert _blocked(service) == [dt.date(2026, 1, 20), dt.date(2026, 1, 21)]

    def test_other_customer_cannot_read(self, service: BookingService) -> None:
        booking_id = _book_and_pay(
            service, _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22))
        )

        with pytest.raises(Unauthorized):
            service.get_booking(booking_id, OMAR)
        assert service.get_booking(booking_id, STAFF).booking_id == booking_id

    def test_guest_booking_is_staff_only(self, service: BookingService) -> None:
        created = service.create_booking(
            _chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), Requester()
        )
        booking_id = created.booking.booking_id

        assert created.booking.customer_id is None
        with pytest.raises(Unauthorized):
            service.get_booking(booking_id, Requester())
        assert service.get_booking(booking_id, STAFF).customer_id is None

    def test_list_customer_bookings(self, service: BookingService) -> None:
        service.create_booking(_chalet_request(dt.date(2026, 1, 20), dt.date(2026, 1, 22)), RANIA)
        service.create_booking(_pool_request(dt.date(2026, 1, 27)), RANIA)
        service.create_booking(_chalet_request(dt.date(2026, 1, 23), dt.date(2026, 1, 25)), OMAR)

        bookings = service.list_customer_bookings(RANIA)

        assert [b.check_in for b in bookings] == [dt.date(2026, 1, 27), dt.date(2026, 1, 20)]

    def test_calendar_range_validated(self, service: BookingService) -> None:
        with pytest.raises(ValidationError):
            service.get_blocked_dates("chalet-cedar", dt.date(2026, 1, 1), dt.date(2027, 6, 1))
