"""Unit tests for WebhookHandler.

BookingService is mocked; webhook event logging runs against moto.
"""

from typing import Any
from unittest.mock import MagicMock

import pytest

from resort_core.models import BookingStatus, ErrorCode, InvalidTransition, NotFoundError
from resort_core.services.webhook_handler import WebhookHandler


def _event(event_type: str = "payment_intent.succeeded", **intent: Any) -> dict:
    obj = {
        "id": "pi_123",
        "amount": 20000,
        "amount_received": 20000,
        "metadata": {"booking_id": "BK-1"},
    }
    obj.update(intent)
    return {"id": "evt_1", "type": event_type, "data": {"object": obj}}


@pytest.fixture
def bookings() -> MagicMock:
    return MagicMock()


@pytest.fixture
def handler(db: Any, bookings: MagicMock) -> WebhookHandler:
    return WebhookHandler(db, bookings)


class TestPaymentSucceeded:
    def test_confirms_booking(self, handler: WebhookHandler, bookings: MagicMock) -> None:
        result, error = handler.handle(_event(), "hash-1")

        assert (result, error) == ("success", None)
        bookings.confirm_booking.assert_called_once_with(
            "BK-1", amount_paid=20000, payment_intent_id="pi_123"
        )
        stored = handler._db.get_item("stripe-webhook-events", {"event_id": "evt_1"})
        assert stored["processing_result"] == "success"
        assert stored["booking_id"] == "BK-1"
        assert stored["payload_hash"] == "hash-1"
        assert stored["payment_intent_id"] == "pi_123"
        assert stored["amount_cents"] == 20000

    def test_duplicate_event_is_ignored(
        self, handler: WebhookHandler, bookings: MagicMock
    ) -> None:
        handler.handle(_event(), "hash-1")

        result, _ = handler.handle(_event(), "hash-1")

        assert result == "duplicate"
        bookings.confirm_booking.assert_called_once()

    def test_missing_booking_id(self, handler: WebhookHandler, bookings: MagicMock) -> None:
        result, error = handler.handle(_event(metadata={}), "hash-1")

        assert result == "error"
        assert "booking_id" in error
        bookings.confirm_booking.assert_not_called()

    def test_unknown_booking(self, handler: WebhookHandler, bookings: MagicMock) -> None:
        bookings.confirm_booking.side_effect = NotFoundError(ErrorCode.BOOKING_NOT_FOUND)

        result, error = handler.handle(_event(), "hash-1")

        assert result == "error"
        assert error.startswith(ErrorCode.BOOKING_NOT_FOUND.value)

    def test_cancelled_booking_is_reported(
        self, handler: WebhookHandler, bookings: MagicMock
    ) -> None:
        bookings.confirm_booking.side_effect = InvalidTransition(
            BookingStatus.CANCELLED, BookingStatus.CONFIRMED
        )

        result, error = handler.handle(_event(), "hash-1")

        assert result == "error"
        assert ErrorCode.INVALID_TRANSITION.value in error


class TestOtherEvents:
    def test_payment_failed_is_recorded(
        self, handler: WebhookHandler, bookings: MagicMock
    ) -> None:
        event = _event(
            "payment_intent.payment_failed", last_payment_error={"code": "card_declined"}
        )

        result, _ = handler.handle(event, "hash-2")

        assert result == "success"
        bookings.confirm_booking.assert_not_called()
        stored = handler._db.get_item("stripe-webhook-events", {"event_id": "evt_1"})
        assert stored["error_message"] == "Payment failed: card_declined"

    def test_unhandled_type_is_skipped(self, handler: WebhookHandler) -> None:
        result, _ = handler.handle(_event("charge.refunded"))

        assert result == "skipped"
        assert handler.is_event_already_processed("evt_1")
