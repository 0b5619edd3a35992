"""Unit tests for the notification outbox and its SES worker."""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock, patch

import boto3
import pytest
from botocore.exceptions import ClientError

from resort_core.models import (
    DownstreamFailure,
    ErrorCode,
    NotificationEventType,
    NotificationStatus,
)
from resort_core.services.notification_service import (
    NotificationService,
    format_amount,
    render_notification,
)
from resort_core.services.notification_worker import (
    NotificationWorker,
    SESEmailSender,
    handler,
    html_to_text,
)

NOW = datetime(2026, 1, 6, 9, 0, tzinfo=timezone.utc)


class TestRender:
    def test_cancelled_with_refund(self, make_booking: Any) -> None:
        booking = make_booking()

        subject, body = render_notification(
            NotificationEventType.BOOKING_CANCELLED,
            booking,
            {"refund_amount": 10000, "credit_amount": 0, "currency": "usd"},
        )

        assert subject == "Your booking CH-2026-00000001 was cancelled"
        assert "Refund: 100.00 USD" in body
        assert "Account credit" not in body

    def test_cancelled_without_compensation(self, make_booking: Any) -> None:
        _, body = render_notification(
            NotificationEventType.BOOKING_CANCELLED, make_booking(), {}
        )

        assert "No refund applies" in body

    def test_escapes_customer_name(self, make_booking: Any) -> None:
        booking = make_booking(customer_name="<script>")

        _, body = render_notification(NotificationEventType.BOOKING_CREATED, booking, {})

        assert "<script>" not in body
        assert "&lt;script&gt;" in body

    def test_format_amount(self) -> None:
        assert format_amount(24050, "eur") == "240.50 EUR"

    def test_html_to_text(self) -> None:
        assert html_to_text("<p>Hello</p><p><b>there</b></p>") == "Hello\nthere"


class TestNotificationService:
    def test_enqueue_writes_pending_item(self, db: Any, make_booking: Any) -> None:
        service = NotificationService(db)

        notification = service.enqueue(
            NotificationEventType.BOOKING_CONFIRMED, make_booking(), currency="usd"
        )

        assert notification is not None
        pending = service.get_pending()
        assert [n.notification_id for n in pending] == [notification.notification_id]
        assert pending[0].recipient == "rania@example.com"
        assert pending[0].status == NotificationStatus.PENDING

    def test_enqueue_skips_booking_without_email(self, db: Any, make_booking: Any) -> None:
        service = NotificationService(db)

        assert service.enqueue(
            NotificationEventType.BOOKING_CREATED, make_booking(customer_email=None)
        ) is None
        assert service.get_pending() == []

    def test_enqueue_swallows_storage_errors(self, make_booking: Any) -> None:
        db = MagicMock()
        db.put_item.side_effect = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow"}},
            "PutItem",
        )

        result = NotificationService(db).enqueue(
            NotificationEventType.BOOKING_CREATED, make_booking()
        )

        assert result is None

    def test_record_failure_gives_up_after_max_attempts(
        self, db: Any, make_booking: Any
    ) -> None:
        service = NotificationService(db)
        notification = service.enqueue(NotificationEventType.BOOKING_CREATED, make_booking())

        assert service.record_failure(notification, "throttled", max_attempts=2) is False
        retry = service.get_pending()[0]
        assert retry.attempts == 1
        assert service.record_failure(retry, "throttled", max_attempts=2) is True
        assert service.get_pending() == []


class TestSESEmailSender:
    def test_sends_html_and_text(self, aws_credentials: None) -> None:
        from moto import mock_aws

        with mock_aws():
            client = boto3.client("ses", region_name="eu-west-1")
            client.verify_email_identity(EmailAddress="bookings@resort.example.com")
            sender = SESEmailSender("bookings@resort.example.com", client=client)

            message_id = sender.send("rania@example.com", "Hi", "<p>Hello</p>")

        assert message_id

    def test_ses_error_is_downstream_failure(self) -> None:
        client = MagicMock()
        client.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified"}},
            "SendEmail",
        )
        sender = SESEmailSender("bookings@resort.example.com", client=client)

        with pytest.raises(DownstreamFailure) as exc_info:
            sender.send("rania@example.com", "Hi", "<p>Hello</p>")

        assert exc_info.value.code == ErrorCode.NOTIFICATION_FAILED


class TestNotificationWorker:
    def test_drain_sends_and_marks(self, db: Any, make_booking: Any) -> None:
        service = NotificationService(db)
        service.enqueue(NotificationEventType.BOOKING_CREATED, make_booking())
        service.enqueue(NotificationEventType.BOOKING_CONFIRMED, make_booking())
        sender = MagicMock()
        worker = NotificationWorker(service, sender, now_fn=lambda: NOW)

        result = worker.drain()

        assert result == {"sent": 2, "retrying": 0, "failed": 0}
        assert sender.send.call_count == 2
        assert service.get_pending() == []

    def test_drain_counts_failures(self, db: Any, make_booking: Any) -> None:
        service = NotificationService(db)
        service.enqueue(NotificationEventType.BOOKING_CREATED, make_booking())
        sender = MagicMock()
        sender.send.side_effect = DownstreamFailure(
            ErrorCode.NOTIFICATION_FAILED, details={"reason": "throttled"}
        )
        worker = NotificationWorker(service, sender, max_attempts=2, now_fn=lambda: NOW)

        assert worker.drain() == {"sent": 0, "retrying": 1, "failed": 0}
        assert worker.drain() == {"sent": 0, "retrying": 0, "failed": 1}
        assert worker.drain() == {"sent": 0, "retrying": 0, "failed": 0}

    def test_lambda_handler_drains_outbox(self, db: Any, make_booking: Any) -> None:
        NotificationService(db).enqueue(NotificationEventType.BOOKING_CREATED, make_booking())
        sender = MagicMock()

        with (
            patch("resort_core.services.notification_worker.get_dynamodb_service", return_value=db),
            patch("resort_core.services.notification_worker.SESEmailSender", return_value=sender),
        ):
            result = handler({"limit": 10}, None)

        assert result == {"sent": 1, "retrying": 0, "failed": 0}
        sender.send.assert_called_once()
