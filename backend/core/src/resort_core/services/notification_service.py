"""Customer notifications written to a transactional outbox.

Booking operations call ``enqueue`` after their state change is committed.
The item is picked up by ``NotificationWorker``; the booking flow never
waits on email delivery and never fails because of it.
"""

import datetime as dt
import html
import uuid
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from resort_core.models import Booking, Notification, NotificationEventType, NotificationStatus
from resort_core.utils.logging import get_logger

from .dynamodb import to_item, to_model

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

SUBJECTS: dict[NotificationEventType, str] = {
    NotificationEventType.BOOKING_CREATED: "We received your booking {number}",
    NotificationEventType.BOOKING_CONFIRMED: "Your booking {number} is confirmed",
    NotificationEventType.BOOKING_CANCELLED: "Your booking {number} was cancelled",
    NotificationEventType.BOOKING_MODIFIED: "Your booking {number} was updated",
}


def format_amount(cents: int, currency: str = "usd") -> str:
    return f"{cents / 100:.2f} {currency.upper()}"


def render_notification(
    event_type: NotificationEventType,
    booking: Booking,
    context: dict[str, Any],
) -> tuple[str, str]:
    """Build the subject and HTML body for a booking event.

    Args:
        event_type: What happened to the booking
        booking: Booking after the change
        context: Event details (refund_amount, credit_amount, price_difference, currency)

    Returns:
        Tuple of (subject, html_body)
    """
    currency = context.get("currency", "usd")
    subject = SUBJECTS[event_type].format(number=booking.booking_number)

    lines = [
        f"<p>Hello {html.escape(booking.customer_name)},</p>",
        f"<p>Booking <strong>{booking.booking_number}</strong>: "
        f"{booking.check_in.isoformat()} to {booking.check_out.isoformat()}, "
        f"{booking.number_of_guests} guest(s).</p>",
    ]

    if event_type == NotificationEventType.BOOKING_CREATED:
        lines.append(f"<p>Total: {format_amount(booking.total_price, currency)}.</p>")
    elif event_type == NotificationEventType.BOOKING_CONFIRMED:
        lines.append(f"<p>Payment received: {format_amount(booking.amount_paid, currency)}.</p>")
    elif event_type == NotificationEventType.BOOKING_CANCELLED:
        refund = context.get("refund_amount", 0)
        credit = context.get("credit_amount", 0)
        if refund:
            lines.append(f"<p>Refund: {format_amount(refund, currency)}.</p>")
        if credit:
            lines.append(f"<p>Account credit: {format_amount(credit, currency)}.</p>")
        if not refund and not credit:
            lines.append("<p>No refund applies under the cancellation policy.</p>")
    elif event_type == NotificationEventType.BOOKING_MODIFIED:
        difference = context.get("price_difference", 0)
        if difference > 0:
            lines.append(f"<p>Amount still due: {format_amount(difference, currency)}.</p>")
        elif difference < 0:
            lines.append(f"<p>Price reduced by {format_amount(-difference, currency)}.</p>")

    body = "<html><body style=\"font-family: Arial, sans-serif;\">" + "".join(lines) + "</body></html>"
    return subject, body


class NotificationService:
    """Writes and reads outbox items in the ``notifications`` table."""

    TABLE = "notifications"
    STATUS_INDEX = "status-index"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def enqueue(
        self,
        event_type: NotificationEventType,
        booking: Booking,
        **context: Any,
    ) -> Notification | None:
        """Queue a customer email for a booking event.

        Failures are logged and swallowed.

        Returns:
            The queued notification, or None if the booking has no email
            or the write failed
        """
        if not booking.customer_email:
            logger.info(
                "No email on booking, notification skipped",
                extra={"booking_id": booking.booking_id, "event_type": event_type.value},
            )
            return None

        subject, body = render_notification(event_type, booking, context)
        notification = Notification(
            notification_id=f"NT-{uuid.uuid4().hex[:12].upper()}",
            event_type=event_type,
            booking_id=booking.booking_id,
            recipient=booking.customer_email,
            subject=subject,
            html=body,
            created_at=dt.datetime.now(dt.timezone.utc),
        )

        try:
            self.db.put_item(self.TABLE, to_item(notification))
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to enqueue notification: %s",
                e,
                extra={"booking_id": booking.booking_id, "event_type": event_type.value},
            )
            return None

        logger.info(
            "Notification queued",
            extra={
                "notification_id": notification.notification_id,
                "booking_id": booking.booking_id,
                "event_type": event_type.value,
            },
        )
        return notification

    def get_pending(self, limit: int = 25) -> list[Notification]:
        items = self.db.query_by_gsi(
            table=self.TABLE,
            index_name=self.STATUS_INDEX,
            partition_key_name="status",
            partition_key_value=NotificationStatus.PENDING.value,
            limit=limit,
        )
        return [to_model(Notification, item) for item in items]

    def mark_sent(self, notification: Notification, now: dt.datetime) -> None:
        self.db.update_item(
            self.TABLE,
            {"notification_id": notification.notification_id},
            "SET #status = :status, sent_at = :now, attempts = :attempts",
            {
                ":status": NotificationStatus.SENT.value,
                ":now": now.isoformat(),
                ":attempts": notification.attempts + 1,
            },
            {"#status": "status"},  # status is reserved word
        )

    def record_failure(self, notification: Notification, error: str, max_attempts: int) -> bool:
        """Count a failed delivery attempt.

        Returns:
            True if the notification gave up (now ``failed``)
        """
        attempts = notification.attempts + 1
        gave_up = attempts >= max_attempts
        status = NotificationStatus.FAILED if gave_up else NotificationStatus.PENDING
        self.db.update_item(
            self.TABLE,
            {"notification_id": notification.notification_id},
            "SET #status = :status, attempts = :attempts, last_error = :error",
            {":status": status.value, ":attempts": attempts, ":error": error[:500]},
            {"#status": "status"},
        )
        return gave_up
