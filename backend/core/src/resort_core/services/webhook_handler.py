"""Webhook handler for processing Stripe events.

Business logic for webhook events, separate from HTTP routing, so it can
be unit tested without a request and reused by other transports.
"""

import datetime as dt
import hashlib
import json
from typing import TYPE_CHECKING

from resort_core.models import BookingError, StripeWebhookEvent
from resort_core.models.stripe_webhook import ProcessingResult
from resort_core.utils.logging import get_logger, log_webhook_event

from .dynamodb import to_item

if TYPE_CHECKING:
    from .booking import BookingService
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


class WebhookHandler:
    """Handler for Stripe webhook events.

    Confirms bookings on successful payments. Ensures idempotent
    processing using event_id tracking.
    """

    WEBHOOK_EVENTS_TABLE = "stripe-webhook-events"

    def __init__(self, db: "DynamoDBService", bookings: "BookingService") -> None:
        self._db = db
        self._bookings = bookings

    def is_event_already_processed(self, event_id: str) -> bool:
        """Check if webhook event was already processed (idempotency)."""
        existing = self._db.get_item(self.WEBHOOK_EVENTS_TABLE, {"event_id": event_id})
        return existing is not None

    def log_event(
        self,
        event: dict,
        payload_hash: str,
        booking_id: str | None,
        processing_result: ProcessingResult,
        error_message: str | None = None,
    ) -> None:
        """Store the event for idempotency and the audit trail.

        Args:
            event: Parsed Stripe event
            payload_hash: SHA-256 hash of payload
            booking_id: Associated booking ID (if any)
            processing_result: Result (success, skipped, error)
            error_message: Error message if processing failed
        """
        event_type = event.get("type", "")
        intent = event.get("data", {}).get("object", {})
        if not event_type.startswith("payment_intent."):
            intent = {}
        record = StripeWebhookEvent(
            event_id=event.get("id", ""),
            event_type=event_type,
            payload_hash=payload_hash,
            processed_at=dt.datetime.now(dt.timezone.utc),
            payment_intent_id=intent.get("id"),
            amount_cents=intent.get("amount_received", intent.get("amount")),
            booking_id=booking_id,
            processing_result=processing_result,
            error_message=error_message,
        )
        self._db.put_item(self.WEBHOOK_EVENTS_TABLE, to_item(record))

    def handle(self, event: dict, payload_hash: str | None = None) -> tuple[str, str | None]:
        """Dispatch a verified Stripe event.

        Args:
            event: Parsed Stripe webhook event
            payload_hash: Hash of the raw payload; derived from the event if absent

        Returns:
            Tuple of (processing_result, error_message)
        """
        event_id = event.get("id", "")
        event_type = event.get("type", "")
        payload_hash = payload_hash or hashlib.sha256(
            json.dumps(event, sort_keys=True).encode()
        ).hexdigest()

        if self.is_event_already_processed(event_id):
            log_webhook_event(logger, event_type, event_id, result="duplicate")
            return "duplicate", None

        if event_type == "payment_intent.succeeded":
            return self.process_payment_succeeded(event, payload_hash)
        if event_type == "payment_intent.payment_failed":
            return self.process_payment_failed(event, payload_hash)

        log_webhook_event(logger, event_type, event_id, result="skipped")
        self.log_event(event, payload_hash, None, "skipped", f"Unhandled event type {event_type}")
        return "skipped", None

    def process_payment_succeeded(self, event: dict, payload_hash: str) -> tuple[str, str | None]:
        """Confirm the booking paid by this PaymentIntent."""
        intent = event.get("data", {}).get("object", {})
        booking_id = intent.get("metadata", {}).get("booking_id")

        if not booking_id:
            error_msg = "Missing booking_id in metadata"
            log_webhook_event(logger, event.get("type", ""), event.get("id", ""), result="error", error=error_msg)
            self.log_event(event, payload_hash, None, "error", error_msg)
            return "error", error_msg

        try:
            self._bookings.confirm_booking(
                booking_id,
                amount_paid=intent.get("amount_received", intent.get("amount")),
                payment_intent_id=intent.get("id"),
            )
        except BookingError as e:
            error_msg = f"{e.code.value}: {e.message}"
            log_webhook_event(
                logger,
                event.get("type", ""),
                event.get("id", ""),
                booking_id=booking_id,
                result="error",
                error=error_msg,
            )
            self.log_event(event, payload_hash, booking_id, "error", error_msg)
            return "error", error_msg

        log_webhook_event(
            logger, event.get("type", ""), event.get("id", ""), booking_id=booking_id, result="success"
        )
        self.log_event(event, payload_hash, booking_id, "success")
        return "success", None

    def process_payment_failed(self, event: dict, payload_hash: str) -> tuple[str, str | None]:
        """Record a failed payment attempt; the booking stays pending."""
        intent = event.get("data", {}).get("object", {})
        booking_id = intent.get("metadata", {}).get("booking_id")
        failure = (intent.get("last_payment_error") or {}).get("code")

        log_webhook_event(
            logger,
            event.get("type", ""),
            event.get("id", ""),
            booking_id=booking_id,
            result="success",
            failure_code=failure,
        )
        self.log_event(event, payload_hash, booking_id, "success", f"Payment failed: {failure}")
        return "success", None
