"""Processed Stripe event record.

One item per Stripe event ID in the ``stripe-webhook-events`` table. The
item's existence is what makes webhook delivery idempotent; the other
fields are kept for payment reconciliation.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ProcessingResult = Literal["success", "skipped", "error"]


class StripeWebhookEvent(BaseModel):
    """A Stripe event the webhook endpoint has handled."""

    model_config = ConfigDict(strict=True)

    event_id: str = Field(..., examples=["evt_1ABC123DEF456"])
    event_type: str = Field(..., examples=["payment_intent.succeeded"])
    payload_hash: str = Field(..., description="SHA-256 of the raw payload")
    processed_at: datetime

    # PaymentIntent the event is about, when it is one
    payment_intent_id: str | None = None
    amount_cents: int | None = Field(default=None, ge=0)
    booking_id: str | None = None

    processing_result: ProcessingResult = "success"
    error_message: str | None = None
