"""Webhook endpoints for external service integrations.

Provides endpoints for:
- Stripe webhook events (payment_intent.succeeded, payment_intent.payment_failed)

These endpoints do NOT require JWT authentication as they receive
signed payloads from external services.
"""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from resort_api.dependencies import get_webhook_handler
from resort_core.models.errors import BookingError, ErrorCode
from resort_core.services.stripe_service import StripeService, StripeServiceError, get_stripe_service
from resort_core.services.webhook_handler import WebhookHandler
from resort_core.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


class WebhookResponse(BaseModel):
    """Standard webhook response."""

    received: bool
    event_id: str | None = None
    event_type: str | None = None
    processing_result: str  # "success", "duplicate", "skipped", "error"
    message: str | None = None


@router.post(
    "/webhooks/stripe",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- payment_intent.succeeded: Confirms the booking and records the amount paid
- payment_intent.payment_failed: Recorded; the booking stays pending

**No authentication required** - signature is verified using Stripe webhook secret.

**Idempotent**: Duplicate events (same event_id) return 200 with 'duplicate' result.
""",
    response_model=WebhookResponse,
    responses={400: {"description": "Invalid signature or missing header"}},
)
async def handle_stripe_webhook(
    request: Request,
    stripe: StripeService = Depends(get_stripe_service),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Verify the signature, then hand the event to WebhookHandler."""
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        logger.warning("Webhook request missing Stripe-Signature header")
        raise BookingError(
            code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            details={"message": "Missing Stripe-Signature header"},
        )

    payload = await request.body()
    try:
        event = stripe.verify_webhook_signature(payload, signature)
    except StripeServiceError as e:
        raise BookingError(
            code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            details={"message": str(e)},
        ) from e

    result, message = handler.handle(event, stripe.compute_payload_hash(payload))

    # Always 200 once the signature is valid so Stripe does not retry
    # events that failed for business reasons.
    return WebhookResponse(
        received=True,
        event_id=event.get("id"),
        event_type=event.get("type"),
        processing_result=result,
        message=message,
    )
