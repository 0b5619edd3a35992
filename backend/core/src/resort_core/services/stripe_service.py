"""Stripe payment service for booking payments and refunds.

Uses the StripeClient pattern. API keys come from SSM Parameter Store.
Every call that moves money carries an idempotency key derived from the
booking, so retries after a timeout never charge or refund twice.
"""

import hashlib
import logging
import os
from functools import lru_cache

import stripe
from stripe import StripeClient

from resort_core.models import PaymentIntent

from .ssm_service import SSMServiceError, get_ssm_service, parameter_path

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Service for Stripe payment operations.

    Handles:
    - PaymentIntent creation and cancellation
    - Refund processing
    - Webhook signature validation

    Usage:
        stripe_svc = get_stripe_service()
        intent = stripe_svc.create_payment_intent(
            booking_id="BK-1A2B3C4D5E6F",
            amount_cents=24000,
            currency="usd",
        )
    """

    def __init__(self, environment: str | None = None) -> None:
        """Initialize Stripe service with credentials from SSM.

        Args:
            environment: Environment name (dev, prod). Defaults to ENVIRONMENT env var.
        """
        self._environment = environment or os.environ.get("ENVIRONMENT", "dev")
        self._ssm = get_ssm_service()
        self._client: StripeClient | None = None
        self._webhook_secret: str | None = None

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            StripeServiceError: If credentials cannot be retrieved.
        """
        if self._client is None:
            try:
                secret_key = self._ssm.get_parameter(
                    parameter_path(self._environment, "stripe", "secret_key")
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to initialize Stripe client: {e}") from e
            self._client = StripeClient(secret_key)
            logger.info("Stripe client initialized for environment: %s", self._environment)
        return self._client

    def _get_webhook_secret(self) -> str:
        if self._webhook_secret is None:
            try:
                self._webhook_secret = self._ssm.get_parameter(
                    parameter_path(self._environment, "stripe", "webhook_secret")
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to get webhook secret: {e}") from e
        return self._webhook_secret

    def create_payment_intent(
        self,
        *,
        booking_id: str,
        amount_cents: int,
        currency: str,
        customer_email: str | None = None,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntent:
        """Create a PaymentIntent for a new booking.

        Args:
            booking_id: Booking ID (stored in metadata, used as idempotency key).
            amount_cents: Amount to charge in cents.
            currency: ISO currency code (lowercase).
            customer_email: Optional email for the Stripe receipt.
            description: Optional statement description.
            metadata: Additional metadata to include.

        Returns:
            PaymentIntent with the client secret for the frontend.

        Raises:
            StripeServiceError: If creation fails.
        """
        client = self._get_client()

        intent_metadata = {"booking_id": booking_id}
        if metadata:
            intent_metadata.update(metadata)

        params: dict = {
            "amount": amount_cents,
            "currency": currency,
            "metadata": intent_metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if customer_email:
            params["receipt_email"] = customer_email
        if description:
            params["description"] = description

        try:
            logger.info(
                "Creating PaymentIntent for booking %s, amount %d cents",
                booking_id,
                amount_cents,
            )
            intent = client.payment_intents.create(
                params=params,
                options={"idempotency_key": f"pi_{booking_id}"},
            )
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe PaymentIntent creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create payment intent: {e}",
                stripe_error_code=error_code,
            ) from e

        return PaymentIntent(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status,
        )

    def cancel_payment_intent(self, payment_intent_id: str) -> None:
        """Cancel an uncaptured PaymentIntent.

        Raises:
            StripeServiceError: If cancellation fails.
        """
        client = self._get_client()
        try:
            client.payment_intents.cancel(payment_intent_id)
            logger.info("PaymentIntent cancelled: %s", payment_intent_id)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            raise StripeServiceError(
                f"Failed to cancel payment intent: {e}",
                stripe_error_code=error_code,
            ) from e

    def update_payment_intent_amount(
        self, payment_intent_id: str, amount_cents: int
    ) -> PaymentIntent:
        """Change the amount of an unpaid PaymentIntent.

        The client secret stays the same, so the frontend can keep using it.

        Raises:
            StripeServiceError: If the update fails (e.g. already paid).
        """
        client = self._get_client()
        try:
            intent = client.payment_intents.update(
                payment_intent_id, params={"amount": amount_cents}
            )
            logger.info(
                "PaymentIntent %s updated to %d cents", payment_intent_id, amount_cents
            )
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            raise StripeServiceError(
                f"Failed to update payment intent: {e}",
                stripe_error_code=error_code,
            ) from e

        return PaymentIntent(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict:
        """Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Parsed Stripe event dictionary.

        Raises:
            StripeServiceError: If signature is invalid.
        """
        webhook_secret = self._get_webhook_secret()

        try:
            event = stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise StripeServiceError("Invalid webhook signature") from e

        logger.info("Webhook signature verified for event: %s", event["id"])
        return dict(event)

    def create_refund(
        self,
        *,
        payment_intent_id: str,
        amount_cents: int | None = None,
        reason: str | None = None,
        idempotency_key: str | None = None,
    ) -> dict:
        """Create a refund for a payment.

        Args:
            payment_intent_id: Stripe PaymentIntent ID (pi_xxx).
            amount_cents: Refund amount in cents. If None, full refund.
            reason: Reason for refund (for records).
            idempotency_key: Key that makes retries safe.

        Returns:
            Dict with refund details:
                - refund_id: Stripe refund ID
                - amount: Refunded amount in cents
                - status: Refund status

        Raises:
            StripeServiceError: If refund creation fails.
        """
        client = self._get_client()

        params: dict = {"payment_intent": payment_intent_id}
        if amount_cents is not None:
            params["amount"] = amount_cents
        if reason:
            params["metadata"] = {"reason": reason}

        options: dict = {}
        if idempotency_key:
            options["idempotency_key"] = idempotency_key

        try:
            logger.info(
                "Creating refund for PaymentIntent %s, amount %s cents",
                payment_intent_id,
                amount_cents or "full",
            )
            refund = client.refunds.create(params=params, options=options)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe refund creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create refund: {e}",
                stripe_error_code=error_code,
            ) from e

        logger.info("Refund created: %s for PaymentIntent %s", refund.id, payment_intent_id)
        return {
            "refund_id": refund.id,
            "amount": refund.amount,
            "status": refund.status,
        }

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """Compute SHA-256 hash of webhook payload for deduplication."""
        return hashlib.sha256(payload).hexdigest()


@lru_cache(maxsize=1)
def get_stripe_service() -> StripeService:
    """Get the shared StripeService instance."""
    return StripeService()
