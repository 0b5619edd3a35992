"""Pytest configuration and fixtures for resort booking backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Sample resources (a chalet and a pool session)
- Booking factories and a fixed clock
"""

import datetime as dt
import os
from typing import Any, Generator
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-resort")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from resort_core.models import (  # noqa: E402
    Booking,
    BookingKind,
    BookingStatus,
    PaymentIntent,
    PaymentStatus,
    Resource,
    ResourceKind,
)

TABLE_PREFIX = "test-resort"

# Tuesday, 2026-01-06 09:00 UTC
FIXED_NOW = dt.datetime(2026, 1, 6, 9, 0, tzinfo=dt.timezone.utc)


# === Singleton Fixtures ===


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Ensures tests using mock_aws get fresh boto3 clients inside the mock
    context rather than reusing ones created outside it.
    """
    from resort_core.config import get_settings
    from resort_core.services.dynamodb import reset_dynamodb_service
    from resort_core.services.ssm_service import get_ssm_service
    from resort_core.services.stripe_service import get_stripe_service

    def _reset() -> None:
        reset_dynamodb_service()
        get_settings.cache_clear()
        get_ssm_service.cache_clear()
        get_stripe_service.cache_clear()

    _reset()
    yield
    _reset()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        yield client


def _table(
    name: str,
    key: str,
    indexes: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Table definition with a string hash key and optional hash-only GSIs."""
    attributes = [{"AttributeName": key, "AttributeType": "S"}]
    definition: dict[str, Any] = {
        "TableName": f"{TABLE_PREFIX}-{name}",
        "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
        "BillingMode": "PAY_PER_REQUEST",
    }
    if indexes:
        definition["GlobalSecondaryIndexes"] = []
        for index_name, attribute in indexes.items():
            attributes.append({"AttributeName": attribute, "AttributeType": "S"})
            definition["GlobalSecondaryIndexes"].append(
                {
                    "IndexName": index_name,
                    "KeySchema": [{"AttributeName": attribute, "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
            )
    definition["AttributeDefinitions"] = attributes
    return definition


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create all required DynamoDB tables for testing."""
    tables = [
        _table(
            "bookings",
            "booking_id",
            {"resource_id-index": "resource_id", "customer_id-index": "customer_id"},
        ),
        _table("availability", "slot_key"),
        _table("resources", "resource_id"),
        _table("user-credits", "credit_id", {"user_id-index": "user_id"}),
        _table("notifications", "notification_id", {"status-index": "status"}),
        _table("modules", "slug"),
        _table("stripe-webhook-events", "event_id"),
    ]
    for table in tables:
        dynamodb_client.create_table(**table)


@pytest.fixture
def db(create_tables: None) -> Any:
    """DynamoDBService bound to the mocked test tables."""
    from resort_core.services.dynamodb import DynamoDBService

    return DynamoDBService(name_prefix=TABLE_PREFIX)


# === Sample Data Fixtures ===


@pytest.fixture
def fixed_now() -> dt.datetime:
    return FIXED_NOW


@pytest.fixture
def chalet() -> Resource:
    """Chalet at 100.00 per night, 20% weekend markup, up to 6 guests."""
    return Resource(
        resource_id="chalet-cedar",
        name="Cedar Chalet",
        kind=ResourceKind.CHALET,
        base_price=10000,
        weekend_markup_percentage=20,
        capacity=6,
    )


@pytest.fixture
def pool_session() -> Resource:
    """Pool day session at 15.00 per person, 10 tickets per day."""
    return Resource(
        resource_id="pool-day",
        name="Pool Day Pass",
        kind=ResourceKind.POOL_SESSION,
        base_price=1500,
        weekend_markup_percentage=0,
        capacity=10,
    )


@pytest.fixture
def make_booking():
    """Factory for Booking models with sensible defaults."""

    def _make(**overrides: Any) -> Booking:
        values: dict[str, Any] = {
            "booking_id": "BK-000000000001",
            "booking_number": "CH-2026-00000001",
            "kind": BookingKind.CHALET,
            "resource_id": "chalet-cedar",
            "customer_id": "user-1",
            "customer_name": "Rania Haddad",
            "customer_email": "rania@example.com",
            "check_in": dt.date(2026, 1, 20),
            "check_out": dt.date(2026, 1, 22),
            "number_of_guests": 2,
            "nights": 2,
            "status": BookingStatus.CONFIRMED,
            "payment_status": PaymentStatus.PAID,
            "subtotal": 20000,
            "total_price": 20000,
            "amount_due": 20000,
            "amount_paid": 20000,
            "payment_intent_id": "pi_test_123",
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        values.update(overrides)
        return Booking(**values)

    return _make


@pytest.fixture
def mock_stripe() -> MagicMock:
    """StripeService double that accepts every call."""
    stripe = MagicMock()

    def _intent(**kwargs: Any) -> PaymentIntent:
        return PaymentIntent(
            payment_intent_id=f"pi_{kwargs['booking_id']}",
            client_secret=f"pi_{kwargs['booking_id']}_secret",
            amount=kwargs["amount_cents"],
            currency=kwargs["currency"],
            status="requires_payment_method",
        )

    def _updated(payment_intent_id: str, amount_cents: int) -> PaymentIntent:
        return PaymentIntent(
            payment_intent_id=payment_intent_id,
            client_secret=f"{payment_intent_id}_secret",
            amount=amount_cents,
            currency="usd",
            status="requires_payment_method",
        )

    stripe.create_payment_intent.side_effect = _intent
    stripe.update_payment_intent_amount.side_effect = _updated
    stripe.create_refund.return_value = {
        "refund_id": "re_test_123",
        "amount": 0,
        "status": "succeeded",
    }
    return stripe
