"""Pydantic models for resort booking data entities."""

from .booking import (
    Booking,
    BookingCreate,
    BookingCreated,
    CancellationResult,
    ModificationResult,
    PaymentIntent,
    Requester,
)
from .credit import CreditBalance, CreditDraw, UserCredit
from .enums import (
    BookingKind,
    BookingStatus,
    CreditType,
    NotificationEventType,
    NotificationStatus,
    PaymentStatus,
    RefundStatus,
    RefundType,
    ResourceKind,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    BookingError,
    DatesUnavailable,
    DownstreamFailure,
    ErrorCode,
    ErrorResponse,
    InvalidStatus,
    InvalidTransition,
    ModuleDisabled,
    NotFoundError,
    Unauthorized,
    ValidationError,
)
from .notification import Notification
from .policy import (
    DEFAULT_CHALET_POLICIES,
    DEFAULT_POOL_POLICIES,
    CancellationPolicy,
    RefundCalculation,
)
from .pricing import PriceCalculation
from .resource import Resource
from .stripe_webhook import StripeWebhookEvent

__all__ = [
    # Enums
    "BookingKind",
    "BookingStatus",
    "CreditType",
    "NotificationEventType",
    "NotificationStatus",
    "PaymentStatus",
    "RefundStatus",
    "RefundType",
    "ResourceKind",
    # Booking
    "Booking",
    "BookingCreate",
    "BookingCreated",
    "CancellationResult",
    "ModificationResult",
    "PaymentIntent",
    "Requester",
    # Resource / pricing / policy
    "Resource",
    "PriceCalculation",
    "CancellationPolicy",
    "RefundCalculation",
    "DEFAULT_CHALET_POLICIES",
    "DEFAULT_POOL_POLICIES",
    # Credits
    "CreditBalance",
    "CreditDraw",
    "UserCredit",
    # Notifications
    "Notification",
    # Errors
    "BookingError",
    "DatesUnavailable",
    "DownstreamFailure",
    "ErrorCode",
    "ErrorResponse",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "InvalidStatus",
    "InvalidTransition",
    "ModuleDisabled",
    "NotFoundError",
    "Unauthorized",
    "ValidationError",
    # Stripe
    "StripeWebhookEvent",
]
