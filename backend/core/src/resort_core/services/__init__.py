"""Business logic services for the booking core."""

from .availability import (
    AvailabilityService,
    StayRange,
    has_overlap,
    nights_in_range,
    overlapping_bookings,
    ranges_overlap,
)
from .booking import BookingService
from .booking_state import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    assert_cancellable,
    assert_transition,
    can_transition,
)
from .cancellation_policy import (
    CancellationPolicyService,
    calculate_refund,
    days_until_check_in,
    resolve_policy,
)
from .credits import CreditService, plan_credit_application
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .modules import ModuleStatusService
from .notification_service import NotificationService
from .notification_worker import NotificationWorker, SESEmailSender
from .pricing import calculate_price, calculate_ticket_price, is_weekend_night
from .resources import ResourceService
from .stripe_service import StripeService, StripeServiceError, get_stripe_service
from .webhook_handler import WebhookHandler

__all__ = [
    "AvailabilityService",
    "BookingService",
    "CancellationPolicyService",
    "CreditService",
    "DynamoDBService",
    "ModuleStatusService",
    "NotificationService",
    "NotificationWorker",
    "ResourceService",
    "SESEmailSender",
    "StayRange",
    "StripeService",
    "StripeServiceError",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "WebhookHandler",
    "assert_cancellable",
    "assert_transition",
    "calculate_price",
    "calculate_refund",
    "calculate_ticket_price",
    "can_transition",
    "days_until_check_in",
    "get_dynamodb_service",
    "get_stripe_service",
    "has_overlap",
    "is_weekend_night",
    "nights_in_range",
    "overlapping_bookings",
    "plan_credit_application",
    "ranges_overlap",
    "reset_dynamodb_service",
    "resolve_policy",
]
