"""FastAPI dependency injection providers.

Services are lazily instantiated and cached with @lru_cache so a warm
Lambda reuses boto3 clients and TTL caches across invocations.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── ResourceService
        ├── ModuleStatusService
        ├── NotificationService
        └── BookingService (+ StripeService)
                └── WebhookHandler

Testing:
    Override providers with ``app.dependency_overrides`` or call
    reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fastapi import Depends, Header

from resort_core.config import BookingSettings, get_settings
from resort_core.models import Requester, Unauthorized
from resort_core.services.booking import BookingService
from resort_core.services.dynamodb import get_dynamodb_service
from resort_core.services.modules import ModuleStatusService
from resort_core.services.notification_service import NotificationService
from resort_core.services.resources import ResourceService
from resort_core.services.stripe_service import get_stripe_service
from resort_core.services.webhook_handler import WebhookHandler
from resort_core.utils.cache import TTLCache


@lru_cache
def get_resource_service() -> ResourceService:
    return ResourceService(
        db=get_dynamodb_service(),
        cache=TTLCache(ttl_seconds=get_settings().cache_ttl_seconds),
    )


@lru_cache
def get_module_service() -> ModuleStatusService:
    return ModuleStatusService(
        db=get_dynamodb_service(),
        cache=TTLCache(ttl_seconds=get_settings().cache_ttl_seconds),
    )


@lru_cache
def get_notification_service() -> NotificationService:
    return NotificationService(db=get_dynamodb_service())


@lru_cache
def get_booking_service() -> BookingService:
    """Get cached BookingService instance.

    Returns:
        BookingService configured with all required dependencies.
    """
    return BookingService(
        db=get_dynamodb_service(),
        resources=get_resource_service(),
        stripe=get_stripe_service(),
        notifications=get_notification_service(),
        modules=get_module_service(),
        settings=get_settings(),
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    return WebhookHandler(db=get_dynamodb_service(), bookings=get_booking_service())


def get_requester(
    x_user_sub: str | None = Header(default=None),
    x_user_groups: str | None = Header(default=None),
    settings: BookingSettings = Depends(get_settings),
) -> Requester:
    """Identity of the caller.

    API Gateway validates the JWT and passes the ``sub`` claim in
    ``x-user-sub`` and the group claim (comma separated) in
    ``x-user-groups``. Requests without ``x-user-sub`` are guests.
    """
    groups = {g.strip() for g in (x_user_groups or "").split(",") if g.strip()}
    return Requester(
        user_id=x_user_sub or None,
        is_staff=bool(x_user_sub) and bool(groups & settings.staff_groups),
    )


def require_user(requester: Requester = Depends(get_requester)) -> Requester:
    """Reject guest callers."""
    if requester.is_anonymous:
        raise Unauthorized()
    return requester


def require_staff(requester: Requester = Depends(get_requester)) -> Requester:
    """Reject callers outside the staff groups."""
    if not requester.is_staff:
        raise Unauthorized()
    return requester


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets the underlying DynamoDB singleton and settings.
    """
    from resort_core.services.dynamodb import reset_dynamodb_service

    get_resource_service.cache_clear()
    get_module_service.cache_clear()
    get_notification_service.cache_clear()
    get_booking_service.cache_clear()
    get_webhook_handler.cache_clear()
    get_stripe_service.cache_clear()
    get_settings.cache_clear()

    reset_dynamodb_service()
