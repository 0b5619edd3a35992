"""Runtime settings for the booking core.

Settings are read from environment variables once per process through
``get_settings()``. Tests build ``BookingSettings`` directly or call
``get_settings.cache_clear()`` after patching the environment.

List values are JSON, e.g. ``WEEKEND_DAYS='[4, 5, 6]'`` or
``POOL_CANCELLATION_TIERS='[{"days_before_checkin": 2, ...}]'``.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.policy import DEFAULT_CHALET_POLICIES, DEFAULT_POOL_POLICIES, CancellationPolicy


class BookingSettings(BaseSettings):
    """Deployment-tunable booking rules."""

    model_config = SettingsConfigDict(frozen=True, case_sensitive=False, extra="ignore")

    max_guests: int = Field(default=20, ge=1)
    max_nights: int = Field(default=30, ge=1)
    weekend_days: frozenset[int] = Field(default=frozenset({4, 5, 6}))
    chalet_tiers: tuple[CancellationPolicy, ...] = Field(
        default=DEFAULT_CHALET_POLICIES,
        validation_alias=AliasChoices("chalet_tiers", "chalet_cancellation_tiers"),
    )
    pool_tiers: tuple[CancellationPolicy, ...] = Field(
        default=DEFAULT_POOL_POLICIES,
        validation_alias=AliasChoices("pool_tiers", "pool_cancellation_tiers"),
    )
    cancellation_credit_days: int = Field(default=365, ge=1)
    pool_credit_days: int = Field(default=90, ge=1)
    currency: str = Field(default="usd", pattern=r"^[a-z]{3}$")
    cache_ttl_seconds: float = Field(default=60.0, ge=0)
    notification_sender: str = "bookings@resort.example.com"
    notification_max_attempts: int = Field(default=5, ge=1)
    staff_groups: frozenset[str] = Field(default=frozenset({"staff", "admin"}))

    @field_validator("currency", mode="before")
    @classmethod
    def _lowercase_currency(cls, value: str) -> str:
        # Stripe expects lowercase ISO codes
        return value.lower() if isinstance(value, str) else value

    @field_validator("weekend_days")
    @classmethod
    def _check_weekdays(cls, value: frozenset[int]) -> frozenset[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("weekend_days must be weekday numbers 0 (Monday) to 6 (Sunday)")
        return value

    @field_validator("chalet_tiers", "pool_tiers", mode="before")
    @classmethod
    def _coerce_tiers(cls, value: object) -> object:
        # Tiers decoded from JSON carry their refund type as a plain string
        if isinstance(value, (list, tuple)):
            return tuple(
                t if isinstance(t, CancellationPolicy)
                else CancellationPolicy.model_validate(t, strict=False)
                for t in value
            )
        return value

    @field_validator("chalet_tiers", "pool_tiers")
    @classmethod
    def _check_tiers(
        cls, value: tuple[CancellationPolicy, ...]
    ) -> tuple[CancellationPolicy, ...]:
        if not value:
            raise ValueError("at least one cancellation tier is required")

        ordered = sorted(value, key=lambda t: t.days_before_checkin, reverse=True)
        for longer, shorter in zip(ordered, ordered[1:]):
            if shorter.refund_percentage > longer.refund_percentage:
                raise ValueError(
                    "refund percentage must not increase as the threshold decreases "
                    f"({longer.days_before_checkin}d={longer.refund_percentage}% < "
                    f"{shorter.days_before_checkin}d={shorter.refund_percentage}%)"
                )
        return tuple(ordered)


@lru_cache
def get_settings() -> BookingSettings:
    """Get cached settings for this process."""
    return BookingSettings()
