"""Price calculation for chalet stays and pool tickets.

All amounts are integer cents. Weekend surcharges are computed per night
and rounded half-up to the cent before summing.
"""

import datetime as dt
from collections.abc import Collection
from decimal import ROUND_HALF_UP, Decimal

from resort_core.models import PriceCalculation, Resource

from .availability import nights_in_range

# Friday, Saturday, Sunday (datetime.weekday numbering)
DEFAULT_WEEKEND_DAYS: frozenset[int] = frozenset({4, 5, 6})


def round_half_up(value: Decimal) -> int:
    """Round a Decimal amount of cents to a whole cent, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage_of(amount: int, percentage: int) -> int:
    """``amount * percentage / 100`` rounded half-up to the cent."""
    return round_half_up(Decimal(amount) * Decimal(percentage) / Decimal(100))


def is_weekend_night(night: dt.date, weekend_days: Collection[int] = DEFAULT_WEEKEND_DAYS) -> bool:
    """Return True if the night starting on ``night`` is a weekend night."""
    return night.weekday() in weekend_days


def calculate_price(
    resource: Resource,
    check_in: dt.date,
    check_out: dt.date,
    weekend_days: Collection[int] = DEFAULT_WEEKEND_DAYS,
) -> PriceCalculation:
    """Calculate the price of a chalet stay.

    Every night costs ``base_price``. Weekend nights add
    ``base_price * weekend_markup_percentage / 100``.

    Args:
        resource: Chalet being booked
        check_in: Check-in date
        check_out: Check-out date (exclusive)
        weekend_days: Weekday numbers treated as weekend nights

    Returns:
        PriceCalculation with breakdown

    Raises:
        ValueError: If check_out is not after check_in
    """
    nights = nights_in_range(check_in, check_out)
    if not nights:
        raise ValueError("check_out must be after check_in")

    per_night_markup = percentage_of(resource.base_price, resource.weekend_markup_percentage)
    weekend_nights = sum(1 for n in nights if is_weekend_night(n, weekend_days))

    subtotal = len(nights) * resource.base_price
    weekend_markup = weekend_nights * per_night_markup

    return PriceCalculation(
        check_in=check_in,
        check_out=check_out,
        nights=len(nights),
        base_price=resource.base_price,
        weekend_nights=weekend_nights,
        subtotal=subtotal,
        weekend_markup=weekend_markup,
        total=subtotal + weekend_markup,
    )


def calculate_ticket_price(
    resource: Resource,
    day: dt.date,
    guests: int,
    weekend_days: Collection[int] = DEFAULT_WEEKEND_DAYS,
) -> PriceCalculation:
    """Calculate the price of pool tickets for one day.

    Args:
        resource: Pool session
        day: Ticket date
        guests: Number of tickets
        weekend_days: Weekday numbers treated as weekend days

    Returns:
        PriceCalculation covering ``[day, day + 1)``
    """
    if guests < 1:
        raise ValueError("guests must be at least 1")

    weekend = is_weekend_night(day, weekend_days)
    subtotal = resource.base_price * guests
    weekend_markup = (
        percentage_of(resource.base_price, resource.weekend_markup_percentage) * guests
        if weekend
        else 0
    )

    return PriceCalculation(
        check_in=day,
        check_out=day + dt.timedelta(days=1),
        nights=1,
        base_price=resource.base_price,
        weekend_nights=1 if weekend else 0,
        subtotal=subtotal,
        weekend_markup=weekend_markup,
        total=subtotal + weekend_markup,
    )
