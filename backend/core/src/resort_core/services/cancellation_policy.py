"""Cancellation policy resolution and refund/credit calculation.

Default chalet tiers:
- 14+ days before check-in: full refund (100%)
- 7-13 days: partial refund (50%)
- 3-6 days: partial refund (25%)
- less than 3 days: no refund

Default pool ticket tiers:
- more than 24 hours before the ticket day: full refund
- otherwise: the full amount becomes account credit

Lead time is measured from ``now`` to midnight UTC of the check-in date
and rounded up to whole days. All amounts are integer cents.
"""

import datetime as dt
import math
from collections.abc import Sequence
from typing import TypedDict

from resort_core.models import (
    DEFAULT_CHALET_POLICIES,
    DEFAULT_POOL_POLICIES,
    BookingKind,
    CancellationPolicy,
    RefundCalculation,
    RefundType,
)

from .pricing import percentage_of

_ONE_DAY_SECONDS = 86400


def check_in_instant(check_in: dt.date) -> dt.datetime:
    """Midnight UTC at the start of the check-in date."""
    return dt.datetime.combine(check_in, dt.time.min, tzinfo=dt.timezone.utc)


def days_until_check_in(check_in: dt.date, now: dt.datetime) -> int:
    """Whole days from ``now`` until check-in, rounded up.

    Negative once the check-in instant has passed.
    """
    delta = check_in_instant(check_in) - now
    return math.ceil(delta.total_seconds() / _ONE_DAY_SECONDS)


def resolve_policy(
    check_in: dt.date,
    now: dt.datetime,
    tiers: Sequence[CancellationPolicy] = DEFAULT_CHALET_POLICIES,
) -> CancellationPolicy:
    """Pick the cancellation tier that applies at ``now``.

    Tiers are tried from the longest lead time down; the first one whose
    threshold is met wins. If none is met (check-in already passed), the
    tier with the smallest threshold applies.

    Args:
        check_in: Check-in date of the booking
        now: Current time (timezone-aware)
        tiers: Policy tiers, any order

    Returns:
        The applicable CancellationPolicy

    Raises:
        ValueError: If no tiers are given
    """
    if not tiers:
        raise ValueError("at least one cancellation tier is required")

    ordered = sorted(tiers, key=lambda t: t.days_before_checkin, reverse=True)
    days = days_until_check_in(check_in, now)

    for tier in ordered:
        if days >= tier.days_before_checkin:
            return tier

    return ordered[-1]


def calculate_refund(total_amount: int, policy: CancellationPolicy) -> RefundCalculation:
    """Split a paid amount into cash refund and account credit.

    ``refund = total * pct / 100`` rounded half-up. Only CREDIT tiers turn
    the non-refunded remainder into credit.
    """
    if total_amount < 0:
        raise ValueError("total_amount must not be negative")

    refund_amount = percentage_of(total_amount, policy.refund_percentage)
    credit_amount = 0
    if policy.refund_type == RefundType.CREDIT:
        credit_amount = total_amount - refund_amount

    return RefundCalculation(refund_amount=refund_amount, credit_amount=credit_amount)


def describe_policy(tiers: Sequence[CancellationPolicy]) -> str:
    """Human-readable summary of a tier list."""
    lines = ["Cancellation Policy:"]
    for tier in sorted(tiers, key=lambda t: t.days_before_checkin, reverse=True):
        if tier.refund_type == RefundType.CREDIT:
            outcome = "account credit"
        elif tier.refund_percentage == 0:
            outcome = "no refund"
        else:
            outcome = f"{tier.refund_percentage}% refund"

        if tier.days_before_checkin == 0:
            lines.append(f"• Less than the above: {outcome}")
        else:
            lines.append(f"• {tier.days_before_checkin}+ days before check-in: {outcome}")
    return "\n".join(lines)


class CancellationQuote(TypedDict):
    """Outcome of evaluating the policy for one booking."""

    policy: CancellationPolicy
    days_until_check_in: int
    refund_amount: int
    credit_amount: int
    description: str


class CancellationPolicyService:
    """Applies the configured tiers of each booking kind."""

    def __init__(
        self,
        chalet_tiers: Sequence[CancellationPolicy] = DEFAULT_CHALET_POLICIES,
        pool_tiers: Sequence[CancellationPolicy] = DEFAULT_POOL_POLICIES,
    ) -> None:
        self.chalet_tiers = tuple(chalet_tiers)
        self.pool_tiers = tuple(pool_tiers)

    def tiers_for(self, kind: BookingKind) -> tuple[CancellationPolicy, ...]:
        """Tier list used for a booking kind."""
        return self.pool_tiers if kind == BookingKind.POOL_TICKET else self.chalet_tiers

    def quote(
        self,
        kind: BookingKind,
        check_in: dt.date,
        amount_paid: int,
        now: dt.datetime,
    ) -> CancellationQuote:
        """Evaluate the policy for a booking being cancelled at ``now``.

        Args:
            kind: Chalet or pool ticket
            check_in: Check-in (or ticket) date
            amount_paid: Amount actually captured, in cents
            now: Cancellation time

        Returns:
            CancellationQuote with the tier, lead time and amounts
        """
        policy = resolve_policy(check_in, now, self.tiers_for(kind))
        amounts = calculate_refund(amount_paid, policy)
        days = days_until_check_in(check_in, now)

        if policy.refund_type == RefundType.CREDIT:
            description = f"Cancelled {days} day(s) before check-in: amount returned as credit"
        else:
            description = (
                f"Cancelled {days} day(s) before check-in: "
                f"{policy.refund_percentage}% refund ({policy.refund_type.value})"
            )

        return CancellationQuote(
            policy=policy,
            days_until_check_in=days,
            refund_amount=amounts.refund_amount,
            credit_amount=amounts.credit_amount,
            description=description,
        )
