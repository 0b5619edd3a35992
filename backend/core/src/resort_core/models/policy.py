"""Cancellation policy value types."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import RefundType


class CancellationPolicy(BaseModel):
    """One cancellation tier.

    Applies when the lead time in days is at least ``days_before_checkin``.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    days_before_checkin: int = Field(..., ge=0)
    refund_percentage: int = Field(..., ge=0, le=100)
    refund_type: RefundType


class RefundCalculation(BaseModel):
    """Split of a paid amount into cash refund and account credit (cents)."""

    model_config = ConfigDict(strict=True, frozen=True)

    refund_amount: int = Field(..., ge=0)
    credit_amount: int = Field(..., ge=0)


DEFAULT_CHALET_POLICIES: tuple[CancellationPolicy, ...] = (
    CancellationPolicy(days_before_checkin=14, refund_percentage=100, refund_type=RefundType.FULL),
    CancellationPolicy(days_before_checkin=7, refund_percentage=50, refund_type=RefundType.PARTIAL),
    CancellationPolicy(days_before_checkin=3, refund_percentage=25, refund_type=RefundType.PARTIAL),
    CancellationPolicy(days_before_checkin=0, refund_percentage=0, refund_type=RefundType.NONE),
)

# More than 24 hours ahead: cash refund. Otherwise the full amount becomes credit.
DEFAULT_POOL_POLICIES: tuple[CancellationPolicy, ...] = (
    CancellationPolicy(days_before_checkin=2, refund_percentage=100, refund_type=RefundType.FULL),
    CancellationPolicy(days_before_checkin=0, refund_percentage=0, refund_type=RefundType.CREDIT),
)
