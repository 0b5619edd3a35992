"""User credit models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import CreditType


class UserCredit(BaseModel):
    """Account credit usable against future bookings (cents)."""

    model_config = ConfigDict(strict=True)

    credit_id: str
    user_id: str
    amount: int = Field(..., ge=0, description="Amount originally granted")
    remaining: int = Field(..., ge=0, description="Amount not yet consumed")
    credit_type: CreditType
    expires_at: datetime
    source_booking_id: str | None = None
    created_at: datetime
    used_at: datetime | None = Field(default=None, description="Set once fully consumed")

    def is_usable(self, now: datetime) -> bool:
        """Unexpired and not fully consumed."""
        return self.used_at is None and self.remaining > 0 and self.expires_at > now


class CreditDraw(BaseModel):
    """Amount taken from one credit when applying credit to a booking."""

    model_config = ConfigDict(strict=True, frozen=True)

    credit_id: str
    previous_remaining: int
    amount: int = Field(..., gt=0)

    @property
    def new_remaining(self) -> int:
        return self.previous_remaining - self.amount


class CreditBalance(BaseModel):
    """Usable credits of a user, soonest expiry first."""

    model_config = ConfigDict(strict=True)

    user_id: str
    total: int = Field(..., ge=0)
    credits: list[UserCredit] = Field(default_factory=list)
