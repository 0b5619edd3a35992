"""Pricing result model."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class PriceCalculation(BaseModel):
    """Price breakdown for a stay or a pool day. Amounts in cents."""

    model_config = ConfigDict(strict=True)

    check_in: date
    check_out: date
    nights: int = Field(..., ge=1)
    base_price: int = Field(..., ge=0, description="Nightly or per-day base price")
    weekend_nights: int = Field(default=0, ge=0)
    subtotal: int = Field(..., ge=0, description="nights * base_price (times guests for tickets)")
    weekend_markup: int = Field(default=0, ge=0, description="Sum of weekend surcharges")
    total: int = Field(..., ge=0, description="subtotal + weekend_markup")
