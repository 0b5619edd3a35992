"""Bookable resource model (chalets and pool sessions)."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import ResourceKind


class Resource(BaseModel):
    """A chalet or a pool session that can be booked.

    Prices are stored in cents. For chalets ``base_price`` is the nightly
    rate and ``capacity`` the maximum number of guests; for pool sessions
    ``base_price`` is the per-person day price and ``capacity`` the number
    of tickets sold per day.
    """

    model_config = ConfigDict(strict=True)

    resource_id: str = Field(..., description="Unique resource ID")
    name: str = Field(..., description="Display name")
    kind: ResourceKind = Field(..., description="Chalet or pool session")
    base_price: int = Field(..., ge=0, description="Base price in cents")
    weekend_markup_percentage: int = Field(
        default=0,
        ge=0,
        le=500,
        description="Extra percentage charged on weekend nights",
    )
    capacity: int = Field(..., ge=1, description="Guest or daily ticket capacity")
    is_active: bool = Field(default=True, description="Open for booking")
