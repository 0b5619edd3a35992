"""Account credit endpoints."""

from fastapi import APIRouter, Depends

from resort_api.dependencies import get_booking_service, require_user
from resort_core.models import CreditBalance, Requester
from resort_core.services.booking import BookingService

router = APIRouter(tags=["credits"])


@router.get(
    "/credits",
    summary="My account credits",
    description="Unexpired credits with a remaining balance, soonest expiry first.",
    response_model=CreditBalance,
)
async def get_my_credits(
    requester: Requester = Depends(require_user),
    service: BookingService = Depends(get_booking_service),
) -> CreditBalance:
    return service.get_user_credits(requester)
