"""API routes package.

Routers are organized by domain:

- bookings: Booking lifecycle and blocked-date calendar
- credits: Account credits of the current user
- webhooks: Stripe payment events

All routers are registered in main.py with /api prefix.
"""

from resort_api.routes.bookings import router as bookings_router
from resort_api.routes.credits import router as credits_router
from resort_api.routes.webhooks import router as webhooks_router

__all__ = [
    "bookings_router",
    "credits_router",
    "webhooks_router",
]
