"""API routes package.

Routers are organized by concern:

- health: Health check endpoints
- donations: Signed redirects to the PayFast hosted payment page
- webhooks: PayFast ITN receiver

All routers are registered in main.py with /api prefix.
"""

from giving_api.routes.donations import router as donations_router
from giving_api.routes.health import router as health_router
from giving_api.routes.webhooks import router as webhooks_router

__all__ = [
    "donations_router",
    "health_router",
    "webhooks_router",
]
