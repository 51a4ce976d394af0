"""API-specific request/response models.

Domain models (DonationIntent, WebhookResult, ErrorResponse, ...) live in
giving.models and are reused here where appropriate.

Modules:
- donations: Donation redirect request/response models
- webhooks: ITN acknowledgement models
"""

from giving_api.models.donations import DonationRedirectRequest, RedirectResponse
from giving_api.models.webhooks import WebhookErrorResponse

__all__ = [
    "DonationRedirectRequest",
    "RedirectResponse",
    "WebhookErrorResponse",
]
