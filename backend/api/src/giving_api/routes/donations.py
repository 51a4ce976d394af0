"""Donation endpoints.

Provides REST endpoints for:
- Starting a PayFast donation (returns a signed redirect URL)

Card details never reach this API; the app opens the returned URL and
PayFast reports the outcome to the ITN webhook.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from giving.models.errors import ErrorResponse
from giving.services.request_builder import PaymentRequestBuilder
from giving.utils.logging import get_logger
from giving_api.dependencies import get_request_builder
from giving_api.models.donations import DonationRedirectRequest, RedirectResponse

logger = get_logger(__name__)

router = APIRouter(tags=["donations"])


@router.post(
    "/donations/payfast",
    summary="Create PayFast donation redirect",
    description="""
Build a signed redirect to the PayFast hosted payment page.

A pending donation is recorded under the returned payment reference; its
final status arrives later through the PayFast ITN webhook.

**Notes:**
- Amount is in ZAR and rounded to cents
- Monthly donations are flagged with `is_recurring`
- The URL targets the sandbox or live host of the configured environment
""",
    response_description="Redirect URL and payment reference",
    response_model=RedirectResponse,
    status_code=HTTP_201_CREATED,
    responses={
        201: {"description": "Redirect built and pending donation recorded"},
        409: {"description": "No unique payment reference available", "model": ErrorResponse},
        500: {"description": "Gateway configuration missing", "model": ErrorResponse},
        503: {"description": "Donation ledger unavailable", "model": ErrorResponse},
    },
)
def create_payfast_donation(
    body: DonationRedirectRequest,
    builder: PaymentRequestBuilder = Depends(get_request_builder),
) -> RedirectResponse:
    """Create a signed PayFast redirect for a donation."""
    redirect = builder.build_payment_redirect(body)
    return RedirectResponse(
        redirect_url=redirect.url,
        payment_reference=redirect.payment_reference,
        environment=redirect.environment,
    )
