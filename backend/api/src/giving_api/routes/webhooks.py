"""Webhook endpoints for external service integrations.

Provides endpoints for:
- PayFast ITN (Instant Transaction Notification) posts

These endpoints do NOT require authentication as they receive signed
payloads from PayFast; the merchant and signature checks happen in
WebhookHandler before anything is written.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.status import HTTP_200_OK

from giving.models.errors import ErrorCode, ErrorResponse
from giving.services.webhook_handler import WebhookHandler
from giving.utils.logging import get_logger
from giving_api.dependencies import get_webhook_handler
from giving_api.exceptions import get_http_status_for_error
from giving_api.models.webhooks import WebhookErrorResponse

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

ACKNOWLEDGEMENT = "OK"


@router.post(
    "/webhooks/payfast",
    summary="Receive PayFast ITN",
    description="""
Endpoint for PayFast Instant Transaction Notifications
(application/x-www-form-urlencoded).

**No authentication required** - the merchant_id and MD5 signature are
verified against the configured merchant account.

**Idempotent**: redelivery of an already-applied notification returns 200
without crediting the giving category or notifying the donor again.
""",
    response_class=PlainTextResponse,
    responses={
        200: {
            "description": "Notification accepted or already applied",
            "content": {"text/plain": {"example": ACKNOWLEDGEMENT}},
        },
        400: {"description": "Malformed body or invalid signature", "model": WebhookErrorResponse},
        403: {"description": "Merchant mismatch", "model": WebhookErrorResponse},
        503: {"description": "Ledger unavailable, PayFast will retry", "model": ErrorResponse},
    },
)
async def handle_payfast_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> Response:
    """Validate and reconcile a PayFast ITN.

    Uses the raw body so the signature is checked over exactly what
    PayFast sent. Reconciliation makes blocking DynamoDB calls and runs in
    the threadpool.
    """
    payload = await request.body()
    result = await run_in_threadpool(handler.handle_webhook, payload)

    if result.acknowledged:
        return PlainTextResponse(ACKNOWLEDGEMENT, status_code=HTTP_200_OK)

    code = result.error_code or ErrorCode.MALFORMED_PAYLOAD
    return JSONResponse(
        status_code=get_http_status_for_error(code),
        content=ErrorResponse.from_code(code).model_dump(mode="json"),
    )
