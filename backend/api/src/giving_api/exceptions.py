"""FastAPI exception handlers for converting GivingError to HTTP responses.

Domain errors raised by the request builder and webhook handler become JSON
bodies in the shared ErrorResponse shape, with a status code chosen so that
PayFast retries only when a retry can help:

- 400 Bad Request: malformed ITN or signature mismatch (retrying cannot fix it)
- 403 Forbidden: ITN addressed to another merchant
- 409 Conflict: no unique payment reference could be allocated
- 500 Internal Server Error: gateway misconfigured
- 503 Service Unavailable: ledger storage failed (PayFast retries later)

Usage:
    from giving_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from giving.models.errors import ErrorCode, GivingError

logger = logging.getLogger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.CONFIGURATION_MISSING: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.MERCHANT_MISMATCH: HTTP_403_FORBIDDEN,
    ErrorCode.SIGNATURE_MISMATCH: HTTP_400_BAD_REQUEST,
    ErrorCode.MALFORMED_PAYLOAD: HTTP_400_BAD_REQUEST,
    ErrorCode.LEDGER_UNAVAILABLE: HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.REFERENCE_COLLISION: HTTP_409_CONFLICT,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def giving_error_handler(request: Request, exc: GivingError) -> JSONResponse:
    """Convert a GivingError to a JSON ErrorResponse with its mapped status."""
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s on %s: %s", exc.code.value, request.url.path, exc.details)

    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response.

    Internal details are logged, never returned to the caller.
    """
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)

    error_response = {
        "success": False,
        "error_code": "ERR_INTERNAL",
        "message": "An unexpected error occurred",
        "recovery": "Please try again later or contact support",
        "details": None,
    }

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(GivingError, giving_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
