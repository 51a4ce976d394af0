"""Correlation ID middleware for request tracing.

Every log line written while building a redirect or reconciling an ITN
carries the request's correlation ID. PayFast never sends one, so ITN
deliveries always get a generated ID; app clients may pass their own in
X-Correlation-ID, which is reused only if it looks like an identifier.
"""

import re

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from giving.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Header values end up verbatim in log lines.
_VALID_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def incoming_correlation_id(request: Request) -> str | None:
    """Return the caller's correlation ID if it is safe to log."""
    value = request.headers.get(CORRELATION_ID_HEADER, "").strip()
    if value and _VALID_CORRELATION_ID.match(value):
        return value
    return None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Sets the correlation ID for the request and echoes it on the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(incoming_correlation_id(request))
        request.state.correlation_id = correlation_id
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
