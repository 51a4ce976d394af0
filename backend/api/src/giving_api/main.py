"""FastAPI application for the PayFast giving gateway.

This package provides REST endpoints for:
- Health checks
- Creating signed PayFast donation redirects
- Receiving PayFast ITN webhooks
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from giving import __version__
from giving.utils.logging import StructuredFormatter
from giving_api.exceptions import register_exception_handlers
from giving_api.middleware.correlation import CorrelationIdMiddleware
from giving_api.routes.donations import router as donations_router
from giving_api.routes.health import router as health_router
from giving_api.routes.webhooks import router as webhooks_router

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)
for _handler in logging.getLogger().handlers:
    _handler.setFormatter(StructuredFormatter("%(levelname)s %(name)s: %(message)s"))

app = FastAPI(
    title="Giving API",
    description="PayFast donations: signed redirects and ITN reconciliation",
    version=__version__,
)

# App origins allowed to request donation redirects; PayFast ITNs are
# server-to-server and unaffected by CORS.
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "GIVING_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

# Include routers under /api prefix
app.include_router(health_router, prefix="/api")
app.include_router(donations_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "giving-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "giving_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
