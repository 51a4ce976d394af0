"""Health check endpoint."""

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from giving import __version__

router = APIRouter(tags=["health"])


@router.get("/health", summary="Service health")
async def health() -> dict[str, Any]:
    """Report liveness without touching PayFast or DynamoDB."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "giving-api",
        "version": __version__,
        "environment": os.environ.get("ENVIRONMENT", "dev"),
    }
