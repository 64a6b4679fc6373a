"""
Health check endpoint.

Provides service status for monitoring and load balancers.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from fuelbill import __version__
from fuelbill.api.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report that the service is up."""
    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
    )
