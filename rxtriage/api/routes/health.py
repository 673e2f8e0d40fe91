"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from rxtriage.api.models import HealthResponse
from rxtriage.infrastructure.settings import APP_VERSION

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint.

    The service holds no connections or state, so it is healthy whenever it
    can answer.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
    )
