"""Health check router.

Handles health check endpoints for service monitoring.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from apps.mirror.core.context import MirrorContext, get_mirror_context

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

VERSION = "0.1.0"


# =============================================================================
# Pydantic Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response."""

    status: str
    version: str
    environment: str
    services: dict[str, str]
    in_flight_fetches: int


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check(ctx: MirrorContext = Depends(get_mirror_context)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        environment=ctx.settings.environment,
    )


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(
    ctx: MirrorContext = Depends(get_mirror_context),
) -> DetailedHealthResponse:
    """Detailed health check with service status.

    Checks:
    - Redis (metadata store ping)
    - Cache directory (exists and writable)
    """
    services: dict[str, str] = {}
    overall_healthy = True

    if await ctx.metadata_store.ping():
        services["redis"] = "healthy"
    else:
        services["redis"] = "unhealthy"
        overall_healthy = False

    if ctx.blob_store.is_writable():
        services["cache_dir"] = "healthy"
    else:
        services["cache_dir"] = f"unhealthy: {ctx.blob_store.root} not writable"
        overall_healthy = False

    return DetailedHealthResponse(
        status="healthy" if overall_healthy else "degraded",
        version=VERSION,
        environment=ctx.settings.environment,
        services=services,
        in_flight_fetches=len(ctx.coordinator.flights),
    )
