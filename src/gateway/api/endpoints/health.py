"""Health check endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from gateway.api.dependencies import get_app_settings, get_discovery
from gateway.core.config import Settings
from gateway.services import DiscoveryService, DiscoveryState

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: Annotated[Settings, Depends(get_app_settings)]) -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": settings.service_name}


@router.get("/ready")
async def ready(
    discovery: Annotated[DiscoveryService, Depends(get_discovery)],
) -> dict:
    """
    Readiness check.

    The gateway is ready once the first discovery round has finished, even
    if it found no capabilities; the count tells the two apart.
    """
    is_ready = discovery.state == DiscoveryState.READY
    return {
        "status": "ready" if is_ready else "not_ready",
        "checks": {
            "discovery": discovery.state.value,
            "capabilities": discovery.capability_count,
            "polling": discovery.is_polling,
        },
    }
