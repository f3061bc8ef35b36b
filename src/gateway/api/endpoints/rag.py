"""RAG capability endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from gateway.api.dependencies import get_discovery
from gateway.services import DiscoveryService

router = APIRouter(prefix="/rag", tags=["rag"])


@router.get("/capabilities")
async def capabilities(
    discovery: Annotated[DiscoveryService, Depends(get_discovery)],
) -> dict:
    """
    List the (language, domain) modes currently served.

    Wildcard fields come back as ``null``; ``label`` is ready for display.
    """
    return {"modes": [c.model_dump() for c in discovery.list_capabilities()]}
