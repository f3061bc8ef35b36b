"""FastAPI dependencies for the gateway API.

Services are built once per application in ``create_app`` and stored on
``app.state.container``; the dependencies below only look them up.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from gateway.core.config import Settings
from gateway.core.endpoints import EndpointRegistry
from gateway.observability import get_logger
from gateway.observability.constants import LogEvents
from gateway.providers.base import RagProvider
from gateway.services import ChatOrchestrator, DiscoveryService
from gateway.store import ChatStore

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything the routes need, wired together at startup."""

    settings: Settings
    store: ChatStore
    provider: RagProvider
    demo_provider: RagProvider
    discovery: DiscoveryService
    orchestrator: ChatOrchestrator
    registry: EndpointRegistry | None = None


def get_container(request: Request) -> ServiceContainer:
    """Get the service container of the running application."""
    return request.app.state.container


def get_app_settings(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> Settings:
    return container.settings


def get_store(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ChatStore:
    return container.store


def get_discovery(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> DiscoveryService:
    return container.discovery


def get_orchestrator(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ChatOrchestrator:
    return container.orchestrator


def get_optional_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the bearer token from Authorization header if present."""
    if not authorization:
        return None

    # Handle "Bearer <token>" format
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None

    return authorization


async def get_current_user(
    store: Annotated[ChatStore, Depends(get_store)],
    token: Annotated[str | None, Depends(get_optional_token)],
) -> str:
    """Resolve the session token to a user id or reject with 401."""
    user_id = await store.get_session_user(token) if token else None
    if user_id is None:
        logger.warning(LogEvents.ERROR_UNAUTHORIZED, has_token=token is not None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
