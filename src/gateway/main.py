"""Main FastAPI application for the RAG gateway service."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gateway import __version__
from gateway.api import api_router, health_router
from gateway.api.dependencies import ServiceContainer
from gateway.clients import RagBackendClient
from gateway.core.config import Settings, get_settings
from gateway.core.endpoints import EndpointRegistry
from gateway.observability import (
    CorrelationIDMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
    get_logger,
    sanitize,
)
from gateway.observability.handlers import register_exception_handlers
from gateway.providers import MockRagProvider, RagProvider
from gateway.services import ChatOrchestrator, DiscoveryService
from gateway.store import InMemoryChatStore

# Get settings for logging configuration
_settings = get_settings()

# Configure structured logging
configure_logging(
    log_level=_settings.log_level,
    log_format=_settings.log_format if not _settings.debug else "console",
    development_mode=_settings.debug,
)
logger = get_logger(__name__)


def build_container(settings: Settings) -> ServiceContainer:
    """Wire the gateway services for ``settings``.

    In mock mode every chat turn is served by the local provider and
    discovery reads its modes in-process. In real mode the backend client
    talks to the configured servers through the endpoint registry.
    """
    registry: EndpointRegistry | None = None
    provider: RagProvider
    if settings.is_mock:
        provider = MockRagProvider(simulate_failures=settings.mock_simulate_failures)
    else:
        registry = EndpointRegistry()
        provider = RagBackendClient(
            registry,
            config_timeout=settings.config_timeout,
            request_timeout=settings.request_timeout,
        )

    demo_provider = MockRagProvider()

    discovery = DiscoveryService(
        provider,
        registry=registry,
        local=settings.is_mock,
        fetch_attempts=settings.discovery_fetch_attempts,
        fetch_backoff=settings.discovery_fetch_backoff,
        collision_policy=settings.discovery_collision_policy,
    )
    store = InMemoryChatStore(sessions=settings.session_tokens)
    orchestrator = ChatOrchestrator(
        store=store,
        provider=provider,
        discovery=discovery,
        demo_provider=demo_provider,
        retry_max_attempts=settings.retry_max_attempts,
        retry_base_delay=settings.retry_base_delay,
    )

    return ServiceContainer(
        settings=settings,
        store=store,
        provider=provider,
        demo_provider=demo_provider,
        discovery=discovery,
        orchestrator=orchestrator,
        registry=registry,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    container: ServiceContainer = app.state.container
    settings = container.settings
    logger.info(f"Starting {settings.service_name}")
    logger.info(f"Provider: {settings.provider}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.debug("Configuration loaded", config=sanitize(settings.model_dump()))

    # Invalid static configuration is fatal: ConfigError propagates
    if container.registry is not None:
        container.registry.initialize_from_settings(settings)

    await container.discovery.initialize()
    container.discovery.start_polling(settings.discovery_interval)

    yield

    await container.discovery.stop_polling()
    logger.info(f"Shutting down {settings.service_name}")


def create_app(
    settings: Settings | None = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or (container.settings if container else get_settings())

    app = FastAPI(
        title="RAG Gateway",
        description="""
Chat gateway in front of a fleet of RAG backends.

## Features

- **Discovery**: Polls backends for the (language, domain) modes they serve
- **Routing**: Picks the backend for a mode, with wildcard fallbacks
- **Resilience**: Retries failed connections and reports progress as events
- **Streaming**: Relays incremental answers over SSE and persists them

## Workflow

1. Frontend sends a message to a chat
2. Gateway resolves the mode (explicit, or via the master's /configure)
3. Gateway finds the backend serving that mode
4. Backend answer is streamed back as deltas
5. The final answer and its citations are stored with the chat
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.container = container or build_container(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware executes in reverse order of addition, so add RequestLogging first
    app.add_middleware(
        RequestLoggingMiddleware,
        exclude_paths={"/health", "/ready", "/docs", "/openapi.json", "/redoc"},
    )
    app.add_middleware(CorrelationIDMiddleware)

    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router)  # /health, /ready
    app.include_router(api_router)  # /api/v1/chats, /api/v1/rag/capabilities

    return app


# Create the app instance
app = create_app()


def run() -> None:
    """Serve the gateway with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "gateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
