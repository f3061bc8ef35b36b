"""Shared pytest fixtures and configuration."""

from collections.abc import AsyncGenerator, Iterator, Sequence

import pytest
from fastapi.testclient import TestClient

from gateway.api.dependencies import ServiceContainer
from gateway.core.config import Settings
from gateway.core.endpoints import EndpointRegistry
from gateway.main import create_app
from gateway.providers import MockRagProvider, RagProvider
from gateway.schemas import CapabilityMode, HistoryMessage, RagChunk
from gateway.services import ChatOrchestrator, DiscoveryService
from gateway.store import InMemoryChatStore

ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedProvider(RagProvider):
    """RAG provider whose answers are scripted per call.

    ``configs`` maps a backend URL to the modes it serves, or to an exception
    raised on every fetch. Each entry of ``predict_scripts`` is consumed by
    one ``predict`` call: an exception fails the call, a list of chunks is
    streamed.
    """

    def __init__(
        self,
        configs: dict[str, list[CapabilityMode] | Exception] | None = None,
        predict_scripts: list[list[RagChunk] | Exception] | None = None,
        configured: CapabilityMode | Exception | None = None,
        fail_after: int | None = None,
    ) -> None:
        self.configs = configs or {}
        self.predict_scripts = list(predict_scripts or [])
        self.configured = configured
        self.fail_after = fail_after
        self.config_calls: list[str | None] = []
        self.configure_calls: list[dict] = []
        self.predict_calls: list[dict] = []
        self.closed_streams = 0

    async def get_config(self, backend_url: str | None = None) -> list[CapabilityMode]:
        self.config_calls.append(backend_url)
        result = self.configs.get(backend_url or "local", [])
        if isinstance(result, Exception):
            raise result
        return result

    async def configure(
        self,
        prompt: str,
        available_configs: Sequence[CapabilityMode],
        language: str | None = None,
        domain: str | None = None,
    ) -> CapabilityMode:
        self.configure_calls.append(
            {
                "prompt": prompt,
                "available_configs": list(available_configs),
                "language": language,
                "domain": domain,
            }
        )
        if isinstance(self.configured, Exception):
            raise self.configured
        return self.configured or CapabilityMode(language="es", domain="general")

    async def predict(
        self,
        history: Sequence[HistoryMessage],
        prompt: str,
        language: str,
        domain: str,
        backend_url: str | None = None,
    ) -> AsyncGenerator[RagChunk, None]:
        self.predict_calls.append(
            {
                "history": list(history),
                "prompt": prompt,
                "language": language,
                "domain": domain,
                "backend_url": backend_url,
            }
        )
        script = self.predict_scripts.pop(0) if self.predict_scripts else []
        if isinstance(script, Exception):
            raise script

        try:
            for index, chunk in enumerate(script):
                if self.fail_after is not None and index == self.fail_after:
                    raise ConnectionError("backend went away")
                yield chunk
        finally:
            self.closed_streams += 1


def fast_mock_provider(**kwargs) -> MockRagProvider:
    """Mock provider without artificial delays."""
    return MockRagProvider(initial_delay=0, chunk_delay=0, **kwargs)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def settings() -> Settings:
    """Mock-mode settings with two known sessions."""
    return Settings(
        provider="mock",
        session_tokens={ALICE_TOKEN: "alice", BOB_TOKEN: "bob"},
        retry_base_delay=0.0,
    )


@pytest.fixture
def registry() -> EndpointRegistry:
    """Registry with an authenticated master and an anonymous second server."""
    registry = EndpointRegistry()
    registry.initialize(
        ["http://rag-a:8000", "http://rag-b:8000"],
        ["alice:secret", ""],
        "http://rag-a:8000",
    )
    return registry


@pytest.fixture
def container(settings: Settings) -> ServiceContainer:
    """Mock-mode services with an instant mock provider."""
    provider = fast_mock_provider()
    demo_provider = fast_mock_provider()
    discovery = DiscoveryService(provider, local=True)
    store = InMemoryChatStore(sessions=settings.session_tokens)
    orchestrator = ChatOrchestrator(
        store=store,
        provider=provider,
        discovery=discovery,
        demo_provider=demo_provider,
        retry_base_delay=0.0,
    )
    return ServiceContainer(
        settings=settings,
        store=store,
        provider=provider,
        demo_provider=demo_provider,
        discovery=discovery,
        orchestrator=orchestrator,
    )


@pytest.fixture
def client(container: ServiceContainer) -> Iterator[TestClient]:
    """Test client with the lifespan (discovery) running."""
    app = create_app(container=container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ALICE_TOKEN}"}
