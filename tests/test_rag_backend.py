"""Tests for the RAG backend HTTP client."""

import base64
import json
from collections.abc import AsyncIterator

import httpx
import pytest
import respx

from gateway.clients import RagBackendClient
from gateway.core.endpoints import EndpointRegistry
from gateway.core.errors import (
    AuthError,
    BackendConnectionError,
    BackendTimeoutError,
    ConfigError,
    HttpError,
    ProtocolError,
)
from gateway.schemas.rag import CapabilityMode, HistoryMessage, RagChunk

MASTER = "http://rag-a:8000"
ANONYMOUS = "http://rag-b:8000"
ALICE_AUTH = "Basic " + base64.b64encode(b"alice:secret").decode("ascii")


def _sse(*payloads: dict) -> bytes:
    return "".join(f"data: {json.dumps(p)}\n\n" for p in payloads).encode("utf-8")


class _ClosingStream(httpx.AsyncByteStream):
    """Body that hangs up after sending ``parts``."""

    def __init__(self, *parts: bytes) -> None:
        self.parts = parts

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for part in self.parts:
            yield part
        raise httpx.RemoteProtocolError(
            "peer closed connection without sending complete message body"
        )


@pytest.fixture
def backend(registry: EndpointRegistry) -> RagBackendClient:
    return RagBackendClient(registry, config_timeout=1.0, request_timeout=1.0)


async def _predict(backend: RagBackendClient, url: str = MASTER) -> list[RagChunk]:
    stream = backend.predict(
        history=[HistoryMessage(role="user", content="Kaixo")],
        prompt="Kaixo",
        language="eu",
        domain="legal",
        backend_url=url,
    )
    return [chunk async for chunk in stream]


class TestGetConfig:
    """Tests for RagBackendClient.get_config()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_modes_with_auth(self, backend: RagBackendClient):
        route = respx.get(f"{MASTER}/get_config").mock(
            return_value=httpx.Response(
                200,
                json={"modes": [{"language": "es", "domain": "legal"}, {"language": "eu"}]},
            )
        )

        modes = await backend.get_config(MASTER)

        assert modes == [
            CapabilityMode(language="es", domain="legal"),
            CapabilityMode(language="eu", domain=None),
        ]
        assert route.calls.last.request.headers["Authorization"] == ALICE_AUTH

    @pytest.mark.asyncio
    @respx.mock
    async def test_anonymous_endpoint_sends_no_auth(self, backend: RagBackendClient):
        route = respx.get(f"{ANONYMOUS}/get_config").mock(
            return_value=httpx.Response(200, json={"modes": []})
        )

        assert await backend.get_config(ANONYMOUS) == []
        assert "Authorization" not in route.calls.last.request.headers

    @pytest.mark.asyncio
    @respx.mock
    async def test_unauthorized(self, backend: RagBackendClient):
        respx.get(f"{MASTER}/get_config").mock(return_value=httpx.Response(401))

        with pytest.raises(AuthError) as exc_info:
            await backend.get_config(MASTER)
        assert exc_info.value.url == MASTER

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error(self, backend: RagBackendClient):
        respx.get(f"{MASTER}/get_config").mock(return_value=httpx.Response(503))

        with pytest.raises(HttpError) as exc_info:
            await backend.get_config(MASTER)
        assert exc_info.value.status_code == 503
        assert str(exc_info.value) == "HTTP 503: Service Unavailable"

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self, backend: RagBackendClient):
        respx.get(f"{MASTER}/get_config").mock(side_effect=httpx.ConnectTimeout("timed out"))

        with pytest.raises(BackendTimeoutError):
            await backend.get_config(MASTER)

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_error(self, backend: RagBackendClient):
        respx.get(f"{MASTER}/get_config").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        with pytest.raises(BackendConnectionError):
            await backend.get_config(MASTER)

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_payload(self, backend: RagBackendClient):
        respx.get(f"{MASTER}/get_config").mock(
            return_value=httpx.Response(200, content=b"not json")
        )

        with pytest.raises(ProtocolError):
            await backend.get_config(MASTER)

    @pytest.mark.asyncio
    async def test_requires_url(self, backend: RagBackendClient):
        with pytest.raises(ConfigError):
            await backend.get_config(None)


class TestConfigure:
    """Tests for RagBackendClient.configure()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_posts_to_master(self, backend: RagBackendClient):
        route = respx.post(f"{MASTER}/configure").mock(
            return_value=httpx.Response(200, json={"language": "eu", "domain": "legal"})
        )
        candidates = [CapabilityMode(language="eu", domain="legal")]

        result = await backend.configure("Zer dio legeak?", candidates, language="eu")

        assert result == CapabilityMode(language="eu", domain="legal")
        request = route.calls.last.request
        assert request.headers["Authorization"] == ALICE_AUTH
        body = json.loads(request.content)
        assert body["prompt"] == "Zer dio legeak?"
        assert body["available_configs"] == [{"language": "eu", "domain": "legal"}]
        assert body["language"] == "eu"
        assert body["domain"] is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_incomplete_answer_rejected(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/configure").mock(
            return_value=httpx.Response(200, json={"language": "eu", "domain": None})
        )

        with pytest.raises(ProtocolError):
            await backend.configure("prompt", [])

    @pytest.mark.asyncio
    @respx.mock
    async def test_unauthorized(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/configure").mock(return_value=httpx.Response(401))

        with pytest.raises(AuthError):
            await backend.configure("prompt", [])

    @pytest.mark.asyncio
    async def test_requires_master(self):
        with pytest.raises(ConfigError):
            await RagBackendClient(EndpointRegistry()).configure("prompt", [])


class TestPredict:
    """Tests for RagBackendClient.predict()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_cumulative_responses_become_deltas(self, backend: RagBackendClient):
        route = respx.post(f"{MASTER}/predict").mock(
            return_value=httpx.Response(
                200,
                content=_sse(
                    {"response": "Hi"},
                    {"response": "Hi there"},
                    {"response": "Hi there!", "contexts": [{"title": "Doc", "url": "u"}]},
                )
                + b"data: [DONE]\n\n",
                headers={"content-type": "text/event-stream"},
            )
        )

        chunks = await _predict(backend)

        assert [c.response for c in chunks] == ["Hi", " there", "!"]
        assert chunks[0].contexts is None
        assert chunks[2].contexts[0].title == "Doc"

        request = route.calls.last.request
        assert request.headers["Authorization"] == ALICE_AUTH
        body = json.loads(request.content)
        assert body["history"] == [{"role": "user", "content": "Kaixo"}]
        assert (body["language"], body["domain"]) == ("eu", "legal")

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_deltas_without_contexts_suppressed(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/predict").mock(
            return_value=httpx.Response(
                200,
                content=_sse(
                    {"response": ""},
                    {"response": "A"},
                    {"response": "A"},
                    {"response": "A", "contexts": []},
                ),
            )
        )

        chunks = await _predict(backend)

        assert chunks == [RagChunk(response="A"), RagChunk(response="", contexts=[])]

    @pytest.mark.asyncio
    @respx.mock
    async def test_peer_close_ends_stream(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/predict").mock(
            return_value=httpx.Response(
                200,
                stream=_ClosingStream(_sse({"response": "Hal"}, {"response": "Hallo"})),
            )
        )

        chunks = await _predict(backend)

        assert [c.response for c in chunks] == ["Hal", "lo"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_unauthorized(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/predict").mock(
            return_value=httpx.Response(401, json={"detail": "bad credentials"})
        )

        with pytest.raises(AuthError):
            await _predict(backend)

    @pytest.mark.asyncio
    @respx.mock
    async def test_http_error(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/predict").mock(
            return_value=httpx.Response(500, json={"detail": "boom"})
        )

        with pytest.raises(HttpError) as exc_info:
            await _predict(backend)
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/predict").mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(BackendTimeoutError):
            await _predict(backend)

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_refused(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/predict").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        with pytest.raises(BackendConnectionError):
            await _predict(backend)

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_event(self, backend: RagBackendClient):
        respx.post(f"{MASTER}/predict").mock(
            return_value=httpx.Response(200, content=b"data: {oops}\n\n")
        )

        with pytest.raises(ProtocolError):
            await _predict(backend)

    @pytest.mark.asyncio
    async def test_requires_backend_url(self, backend: RagBackendClient):
        with pytest.raises(ConfigError):
            await _predict(backend, url="")
