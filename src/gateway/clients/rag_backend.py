"""Client for the RAG backend HTTP protocol.

Each backend exposes three routes:

- ``GET  /get_config`` - the (language, domain) modes it serves
- ``POST /configure``  - pick a mode for a prompt (master backend only)
- ``POST /predict``    - SSE stream of cumulative answers with citations

Every call carries the Basic-Auth header registered for that exact URL.
"""

import time
from collections.abc import AsyncGenerator, Sequence

import httpx
from pydantic import ValidationError

from gateway.clients.sse import is_peer_closed, parse_sse_stream
from gateway.core.endpoints import EndpointRegistry
from gateway.core.errors import (
    AuthError,
    BackendConnectionError,
    BackendError,
    BackendTimeoutError,
    ConfigError,
    HttpError,
    ProtocolError,
)
from gateway.observability import get_logger
from gateway.observability.constants import LogEvents
from gateway.observability.sanitizer import sanitize_headers
from gateway.providers.base import RagProvider
from gateway.schemas.rag import (
    CapabilityList,
    CapabilityMode,
    ConfigureRequest,
    HistoryMessage,
    PredictRequest,
    RagChunk,
)

logger = get_logger(__name__)


class RagBackendClient(RagProvider):
    """Provider that talks to remote RAG backends over HTTP."""

    def __init__(
        self,
        registry: EndpointRegistry,
        config_timeout: float = 5.0,
        request_timeout: float = 30.0,
    ):
        self.registry = registry
        self.config_timeout = config_timeout
        self.request_timeout = request_timeout

    def _headers(self, url: str) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(self.registry.auth_header_for(url))
        logger.debug("backend.request.headers", url=url, headers=sanitize_headers(headers))
        return headers

    def _check_response(self, response: httpx.Response, url: str) -> None:
        if response.status_code == 401:
            logger.error(LogEvents.BACKEND_AUTH_FAILED, url=url)
            raise AuthError(url=url)
        if not response.is_success:
            raise HttpError(response.status_code, response.reason_phrase, url=url)

    async def get_config(self, backend_url: str | None = None) -> list[CapabilityMode]:
        """
        Fetch the modes served by a backend.

        Args:
            backend_url: Base URL of the backend

        Returns:
            List of capability modes

        Raises:
            BackendError: If the request fails or the payload is malformed
        """
        if not backend_url:
            raise ConfigError("backend_url is required to fetch a backend config")

        start_time = time.perf_counter()
        config_url = f"{backend_url.rstrip('/')}/get_config"

        async with httpx.AsyncClient(timeout=httpx.Timeout(self.config_timeout)) as client:
            try:
                response = await client.get(config_url, headers=self._headers(backend_url))
                self._check_response(response, backend_url)
                config = CapabilityList.model_validate(response.json())
            except httpx.TimeoutException as e:
                logger.error(
                    LogEvents.BACKEND_CONFIG_FAILED,
                    url=backend_url,
                    reason="timeout",
                    timeout_s=self.config_timeout,
                )
                raise BackendTimeoutError(
                    f"Timeout fetching config from {backend_url}", url=backend_url
                ) from e
            except httpx.RequestError as e:
                logger.error(LogEvents.BACKEND_CONFIG_FAILED, url=backend_url, error=str(e))
                raise BackendConnectionError(f"Network error: {e}", url=backend_url) from e
            except (ValueError, ValidationError) as e:
                raise ProtocolError(
                    f"Malformed config from {backend_url}: {e}", url=backend_url
                ) from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            LogEvents.BACKEND_CONFIG_FETCHED,
            url=backend_url,
            modes_count=len(config.modes),
            latency_ms=latency_ms,
        )
        return config.modes

    async def configure(
        self,
        prompt: str,
        available_configs: Sequence[CapabilityMode],
        language: str | None = None,
        domain: str | None = None,
    ) -> CapabilityMode:
        """
        Ask the master backend which mode fits a prompt.

        Args:
            prompt: The user's prompt
            available_configs: Concrete modes currently routable
            language: Language hint, if any
            domain: Domain hint, if any

        Returns:
            The resolved mode

        Raises:
            BackendError: If the request fails or the payload is malformed
        """
        master_url = self.registry.master_url()
        if not master_url:
            raise ConfigError("Master URL not configured")

        configure_url = f"{master_url.rstrip('/')}/configure"
        body = ConfigureRequest(
            prompt=prompt,
            available_configs=list(available_configs),
            language=language,
            domain=domain,
        )

        async with httpx.AsyncClient(timeout=httpx.Timeout(self.config_timeout)) as client:
            try:
                response = await client.post(
                    configure_url,
                    json=body.model_dump(),
                    headers=self._headers(master_url),
                )
                self._check_response(response, master_url)
                result = CapabilityMode.model_validate(response.json())
            except httpx.TimeoutException as e:
                logger.error(
                    LogEvents.BACKEND_CONFIGURE_FAILED,
                    url=master_url,
                    reason="timeout",
                    timeout_s=self.config_timeout,
                )
                raise BackendTimeoutError(
                    f"Timeout during configure at {master_url}", url=master_url
                ) from e
            except httpx.RequestError as e:
                logger.error(LogEvents.BACKEND_CONFIGURE_FAILED, url=master_url, error=str(e))
                raise BackendConnectionError(f"Network error: {e}", url=master_url) from e
            except (ValueError, ValidationError) as e:
                raise ProtocolError(
                    f"Malformed configure response from {master_url}: {e}", url=master_url
                ) from e

        if not result.is_concrete:
            raise ProtocolError(
                f"Master returned an incomplete configuration: {result.model_dump()}",
                url=master_url,
            )

        logger.info(
            LogEvents.BACKEND_CONFIGURE_COMPLETED,
            url=master_url,
            language=result.language,
            domain=result.domain,
        )
        return result

    async def predict(
        self,
        history: Sequence[HistoryMessage],
        prompt: str,
        language: str,
        domain: str,
        backend_url: str | None = None,
    ) -> AsyncGenerator[RagChunk, None]:
        """
        Stream a prediction from a backend as deltas.

        The backend repeats the whole answer in every event; only the new
        suffix is yielded. A server hanging up mid-stream ends the stream
        cleanly.

        Args:
            history: Prior turns of the conversation
            prompt: The user's prompt
            language: Resolved language
            domain: Resolved domain
            backend_url: Base URL of the backend serving this mode

        Yields:
            RagChunk with the delta text and citations (if sent)

        Raises:
            BackendError: If the request fails before or during streaming
        """
        if not backend_url:
            raise ConfigError("backend_url is required to stream a prediction")

        predict_url = f"{backend_url.rstrip('/')}/predict"
        body = PredictRequest(
            history=list(history),
            prompt=prompt,
            language=language,
            domain=domain,
        )

        logger.info(
            LogEvents.BACKEND_PREDICT_STARTED,
            url=backend_url,
            language=language,
            domain=domain,
        )

        previous = ""
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.request_timeout)) as client:
            try:
                async with client.stream(
                    "POST",
                    predict_url,
                    json=body.model_dump(),
                    headers={**self._headers(backend_url), "Accept": "text/event-stream"},
                ) as response:
                    if not response.is_success:
                        await response.aread()
                    self._check_response(response, backend_url)

                    async for chunk in parse_sse_stream(response.aiter_bytes(), RagChunk):
                        delta = chunk.response[len(previous):]
                        previous = chunk.response

                        if delta or chunk.contexts is not None:
                            yield RagChunk(response=delta, contexts=chunk.contexts)

            except BackendError:
                raise
            except httpx.TimeoutException as e:
                logger.error(
                    LogEvents.BACKEND_PREDICT_FAILED,
                    url=backend_url,
                    reason="timeout",
                    timeout_s=self.request_timeout,
                )
                raise BackendTimeoutError(
                    f"Timeout during predict at {backend_url}", url=backend_url
                ) from e
            except httpx.RequestError as e:
                if is_peer_closed(e):
                    logger.info(LogEvents.BACKEND_PREDICT_CLOSED, url=backend_url)
                    return
                logger.error(LogEvents.BACKEND_PREDICT_FAILED, url=backend_url, error=str(e))
                raise BackendConnectionError(f"Network error: {e}", url=backend_url) from e

        logger.info(
            LogEvents.BACKEND_PREDICT_COMPLETED,
            url=backend_url,
            response_length=len(previous),
        )
