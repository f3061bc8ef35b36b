"""Orchestrator service - runs one chat turn against a RAG backend."""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import aclosing

from gateway.core.errors import AuthError, ProtocolError
from gateway.observability import get_logger
from gateway.observability.constants import LogEvents
from gateway.providers.base import RagProvider
from gateway.schemas.chat import Source
from gateway.schemas.events import ContentEvent, StatusEvent, StreamEvent
from gateway.schemas.rag import CapabilityMode, Citation, HistoryMessage, RagChunk
from gateway.services.discovery import DiscoveryService
from gateway.services.retry import RetryFailure, RetrySuccess, retry_with_status
from gateway.store.base import ChatStore

logger = get_logger(__name__)

DEFAULT_LANGUAGE = "es"
DEFAULT_DOMAIN = "general"


class ChatOrchestrator:
    """
    Main orchestrator for a chat turn.

    Coordinates:
    1. Ownership check and persistence of the user message
    2. Mode resolution (explicit, demo defaults, or the master's /configure)
    3. Backend lookup through the discovery service
    4. Opening the prediction stream under retry, with status events
    5. Relaying deltas and persisting the final answer
    """

    def __init__(
        self,
        store: ChatStore,
        provider: RagProvider,
        discovery: DiscoveryService,
        demo_provider: RagProvider,
        retry_max_attempts: int = 3,
        retry_base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.provider = provider
        self.discovery = discovery
        self.demo_provider = demo_provider
        self.retry_max_attempts = retry_max_attempts
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    async def _resolve_mode(
        self,
        provider: RagProvider,
        prompt: str,
        language: str | None,
        domain: str | None,
        demo: bool,
    ) -> CapabilityMode:
        if demo:
            return CapabilityMode(
                language=language or DEFAULT_LANGUAGE,
                domain=domain or DEFAULT_DOMAIN,
            )
        if language and domain:
            return CapabilityMode(language=language, domain=domain)

        return await provider.configure(
            prompt=prompt,
            available_configs=self.discovery.available_modes(),
            language=language or None,
            domain=domain or None,
        )

    async def send_message(
        self,
        user_id: str,
        chat_id: str,
        content: str,
        language: str | None = None,
        domain: str | None = None,
        demo: bool = False,
        title: str | None = None,
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Run one chat turn and stream its events.

        Yields status events (RETRYING/SUCCESS/ERROR) and content deltas. A
        turn that yields an ERROR status produced no assistant message, even
        if some content was relayed before the failure.

        Args:
            user_id: Authenticated user
            chat_id: Target chat, must belong to ``user_id``
            content: The user's prompt
            language: Explicit language, if any
            domain: Explicit domain, if any
            demo: Serve the turn from the demo provider
            title: New chat title, if any

        Yields:
            StreamEvent items
        """
        log = logger.bind(chat_id=chat_id, demo=demo)
        log.info(LogEvents.CHAT_TURN_STARTED, content_length=len(content))

        chat = await self.store.find_chat(chat_id, user_id)
        if chat is None:
            log.warning(LogEvents.CHAT_TURN_FAILED, reason="chat not found")
            yield StatusEvent.error("Chat not found")
            return

        if title:
            await self.store.update_title(chat_id, title)

        await self.store.append_message(chat_id, "user", content)
        history = [
            HistoryMessage(role=m.role, content=m.content)
            for m in await self.store.list_history(chat_id)
        ]

        # 1. Resolve (language, domain)
        provider = self.demo_provider if demo else self.provider
        try:
            mode = await self._resolve_mode(provider, content, language, domain, demo)
        except Exception as e:
            log.error(LogEvents.CHAT_CONFIG_FAILED, error=str(e))
            yield StatusEvent.error("Failed to configure RAG service")
            return

        rag_language = mode.language or DEFAULT_LANGUAGE
        rag_domain = mode.domain or DEFAULT_DOMAIN
        log.info(LogEvents.CHAT_CONFIG_RESOLVED, language=rag_language, domain=rag_domain)

        # 2. Resolve the backend serving that mode
        backend_url: str | None = None
        if not demo:
            backend_url = self.discovery.find_backend(rag_language, rag_domain)
            if backend_url is None:
                log.warning(
                    LogEvents.CHAT_BACKEND_MISSING, language=rag_language, domain=rag_domain
                )
                yield StatusEvent.error(
                    f"No RAG backend available for {rag_language}/{rag_domain}"
                )
                return

        # 3. Open the prediction stream; one chunk proves the connection works
        opened: AsyncGenerator[RagChunk, None] | None = None

        async def open_stream() -> tuple[AsyncGenerator[RagChunk, None], RagChunk]:
            nonlocal opened
            iterator = provider.predict(
                history=history,
                prompt=content,
                language=rag_language,
                domain=rag_domain,
                backend_url=backend_url,
            )
            try:
                first = await iterator.__anext__()
            except StopAsyncIteration:
                raise ProtocolError("Empty stream from RAG provider", url=backend_url) from None
            opened = iterator
            return iterator, first

        outcome: RetrySuccess | RetryFailure | None = None
        try:
            async with aclosing(
                retry_with_status(
                    open_stream,
                    max_attempts=self.retry_max_attempts,
                    base_delay=self.retry_base_delay,
                    non_retryable=(AuthError,),
                    sleep=self._sleep,
                )
            ) as attempts:
                async for item in attempts:
                    if isinstance(item, StatusEvent):
                        yield item
                    else:
                        outcome = item
        finally:
            # An opened stream not yet handed to the relay below is ours to close
            if opened is not None and not isinstance(outcome, RetrySuccess):
                await opened.aclose()

        if not isinstance(outcome, RetrySuccess):
            log.error(
                LogEvents.CHAT_STREAM_FAILED,
                error=str(outcome.error) if outcome else "no outcome",
            )
            return

        iterator, first = outcome.value
        log.info(LogEvents.CHAT_STREAM_CONNECTED, backend=backend_url)

        # 4. Relay deltas
        parts: list[str] = []
        citations: list[Citation] | None = None
        try:
            chunk = first
            while True:
                parts.append(chunk.response)
                if chunk.contexts is not None:
                    citations = chunk.contexts
                yield ContentEvent(delta=chunk.response, citations=chunk.contexts)

                try:
                    chunk = await iterator.__anext__()
                except StopAsyncIteration:
                    break
        except Exception as e:
            log.error(LogEvents.CHAT_STREAM_FAILED, error=str(e), phase="streaming")
            yield StatusEvent.error(str(e) or type(e).__name__)
            return
        finally:
            await iterator.aclose()

        # 5. Persist the answer
        full_response = "".join(parts)
        if not full_response:
            log.info(LogEvents.CHAT_TURN_COMPLETED, persisted=False)
            return

        sources = (
            [Source(title=c.title, url=c.url or "") for c in citations] if citations else None
        )
        await self.store.append_message(chat_id, "assistant", full_response, sources)
        log.info(
            LogEvents.CHAT_RESPONSE_PERSISTED,
            response_length=len(full_response),
            sources=len(sources or []),
        )
