"""Discovery service - which backend serves which (language, domain) mode.

The capability map is rebuilt from scratch on every refresh and published
with a single reference assignment, so concurrent readers always see either
the previous map or the new one, never a partial build.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from gateway.core.endpoints import EndpointRegistry
from gateway.core.errors import AuthError
from gateway.observability import get_logger
from gateway.observability.constants import LogEvents
from gateway.providers.base import LOCAL_BACKEND, RagProvider
from gateway.schemas.rag import CapabilityInfo, CapabilityMode, is_wildcard

logger = get_logger(__name__)

WILDCARD = "*"
MULTILINGUAL_LABEL = "Multilingüe"
GENERAL_LABEL = "General"


class DiscoveryState(str, Enum):
    """Lifecycle of the discovery service."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass(frozen=True)
class CapabilityEntry:
    """A mode and the backend URL that serves it."""

    mode: CapabilityMode
    owner: str


def normalize_key(language: str | None, domain: str | None) -> str:
    """Build the ``"<lang>-<domain>"`` map key, ``*`` standing for "any"."""
    lang = WILDCARD if is_wildcard(language) else language.strip().lower()
    dom = WILDCARD if is_wildcard(domain) else domain.strip().lower()
    return f"{lang}-{dom}"


def capability_label(language: str | None, domain: str | None) -> str:
    lang_label = language.upper() if language else MULTILINGUAL_LABEL
    dom_label = domain[:1].upper() + domain[1:] if domain else GENERAL_LABEL
    return f"{dom_label} · {lang_label}"


class DiscoveryService:
    """
    Polls RAG backends for their modes and routes modes to backends.

    In local mode every capability comes from a single in-process provider
    and is owned by the ``LOCAL_BACKEND`` marker; nothing is polled.

    Attributes:
        fetch_attempts: Attempts per endpoint and refresh
        fetch_backoff: Fixed delay in seconds between attempts
        collision_policy: "last" lets later endpoints override earlier ones
            on the same key, "first" keeps the earliest registration
    """

    def __init__(
        self,
        provider: RagProvider,
        registry: EndpointRegistry | None = None,
        local: bool = False,
        fetch_attempts: int = 3,
        fetch_backoff: float = 1.0,
        collision_policy: Literal["first", "last"] = "last",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.local = local
        self.fetch_attempts = max(1, fetch_attempts)
        self.fetch_backoff = fetch_backoff
        self.collision_policy = collision_policy
        self._sleep = sleep
        self._capabilities: dict[str, CapabilityEntry] = {}
        self._state = DiscoveryState.UNINITIALIZED
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> DiscoveryState:
        return self._state

    @property
    def capability_count(self) -> int:
        return len(self._capabilities)

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    async def initialize(self) -> None:
        """Load the initial capability map."""
        self._state = DiscoveryState.INITIALIZING
        logger.info(LogEvents.DISCOVERY_INIT_STARTED, local=self.local)

        if self.local:
            await self._load_local()
        else:
            await self.refresh()
            if not self._capabilities:
                logger.warning(LogEvents.DISCOVERY_INIT_EMPTY)

        self._state = DiscoveryState.READY

    async def _load_local(self) -> None:
        try:
            modes = await self.provider.get_config()
        except Exception as e:
            logger.error(LogEvents.DISCOVERY_LOCAL_FAILED, error=str(e))
            return

        self._capabilities = self._build_map([(LOCAL_BACKEND, modes)])
        logger.info(LogEvents.DISCOVERY_LOCAL_LOADED, capabilities=sorted(self._capabilities))

    async def refresh(self) -> None:
        """Poll every registered endpoint and publish a new capability map.

        Endpoints that keep failing are skipped. When no endpoint answers at
        all, the previous map is kept.
        """
        urls = self.registry.all_endpoint_urls() if self.registry else []
        if not urls:
            logger.warning(LogEvents.DISCOVERY_REFRESH_COMPLETED, reason="no servers configured")
            self._state = DiscoveryState.READY
            return

        responses: list[tuple[str, list[CapabilityMode]]] = []
        for url in urls:
            modes = await self._fetch_modes(url)
            if modes is not None:
                responses.append((url, modes))

        if responses:
            self._capabilities = self._build_map(responses)
        else:
            logger.warning(
                LogEvents.DISCOVERY_REFRESH_COMPLETED,
                reason="no endpoint responded, keeping previous map",
            )

        self._state = DiscoveryState.READY
        logger.info(
            LogEvents.DISCOVERY_REFRESH_COMPLETED,
            responding=len(responses),
            endpoints=len(urls),
            capabilities=sorted(self._capabilities),
        )

    async def _fetch_modes(self, url: str) -> list[CapabilityMode] | None:
        for attempt in range(1, self.fetch_attempts + 1):
            try:
                return await self.provider.get_config(url)
            except Exception as e:
                if attempt < self.fetch_attempts and not isinstance(e, AuthError):
                    logger.warning(
                        LogEvents.DISCOVERY_ENDPOINT_RETRYING,
                        url=url,
                        attempt=attempt,
                        error=str(e),
                    )
                    await self._sleep(self.fetch_backoff)
                    continue
                logger.error(
                    LogEvents.DISCOVERY_ENDPOINT_FAILED,
                    url=url,
                    attempts=attempt,
                    error=str(e),
                )
                return None
        return None

    def _build_map(
        self, responses: list[tuple[str, list[CapabilityMode]]]
    ) -> dict[str, CapabilityEntry]:
        new_map: dict[str, CapabilityEntry] = {}
        for owner, modes in responses:
            for mode in modes:
                key = normalize_key(mode.language, mode.domain)
                existing = new_map.get(key)
                if existing is not None and existing.owner != owner:
                    logger.info(
                        LogEvents.DISCOVERY_KEY_COLLISION,
                        key=key,
                        kept=owner if self.collision_policy == "last" else existing.owner,
                        dropped=existing.owner if self.collision_policy == "last" else owner,
                    )
                    if self.collision_policy == "first":
                        continue
                new_map[key] = CapabilityEntry(mode=mode, owner=owner)
        return new_map

    def find_backend(self, language: str | None, domain: str | None) -> str | None:
        """Return the backend for a mode: exact, then ``lang-*``, then ``*-domain``."""
        capabilities = self._capabilities
        for key in (
            normalize_key(language, domain),
            normalize_key(language, None),
            normalize_key(None, domain),
        ):
            entry = capabilities.get(key)
            if entry is not None:
                return entry.owner
        return None

    def list_capabilities(self) -> list[CapabilityInfo]:
        """Flatten the map into display-ready entries."""
        result = []
        for entry in self._capabilities.values():
            language = None if is_wildcard(entry.mode.language) else entry.mode.language
            domain = None if is_wildcard(entry.mode.domain) else entry.mode.domain
            result.append(
                CapabilityInfo(
                    language=language,
                    domain=domain,
                    label=capability_label(language, domain),
                )
            )
        return result

    def available_modes(self) -> list[CapabilityMode]:
        """Concrete modes offered to ``/configure`` as candidates."""
        return [e.mode for e in self._capabilities.values() if e.mode.is_concrete]

    def start_polling(self, interval: float) -> None:
        """Refresh every ``interval`` seconds in a background task."""
        if self.local:
            logger.info(LogEvents.DISCOVERY_POLLING_STARTED, skipped="local mode")
            return

        if self._task is not None and not self._task.done():
            self._task.cancel()

        logger.info(LogEvents.DISCOVERY_POLLING_STARTED, interval_s=interval)
        self._task = asyncio.create_task(self._poll_loop(interval))

    async def _poll_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh()
            except Exception as e:
                logger.error(LogEvents.DISCOVERY_POLLING_FAILED, error=str(e), exc_info=True)

    async def stop_polling(self) -> None:
        """Cancel the polling task and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info(LogEvents.DISCOVERY_POLLING_STOPPED)
