"""Static registry of RAG backend endpoints and their credentials."""

from __future__ import annotations

import base64
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gateway.core.errors import ConfigError
from gateway.observability import get_logger
from gateway.observability.constants import LogEvents

if TYPE_CHECKING:
    from gateway.core.config import Settings

logger = get_logger(__name__)


@dataclass(frozen=True)
class Endpoint:
    """A RAG backend endpoint."""

    url: str
    basic_auth_user: str | None = None
    basic_auth_password: str | None = None
    is_master: bool = False

    @property
    def has_credentials(self) -> bool:
        return self.basic_auth_user is not None


def parse_credentials(credential: str) -> tuple[str, str]:
    """Split a ``user:password`` string on its first colon.

    Raises:
        ConfigError: If the string has no ``:`` separator.
    """
    user, sep, password = credential.partition(":")
    if not sep:
        raise ConfigError("Invalid credential format. Expected user:password")
    return user, password


class EndpointRegistry:
    """Holds the backend endpoints, their Basic-Auth credentials and the master.

    Initialize once, read many: all validation happens before any state is
    assigned, so a failed ``initialize`` leaves the registry untouched.
    """

    def __init__(self) -> None:
        self._endpoints: tuple[Endpoint, ...] = ()
        self._by_url: dict[str, Endpoint] = {}
        self._master_url = ""
        self._initialized = False

    def initialize_from_settings(self, settings: Settings) -> None:
        """Initialize from ``RAG_*`` settings."""
        self.initialize(
            settings.server_urls,
            settings.credential_list,
            settings.master_url,
            strict=settings.credentials_strict,
        )

    def initialize(
        self,
        endpoint_urls: Sequence[str],
        credential_strings: Sequence[str],
        master_url: str,
        strict: bool = False,
    ) -> None:
        """Validate and register the endpoints.

        Args:
            endpoint_urls: Backend base URLs.
            credential_strings: Positional ``user:password`` strings; an empty
                entry means the endpoint is called anonymously.
            master_url: The endpoint answering ``/configure``.
            strict: Require exactly one non-empty credential per endpoint.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        if self._initialized:
            return

        urls = [u.strip() for u in endpoint_urls if u and u.strip()]
        credentials = [c.strip() for c in credential_strings]
        master_url = master_url.strip()

        if not urls:
            raise ConfigError("RAG_SERVERS is required when RAG_PROVIDER=real")
        if not master_url:
            raise ConfigError("RAG_MASTER_URL is required when RAG_PROVIDER=real")
        if master_url not in urls:
            raise ConfigError("RAG_MASTER_URL must be one of RAG_SERVERS")
        duplicates = sorted({u for u in urls if urls.count(u) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate RAG_SERVERS entries: {', '.join(duplicates)}")
        if strict:
            if len(credentials) != len(urls):
                raise ConfigError(
                    f"Expected {len(urls)} credentials for {len(urls)} servers, "
                    f"got {len(credentials)}"
                )
            if not all(credentials):
                raise ConfigError("Every server requires credentials in strict mode")

        endpoints: list[Endpoint] = []
        for index, url in enumerate(urls):
            raw = credentials[index] if index < len(credentials) else ""
            user: str | None = None
            password: str | None = None
            if raw:
                user, password = parse_credentials(raw)
            endpoints.append(
                Endpoint(
                    url=url,
                    basic_auth_user=user,
                    basic_auth_password=password,
                    is_master=url == master_url,
                )
            )

        self._endpoints = tuple(endpoints)
        self._by_url = {e.url: e for e in endpoints}
        self._master_url = master_url
        self._initialized = True

        logger.info(
            LogEvents.REGISTRY_INITIALIZED,
            server_count=len(endpoints),
            master_url=master_url,
            with_credentials=[e.url for e in endpoints if e.has_credentials],
            without_credentials=[e.url for e in endpoints if not e.has_credentials],
        )

    def auth_header_for(self, url: str) -> dict[str, str]:
        """Return a Basic-Auth header for ``url``, or ``{}`` without credentials."""
        endpoint = self._by_url.get(url)
        if endpoint is None or not endpoint.has_credentials:
            logger.warning(LogEvents.REGISTRY_CREDENTIALS_MISSING, url=url)
            return {}

        raw = f"{endpoint.basic_auth_user}:{endpoint.basic_auth_password or ''}"
        encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    def master_url(self) -> str:
        return self._master_url

    def all_endpoint_urls(self) -> list[str]:
        return [e.url for e in self._endpoints]

    def endpoints(self) -> tuple[Endpoint, ...]:
        return self._endpoints

    def is_initialized(self) -> bool:
        return self._initialized
