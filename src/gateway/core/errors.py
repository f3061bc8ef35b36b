"""Exception hierarchy for the RAG gateway."""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base exception for all gateway errors."""

    def __init__(self, message: str, detail: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ConfigError(GatewayError):
    """Raised when static configuration is invalid. Fatal at startup."""


class NotFoundError(GatewayError):
    """Raised when a chat or a backend for a mode cannot be found."""


class BackendError(GatewayError):
    """Base error for failures talking to a RAG backend."""

    def __init__(self, message: str, url: str | None = None, detail: Any = None) -> None:
        super().__init__(message, detail=detail)
        self.url = url


class AuthError(BackendError):
    """Raised when a backend rejects our credentials (401)."""

    def __init__(self, url: str | None = None, detail: Any = None) -> None:
        super().__init__("Authentication failed", url=url, detail=detail)


class HttpError(BackendError):
    """Raised when a backend answers with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        reason: str = "",
        url: str | None = None,
        detail: Any = None,
    ) -> None:
        message = f"HTTP {status_code}: {reason}" if reason else f"HTTP {status_code}"
        super().__init__(message, url=url, detail=detail)
        self.status_code = status_code


class BackendTimeoutError(BackendError):
    """Raised when a backend call exceeds its deadline."""


class BackendConnectionError(BackendError):
    """Raised when a backend cannot be reached."""


class ProtocolError(BackendError):
    """Raised for malformed SSE or JSON payloads."""
