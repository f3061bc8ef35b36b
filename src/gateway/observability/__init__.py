"""Observability layer for the RAG gateway.

This module provides structured logging, request tracing via correlation IDs,
and redaction of credentials before they are logged.

Usage:
    from gateway.observability import get_logger

    logger = get_logger(__name__)
    logger.info("chat.turn.started", chat_id=chat_id)
"""

from gateway.observability.context import (
    correlation_id_var,
    get_correlation_id,
    set_correlation_id,
)
from gateway.observability.logger import configure_logging, get_logger
from gateway.observability.middleware import (
    CorrelationIDMiddleware,
    RequestLoggingMiddleware,
)
from gateway.observability.sanitizer import sanitize

__all__ = [
    # Context
    "correlation_id_var",
    "get_correlation_id",
    "set_correlation_id",
    # Logger
    "configure_logging",
    "get_logger",
    # Middleware
    "CorrelationIDMiddleware",
    "RequestLoggingMiddleware",
    # Sanitizer
    "sanitize",
]
