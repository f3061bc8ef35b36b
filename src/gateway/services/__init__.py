"""Services for the RAG gateway."""

from gateway.services.discovery import (
    CapabilityEntry,
    DiscoveryService,
    DiscoveryState,
    capability_label,
    normalize_key,
)
from gateway.services.orchestrator import ChatOrchestrator
from gateway.services.retry import (
    RetryFailure,
    RetryOutcome,
    RetrySuccess,
    backoff_delay,
    retry_with_status,
)

__all__ = [
    "CapabilityEntry",
    "ChatOrchestrator",
    "DiscoveryService",
    "DiscoveryState",
    "RetryFailure",
    "RetryOutcome",
    "RetrySuccess",
    "backoff_delay",
    "capability_label",
    "normalize_key",
    "retry_with_status",
]
