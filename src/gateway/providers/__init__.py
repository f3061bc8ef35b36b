"""Providers package - sources of RAG capabilities and predictions."""

from gateway.providers.base import LOCAL_BACKEND, RagProvider
from gateway.providers.mock import MockRagProvider, SimulatedFailureError

__all__ = [
    "LOCAL_BACKEND",
    "RagProvider",
    "MockRagProvider",
    "SimulatedFailureError",
]
