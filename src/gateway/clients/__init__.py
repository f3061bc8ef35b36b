"""Clients package - HTTP clients for RAG backends."""

from gateway.clients.rag_backend import RagBackendClient
from gateway.clients.sse import is_peer_closed, parse_sse_stream

__all__ = [
    "RagBackendClient",
    "parse_sse_stream",
    "is_peer_closed",
]
