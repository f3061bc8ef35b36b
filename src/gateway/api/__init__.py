"""API package for the RAG gateway."""

from gateway.api.router import api_router, health_router

__all__ = ["api_router", "health_router"]
