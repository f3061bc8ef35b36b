"""Store package - chat persistence and session lookup."""

from gateway.store.base import ChatStore
from gateway.store.memory import InMemoryChatStore

__all__ = ["ChatStore", "InMemoryChatStore"]
