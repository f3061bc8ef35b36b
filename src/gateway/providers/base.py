"""Contract shared by every RAG provider (remote backends and the local mock)."""

from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Sequence

from gateway.schemas.rag import CapabilityMode, HistoryMessage, RagChunk

# Owner recorded in the capability map for modes served by a local provider
LOCAL_BACKEND = "local"


class RagProvider(ABC):
    """A source of RAG capabilities, mode resolution and predictions."""

    @abstractmethod
    async def get_config(self, backend_url: str | None = None) -> list[CapabilityMode]:
        """Return the modes served by ``backend_url`` (ignored by local providers)."""

    @abstractmethod
    async def configure(
        self,
        prompt: str,
        available_configs: Sequence[CapabilityMode],
        language: str | None = None,
        domain: str | None = None,
    ) -> CapabilityMode:
        """Pick the (language, domain) that best fits ``prompt``."""

    @abstractmethod
    def predict(
        self,
        history: Sequence[HistoryMessage],
        prompt: str,
        language: str,
        domain: str,
        backend_url: str | None = None,
    ) -> AsyncGenerator[RagChunk, None]:
        """Stream the answer as deltas.

        Each yielded chunk carries only the text added since the previous
        chunk, plus citations when the backend sent any.
        """
