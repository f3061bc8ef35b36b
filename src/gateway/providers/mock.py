"""Local RAG provider backed by canned demo scenarios."""

import asyncio
from collections.abc import AsyncGenerator, Sequence

from gateway.observability import get_logger
from gateway.providers.base import RagProvider
from gateway.providers.scenarios import DEMO_SCENARIOS, FALLBACK_RESPONSE
from gateway.schemas.rag import CapabilityMode, Citation, HistoryMessage, RagChunk

logger = get_logger(__name__)

DEFAULT_LANGUAGE = "es"
DEFAULT_DOMAIN = "general"
SIMULATED_FAILURES = 2


class SimulatedFailureError(RuntimeError):
    """Raised by the mock provider to exercise retry handling."""


class MockRagProvider(RagProvider):
    """
    Serves demo answers without any network access.

    With ``simulate_failures`` enabled, the first two ``predict`` calls of
    every cycle fail and the third succeeds; the counter resets once a
    stream completes.
    """

    def __init__(
        self,
        scenarios: list[dict] | None = None,
        simulate_failures: bool = False,
        initial_delay: float = 0.5,
        chunk_delay: float = 0.03,
        chunk_size: int = 10,
    ):
        self.scenarios = scenarios if scenarios is not None else DEMO_SCENARIOS
        self.simulate_failures = simulate_failures
        self.initial_delay = initial_delay
        self.chunk_delay = chunk_delay
        self.chunk_size = chunk_size
        self._predict_calls = 0

    async def get_config(self, backend_url: str | None = None) -> list[CapabilityMode]:
        modes: list[CapabilityMode] = []
        for scenario in self.scenarios:
            mode = CapabilityMode(
                language=scenario["language"] or "any",
                domain=scenario["domain"] or "any",
            )
            if mode not in modes:
                modes.append(mode)
        return modes

    async def configure(
        self,
        prompt: str,
        available_configs: Sequence[CapabilityMode],
        language: str | None = None,
        domain: str | None = None,
    ) -> CapabilityMode:
        return CapabilityMode(
            language=language or DEFAULT_LANGUAGE,
            domain=domain or DEFAULT_DOMAIN,
        )

    def _find_scenario(self, language: str, domain: str) -> dict:
        for matches in (
            lambda s: s["language"] == language and s["domain"] == domain,
            lambda s: s["language"] == language and s["domain"] is None,
            lambda s: s["language"] is None and s["domain"] == domain,
        ):
            for scenario in self.scenarios:
                if matches(scenario):
                    return scenario

        return {
            "language": None,
            "domain": None,
            "response": FALLBACK_RESPONSE,
            "contexts": [],
        }

    async def predict(
        self,
        history: Sequence[HistoryMessage],
        prompt: str,
        language: str,
        domain: str,
        backend_url: str | None = None,
    ) -> AsyncGenerator[RagChunk, None]:
        if self.simulate_failures:
            self._predict_calls += 1
            if self._predict_calls <= SIMULATED_FAILURES:
                raise SimulatedFailureError(
                    f"Simulated RAG failure "
                    f"(attempt {self._predict_calls}/{SIMULATED_FAILURES + 1})"
                )

        scenario = self._find_scenario(language, domain)
        response: str = scenario["response"]
        contexts: list[Citation] = list(scenario["contexts"] or [])

        await asyncio.sleep(self.initial_delay)

        for cursor in range(0, len(response), self.chunk_size):
            yield RagChunk(response=response[cursor : cursor + self.chunk_size])
            await asyncio.sleep(self.chunk_delay)

        yield RagChunk(response="", contexts=contexts)

        self._predict_calls = 0
        logger.debug("mock.predict.completed", language=language, domain=domain)
