"""Tests for the retry-with-status engine."""

import pytest
from conftest import FakeSleep

from gateway.core.errors import AuthError, BackendConnectionError
from gateway.schemas.events import StatusCode, StatusEvent
from gateway.services.retry import (
    RetryFailure,
    RetrySuccess,
    backoff_delay,
    retry_with_status,
)


def _failing(times: int, value: str = "ok", error: Exception | None = None):
    """Operation that fails ``times`` times, then returns ``value``."""
    calls = 0

    async def operation() -> str:
        nonlocal calls
        calls += 1
        if calls <= times:
            raise error or BackendConnectionError(f"failure {calls}")
        return value

    operation.calls = lambda: calls  # type: ignore[attr-defined]
    return operation


async def _collect(generator) -> list:
    return [item async for item in generator]


class TestBackoffDelay:
    def test_doubles_per_attempt(self):
        assert [backoff_delay(n, 1.0) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]
        assert backoff_delay(3, 0.5) == 2.0


class TestRetryWithStatus:
    """Tests for retry_with_status()."""

    @pytest.mark.asyncio
    async def test_first_try_success(self, fake_sleep: FakeSleep):
        items = await _collect(retry_with_status(_failing(0), sleep=fake_sleep))

        assert items == [StatusEvent.success(), RetrySuccess("ok")]
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_success_on_third_attempt(self, fake_sleep: FakeSleep):
        items = await _collect(
            retry_with_status(_failing(2), max_attempts=3, base_delay=1.0, sleep=fake_sleep)
        )

        assert items == [
            StatusEvent.retrying(1),
            StatusEvent.retrying(2),
            StatusEvent.success(),
            RetrySuccess("ok"),
        ]
        assert fake_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_all_attempts_fail(self, fake_sleep: FakeSleep):
        operation = _failing(10)
        items = await _collect(
            retry_with_status(operation, max_attempts=3, base_delay=1.0, sleep=fake_sleep)
        )

        assert items[:2] == [StatusEvent.retrying(1), StatusEvent.retrying(2)]
        assert items[2] == StatusEvent.error("failure 3")
        assert isinstance(items[3], RetryFailure)
        assert str(items[3].error) == "failure 3"
        assert len(items) == 4
        assert operation.calls() == 3
        assert fake_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_non_retryable_error_stops_immediately(self, fake_sleep: FakeSleep):
        operation = _failing(10, error=AuthError(url="http://rag-a:8000"))
        items = await _collect(
            retry_with_status(operation, non_retryable=(AuthError,), sleep=fake_sleep)
        )

        assert items[0] == StatusEvent.error("Authentication failed")
        assert isinstance(items[1], RetryFailure)
        assert isinstance(items[1].error, AuthError)
        assert operation.calls() == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_error_without_message_uses_type_name(self, fake_sleep: FakeSleep):
        items = await _collect(
            retry_with_status(
                _failing(1, error=TimeoutError()), max_attempts=1, sleep=fake_sleep
            )
        )

        assert items[0].code == StatusCode.ERROR
        assert items[0].message == "TimeoutError"

    @pytest.mark.asyncio
    async def test_closing_early_stops_further_attempts(self, fake_sleep: FakeSleep):
        operation = _failing(10)
        generator = retry_with_status(operation, max_attempts=5, sleep=fake_sleep)

        assert await generator.__anext__() == StatusEvent.retrying(1)
        await generator.aclose()

        assert operation.calls() == 1

    @pytest.mark.asyncio
    async def test_rejects_zero_attempts(self, fake_sleep: FakeSleep):
        with pytest.raises(ValueError):
            await _collect(retry_with_status(_failing(0), max_attempts=0, sleep=fake_sleep))
