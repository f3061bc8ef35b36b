"""Retry wrapper that reports its progress as stream events.

``retry_with_status`` is an async generator: it yields ``StatusEvent``s as
attempts fail or succeed and finishes with exactly one ``RetryOutcome``.
Callers relay the status events to their own consumers and act on the
outcome, so retry progress becomes part of the response stream.
"""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from gateway.observability import get_logger
from gateway.observability.constants import LogEvents
from gateway.schemas.events import StatusEvent

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0


@dataclass(frozen=True)
class RetrySuccess(Generic[T]):
    """The operation succeeded with ``value``."""

    value: T


@dataclass(frozen=True)
class RetryFailure:
    """Every attempt failed; ``error`` is the last failure."""

    error: Exception


RetryOutcome = RetrySuccess[T] | RetryFailure


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Seconds to wait after failed ``attempt`` (1-based): base * 2^(attempt-1)."""
    return base_delay * 2 ** (attempt - 1)


async def retry_with_status(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    non_retryable: tuple[type[Exception], ...] = (),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncGenerator[StatusEvent | RetrySuccess[T] | RetryFailure, None]:
    """
    Run ``operation`` with exponential backoff, reporting progress.

    Yields, in order:
    - ``StatusEvent.retrying(n)`` after each failed attempt but the last
    - ``StatusEvent.success()`` then ``RetrySuccess`` on success, or
    - ``StatusEvent.error(message)`` then ``RetryFailure`` once attempts run out

    Errors listed in ``non_retryable`` end the loop at the attempt that
    raised them. Closing the generator early stops further attempts.

    Args:
        operation: Zero-argument coroutine factory to attempt
        max_attempts: Total attempts, including the first
        base_delay: Delay in seconds after the first failure
        non_retryable: Exception types that are not worth retrying
        sleep: Awaitable sleep, injectable for tests
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            value = await operation()
        except Exception as e:
            if attempt < max_attempts and not isinstance(e, non_retryable):
                logger.warning(
                    LogEvents.RETRY_ATTEMPT_FAILED,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(e),
                )
                yield StatusEvent.retrying(attempt)
                await sleep(backoff_delay(attempt, base_delay))
                continue

            logger.error(
                LogEvents.RETRY_EXHAUSTED,
                attempts=attempt,
                error=str(e),
                error_type=type(e).__name__,
            )
            yield StatusEvent.error(str(e) or type(e).__name__)
            yield RetryFailure(e)
            return

        yield StatusEvent.success()
        yield RetrySuccess(value)
        return
