"""Retry policy shared by every cloud client.

Up to ``max_attempts`` calls; the wait before attempt ``n + 1`` is
``min(2 ** n, cap)`` seconds. Only server errors (5xx) and network failures
are retried; client errors (4xx) and parse errors surface after one call.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from smartcapture.cloud.exceptions import NetworkUnavailableError, ProviderError
from smartcapture.logging.logger import Log

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, ProviderError):
        return exc.retryable
    return isinstance(exc, NetworkUnavailableError)


class RetryPolicy:
    """Exponential backoff wrapper around an async provider call."""

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_cap_seconds: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_attempts = max_attempts
        self.backoff_cap_seconds = backoff_cap_seconds
        self._sleep = sleep

    async def call(self, operation: Callable[[], Awaitable[T]], *, name: str) -> T:
        """Run ``operation`` until it succeeds or the policy gives up.

        The last exception is re-raised unchanged.
        """

        def log_retry(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            Log.warning(
                "Cloud call failed, retrying",
                provider=name,
                attempt=state.attempt_number,
                wait_seconds=state.next_action.sleep if state.next_action else 0,
                error=type(exc).__name__,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=2, max=self.backoff_cap_seconds),
            retry=retry_if_exception(is_retryable),
            before_sleep=log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await operation()
        return result
