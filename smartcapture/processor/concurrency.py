import asyncio
from collections.abc import Awaitable
from typing import Any

from smartcapture.logging.logger import Log


async def gather_settled(
    *awaitables: Awaitable[Any],
    expected: tuple[type[Exception], ...] = (),
) -> list[Any | None]:
    """Await every awaitable concurrently and return results in order.

    A failure never cancels or blocks its siblings; a failed slot comes back
    as ``None``. Failures of an ``expected`` type are logged at debug level,
    anything else at warning level since it points at a bug rather than an
    unavailable provider. Cancellation of the caller still propagates.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    settled: list[Any | None] = []
    for result in results:
        if isinstance(result, Exception):
            if isinstance(result, expected):
                Log.debug("Concurrent call failed", error=type(result).__name__)
            else:
                Log.warning(
                    "Concurrent call raised an unexpected error",
                    error_type=type(result).__name__,
                    error=str(result),
                )
            settled.append(None)
            continue
        if isinstance(result, BaseException):
            raise result
        settled.append(result)
    return settled
