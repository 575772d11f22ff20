"""
RETRY UTILITY
=============

Awaits a coroutine function and, if it raises, retries a few times with
exponential backoff. Used around Gemini calls so a transient rate limit or
network blip can be absorbed when GEMINI_MAX_RETRIES is raised above 1.

Example:
  response = await with_retry(lambda: client.generate(...), max_retries=3, initial_delay=1.0)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar


logger = logging.getLogger("MindTrack")

# Type variable: with_retry returns whatever the awaited callable returns.
T = TypeVar("T")


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    should_retry: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """
    Await fn(). If it raises, wait initial_delay seconds and try again; delay doubles each retry.
    After max_retries attempts (including the first), re-raise the last exception.
    Exceptions for which should_retry returns False are re-raised immediately.
    """
    delay = initial_delay
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as e:
            if attempt == attempts - 1 or (should_retry is not None and not should_retry(e)):
                raise
            logger.warning(
                "Attempt %s/%s failed (%s). Retrying in %.1fs: %s",
                attempt + 1,
                attempts,
                fn.__name__ if hasattr(fn, "__name__") else "call",
                delay,
                e,
            )
            await asyncio.sleep(delay)
            delay *= 2  # Exponential backoff: 1s, 2s, 4s, ...

    raise RuntimeError("with_retry exhausted without a result")
