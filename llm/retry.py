"""Retry-with-backoff combinator for fallible coroutines."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from automation.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[None]]


def backoff_delays(max_attempts: int, delay_seconds: float, multiplier: float) -> list[float]:
    """Delays slept between attempts: ``delay * multiplier ** (n - 1)``."""
    return [delay_seconds * multiplier ** (n - 1) for n in range(1, max_attempts)]


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    delay_seconds: float = 2.0,
    multiplier: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    give_up_on: Tuple[Type[BaseException], ...] = (),
    sleep: SleepFn = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Await ``fn()`` up to ``max_attempts`` times; re-raise the last error."""
    delays = backoff_delays(max_attempts, delay_seconds, multiplier)
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn()
        except give_up_on:
            raise
        except retry_on as exc:
            if attempt >= max_attempts:
                logger.error("retry.exhausted", extra={"label": label, "attempts": attempt, "error": str(exc)})
                raise
            delay = delays[attempt - 1]
            logger.warning(
                "retry.attempt_failed",
                extra={"label": label, "attempt": attempt, "delay_seconds": delay, "error": str(exc)},
            )
            await sleep(delay)
