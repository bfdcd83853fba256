from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, TypeVar

import httpx

T = TypeVar("T")

DEFAULT_TIMEOUT = httpx.Timeout(connect=3.0, read=6.0, write=3.0, pool=6.0)

TRANSIENT_HTTP_STATUS = frozenset({408, 425, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_s: float = 0.2
    max_delay_s: float = 1.0
    jitter_s: float = 0.2

    def backoff(self, attempt: int) -> float:
        delay = min(self.max_delay_s, self.base_delay_s * (2 ** (attempt - 1)))
        return max(0.0, delay + random.uniform(0.0, self.jitter_s))


async def call_with_retries(
    call: Callable[[], Awaitable[T]],
    *,
    retry_policy: RetryPolicy = RetryPolicy(),
    retry_on: tuple[type[BaseException], ...] = (httpx.TimeoutException, httpx.TransportError),
    retry_statuses: Iterable[int] = TRANSIENT_HTTP_STATUS,
) -> T:
    retry_statuses = set(retry_statuses)

    for attempt in range(1, retry_policy.max_attempts + 1):
        final_attempt = attempt >= retry_policy.max_attempts
        try:
            result = await call()
        except retry_on:
            if final_attempt:
                raise
        else:
            status_code = getattr(result, "status_code", None)
            if final_attempt or status_code not in retry_statuses:
                return result
        await asyncio.sleep(retry_policy.backoff(attempt))

    raise RuntimeError("retry execution failed")


async def call_blocking_with_timeout(
    fn: Callable[[], T],
    *,
    timeout_s: float,
) -> T:
    return await asyncio.wait_for(asyncio.to_thread(fn), timeout=timeout_s)


async def call_blocking_with_retries(
    fn: Callable[[], T],
    *,
    timeout_s: float,
    attempts: int,
) -> T:
    """Run a blocking client call off-loop, retrying only on timeouts."""
    for attempt in range(1, max(1, attempts) + 1):
        try:
            return await call_blocking_with_timeout(fn, timeout_s=timeout_s)
        except (TimeoutError, asyncio.TimeoutError):
            if attempt >= attempts:
                raise
    raise RuntimeError("blocking call failed")
