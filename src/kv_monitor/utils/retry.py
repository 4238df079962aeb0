"""Timeouts and backoff for calls to clusters, relays and sinks."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Backoff policy: ``base_delay * exponential_base ** n``, capped.

    With ``jitter`` the delay is scaled by a random factor in [0.5, 1.0).
    ``timeout`` bounds every single attempt, not the whole sequence.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    timeout: float | None = None
    retry_on: tuple[type[Exception], ...] = (Exception,)

    def delay_for(self, attempt: int) -> float:
        """Sleep after the zero-based ``attempt`` failed."""
        backoff = self.base_delay * self.exponential_base ** attempt
        backoff = min(backoff, self.max_delay)
        return backoff * random.uniform(0.5, 1.0) if self.jitter else backoff


class RetryError(Exception):
    """Every attempt failed; carries the last failure."""

    def __init__(self, last_exception: Exception, attempts: int) -> None:
        self.last_exception = last_exception
        self.attempts = attempts
        super().__init__(f"Gave up after {attempts} attempt(s): {last_exception}")


async def with_timeout(awaitable: Awaitable[T], timeout: float | None, operation: str) -> T:
    """Await ``awaitable``, raising ``TimeoutError`` naming the operation."""
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise TimeoutError(f"{operation} timed out after {timeout}s") from e


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> T:
    """Call ``func`` until it succeeds or ``config.max_attempts`` is spent.

    Only ``config.retry_on`` exceptions are retried, anything else
    propagates at once. A timed out attempt counts as a failure.
    """
    policy = config or RetryConfig()
    if policy.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    name = getattr(func, "__name__", repr(func))
    attempt = 0
    while True:
        try:
            return await with_timeout(func(*args, **kwargs), policy.timeout, name)
        except policy.retry_on as e:
            attempt += 1
            if attempt >= policy.max_attempts:
                logger.error("Giving up", call=name, attempts=attempt, error=str(e))
                raise RetryError(e, attempt) from e

            delay = policy.delay_for(attempt - 1)
            logger.warning(
                "Call failed, backing off",
                call=name,
                attempt=attempt,
                of=policy.max_attempts,
                delay=round(delay, 3),
                error=str(e),
            )
            await asyncio.sleep(delay)
