"""
Bounded exponential-backoff retry for single network calls.

The retry wrapper knows nothing about nodes: callers bind the target node
into the operation they pass in and decide where the next attempt goes.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from src.config.snapshot_settings import (
    BACKOFF_MULTIPLIER,
    INITIAL_BACKOFF_SECONDS,
    MAX_BACKOFF_SECONDS,
    MAX_RETRIES,
)
from src.utils.logger import logger

from .exceptions import is_retryable_exception

T = TypeVar('T')


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff curve shared by every component."""
    # Retries after the first attempt
    max_retries: int = MAX_RETRIES
    # Seconds before the first retry
    initial_delay: float = INITIAL_BACKOFF_SECONDS
    # Upper bound on any single wait
    max_delay: float = MAX_BACKOFF_SECONDS
    multiplier: float = BACKOFF_MULTIPLIER

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            max_retries=MAX_RETRIES,
            initial_delay=INITIAL_BACKOFF_SECONDS,
            max_delay=MAX_BACKOFF_SECONDS,
            multiplier=BACKOFF_MULTIPLIER,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (0-based)."""
        return min(self.initial_delay * (self.multiplier ** attempt), self.max_delay)


async def retry_request(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str = "request",
) -> T:
    """
    Await ``operation`` with bounded exponential backoff.

    Args:
        operation: Zero-argument coroutine factory performing one network call
        policy: Retry budget and backoff curve
        description: Label used in log lines

    Returns:
        Result of the first successful attempt

    Raises:
        The last exception once ``policy.max_retries`` retries are spent, or
        any non-retryable exception immediately.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable_exception(e) or attempt >= policy.max_retries:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"[Retry] {description} failed: {e}. Retrying in {delay:.2f}s... "
                f"({attempt + 1}/{policy.max_retries})"
            )
            await asyncio.sleep(delay)
            attempt += 1
