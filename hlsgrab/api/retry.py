"""
Bounded retry with exponential backoff and jitter, tracked per fetch key.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

import aiohttp

from hlsgrab.exceptions import FetchError, RetryExhaustedError

log = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    FetchError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


class RetryManager:
    """
    Retries failing operations and keeps an attempt counter per key.

    One instance belongs to one download pipeline, so counters of independent
    downloads never interfere with each other.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[], float] | None = None,
    ):
        """
        Args:
            max_attempts: Tries per key before giving up.
            base_delay: Delay in seconds before the first retry.
            sleep: Awaitable used to wait between attempts.
            jitter: Returns a factor in [0.75, 1.0); random by default.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self._jitter = jitter or (lambda: 0.75 + random.random() * 0.25)
        self._attempts: dict[str, int] = {}

    def attempts(self, key: str) -> int:
        """Failed attempts currently recorded for `key`."""
        return self._attempts.get(key, 0)

    def clear_attempts(self, key: str) -> None:
        self._attempts.pop(key, None)

    def compute_delay(self, failed_attempts: int) -> float:
        """Backoff before the retry that follows failure number `failed_attempts`."""
        return self.base_delay * (2 ** (failed_attempts - 1)) * self._jitter()

    async def execute(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Runs `operation` until it succeeds or the attempt budget is spent.

        Raises:
            RetryExhaustedError: After `max_attempts` consecutive failures,
            wrapping the last error.
        """
        attempt = self._attempts.get(key, 0)
        while True:
            try:
                result = await operation()
            except RETRYABLE_ERRORS as e:
                attempt += 1
                self._attempts[key] = attempt
                if attempt >= self.max_attempts:
                    self.clear_attempts(key)
                    log.debug(f"Giving up on '{key}' after {attempt} attempts: {e}")
                    raise RetryExhaustedError(key, attempt, e) from e

                delay = self.compute_delay(attempt)
                log.debug(
                    f"Attempt {attempt}/{self.max_attempts} for '{key}' failed: {e}. "
                    f"Retrying in {delay:.2f}s..."
                )
                await self._sleep(delay)
            else:
                self.clear_attempts(key)
                return result
