"""Retry utilities for awaitable operations."""

import asyncio
import random
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

T = TypeVar('T')


class AsyncRetryStrategy:
    """
    Configurable retry strategy for coroutines.

    ``backoff_seconds`` defaults to zero: transcoder work is local, so a
    failed attempt is simply re-run.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_seconds: float = 0.0,
        exponential: bool = True,
        jitter: bool = False,
        max_backoff: float = 60.0,
        exceptions: Tuple[Type[BaseException], ...] = (Exception,)
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.exponential = exponential
        self.jitter = jitter
        self.max_backoff = max_backoff
        self.exceptions = exceptions

    async def execute(
        self,
        func: Callable[[int], Awaitable[T]],
        on_retry: Optional[Callable[[int, BaseException], None]] = None
    ) -> T:
        """
        Await ``func(attempt)`` until it succeeds or attempts run out.

        The 1-based attempt number is passed so callers can change behaviour
        on the last try.

        Raises:
            The last exception if all attempts fail
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await func(attempt)
            except self.exceptions as e:
                if attempt == self.max_attempts:
                    raise
                if on_retry is not None:
                    on_retry(attempt, e)
                wait_time = self._calculate_backoff(attempt)
                if wait_time > 0:
                    await asyncio.sleep(wait_time)

        raise RuntimeError("Retry logic failed unexpectedly")

    def _calculate_backoff(self, attempt: int) -> float:
        """Calculate backoff time for given attempt number."""
        if self.backoff_seconds <= 0:
            return 0.0

        if self.exponential:
            wait_time = self.backoff_seconds * (2 ** (attempt - 1))
        else:
            wait_time = self.backoff_seconds * attempt

        wait_time = min(wait_time, self.max_backoff)

        if self.jitter:
            wait_time = wait_time * (0.5 + random.random())

        return wait_time
