"""Shared retry policy: exponential backoff with jitter for async operations."""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from sheet_risk.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Retry an async operation up to max_attempts times.
    Delay after failed attempt i (0-based): base_delay * 2**i + U(0, max_jitter).
    Only exceptions matching retry_on are retried; anything else propagates.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_jitter: float = 0.5
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)
    random_fn: Callable[[], float] = field(default=random.random, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.max_jitter < 0:
            raise ValueError("max_jitter must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt after `attempt` (0-based)."""
        return self.base_delay * (2**attempt) + self.random_fn() * self.max_jitter

    def with_retry_on(self, *exceptions: type[BaseException]) -> "RetryPolicy":
        """Copy of this policy retrying only the given exception types."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_jitter=self.max_jitter,
            retry_on=tuple(exceptions),
            sleep=self.sleep,
            random_fn=self.random_fn,
        )

    async def run(self, operation: Callable[[], Awaitable[T]], *, description: str = "operation") -> T:
        """Run operation under this policy. Raises RetryExhaustedError when every attempt fails."""
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except self.retry_on as e:
                logger.warning(
                    "%s attempt %d/%d failed: %s", description, attempt + 1, self.max_attempts, e
                )
                if attempt == self.max_attempts - 1:
                    raise RetryExhaustedError(description, self.max_attempts, e) from e
                delay = self.delay_for(attempt)
                logger.info("Retrying %s in %.2fs", description, delay)
                await self.sleep(delay)
        raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
