"""
Retry Executor

Bounded retries with exponential backoff for a single source.
The orchestrator does not retry; it moves on to the next source instead.
"""
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar
from loguru import logger

from puzzle_service.utils.exceptions import TransientNetworkError


T = TypeVar("T")


class RetryExecutor:
    """
    Runs an async operation up to `max_attempts` times.

    Waits `base_delay * 2 ** (attempt - 1)` seconds after each failed
    attempt. Only exceptions listed in `retry_on` are retried; anything
    else is re-raised immediately.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: Optional[float] = None,
        retry_on: tuple[type[BaseException], ...] = (TransientNetworkError,),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.retry_on = retry_on
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given (1-based) failed attempt."""
        delay = self.base_delay * (2 ** (attempt - 1))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "operation") -> T:
        """
        Execute with retries.

        Args:
            operation: Zero-argument coroutine factory
            label: Name used in log messages

        Raises:
            The last error, with `attempts` set to the number of tries made
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except self.retry_on as e:
                e.attempts = attempt
                if attempt >= self.max_attempts:
                    if isinstance(e, TransientNetworkError):
                        e.exhausted = True
                    logger.warning(f"{label} failed after {attempt} attempts: {e}")
                    raise

                delay = self.delay_for(attempt)
                logger.info(
                    f"{label} attempt {attempt}/{self.max_attempts} failed: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)
            except Exception as e:
                e.attempts = attempt
                raise
