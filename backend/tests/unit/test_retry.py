"""
Unit Tests - Retry Executor
Tests for bounded retries with exponential backoff.
"""
import pytest

from puzzle_service.fetchers.retry import RetryExecutor
from puzzle_service.utils.exceptions import (
    NotFoundError,
    PersistentSourceError,
    TransientNetworkError,
)


class FlakyOperation:
    """Fails with the queued errors, then returns 'ok'."""

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


class TestRetryExecutor:
    """Tests for RetryExecutor."""

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryExecutor(max_attempts=0)

    def test_delay_progression(self):
        """Delays double from the base delay."""
        executor = RetryExecutor(base_delay=1.0)
        assert [executor.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_delay_cap(self):
        executor = RetryExecutor(base_delay=1.0, max_delay=3.0)
        assert executor.delay_for(3) == 3.0

    @pytest.mark.asyncio
    async def test_first_try_success(self, recording_sleep):
        operation = FlakyOperation()
        executor = RetryExecutor(max_attempts=3, sleep=recording_sleep)

        assert await executor.run(operation) == "ok"
        assert operation.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_errors(self, recording_sleep):
        operation = FlakyOperation(
            TransientNetworkError("src", "timeout"),
            TransientNetworkError("src", "timeout"),
        )
        executor = RetryExecutor(max_attempts=3, base_delay=1.0, sleep=recording_sleep)

        assert await executor.run(operation) == "ok"
        assert operation.calls == 3
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_marks_error(self, recording_sleep):
        """After the final attempt the error is flagged as exhausted."""
        operation = FlakyOperation(*[TransientNetworkError("src", "down") for _ in range(4)])
        executor = RetryExecutor(max_attempts=4, base_delay=1.0, sleep=recording_sleep)

        with pytest.raises(TransientNetworkError) as exc_info:
            await executor.run(operation)

        assert operation.calls == 4
        assert exc_info.value.attempts == 4
        assert exc_info.value.exhausted is True
        assert recording_sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [PersistentSourceError("src", "403"), NotFoundError("src", "2025-08-20")],
    )
    async def test_non_retryable_errors_raise_immediately(self, recording_sleep, error):
        operation = FlakyOperation(error)
        executor = RetryExecutor(max_attempts=3, sleep=recording_sleep)

        with pytest.raises(type(error)):
            await executor.run(operation)

        assert operation.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_single_attempt_is_exhausted(self, recording_sleep):
        operation = FlakyOperation(TransientNetworkError("src", "timeout"))
        executor = RetryExecutor(max_attempts=1, sleep=recording_sleep)

        with pytest.raises(TransientNetworkError) as exc_info:
            await executor.run(operation)

        assert exc_info.value.exhausted is True
        assert recording_sleep.delays == []
