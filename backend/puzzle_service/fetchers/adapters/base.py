"""
Base Puzzle Fetcher Interface

Defines the abstract contract every puzzle source adapter implements.
Provides date checks, latency/outcome statistics, output validation and
a retry helper so concrete adapters only implement the raw fetch.
"""
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Any, Awaitable, Callable, Mapping, TypeVar
from loguru import logger

from puzzle_service.fetchers.data_validator import DataValidator
from puzzle_service.fetchers.models import (
    FetcherStats,
    PuzzleRecord,
    GROUP_COUNT,
    utc_now_iso,
)
from puzzle_service.fetchers.retry import RetryExecutor
from puzzle_service.utils.dates import ensure_fetchable_date
from puzzle_service.utils.exceptions import (
    FetchError,
    MalformedDataError,
)


T = TypeVar("T")


@dataclass
class FetcherConfig:
    """Configuration for a puzzle fetcher."""
    name: str
    base_url: str = ""

    # Timeouts
    timeout_seconds: float = 10.0
    retry_attempts: int = 3
    retry_delay: float = 1.0

    # Validation
    allow_future_dates: bool = False
    validate_output: bool = True
    strict_validation: bool = False


class BaseFetcher(ABC):
    """
    Abstract base class for all puzzle sources.

    Each fetcher must implement:
    - _execute_fetch(): Produce a raw candidate record for a date
    - is_available(): Cheap check that the source has the date
    """

    def __init__(
        self,
        config: FetcherConfig,
        validator: Optional[DataValidator] = None,
        retry_executor: Optional[RetryExecutor] = None,
    ):
        self.config = config
        self.name = config.name
        self._validator = validator or DataValidator()
        self._retry = retry_executor or RetryExecutor(
            max_attempts=config.retry_attempts,
            base_delay=config.retry_delay,
        )
        self._stats = FetcherStats()

    async def initialize(self) -> None:
        """Acquire resources (HTTP sessions, files). No-op by default."""

    async def close(self) -> None:
        """Release resources. No-op by default."""

    @abstractmethod
    async def _execute_fetch(self, date: str) -> Any:
        """
        Fetch the raw puzzle for a date.

        Args:
            date: Already-validated ISO date

        Returns:
            Mapping in wire shape, or a PuzzleRecord

        Raises:
            FetchError: NotFoundError, TransientNetworkError,
                PersistentSourceError or MalformedDataError
        """

    @abstractmethod
    async def is_available(self, date: str) -> bool:
        """Check whether the source has a puzzle for the date without a full fetch."""

    # ==================== Public Contract ====================

    async def fetch_puzzle(self, date: str) -> PuzzleRecord:
        """
        Fetch, validate and normalize the puzzle for a date.

        Date problems raise before any I/O and are not counted in stats.

        Raises:
            InvalidDateFormatError: Bad date string
            DateOutOfRangeError: Future or pre-launch date
            FetchError: Source failure, classified
        """
        ensure_fetchable_date(
            date,
            allow_future=self.config.allow_future_dates,
            today=self._validator.today(),
        )

        logger.debug(f"[{self.name}] Fetching puzzle for {date}")
        start_time = time.perf_counter()
        succeeded = False
        error: Optional[BaseException] = None

        try:
            raw = await self._execute_fetch(date)
            record = self._finalize(raw, date)
            succeeded = True
            return record

        except FetchError as e:
            error = e
            raise

        except Exception as e:
            error = MalformedDataError(self.name, f"Unexpected error: {e}")
            raise error from e

        finally:
            latency_ms = (time.perf_counter() - start_time) * 1000
            self._stats.record_attempt(latency_ms)
            if succeeded:
                self._stats.record_success()
                logger.info(f"[{self.name}] Fetched puzzle for {date} in {latency_ms:.0f}ms")
            else:
                self._stats.record_failure(error or RuntimeError("fetch cancelled"))
                logger.warning(f"[{self.name}] Fetch failed for {date}: {error}")

    def get_source_name(self) -> str:
        return self.name

    def get_stats(self) -> FetcherStats:
        """Snapshot of this fetcher's statistics."""
        return self._stats.copy()

    def get_success_rate(self) -> float:
        return self._stats.success_rate

    def reset_stats(self) -> None:
        """Operator reset; stats are never cleared otherwise."""
        self._stats = FetcherStats()
        logger.info(f"[{self.name}] Statistics reset")

    def get_source_metadata(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": type(self).__name__,
            "base_url": self.config.base_url or None,
            "timeout_seconds": self.config.timeout_seconds,
            "retry_attempts": self.config.retry_attempts,
        }

    # ==================== Helpers ====================

    async def with_retry(self, operation: Callable[[], Awaitable[T]], label: str = "request") -> T:
        """Run an operation through this fetcher's retry policy."""
        return await self._retry.run(operation, f"[{self.name}] {label}")

    def _check_shape(self, raw: Any) -> None:
        """Minimal shape check before full validation."""
        if isinstance(raw, PuzzleRecord):
            return
        if not isinstance(raw, Mapping):
            raise MalformedDataError(self.name, f"Expected an object, got {type(raw).__name__}")

        missing = [
            key for key, present in (
                ("date", raw.get("date")),
                ("gameId", raw.get("gameId", raw.get("game_id"))),
                ("groups", raw.get("groups")),
            )
            if not present
        ]
        if missing:
            raise MalformedDataError(self.name, f"Missing required fields: {', '.join(missing)}")

        groups = raw.get("groups")
        if not isinstance(groups, (list, tuple)) or len(groups) != GROUP_COUNT:
            count = len(groups) if isinstance(groups, (list, tuple)) else 0
            raise MalformedDataError(self.name, f"Expected {GROUP_COUNT} groups, got {count}")

    def _finalize(self, raw: Any, date: str) -> PuzzleRecord:
        """Shape check, validate, normalize and stamp source metadata."""
        self._check_shape(raw)

        if self.config.validate_output:
            result = self._validator.validate_and_sanitize(
                raw,
                strict=self.config.strict_validation,
                allow_future=self.config.allow_future_dates,
            )
            if not result.is_valid:
                raise MalformedDataError(self.name, "Fetched data failed validation", result.errors)
            for warning in result.warnings:
                logger.debug(f"[{self.name}] {date}: {warning}")
            record = result.data
        else:
            record = self._validator.sanitize(raw)

        if record.date != date:
            raise MalformedDataError(
                self.name, f"Source returned puzzle for {record.date} instead of {date}"
            )

        changes = {}
        if not record.source or record.source == "unknown":
            changes["source"] = self.name
        if not record.fetched_at:
            changes["fetched_at"] = utc_now_iso()
        return record.with_metadata(**changes) if changes else record
