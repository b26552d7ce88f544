"""
Puzzle Fetcher Orchestrator

Central coordinator for puzzle fetching.
Walks registered fetchers in priority order, caches the first success,
guards against duplicate concurrent fetches of the same date and keeps
per-source health up to date.
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Optional, Any, Callable
from loguru import logger

from puzzle_service.fetchers.adapters.base import BaseFetcher
from puzzle_service.fetchers.cache_manager import CacheConfig, PuzzleCache
from puzzle_service.fetchers.data_validator import DataValidator
from puzzle_service.fetchers.health_monitor import SourceHealthMonitor
from puzzle_service.fetchers.models import PuzzleRecord
from puzzle_service.fetchers.source_comparator import ComparisonResult, compare_records
from puzzle_service.utils.dates import ensure_fetchable_date, is_valid_date_string, yesterday_iso
from puzzle_service.utils.exceptions import (
    ConcurrencyLimitError,
    ExhaustedError,
    FetcherConfigurationError,
    FetchInProgressError,
    InvalidInputError,
    MalformedDataError,
    NotFoundError,
    PersistentSourceError,
    TransientNetworkError,
)


DEFAULT_PRIORITY = 100


@dataclass
class OrchestratorConfig:
    """Configuration for the orchestrator."""
    # Cache settings
    cache_ttl_seconds: float = 86400.0
    enable_cache: bool = True

    # Health probe (0 disables)
    health_check_interval_seconds: float = 300.0

    # Per-fetcher defaults for fetchers built from settings
    request_timeout_seconds: float = 10.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0

    # Concurrency
    max_in_flight: Optional[int] = None  # unbounded; still one fetch per date

    allow_future_dates: bool = False

    @classmethod
    def from_settings(cls, settings) -> "OrchestratorConfig":
        return cls(
            cache_ttl_seconds=settings.CACHE_TTL_SECONDS,
            enable_cache=settings.ENABLE_CACHE,
            health_check_interval_seconds=settings.HEALTH_CHECK_INTERVAL_SECONDS,
            request_timeout_seconds=settings.FETCH_TIMEOUT_SECONDS,
            retry_attempts=settings.FETCH_RETRY_ATTEMPTS,
            retry_delay_seconds=settings.FETCH_RETRY_DELAY_SECONDS,
            max_in_flight=settings.MAX_IN_FLIGHT_DATES,
            allow_future_dates=settings.ALLOW_FUTURE_DATES,
        )


@dataclass
class FetcherRegistration:
    """A registered fetcher; lower priority is tried first."""
    fetcher: BaseFetcher
    priority: int = DEFAULT_PRIORITY

    @property
    def name(self) -> str:
        return self.fetcher.get_source_name()


class PuzzleFetcherOrchestrator:
    """
    Central orchestrator for puzzle fetch operations.

    This is the main interface for getting a puzzle. It coordinates:
    - Priority-ordered, first-success-wins source selection
    - TTL caching of validated records
    - One in-flight fetch per date
    - Source health tracking and periodic probing

    Usage:
        orchestrator = PuzzleFetcherOrchestrator(OrchestratorConfig())
        orchestrator.register_fetcher(static_fetcher, priority=10)
        orchestrator.register_fetcher(api_fetcher, priority=20)
        await orchestrator.initialize()

        record = await orchestrator.fetch_puzzle("2025-08-20")
    """

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        clock: Optional[Callable[[], float]] = None,
        validator: Optional[DataValidator] = None,
    ):
        self.config = config or OrchestratorConfig()
        self._validator = validator or DataValidator()
        self._cache = PuzzleCache(
            CacheConfig(ttl_seconds=self.config.cache_ttl_seconds),
            clock=clock or time.monotonic,
        )
        self.health_monitor = SourceHealthMonitor()
        self._registrations: list[FetcherRegistration] = []
        self._in_flight: set[str] = set()
        self._initialized = False
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict[str, Any]:
        return {
            "total_requests": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "successful_fetches": 0,
            "failed_fetches": 0,
            "average_response_time_ms": 0.0,
        }

    # ==================== Lifecycle ====================

    async def initialize(self) -> None:
        """Initialize all registered fetchers and start the health probe."""
        if self._initialized:
            return

        for registration in list(self._registrations):
            try:
                await registration.fetcher.initialize()
                logger.info(f"Initialized fetcher: {registration.name}")
            except Exception as e:
                logger.error(f"Failed to initialize fetcher {registration.name}: {e}")
                await self.health_monitor.mark_unhealthy(
                    registration.name, f"initialization failed: {e}"
                )

        if self.config.health_check_interval_seconds > 0:
            self.health_monitor.start_probing(
                self.run_health_checks,
                self.config.health_check_interval_seconds,
            )

        self._initialized = True
        logger.info(f"Puzzle orchestrator initialized with {len(self._registrations)} fetchers")

    async def destroy(self) -> None:
        """Stop the probe, close fetchers and drop all state."""
        self.health_monitor.stop_probing()

        for registration in list(self._registrations):
            try:
                await registration.fetcher.close()
                logger.info(f"Closed fetcher: {registration.name}")
            except Exception as e:
                logger.error(f"Error closing fetcher {registration.name}: {e}")

        self._cache.clear_all()
        self._registrations.clear()
        self.health_monitor.clear()
        self._in_flight.clear()
        self._initialized = False
        logger.info("Puzzle orchestrator destroyed")

    # ==================== Registration ====================

    def register_fetcher(self, fetcher: BaseFetcher, priority: int = DEFAULT_PRIORITY) -> None:
        """
        Register a fetcher, replacing any existing one with the same source name.

        Raises:
            FetcherConfigurationError: If `fetcher` is not a BaseFetcher
        """
        if not isinstance(fetcher, BaseFetcher):
            raise FetcherConfigurationError(
                f"Fetcher must extend BaseFetcher, got {type(fetcher).__name__}"
            )
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise FetcherConfigurationError(f"Priority must be an integer, got {priority!r}")

        name = fetcher.get_source_name()
        self._registrations = [r for r in self._registrations if r.name != name]
        self._registrations.append(FetcherRegistration(fetcher=fetcher, priority=priority))
        self._registrations.sort(key=lambda r: r.priority)
        self.health_monitor.register(name)

        logger.info(f"Registered fetcher: {name} (priority {priority})")

    def unregister_fetcher(self, source_name: str) -> bool:
        """Remove a fetcher. Returns False if it was not registered."""
        before = len(self._registrations)
        self._registrations = [r for r in self._registrations if r.name != source_name]
        if len(self._registrations) == before:
            return False

        self.health_monitor.unregister(source_name)
        logger.info(f"Unregistered fetcher: {source_name}")
        return True

    def get_fetchers(self) -> list[FetcherRegistration]:
        return list(self._registrations)

    # ==================== Fetching ====================

    async def fetch_puzzle(self, date: str) -> PuzzleRecord:
        """
        Get the puzzle for a date.

        Raises:
            InvalidInputError: Bad or out-of-range date; no fetcher is touched
            FetchInProgressError: Another fetch for this date is running
            ConcurrencyLimitError: Too many dates in flight
            ExhaustedError: Every healthy fetcher failed
        """
        ensure_fetchable_date(
            date,
            allow_future=self.config.allow_future_dates,
            today=self._validator.today(),
        )

        self._stats["total_requests"] += 1

        if self.config.enable_cache:
            cached = self._cache.get(date)
            if cached is not None:
                self._stats["cache_hits"] += 1
                logger.debug(f"Cache hit for {date}")
                return cached
            self._stats["cache_misses"] += 1

        # Check-and-add without an await in between keeps this atomic on the loop
        if date in self._in_flight:
            raise FetchInProgressError(date)
        limit = self.config.max_in_flight
        if limit is not None and len(self._in_flight) >= limit:
            raise ConcurrencyLimitError(limit)
        self._in_flight.add(date)

        start_time = time.perf_counter()
        try:
            record = await self._fetch_from_sources(date)
            self._stats["successful_fetches"] += 1
            if self.config.enable_cache:
                self._cache.put(date, record)
            return record

        except ExhaustedError:
            self._stats["failed_fetches"] += 1
            raise

        finally:
            self._in_flight.discard(date)
            self._record_response_time((time.perf_counter() - start_time) * 1000)

    def _record_response_time(self, elapsed_ms: float) -> None:
        completed = self._stats["successful_fetches"] + self._stats["failed_fetches"]
        if completed == 0:
            return
        average = self._stats["average_response_time_ms"]
        self._stats["average_response_time_ms"] = average + (elapsed_ms - average) / completed

    async def _fetch_from_sources(self, date: str) -> PuzzleRecord:
        last_error: Optional[BaseException] = None
        attempted = 0

        for registration in list(self._registrations):
            name = registration.name
            if not self.health_monitor.is_healthy(name):
                logger.debug(f"Skipping unhealthy fetcher {name}")
                continue

            attempted += 1
            try:
                record = await registration.fetcher.fetch_puzzle(date)

            except PersistentSourceError as e:
                logger.error(f"Persistent failure from {name}: {e}")
                await self.health_monitor.mark_unhealthy(name, str(e))
                last_error = e

            except TransientNetworkError as e:
                if e.exhausted:
                    logger.error(f"{name} exhausted retries: {e}")
                    await self.health_monitor.mark_unhealthy(name, str(e))
                else:
                    logger.warning(f"Transient failure from {name}: {e}")
                last_error = e

            except (NotFoundError, MalformedDataError) as e:
                logger.warning(f"{name} could not provide {date}: {e}")
                last_error = e

            except InvalidInputError as e:
                logger.warning(f"{name} rejected {date}: {e}")
                last_error = e

            except Exception as e:
                logger.error(f"Unexpected error from {name}: {e}")
                last_error = e

            else:
                await self.health_monitor.mark_healthy(name, "fetch succeeded")
                logger.info(f"Fetched {date} from {name}")
                return record

        if attempted == 0:
            raise ExhaustedError(f"No healthy fetchers available for {date}")

        raise ExhaustedError(
            f"All fetchers failed for {date}. Last error: {last_error}",
            last_error=last_error,
        )

    async def is_available(self, date: str) -> bool:
        """True if the date is cached or any healthy fetcher reports it available."""
        if not is_valid_date_string(date):
            return False

        if self.config.enable_cache and date in self._cache:
            return True

        for registration in list(self._registrations):
            name = registration.name
            if not self.health_monitor.is_healthy(name):
                continue
            try:
                if await registration.fetcher.is_available(date):
                    return True
            except Exception as e:
                logger.warning(f"Availability check failed for {name}: {e}")
                await self.health_monitor.mark_unhealthy(name, f"availability check failed: {e}")

        return False

    # ==================== Health ====================

    async def run_health_checks(self) -> dict[str, bool]:
        """Probe every fetcher against yesterday's puzzle and update health."""
        probe_date = yesterday_iso(self._validator.today())
        results: dict[str, bool] = {}

        for registration in list(self._registrations):
            name = registration.name
            try:
                available = bool(await registration.fetcher.is_available(probe_date))
                reason = "probe succeeded" if available else f"probe found no puzzle for {probe_date}"
            except Exception as e:
                available = False
                reason = f"probe failed: {e}"

            if available:
                await self.health_monitor.mark_healthy(name, reason)
            else:
                await self.health_monitor.mark_unhealthy(name, reason)
            results[name] = available

        healthy = sum(1 for ok in results.values() if ok)
        logger.info(f"Health check complete: {healthy}/{len(results)} fetchers healthy")
        return results

    def get_healthy_sources(self) -> list[str]:
        """Healthy source names in priority order."""
        return [r.name for r in self._registrations if self.health_monitor.is_healthy(r.name)]

    # ==================== Cross-source Comparison ====================

    async def compare_sources(self, date: str) -> ComparisonResult:
        """
        Fetch a date from every healthy source and score the candidates.

        Diagnostic only: bypasses the cache and in-flight tracking and
        never changes source health.
        """
        ensure_fetchable_date(
            date,
            allow_future=self.config.allow_future_dates,
            today=self._validator.today(),
        )

        fetchers = [
            r.fetcher for r in self._registrations if self.health_monitor.is_healthy(r.name)
        ]
        if not fetchers:
            raise ExhaustedError(f"No healthy fetchers available for {date}")

        results = await asyncio.gather(
            *(fetcher.fetch_puzzle(date) for fetcher in fetchers),
            return_exceptions=True,
        )

        candidates: dict[str, PuzzleRecord] = {}
        last_error: Optional[BaseException] = None
        for fetcher, result in zip(fetchers, results):
            if isinstance(result, BaseException):
                logger.warning(f"{fetcher.get_source_name()} failed during comparison: {result}")
                last_error = result
            else:
                candidates[fetcher.get_source_name()] = result

        if not candidates:
            raise ExhaustedError(
                f"No source returned {date} for comparison. Last error: {last_error}",
                last_error=last_error,
            )

        return compare_records(candidates)

    # ==================== Cache & Stats ====================

    def clear_cache(self) -> int:
        return self._cache.clear_all()

    def clear_expired_cache(self) -> int:
        return self._cache.clear_expired()

    def get_stats(self) -> dict[str, Any]:
        """Request counters, cache/in-flight sizes and per-source stats."""
        return {
            **self._stats,
            "average_response_time_ms": round(self._stats["average_response_time_ms"], 2),
            "registered_fetchers": len(self._registrations),
            "healthy_sources": self.get_healthy_sources(),
            "cache_size": len(self._cache),
            "cache": self._cache.get_stats(),
            "active_in_flight": len(self._in_flight),
            "in_flight_dates": sorted(self._in_flight),
            "per_source": [
                {
                    "source_name": r.name,
                    "priority": r.priority,
                    "healthy": self.health_monitor.is_healthy(r.name),
                    "stats": r.fetcher.get_stats().to_dict(),
                }
                for r in self._registrations
            ],
        }

    def get_health(self) -> dict[str, dict]:
        return self.health_monitor.get_all_states()

    def reset_stats(self) -> None:
        """Operator reset of request counters and every fetcher's stats."""
        self._stats = self._empty_stats()
        self._cache.reset_stats()
        for registration in self._registrations:
            registration.fetcher.reset_stats()
