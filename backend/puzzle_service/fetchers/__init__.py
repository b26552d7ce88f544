"""
Puzzle Fetchers Package

This package contains the puzzle source adapters and the infrastructure
for fetching, validating, caching and health-tracking daily puzzles.
"""
from puzzle_service.fetchers.models import (
    PuzzleRecord,
    PuzzleGroup,
    PuzzleLevel,
    FetcherStats,
    PUZZLE_LEVELS,
)
from puzzle_service.fetchers.data_validator import (
    DataValidator,
    ValidationResult,
    SanitizeResult,
)
from puzzle_service.fetchers.retry import RetryExecutor
from puzzle_service.fetchers.cache_manager import PuzzleCache, CacheConfig, CacheEntry
from puzzle_service.fetchers.health_monitor import SourceHealthMonitor, HealthState
from puzzle_service.fetchers.source_comparator import (
    ComparisonResult,
    SourceScore,
    compare_records,
    score_record,
)
from puzzle_service.fetchers.orchestrator import (
    PuzzleFetcherOrchestrator,
    OrchestratorConfig,
    FetcherRegistration,
)

__all__ = [
    # Models
    "PuzzleRecord",
    "PuzzleGroup",
    "PuzzleLevel",
    "FetcherStats",
    "PUZZLE_LEVELS",
    # Validator
    "DataValidator",
    "ValidationResult",
    "SanitizeResult",
    # Retry
    "RetryExecutor",
    # Cache
    "PuzzleCache",
    "CacheConfig",
    "CacheEntry",
    # Health Monitor
    "SourceHealthMonitor",
    "HealthState",
    # Source Comparator
    "ComparisonResult",
    "SourceScore",
    "compare_records",
    "score_record",
    # Orchestrator
    "PuzzleFetcherOrchestrator",
    "OrchestratorConfig",
    "FetcherRegistration",
]
