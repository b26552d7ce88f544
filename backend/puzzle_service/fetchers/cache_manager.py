"""
Cache Manager

In-process TTL cache of validated puzzle records, keyed by date.
Expired entries are dropped lazily on read or eagerly by clear_expired().
"""
import time
from dataclasses import dataclass
from typing import Optional, Any, Callable
from loguru import logger

from puzzle_service.fetchers.models import PuzzleRecord


@dataclass
class CacheConfig:
    """Cache configuration."""
    ttl_seconds: float = 86400.0  # 24 hours


@dataclass
class CacheEntry:
    """A cached record and the clock reading when it was stored."""
    record: PuzzleRecord
    cached_at: float


class PuzzleCache:
    """
    Date-keyed record cache with a single process-wide TTL.

    Records are copied on the way in and on the way out, so callers
    never share an instance with the cache.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or CacheConfig()
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
            "expired": 0,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, date: str) -> bool:
        entry = self._entries.get(date)
        return entry is not None and not self._is_expired(entry, self._clock())

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.cached_at > self.config.ttl_seconds

    def get(self, date: str) -> Optional[PuzzleRecord]:
        """Get a live record, or None. A stale entry is removed and counts as a miss."""
        entry = self._entries.get(date)
        if entry is None:
            self._stats["misses"] += 1
            return None

        if self._is_expired(entry, self._clock()):
            del self._entries[date]
            self._stats["expired"] += 1
            self._stats["misses"] += 1
            logger.debug(f"Cache entry for {date} expired")
            return None

        self._stats["hits"] += 1
        return entry.record.copy()

    def put(self, date: str, record: PuzzleRecord) -> None:
        self._entries[date] = CacheEntry(record=record.copy(), cached_at=self._clock())
        self._stats["sets"] += 1
        logger.debug(f"Cached puzzle for {date}")

    def delete(self, date: str) -> bool:
        if self._entries.pop(date, None) is None:
            return False
        self._stats["deletes"] += 1
        return True

    def clear_expired(self) -> int:
        """Remove every stale entry. Returns the number removed."""
        now = self._clock()
        stale = [date for date, entry in self._entries.items() if self._is_expired(entry, now)]
        for date in stale:
            del self._entries[date]
        self._stats["expired"] += len(stale)
        if stale:
            logger.info(f"Cleared {len(stale)} expired cache entries")
        return len(stale)

    def clear_all(self) -> int:
        """Remove every entry. Returns the number removed."""
        count = len(self._entries)
        self._entries.clear()
        self._stats["deletes"] += count
        logger.info(f"Cleared {count} cache entries")
        return count

    def keys(self) -> list[str]:
        return sorted(self._entries)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = self._stats["hits"] / total if total > 0 else 0

        return {
            **self._stats,
            "size": len(self._entries),
            "ttl_seconds": self.config.ttl_seconds,
            "total_requests": total,
            "hit_rate": round(hit_rate * 100, 2),
        }

    def reset_stats(self) -> None:
        """Reset cache statistics."""
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
            "expired": 0,
        }
