"""
Puzzle Data Models

Canonical puzzle record shared by every fetcher, plus the per-fetcher
statistics container. Records are immutable; derived fields are computed.
"""
from dataclasses import dataclass, replace, asdict
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional, Any, Mapping


class PuzzleLevel(IntEnum):
    """Difficulty levels, easiest first."""
    YELLOW = 0
    GREEN = 1
    BLUE = 2
    PURPLE = 3


PUZZLE_LEVELS = {level.name: level.value for level in PuzzleLevel}
LEVEL_NAMES = {level.value: level.name for level in PuzzleLevel}

GROUP_COUNT = 4
WORDS_PER_GROUP = 4
CATEGORY_SEPARATOR = " | "


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class PuzzleGroup:
    """One group of four connected words."""
    name: str
    level: int
    words: tuple[str, ...]
    hint: str = ""

    def __post_init__(self):
        object.__setattr__(self, "words", tuple(self.words))
        if not self.hint:
            object.__setattr__(self, "hint", self.name)

    @property
    def level_name(self) -> str:
        return LEVEL_NAMES.get(self.level, "UNKNOWN")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "level": self.level,
            "words": list(self.words),
            "hint": self.hint,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PuzzleGroup":
        return cls(
            name=data["name"],
            level=data["level"],
            words=tuple(data["words"]),
            hint=data.get("hint") or "",
        )


@dataclass(frozen=True)
class PuzzleRecord:
    """
    A validated daily puzzle.

    `words` and `category` are derived from `groups` and cannot be set.
    """
    date: str
    game_id: int
    groups: tuple[PuzzleGroup, ...]
    source: str = "unknown"
    source_url: Optional[str] = None
    fetched_at: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "groups", tuple(self.groups))

    @property
    def words(self) -> list[str]:
        """All 16 words, group order then word order."""
        return [word for group in self.groups for word in group.words]

    @property
    def category(self) -> str:
        return CATEGORY_SEPARATOR.join(group.name for group in self.groups)

    def copy(self) -> "PuzzleRecord":
        return replace(self)

    def with_metadata(self, **changes: Any) -> "PuzzleRecord":
        """Copy with source/source_url/fetched_at replaced."""
        return replace(self, **changes)

    def get_group_by_level(self, level: int) -> Optional[PuzzleGroup]:
        for group in self.groups:
            if group.level == level:
                return group
        return None

    def get_words_by_level(self, level: int) -> list[str]:
        group = self.get_group_by_level(level)
        return list(group.words) if group else []

    def has_word(self, word: str) -> bool:
        return self.find_group_for_word(word) is not None

    def find_group_for_word(self, word: str) -> Optional[PuzzleGroup]:
        """Case-insensitive lookup of the group containing a word."""
        needle = word.strip().lower()
        for group in self.groups:
            if any(candidate.lower() == needle for candidate in group.words):
                return group
        return None

    def to_dict(self) -> dict:
        """Canonical wire shape."""
        return {
            "date": self.date,
            "gameId": self.game_id,
            "groups": [group.to_dict() for group in self.groups],
            "source": self.source,
            "sourceUrl": self.source_url,
            "fetchedAt": self.fetched_at,
            "words": self.words,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PuzzleRecord":
        """Build from the wire shape. Derived keys are ignored."""
        game_id = data["gameId"] if "gameId" in data else data["game_id"]
        return cls(
            date=data["date"],
            game_id=game_id,
            groups=tuple(PuzzleGroup.from_dict(group) for group in data["groups"]),
            source=data.get("source") or "unknown",
            source_url=data.get("sourceUrl", data.get("source_url")),
            fetched_at=data.get("fetchedAt", data.get("fetched_at")),
        )


@dataclass
class FetchFailure:
    """Last failure seen by a fetcher."""
    timestamp: str
    error: str


@dataclass
class FetcherStats:
    """Per-fetcher counters, updated after every fetch attempt."""
    total_attempts: int = 0
    successful_fetches: int = 0
    failures: int = 0
    average_response_time_ms: float = 0.0
    last_successful: Optional[str] = None
    last_failure: Optional[FetchFailure] = None

    @property
    def success_rate(self) -> float:
        """Success percentage, 0-100."""
        if self.total_attempts == 0:
            return 0.0
        return self.successful_fetches / self.total_attempts * 100

    def record_attempt(self, response_time_ms: float) -> None:
        """Count an attempt and fold its latency into the running mean."""
        self.total_attempts += 1
        self.average_response_time_ms = (
            self.average_response_time_ms * (self.total_attempts - 1) + response_time_ms
        ) / self.total_attempts

    def record_success(self) -> None:
        self.successful_fetches += 1
        self.last_successful = utc_now_iso()

    def record_failure(self, error: BaseException) -> None:
        self.failures += 1
        self.last_failure = FetchFailure(timestamp=utc_now_iso(), error=str(error))

    def copy(self) -> "FetcherStats":
        return replace(
            self,
            last_failure=replace(self.last_failure) if self.last_failure else None,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["average_response_time_ms"] = round(self.average_response_time_ms, 2)
        data["success_rate"] = round(self.success_rate, 2)
        return data
