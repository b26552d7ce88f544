"""
Static Data Fetcher

Serves already-known puzzles from an in-memory table, optionally loaded
from a JSON file. No network access; availability is a table lookup.

Accepted JSON layouts:
- a list of records in wire shape
- an object mapping ISO dates to records
"""
import copy
import json
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union
from loguru import logger

from puzzle_service.fetchers.adapters.base import BaseFetcher, FetcherConfig
from puzzle_service.fetchers.data_validator import DataValidator
from puzzle_service.utils.exceptions import FetcherConfigurationError, NotFoundError


SOURCE_NAME = "StaticData"

PuzzleTable = Union[Mapping[str, Mapping[str, Any]], Iterable[Mapping[str, Any]]]


def create_static_data_config(name: str = SOURCE_NAME) -> FetcherConfig:
    """Create configuration for the static data fetcher."""
    return FetcherConfig(
        name=name,
        timeout_seconds=1.0,
        retry_attempts=1,
        retry_delay=0.0,
    )


class StaticDataFetcher(BaseFetcher):
    """Fetcher backed by a fixed table of puzzles."""

    def __init__(
        self,
        puzzles: PuzzleTable,
        config: Optional[FetcherConfig] = None,
        validator: Optional[DataValidator] = None,
    ):
        super().__init__(config or create_static_data_config(), validator=validator)
        self._puzzles = self._index(puzzles)
        logger.info(f"[{self.name}] Loaded {len(self._puzzles)} static puzzles")

    @staticmethod
    def _index(puzzles: PuzzleTable) -> dict[str, dict]:
        if isinstance(puzzles, Mapping):
            indexed = {}
            for date, puzzle in puzzles.items():
                if not isinstance(puzzle, Mapping):
                    raise FetcherConfigurationError(f"Static puzzle for {date} is not an object")
                indexed[date] = copy.deepcopy(dict(puzzle))
            return indexed

        if isinstance(puzzles, (str, bytes)) or not isinstance(puzzles, Iterable):
            raise FetcherConfigurationError(
                f"Static puzzles must be a list or an object, got {type(puzzles).__name__}"
            )

        indexed = {}
        for puzzle in puzzles:
            if not isinstance(puzzle, Mapping):
                raise FetcherConfigurationError(
                    f"Static puzzle entry is not an object: {puzzle!r}"
                )
            date = puzzle.get("date")
            if not date:
                raise FetcherConfigurationError("Static puzzle entry is missing a date")
            indexed[date] = copy.deepcopy(dict(puzzle))
        return indexed

    @classmethod
    def from_json_file(
        cls,
        path: Union[str, Path],
        config: Optional[FetcherConfig] = None,
    ) -> "StaticDataFetcher":
        """Load the puzzle table from a JSON file."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise FetcherConfigurationError(f"Cannot load static puzzles from {path}: {e}") from e
        return cls(data, config=config)

    async def _execute_fetch(self, date: str) -> dict:
        logger.debug(f"[{self.name}] Looking up static data for {date}")
        puzzle = self._puzzles.get(date)
        if puzzle is None:
            raise NotFoundError(self.name, date, f"Puzzle not found in static data for {date}")

        data = copy.deepcopy(puzzle)
        data.setdefault("date", date)
        for group in data.get("groups") or []:
            if isinstance(group, dict) and not group.get("hint"):
                group["hint"] = group.get("name")
        data["source"] = self.name
        return data

    async def is_available(self, date: str) -> bool:
        return date in self._puzzles

    def get_available_dates(self) -> list[str]:
        return sorted(self._puzzles)

    def get_source_metadata(self) -> dict[str, Any]:
        dates = self.get_available_dates()
        return {
            **super().get_source_metadata(),
            "type": "static",
            "total_puzzles": len(dates),
            "date_range": {
                "earliest": dates[0] if dates else None,
                "latest": dates[-1] if dates else None,
            },
        }
