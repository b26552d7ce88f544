"""
Unit Tests - Static Data Fetcher
Tests for table lookups and JSON loading.
"""
import json
import pytest

from puzzle_service.fetchers.adapters.static_data import SOURCE_NAME, StaticDataFetcher
from puzzle_service.utils.exceptions import FetcherConfigurationError, NotFoundError


@pytest.fixture
def fetcher(puzzle_factory) -> StaticDataFetcher:
    return StaticDataFetcher([puzzle_factory("2025-08-19"), puzzle_factory("2025-08-20")])


class TestStaticDataFetcher:
    """Tests for StaticDataFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_known_date(self, fetcher):
        record = await fetcher.fetch_puzzle("2025-08-20")
        assert record.source == SOURCE_NAME
        assert record.game_id == 801
        assert record.groups[0].hint == "Kinds of Bread"

    @pytest.mark.asyncio
    async def test_unknown_date_not_found(self, fetcher):
        with pytest.raises(NotFoundError, match="Puzzle not found in static data for 2025-08-01"):
            await fetcher.fetch_puzzle("2025-08-01")

    @pytest.mark.asyncio
    async def test_availability(self, fetcher):
        assert await fetcher.is_available("2025-08-19") is True
        assert await fetcher.is_available("2025-08-01") is False

    @pytest.mark.asyncio
    async def test_table_is_copied(self, puzzle_factory):
        """Mutating the input table does not affect served records."""
        data = puzzle_factory()
        fetcher = StaticDataFetcher({"2025-08-20": data})
        data["groups"][0]["words"][0] = "CHANGED"

        record = await fetcher.fetch_puzzle("2025-08-20")
        assert record.groups[0].words[0] == "RYE"

    def test_entry_without_date_rejected(self, puzzle_factory):
        data = puzzle_factory()
        del data["date"]
        with pytest.raises(FetcherConfigurationError):
            StaticDataFetcher([data])

    def test_available_dates_and_metadata(self, fetcher):
        assert fetcher.get_available_dates() == ["2025-08-19", "2025-08-20"]
        metadata = fetcher.get_source_metadata()
        assert metadata["type"] == "static"
        assert metadata["total_puzzles"] == 2
        assert metadata["date_range"] == {"earliest": "2025-08-19", "latest": "2025-08-20"}

    @pytest.mark.asyncio
    async def test_from_json_file(self, tmp_path, puzzle_factory):
        path = tmp_path / "puzzles.json"
        path.write_text(json.dumps([puzzle_factory()]), encoding="utf-8")

        fetcher = StaticDataFetcher.from_json_file(path)

        assert fetcher.get_available_dates() == ["2025-08-20"]
        assert (await fetcher.fetch_puzzle("2025-08-20")).game_id == 801

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(FetcherConfigurationError):
            StaticDataFetcher.from_json_file(tmp_path / "missing.json")

    def test_from_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(FetcherConfigurationError):
            StaticDataFetcher.from_json_file(path)

    @pytest.mark.parametrize("content", ["[1, 2]", "42", '"puzzles"', '{"2025-08-20": 1}'])
    def test_from_json_file_wrong_shape(self, tmp_path, content):
        path = tmp_path / "shape.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(FetcherConfigurationError):
            StaticDataFetcher.from_json_file(path)
