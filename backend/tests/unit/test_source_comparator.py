"""
Unit Tests - Source Comparator
Tests for structural scoring and cross-source discrepancy reporting.
"""
import pytest

from puzzle_service.fetchers.models import PuzzleRecord
from puzzle_service.fetchers.source_comparator import compare_records, score_record
from puzzle_service.utils.exceptions import ExhaustedError


class TestScoreRecord:
    """Tests for score_record."""

    def test_complete_record(self, puzzle_data):
        """Four groups, sixteen words, sane names, hints equal to names."""
        score = score_record(puzzle_data, "StaticData")
        assert score.source == "StaticData"
        assert score.score == 80
        assert score.issues == []

    def test_distinct_hints_and_multi_word_entries(self, puzzle_data):
        puzzle_data["groups"][0]["hint"] = "Bakery"
        puzzle_data["groups"][3]["words"][0] = "ICE BOX"
        assert score_record(puzzle_data).score == 95

    def test_accepts_puzzle_record(self, puzzle_data):
        record = PuzzleRecord.from_dict({**puzzle_data, "source": "BackendAPI"})
        score = score_record(record)
        assert score.source == "BackendAPI"
        assert score.score == 80

    def test_incomplete_record(self, puzzle_data):
        puzzle_data["groups"] = puzzle_data["groups"][:3]
        puzzle_data["groups"][0]["words"] = ["RYE"]
        puzzle_data["groups"][1]["name"] = ""

        score = score_record(puzzle_data)

        assert score.score == 20
        assert "Group 1: expected 4 words, got 1" in score.issues
        assert "Group 2: missing name" in score.issues


class TestCompareRecords:
    """Tests for compare_records."""

    def test_empty_input(self):
        with pytest.raises(ExhaustedError):
            compare_records({})

    def test_single_source(self, puzzle_data):
        result = compare_records({"StaticData": puzzle_data})
        assert result.best_source == "StaticData"
        assert result.confidence == "single_source"
        assert result.discrepancies == []

    def test_tie_keeps_first_source(self, puzzle_factory):
        result = compare_records({"First": puzzle_factory(), "Second": puzzle_factory()})
        assert result.best_source == "First"
        assert result.confidence == "cross_validated"
        assert result.discrepancies == []

    def test_reports_lower_quality_and_word_differences(self, puzzle_factory):
        partial = puzzle_factory()
        partial["groups"] = partial["groups"][:3]

        result = compare_records({"Partial": partial, "Full": puzzle_factory()})

        assert result.best_source == "Full"
        issues = [d.issue for d in result.discrepancies]
        assert any(issue.startswith("Data quality significantly lower") for issue in issues)
        assert "Word list differs from best source" in issues

    def test_word_case_ignored(self, puzzle_factory):
        lower = puzzle_factory()
        for group in lower["groups"]:
            group["words"] = [word.lower() for word in group["words"]]

        result = compare_records({"Upper": puzzle_factory(), "Lower": lower})
        assert result.discrepancies == []

    def test_to_dict(self, puzzle_data):
        record = PuzzleRecord.from_dict(puzzle_data)
        data = compare_records({"StaticData": record}).to_dict()
        assert data["best_source"] == "StaticData"
        assert data["best_record"]["gameId"] == 801
        assert data["scores"]["StaticData"]["score"] == 80
