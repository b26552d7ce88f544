"""
Unit Tests - Data Validator
Tests for record validation, strict mode and sanitization.
"""
import pytest
from datetime import date

from puzzle_service.fetchers.data_validator import DataValidator, ValidationResult
from puzzle_service.fetchers.models import PuzzleRecord
from puzzle_service.utils.exceptions import MalformedDataError


@pytest.fixture
def fixed_validator() -> DataValidator:
    """Validator whose today is 2025-09-01."""
    return DataValidator(today=lambda: date(2025, 9, 1))


class TestValidateDate:
    """Tests for date field validation."""

    def test_valid_date(self, fixed_validator):
        result = fixed_validator.validate_date("2025-08-20")
        assert result.is_valid is True
        assert result.errors == []

    def test_bad_format(self, fixed_validator):
        result = fixed_validator.validate_date("08/20/2025")
        assert result.is_valid is False
        assert "Invalid date format" in result.errors[0]

    def test_nonexistent_date(self, fixed_validator):
        result = fixed_validator.validate_date("2025-02-30")
        assert result.errors == ["Invalid date: 2025-02-30 does not exist"]

    def test_future_date(self, fixed_validator):
        result = fixed_validator.validate_date("2025-09-02")
        assert result.errors == ["Date 2025-09-02 is in the future"]

    def test_future_allowed(self, fixed_validator):
        assert fixed_validator.validate_date("2025-09-02", allow_future=True).is_valid is True

    def test_pre_launch_is_warning(self, fixed_validator):
        """Pre-launch dates are suspicious, not invalid."""
        result = fixed_validator.validate_date("2023-01-01")
        assert result.is_valid is True
        assert len(result.warnings) == 1
        assert "before Connections launched" in result.warnings[0]


class TestValidateGameId:
    """Tests for game number validation."""

    @pytest.mark.parametrize("value", [0, -3, "12", 1.5, True, None])
    def test_rejects_non_positive_or_non_int(self, validator, value):
        assert validator.validate_game_id(value).is_valid is False

    def test_matching_id(self, validator):
        result = validator.validate_game_id(801, "2025-08-20")
        assert result.is_valid is True
        assert result.warnings == []

    def test_mismatch_is_warning(self, validator):
        result = validator.validate_game_id(800, "2025-08-20")
        assert result.is_valid is True
        assert "does not match expected 801" in result.warnings[0]

    def test_high_id_warning(self, validator):
        result = validator.validate_game_id(20000)
        assert "unusually high" in result.warnings[0]


class TestValidateGroup:
    """Tests for single group validation."""

    def test_valid_group(self, validator):
        group = {"name": "Planets", "level": 2, "words": ["MARS", "VENUS", "SATURN", "EARTH"]}
        assert validator.validate_group(group, 0).is_valid is True

    def test_not_an_object(self, validator):
        result = validator.validate_group("Planets", 2)
        assert result.errors == ["Group 3: must be an object"]

    def test_missing_name(self, validator):
        group = {"name": "  ", "level": 0, "words": ["A", "B", "C", "D"]}
        assert "Group 1: name is required" in validator.validate_group(group, 0).errors

    @pytest.mark.parametrize("level", [-1, 4, "1", None, True])
    def test_bad_level(self, validator, level):
        group = {"name": "x", "level": level, "words": ["A", "B", "C", "D"]}
        result = validator.validate_group(group, 0)
        assert any("level must be an integer between 0 and 3" in e for e in result.errors)

    def test_wrong_word_count(self, validator):
        group = {"name": "x", "level": 0, "words": ["A", "B", "C"]}
        result = validator.validate_group(group, 0)
        assert "Group 1: must have exactly 4 words, got 3" in result.errors

    def test_empty_word(self, validator):
        group = {"name": "x", "level": 0, "words": ["A", "", "C", "D"]}
        result = validator.validate_group(group, 0)
        assert "Group 1: word 2 must be a non-empty string" in result.errors

    def test_unusual_word_warning(self, validator):
        group = {"name": "x", "level": 0, "words": ["A", "B!", "C", "D"]}
        result = validator.validate_group(group, 0)
        assert result.is_valid is True
        assert "unusual characters" in result.warnings[0]

    def test_long_name_warning(self, validator):
        group = {"name": "x" * 60, "level": 0, "words": ["A", "B", "C", "D"]}
        result = validator.validate_group(group, 0)
        assert result.is_valid is True
        assert "unusually long" in result.warnings[0]

    def test_hint_must_be_string(self, validator):
        group = {"name": "x", "level": 0, "words": ["A", "B", "C", "D"], "hint": 5}
        assert "Group 1: hint must be a string" in validator.validate_group(group, 0).errors


class TestValidateRecord:
    """Tests for whole-record validation and invariants."""

    def test_valid_record(self, fixed_validator, puzzle_data):
        result = fixed_validator.validate(puzzle_data)
        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_accepts_puzzle_record(self, fixed_validator, puzzle_data):
        record = PuzzleRecord.from_dict(puzzle_data)
        assert fixed_validator.validate(record).is_valid is True

    def test_not_an_object(self, validator):
        assert validator.validate(["nope"]).errors == ["Puzzle data must be an object"]

    def test_missing_fields(self, validator):
        result = validator.validate({})
        assert result.errors == [
            "Missing required field: date",
            "Missing required field: gameId",
            "Missing required field: groups",
        ]

    def test_wrong_group_count(self, fixed_validator, puzzle_data):
        puzzle_data["groups"] = puzzle_data["groups"][:3]
        result = fixed_validator.validate(puzzle_data)
        assert "Puzzle must have exactly 4 groups, got 3" in result.errors

    def test_duplicate_words(self, fixed_validator, puzzle_data):
        """Words must be unique across the puzzle, case-insensitively."""
        puzzle_data["groups"][1]["words"][0] = "rye"
        result = fixed_validator.validate(puzzle_data)
        assert result.is_valid is False
        assert "Duplicate words found: rye" in result.errors

    def test_duplicate_group_names(self, fixed_validator, puzzle_data):
        puzzle_data["groups"][2]["name"] = "chess pieces"
        result = fixed_validator.validate(puzzle_data)
        assert "Duplicate group names found: chess pieces" in result.errors

    def test_duplicate_level_reports_single_error(self, fixed_validator, puzzle_data):
        """Levels [0, 0, 1, 2] yield exactly one level error."""
        for group, level in zip(puzzle_data["groups"], [0, 0, 1, 2]):
            group["level"] = level

        result = fixed_validator.validate(puzzle_data)

        assert result.is_valid is False
        assert result.errors == [
            "Group levels must be exactly one each of 0-3 (duplicate: 0; missing: 3)"
        ]

    def test_non_standard_order_is_warning(self, fixed_validator, puzzle_data):
        puzzle_data["groups"].reverse()
        result = fixed_validator.validate(puzzle_data)
        assert result.is_valid is True
        assert result.warnings == ["Groups are not in standard level order"]

    def test_cross_checks_skipped_for_broken_groups(self, fixed_validator, puzzle_data):
        """Invariant checks run only once every group is well formed."""
        puzzle_data["groups"][0]["words"] = ["A"]
        puzzle_data["groups"][1]["level"] = 0
        result = fixed_validator.validate(puzzle_data)
        assert not any("Group levels" in e for e in result.errors)

    def test_strict_promotes_warnings(self, fixed_validator, puzzle_data):
        puzzle_data["gameId"] = 5
        lenient = fixed_validator.validate(puzzle_data)
        strict = fixed_validator.validate(puzzle_data, strict=True)

        assert lenient.is_valid is True
        assert strict.is_valid is False
        assert strict.warnings == []
        assert any("does not match expected" in e for e in strict.errors)


class TestSanitize:
    """Tests for normalization and validate_and_sanitize."""

    def test_normalize_trims_and_coerces(self, validator, puzzle_data):
        puzzle_data["date"] = " 2025-08-20 "
        puzzle_data["gameId"] = "801"
        puzzle_data["groups"][0]["name"] = "  Kinds of Bread "
        puzzle_data["groups"][0]["level"] = "0"
        puzzle_data["groups"][0]["words"][0] = " RYE"

        normalized = validator.normalize(puzzle_data)

        assert normalized["date"] == "2025-08-20"
        assert normalized["gameId"] == 801
        assert normalized["groups"][0]["name"] == "Kinds of Bread"
        assert normalized["groups"][0]["level"] == 0
        assert normalized["groups"][0]["words"][0] == "RYE"
        assert normalized["groups"][0]["hint"] == "Kinds of Bread"

    def test_normalize_does_not_mutate_input(self, validator, puzzle_data):
        puzzle_data["groups"][0]["words"][0] = " RYE "
        validator.normalize(puzzle_data)
        assert puzzle_data["groups"][0]["words"][0] == " RYE "

    def test_normalize_rejects_non_object(self, validator):
        with pytest.raises(MalformedDataError):
            validator.normalize("not a puzzle")

    def test_normalize_rejects_bad_group(self, validator, puzzle_data):
        puzzle_data["groups"][2] = 42
        with pytest.raises(MalformedDataError, match="Group 3 is invalid"):
            validator.normalize(puzzle_data)

    def test_sanitize_returns_record(self, validator, puzzle_data):
        record = validator.sanitize(puzzle_data)
        assert isinstance(record, PuzzleRecord)
        assert record.game_id == 801

    def test_validate_and_sanitize_valid(self, fixed_validator, puzzle_data):
        puzzle_data["groups"][3]["words"][0] = "  ICE  "
        result = fixed_validator.validate_and_sanitize(puzzle_data)
        assert result.is_valid is True
        assert isinstance(result.data, PuzzleRecord)
        assert result.data.groups[3].words[0] == "ICE"

    def test_validate_and_sanitize_invalid_has_no_data(self, fixed_validator, puzzle_data):
        puzzle_data["groups"][0]["words"] = ["ONLY", "THREE", "WORDS"]
        result = fixed_validator.validate_and_sanitize(puzzle_data)
        assert result.is_valid is False
        assert result.data is None
        assert result.errors

    def test_validate_and_sanitize_non_object(self, validator):
        result = validator.validate_and_sanitize(None)
        assert result.is_valid is False
        assert result.data is None
        assert result.errors == ["Invalid puzzle data provided for sanitization"]


class TestValidationReport:
    """Tests for the human-readable report."""

    def test_valid_report(self):
        report = DataValidator.create_validation_report(ValidationResult())
        assert report.startswith("Validation Result: VALID")
        assert "No issues found." in report

    def test_invalid_report_lists_errors(self):
        result = ValidationResult()
        result.add_error("first problem")
        result.add_warning("a warning")
        report = DataValidator.create_validation_report(result)

        assert report.startswith("Validation Result: INVALID")
        assert "Errors (1):" in report
        assert "  1. first problem" in report
        assert "Warnings (1):" in report
