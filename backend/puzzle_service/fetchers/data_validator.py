"""
Data Validator

Validates candidate puzzle records against the canonical model and
normalizes them into immutable PuzzleRecord instances.

Validation never raises: every problem is collected into a result so
callers can report all of them at once.
"""
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Any, Callable, Mapping

from puzzle_service.fetchers.models import (
    PuzzleRecord,
    PuzzleGroup,
    GROUP_COUNT,
    WORDS_PER_GROUP,
)
from puzzle_service.utils.dates import (
    DATE_PATTERN,
    LAUNCH_DATE,
    calculate_game_id,
    format_date,
    is_valid_date_string,
    parse_date,
)
from puzzle_service.utils.exceptions import MalformedDataError


MAX_GAME_ID = 10000
MAX_GROUP_NAME_LENGTH = 50
MAX_WORD_LENGTH = 30
EXPECTED_LEVELS = [0, 1, 2, 3]
UNUSUAL_CHARACTERS = re.compile(r"[^\w\s\-'&]")
INTEGER_STRING = re.compile(r"^[+-]?\d+$")


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> None:
        for message in other.errors:
            self.add_error(message)
        self.warnings.extend(other.warnings)


@dataclass
class SanitizeResult:
    """Outcome of validate_and_sanitize; `data` is set only when valid."""
    is_valid: bool
    data: Optional[PuzzleRecord]
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_int(value: Any) -> Any:
    """Turn integer-looking strings into ints; leave anything else alone."""
    if isinstance(value, str) and INTEGER_STRING.match(value.strip()):
        return int(value.strip())
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _trim(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class DataValidator:
    """
    Validates and sanitizes puzzle data.

    Features:
    - Date checks (format, calendar, future, pre-launch)
    - Per-group checks (name, level, four words)
    - Cross-group invariants (unique words, unique names, one group per level)
    - Strict mode promoting warnings to errors
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self.today = today or date.today

    # ==================== Field Validation ====================

    def validate_date(self, value: Any, allow_future: bool = False) -> ValidationResult:
        """Validate an ISO date string."""
        result = ValidationResult()

        if not isinstance(value, str) or not DATE_PATTERN.match(value):
            result.add_error(f"Invalid date format: {value!r}. Expected YYYY-MM-DD")
            return result

        if not is_valid_date_string(value):
            result.add_error(f"Invalid date: {value} does not exist")
            return result

        parsed = parse_date(value)
        if not allow_future and parsed > self.today():
            result.add_error(f"Date {value} is in the future")

        if parsed < LAUNCH_DATE:
            result.add_warning(
                f"Date {value} is before Connections launched ({format_date(LAUNCH_DATE)})"
            )

        return result

    def validate_game_id(self, game_id: Any, puzzle_date: Optional[str] = None) -> ValidationResult:
        """Validate a game number, optionally against the date it belongs to."""
        result = ValidationResult()

        if not _is_int(game_id) or game_id <= 0:
            result.add_error(f"Game ID must be a positive integer, got {game_id!r}")
            return result

        if game_id > MAX_GAME_ID:
            result.add_warning(f"Game ID {game_id} seems unusually high")

        if puzzle_date and is_valid_date_string(puzzle_date):
            expected = calculate_game_id(puzzle_date)
            if expected != game_id:
                result.add_warning(
                    f"Game ID {game_id} does not match expected {expected} for {puzzle_date}"
                )

        return result

    def validate_group(self, group: Any, index: int) -> ValidationResult:
        """Validate a single group; `index` is zero-based."""
        result = ValidationResult()
        label = f"Group {index + 1}"

        if not isinstance(group, Mapping):
            result.add_error(f"{label}: must be an object")
            return result

        name = group.get("name")
        if not isinstance(name, str) or not name.strip():
            result.add_error(f"{label}: name is required")
        elif len(name) > MAX_GROUP_NAME_LENGTH:
            result.add_warning(f"{label}: name is unusually long ({len(name)} characters)")

        level = group.get("level")
        if not _is_int(level) or level not in EXPECTED_LEVELS:
            result.add_error(f"{label}: level must be an integer between 0 and 3, got {level!r}")

        words = group.get("words")
        if not isinstance(words, (list, tuple)):
            result.add_error(f"{label}: words must be a list")
        else:
            if len(words) != WORDS_PER_GROUP:
                result.add_error(
                    f"{label}: must have exactly {WORDS_PER_GROUP} words, got {len(words)}"
                )
            for position, word in enumerate(words, start=1):
                if not isinstance(word, str) or not word.strip():
                    result.add_error(f"{label}: word {position} must be a non-empty string")
                    continue
                if len(word) > MAX_WORD_LENGTH:
                    result.add_warning(f"{label}: word {word!r} is unusually long")
                if UNUSUAL_CHARACTERS.search(word):
                    result.add_warning(f"{label}: word {word!r} contains unusual characters")

        hint = group.get("hint")
        if hint is not None and not isinstance(hint, str):
            result.add_error(f"{label}: hint must be a string")

        return result

    # ==================== Record Validation ====================

    def validate(
        self,
        candidate: Any,
        strict: bool = False,
        allow_future: bool = False,
    ) -> ValidationResult:
        """
        Validate a candidate record.

        Args:
            candidate: Mapping in wire shape, or a PuzzleRecord
            strict: Promote warnings to errors
            allow_future: Accept dates after today

        Returns:
            ValidationResult with every error and warning found
        """
        if isinstance(candidate, PuzzleRecord):
            candidate = candidate.to_dict()

        result = ValidationResult()

        if not isinstance(candidate, Mapping):
            result.add_error("Puzzle data must be an object")
            return result

        game_id_key = "gameId" if "gameId" in candidate else "game_id"
        for field_name, key in (("date", "date"), ("gameId", game_id_key), ("groups", "groups")):
            if candidate.get(key) is None:
                result.add_error(f"Missing required field: {field_name}")

        puzzle_date = candidate.get("date")
        if puzzle_date is not None:
            result.merge(self.validate_date(puzzle_date, allow_future=allow_future))

        game_id = candidate.get(game_id_key)
        if game_id is not None:
            result.merge(self.validate_game_id(game_id, puzzle_date))

        groups = candidate.get("groups")
        if groups is not None:
            self._validate_groups(groups, result)

        source = candidate.get("source")
        if source is not None and not isinstance(source, str):
            result.add_warning("source should be a string")

        if strict and result.warnings:
            for warning in result.warnings:
                result.add_error(warning)
            result.warnings = []

        return result

    def _validate_groups(self, groups: Any, result: ValidationResult) -> None:
        if not isinstance(groups, (list, tuple)):
            result.add_error("groups must be a list")
            return

        if len(groups) != GROUP_COUNT:
            result.add_error(f"Puzzle must have exactly {GROUP_COUNT} groups, got {len(groups)}")

        group_results = [self.validate_group(group, index) for index, group in enumerate(groups)]
        for group_result in group_results:
            result.merge(group_result)

        # Cross-group invariants need four well-formed groups
        if len(groups) != GROUP_COUNT or any(not r.is_valid for r in group_results):
            return

        words = [word.strip().lower() for group in groups for word in group["words"]]
        duplicate_words = sorted(word for word, count in Counter(words).items() if count > 1)
        if duplicate_words:
            result.add_error(f"Duplicate words found: {', '.join(duplicate_words)}")

        names = [group["name"].strip().lower() for group in groups]
        duplicate_names = sorted(name for name, count in Counter(names).items() if count > 1)
        if duplicate_names:
            result.add_error(f"Duplicate group names found: {', '.join(duplicate_names)}")

        levels = [group["level"] for group in groups]
        if sorted(levels) != EXPECTED_LEVELS:
            level_counts = Counter(levels)
            duplicated = sorted(level for level, count in level_counts.items() if count > 1)
            missing = [level for level in EXPECTED_LEVELS if level not in level_counts]
            result.add_error(
                "Group levels must be exactly one each of 0-3 "
                f"(duplicate: {', '.join(map(str, duplicated)) or 'none'}; "
                f"missing: {', '.join(map(str, missing)) or 'none'})"
            )
        elif levels != EXPECTED_LEVELS:
            result.add_warning("Groups are not in standard level order")

    # ==================== Sanitization ====================

    def normalize(self, candidate: Any) -> dict:
        """
        Trimmed, typed copy of a candidate in wire shape.

        Raises:
            MalformedDataError: If the candidate or one of its groups is not an object
        """
        if isinstance(candidate, PuzzleRecord):
            candidate = candidate.to_dict()

        if not isinstance(candidate, Mapping):
            raise MalformedDataError("validator", "Invalid puzzle data provided for sanitization")

        game_id = candidate["gameId"] if "gameId" in candidate else candidate.get("game_id")
        normalized = {
            "date": _trim(candidate.get("date")),
            "gameId": _coerce_int(_trim(game_id)),
            "groups": candidate.get("groups"),
            "source": _trim(candidate.get("source")),
            "sourceUrl": candidate.get("sourceUrl", candidate.get("source_url")),
            "fetchedAt": candidate.get("fetchedAt", candidate.get("fetched_at")),
        }

        groups = candidate.get("groups")
        if isinstance(groups, (list, tuple)):
            normalized["groups"] = [
                self._normalize_group(group, index) for index, group in enumerate(groups)
            ]

        return normalized

    def _normalize_group(self, group: Any, index: int) -> dict:
        if isinstance(group, PuzzleGroup):
            group = group.to_dict()
        if not isinstance(group, Mapping):
            raise MalformedDataError("validator", f"Group {index + 1} is invalid")

        name = _trim(group.get("name"))
        words = group.get("words")
        if isinstance(words, (list, tuple)):
            words = [_trim(word) for word in words]

        hint = _trim(group.get("hint"))
        if not hint and isinstance(name, str):
            hint = name

        return {
            "name": name,
            "level": _coerce_int(_trim(group.get("level"))),
            "words": words,
            "hint": hint,
        }

    def sanitize(self, candidate: Any) -> PuzzleRecord:
        """
        Normalize a candidate into a PuzzleRecord without validating it.

        Raises:
            MalformedDataError: If the candidate cannot be shaped into a record
        """
        normalized = self.normalize(candidate)
        groups = normalized["groups"]
        if not isinstance(groups, list):
            raise MalformedDataError("validator", "groups must be a list")
        try:
            return PuzzleRecord.from_dict(normalized)
        except (KeyError, TypeError) as e:
            raise MalformedDataError("validator", f"Cannot build puzzle record: {e}") from e

    def validate_and_sanitize(
        self,
        candidate: Any,
        strict: bool = False,
        allow_future: bool = False,
    ) -> SanitizeResult:
        """
        Normalize then validate; the record is returned only if it is valid.
        """
        try:
            normalized = self.normalize(candidate)
        except MalformedDataError as e:
            return SanitizeResult(is_valid=False, data=None, errors=[e.reason])

        validation = self.validate(normalized, strict=strict, allow_future=allow_future)
        data = None
        if validation.is_valid:
            data = PuzzleRecord.from_dict(normalized)

        return SanitizeResult(
            is_valid=validation.is_valid,
            data=data,
            errors=validation.errors,
            warnings=validation.warnings,
        )

    @staticmethod
    def create_validation_report(result) -> str:
        """Human-readable summary of a ValidationResult or SanitizeResult."""
        lines = [f"Validation Result: {'VALID' if result.is_valid else 'INVALID'}"]

        if result.errors:
            lines.append("")
            lines.append(f"Errors ({len(result.errors)}):")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(result.errors, start=1))

        if result.warnings:
            lines.append("")
            lines.append(f"Warnings ({len(result.warnings)}):")
            lines.extend(f"  {i}. {warning}" for i, warning in enumerate(result.warnings, start=1))

        if not result.errors and not result.warnings:
            lines.append("No issues found.")

        return "\n".join(lines)
