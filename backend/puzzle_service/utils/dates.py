"""
Connections Puzzle Service - Date Utilities
ISO date helpers shared by fetchers, the validator and the orchestrator.
"""
import re
from datetime import date, datetime, timedelta
from typing import Optional

from puzzle_service.utils.exceptions import DateOutOfRangeError, InvalidDateFormatError


# First Connections puzzle (game #1)
LAUNCH_DATE = date(2023, 6, 12)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_valid_date_string(value) -> bool:
    """Check YYYY-MM-DD shape and that the date exists on the calendar."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string into a date."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise InvalidDateFormatError(value)
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidDateFormatError(value, f"Invalid date: {value}")


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime("%Y-%m-%d")


def today_iso(today: Optional[date] = None) -> str:
    return format_date(today or date.today())


def days_ago(days: int, today: Optional[date] = None) -> str:
    return format_date((today or date.today()) - timedelta(days=days))


def yesterday_iso(today: Optional[date] = None) -> str:
    return days_ago(1, today)


def add_days(value: str, days: int) -> str:
    return format_date(parse_date(value) + timedelta(days=days))


def is_future_date(value: str, today: Optional[date] = None) -> bool:
    return parse_date(value) > (today or date.today())


def is_before_launch(value: str) -> bool:
    return parse_date(value) < LAUNCH_DATE


def ensure_fetchable_date(
    value: str,
    allow_future: bool = False,
    today: Optional[date] = None,
) -> date:
    """
    Check a requested puzzle date before any I/O.

    Raises:
        InvalidDateFormatError: Not a real YYYY-MM-DD date
        DateOutOfRangeError: In the future (unless allowed) or before launch
    """
    parsed = parse_date(value)
    if not allow_future and parsed > (today or date.today()):
        raise DateOutOfRangeError(value, f"Date {value} is in the future")
    if parsed < LAUNCH_DATE:
        raise DateOutOfRangeError(
            value, f"Date {value} is before Connections launched ({format_date(LAUNCH_DATE)})"
        )
    return parsed


def date_range(start: str, end: str) -> list[str]:
    """
    Inclusive list of ISO dates from start to end.

    Raises:
        ValueError: If start is after end
    """
    first = parse_date(start)
    last = parse_date(end)
    if first > last:
        raise ValueError(f"Start date {start} is after end date {end}")
    return [
        format_date(first + timedelta(days=offset))
        for offset in range((last - first).days + 1)
    ]


def calculate_game_id(value: str) -> int:
    """Game number for a date; launch day is game 1."""
    days_since_launch = (parse_date(value) - LAUNCH_DATE).days
    return max(1, days_since_launch + 1)
