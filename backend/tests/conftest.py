"""
Connections Puzzle Service - Test Configuration
Shared fixtures and test configuration.
"""
import asyncio
import copy
import os
import sys
from typing import Any, Callable, Optional
import pytest

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment
os.environ["APP_ENV"] = "testing"
os.environ["HEALTH_CHECK_INTERVAL_SECONDS"] = "0"
os.environ["STATIC_PUZZLES_PATH"] = ""

from puzzle_service.fetchers.adapters.base import BaseFetcher, FetcherConfig  # noqa: E402
from puzzle_service.fetchers.data_validator import DataValidator  # noqa: E402
from puzzle_service.utils.dates import calculate_game_id  # noqa: E402


SAMPLE_DATE = "2025-08-20"

SAMPLE_GROUPS = [
    {"name": "Kinds of Bread", "level": 0, "words": ["RYE", "NAAN", "PITA", "BRIOCHE"]},
    {"name": "Chess Pieces", "level": 1, "words": ["KING", "QUEEN", "ROOK", "BISHOP"]},
    {"name": "Planets", "level": 2, "words": ["MARS", "VENUS", "SATURN", "MERCURY"]},
    {"name": "___ Cream", "level": 3, "words": ["ICE", "SOUR", "SHAVING", "WHIPPED"]},
]


def make_puzzle_data(date: str = SAMPLE_DATE, **overrides: Any) -> dict:
    """Valid raw puzzle in wire shape."""
    data = {
        "date": date,
        "gameId": calculate_game_id(date),
        "groups": copy.deepcopy(SAMPLE_GROUPS),
    }
    data.update(overrides)
    return data


class FakeFetcher(BaseFetcher):
    """Scriptable fetcher for orchestrator tests."""

    def __init__(
        self,
        name: str,
        result: Optional[Callable[[str], Any]] = None,
        error: Optional[BaseException] = None,
        available: Any = True,
        gate: Optional[asyncio.Event] = None,
        **config_overrides: Any,
    ):
        config = FetcherConfig(name=name, retry_attempts=1, retry_delay=0.0, **config_overrides)
        super().__init__(config, validator=DataValidator())
        self.result = result or make_puzzle_data
        self.error = error
        self.available = available
        self.gate = gate
        self.calls: list[str] = []
        self.availability_calls: list[str] = []
        self.initialized = False
        self.closed = False

    async def initialize(self) -> None:
        self.initialized = True

    async def close(self) -> None:
        self.closed = True

    async def _execute_fetch(self, date: str) -> Any:
        self.calls.append(date)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result(date)

    async def is_available(self, date: str) -> bool:
        self.availability_calls.append(date)
        if isinstance(self.available, BaseException):
            raise self.available
        return self.available


class FakeResponse:
    """Stand-in for an aiohttp response used as an async context manager."""

    def __init__(self, status=200, payload=None, text="", json_error=None):
        self.status = status
        self._payload = payload
        self._text = text
        self._json_error = json_error

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type="application/json"):
        if self._json_error is not None:
            raise self._json_error
        return self._payload

    async def text(self):
        return self._text


class FakeSession:
    """Returns queued responses (or raises queued errors) from get(); the last one repeats."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "timeout": timeout})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        pass


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# =========================
# Puzzle Fixtures
# =========================

@pytest.fixture
def puzzle_data() -> dict:
    """Valid raw puzzle for SAMPLE_DATE."""
    return make_puzzle_data()


@pytest.fixture
def puzzle_factory() -> Callable[..., dict]:
    """Factory for valid raw puzzles."""
    return make_puzzle_data


@pytest.fixture
def validator() -> DataValidator:
    return DataValidator()


# =========================
# Fetcher Fixtures
# =========================

@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
