"""
Backend API Fetcher

Fetches puzzles from the companion puzzle backend over HTTP.

Endpoints:
- /api/fetch-puzzle/{date} - Puzzle for a date: {"success": bool, "data": {...}, "error": str}
- /api/health - Liveness probe
"""
import asyncio
from typing import Optional, Any
import aiohttp
from loguru import logger

from puzzle_service.fetchers.adapters.base import BaseFetcher, FetcherConfig
from puzzle_service.fetchers.data_validator import DataValidator
from puzzle_service.fetchers.retry import RetryExecutor
from puzzle_service.utils.exceptions import (
    MalformedDataError,
    NotFoundError,
    PersistentSourceError,
    TransientNetworkError,
)


SOURCE_NAME = "BackendAPI"
DEFAULT_BASE_URL = "http://localhost:3001"
HEALTH_TIMEOUT_SECONDS = 5.0

# Status codes that mean the source will keep refusing us
ACCESS_DENIED_STATUSES = {401, 403, 429}


def create_backend_api_config(
    base_url: str = DEFAULT_BASE_URL,
    timeout_seconds: float = 30.0,
    retry_attempts: int = 3,
    retry_delay: float = 1.0,
) -> FetcherConfig:
    """Create configuration for the backend API fetcher."""
    return FetcherConfig(
        name=SOURCE_NAME,
        base_url=base_url.rstrip("/"),
        timeout_seconds=timeout_seconds,
        retry_attempts=retry_attempts,
        retry_delay=retry_delay,
    )


class BackendApiFetcher(BaseFetcher):
    """Adapter for the puzzle backend REST API."""

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        validator: Optional[DataValidator] = None,
        retry_executor: Optional[RetryExecutor] = None,
    ):
        super().__init__(
            config or create_backend_api_config(),
            validator=validator,
            retry_executor=retry_executor,
        )
        self.base_url = (self.config.base_url or DEFAULT_BASE_URL).rstrip("/")
        self._session = session
        self._owns_session = session is None

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        logger.info(f"[{self.name}] Initialized against {self.base_url}")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None
        logger.info(f"[{self.name}] Closed")

    async def _get_session(self):
        if not self._session:
            await self.initialize()
        return self._session

    # ==================== Fetch ====================

    async def _execute_fetch(self, date: str) -> dict:
        try:
            payload = await self.with_retry(lambda: self._request_puzzle(date), f"fetch {date}")
        except TransientNetworkError as e:
            if e.status_code and e.status_code >= 500:
                raise PersistentSourceError(
                    self.name,
                    f"Repeated server error (HTTP {e.status_code}) after {e.attempts} attempts",
                    status_code=e.status_code,
                ) from e
            raise

        return self._parse_payload(payload, date)

    async def _request_puzzle(self, date: str) -> Any:
        url = f"{self.base_url}/api/fetch-puzzle/{date}"
        session = await self._get_session()
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        try:
            async with session.get(
                url,
                headers={"Accept": "application/json"},
                timeout=timeout,
            ) as response:
                status = response.status

                if status == 404:
                    raise NotFoundError(self.name, date)
                if status in ACCESS_DENIED_STATUSES:
                    raise PersistentSourceError(
                        self.name, f"Access denied (HTTP {status})", status_code=status
                    )
                if status >= 500:
                    raise TransientNetworkError(
                        self.name, f"Server error (HTTP {status})", status_code=status
                    )
                if status != 200:
                    raise PersistentSourceError(
                        self.name, f"Unexpected response (HTTP {status})", status_code=status
                    )

                try:
                    return await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise MalformedDataError(self.name, f"Response is not valid JSON: {e}") from e

        except asyncio.TimeoutError as e:
            raise TransientNetworkError(
                self.name, f"Request timed out after {self.config.timeout_seconds}s"
            ) from e
        except aiohttp.ClientError as e:
            raise TransientNetworkError(self.name, f"Connection error: {e}") from e

    def _parse_payload(self, payload: Any, date: str) -> dict:
        if not isinstance(payload, dict):
            raise MalformedDataError(self.name, "Response body is not an object")

        if not payload.get("success"):
            raise MalformedDataError(
                self.name,
                payload.get("error") or "Backend API returned unsuccessful response",
            )

        data = payload.get("data")
        if not isinstance(data, dict):
            raise MalformedDataError(self.name, "Response is missing puzzle data")

        upstream = data.get("source")
        return {
            "date": data.get("date"),
            "gameId": data.get("gameId"),
            "groups": data.get("groups"),
            "source": f"{self.name}-{upstream}" if upstream else self.name,
            "sourceUrl": f"{self.base_url}/api/fetch-puzzle/{date}",
            "fetchedAt": data.get("fetchedAt"),
        }

    # ==================== Availability ====================

    async def is_available(self, date: str) -> bool:
        """Probe the backend health endpoint."""
        url = f"{self.base_url}/api/health"
        session = await self._get_session()
        try:
            async with session.get(
                url, timeout=aiohttp.ClientTimeout(total=HEALTH_TIMEOUT_SECONDS)
            ) as response:
                return response.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"[{self.name}] Availability check failed for {date}: {e}")
            return False
