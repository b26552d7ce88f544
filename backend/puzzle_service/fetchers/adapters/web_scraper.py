"""
Web Scraper Fetcher Base

Shared plumbing for scraping-style puzzle sources: request pacing,
user-agent rotation, optional proxy fallback, per-request timeout and
retry. Site-specific parsing lives in subclasses, which implement
build_url() and parse_content().
"""
import asyncio
import html
import json
import re
import time
from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Any, Awaitable, Callable
from urllib.parse import quote
import aiohttp
from loguru import logger

from puzzle_service.fetchers.adapters.base import BaseFetcher, FetcherConfig
from puzzle_service.fetchers.data_validator import DataValidator
from puzzle_service.fetchers.retry import RetryExecutor
from puzzle_service.utils.dates import format_date
from puzzle_service.utils.exceptions import (
    FetchError,
    MalformedDataError,
    NotFoundError,
    PersistentSourceError,
    TransientNetworkError,
)


ALLORIGINS_PROXY = "https://api.allorigins.win/get?url="

DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
]

PUZZLE_WORD_PATTERN = re.compile(r"connections", re.IGNORECASE)
PUZZLE_HINT_PATTERN = re.compile(r"yellow|green|blue|purple|group|category|word", re.IGNORECASE)

DATE_TEXT_FORMATS = (
    "%Y-%m-%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%A, %B %d, %Y",
    "%d %B %Y",
    "%m/%d/%Y",
)


@dataclass
class ScraperConfig:
    """Scraping behaviour shared by all web sources."""
    user_agents: list[str] = field(default_factory=lambda: list(DEFAULT_USER_AGENTS))
    request_delay: float = 1.0  # Minimum seconds between requests
    proxy_url: Optional[str] = None  # e.g. ALLORIGINS_PROXY
    accept: str = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
    accept_language: str = "en-US,en;q=0.5"


def clean_text(text: str) -> str:
    """Unescape HTML entities and collapse whitespace."""
    return re.sub(r"\s+", " ", html.unescape(text or "")).strip()


def normalize_date_text(text: str) -> str:
    """
    Convert a date as printed on a page into YYYY-MM-DD.

    Raises:
        ValueError: If no known format matches
    """
    cleaned = clean_text(text)
    cleaned = re.sub(r"^(for\s+|puzzle\s+for\s+|date:\s*)", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s*\(.*\)$", "", cleaned)
    cleaned = re.sub(r"(\d+)(st|nd|rd|th)\b", r"\1", cleaned)

    for fmt in DATE_TEXT_FORMATS:
        try:
            return format_date(datetime.strptime(cleaned, fmt).date())
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date text: {text!r}")


class WebScraperFetcher(BaseFetcher):
    """
    Base class for HTML-scraping puzzle sources.

    Subclasses implement:
    - build_url(): Page URL for a date
    - parse_content(): Raw candidate record from page text
    """

    def __init__(
        self,
        config: FetcherConfig,
        scraper_config: Optional[ScraperConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        validator: Optional[DataValidator] = None,
        retry_executor: Optional[RetryExecutor] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        super().__init__(config, validator=validator, retry_executor=retry_executor)
        self.scraper_config = scraper_config or ScraperConfig()
        if not self.scraper_config.user_agents:
            self.scraper_config.user_agents = list(DEFAULT_USER_AGENTS)
        self._session = session
        self._owns_session = session is None
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: Optional[float] = None
        self._user_agent_index = 0
        self._pacing_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        logger.info(f"[{self.name}] Scraper initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    @abstractmethod
    def build_url(self, date: str) -> str:
        """Page URL holding the puzzle for a date."""

    @abstractmethod
    def parse_content(self, text: str, date: str) -> dict[str, Any]:
        """
        Extract a raw candidate record from page text.

        Raises:
            NotFoundError: Page has no puzzle for the date
            MalformedDataError: Page could not be parsed
        """

    # ==================== Request Plumbing ====================

    def next_user_agent(self) -> str:
        agents = self.scraper_config.user_agents
        agent = agents[self._user_agent_index % len(agents)]
        self._user_agent_index = (self._user_agent_index + 1) % len(agents)
        return agent

    async def _enforce_rate_limit(self) -> None:
        async with self._pacing_lock:
            if self._last_request_time is not None:
                elapsed = self._clock() - self._last_request_time
                wait = self.scraper_config.request_delay - elapsed
                if wait > 0:
                    logger.debug(f"[{self.name}] Rate limiting: waiting {wait:.2f}s")
                    await self._sleep(wait)
            self._last_request_time = self._clock()

    def _headers(self, with_user_agent: bool = True) -> dict[str, str]:
        headers = {
            "Accept": self.scraper_config.accept,
            "Accept-Language": self.scraper_config.accept_language,
        }
        if with_user_agent:
            headers["User-Agent"] = self.next_user_agent()
        return headers

    async def _get_text(self, url: str, headers: dict[str, str], date: str) -> str:
        """GET a URL and classify failures."""
        if not self._session:
            await self.initialize()
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        try:
            async with self._session.get(url, headers=headers, timeout=timeout) as response:
                status = response.status
                if status == 404:
                    raise NotFoundError(self.name, date, f"Page not found: {url}")
                if status in (401, 403, 429):
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
                return await response.text()

        except asyncio.TimeoutError as e:
            raise TransientNetworkError(self.name, "Request timed out") from e
        except aiohttp.ClientError as e:
            raise TransientNetworkError(self.name, f"Connection error: {e}") from e

    async def fetch_page(self, url: str, date: str) -> str:
        """Fetch page text directly, falling back to the proxy when configured."""
        await self._enforce_rate_limit()
        logger.debug(f"[{self.name}] Requesting {url}")

        try:
            return await self._get_text(url, self._headers(), date)
        except (TransientNetworkError, PersistentSourceError) as direct_error:
            proxy_url = self.scraper_config.proxy_url
            if not proxy_url:
                raise
            logger.warning(f"[{self.name}] Direct request failed: {direct_error}, trying proxy")

            try:
                body = await self._get_text(
                    proxy_url + quote(url, safe=""), self._headers(with_user_agent=False), date
                )
                return self._unwrap_proxy_body(body)
            except FetchError as proxy_error:
                logger.error(f"[{self.name}] Proxy also failed: {proxy_error}")
                raise direct_error from proxy_error

    def _unwrap_proxy_body(self, body: str) -> str:
        """Proxies in the allorigins style wrap the page as {"contents": "..."}."""
        try:
            data = json.loads(body)
        except ValueError as e:
            raise TransientNetworkError(self.name, f"Proxy returned invalid JSON: {e}") from e
        contents = data.get("contents") if isinstance(data, dict) else None
        if not isinstance(contents, str):
            raise TransientNetworkError(self.name, "Proxy response has no contents")
        return contents

    # ==================== Fetch ====================

    async def _scrape(self, date: str) -> dict[str, Any]:
        url = self.build_url(date)
        text = await self.fetch_page(url, date)
        try:
            raw = self.parse_content(text, date)
        except FetchError:
            raise
        except Exception as e:
            raise MalformedDataError(self.name, f"Failed to parse page: {e}") from e

        if isinstance(raw, dict):
            raw.setdefault("sourceUrl", url)
        return raw

    async def _execute_fetch(self, date: str) -> dict[str, Any]:
        return await self.with_retry(lambda: self._scrape(date), f"scrape {date}")

    def has_puzzle_content(self, text: str, date: str) -> bool:
        """Cheap check that a page looks like it holds a puzzle. Override per site."""
        return bool(PUZZLE_WORD_PATTERN.search(text)) and bool(PUZZLE_HINT_PATTERN.search(text))

    async def is_available(self, date: str) -> bool:
        """One unretried request and a content check; the page is not parsed."""
        try:
            text = await self.fetch_page(self.build_url(date), date)
            return self.has_puzzle_content(text, date)
        except FetchError as e:
            logger.debug(f"[{self.name}] Not available for {date}: {e}")
            return False
