"""
Puzzle source adapters.
"""
from puzzle_service.fetchers.adapters.base import BaseFetcher, FetcherConfig
from puzzle_service.fetchers.adapters.static_data import StaticDataFetcher
from puzzle_service.fetchers.adapters.backend_api import BackendApiFetcher
from puzzle_service.fetchers.adapters.web_scraper import WebScraperFetcher, ScraperConfig

__all__ = [
    "BaseFetcher",
    "FetcherConfig",
    "StaticDataFetcher",
    "BackendApiFetcher",
    "WebScraperFetcher",
    "ScraperConfig",
]
