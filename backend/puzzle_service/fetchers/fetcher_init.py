"""
Fetcher Initialization Module

Builds an orchestrator from application settings and registers the
configured puzzle sources with their default priorities.
"""
from pathlib import Path
from loguru import logger

from puzzle_service.fetchers.orchestrator import OrchestratorConfig, PuzzleFetcherOrchestrator
from puzzle_service.fetchers.adapters.static_data import (
    StaticDataFetcher,
    create_static_data_config,
)
from puzzle_service.fetchers.adapters.backend_api import (
    BackendApiFetcher,
    create_backend_api_config,
)


# Lower tries first
FETCHER_PRIORITIES = {
    "StaticData": 10,
    "BackendAPI": 20,
}


def create_orchestrator(settings) -> PuzzleFetcherOrchestrator:
    """
    Create an orchestrator with every source enabled in settings.

    The orchestrator is returned uninitialised; call initialize() from a
    running event loop to open sessions and start the health probe.
    """
    config = OrchestratorConfig.from_settings(settings)
    orchestrator = PuzzleFetcherOrchestrator(config)

    static_path = settings.STATIC_PUZZLES_PATH
    if static_path:
        if Path(static_path).is_file():
            static_config = create_static_data_config()
            static_config.allow_future_dates = config.allow_future_dates
            orchestrator.register_fetcher(
                StaticDataFetcher.from_json_file(static_path, config=static_config),
                priority=FETCHER_PRIORITIES["StaticData"],
            )
        else:
            logger.warning(f"Static puzzle file not found: {static_path}")

    if settings.BACKEND_API_URL:
        api_config = create_backend_api_config(
            base_url=settings.BACKEND_API_URL,
            timeout_seconds=config.request_timeout_seconds,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay_seconds,
        )
        api_config.allow_future_dates = config.allow_future_dates
        orchestrator.register_fetcher(
            BackendApiFetcher(api_config),
            priority=FETCHER_PRIORITIES["BackendAPI"],
        )

    logger.info(
        f"Configured {len(orchestrator.get_fetchers())} puzzle fetchers: "
        f"{', '.join(r.name for r in orchestrator.get_fetchers()) or 'none'}"
    )
    return orchestrator
