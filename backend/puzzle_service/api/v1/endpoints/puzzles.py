"""
Connections Puzzle Service - Puzzle Endpoints
Fetch puzzles by date through the orchestrator
"""
from fastapi import APIRouter, Depends
from loguru import logger

from puzzle_service.dependencies import get_orchestrator
from puzzle_service.fetchers.orchestrator import PuzzleFetcherOrchestrator
from puzzle_service.utils.exceptions import PuzzleServiceError, raise_for_service_error

router = APIRouter()


@router.get(
    "/{date}",
    summary="Get puzzle by date",
    description="Return the validated puzzle for a YYYY-MM-DD date from the first source that has it."
)
async def get_puzzle(
    date: str,
    orchestrator: PuzzleFetcherOrchestrator = Depends(get_orchestrator),
):
    """Fetch a puzzle, serving from cache when possible."""
    try:
        record = await orchestrator.fetch_puzzle(date)
    except PuzzleServiceError as e:
        logger.warning(f"Puzzle request for {date} failed: {e}")
        raise_for_service_error(e)

    return record.to_dict()


@router.get(
    "/{date}/availability",
    summary="Check puzzle availability",
    description="Check whether the date is cached or any healthy source reports having it."
)
async def get_puzzle_availability(
    date: str,
    orchestrator: PuzzleFetcherOrchestrator = Depends(get_orchestrator),
):
    """Cheap availability probe."""
    return {
        "date": date,
        "available": await orchestrator.is_available(date),
    }


@router.get(
    "/{date}/comparison",
    summary="Compare sources for a date",
    description="Fetch the date from every healthy source and score the candidates. Diagnostic only."
)
async def compare_puzzle_sources(
    date: str,
    orchestrator: PuzzleFetcherOrchestrator = Depends(get_orchestrator),
):
    """Cross-source structural comparison."""
    try:
        result = await orchestrator.compare_sources(date)
    except PuzzleServiceError as e:
        raise_for_service_error(e)

    return result.to_dict()
