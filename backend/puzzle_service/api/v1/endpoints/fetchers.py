"""
Connections Puzzle Service - Fetcher Monitoring Endpoints
Stats, health and cache control for puzzle sources
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from puzzle_service.dependencies import get_orchestrator
from puzzle_service.fetchers.orchestrator import PuzzleFetcherOrchestrator

router = APIRouter()


@router.get(
    "/stats",
    summary="Get orchestrator statistics",
    description="Request counters, cache size, in-flight dates and per-source fetch statistics."
)
async def get_fetcher_stats(
    orchestrator: PuzzleFetcherOrchestrator = Depends(get_orchestrator),
):
    return {
        **orchestrator.get_stats(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get(
    "/health",
    summary="Get source health",
    description="Current health flag of every registered source with its last transition."
)
async def get_fetcher_health(
    orchestrator: PuzzleFetcherOrchestrator = Depends(get_orchestrator),
):
    health = orchestrator.get_health()
    return {
        "sources": health,
        "healthy_sources": orchestrator.get_healthy_sources(),
        "total_sources": len(health),
    }


@router.post(
    "/health-check",
    summary="Run health checks now",
    description="Probe every source immediately instead of waiting for the scheduled probe."
)
async def run_health_checks(
    orchestrator: PuzzleFetcherOrchestrator = Depends(get_orchestrator),
):
    results = await orchestrator.run_health_checks()
    return {
        "results": results,
        "healthy": sum(1 for ok in results.values() if ok),
        "total": len(results),
    }


@router.post(
    "/cache/clear",
    summary="Clear puzzle cache",
    description="Drop every cached puzzle, or only expired ones with expired_only=true."
)
async def clear_cache(
    expired_only: bool = Query(False, description="Only remove expired entries"),
    orchestrator: PuzzleFetcherOrchestrator = Depends(get_orchestrator),
):
    if expired_only:
        removed = orchestrator.clear_expired_cache()
    else:
        removed = orchestrator.clear_cache()
    return {"removed": removed, "expired_only": expired_only}
