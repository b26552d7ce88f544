"""
Connections Puzzle Service - Dependencies
Dependency injection for FastAPI endpoints
"""
from fastapi import HTTPException, Request, status

from puzzle_service.fetchers.orchestrator import PuzzleFetcherOrchestrator


def get_orchestrator(request: Request) -> PuzzleFetcherOrchestrator:
    """
    Orchestrator owned by the application lifespan.

    Raises:
        HTTPException: 503 if the service has not finished starting
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Puzzle orchestrator is not initialized",
        )
    return orchestrator
