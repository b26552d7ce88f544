"""
Connections Puzzle Service - API v1 Router
"""
from fastapi import APIRouter

from puzzle_service.api.v1.endpoints import puzzles, fetchers

api_router = APIRouter()


# API v1 root endpoint
@api_router.get("/", tags=["API Info"])
async def api_root():
    """API v1 root - returns version info."""
    return {
        "api": "Connections Puzzle Service",
        "version": "v1",
        "status": "operational"
    }


# Include all endpoint routers
api_router.include_router(puzzles.router, prefix="/puzzles", tags=["Puzzles"])
api_router.include_router(fetchers.router, prefix="/fetchers", tags=["Fetcher Monitoring"])
