"""
Connections Puzzle Service - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from puzzle_service import __version__
from puzzle_service.config import settings
from puzzle_service.api.v1.router import api_router
from puzzle_service.fetchers.fetcher_init import create_orchestrator
from puzzle_service.utils.logger import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events handler."""
    # Startup
    configure_logging(settings)
    logger.info(f"🚀 Starting {settings.APP_NAME}...")

    orchestrator = getattr(app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = create_orchestrator(settings)
        app.state.orchestrator = orchestrator

    await orchestrator.initialize()
    logger.info(f"✅ {len(orchestrator.get_fetchers())} puzzle fetchers ready")

    yield

    # Shutdown
    logger.info(f"🛑 Shutting down {settings.APP_NAME}...")
    await orchestrator.destroy()
    app.state.orchestrator = None
    logger.info("👋 Goodbye!")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Daily Connections puzzle fetching with prioritized sources, caching and health tracking",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": __version__
        }

    return app


# Create the application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "puzzle_service.main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=settings.DEBUG,
    )
