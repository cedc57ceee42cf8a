"""
Optimism Engine FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (startup/shutdown)
- CORS configuration
- Error handling middleware
- Rate limiting middleware
- Router registration

Collaborators (pipeline, session store, rate limiter) are built once
and stored on app.state so tests can inject their own.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from optimism import __version__
from optimism.api.middleware import (
    ErrorHandlerMiddleware,
    RateLimitMiddleware,
    pipeline_error_handler,
)
from optimism.api.v1.router import api_router
from optimism.config import Settings, get_settings
from optimism.config.logging_config import configure_logging, get_logger
from optimism.domain.exceptions import PipelineError
from optimism.infrastructure.metrics import metrics_router, update_system_info
from optimism.infrastructure.monitoring import init_sentry
from optimism.infrastructure.persistence import InMemorySessionStore
from optimism.infrastructure.rate_limit import RateLimiter
from optimism.services.orchestration import ReframePipeline

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Starts the rate limiter sweep and error tracking, stops the sweep
    on shutdown.
    """
    settings: Settings = app.state.settings
    limiter: RateLimiter = app.state.rate_limiter

    logger.info(
        "Starting Optimism Engine",
        env=settings.env,
        version=__version__,
    )

    init_sentry(settings, release=f"optimism@{__version__}")
    update_system_info(settings.env, __version__)

    try:
        await limiter.start()
        logger.info("Rate limiter sweep started")

        yield

    finally:
        logger.info("Shutting down Optimism Engine")
        await limiter.stop()
        logger.info("Optimism Engine shutdown complete")


def create_application(
    settings: Optional[Settings] = None,
    pipeline: Optional[ReframePipeline] = None,
    session_store: Optional[InMemorySessionStore] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Application settings, loaded from env when omitted
        pipeline: Reframe pipeline, built from settings when omitted
        session_store: Session store, in-memory when omitted
        rate_limiter: Shared limiter, built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    rate_limiter = rate_limiter or RateLimiter.from_settings(settings.rate_limit)
    pipeline = pipeline or ReframePipeline.from_settings(settings, rate_limiter)
    session_store = session_store or InMemorySessionStore()

    app = FastAPI(
        title="Optimism Engine API",
        description="Reframes emotional messages into structured guidance",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.session_store = session_store
    app.state.rate_limiter = rate_limiter

    api_prefix = f"/api/{settings.api_version}"

    # Innermost first: rate limiting, then CORS, then error handling
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter, api_prefix=api_prefix)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)

    app.add_exception_handler(PipelineError, pipeline_error_handler)

    # Register API routers
    app.include_router(api_router, prefix=api_prefix)
    app.include_router(metrics_router)

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "Optimism Engine API",
            "version": __version__,
            "status": "operational",
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "optimism.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_settings.env == "development",
        log_level=_settings.log_level.lower(),
    )
