"""
Health Check Endpoints

Provides system health and readiness endpoints for:
- Load balancer health checks
- Kubernetes probes
- Monitoring systems
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from optimism import __version__
from optimism.api.dependencies import get_app_settings, get_pipeline, get_rate_limiter
from optimism.config.settings import Settings
from optimism.infrastructure.llm import configured_providers, supported_providers
from optimism.infrastructure.rate_limit import RateLimiter
from optimism.services.orchestration import ReframePipeline

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response with component health."""

    ready: bool
    components: dict


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic health check endpoint for load balancers",
)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Basic health check.

    Returns 200 if application is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.env,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Provider chain configuration and limiter state",
)
async def readiness_check(
    settings: Settings = Depends(get_app_settings),
    pipeline: ReframePipeline = Depends(get_pipeline),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> ReadinessResponse:
    """
    Readiness check.

    Does not call providers. The default provider is always assumed
    available, so the service is ready whenever the chain is built.
    """
    orchestrator = pipeline.orchestrator
    components = {
        "configured_providers": configured_providers(settings),
        "supported_providers": supported_providers(),
        "provider_chain": [provider.provider_name for provider in orchestrator.chain()],
        "default_provider": orchestrator.default_provider.provider_name,
        "rate_limit_records": len(limiter),
    }

    return ReadinessResponse(
        ready=True,
        components=components,
    )


@router.get(
    "/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Kubernetes liveness probe endpoint",
)
async def liveness_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Kubernetes liveness probe.

    Returns 200 if application process is alive.
    """
    return HealthResponse(
        status="alive",
        version=__version__,
        environment=settings.env,
    )
