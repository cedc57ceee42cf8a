"""
API Dependencies

Accessors for the objects the application wires onto app.state at
creation time. Endpoints receive them through FastAPI's Depends, so
tests can build an app around fakes.
"""

from fastapi import Request

from optimism.config.settings import Settings
from optimism.infrastructure.persistence import InMemorySessionStore
from optimism.infrastructure.rate_limit import RateLimiter
from optimism.services.orchestration import ReframePipeline


def get_pipeline(request: Request) -> ReframePipeline:
    return request.app.state.pipeline


def get_session_store(request: Request) -> InMemorySessionStore:
    return request.app.state.session_store


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
