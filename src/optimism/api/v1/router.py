"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from optimism.api.v1.endpoints.health import router as health_router
from optimism.api.v1.endpoints.reframe import router as reframe_router
from optimism.api.v1.endpoints.sessions import router as sessions_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    reframe_router,
    prefix="/reframe",
    tags=["Reframe"],
)

api_router.include_router(
    sessions_router,
    prefix="/sessions",
    tags=["Sessions"],
)
