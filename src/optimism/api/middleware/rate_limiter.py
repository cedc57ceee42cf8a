"""
Rate Limiting Middleware

Applies the shared RateLimiter to session and message endpoints.

The reframe endpoint is not limited here: the pipeline runs its own
admission check first thing, against the stricter "reframe" class.
"""

from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from optimism.config.logging_config import get_logger
from optimism.infrastructure.rate_limit import RateLimiter, client_identifier

logger = get_logger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for rate limiting.

    Classifies each path into an endpoint class and checks it against
    the limiter. Never blocks /health or /metrics endpoints.
    """

    # Endpoints exempt from rate limiting
    EXEMPT_PREFIXES: tuple[str, ...] = (
        "/health",
        "/metrics",
        "/docs",
        "/redoc",
        "/openapi.json",
    )

    def __init__(self, app, limiter: RateLimiter, api_prefix: str = "/api/v1") -> None:
        super().__init__(app)
        self.limiter = limiter
        self.api_prefix = api_prefix.rstrip("/")

    def endpoint_class(self, path: str) -> Optional[str]:
        """Endpoint class for a path, or None when the path is not limited."""
        relative = path[len(self.api_prefix):] if path.startswith(self.api_prefix) else path

        if relative == "/" or relative.startswith(self.EXEMPT_PREFIXES):
            return None
        if relative.startswith("/reframe"):
            return None
        if relative.startswith("/sessions"):
            return "messages" if "/messages" in relative else "session"
        return "default"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        endpoint_class = self.endpoint_class(request.url.path)
        if endpoint_class is None:
            return await call_next(request)

        client_id = client_identifier(
            request.headers,
            request.client.host if request.client else None,
        )
        decision = await self.limiter.check(client_id, endpoint_class)

        if not decision.allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Rate limit exceeded. Please slow down.",
                    "retryable": True,
                    "retryAfter": decision.retry_after_seconds,
                    "remaining": decision.remaining,
                },
                headers={
                    "Retry-After": str(decision.retry_after_seconds),
                    "X-RateLimit-Remaining": str(decision.remaining),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
