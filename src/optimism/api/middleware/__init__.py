"""API middleware."""

from optimism.api.middleware.error_handler import ErrorHandlerMiddleware, pipeline_error_handler
from optimism.api.middleware.rate_limiter import RateLimitMiddleware

__all__ = ["ErrorHandlerMiddleware", "RateLimitMiddleware", "pipeline_error_handler"]
