"""
Error Handling

Two layers:

- pipeline_error_handler maps PipelineError subclasses to their HTTP
  status and JSON body. Registered as a FastAPI exception handler.
- ErrorHandlerMiddleware tags every request with a correlation id and
  turns anything unexpected into a sanitized 500.

Response bodies never echo exception text from unexpected errors.
"""

from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from optimism.config.logging_config import bind_correlation_id, clear_context, get_logger
from optimism.domain.exceptions import PipelineError, RateLimitExceeded
from optimism.infrastructure.monitoring import capture_exception_with_context

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _internal_error(correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "correlation_id": correlation_id, "retryable": True},
        headers={CORRELATION_HEADER: correlation_id},
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Correlation id per request, sanitized 500 for unhandled errors."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        bind_correlation_id(correlation_id)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
            )
            capture_exception_with_context(
                e,
                correlation_id=correlation_id,
                extra={"path": request.url.path, "method": request.method},
            )
            return _internal_error(correlation_id)
        finally:
            clear_context()

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """
    JSON body and status for a pipeline failure.

    429s carry Retry-After and X-RateLimit-Remaining.
    """
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {
            "Retry-After": str(exc.retry_after_seconds),
            "X-RateLimit-Remaining": str(exc.remaining),
        }

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
    )

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)
