"""
Pipeline Exceptions

Failures the reframe pipeline surfaces to its caller. Each carries
the HTTP status the API maps it to.

A crisis short-circuit is not an exception: it is a regular result.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for reframe pipeline failures."""

    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "retryable": self.retryable}


class ValidationError(PipelineError):
    """Message missing, not a string, or empty after trimming."""

    status_code = 400


class RateLimitExceeded(PipelineError):
    """Client exceeded the request cap for an endpoint class."""

    status_code = 429
    retryable = True

    def __init__(
        self,
        retry_after_seconds: int,
        remaining: int = 0,
        endpoint_class: Optional[str] = None,
    ) -> None:
        super().__init__("Rate limit exceeded. Please slow down.")
        self.retry_after_seconds = retry_after_seconds
        self.remaining = remaining
        self.endpoint_class = endpoint_class

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["retryAfter"] = self.retry_after_seconds
        payload["remaining"] = self.remaining
        return payload


class ProviderUnavailable(PipelineError):
    """Every configured provider and the default provider failed."""

    status_code = 502
    retryable = True

    def __init__(self, phase: str) -> None:
        super().__init__("AI service is not responding. Please try again.")
        self.phase = phase


class ParseFailure(PipelineError):
    """A provider replied but no parse strategy recovered a usable reply."""

    status_code = 500
    retryable = True

    def __init__(self, phase: str, provider: str = "") -> None:
        super().__init__("Could not process response. Please try again.")
        self.phase = phase
        self.provider = provider


class SessionNotFound(PipelineError):
    """The session store has no session with the given id."""

    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__("Session not found")
        self.session_id = session_id
