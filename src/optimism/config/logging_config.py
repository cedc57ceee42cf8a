"""
Logging Configuration

structlog over the standard library logger. Console rendering in
development, one JSON object per line everywhere else. Every entry
carries the service name, version and, inside a request, its
correlation id.

PRIVACY: Message text is never logged. Call sites log lengths, labels
and counters; the redaction processor is the backstop.
"""

import logging
import sys
from typing import Any

import structlog

from optimism import __version__
from optimism.config.settings import Settings

SERVICE_NAME = "optimism-engine"

# Libraries that log every request or connection at INFO
QUIET_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx", "httpcore", "openai")


class RedactProcessor:
    """
    structlog processor that masks values of sensitive keys.

    A key is sensitive when it contains one of the markers. Numbers
    pass through, so counters such as token_usage stay visible.
    """

    MARKERS: tuple[str, ...] = (
        "password",
        "token",
        "secret",
        "api_key",
        "apikey",
        "authorization",
        "credential",
        "user_message",
        "content",
        "core_belief",
    )

    def __init__(self, placeholder: str = "[REDACTED]") -> None:
        self.placeholder = placeholder

    def _sensitive(self, key: str) -> bool:
        lowered = key.lower()
        return any(marker in lowered for marker in self.MARKERS)

    def _mask(self, key: str, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        if self._sensitive(key):
            return self.placeholder
        if isinstance(value, dict):
            return {k: self._mask(str(k), v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._mask(key, item) for item in value]
        return value

    def __call__(self, logger: Any, method_name: str, event_dict: dict) -> dict:
        return {key: self._mask(key, value) for key, value in event_dict.items()}


def add_service_context(logger: Any, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def build_processors(json_output: bool) -> list[Any]:
    """Processor chain ending in the console or JSON renderer."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        RedactProcessor(),
        add_service_context,
    ]

    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    return processors


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the root logger. Call once at startup."""
    level = logging.getLevelName(settings.log_level)

    structlog.configure(
        processors=build_processors(json_output=settings.env != "development"),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """Attach the request's correlation id to every entry logged in this context."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
