"""
Sentry Error Tracking

PRIVACY: Conversation text never leaves the process. Request bodies
are dropped, and any field that can hold a message, transcript or
credential is redacted before an event is sent.
"""

import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from optimism.config.logging_config import get_logger
from optimism.config.settings import Settings

logger = get_logger(__name__)

REDACTED = "[REDACTED]"

# Field names are compared with everything but letters stripped, so
# "X-Api-Key", "api_key" and "apiKey" all match "apikey".
PRIVATE_FIELDS: tuple[str, ...] = (
    "apikey",
    "token",
    "secret",
    "authorization",
    "bearer",
    "credential",
    "usermessage",
    "firstmessage",
    "content",
    "conversationhistory",
    "corebelief",
    "providerconfig",
)

# Credentials pasted into free text, e.g. an exception message
INLINE_SECRET = re.compile(
    r"(?:(?:x-)?api[_-]?key|token|secret|authorization)[\"']?\s*[:=]\s*[\"']?[^\"'\s,}]+"
    r"|bearer\s+[\w\-.~+/]+=*",
    re.IGNORECASE,
)


def is_private_field(name: Any) -> bool:
    normalized = re.sub(r"[^a-z]", "", str(name).lower())
    return any(field in normalized for field in PRIVATE_FIELDS)


def scrub(value: Any) -> Any:
    """Copy of value with private fields and inline secrets redacted."""
    if isinstance(value, Mapping):
        return {
            key: REDACTED if is_private_field(key) else scrub(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [scrub(item) for item in value]
    if isinstance(value, str):
        return INLINE_SECRET.sub(REDACTED, value)
    return value


def before_send(event: dict, hint: dict) -> Optional[dict]:
    """Sentry hook applied to every outgoing event."""
    request = event.get("request")
    if request:
        request.pop("data", None)
        request.pop("cookies", None)
        if "headers" in request:
            request["headers"] = scrub(request["headers"])

    breadcrumbs = event.get("breadcrumbs")
    crumbs = breadcrumbs.get("values", []) if isinstance(breadcrumbs, dict) else breadcrumbs or []
    for crumb in crumbs:
        if isinstance(crumb.get("data"), dict):
            crumb["data"] = scrub(crumb["data"])

    if "extra" in event:
        event["extra"] = scrub(event["extra"])

    return event


def init_sentry(settings: Settings, release: str) -> bool:
    """
    Start error tracking when a DSN is configured.

    Returns:
        Whether Sentry was initialized
    """
    if not settings.sentry_dsn:
        logger.info("Sentry disabled, no DSN configured")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.env,
        release=release,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        before_send=before_send,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            AsyncioIntegration(),
            # structlog output stays out of breadcrumbs and events
            LoggingIntegration(level=None, event_level=None),
        ],
        send_default_pii=False,
        max_breadcrumbs=50,
    )

    logger.info("Sentry initialized", environment=settings.env, release=release)
    return True


@contextmanager
def _scope(tags: Mapping[str, str], extra: Optional[Mapping[str, Any]]) -> Iterator[Any]:
    with sentry_sdk.new_scope() as scope:
        for key, value in tags.items():
            scope.set_tag(key, value)
        for key, value in scrub(extra or {}).items():
            scope.set_extra(key, value)
        yield scope


def capture_safety_event(message: str, extra: Optional[dict] = None) -> None:
    """Report a crisis short-circuit. Callers pass counters only, never text."""
    with _scope({"category": "safety"}, extra):
        sentry_sdk.capture_message(message, level="warning")


def capture_exception_with_context(
    exception: BaseException,
    correlation_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> Optional[str]:
    """Report an unhandled exception tagged with the request's correlation id."""
    tags = {"correlation_id": correlation_id} if correlation_id else {}
    with _scope(tags, extra):
        return sentry_sdk.capture_exception(exception)
