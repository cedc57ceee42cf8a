"""
Input Validator

Sanitizes inbound message text and validates identifiers before any
classifier sees them.

No length cap on messages: users may share their full story.
"""

import re
from typing import Any
from uuid import UUID

from optimism.domain.exceptions import ValidationError


SCRIPT_BLOCK_PATTERN = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
EVENT_HANDLER_PATTERN = re.compile(r"\s*on\w+\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)
JAVASCRIPT_SCHEME_PATTERN = re.compile(r"javascript\s*:", re.IGNORECASE)
DATA_SCHEME_PATTERN = re.compile(r"data\s*:", re.IGNORECASE)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def sanitize_string(value: Any) -> str:
    """
    Strip markup vectors from user text.

    Removes script blocks, inline event handlers and javascript:/data:
    schemes. Non-strings sanitize to an empty string.
    """
    if not isinstance(value, str):
        return ""

    sanitized = value.strip()
    sanitized = SCRIPT_BLOCK_PATTERN.sub("", sanitized)
    sanitized = EVENT_HANDLER_PATTERN.sub("", sanitized)
    sanitized = JAVASCRIPT_SCHEME_PATTERN.sub("", sanitized)
    sanitized = DATA_SCHEME_PATTERN.sub("", sanitized)
    return sanitized.strip()


def validate_message(value: Any) -> str:
    """
    Validate and sanitize the inbound message.

    Returns:
        Sanitized message text

    Raises:
        ValidationError: If the input is not a string or is empty
    """
    if not isinstance(value, str):
        raise ValidationError("Input must be a string")

    if not value.strip():
        raise ValidationError("Input cannot be empty")

    sanitized = sanitize_string(value)
    if not sanitized:
        raise ValidationError("Input cannot be empty")

    return sanitized


def validate_session_id(value: Any) -> UUID:
    """Validate a session identifier in UUID format."""
    if not isinstance(value, str):
        raise ValidationError("Session ID must be a string")

    if not UUID_PATTERN.match(value):
        raise ValidationError("Invalid session ID format")

    return UUID(value.lower())
