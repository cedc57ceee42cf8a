"""Input validation services."""

from optimism.services.validation.input_validator import (
    sanitize_string,
    validate_message,
    validate_session_id,
)

__all__ = ["sanitize_string", "validate_message", "validate_session_id"]
