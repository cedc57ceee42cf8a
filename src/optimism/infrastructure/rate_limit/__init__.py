"""Rate limiting package."""

from optimism.infrastructure.rate_limit.limiter import (
    DEFAULT_RULES,
    RateLimitDecision,
    RateLimiter,
    RateLimitRecord,
    RateLimitRule,
    client_identifier,
)

__all__ = [
    "DEFAULT_RULES",
    "RateLimitDecision",
    "RateLimiter",
    "RateLimitRecord",
    "RateLimitRule",
    "client_identifier",
]
