"""
Optimism Domain Layer

Value objects, enums and exceptions shared by the services and the
API. Independent of infrastructure.
"""

from optimism.domain.enums import (
    CrisisSeverity,
    DistortionCategory,
    EmotionCategory,
    EmotionIntensity,
    IcebergLayer,
)
from optimism.domain.exceptions import (
    ParseFailure,
    PipelineError,
    ProviderUnavailable,
    RateLimitExceeded,
    SessionNotFound,
    ValidationError,
)

__all__ = [
    "CrisisSeverity",
    "DistortionCategory",
    "EmotionCategory",
    "EmotionIntensity",
    "IcebergLayer",
    "ParseFailure",
    "PipelineError",
    "ProviderUnavailable",
    "RateLimitExceeded",
    "SessionNotFound",
    "ValidationError",
]
