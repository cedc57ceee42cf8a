"""Domain enums package."""

from optimism.domain.enums.classification import (
    CrisisSeverity,
    DistortionCategory,
    EmotionCategory,
    EmotionIntensity,
)
from optimism.domain.enums.iceberg_layer import IcebergLayer

__all__ = [
    "CrisisSeverity",
    "DistortionCategory",
    "EmotionCategory",
    "EmotionIntensity",
    "IcebergLayer",
]
