"""Lexical classification services."""

from optimism.services.clinical.distortion_classifier import (
    DEFAULT_EXPLANATION,
    DISTORTION_TABLE,
    DistortionClassifier,
    DistortionRules,
)
from optimism.services.clinical.emotion_classifier import EmotionClassifier, EmotionLexicon

__all__ = [
    "DEFAULT_EXPLANATION",
    "DISTORTION_TABLE",
    "DistortionClassifier",
    "DistortionRules",
    "EmotionClassifier",
    "EmotionLexicon",
]
