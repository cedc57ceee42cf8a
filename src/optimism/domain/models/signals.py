"""
Classifier Signals

Per-request outputs of the emotion classifier, the distortion
classifier and the crisis gate. These exist only for the duration
of one request.
"""

from dataclasses import dataclass, field

from optimism.domain.enums import (
    CrisisSeverity,
    DistortionCategory,
    EmotionCategory,
    EmotionIntensity,
)


@dataclass(frozen=True)
class EmotionSignal:
    """
    Emotion classification result.

    Attributes:
        primary: Highest scoring emotion category
        secondary: Runner-up by raw keyword hits
        intensity: Intensity tier of the message
        indicators: Up to three matched terms from the primary category
    """

    primary: EmotionCategory = EmotionCategory.UNSETTLED
    secondary: EmotionCategory = EmotionCategory.UNSETTLED
    intensity: EmotionIntensity = EmotionIntensity.MODERATE
    indicators: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "primary": self.primary.value,
            "secondary": self.secondary.value,
            "intensity": self.intensity.value,
            "indicators": list(self.indicators),
        }


@dataclass(frozen=True)
class DistortionSignal:
    """
    Distortion classification result.

    Attributes:
        type: Winning category, or EXPLORING_PATTERNS when nothing matched
        confidence: Number of the category's pattern rules that matched
        evidence: Matched text spans, one per matching rule
        explanation: Template drawn from the category's pool
    """

    type: DistortionCategory
    confidence: int
    evidence: tuple[str, ...]
    explanation: str

    @property
    def found(self) -> bool:
        """Whether any distortion pattern matched."""
        return self.type != DistortionCategory.EXPLORING_PATTERNS

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "confidence": self.confidence,
            "evidence": list(self.evidence),
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class CrisisVerdict:
    """
    Crisis gate result.

    SAFETY_NOTE: HIGH means the caller must return the safety payload
    immediately and make no generation call.
    """

    severity: CrisisSeverity = CrisisSeverity.LOW
    matched_phrases: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_high(self) -> bool:
        return self.severity == CrisisSeverity.HIGH

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "matched_phrases": list(self.matched_phrases),
        }
