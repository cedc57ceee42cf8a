"""
Classification Enumerations

Closed label sets produced by the lexical classifiers and the
crisis gate.
"""

from enum import StrEnum


class CrisisSeverity(StrEnum):
    """
    Crisis gate verdict.

    SAFETY_NOTE: HIGH short-circuits the pipeline. No classification
    or generation happens after a HIGH verdict.
    """

    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class EmotionCategory(StrEnum):
    """Emotion categories, in scoring declaration order."""

    EXHAUSTED = "exhausted"
    ANXIOUS = "anxious"
    SAD = "sad"
    ANGRY = "angry"
    ASHAMED = "ashamed"
    CONFUSED = "confused"
    DISAPPOINTED = "disappointed"
    INADEQUATE = "inadequate"
    UNSETTLED = "unsettled"
    """Default when no lexicon matches."""


class EmotionIntensity(StrEnum):
    """Intensity tier of the primary emotion."""

    MILD = "mild"
    MODERATE = "moderate"
    INTENSE = "intense"
    SEVERE = "severe"


class DistortionCategory(StrEnum):
    """Cognitive distortion labels, in scoring declaration order."""

    CATASTROPHIZING = "Catastrophizing"
    ALL_OR_NOTHING = "All-or-Nothing Thinking"
    MIND_READING = "Mind Reading"
    FORTUNE_TELLING = "Fortune Telling"
    EMOTIONAL_REASONING = "Emotional Reasoning"
    SHOULD_STATEMENTS = "Should Statements"
    LABELING = "Labeling"
    PERSONALIZATION = "Personalization"
    MENTAL_FILTERING = "Mental Filtering"
    OVERGENERALIZATION = "Overgeneralization"
    RUMINATION = "Rumination"
    DISQUALIFYING_POSITIVE = "Disqualifying the Positive"
    SELF_CRITICISM = "Self-Criticism"
    EXPLORING_PATTERNS = "Exploring Patterns"
    """Sentinel: no distortion pattern matched."""
