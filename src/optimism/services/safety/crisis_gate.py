"""
Crisis Gate

Phrase-matching safety classifier run before any other analysis.

SAFETY-CRITICAL: A HIGH verdict short-circuits the pipeline. The
caller returns the fixed safety payload and makes no generation call.
False negatives are worse than false positives, so two phrases of any
kind are enough for HIGH.

CLINICAL_REVIEW_REQUIRED: Phrase lists need clinical validation.
"""

from typing import Any

from optimism.config.logging_config import get_logger
from optimism.domain.enums import CrisisSeverity
from optimism.domain.models import CrisisVerdict, normalize_text

logger = get_logger(__name__)


class CrisisGate:
    """
    Crisis phrase detector.

    Pure and stateless: safe to share across concurrent requests.

    Rules:
    - Any high-severity phrase, or two or more phrases of any kind: HIGH
    - Exactly one general distress phrase: MODERATE
    - Nothing matched: LOW
    """

    # Every phrase the gate looks for, in scan order
    CRISIS_PHRASES: tuple[str, ...] = (
        "kill myself",
        "suicide",
        "suicidal",
        "want to die",
        "ending it all",
        "end my life",
        "take my life",
        "no reason to live",
        "better off dead",
        "hurt myself",
        "self-harm",
        "cutting myself",
        "overdose",
        "can't go on",
        "give up",
        "no hope",
        "hopeless",
        "no point in living",
        "everyone would be better off without me",
        "planning to",
        "emergency",
        "help me now",
        "i'm in danger",
        "being hurt",
    )

    # Direct self-harm language. A matched phrase is high-severity when
    # it contains one of these.
    HIGH_SEVERITY_PHRASES: frozenset[str] = frozenset({
        "suicide",
        "suicidal",
        "kill myself",
        "want to die",
        "ending it all",
        "end my life",
        "overdose",
        "self-harm",
    })

    def evaluate(self, text: Any) -> CrisisVerdict:
        """
        Classify crisis severity of a message.

        Never raises. Non-string or blank input is LOW.

        Args:
            text: User message

        Returns:
            CrisisVerdict with severity and matched phrases
        """
        if not isinstance(text, str) or not text.strip():
            return CrisisVerdict()

        normalized = normalize_text(text)
        matched = tuple(phrase for phrase in self.CRISIS_PHRASES if phrase in normalized)

        if not matched:
            return CrisisVerdict(severity=CrisisSeverity.LOW)

        has_high_severity = any(
            high in phrase
            for phrase in matched
            for high in self.HIGH_SEVERITY_PHRASES
        )

        if has_high_severity or len(matched) >= 2:
            severity = CrisisSeverity.HIGH
        else:
            severity = CrisisSeverity.MODERATE

        logger.warning(
            "Crisis phrases detected",
            severity=severity.value,
            phrase_count=len(matched),
        )

        return CrisisVerdict(severity=severity, matched_phrases=matched)
