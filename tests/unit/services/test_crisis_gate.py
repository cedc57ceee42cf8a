"""
Unit Tests for Crisis Gate

SAFETY-CRITICAL: These tests pin the phrase rules that short-circuit
the pipeline.
"""

import pytest

from optimism.domain.enums import CrisisSeverity
from optimism.services.safety import CrisisGate, CrisisResourceDirectory, get_disclaimer


class TestCrisisGate:
    """Test suite for CrisisGate."""

    @pytest.fixture
    def gate(self) -> CrisisGate:
        return CrisisGate()

    def test_neutral_message_is_low(self, gate: CrisisGate) -> None:
        """Test that ordinary messages pass through as LOW."""
        verdict = gate.evaluate("My manager ignored my idea in the meeting.")

        assert verdict.severity == CrisisSeverity.LOW
        assert verdict.matched_phrases == ()
        assert not verdict.is_high

    @pytest.mark.parametrize(
        "message",
        [
            "I want to kill myself",
            "I've been thinking about suicide",
            "I feel suicidal tonight",
            "Sometimes I just want to die",
            "I keep thinking about an overdose",
            "I've started self-harm again",
        ],
    )
    def test_high_severity_phrase_is_high(self, gate: CrisisGate, message: str) -> None:
        """Test that a single direct self-harm phrase is enough for HIGH."""
        verdict = gate.evaluate(message)

        assert verdict.severity == CrisisSeverity.HIGH
        assert verdict.is_high

    def test_single_general_phrase_is_moderate(self, gate: CrisisGate) -> None:
        """Test that one non-high phrase yields MODERATE."""
        verdict = gate.evaluate("Honestly I feel hopeless about this job")

        assert verdict.severity == CrisisSeverity.MODERATE
        assert verdict.matched_phrases == ("hopeless",)

    def test_two_general_phrases_escalate_to_high(self, gate: CrisisGate) -> None:
        """Test that two phrases of any kind escalate to HIGH."""
        verdict = gate.evaluate("I feel hopeless and I just want to give up")

        assert verdict.severity == CrisisSeverity.HIGH
        assert set(verdict.matched_phrases) == {"hopeless", "give up"}

    @pytest.mark.parametrize(
        ("message", "expected", "phrases"),
        [
            ("I want to die and I can't go on", CrisisSeverity.HIGH, ("want to die", "can't go on")),
            ("I feel hopeless", CrisisSeverity.MODERATE, ("hopeless",)),
            ("I had a rough day at work", CrisisSeverity.LOW, ()),
        ],
    )
    def test_reference_messages(self, gate: CrisisGate, message: str, expected, phrases) -> None:
        verdict = gate.evaluate(message)

        assert verdict.severity == expected
        assert verdict.matched_phrases == phrases

    def test_matching_is_case_insensitive(self, gate: CrisisGate) -> None:
        """Test that uppercase input still matches."""
        verdict = gate.evaluate("I WANT TO DIE")

        assert verdict.severity == CrisisSeverity.HIGH

    def test_curly_apostrophe_matches(self, gate: CrisisGate) -> None:
        """Test that typographic apostrophes are folded before matching."""
        verdict = gate.evaluate("I can’t go on like this")

        assert verdict.severity == CrisisSeverity.MODERATE
        assert verdict.matched_phrases == ("can't go on",)

    @pytest.mark.parametrize("value", [None, "", "   ", 42, ["kill myself"]])
    def test_non_string_or_blank_is_low(self, gate: CrisisGate, value) -> None:
        """Test that the gate never raises on malformed input."""
        verdict = gate.evaluate(value)

        assert verdict.severity == CrisisSeverity.LOW

    def test_verdict_serializes(self, gate: CrisisGate) -> None:
        verdict = gate.evaluate("This is an emergency")

        assert verdict.to_dict() == {
            "severity": "MODERATE",
            "matched_phrases": ["emergency"],
        }


class TestCrisisResourceDirectory:
    """Test suite for crisis resources and disclaimers."""

    @pytest.fixture
    def directory(self) -> CrisisResourceDirectory:
        return CrisisResourceDirectory()

    def test_high_message_lists_emergency_numbers(self, directory: CrisisResourceDirectory) -> None:
        message = directory.crisis_message(CrisisSeverity.HIGH)

        assert "911" in message
        assert "999" in message
        assert "112" in message
        assert "**988**" in message
        assert "Vandrevala Foundation" in message

    def test_moderate_message_is_shorter(self, directory: CrisisResourceDirectory) -> None:
        high = directory.crisis_message(CrisisSeverity.HIGH)
        moderate = directory.crisis_message(CrisisSeverity.MODERATE)

        assert len(moderate) < len(high)
        assert "911" not in moderate
        assert "Samaritans (UK)" in moderate

    def test_regions(self, directory: CrisisResourceDirectory) -> None:
        india = {r.name for r in directory.for_region("india")}

        assert {"AASRA", "Vandrevala Foundation"} <= india
        assert all(r["region"] in {"india", "global"} for r in directory.to_list())

    def test_unknown_resource(self, directory: CrisisResourceDirectory) -> None:
        with pytest.raises(KeyError):
            directory.find("Nowhere Helpline")

    def test_disclaimer_depends_on_crisis_flag(self) -> None:
        assert get_disclaimer(is_crisis=True) != get_disclaimer(is_crisis=False)
        assert "resources above" in get_disclaimer(is_crisis=True)
