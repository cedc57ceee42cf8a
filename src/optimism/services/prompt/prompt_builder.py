"""
Prompt Builder

Builds the two instruction payloads of a reframe turn:

1. Hidden analysis (phase 1): a fixed-shape structured reading of the
   message with no user-facing language.
2. Response generation (phase 2): a short reply anchored on the
   phase-1 analysis, with stock empathy filler forbidden.

Forcing analysis first and constraining generation against it keeps
replies specific to what the user actually said.

CLINICAL_REVIEW_REQUIRED: Instruction text should be reviewed by the
clinical team.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from optimism.config.logging_config import get_logger
from optimism.domain.enums import IcebergLayer
from optimism.domain.models import (
    AnalysisResult,
    ChatTurn,
    DistortionSignal,
    EmotionSignal,
    SessionHints,
    normalize_text,
)

logger = get_logger(__name__)


@dataclass
class BuiltPrompt:
    """
    Complete prompt ready for a provider.

    Attributes:
        system_prompt: Instruction for the phase
        conversation_history: Recent prior turns as role/content dicts
        user_message: Current user message
        phase: "analysis" or "response"
        max_tokens: Suggested max tokens
        temperature: Suggested temperature
    """

    system_prompt: str
    conversation_history: list[dict] = field(default_factory=list)
    user_message: str = ""
    phase: str = "response"
    max_tokens: int = 2000
    temperature: float = 0.8

    def to_messages(self) -> list[dict]:
        """
        Convert to OpenAI-style message format.

        Returns:
            List of message dictionaries
        """
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend(self.conversation_history)

        if self.user_message:
            messages.append({"role": "user", "content": self.user_message})

        return messages


@dataclass(frozen=True)
class ResponseContext:
    """Local signals phase 2 is anchored on alongside the analysis."""

    emotion: EmotionSignal
    distortion: DistortionSignal
    layer: IcebergLayer
    layer_focus: str
    turn_count: int
    hints: Optional[SessionHints] = None


class PromptBuilder:
    """
    Builds phase-1 and phase-2 prompts.

    Usage:
        builder = PromptBuilder()
        analysis_prompt = builder.build_analysis_prompt(message, history)
        response_prompt = builder.build_response_prompt(message, history, analysis, context)
    """

    ANALYSIS_INSTRUCTION: str = """You are analysing a message someone wrote about something that is bothering them. You are not replying to them.

Read the message and the conversation so far, then return ONLY this JSON object:

{
  "trigger_event": "The concrete event or situation, in their terms.",
  "likely_interpretation": "What they seem to be concluding from it.",
  "underlying_fear": "The fear that conclusion points to.",
  "emotional_need": "What they most need right now."
}

Rules:
- Each value is one plain sentence.
- Stick to what the message says or clearly implies. If something is unknown, say what is most likely and keep it tentative.
- No empathy, no advice, no greetings, no reassurance.
- No markdown. Nothing before or after the JSON."""

    RESPONSE_INSTRUCTION: str = """You help people look underneath a difficult thought using the iceberg model: surface event, trigger, emotion, core belief.

Write a short, human reply to the user's latest message. Anchor every sentence on the analysis below. Use their own words and details.

Return ONLY this JSON object:

{
  "acknowledgment": "One or two sentences naming what actually happened to them.",
  "thoughtPattern": "The thinking pattern at work, or an empty string if none fits.",
  "patternNote": "One sentence on how that pattern shows up in what they said.",
  "reframe": "A more balanced way of seeing it, grounded in their details.",
  "question": "Exactly one question that moves them one layer deeper.",
  "encouragement": "One short sentence, optional.",
  "layerInsight": "One sentence on what this layer has revealed so far."
}

Rules:
- Never use stock empathy filler. Forbidden phrases: {forbidden}.
- If they describe another person's behaviour, do not label reality as a thinking error.
- One question only. Plain language, no therapy jargon.
- No markdown. Nothing before or after the JSON."""

    # Stock empathy phrases the response must not fall back on
    FORBIDDEN_PHRASES: tuple[str, ...] = (
        "I hear you",
        "that sounds really hard",
        "that must be difficult",
        "your feelings are valid",
        "it's okay to feel",
        "I'm sorry you're going through this",
        "thank you for sharing",
        "you're not alone",
    )

    # Imagery the assistant tends to repeat across turns
    OVERUSED_WORDS: tuple[str, ...] = (
        "heaviness", "heavy", "weight", "carrying", "weighing", "weighs",
        "burden", "load", "dragging", "crushing",
    )

    def __init__(
        self,
        history_window: int = 6,
        max_tokens: int = 2000,
        temperature: float = 0.8,
    ) -> None:
        """
        Initialize prompt builder.

        Args:
            history_window: Number of prior turns sent to the provider
            max_tokens: Max tokens suggested for both phases
            temperature: Temperature suggested for both phases
        """
        self._history_window = history_window
        self._max_tokens = max_tokens
        self._temperature = temperature

    def build_analysis_instruction(self) -> str:
        """Phase-1 system instruction."""
        return self.ANALYSIS_INSTRUCTION

    def build_response_instruction(
        self,
        analysis: AnalysisResult,
        context: Optional[ResponseContext] = None,
        history: Sequence[ChatTurn] = (),
    ) -> str:
        """
        Phase-2 system instruction anchored on the analysis.

        Args:
            analysis: Parsed phase-1 output
            context: Local classifier signals and layer
            history: Prior turns, used to find repeated imagery

        Returns:
            Instruction text
        """
        forbidden = ", ".join(f'"{phrase}"' for phrase in self.FORBIDDEN_PHRASES)
        parts = [self.RESPONSE_INSTRUCTION.replace("{forbidden}", forbidden)]

        parts.append(
            "Analysis of the latest message:\n"
            f"- Trigger event: {analysis.trigger_event}\n"
            f"- Likely interpretation: {analysis.likely_interpretation}\n"
            f"- Underlying fear: {analysis.underlying_fear}\n"
            f"- Emotional need: {analysis.emotional_need}"
        )

        if context is not None:
            parts.append(self._context_section(context))

        used_words = self.overused_words_in(history)
        if used_words:
            parts.append(
                "Earlier replies already used: "
                + ", ".join(sorted(used_words))
                + ". Do not use these words again."
            )

        return "\n\n".join(parts)

    def build_analysis_prompt(
        self,
        user_message: str,
        history: Sequence[ChatTurn] = (),
    ) -> BuiltPrompt:
        """Phase-1 prompt."""
        prompt = BuiltPrompt(
            system_prompt=self.build_analysis_instruction(),
            conversation_history=self._recent_history(history),
            user_message=user_message,
            phase="analysis",
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        logger.debug("Prompt built", phase=prompt.phase, history_turns=len(prompt.conversation_history))
        return prompt

    def build_response_prompt(
        self,
        user_message: str,
        history: Sequence[ChatTurn],
        analysis: AnalysisResult,
        context: ResponseContext,
    ) -> BuiltPrompt:
        """Phase-2 prompt."""
        prompt = BuiltPrompt(
            system_prompt=self.build_response_instruction(analysis, context, history),
            conversation_history=self._recent_history(history),
            user_message=user_message,
            phase="response",
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        logger.debug(
            "Prompt built",
            phase=prompt.phase,
            layer=context.layer.value,
            history_turns=len(prompt.conversation_history),
        )
        return prompt

    def overused_words_in(self, history: Sequence[ChatTurn]) -> set[str]:
        """Overused imagery already present in assistant turns."""
        used = set()
        for turn in history:
            if turn.role != "assistant":
                continue
            content = normalize_text(turn.content)
            used.update(word for word in self.OVERUSED_WORDS if word in content)
        return used

    def _recent_history(self, history: Sequence[ChatTurn]) -> list[dict]:
        if self._history_window <= 0:
            return []
        return [turn.to_message() for turn in list(history)[-self._history_window:]]

    def _context_section(self, context: ResponseContext) -> str:
        lines = [
            f"Conversation turn: {context.turn_count}",
            f"Current depth: {context.layer_focus}",
            f"Detected emotion: {context.emotion.primary.value} "
            f"({context.emotion.intensity.value}), secondary {context.emotion.secondary.value}",
        ]

        if context.distortion.found:
            evidence = "; ".join(context.distortion.evidence[:3])
            lines.append(
                f"Possible thinking pattern: {context.distortion.type.value} "
                f"(evidence: {evidence})"
            )
        else:
            lines.append("No clear thinking pattern detected. Leave thoughtPattern empty unless one is obvious.")

        hints = context.hints
        if hints is not None:
            if hints.session_count:
                lines.append(f"This is session {hints.session_count + 1} with this person.")
            if hints.previous_topics:
                lines.append("Earlier topics: " + ", ".join(hints.previous_topics[:5]))
            if hints.previous_distortions:
                lines.append("Patterns seen before: " + ", ".join(hints.previous_distortions[:5]))
            if hints.previous_questions:
                lines.append(
                    "Do not repeat these questions: "
                    + " | ".join(hints.previous_questions[-5:])
                )

        return "Context:\n" + "\n".join(f"- {line}" for line in lines)
