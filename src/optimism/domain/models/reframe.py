"""
Reframe Pipeline Results

Phase-1 analysis, the provider call result, and the payloads the
pipeline returns to its caller.
"""

from dataclasses import dataclass, field
from typing import Optional

from optimism.domain.enums import IcebergLayer
from optimism.domain.models.conversation import ConversationState, ProgressSnapshot


@dataclass(frozen=True)
class AnalysisResult:
    """
    Hidden phase-1 analysis of the user's message.

    Never shown to the user. Phase 2 is anchored on it.
    """

    trigger_event: str
    likely_interpretation: str
    underlying_fear: str
    emotional_need: str

    FIELDS = ("trigger_event", "likely_interpretation", "underlying_fear", "emotional_need")

    @classmethod
    def fallback(cls) -> "AnalysisResult":
        """Generic analysis used when phase-1 output cannot be parsed."""
        return cls(
            trigger_event="Something recent that the user is still reacting to",
            likely_interpretation="The user reads the situation as saying something about them",
            underlying_fear="That the situation confirms a worry they already hold",
            emotional_need="To feel understood and to see the situation more clearly",
        )

    @classmethod
    def from_fields(cls, fields: dict) -> "AnalysisResult":
        """Build from parsed fields, filling gaps from the fallback tuple."""
        fallback = cls.fallback()
        values = {}
        for name in cls.FIELDS:
            value = fields.get(name)
            values[name] = str(value).strip() if value else getattr(fallback, name)
        return cls(**values)

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.FIELDS}


@dataclass(frozen=True)
class ProviderCallResult:
    """
    A non-empty reply from one generation provider.

    Attributes:
        content: Generated text
        provider_name: Provider that produced it
        model_name: Model identifier used
        token_usage: Total tokens, when the provider reports it
        latency_ms: Wall time of the successful attempt
    """

    content: str
    provider_name: str
    model_name: str
    token_usage: Optional[int] = None
    latency_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "providerName": self.provider_name,
            "modelName": self.model_name,
            "tokenUsage": self.token_usage,
            "latencyMs": self.latency_ms,
        }


@dataclass(frozen=True)
class ReframeReply:
    """
    Successful pipeline output.

    acknowledgment, probing_question and iceberg_layer are always
    present, whichever parse strategy recovered the reply.
    core_belief_reached is true only on the turn that completed the
    session.
    """

    acknowledgment: str
    probing_question: str
    iceberg_layer: IcebergLayer
    layer_insight: str
    progress: ProgressSnapshot
    conversation_state: ConversationState
    disclaimer: str
    distortion_type: Optional[str] = None
    distortion_explanation: Optional[str] = None
    reframe: Optional[str] = None
    encouragement: Optional[str] = None
    safety_note: Optional[str] = None
    meta: dict = field(default_factory=dict)
    core_belief_reached: bool = False

    @property
    def session_completed(self) -> bool:
        return self.conversation_state.completed

    def to_dict(self) -> dict:
        payload = {
            "acknowledgment": self.acknowledgment,
            "distortionType": self.distortion_type,
            "distortionExplanation": self.distortion_explanation,
            "reframe": self.reframe,
            "probingQuestion": self.probing_question,
            "encouragement": self.encouragement,
            "icebergLayer": self.iceberg_layer.value,
            "layerInsight": self.layer_insight,
            "progressScore": self.progress.score,
            "layerProgress": self.progress.layer_progress_dict(),
            "conversationState": self.conversation_state.to_dict(),
            "sessionCompleted": self.session_completed,
            "safetyNote": self.safety_note,
            "disclaimer": self.disclaimer,
            "_meta": self.meta,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class CrisisReply:
    """
    Fixed safety payload returned on a HIGH crisis verdict.

    SAFETY_NOTE: Built without any classifier or provider call.
    Conversation state is returned unchanged.
    """

    encouragement: str
    disclaimer: str
    resources: list[dict]
    conversation_state: Optional[ConversationState] = None
    acknowledgment: str = "I hear you, and what you're sharing is really important."
    distortion_type: str = "Crisis Response"
    distortion_explanation: str = (
        "You're going through something that deserves more support than I can provide."
    )
    reframe: str = "Right now, the most important thing is connecting with someone who can truly help."
    probing_question: str = "Would you like to talk about what's bringing these feelings up?"
    iceberg_layer: IcebergLayer = IcebergLayer.SURFACE
    layer_insight: str = "Your safety matters most right now."

    def to_dict(self) -> dict:
        payload = {
            "acknowledgment": self.acknowledgment,
            "distortionType": self.distortion_type,
            "distortionExplanation": self.distortion_explanation,
            "reframe": self.reframe,
            "probingQuestion": self.probing_question,
            "encouragement": self.encouragement,
            "icebergLayer": self.iceberg_layer.value,
            "layerInsight": self.layer_insight,
            "resources": self.resources,
            "disclaimer": self.disclaimer,
            "_isCrisisResponse": True,
        }
        if self.conversation_state is not None:
            payload["conversationState"] = self.conversation_state.to_dict()
        return payload
