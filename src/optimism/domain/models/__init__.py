"""Domain models package."""

from optimism.domain.models.text import normalize_text
from optimism.domain.models.signals import CrisisVerdict, DistortionSignal, EmotionSignal
from optimism.domain.models.conversation import (
    ChatTurn,
    ConversationState,
    ProgressSnapshot,
    SessionHints,
)
from optimism.domain.models.reframe import (
    AnalysisResult,
    CrisisReply,
    ProviderCallResult,
    ReframeReply,
)

__all__ = [
    # Input
    "normalize_text",
    # Classifier signals
    "CrisisVerdict",
    "DistortionSignal",
    "EmotionSignal",
    # Conversation
    "ChatTurn",
    "ConversationState",
    "ProgressSnapshot",
    "SessionHints",
    # Pipeline results
    "AnalysisResult",
    "CrisisReply",
    "ProviderCallResult",
    "ReframeReply",
]
