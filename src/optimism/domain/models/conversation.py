"""
Conversation Models

Caller-owned conversation state and the turn/hint shapes passed into
the pipeline. The pipeline never stores any of these; it receives
them each call and returns the advanced state in its result.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from optimism.domain.enums import IcebergLayer


@dataclass(frozen=True)
class ChatTurn:
    """One prior message in the conversation."""

    role: Literal["user", "assistant"]
    content: str

    def to_message(self) -> dict:
        """OpenAI-style message dictionary."""
        return {"role": self.role, "content": self.content}


class SessionHints(BaseModel):
    """
    Optional hints from earlier sessions of the same user.

    Attributes:
        previous_topics: Topics discussed in earlier sessions
        previous_distortions: Distortion labels seen before
        previous_questions: Probing questions already asked
        session_count: Number of earlier sessions
    """

    model_config = ConfigDict(populate_by_name=True)

    previous_topics: list[str] = Field(default_factory=list, alias="previousTopics")
    previous_distortions: list[str] = Field(default_factory=list, alias="previousDistortions")
    previous_questions: list[str] = Field(default_factory=list, alias="previousQuestions")
    session_count: int = Field(default=0, ge=0, alias="sessionCount")


def _empty_insights() -> dict[IcebergLayer, Optional[str]]:
    return {layer: None for layer in IcebergLayer}


@dataclass(frozen=True)
class ConversationState:
    """
    Iceberg progress of one session.

    INVARIANT: current_layer never moves back toward the surface, and
    completed is true only once the core belief insight is recorded.

    Attributes:
        turn_count: 1-based turn number of the latest advance
        current_layer: Deepest layer reached
        insights_by_layer: Insight text recorded per layer
        completed: Whether the core belief insight has been recorded
    """

    turn_count: int = 0
    current_layer: IcebergLayer = IcebergLayer.SURFACE
    insights_by_layer: dict[IcebergLayer, Optional[str]] = field(default_factory=_empty_insights)
    completed: bool = False

    def to_dict(self) -> dict:
        return {
            "turnCount": self.turn_count,
            "currentLayer": self.current_layer.value,
            "insightsByLayer": {
                layer.value: self.insights_by_layer.get(layer) for layer in IcebergLayer
            },
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationState":
        """
        Rebuild state sent back by the caller.

        Raises:
            ValueError: A field has the wrong shape or an unknown layer
        """
        raw_insights = data.get("insightsByLayer") or {}
        if not isinstance(raw_insights, Mapping):
            raise ValueError("insightsByLayer must be an object")

        insights = _empty_insights()
        for layer in IcebergLayer:
            value = raw_insights.get(layer.value)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"insight for {layer.value} must be a string")
            insights[layer] = value if value else None

        core_belief = insights[IcebergLayer.CORE_BELIEF]
        return cls(
            turn_count=int(data.get("turnCount", 0)),
            current_layer=IcebergLayer(data.get("currentLayer", IcebergLayer.SURFACE.value)),
            insights_by_layer=insights,
            completed=core_belief is not None,
        )


@dataclass(frozen=True)
class ProgressSnapshot:
    """
    How far the conversation has gone, as percentages.

    Attributes:
        score: Overall progress 0-100
        layer_progress: Per-layer progress 0-100
    """

    score: int
    layer_progress: dict[IcebergLayer, int]

    def layer_progress_dict(self) -> dict:
        return {layer.value: self.layer_progress.get(layer, 0) for layer in IcebergLayer}
