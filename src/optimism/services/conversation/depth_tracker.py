"""
Conversation Depth Tracker

Four-state iceberg machine: surface -> trigger -> emotion -> coreBelief.
The layer is derived from the turn count and never regresses.

The tracker is stateless. ConversationState belongs to the caller,
comes in with each request, and goes back out advanced by one turn.
"""

from collections.abc import Sequence
from typing import Optional

from optimism.config.logging_config import get_logger
from optimism.domain.enums import IcebergLayer
from optimism.domain.models import ChatTurn, ConversationState

logger = get_logger(__name__)


class ConversationDepthTracker:
    """
    Maps turns to iceberg layers and advances conversation state.

    turn_count = floor(len(history) / 2) + 1
    surface if turn_count <= 1, trigger if <= 3, emotion if <= 5,
    otherwise coreBelief.
    """

    # Highest turn count (inclusive) for each non-terminal layer
    LAYER_THRESHOLDS: tuple[tuple[int, IcebergLayer], ...] = (
        (1, IcebergLayer.SURFACE),
        (3, IcebergLayer.TRIGGER),
        (5, IcebergLayer.EMOTION),
    )

    # Shown when a reply carries no insight of its own
    DEFAULT_LAYER_INSIGHTS: dict[IcebergLayer, str] = {
        IcebergLayer.SURFACE: (
            "We're starting at the surface, the thought that first caught your attention. "
            "There's almost always more beneath this first wave."
        ),
        IcebergLayer.TRIGGER: (
            "We're exploring what activates this pattern in you. Understanding your "
            "triggers gives you choices you didn't know you had."
        ),
        IcebergLayer.EMOTION: (
            "We're reaching the emotional layer now, the feelings that fuel these "
            "thoughts. The goal isn't to eliminate them but to understand what they're "
            "telling you."
        ),
        IcebergLayer.CORE_BELIEF: (
            "We've reached the core, the deep belief that may be driving these patterns. "
            "Core beliefs formed early, but they can be examined, questioned, and rewritten."
        ),
    }

    # What each layer's reply should focus on
    LAYER_FOCUS: dict[IcebergLayer, str] = {
        IcebergLayer.SURFACE: "Surface: find the specific event.",
        IcebergLayer.TRIGGER: "Trigger: find what set the reaction off and what it meant to them.",
        IcebergLayer.EMOTION: "Emotion: find the core feeling underneath.",
        IcebergLayer.CORE_BELIEF: "Core belief: find what this says to them about who they are.",
    }

    @staticmethod
    def turn_count_for(history: Sequence[ChatTurn]) -> int:
        """1-based turn number of the message being answered."""
        return len(history) // 2 + 1

    def layer_for_turn(self, turn_count: int) -> IcebergLayer:
        """Canonical turn to layer mapping."""
        for upper_bound, layer in self.LAYER_THRESHOLDS:
            if turn_count <= upper_bound:
                return layer
        return IcebergLayer.CORE_BELIEF

    def initial_state(self) -> ConversationState:
        return ConversationState()

    def state_from_history(self, history: Sequence[ChatTurn]) -> ConversationState:
        """
        Reconstruct state for a caller that only kept the transcript.

        Insights are unknown from a bare transcript, so none are set.
        """
        previous_turn = self.turn_count_for(history) - 1
        if previous_turn <= 0:
            return self.initial_state()
        return ConversationState(
            turn_count=previous_turn,
            current_layer=self.layer_for_turn(previous_turn),
        )

    def advance(
        self,
        state: ConversationState,
        turn_count: int,
        insight: Optional[str],
    ) -> ConversationState:
        """
        Advance state for one answered turn.

        The new layer is the deeper of the current layer and the layer
        mapped from turn_count. The insight is recorded on that layer.

        Args:
            state: State before this turn
            turn_count: Turn being answered
            insight: Insight text from the reply

        Returns:
            New ConversationState (the input is not modified)
        """
        layer = IcebergLayer.deepest(state.current_layer, self.layer_for_turn(turn_count))

        insights = dict(state.insights_by_layer)
        if insight:
            insights[layer] = insight

        completed = insights.get(IcebergLayer.CORE_BELIEF) is not None
        if completed and not state.completed:
            logger.info("Core belief reached", turn_count=turn_count)

        return ConversationState(
            turn_count=max(state.turn_count, turn_count),
            current_layer=layer,
            insights_by_layer=insights,
            completed=completed,
        )

    def default_insight(self, layer: IcebergLayer) -> str:
        return self.DEFAULT_LAYER_INSIGHTS[layer]

    def focus_for(self, layer: IcebergLayer) -> str:
        return self.LAYER_FOCUS[layer]
