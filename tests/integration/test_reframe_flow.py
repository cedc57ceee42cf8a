"""
Integration Tests - Reframe Flow

Tests the complete admission → validation → crisis gate → classifiers
→ two-phase generation → parse → state pipeline against scripted
providers.
"""

import json

import pytest

from optimism.domain.enums import CrisisSeverity, EmotionCategory, IcebergLayer
from optimism.domain.exceptions import (
    ParseFailure,
    ProviderUnavailable,
    RateLimitExceeded,
    ValidationError,
)
from optimism.domain.models import (
    AnalysisResult,
    ChatTurn,
    ConversationState,
    CrisisReply,
    EmotionSignal,
    ReframeReply,
)
from optimism.infrastructure.llm import ProviderOverride
from optimism.infrastructure.persistence import InMemorySessionStore
from optimism.infrastructure.rate_limit import RateLimiter, RateLimitRule
from optimism.services.clinical.distortion_classifier import DEFAULT_EXPLANATION
from optimism.services.orchestration import ReframePipeline, local_acknowledgment
from optimism.services.safety import CrisisResourceDirectory, get_disclaimer


MESSAGE = "My manager ignored my idea in the meeting again."


def _reply(**overrides) -> str:
    payload = {
        "acknowledgment": "Having your idea passed over stings.",
        "thoughtPattern": "",
        "patternNote": "",
        "reframe": "One meeting is one data point.",
        "question": "What did you tell yourself right afterwards?",
        "encouragement": "",
        "layerInsight": "It started with a single meeting.",
    }
    payload.update(overrides)
    return json.dumps({k: v for k, v in payload.items() if v is not None})


def _history(pairs: int) -> list[ChatTurn]:
    turns = []
    for index in range(pairs):
        turns.append(ChatTurn(role="user", content=f"Something else happened {index}"))
        turns.append(ChatTurn(role="assistant", content=f"Tell me more {index}"))
    return turns


class TestReframeFlowIntegration:
    """Integration tests for a single reframe turn."""

    @pytest.mark.asyncio
    async def test_happy_path(self, pipeline_factory, analysis_json, reply_json) -> None:
        """Test that both phases run on the first provider and the reply is assembled."""
        pipeline, primary, default = pipeline_factory([analysis_json, reply_json])

        result = await pipeline.run(MESSAGE)

        assert isinstance(result, ReframeReply)
        assert result.acknowledgment == "Having your idea passed over in front of everyone stings."
        assert result.probing_question == "What did you make it mean about you when they moved on?"
        assert result.distortion_type == "Mind Reading"
        assert result.iceberg_layer == IcebergLayer.SURFACE
        assert result.layer_insight == "The surface event is a single meeting moment."
        assert result.safety_note is None
        assert result.disclaimer == get_disclaimer(is_crisis=False)
        assert result.meta == {
            "provider": "primary",
            "model": "primary-model",
            "turn": 1,
            "parseStrategy": "direct_json",
        }
        assert result.conversation_state.turn_count == 1
        assert result.conversation_state.insights_by_layer[IcebergLayer.SURFACE] == result.layer_insight
        assert not result.core_belief_reached

        assert primary.calls == 2
        assert default.calls == 0

    @pytest.mark.asyncio
    async def test_response_phase_is_anchored_on_analysis(
        self,
        pipeline_factory,
        analysis_json,
        reply_json,
    ) -> None:
        pipeline, primary, _ = pipeline_factory([analysis_json, reply_json])

        await pipeline.run(MESSAGE)

        analysis_messages, response_messages = primary.messages
        assert "trigger_event" in analysis_messages[0]["content"]
        assert "Their manager ignored their idea in a meeting." in response_messages[0]["content"]
        assert response_messages[-1] == {"role": "user", "content": MESSAGE}

    @pytest.mark.asyncio
    async def test_wire_payload(self, pipeline_factory, analysis_json, reply_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, reply_json])

        payload = (await pipeline.run(MESSAGE)).to_dict()

        assert payload["icebergLayer"] == "surface"
        assert payload["probingQuestion"]
        assert payload["sessionCompleted"] is False
        assert set(payload["layerProgress"]) == {"surface", "trigger", "emotion", "coreBelief"}
        assert "safetyNote" not in payload
        assert "_isCrisisResponse" not in payload

    @pytest.mark.asyncio
    async def test_high_crisis_short_circuits(self, pipeline_factory, analysis_json, reply_json) -> None:
        """SAFETY: No classifier or provider call after a HIGH verdict, state unchanged."""
        pipeline, primary, default = pipeline_factory([analysis_json, reply_json])
        state = ConversationState(turn_count=2, current_layer=IcebergLayer.TRIGGER)

        result = await pipeline.run("I want to kill myself", state=state)

        assert isinstance(result, CrisisReply)
        assert result.conversation_state == state
        assert result.encouragement == CrisisResourceDirectory().crisis_message(CrisisSeverity.HIGH)
        assert result.disclaimer == get_disclaimer(is_crisis=True)
        assert primary.calls == 0
        assert default.calls == 0

        payload = result.to_dict()
        assert payload["_isCrisisResponse"] is True
        assert payload["distortionType"] == "Crisis Response"
        assert any(r["phone"] == "988" for r in payload["resources"])

    @pytest.mark.asyncio
    async def test_moderate_crisis_adds_safety_note(self, pipeline_factory, analysis_json, reply_json) -> None:
        pipeline, primary, _ = pipeline_factory([analysis_json, reply_json])

        result = await pipeline.run("I feel hopeless about work")

        assert isinstance(result, ReframeReply)
        assert result.safety_note == CrisisResourceDirectory().crisis_message(CrisisSeverity.MODERATE)
        assert result.disclaimer == get_disclaimer(is_crisis=True)
        assert primary.calls == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", ["", "   ", None, 42])
    async def test_invalid_message(self, pipeline_factory, message) -> None:
        pipeline, primary, _ = pipeline_factory([""])

        with pytest.raises(ValidationError):
            await pipeline.run(message)

        assert primary.calls == 0

    @pytest.mark.asyncio
    async def test_admission_runs_before_validation(self, pipeline_factory, fake_clock) -> None:
        """Test that invalid requests still count against the reframe cap."""
        limiter = RateLimiter(
            rules={"reframe": RateLimitRule(window_seconds=60, max_requests=1, block_seconds=30)},
            clock=fake_clock,
        )
        pipeline, _, _ = pipeline_factory([""], rate_limiter=limiter)

        with pytest.raises(ValidationError):
            await pipeline.run("", client_id="203.0.113.7")

        with pytest.raises(RateLimitExceeded) as exc_info:
            await pipeline.run("", client_id="203.0.113.7")

        assert exc_info.value.retry_after_seconds == 30
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_all_providers_failing(self, pipeline_factory) -> None:
        pipeline, primary, default = pipeline_factory([""], default_replies=[""])

        with pytest.raises(ProviderUnavailable) as exc_info:
            await pipeline.run(MESSAGE)

        assert exc_info.value.phase == "analysis"
        assert exc_info.value.status_code == 502
        assert primary.calls == 2
        assert default.calls == 2

    @pytest.mark.asyncio
    async def test_default_provider_answers_when_chain_fails(self, pipeline_factory, analysis_json, reply_json) -> None:
        pipeline, primary, default = pipeline_factory(
            [RuntimeError("down")],
            default_replies=[analysis_json, reply_json],
        )

        result = await pipeline.run(MESSAGE)

        assert result.meta["provider"] == "default"
        assert primary.calls == 2
        assert default.calls == 2

    @pytest.mark.asyncio
    async def test_unparseable_analysis_uses_fallback(self, pipeline_factory, reply_json) -> None:
        pipeline, primary, _ = pipeline_factory(["not json at all", reply_json])

        result = await pipeline.run(MESSAGE)

        assert isinstance(result, ReframeReply)
        response_instruction = primary.messages[1][0]["content"]
        assert AnalysisResult.fallback().trigger_event in response_instruction

    @pytest.mark.asyncio
    async def test_unparseable_reply_fails(self, pipeline_factory, analysis_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, "Just some friendly words."])

        with pytest.raises(ParseFailure) as exc_info:
            await pipeline.run(MESSAGE)

        assert exc_info.value.phase == "response"
        assert exc_info.value.provider == "primary"

    @pytest.mark.asyncio
    async def test_reply_without_question_fails(self, pipeline_factory, analysis_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, _reply(question=None)])

        with pytest.raises(ParseFailure):
            await pipeline.run(MESSAGE)

    @pytest.mark.asyncio
    async def test_labeled_reply_is_backfilled_locally(self, pipeline_factory, analysis_json) -> None:
        """Test that missing labeled fields come from local classifier output."""
        labeled = (
            "Reframe: One meeting is one data point.\n"
            "Question: What did you tell yourself afterwards?\n"
            "Insight: It started with a single meeting."
        )
        pipeline, _, _ = pipeline_factory([analysis_json, labeled])

        result = await pipeline.run(MESSAGE)

        assert result.meta["parseStrategy"] == "labeled_text"
        assert result.probing_question == "What did you tell yourself afterwards?"
        assert "unsettled" in result.acknowledgment
        assert result.distortion_type == "Exploring Patterns"
        assert result.distortion_explanation == DEFAULT_EXPLANATION

    @pytest.mark.asyncio
    async def test_missing_acknowledgment_in_json(self, pipeline_factory, analysis_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, _reply(acknowledgment="")])

        result = await pipeline.run(MESSAGE)

        assert result.acknowledgment.startswith("I hear you")

    @pytest.mark.asyncio
    async def test_missing_insight_shows_default_but_records_nothing(
        self,
        pipeline_factory,
        analysis_json,
    ) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, _reply(layerInsight=None)])

        result = await pipeline.run(MESSAGE)

        assert result.layer_insight.startswith("We're starting at the surface")
        assert result.conversation_state.insights_by_layer[IcebergLayer.SURFACE] is None

    @pytest.mark.asyncio
    async def test_state_rebuilt_from_history(self, pipeline_factory, analysis_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, _reply()])

        result = await pipeline.run(MESSAGE, history=_history(1))

        assert result.iceberg_layer == IcebergLayer.TRIGGER
        assert result.meta["turn"] == 2

    @pytest.mark.asyncio
    async def test_layer_never_regresses_with_caller_state(self, pipeline_factory, analysis_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, _reply()])
        state = ConversationState(turn_count=4, current_layer=IcebergLayer.EMOTION)

        result = await pipeline.run(MESSAGE, history=[], state=state)

        assert result.iceberg_layer == IcebergLayer.EMOTION

    @pytest.mark.asyncio
    async def test_provider_override_is_tried_first(
        self,
        fake_provider,
        pipeline_factory,
        analysis_json,
        reply_json,
    ) -> None:
        base, primary, _ = pipeline_factory([analysis_json, reply_json])
        override_provider = fake_provider("override", [analysis_json, reply_json])
        pipeline = ReframePipeline(
            orchestrator=base.orchestrator,
            override_factory=lambda override: override_provider,
        )

        result = await pipeline.run(
            MESSAGE,
            override=ProviderOverride(provider="openai", api_key="user-key"),
        )

        assert result.meta["provider"] == "override"
        assert primary.calls == 0


class TestCoreBeliefCompletion:
    """Integration tests for reaching the core belief and persisting turns."""

    CORE_INSIGHT = "They believe they only matter when they are useful."

    @pytest.mark.asyncio
    async def test_core_belief_turn_completes_session(self, pipeline_factory, analysis_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, _reply(layerInsight=self.CORE_INSIGHT)])

        result = await pipeline.run(MESSAGE, history=_history(5))

        assert result.iceberg_layer == IcebergLayer.CORE_BELIEF
        assert result.session_completed
        assert result.core_belief_reached
        assert result.to_dict()["sessionCompleted"] is True

    @pytest.mark.asyncio
    async def test_already_completed_state_is_not_reached_again(self, pipeline_factory, analysis_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, _reply(layerInsight="Another angle.")])
        insights = {layer: None for layer in IcebergLayer}
        insights[IcebergLayer.CORE_BELIEF] = self.CORE_INSIGHT
        state = ConversationState(
            turn_count=6,
            current_layer=IcebergLayer.CORE_BELIEF,
            insights_by_layer=insights,
            completed=True,
        )

        result = await pipeline.run(MESSAGE, history=_history(6), state=state)

        assert result.session_completed
        assert not result.core_belief_reached

    @pytest.mark.asyncio
    async def test_persist_turn_marks_session_complete(self, pipeline_factory, analysis_json) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, _reply(layerInsight=self.CORE_INSIGHT)])
        store = InMemorySessionStore()
        record = await store.create_session(MESSAGE)

        result = await pipeline.run(MESSAGE, history=_history(5))
        await pipeline.persist_turn(store, record.id, MESSAGE, result)

        stored = await store.get_session(record.id)
        assert stored.completed
        assert stored.core_belief == self.CORE_INSIGHT
        assert [turn.role for turn in stored.messages] == ["user", "assistant"]
        assert stored.messages[0].content == MESSAGE
        assert result.probing_question in stored.messages[1].content

    @pytest.mark.asyncio
    async def test_persist_ordinary_turn_leaves_session_open(
        self,
        pipeline_factory,
        analysis_json,
        reply_json,
    ) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, reply_json])
        store = InMemorySessionStore()
        record = await store.create_session(MESSAGE)

        result = await pipeline.run(MESSAGE)
        await pipeline.persist_turn(store, record.id, MESSAGE, result)

        stored = await store.get_session(record.id)
        assert not stored.completed
        assert len(stored.messages) == 2
        assert stored.current_layer == IcebergLayer.SURFACE

    @pytest.mark.asyncio
    async def test_persist_turn_records_reached_layer(
        self,
        pipeline_factory,
        analysis_json,
        reply_json,
    ) -> None:
        pipeline, _, _ = pipeline_factory([analysis_json, reply_json])
        store = InMemorySessionStore()
        record = await store.create_session(MESSAGE)

        result = await pipeline.run(MESSAGE, history=_history(1))
        await pipeline.persist_turn(store, record.id, MESSAGE, result)

        stored = await store.get_session(record.id)
        assert result.iceberg_layer == IcebergLayer.TRIGGER
        assert stored.current_layer == IcebergLayer.TRIGGER
        assert not stored.completed


def test_local_acknowledgment_names_emotion() -> None:
    text = local_acknowledgment(EmotionSignal(primary=EmotionCategory.ANXIOUS))

    assert "anxious" in text
