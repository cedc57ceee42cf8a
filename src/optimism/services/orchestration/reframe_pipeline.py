"""
Reframe Pipeline

Coordinates one reframe turn from inbound message to structured reply.

ARCHITECTURE:
RateLimiter admission → validation → CrisisGate → Emotion/Distortion
classifiers → depth tracker → phase 1 (hidden analysis) → phase 2
(reply anchored on the analysis) → parse/normalize → layer + progress.

The pipeline is stateless. Conversation state comes in with each call
and the advanced state goes back out in the result. Durable storage is
the caller's choice, through persist_turn.

SAFETY: A HIGH crisis verdict returns the fixed safety payload before
any classifier or provider call, and leaves the state unchanged.
"""

import time
from collections.abc import Callable, Sequence
from typing import Optional, Union
from uuid import UUID

from optimism.config.logging_config import get_logger
from optimism.config.settings import Settings
from optimism.domain.enums import CrisisSeverity, IcebergLayer
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
    CrisisVerdict,
    EmotionSignal,
    ProgressSnapshot,
    ProviderCallResult,
    ReframeReply,
    SessionHints,
)
from optimism.infrastructure.llm import (
    LLMProvider,
    ProviderOrchestrator,
    ProviderOverride,
    build_provider_chain,
    create_default_provider,
    create_override_provider,
)
from optimism.infrastructure.metrics import (
    track_crisis_verdict,
    track_layer,
    track_parse_strategy,
    track_reframe_outcome,
)
from optimism.infrastructure.monitoring import capture_safety_event
from optimism.infrastructure.persistence import SessionStore
from optimism.infrastructure.rate_limit import RateLimiter
from optimism.services.clinical import DistortionClassifier, EmotionClassifier
from optimism.services.conversation import ConversationDepthTracker, ProgressAnalyzer
from optimism.services.orchestration.response_parser import (
    ParseOutcome,
    parse_analysis,
    parse_reply,
    text_field,
)
from optimism.services.prompt import BuiltPrompt, PromptBuilder, ResponseContext
from optimism.services.safety import CrisisGate, CrisisResourceDirectory, get_disclaimer
from optimism.services.validation import validate_message

logger = get_logger(__name__)

PipelineResult = Union[ReframeReply, CrisisReply]

REFRAME_ENDPOINT_CLASS = "reframe"


def local_acknowledgment(emotion: EmotionSignal) -> str:
    """Acknowledgment built from the local emotion signal only."""
    return (
        f"I hear you, and what you're sharing about feeling {emotion.primary.value} "
        "really resonates. That sounds genuinely tough."
    )


def assistant_text(reply: PipelineResult) -> str:
    """Transcript text of a reply, as stored and replayed as history."""
    parts = (reply.acknowledgment, reply.reframe, reply.probing_question)
    return "\n\n".join(part for part in parts if part)


class ReframePipeline:
    """
    Two-phase reframe pipeline.

    Usage:
        pipeline = ReframePipeline.from_settings(settings, rate_limiter)
        result = await pipeline.run(message, history, client_id="203.0.113.7")
        payload = result.to_dict()
    """

    def __init__(
        self,
        orchestrator: ProviderOrchestrator,
        rate_limiter: Optional[RateLimiter] = None,
        crisis_gate: Optional[CrisisGate] = None,
        emotion_classifier: Optional[EmotionClassifier] = None,
        distortion_classifier: Optional[DistortionClassifier] = None,
        depth_tracker: Optional[ConversationDepthTracker] = None,
        progress_analyzer: Optional[ProgressAnalyzer] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        resources: Optional[CrisisResourceDirectory] = None,
        override_factory: Optional[Callable[[ProviderOverride], LLMProvider]] = None,
    ) -> None:
        """
        Initialize pipeline with its collaborators.

        Args:
            orchestrator: Provider fallback chain
            rate_limiter: Admission store; None disables admission checks
            crisis_gate: Safety classifier
            emotion_classifier: Emotion lexicon classifier
            distortion_classifier: Distortion pattern classifier
            depth_tracker: Iceberg state machine
            progress_analyzer: Progress estimate
            prompt_builder: Phase 1 and phase 2 prompts
            resources: Crisis resource directory
            override_factory: Builds a provider from a caller override
        """
        self._orchestrator = orchestrator
        self._rate_limiter = rate_limiter
        self._crisis_gate = crisis_gate or CrisisGate()
        self._emotion = emotion_classifier or EmotionClassifier()
        self._distortion = distortion_classifier or DistortionClassifier()
        self._tracker = depth_tracker or ConversationDepthTracker()
        self._progress = progress_analyzer or ProgressAnalyzer()
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._resources = resources or CrisisResourceDirectory()
        self._override_factory = override_factory

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> "ReframePipeline":
        """Production wiring from configuration."""
        orchestrator = ProviderOrchestrator(
            providers=build_provider_chain(settings),
            default_provider=create_default_provider(settings),
            timeout_seconds=settings.llm_timeout_seconds,
        )
        return cls(
            orchestrator=orchestrator,
            rate_limiter=rate_limiter,
            prompt_builder=PromptBuilder(
                history_window=settings.history_window,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
            ),
            override_factory=lambda override: create_override_provider(override, settings),
        )

    @property
    def orchestrator(self) -> ProviderOrchestrator:
        return self._orchestrator

    async def run(
        self,
        message: object,
        history: Sequence[ChatTurn] = (),
        hints: Optional[SessionHints] = None,
        state: Optional[ConversationState] = None,
        client_id: Optional[str] = None,
        override: Optional[ProviderOverride] = None,
    ) -> PipelineResult:
        """
        Run one reframe turn.

        Args:
            message: Raw user message
            history: Prior turns, oldest first
            hints: Optional hints from earlier sessions
            state: Caller-owned state; rebuilt from history when None
            client_id: Rate-limit key; admission is skipped when None
            override: Provider tried before the configured chain

        Returns:
            ReframeReply, or CrisisReply on a HIGH crisis verdict

        Raises:
            RateLimitExceeded: Client over the reframe cap
            ValidationError: Message missing, not a string or empty
            ProviderUnavailable: Every provider failed in either phase
            ParseFailure: Phase 2 reply could not be parsed
        """
        start_time = time.time()

        await self.admit(client_id)

        try:
            text = validate_message(message)
        except ValidationError:
            track_reframe_outcome("invalid")
            raise

        history = list(history)
        if state is None:
            state = self._tracker.state_from_history(history)

        verdict = self._crisis_gate.evaluate(text)
        track_crisis_verdict(verdict.severity.value)

        if verdict.is_high:
            return self._crisis_reply(state, start_time)

        emotion = self._emotion.analyze(text)
        distortion = self._distortion.analyze(text)

        turn_count = self._tracker.turn_count_for(history)
        layer = IcebergLayer.deepest(state.current_layer, self._tracker.layer_for_turn(turn_count))
        progress = self._progress.analyze(history, text)

        logger.info(
            "Classification completed",
            message_length=len(text),
            emotion=emotion.primary.value,
            intensity=emotion.intensity.value,
            distortion=distortion.type.value,
            crisis_severity=verdict.severity.value,
            turn=turn_count,
            layer=layer.value,
        )

        override_provider = self._build_override(override)

        # Phase 1: hidden analysis
        analysis_prompt = self._prompt_builder.build_analysis_prompt(text, history)
        analysis_call = await self._call_phase("analysis", analysis_prompt, override_provider)
        analysis = self._parse_analysis(analysis_call)

        # Phase 2: reply anchored on the analysis
        context = ResponseContext(
            emotion=emotion,
            distortion=distortion,
            layer=layer,
            layer_focus=self._tracker.focus_for(layer),
            turn_count=turn_count,
            hints=hints,
        )
        response_prompt = self._prompt_builder.build_response_prompt(text, history, analysis, context)
        reply_call = await self._call_phase("response", response_prompt, override_provider)

        outcome = parse_reply(
            reply_call.content,
            backfill={
                "acknowledgment": local_acknowledgment(emotion),
                "thoughtPattern": distortion.type.value,
                "patternNote": distortion.explanation,
            },
        )
        track_parse_strategy("response", outcome.strategy)

        reply = self._build_reply(
            outcome=outcome,
            call=reply_call,
            state=state,
            turn_count=turn_count,
            layer=layer,
            emotion=emotion,
            verdict=verdict,
            progress=progress,
        )

        duration = time.time() - start_time
        track_reframe_outcome("success", duration)
        track_layer(reply.iceberg_layer.value)

        logger.info(
            "Reframe completed",
            provider=reply_call.provider_name,
            layer=reply.iceberg_layer.value,
            parse_strategy=outcome.strategy,
            session_completed=reply.session_completed,
            duration_ms=int(duration * 1000),
        )
        return reply

    async def persist_turn(
        self,
        store: SessionStore,
        session_id: UUID,
        user_message: str,
        reply: PipelineResult,
    ) -> None:
        """
        Write one user/assistant pair through the session collaborator.

        Marks the session complete on the turn that reached the core
        belief.
        """
        await store.append_message(session_id, ChatTurn(role="user", content=user_message))
        await store.append_message(
            session_id,
            ChatTurn(role="assistant", content=assistant_text(reply)),
        )
        if reply.conversation_state is not None:
            await store.record_layer(session_id, reply.conversation_state.current_layer)

        if isinstance(reply, ReframeReply) and reply.core_belief_reached:
            core_belief = reply.conversation_state.insights_by_layer.get(IcebergLayer.CORE_BELIEF)
            await store.mark_session_complete(session_id, core_belief or reply.layer_insight)

    async def admit(self, client_id: Optional[str]) -> None:
        """
        Count one reframe request against client_id.

        run() calls this itself. Callers that must admit before their own
        lookups call it first and pass client_id=None to run().
        """
        if self._rate_limiter is None or client_id is None:
            return

        decision = await self._rate_limiter.check(client_id, REFRAME_ENDPOINT_CLASS)
        if not decision.allowed:
            track_reframe_outcome("rate_limited")
            raise RateLimitExceeded(
                retry_after_seconds=decision.retry_after_seconds,
                remaining=decision.remaining,
                endpoint_class=REFRAME_ENDPOINT_CLASS,
            )

    def _crisis_reply(self, state: ConversationState, start_time: float) -> CrisisReply:
        logger.warning("Crisis response returned", layer=state.current_layer.value)
        capture_safety_event(
            "Crisis response returned",
            extra={"turn_count": state.turn_count},
        )
        track_reframe_outcome("crisis", time.time() - start_time)

        return CrisisReply(
            encouragement=self._resources.crisis_message(CrisisSeverity.HIGH),
            disclaimer=get_disclaimer(is_crisis=True),
            resources=self._resources.to_list(),
            conversation_state=state,
        )

    def _build_override(self, override: Optional[ProviderOverride]) -> Optional[LLMProvider]:
        if override is None:
            return None
        if self._override_factory is None:
            logger.warning("Provider override ignored, no override factory", provider=override.provider.value)
            return None
        return self._override_factory(override)

    async def _call_phase(
        self,
        phase: str,
        prompt: BuiltPrompt,
        override_provider: Optional[LLMProvider],
    ) -> ProviderCallResult:
        result = await self._orchestrator.call(
            prompt.to_messages(),
            override=override_provider,
            max_tokens=prompt.max_tokens,
            temperature=prompt.temperature,
            phase=phase,
        )
        if result is None:
            track_reframe_outcome("provider_unavailable")
            raise ProviderUnavailable(phase)

        logger.info("Phase completed", phase=phase, provider=result.provider_name)
        return result

    def _parse_analysis(self, call: ProviderCallResult) -> AnalysisResult:
        outcome = parse_analysis(call.content)
        track_parse_strategy("analysis", outcome.strategy)

        if not outcome.ok:
            logger.warning("Using fallback analysis", provider=call.provider_name)
            return AnalysisResult.fallback()
        return AnalysisResult.from_fields(outcome.data)

    def _build_reply(
        self,
        *,
        outcome: ParseOutcome,
        call: ProviderCallResult,
        state: ConversationState,
        turn_count: int,
        layer: IcebergLayer,
        emotion: EmotionSignal,
        verdict: CrisisVerdict,
        progress: ProgressSnapshot,
    ) -> ReframeReply:
        if not outcome.ok:
            track_reframe_outcome("parse_failure")
            raise ParseFailure("response", provider=call.provider_name)

        data = outcome.data
        question = text_field(data, "question", "probingQuestion")
        if question is None:
            logger.warning("Reply has no probing question", strategy=outcome.strategy)
            track_reframe_outcome("parse_failure")
            raise ParseFailure("response", provider=call.provider_name)

        insight = text_field(data, "layerInsight")
        new_state = self._tracker.advance(state, turn_count, insight)
        is_moderate = verdict.severity == CrisisSeverity.MODERATE

        return ReframeReply(
            acknowledgment=text_field(data, "acknowledgment") or local_acknowledgment(emotion),
            probing_question=question,
            iceberg_layer=new_state.current_layer,
            layer_insight=insight or self._tracker.default_insight(layer),
            progress=progress,
            conversation_state=new_state,
            disclaimer=get_disclaimer(is_crisis=is_moderate),
            distortion_type=text_field(data, "distortionType", "thoughtPattern"),
            distortion_explanation=text_field(data, "distortionExplanation", "patternNote"),
            reframe=text_field(data, "reframe"),
            encouragement=text_field(data, "encouragement"),
            safety_note=self._resources.crisis_message(CrisisSeverity.MODERATE) if is_moderate else None,
            meta={
                "provider": call.provider_name,
                "model": call.model_name,
                "turn": turn_count,
                "parseStrategy": outcome.strategy,
            },
            core_belief_reached=new_state.completed and not state.completed,
        )
