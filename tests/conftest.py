"""Tests configuration and fixtures."""

import asyncio
import json
import random
from typing import Optional, Union

import pytest

from optimism.config import Settings
from optimism.domain.models import ProviderCallResult
from optimism.infrastructure.llm import LLMProvider, ProviderOrchestrator
from optimism.infrastructure.rate_limit import RateLimiter
from optimism.services.clinical import DistortionClassifier
from optimism.services.orchestration import ReframePipeline


ANALYSIS_JSON = json.dumps({
    "trigger_event": "Their manager ignored their idea in a meeting.",
    "likely_interpretation": "They think their ideas are not valued.",
    "underlying_fear": "That they are invisible at work.",
    "emotional_need": "To feel heard.",
})

REPLY_JSON = json.dumps({
    "acknowledgment": "Having your idea passed over in front of everyone stings.",
    "thoughtPattern": "Mind Reading",
    "patternNote": "You're assuming you know why your manager moved on.",
    "reframe": "One ignored idea in one meeting is not a verdict on all your ideas.",
    "question": "What did you make it mean about you when they moved on?",
    "encouragement": "Noticing this is already a step.",
    "layerInsight": "The surface event is a single meeting moment.",
})


Reply = Union[str, Exception]


class FakeProvider(LLMProvider):
    """
    Scripted provider.

    Returns the scripted replies in order and keeps returning the last
    one. An Exception in the script is raised instead of returned.
    """

    def __init__(
        self,
        name: str,
        replies: Optional[list[Reply]] = None,
        configured: bool = True,
        delay_seconds: float = 0.0,
    ) -> None:
        self._name = name
        self._replies = list(replies or [""])
        self._configured = configured
        self._delay_seconds = delay_seconds
        self.calls = 0
        self.messages: list[list[dict]] = []

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return f"{self._name}-model"

    def is_configured(self) -> bool:
        return self._configured

    async def generate(
        self,
        messages: list[dict],
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ProviderCallResult:
        index = min(self.calls, len(self._replies) - 1)
        self.calls += 1
        self.messages.append(messages)

        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)

        reply = self._replies[index]
        if isinstance(reply, Exception):
            raise reply

        return ProviderCallResult(
            content=reply,
            provider_name=self._name,
            model_name=model or self.default_model,
            token_usage=10,
        )

    async def health_check(self) -> bool:
        return self._configured


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no provider credentials and no env file."""
    return Settings(
        _env_file=None,
        env="development",
        debug=True,
        sentry_dsn="",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock: FakeClock) -> RateLimiter:
    return RateLimiter(clock=fake_clock)


def make_pipeline(
    replies: list[Reply],
    rate_limiter: Optional[RateLimiter] = None,
    default_replies: Optional[list[Reply]] = None,
) -> tuple[ReframePipeline, FakeProvider, FakeProvider]:
    """Pipeline with one scripted primary provider and a scripted default."""
    primary = FakeProvider("primary", replies)
    default = FakeProvider("default", default_replies or [""])
    orchestrator = ProviderOrchestrator([primary], default, timeout_seconds=1.0)
    pipeline = ReframePipeline(
        orchestrator=orchestrator,
        rate_limiter=rate_limiter,
        distortion_classifier=DistortionClassifier(rng=random.Random(7)),
    )
    return pipeline, primary, default


@pytest.fixture
def fake_provider() -> type[FakeProvider]:
    """The scripted provider class, for tests that build their own chain."""
    return FakeProvider


@pytest.fixture
def pipeline_factory():
    return make_pipeline


@pytest.fixture
def analysis_json() -> str:
    return ANALYSIS_JSON


@pytest.fixture
def reply_json() -> str:
    return REPLY_JSON
