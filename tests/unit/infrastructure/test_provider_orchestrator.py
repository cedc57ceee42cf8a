"""
Unit Tests for Provider Orchestrator

Tests chain order, the empty-reply retry, exception skipping and the
per-attempt timeout.
"""

import pytest

from optimism.infrastructure.llm import LLMProviderError, ProviderOrchestrator


MESSAGES = [
    {"role": "system", "content": "Instruction"},
    {"role": "user", "content": "Hello"},
]


class TestProviderOrchestrator:
    """Test suite for ProviderOrchestrator."""

    def test_chain_order(self, fake_provider) -> None:
        """Test override first, configured providers next, default last."""
        first = fake_provider("first")
        unconfigured = fake_provider("unconfigured", configured=False)
        second = fake_provider("second")
        default = fake_provider("default")
        override = fake_provider("override")

        orchestrator = ProviderOrchestrator([first, unconfigured, second], default)
        names = [p.provider_name for p in orchestrator.chain(override=override)]

        assert names == ["override", "first", "second", "default"]

    @pytest.mark.asyncio
    async def test_first_non_empty_reply_wins(self, fake_provider) -> None:
        first = fake_provider("first", ["hello"])
        default = fake_provider("default", ["fallback"])

        result = await ProviderOrchestrator([first], default).call(MESSAGES)

        assert result.content == "hello"
        assert result.provider_name == "first"
        assert first.calls == 1
        assert default.calls == 0

    @pytest.mark.asyncio
    async def test_empty_reply_retried_once_per_provider(self, fake_provider) -> None:
        """Test that every provider gets exactly two attempts on empty content."""
        first = fake_provider("first", [""])
        second = fake_provider("second", ["", "  "])
        default = fake_provider("default", ["ok"])

        result = await ProviderOrchestrator([first, second], default).call(MESSAGES)

        assert result.provider_name == "default"
        assert first.calls == 2
        assert second.calls == 2
        assert default.calls == 1

    @pytest.mark.asyncio
    async def test_empty_then_content_on_retry(self, fake_provider) -> None:
        first = fake_provider("first", ["", "second try"])
        default = fake_provider("default", ["fallback"])

        result = await ProviderOrchestrator([first], default).call(MESSAGES)

        assert result.content == "second try"
        assert first.calls == 2

    @pytest.mark.asyncio
    async def test_exception_skips_without_retry(self, fake_provider) -> None:
        """Test that a raising provider is skipped after a single attempt."""
        failing = fake_provider("failing", [LLMProviderError("boom", provider="failing")])
        crashing = fake_provider("crashing", [RuntimeError("unexpected")])
        default = fake_provider("default", ["ok"])

        result = await ProviderOrchestrator([failing, crashing], default).call(MESSAGES)

        assert result.provider_name == "default"
        assert failing.calls == 1
        assert crashing.calls == 1

    @pytest.mark.asyncio
    async def test_timeout_skips_provider(self, fake_provider) -> None:
        slow = fake_provider("slow", ["too late"], delay_seconds=0.5)
        default = fake_provider("default", ["ok"])

        orchestrator = ProviderOrchestrator([slow], default, timeout_seconds=0.05)
        result = await orchestrator.call(MESSAGES)

        assert result.provider_name == "default"
        assert slow.calls == 1

    @pytest.mark.asyncio
    async def test_all_fail_returns_none(self, fake_provider) -> None:
        first = fake_provider("first", [""])
        default = fake_provider("default", [RuntimeError("down")])

        result = await ProviderOrchestrator([first], default).call(MESSAGES)

        assert result is None
        assert first.calls == 2
        assert default.calls == 1

    @pytest.mark.asyncio
    async def test_providers_argument_replaces_chain(self, fake_provider) -> None:
        configured = fake_provider("configured", ["configured"])
        replacement = fake_provider("replacement", ["replacement"])
        default = fake_provider("default", ["ok"])

        orchestrator = ProviderOrchestrator([configured], default)
        result = await orchestrator.call(MESSAGES, providers=[replacement])

        assert result.provider_name == "replacement"
        assert configured.calls == 0

    @pytest.mark.asyncio
    async def test_override_tried_first(self, fake_provider) -> None:
        configured = fake_provider("configured", ["configured"])
        override = fake_provider("override", ["override"])
        default = fake_provider("default", ["ok"])

        result = await ProviderOrchestrator([configured], default).call(MESSAGES, override=override)

        assert result.provider_name == "override"
        assert override.messages == [MESSAGES]

    @pytest.mark.asyncio
    async def test_health_check(self, fake_provider) -> None:
        orchestrator = ProviderOrchestrator([fake_provider("first")], fake_provider("default"))

        assert await orchestrator.health_check() == {"first": True, "default": True}
