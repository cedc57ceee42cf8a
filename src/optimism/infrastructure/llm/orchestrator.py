"""
Provider Orchestrator

Sends one message sequence through the provider fallback chain.

Chain: explicit override (if any) → configured providers in priority
order → mandatory default provider. The first non-empty reply wins.

POLICY:
- A provider that raises (API error, rate limit, timeout) is skipped.
- A provider that returns empty content is called once more, then
  skipped. Every provider in the chain gets this retry.
- Every attempt is bounded by an explicit timeout.
"""

import asyncio
import time
from collections.abc import Sequence
from typing import Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt

from optimism.config.logging_config import get_logger
from optimism.domain.models import ProviderCallResult
from optimism.infrastructure.llm.provider import LLMProvider
from optimism.infrastructure.metrics import track_llm_request

logger = get_logger(__name__)


def _is_empty(result: ProviderCallResult) -> bool:
    return not result.content.strip()


def _last_result(retry_state: RetryCallState) -> ProviderCallResult:
    return retry_state.outcome.result()


class ProviderOrchestrator:
    """
    Ordered, bounded fallback across generation providers.

    Usage:
        orchestrator = ProviderOrchestrator(chain, default_provider)
        result = await orchestrator.call(prompt.to_messages())
        if result is None:
            ...  # every provider failed
    """

    def __init__(
        self,
        providers: Sequence[LLMProvider],
        default_provider: LLMProvider,
        timeout_seconds: float = 15.0,
        empty_retries: int = 1,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            providers: Configured providers in priority order
            default_provider: Always-available last resort
            timeout_seconds: Bound on a single provider attempt
            empty_retries: Extra calls to the same provider on empty content
        """
        self._providers = list(providers)
        self._default_provider = default_provider
        self._timeout_seconds = timeout_seconds
        self._empty_retries = empty_retries

    @property
    def providers(self) -> list[LLMProvider]:
        return list(self._providers)

    @property
    def default_provider(self) -> LLMProvider:
        return self._default_provider

    def chain(
        self,
        providers: Optional[Sequence[LLMProvider]] = None,
        override: Optional[LLMProvider] = None,
    ) -> list[LLMProvider]:
        """Providers in the order they will be attempted."""
        ordered: list[LLMProvider] = []
        if override is not None:
            ordered.append(override)
        candidates = self._providers if providers is None else list(providers)
        ordered.extend(p for p in candidates if p.is_configured())
        ordered.append(self._default_provider)
        return ordered

    async def call(
        self,
        messages: list[dict],
        providers: Optional[Sequence[LLMProvider]] = None,
        override: Optional[LLMProvider] = None,
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        phase: str = "",
    ) -> Optional[ProviderCallResult]:
        """
        Run the fallback chain.

        Args:
            messages: Role/content messages, system first
            providers: Replaces the configured chain for this call
            override: Tried before everything else
            max_tokens: Optional max tokens override
            temperature: Optional temperature override
            phase: Label for logs

        Returns:
            First non-empty result, or None if every provider failed
        """
        for provider in self.chain(providers, override):
            result = await self._call_provider(
                provider,
                messages,
                max_tokens=max_tokens,
                temperature=temperature,
                phase=phase,
            )
            if result is not None:
                logger.info(
                    "Provider succeeded",
                    phase=phase,
                    provider=result.provider_name,
                    model=result.model_name,
                    latency_ms=result.latency_ms,
                )
                return result

        logger.error("All providers failed", phase=phase)
        return None

    async def _call_provider(
        self,
        provider: LLMProvider,
        messages: list[dict],
        *,
        max_tokens: Optional[int],
        temperature: Optional[float],
        phase: str,
    ) -> Optional[ProviderCallResult]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(1 + self._empty_retries),
            retry=retry_if_result(_is_empty),
            retry_error_callback=_last_result,
            reraise=True,
        )

        try:
            result = await retrying(
                self._attempt,
                provider,
                messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Provider timed out",
                phase=phase,
                provider=provider.provider_name,
                timeout_seconds=self._timeout_seconds,
            )
            return None
        except Exception as e:
            logger.warning(
                "Provider failed",
                phase=phase,
                provider=provider.provider_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        if _is_empty(result):
            logger.warning(
                "Provider returned empty content",
                phase=phase,
                provider=provider.provider_name,
                attempts=1 + self._empty_retries,
            )
            return None

        return result

    async def _attempt(
        self,
        provider: LLMProvider,
        messages: list[dict],
        *,
        max_tokens: Optional[int],
        temperature: Optional[float],
    ) -> ProviderCallResult:
        start_time = time.time()
        status = "error"
        tokens = None

        try:
            result = await asyncio.wait_for(
                provider.generate(messages, max_tokens=max_tokens, temperature=temperature),
                timeout=self._timeout_seconds,
            )
            status = "empty" if _is_empty(result) else "success"
            tokens = result.token_usage
            return result
        except asyncio.TimeoutError:
            status = "timeout"
            raise
        finally:
            track_llm_request(
                provider.provider_name,
                status,
                time.time() - start_time,
                tokens,
            )

    async def health_check(self) -> dict:
        """
        Check health of every provider in the chain.

        Returns:
            Mapping of provider name to availability
        """
        status = {}
        for provider in self.chain():
            status[provider.provider_name] = await provider.health_check()
        return status
