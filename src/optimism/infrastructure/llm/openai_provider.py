"""
OpenAI-Compatible LLM Provider

Chat-completions provider over the OpenAI SDK. Any service exposing the
OpenAI chat completions API (OpenAI, Mistral, DeepSeek, Groq, Together,
OpenRouter, Z.AI, a local default endpoint) is reached by pointing the
client at its base URL.
"""

import time
from typing import Optional

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError as OpenAIRateLimitError,
)
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from optimism.config.logging_config import get_logger
from optimism.domain.models import ProviderCallResult
from optimism.infrastructure.llm.provider import (
    ContentFilterError,
    LLMProvider,
    LLMProviderError,
    RateLimitError,
)

logger = get_logger(__name__)


class OpenAICompatibleProvider(LLMProvider):
    """
    OpenAI chat-completions provider.

    Transient connection failures are retried with exponential backoff.
    Rate limits and API errors are converted to LLMProviderError so the
    orchestrator can move on to the next provider.

    Usage:
        provider = OpenAICompatibleProvider(
            name="mistral",
            api_key="...",
            base_url="https://api.mistral.ai/v1",
            model="mistral-small-latest",
        )
        result = await provider.generate(messages)
    """

    def __init__(
        self,
        name: str,
        api_key: str,
        base_url: Optional[str] = None,
        model: str = "gpt-4o",
        max_tokens: int = 2000,
        temperature: float = 0.8,
        timeout_seconds: float = 15.0,
        default_headers: Optional[dict[str, str]] = None,
        always_configured: bool = False,
    ) -> None:
        """
        Initialize provider.

        Args:
            name: Provider name used in logs and metrics
            api_key: API key
            base_url: Chat completions base URL (SDK default when None)
            model: Default model identifier
            max_tokens: Default max tokens
            temperature: Default temperature
            timeout_seconds: HTTP timeout for a single request
            default_headers: Extra headers sent with every request
            always_configured: Treat as configured without an API key
        """
        self._name = name
        self._api_key = api_key
        self._base_url = base_url or None
        self._default_model = model
        self._default_max_tokens = max_tokens
        self._default_temperature = temperature
        self._timeout_seconds = timeout_seconds
        self._default_headers = default_headers or {}
        self._always_configured = always_configured

        self._client: Optional[AsyncOpenAI] = None

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return self._default_model

    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return self._always_configured or bool(self._api_key)

    def _get_client(self) -> AsyncOpenAI:
        """Get or create async client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key or "not-needed",
                base_url=self._base_url,
                timeout=self._timeout_seconds,
                max_retries=0,
                default_headers=self._default_headers or None,
            )
        return self._client

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type((APIConnectionError, APITimeoutError)),
        reraise=True,
    )
    async def _create_completion(self, **kwargs):
        return await self._get_client().chat.completions.create(**kwargs)

    async def generate(
        self,
        messages: list[dict],
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ProviderCallResult:
        """
        Generate completion over the chat completions API.

        Returns:
            ProviderCallResult (content may be empty)
        """
        if not self.is_configured():
            raise LLMProviderError(
                f"{self._name} API key not configured",
                provider=self.provider_name,
            )

        model_name = model or self._default_model
        start_time = time.time()

        try:
            response = await self._create_completion(
                model=model_name,
                messages=messages,
                max_tokens=max_tokens or self._default_max_tokens,
                temperature=temperature if temperature is not None else self._default_temperature,
            )
        except OpenAIRateLimitError as e:
            logger.warning("Provider rate limit hit", provider=self._name, error=str(e))
            raise RateLimitError(provider=self.provider_name, retry_after_seconds=60) from e
        except APIError as e:
            logger.error("Provider API error", provider=self._name, error=str(e))
            raise LLMProviderError(
                f"{self._name} API error: {e}",
                provider=self.provider_name,
                is_retryable=True,
                original_error=e,
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            return ProviderCallResult(
                content="",
                provider_name=self.provider_name,
                model_name=model_name,
                latency_ms=latency_ms,
            )

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise ContentFilterError(
                provider=self.provider_name,
                filter_reason="Content was filtered by provider safety systems",
            )

        total_tokens = response.usage.total_tokens if response.usage else None

        logger.debug(
            "Completion generated",
            provider=self._name,
            model=model_name,
            tokens=total_tokens,
            latency_ms=latency_ms,
        )

        return ProviderCallResult(
            content=(choice.message.content or "").strip(),
            provider_name=self.provider_name,
            model_name=response.model or model_name,
            token_usage=total_tokens,
            latency_ms=latency_ms,
        )

    async def health_check(self) -> bool:
        """Check API availability with a models listing."""
        if not self.is_configured():
            return False

        try:
            await self._get_client().models.list()
            return True
        except APIError as e:
            logger.warning("Provider health check failed", provider=self._name, error=str(e))
            return False
