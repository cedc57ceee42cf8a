"""
Anthropic LLM Provider

Messages API provider over plain HTTP. The instruction travels in a
separate ``system`` field and the reply arrives as a list of content
blocks, so this provider normalizes both directions.
"""

import time
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from optimism.config.logging_config import get_logger
from optimism.domain.models import ProviderCallResult
from optimism.infrastructure.llm.provider import (
    LLMProvider,
    LLMProviderError,
    RateLimitError,
    split_system_prompt,
)

logger = get_logger(__name__)


class AnthropicProvider(LLMProvider):
    """
    Anthropic Messages API provider.

    Usage:
        provider = AnthropicProvider(api_key="...")
        result = await provider.generate(messages)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com/v1",
        model: str = "claude-sonnet-4-20250514",
        api_version: str = "2023-06-01",
        max_tokens: int = 2000,
        temperature: float = 0.8,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            base_url: API base URL
            model: Default model identifier
            api_version: Value of the anthropic-version header
            max_tokens: Default max tokens
            temperature: Default temperature
            timeout_seconds: HTTP timeout for a single request
            transport: Optional httpx transport (tests use MockTransport)
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._default_model = model
        self._api_version = api_version
        self._default_max_tokens = max_tokens
        self._default_temperature = temperature
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return self._default_model

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._api_version,
            "content-type": "application/json",
        }

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout)),
        reraise=True,
    )
    async def _post(self, payload: dict) -> dict:
        async with httpx.AsyncClient(
            timeout=self._timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post(
                f"{self._base_url}/messages",
                headers=self._headers(),
                json=payload,
            )
            response.raise_for_status()
            return response.json()

    async def generate(
        self,
        messages: list[dict],
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ProviderCallResult:
        """Generate completion using the Messages API."""
        if not self.is_configured():
            raise LLMProviderError(
                "Anthropic API key not configured",
                provider=self.provider_name,
            )

        model_name = model or self._default_model
        system_prompt, conversation = split_system_prompt(messages)

        payload = {
            "model": model_name,
            "max_tokens": max_tokens or self._default_max_tokens,
            "temperature": temperature if temperature is not None else self._default_temperature,
            "system": system_prompt,
            "messages": [
                {"role": m["role"], "content": m["content"]} for m in conversation
            ],
        }

        start_time = time.time()

        try:
            data = await self._post(payload)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                logger.warning("Anthropic rate limit hit")
                raise RateLimitError(provider=self.provider_name, retry_after_seconds=60) from e
            logger.error("Anthropic API error", status_code=e.response.status_code)
            raise LLMProviderError(
                f"Anthropic API error: {e.response.status_code}",
                provider=self.provider_name,
                is_retryable=e.response.status_code >= 500,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Anthropic request failed", error=str(e))
            raise LLMProviderError(
                f"Anthropic request failed: {e}",
                provider=self.provider_name,
                is_retryable=True,
                original_error=e,
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        blocks = data.get("content") or []
        text = "".join(
            block.get("text", "") for block in blocks if block.get("type", "text") == "text"
        )
        usage = data.get("usage") or {}
        tokens = None
        if usage:
            tokens = int(usage.get("input_tokens", 0)) + int(usage.get("output_tokens", 0))

        return ProviderCallResult(
            content=text.strip(),
            provider_name=self.provider_name,
            model_name=data.get("model", model_name),
            token_usage=tokens,
            latency_ms=latency_ms,
        )

    async def health_check(self) -> bool:
        """Anthropic has no free probe endpoint; report configuration."""
        return self.is_configured()
