"""
Generation Provider Contract

Every backend, whatever its wire format, takes OpenAI-style
role/content messages (system first) and returns a ProviderCallResult.
The orchestrator only sees this contract.
"""

from abc import ABC, abstractmethod
from typing import Optional

from optimism.domain.models import ProviderCallResult


class LLMProvider(ABC):
    """
    One text generation backend.

    Empty content is a valid return value here. Whether an empty reply
    is retried or skipped is the orchestrator's decision, not the
    provider's. Transport and API failures raise LLMProviderError.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Name used in logs, metrics and the reply's _meta block."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present. Unconfigured providers are left out of the chain."""

    @abstractmethod
    async def generate(
        self,
        messages: list[dict],
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ProviderCallResult:
        """
        Run one completion.

        Args:
            messages: Role/content messages, system first
            model: Model for this call instead of the default
            max_tokens: Output cap for this call
            temperature: Sampling temperature for this call

        Raises:
            LLMProviderError: The backend could not be reached or refused
        """

    async def health_check(self) -> bool:
        """Cheap availability probe. Backends with a listing endpoint override this."""
        return self.is_configured()


def split_system_prompt(messages: list[dict]) -> tuple[str, list[dict]]:
    """
    Pull system messages out of the transcript.

    For wire formats that carry the instruction in its own field.
    Several system messages are joined with a blank line.
    """
    system = "\n\n".join(m["content"] for m in messages if m.get("role") == "system")
    return system, [m for m in messages if m.get("role") != "system"]


class LLMProviderError(Exception):
    """A provider call failed. The orchestrator moves on to the next provider."""

    def __init__(
        self,
        message: str,
        provider: str,
        is_retryable: bool = False,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.is_retryable = is_retryable
        self.original_error = original_error


class RateLimitError(LLMProviderError):
    """The provider throttled us (HTTP 429 or a quota error)."""

    def __init__(self, provider: str, retry_after_seconds: Optional[int] = None) -> None:
        super().__init__(f"{provider} is throttling requests", provider=provider, is_retryable=True)
        self.retry_after_seconds = retry_after_seconds


class ContentFilterError(LLMProviderError):
    """The provider's own safety filter blocked the prompt or reply."""

    def __init__(self, provider: str, filter_reason: str = "") -> None:
        super().__init__(f"{provider} blocked the content ({filter_reason or 'no reason given'})", provider=provider)
        self.filter_reason = filter_reason
