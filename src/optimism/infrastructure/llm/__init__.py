"""Generation provider abstraction package."""

from optimism.infrastructure.llm.provider import (
    LLMProvider,
    LLMProviderError,
    RateLimitError,
    ContentFilterError,
    split_system_prompt,
)
from optimism.infrastructure.llm.openai_provider import OpenAICompatibleProvider
from optimism.infrastructure.llm.anthropic_provider import AnthropicProvider
from optimism.infrastructure.llm.gemini_provider import GeminiProvider
from optimism.infrastructure.llm.orchestrator import ProviderOrchestrator
from optimism.infrastructure.llm.provider_factory import (
    ProviderOverride,
    ProviderType,
    build_provider_chain,
    configured_providers,
    create_default_provider,
    create_override_provider,
    create_provider,
    supported_providers,
)

__all__ = [
    # Base types
    "LLMProvider",
    "LLMProviderError",
    "RateLimitError",
    "ContentFilterError",
    "split_system_prompt",
    # Providers
    "OpenAICompatibleProvider",
    "AnthropicProvider",
    "GeminiProvider",
    # Orchestration
    "ProviderOrchestrator",
    # Factory
    "ProviderOverride",
    "ProviderType",
    "build_provider_chain",
    "configured_providers",
    "create_default_provider",
    "create_override_provider",
    "create_provider",
    "supported_providers",
]
