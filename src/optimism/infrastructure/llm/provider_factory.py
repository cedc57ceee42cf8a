"""
LLM Provider Factory

Factory for creating generation providers from configuration.
The priority chain is every provider with an API key, in the order of
OPTIMISM_PROVIDER_PRIORITY, followed by the mandatory default provider.

CONFIGURATION:
    OPTIMISM_MISTRAL_API_KEY=...       # enables mistral in the chain
    OPTIMISM_PROVIDER_PRIORITY='["openai","mistral"]'
    OPTIMISM_DEFAULT_LLM_BASE_URL=http://localhost:11434/v1
"""

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from optimism.config.logging_config import get_logger
from optimism.config.settings import Settings
from optimism.infrastructure.llm.provider import LLMProvider

logger = get_logger(__name__)


class ProviderType(StrEnum):
    """Supported generation providers."""

    MISTRAL = "mistral"
    DEEPSEEK = "deepseek"
    ZAI = "zai"
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GROQ = "groq"
    TOGETHER = "together"
    OPENROUTER = "openrouter"


class ProviderOverride(BaseModel):
    """
    Caller-supplied provider configuration.

    Tried before the configured chain. Fields left empty fall back to
    the provider's configured defaults.
    """

    model_config = ConfigDict(populate_by_name=True)

    provider: ProviderType
    api_key: str = Field(min_length=1, alias="apiKey")
    model: Optional[str] = None
    base_url: Optional[str] = Field(default=None, alias="baseUrl")


def supported_providers() -> list[str]:
    """Names of every provider the factory can build."""
    return [provider.value for provider in ProviderType]


def configured_providers(settings: Settings) -> list[str]:
    """Names of providers with credentials, in priority order."""
    names = []
    for name in settings.provider_priority:
        try:
            provider_type = ProviderType(name)
        except ValueError:
            logger.warning("Unknown provider in priority list", provider=name)
            continue
        if settings.provider_settings(provider_type.value).is_configured():
            names.append(provider_type.value)
    return names


def create_provider(
    provider_type: ProviderType,
    settings: Settings,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
) -> LLMProvider:
    """
    Create provider instance by type.

    Args:
        provider_type: Which provider to build
        settings: Application settings
        api_key: Optional key replacing the configured one
        model: Optional model replacing the configured one
        base_url: Optional endpoint replacing the configured one

    Returns:
        Provider instance (not necessarily configured)
    """
    config = settings.provider_settings(provider_type.value)
    key = api_key or config.api_key.get_secret_value()
    model_name = model or config.model
    url = base_url or config.base_url

    if provider_type == ProviderType.GEMINI:
        from optimism.infrastructure.llm.gemini_provider import GeminiProvider
        return GeminiProvider(
            api_key=key,
            model=model_name,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )

    if provider_type == ProviderType.ANTHROPIC:
        from optimism.infrastructure.llm.anthropic_provider import AnthropicProvider
        return AnthropicProvider(
            api_key=key,
            base_url=url,
            model=model_name,
            api_version=settings.anthropic.api_version,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout_seconds=settings.llm_timeout_seconds,
        )

    from optimism.infrastructure.llm.openai_provider import OpenAICompatibleProvider

    headers = None
    if provider_type == ProviderType.OPENROUTER:
        headers = {
            "HTTP-Referer": settings.openrouter.site_url,
            "X-Title": settings.openrouter.app_title,
        }

    return OpenAICompatibleProvider(
        name=provider_type.value,
        api_key=key,
        base_url=url,
        model=model_name,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
        timeout_seconds=settings.llm_timeout_seconds,
        default_headers=headers,
    )


def create_override_provider(override: ProviderOverride, settings: Settings) -> LLMProvider:
    """Build the provider described by a caller override."""
    return create_provider(
        override.provider,
        settings,
        api_key=override.api_key,
        model=override.model,
        base_url=override.base_url,
    )


def create_default_provider(settings: Settings) -> LLMProvider:
    """The mandatory last-resort provider. Always reported as configured."""
    from optimism.infrastructure.llm.openai_provider import OpenAICompatibleProvider

    config = settings.default_llm
    return OpenAICompatibleProvider(
        name="default",
        api_key=config.api_key.get_secret_value(),
        base_url=config.base_url,
        model=config.model,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
        timeout_seconds=settings.llm_timeout_seconds,
        always_configured=True,
    )


def build_provider_chain(settings: Settings) -> list[LLMProvider]:
    """
    Configured providers in priority order.

    The default provider is not included; the orchestrator appends it.
    """
    chain = [
        create_provider(ProviderType(name), settings)
        for name in configured_providers(settings)
    ]

    logger.info(
        "Provider chain built",
        providers=[provider.provider_name for provider in chain],
    )
    return chain
