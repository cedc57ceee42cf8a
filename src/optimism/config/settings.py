"""
Optimism Engine Application Settings

Configuration management using Pydantic Settings.
All provider credentials are loaded from environment variables.

SECURITY: Never log or expose settings containing secrets.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """
    Shared shape for an external generation provider.

    Each concrete provider subclasses this with its own env prefix,
    default model and endpoint.
    """

    api_key: SecretStr = Field(default=SecretStr(""), description="Provider API key")
    model: str = Field(default="", description="Model identifier")
    base_url: str = Field(default="", description="API base URL")

    def is_configured(self) -> bool:
        """Provider is usable only when an API key is present."""
        return bool(self.api_key.get_secret_value())


class MistralSettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_MISTRAL_")

    model: str = "mistral-small-latest"
    base_url: str = "https://api.mistral.ai/v1"


class DeepSeekSettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_DEEPSEEK_")

    model: str = "deepseek-chat"
    base_url: str = "https://api.deepseek.com/v1"


class ZaiSettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_ZAI_")

    model: str = "glm-4"
    base_url: str = "https://open.bigmodel.cn/api/paas/v4"


class GeminiSettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_GEMINI_")

    model: str = "gemini-2.0-flash"


class OpenAISettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_OPENAI_")

    model: str = "gpt-4o"
    base_url: str = "https://api.openai.com/v1"


class AnthropicSettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_ANTHROPIC_")

    model: str = "claude-sonnet-4-20250514"
    base_url: str = "https://api.anthropic.com/v1"
    api_version: str = Field(default="2023-06-01", description="anthropic-version header")


class GroqSettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_GROQ_")

    model: str = "llama-3.3-70b-versatile"
    base_url: str = "https://api.groq.com/openai/v1"


class TogetherSettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_TOGETHER_")

    model: str = "meta-llama/Llama-3.3-70B-Instruct-Turbo"
    base_url: str = "https://api.together.xyz/v1"


class OpenRouterSettings(ProviderSettings):
    model_config = SettingsConfigDict(env_prefix="OPTIMISM_OPENROUTER_")

    model: str = "anthropic/claude-3.5-sonnet"
    base_url: str = "https://openrouter.ai/api/v1"
    site_url: str = Field(default="https://optimism-engine.app", description="HTTP-Referer header")
    app_title: str = Field(default="Optimism Engine", description="X-Title header")


class DefaultProviderSettings(ProviderSettings):
    """
    Mandatory default provider.

    Always treated as available and tried last. Points at any
    OpenAI-compatible chat completions endpoint.
    """

    model_config = SettingsConfigDict(env_prefix="OPTIMISM_DEFAULT_LLM_")

    api_key: SecretStr = Field(default=SecretStr("not-needed"), description="Default provider key")
    model: str = "default"
    base_url: str = "http://localhost:11434/v1"

    def is_configured(self) -> bool:
        return True


class RateLimitSettings(BaseSettings):
    """Per endpoint class request caps and sweep cadence."""

    model_config = SettingsConfigDict(env_prefix="OPTIMISM_RATE_LIMIT_")

    reframe_max_requests: int = Field(default=10, ge=1, le=1000)
    reframe_window_seconds: int = Field(default=60, ge=1)
    reframe_block_seconds: int = Field(default=300, ge=1)
    session_max_requests: int = Field(default=20, ge=1, le=1000)
    messages_max_requests: int = Field(default=30, ge=1, le=1000)
    sweep_interval_seconds: int = Field(default=60, ge=1, le=3600)


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with OPTIMISM_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        timeout = settings.llm_timeout_seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="OPTIMISM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )
    sentry_dsn: str = Field(default="", description="Sentry DSN, empty disables tracking")
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)

    # Generation
    llm_timeout_seconds: float = Field(default=15.0, gt=0, le=120, description="Per call timeout")
    llm_temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=2000, ge=100, le=8192)
    history_window: int = Field(default=6, ge=0, le=50, description="Prior turns sent to providers")
    provider_priority: list[str] = Field(
        default=[
            "mistral",
            "deepseek",
            "zai",
            "gemini",
            "openai",
            "anthropic",
            "groq",
            "together",
            "openrouter",
        ],
        description="Order in which configured providers are tried"
    )

    # Nested settings
    mistral: MistralSettings = Field(default_factory=MistralSettings)
    deepseek: DeepSeekSettings = Field(default_factory=DeepSeekSettings)
    zai: ZaiSettings = Field(default_factory=ZaiSettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    anthropic: AnthropicSettings = Field(default_factory=AnthropicSettings)
    groq: GroqSettings = Field(default_factory=GroqSettings)
    together: TogetherSettings = Field(default_factory=TogetherSettings)
    openrouter: OpenRouterSettings = Field(default_factory=OpenRouterSettings)
    default_llm: DefaultProviderSettings = Field(default_factory=DefaultProviderSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    def provider_settings(self, name: str) -> ProviderSettings:
        """Look up nested provider settings by provider name."""
        settings = getattr(self, name, None)
        if not isinstance(settings, ProviderSettings):
            raise ValueError(f"Unknown provider: {name}")
        return settings


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, construct Settings directly and inject it.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
