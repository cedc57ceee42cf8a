"""
Gemini Provider

Generative Language API backend. Gemini calls the assistant role
"model" and takes the instruction as a separate system_instruction, so
the OpenAI-style transcript is converted on the way in.

Each provider owns its service client, built with its own API key.
google.generativeai.configure() would set the key for the whole
process, and override providers are built per request.
"""

import time
from typing import Any, Optional

import google.ai.generativelanguage as glm

from optimism.config.logging_config import get_logger
from optimism.domain.models import ProviderCallResult
from optimism.infrastructure.llm.provider import (
    ContentFilterError,
    LLMProvider,
    LLMProviderError,
    RateLimitError,
    split_system_prompt,
)

logger = get_logger(__name__)

# Error text that indicates throttling rather than a failed call
_THROTTLE_MARKERS = ("429", "quota", "rate limit", "resource exhausted", "resource_exhausted")


class GeminiProvider(LLMProvider):
    """Gemini generation backend."""

    # Users describe distress in their own words. Blocking dangerous
    # content at medium would refuse many ordinary messages.
    SAFETY_SETTINGS: list[tuple[str, str]] = [
        ("HARM_CATEGORY_HARASSMENT", "BLOCK_MEDIUM_AND_ABOVE"),
        ("HARM_CATEGORY_HATE_SPEECH", "BLOCK_MEDIUM_AND_ABOVE"),
        ("HARM_CATEGORY_SEXUALLY_EXPLICIT", "BLOCK_MEDIUM_AND_ABOVE"),
        ("HARM_CATEGORY_DANGEROUS_CONTENT", "BLOCK_ONLY_HIGH"),
    ]

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        max_tokens: int = 2000,
        temperature: float = 0.8,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client: Any = None

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return self._model

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> Any:
        # Built lazily so the grpc channel opens inside the running loop
        if self._client is None:
            self._client = glm.GenerativeServiceAsyncClient(
                client_options={"api_key": self._api_key},
            )
        return self._client

    @staticmethod
    def to_contents(conversation: list[dict]) -> list[dict]:
        """Gemini content list from user/assistant messages."""
        return [
            {"role": "model" if m["role"] == "assistant" else "user", "parts": [{"text": m["content"]}]}
            for m in conversation
        ]

    def _build_request(
        self,
        model_name: str,
        messages: list[dict],
        max_tokens: Optional[int],
        temperature: Optional[float],
    ) -> "glm.GenerateContentRequest":
        system_prompt, conversation = split_system_prompt(messages)
        request = glm.GenerateContentRequest(
            model=f"models/{model_name}",
            contents=self.to_contents(conversation),
            safety_settings=[
                glm.SafetySetting(
                    category=glm.HarmCategory[category],
                    threshold=glm.SafetySetting.HarmBlockThreshold[threshold],
                )
                for category, threshold in self.SAFETY_SETTINGS
            ],
            generation_config=glm.GenerationConfig(
                max_output_tokens=max_tokens or self._max_tokens,
                temperature=self._temperature if temperature is None else temperature,
            ),
        )
        if system_prompt:
            request.system_instruction = glm.Content(parts=[glm.Part(text=system_prompt)])
        return request

    def _classify_error(self, error: Exception) -> LLMProviderError:
        text = str(error).lower()
        if any(marker in text for marker in _THROTTLE_MARKERS):
            return RateLimitError(provider=self.provider_name, retry_after_seconds=60)
        return LLMProviderError(
            f"Gemini request failed: {error}",
            provider=self.provider_name,
            is_retryable=True,
            original_error=error,
        )

    def _extract_text(self, response: Any) -> str:
        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and feedback.block_reason:
            raise ContentFilterError(self.provider_name, str(feedback.block_reason))

        if not response.candidates:
            return ""
        parts = response.candidates[0].content.parts
        return "".join(getattr(part, "text", "") for part in parts).strip()

    async def generate(
        self,
        messages: list[dict],
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ProviderCallResult:
        if not self.is_configured():
            raise LLMProviderError("Gemini API key not configured", provider=self.provider_name)

        model_name = model or self._model
        request = self._build_request(model_name, messages, max_tokens, temperature)

        started = time.time()
        try:
            response = await self._get_client().generate_content(request=request)
        except Exception as e:
            error = self._classify_error(e)
            logger.warning("Gemini call failed", error_type=type(error).__name__, model=model_name)
            raise error from e

        latency_ms = int((time.time() - started) * 1000)
        usage = getattr(response, "usage_metadata", None)

        return ProviderCallResult(
            content=self._extract_text(response),
            provider_name=self.provider_name,
            model_name=model_name,
            token_usage=getattr(usage, "total_token_count", None),
            latency_ms=latency_ms,
        )

    async def health_check(self) -> bool:
        if not self.is_configured():
            return False
        try:
            client = glm.ModelServiceAsyncClient(client_options={"api_key": self._api_key})
            await client.get_model(name=f"models/{self._model}")
        except Exception as e:
            logger.warning("Gemini health check failed", error=str(e))
            return False
        return True
