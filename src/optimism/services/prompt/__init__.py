"""Prompt construction services."""

from optimism.services.prompt.prompt_builder import BuiltPrompt, PromptBuilder, ResponseContext

__all__ = ["BuiltPrompt", "PromptBuilder", "ResponseContext"]
