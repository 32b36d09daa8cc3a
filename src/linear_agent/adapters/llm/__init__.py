"""
LLM adapters - Completion providers.
"""

from .anthropic import AnthropicProvider
from .base import LLMConfig, LLMMessage, LLMResponse, LLMRole


__all__ = [
    "AnthropicProvider",
    "LLMConfig",
    "LLMMessage",
    "LLMResponse",
    "LLMRole",
]
