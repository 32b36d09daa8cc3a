"""
LLM Port - Abstract interface for text completion.

Implementations:
- AnthropicProvider: Anthropic Messages API
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CompletionOptions:
    """Per-call completion settings."""

    model: str
    max_tokens: int = 1024
    temperature: float = 0.3


class LLMPort(ABC):
    """
    Abstract interface for a single-shot completion call.

    Implementations map transport failures onto the ``LLMError`` family so
    the retry executor can classify them.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name (e.g., 'Anthropic')."""
        ...

    @abstractmethod
    async def complete(
        self, system_prompt: str, user_prompt: str, options: CompletionOptions
    ) -> str:
        """
        Run one completion and return the first text block.

        Raises:
            LLMAuthenticationError: Invalid API key (never retried)
            LLMRateLimitError: Throttled (HTTP 429)
            LLMUnavailableError: Server or network failure
            LLMTimeoutError: Request timed out
        """
        ...
