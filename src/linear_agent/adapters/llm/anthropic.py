"""
Anthropic Provider - LLMPort implementation over the Anthropic Messages API.

SDK-level retries are disabled; retrying is the job of the retry executor,
which classifies the LLMError subclasses raised here.
"""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from linear_agent.core.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
    LLMUnavailableError,
)
from linear_agent.core.ports.llm import CompletionOptions, LLMPort

from .base import LLMConfig, LLMMessage, LLMResponse, LLMRole


class AnthropicProvider(LLMPort):
    """
    Completion provider backed by ``anthropic.AsyncAnthropic``.

    Error mapping:
    - 401 -> LLMAuthenticationError (never retried)
    - 429 -> LLMRateLimitError
    - 5xx and connection failures -> LLMUnavailableError
    - timeouts -> LLMTimeoutError
    - other API errors -> LLMError
    """

    def __init__(self, config: LLMConfig, client: Any | None = None):
        """
        Initialize the provider.

        Args:
            config: Model and credential settings
            client: Pre-built async client (tests inject a mock here)
        """
        self.config = config
        self.logger = logging.getLogger("AnthropicProvider")
        self._client = client or anthropic.AsyncAnthropic(
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=0,
        )

    @property
    def name(self) -> str:
        return "Anthropic"

    async def complete(
        self, system_prompt: str, user_prompt: str, options: CompletionOptions
    ) -> str:
        response = await self.generate(
            [LLMMessage(role=LLMRole.USER, content=user_prompt)],
            system=system_prompt,
            options=options,
        )
        return response.content

    async def generate(
        self,
        messages: list[LLMMessage],
        system: str | None = None,
        options: CompletionOptions | None = None,
    ) -> LLMResponse:
        """
        Send a chat request and return the first text block.

        Raises:
            LLMError: Or one of its subclasses, see class docstring
        """
        opts = options or CompletionOptions(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )

        request: dict[str, Any] = {
            "model": opts.model,
            "max_tokens": opts.max_tokens,
            "temperature": opts.temperature,
            "messages": [m.to_dict() for m in messages if m.role != LLMRole.SYSTEM],
        }
        if system:
            request["system"] = system

        self.logger.debug(f"Requesting completion from {opts.model}")

        try:
            response = await self._client.messages.create(**request)
        except anthropic.AuthenticationError as e:
            raise LLMAuthenticationError(cause=e) from e
        except anthropic.RateLimitError as e:
            raise LLMRateLimitError("Rate limit exceeded (429)", status_code=429, cause=e) from e
        except anthropic.APITimeoutError as e:
            raise LLMTimeoutError("AI request timed out", cause=e) from e
        except anthropic.APIConnectionError as e:
            raise LLMUnavailableError("Anthropic API connection failed", cause=e) from e
        except anthropic.APIStatusError as e:
            if e.status_code >= 500:
                raise LLMUnavailableError(
                    f"Anthropic API temporarily unavailable ({e.status_code})",
                    status_code=e.status_code,
                    cause=e,
                ) from e
            raise LLMError(
                f"Anthropic API error: {e.message}", status_code=e.status_code, cause=e
            ) from e

        if not response.content or response.content[0].type != "text":
            raise LLMError("Unexpected response type from model")

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=response.content[0].text,
            model=getattr(response, "model", opts.model),
            provider=self.name,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            stop_reason=getattr(response, "stop_reason", None),
        )
