"""
Extraction Client - Turn free-form text into typed records via the LLM.

Model output is untrusted: each field is coerced on its own and a field
that fails its check is dropped and recorded, never fatal. Only invalid
JSON or a missing title fails an extraction.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from linear_agent.adapters.async_base import RetryCallback, RetryConfig, with_retry
from linear_agent.core.domain.entities import (
    ExtractedRecord,
    ExtractedUpdateRecord,
    IssueContext,
    WorkspaceSnapshot,
    parse_due_date,
)
from linear_agent.core.domain.enums import IssueType, Priority
from linear_agent.core.exceptions import ExtractionError
from linear_agent.core.ports.config_provider import LLMConfig
from linear_agent.core.ports.llm import CompletionOptions, LLMPort
from linear_agent.core.result import Err, Ok, Result

from .prompts import (
    SYSTEM_PROMPT,
    UPDATE_SYSTEM_PROMPT,
    build_update_prompt,
    build_user_prompt,
    sanitize_input,
)


Coercer = Callable[[Any], Result[Any, str]]


# =============================================================================
# Field coercers
# =============================================================================


def coerce_text(value: Any) -> Result[str, str]:
    if not isinstance(value, str):
        return Err(f"expected a string, got {type(value).__name__}")
    text = value.strip()
    if not text:
        return Err("empty string")
    return Ok(text)


def coerce_upper(value: Any) -> Result[str, str]:
    return coerce_text(value).map(str.upper)


def coerce_lower(value: Any) -> Result[str, str]:
    return coerce_text(value).map(str.lower)


def coerce_priority(value: Any) -> Result[int, str]:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not Priority.is_valid(value):
        return Err(f"priority must be an integer 0-4, got {value!r}")
    return Ok(value)


def coerce_estimate(value: Any) -> Result[float, str]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return Err(f"estimate must be a number, got {value!r}")
    if value <= 0:
        return Err(f"estimate must be positive, got {value!r}")
    return Ok(value)


def coerce_labels(value: Any) -> Result[list[str], str]:
    if not isinstance(value, list):
        return Err(f"expected a list of strings, got {type(value).__name__}")
    labels = [item.strip().lower() for item in value if isinstance(item, str) and item.strip()]
    return Ok(labels)


def coerce_issue_type(value: Any) -> Result[IssueType, str]:
    issue_type = IssueType.from_string(value) if isinstance(value, str) else None
    if issue_type is None:
        return Err(f"unknown issue type {value!r}")
    return Ok(issue_type)


def coerce_due_date(value: Any) -> Result[str, str]:
    return coerce_text(value).and_then(
        lambda text: Ok(text) if parse_due_date(text) else Err(f"unparseable date {text!r}")
    )


# (model key, record attribute, coercer)
ISSUE_FIELDS: tuple[tuple[str, str, Coercer], ...] = (
    ("description", "description", coerce_text),
    ("teamKey", "team_key", coerce_upper),
    ("projectName", "project_name", coerce_text),
    ("priority", "priority", coerce_priority),
    ("estimate", "estimate", coerce_estimate),
    ("labels", "labels", coerce_labels),
    ("issueType", "issue_type", coerce_issue_type),
    ("dueDate", "due_date", coerce_due_date),
)

UPDATE_FIELDS: tuple[tuple[str, str, Coercer], ...] = (
    ("comment", "comment", coerce_text),
    ("statusChange", "status_change", coerce_lower),
    ("priorityChange", "priority_change", coerce_priority),
    ("addLabels", "add_labels", coerce_labels),
    ("removeLabels", "remove_labels", coerce_labels),
    ("titleUpdate", "title_update", coerce_text),
    ("appendDescription", "append_description", coerce_text),
    ("assigneeChange", "assignee_change", coerce_lower),
    ("summary", "summary", coerce_text),
)


# =============================================================================
# Response parsing
# =============================================================================


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence from a model reply."""
    body = text.strip()
    if body.startswith("```json"):
        body = body[7:]
    elif body.startswith("```"):
        body = body[3:]
    if body.endswith("```"):
        body = body[:-3]
    return body.strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """
    Parse a model reply into a JSON object.

    Raises:
        ExtractionError: If the reply is not valid JSON or not an object
    """
    body = strip_code_fences(text)
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as e:
        raise ExtractionError(
            f"Failed to parse AI response as JSON: {body[:100]}...",
            raw_response=text,
            cause=e,
        ) from e

    if not isinstance(parsed, dict):
        raise ExtractionError("AI response is not a JSON object", raw_response=text)
    return parsed


def apply_fields(
    parsed: dict[str, Any],
    fields: tuple[tuple[str, str, Coercer], ...],
    record: ExtractedRecord | ExtractedUpdateRecord,
    logger: logging.Logger,
) -> None:
    """Coerce each present field onto record, dropping and recording failures."""
    for key, attr, coerce in fields:
        value = parsed.get(key)
        if value is None:
            continue

        result = coerce(value)
        if result.is_ok():
            setattr(record, attr, result.unwrap())
        else:
            logger.warning(f"Dropping field {key}: {result.unwrap_err()}")
            record.dropped_fields.append(key)


def parse_issue_response(
    text: str, logger: logging.Logger | None = None
) -> ExtractedRecord:
    """
    Build an ExtractedRecord from a model reply.

    Raises:
        ExtractionError: On invalid JSON or a missing title
    """
    log = logger or logging.getLogger("ExtractionClient")
    parsed = parse_json_object(text)

    title = coerce_text(parsed.get("title"))
    if title.is_err():
        raise ExtractionError('AI response missing required "title" field', raw_response=text)

    record = ExtractedRecord(title=title.unwrap())
    apply_fields(parsed, ISSUE_FIELDS, record, log)
    return record


def parse_update_response(
    text: str, logger: logging.Logger | None = None
) -> ExtractedUpdateRecord:
    """
    Build an ExtractedUpdateRecord from a model reply.

    Raises:
        ExtractionError: On invalid JSON
    """
    log = logger or logging.getLogger("ExtractionClient")
    record = ExtractedUpdateRecord()
    apply_fields(parse_json_object(text), UPDATE_FIELDS, record, log)
    return record


# =============================================================================
# Client
# =============================================================================


class ExtractionClient:
    """
    Extracts issue and update records from free-form text.

    LLM calls go through the retry executor; parsing happens once, after a
    successful call.
    """

    def __init__(
        self,
        llm: LLMPort,
        config: LLMConfig,
        retry: RetryConfig | None = None,
        on_retry: RetryCallback | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the client.

        Args:
            llm: Completion provider
            config: Model settings and default retry policy
            retry: Retry policy overriding the one in config
            on_retry: Notified before each retry sleep
            sleep: Awaitable sleep used between retries
        """
        self.llm = llm
        self.config = config
        self.retry = retry or RetryConfig(
            max_retries=config.max_retries,
            base_delay=config.base_delay,
            max_delay=config.max_delay,
            jitter=config.jitter,
        )
        self.on_retry = on_retry
        self._sleep = sleep
        self.logger = logging.getLogger("ExtractionClient")

    @property
    def options(self) -> CompletionOptions:
        return CompletionOptions(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )

    async def extract_issue(
        self, raw_text: str, snapshot: WorkspaceSnapshot | None = None
    ) -> ExtractedRecord:
        """
        Extract a new-issue record.

        Raises:
            ExtractionError: Empty input, invalid JSON or missing title
            LLMError: When the model call fails after retries
        """
        text = self._sanitize(raw_text)
        prompt = build_user_prompt(text, snapshot)
        reply = await self._complete(SYSTEM_PROMPT, prompt)

        record = parse_issue_response(reply, self.logger)
        self.logger.debug(f"Extracted record: {record.to_dict()}")
        return record

    async def extract_update(
        self,
        raw_text: str,
        issue_context: IssueContext,
        snapshot: WorkspaceSnapshot | None = None,
    ) -> ExtractedUpdateRecord:
        """
        Extract changes to an existing issue.

        Raises:
            ExtractionError: Empty input or invalid JSON
            LLMError: When the model call fails after retries
        """
        text = self._sanitize(raw_text)
        prompt = build_update_prompt(text, issue_context, snapshot)
        reply = await self._complete(UPDATE_SYSTEM_PROMPT, prompt)
        return parse_update_response(reply, self.logger)

    def _sanitize(self, raw_text: str) -> str:
        text = sanitize_input(raw_text)
        if not text:
            raise ExtractionError("Input is empty after sanitization")
        return text

    async def _complete(self, system_prompt: str, user_prompt: str) -> str:
        options = self.options
        self.logger.debug(
            f"Calling {self.llm.name} ({options.model}), prompt {len(user_prompt)} chars"
        )
        return await with_retry(
            lambda: self.llm.complete(system_prompt, user_prompt, options),
            on_retry=self.on_retry,
            sleep=self._sleep,
            **self.retry.as_kwargs(),
        )
