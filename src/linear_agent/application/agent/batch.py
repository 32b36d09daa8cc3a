"""
Batch Orchestrator - Create many issues from many inputs.

Items run strictly in input order. A failure in one item is captured as that
item's result and never reaches its neighbours.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from linear_agent.core.domain.entities import ExtractedRecord, WorkspaceSnapshot
from linear_agent.core.exceptions import LinearAgentError
from linear_agent.core.ports.config_provider import AgentConfig
from linear_agent.core.ports.issue_tracker import IssueTrackerPort
from linear_agent.core.result import Err, Ok, Result

from .extraction import ExtractionClient
from .resolver import RecordResolver
from .validator import RecordValidator


@dataclass
class BatchOptions:
    """
    Options for a batch run.

    Attributes:
        team_key: Team key applied to every item
        priority: Priority applied to every item
        assignee_id: Assignee applied to every item
        dry_run: Stop after validation, never write
        continue_on_error: Keep going after a failed item
        delay: Seconds to wait between items
    """

    team_key: str | None = None
    priority: int | None = None
    assignee_id: str | None = None
    dry_run: bool = False
    continue_on_error: bool = True
    delay: float = 0.0


@dataclass
class BatchItemResult:
    """Outcome of one batch input."""

    input: str
    line_number: int
    success: bool
    issue_identifier: str | None = None
    issue_url: str | None = None
    error: str | None = None
    extracted: ExtractedRecord | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": self.input,
            "line_number": self.line_number,
            "success": self.success,
            "issue_identifier": self.issue_identifier,
            "issue_url": self.issue_url,
            "error": self.error,
            "extracted": self.extracted.to_dict() if self.extracted else None,
        }


@dataclass(frozen=True)
class BatchResult:
    """Aggregate of all attempted items."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    items: tuple[BatchItemResult, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "items": [item.to_dict() for item in self.items],
        }


ItemOutcome = Result[BatchItemResult, BatchItemResult]
ProgressCallback = Callable[[BatchItemResult], None]


def parse_batch_input(text: str) -> list[str]:
    """
    Split batch text into inputs.

    One input per line; a single line containing ``;`` is split on ``;``
    instead. Blank entries are dropped.
    """
    lines = re.split(r"\r?\n", text)
    if len(lines) == 1 and ";" in lines[0]:
        lines = lines[0].split(";")
    return [line.strip() for line in lines if line.strip()]


class BatchOrchestrator:
    """Runs extract, resolve, validate and create for each batch input."""

    def __init__(
        self,
        extractor: ExtractionClient,
        tracker: IssueTrackerPort,
        snapshot: WorkspaceSnapshot,
        config: AgentConfig,
        resolver: RecordResolver | None = None,
        validator: RecordValidator | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.extractor = extractor
        self.tracker = tracker
        self.snapshot = snapshot
        self.config = config
        self.resolver = resolver or RecordResolver()
        self.validator = validator or RecordValidator()
        self._sleep = sleep
        self.logger = logging.getLogger("BatchOrchestrator")

    async def process_batch(
        self,
        inputs: list[str],
        options: BatchOptions | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """
        Process inputs in order.

        Args:
            inputs: Raw inputs; blank entries are skipped and not counted
            options: Overrides and run policy
            on_progress: Called with each item result as soon as it is known

        Returns:
            BatchResult over the attempted items
        """
        options = options or BatchOptions()
        pending = [(index + 1, text.strip()) for index, text in enumerate(inputs) if text.strip()]

        items: list[BatchItemResult] = []
        succeeded = failed = 0

        for position, (line_number, text) in enumerate(pending):
            outcome = await self._process_item(text, line_number, options)

            if outcome.is_ok():
                item = outcome.unwrap()
                succeeded += 1
            else:
                item = outcome.unwrap_err()
                failed += 1
                self.logger.warning(f"Line {line_number} failed: {item.error}")
            items.append(item)

            if on_progress is not None:
                on_progress(item)

            if not item.success and not options.continue_on_error:
                self.logger.info(f"Stopping batch after failure on line {line_number}")
                break

            if options.delay > 0 and position < len(pending) - 1:
                await self._sleep(options.delay)

        self.logger.info(f"Batch complete: {succeeded} succeeded, {failed} failed")
        return BatchResult(
            total=len(items), succeeded=succeeded, failed=failed, items=tuple(items)
        )

    async def _process_item(
        self, text: str, line_number: int, options: BatchOptions
    ) -> ItemOutcome:
        def failure(error: str, record: ExtractedRecord | None = None) -> ItemOutcome:
            return Err(
                BatchItemResult(
                    input=text,
                    line_number=line_number,
                    success=False,
                    error=error,
                    extracted=record,
                )
            )

        try:
            record = await self.extractor.extract_issue(text, self.snapshot)

            if options.team_key:
                record.team_key = options.team_key.upper()
            if options.priority is not None:
                record.priority = options.priority
            if options.assignee_id:
                record.assignee_id = options.assignee_id

            record = self.resolver.resolve_defaults(record, self.snapshot, self.config)

            validation = self.validator.validate(record, self.snapshot)
            if not validation.valid:
                return failure("; ".join(validation.errors), record)
            record = validation.apply(record)

            if options.dry_run:
                return Ok(
                    BatchItemResult(
                        input=text, line_number=line_number, success=True, extracted=record
                    )
                )

            resolution = self.resolver.parse(record, self.snapshot, self.config)
            if resolution.team is None:
                return failure("Could not resolve team", record)

            created = await self.tracker.create_issue(resolution.input)
            if created is None:
                return failure("Failed to create issue", record)

        except LinearAgentError as e:
            return failure(e.message)
        except Exception as e:
            self.logger.exception(f"Unexpected error on line {line_number}")
            return failure(str(e) or type(e).__name__)

        return Ok(
            BatchItemResult(
                input=text,
                line_number=line_number,
                success=True,
                issue_identifier=created.identifier,
                issue_url=created.url,
                extracted=record,
            )
        )
