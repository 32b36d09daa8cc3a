"""
Record Validator - Cross-check an extracted record against the workspace.

Every rule runs; errors block a write, warnings never do. Corrections are
returned as enrichment for the caller to apply, the input record is left
untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from linear_agent.core.domain.entities import ExtractedRecord, WorkspaceSnapshot, parse_due_date
from linear_agent.core.domain.enums import Priority


MAX_TITLE_LENGTH = 200
COMMON_ESTIMATES = frozenset({0.5, 1, 2, 3, 5, 8, 13, 21})


@dataclass
class ValidationResult:
    """Outcome of validating one record."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    enriched: dict[str, Any] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def apply(
        self, record: ExtractedRecord, keys: tuple[str, ...] | None = None
    ) -> ExtractedRecord:
        """
        Return a copy of record with the enrichment applied.

        Args:
            record: Record to enrich
            keys: Restrict enrichment to these fields; all when None
        """
        changes = {
            key: value for key, value in self.enriched.items() if keys is None or key in keys
        }
        changes["labels"] = list(changes.get("labels", record.labels))
        return replace(record, **changes)


@dataclass
class _TeamCheck:
    error: str | None = None
    warning: str | None = None
    team_id: str | None = None


class RecordValidator:
    """Validates extracted records against a workspace snapshot."""

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today
        self.logger = logging.getLogger("RecordValidator")

    def validate(self, record: ExtractedRecord, snapshot: WorkspaceSnapshot) -> ValidationResult:
        """
        Validate a record.

        Args:
            record: Record to check, never modified
            snapshot: Workspace metadata to check against

        Returns:
            ValidationResult with errors, warnings and enrichment
        """
        result = ValidationResult()

        # Title
        if not record.title or not record.title.strip():
            result.errors.append("Title is required")
        elif len(record.title) > MAX_TITLE_LENGTH:
            result.warnings.append("Title is very long (>200 chars), consider shortening")

        # Team
        team_check = self._check_team(record, snapshot)
        if team_check.error:
            result.errors.append(team_check.error)
        if team_check.warning:
            result.warnings.append(team_check.warning)
        if team_check.team_id and team_check.team_id != record.team_id:
            result.enriched["team_id"] = team_check.team_id

        # Priority
        if record.priority is not None and not Priority.is_valid(record.priority):
            result.errors.append(f"Invalid priority: {record.priority}. Must be 0-4")

        # Estimate
        if record.estimate is not None:
            if record.estimate <= 0:
                result.errors.append(f"Invalid estimate: {record.estimate}. Must be positive")
            elif record.estimate not in COMMON_ESTIMATES:
                result.warnings.append(
                    f"Unusual estimate: {record.estimate}. Common values: 1, 2, 3, 5, 8, 13, 21"
                )

        # Project
        if record.project_id and snapshot.find_project_by_id(record.project_id) is None:
            result.warnings.append(f'Project ID "{record.project_id}" not found in workspace')

        # Labels
        if record.labels:
            found: list[str] = []
            missing: list[str] = []
            for name in record.labels:
                (found if snapshot.find_label(name) else missing).append(name)
            if missing:
                result.warnings.append(f"Labels not found in workspace: {', '.join(missing)}")
            result.enriched["labels"] = found

        # Due date
        if record.due_date:
            due = parse_due_date(record.due_date)
            if due is None:
                result.errors.append(f"Invalid due date format: {record.due_date}")
            elif due < self._today():
                result.warnings.append("Due date is in the past")

        if not result.valid:
            self.logger.debug(f"Validation failed: {'; '.join(result.errors)}")
        return result

    def _check_team(self, record: ExtractedRecord, snapshot: WorkspaceSnapshot) -> _TeamCheck:
        if record.team_id:
            team = snapshot.find_team_by_id(record.team_id)
            if team is None:
                return _TeamCheck(error=f'Team ID "{record.team_id}" not found in workspace')
            return _TeamCheck(team_id=team.id)

        if record.team_key:
            team = snapshot.find_team_by_key(record.team_key)
            if team:
                return _TeamCheck(team_id=team.id)

            team = snapshot.find_team_by_name(record.team_key)
            if team:
                return _TeamCheck(
                    team_id=team.id,
                    warning=f'Matched "{record.team_key}" to team "{team.name}" ({team.key})',
                )

            available = ", ".join(f"{t.key} ({t.name})" for t in snapshot.teams)
            return _TeamCheck(error=f'Team "{record.team_key}" not found. Available: {available}')

        if len(snapshot.teams) == 1:
            team = snapshot.teams[0]
            return _TeamCheck(team_id=team.id, warning=f"Using default team: {team.name}")

        if snapshot.teams:
            return _TeamCheck(warning="No team specified. You may need to select one.")

        return _TeamCheck(error="No teams found in workspace")

    def suggestions(self, result: ValidationResult, snapshot: WorkspaceSnapshot) -> list[str]:
        """Hints for fixing the errors in result."""
        hints: list[str] = []
        for error in result.errors:
            if "Team" in error and "not found" in error:
                keys = ", ".join(team.key for team in snapshot.teams)
                hints.append(f"Use --team flag to specify a team: {keys}")
            if "Title is required" in error:
                hints.append("Provide a clear, action-oriented title for the issue")
            if "Invalid priority" in error:
                hints.append("Priority values: 0=None, 1=Urgent, 2=High, 3=Medium, 4=Low")
        return hints
