"""
Agent Pipeline - Single-issue create and update flows.

Create: snapshot, extract, overrides, defaults, validate, resolve, labels,
write. Update: fetch issue, extract changes, map them onto the tracker's
update input, write, comment.

Authentication failures propagate; every other failure is reported through
the returned outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from linear_agent.adapters.cache import WorkspaceSnapshotCache
from linear_agent.cli.exit_codes import ExitCode
from linear_agent.core.domain.entities import (
    ExtractedRecord,
    ExtractedUpdateRecord,
    IssueContext,
    Label,
    WorkflowState,
    WorkspaceSnapshot,
)
from linear_agent.core.exceptions import (
    AuthenticationError,
    ExtractionError,
    LLMAuthenticationError,
    LLMError,
    ResourceNotFoundError,
    TrackerError,
)
from linear_agent.core.ports.config_provider import AgentConfig
from linear_agent.core.ports.issue_tracker import (
    CreatedIssue,
    IssueDetails,
    IssueTrackerPort,
    IssueUpdatePayload,
)

from .extraction import ExtractionClient
from .labels import LabelColorPicker, LabelResolution, resolve_or_create_labels
from .resolver import RecordResolver, ResolutionResult
from .validator import RecordValidator, ValidationResult


class OutcomeStatus(Enum):
    """How a pipeline run ended."""

    CREATED = "created"
    UPDATED = "updated"
    DRY_RUN = "dry_run"
    NO_CHANGES = "no_changes"
    VALIDATION_FAILED = "validation_failed"
    EXTRACTION_FAILED = "extraction_failed"
    WRITE_FAILED = "write_failed"
    CANCELLED = "cancelled"


_EXIT_CODES = {
    OutcomeStatus.CREATED: ExitCode.SUCCESS,
    OutcomeStatus.UPDATED: ExitCode.SUCCESS,
    OutcomeStatus.DRY_RUN: ExitCode.SUCCESS,
    OutcomeStatus.NO_CHANGES: ExitCode.SUCCESS,
    OutcomeStatus.VALIDATION_FAILED: ExitCode.VALIDATION_ERROR,
    OutcomeStatus.EXTRACTION_FAILED: ExitCode.EXTRACTION_ERROR,
    OutcomeStatus.WRITE_FAILED: ExitCode.WRITE_FAILURE,
    OutcomeStatus.CANCELLED: ExitCode.SUCCESS,
}


@dataclass
class CreateOptions:
    """Per-run overrides for issue creation."""

    team_key: str | None = None
    project: str | None = None
    priority: int | None = None
    assign_to_me: bool = False
    dry_run: bool = False
    use_context: bool | None = None


@dataclass
class UpdateOptions:
    """Per-run options for issue updates."""

    dry_run: bool = False
    use_context: bool | None = None


@dataclass
class PipelineOutcome:
    """Everything a caller needs to report a pipeline run."""

    status: OutcomeStatus
    record: ExtractedRecord | None = None
    update: ExtractedUpdateRecord | None = None
    validation: ValidationResult | None = None
    resolution: ResolutionResult | None = None
    labels: LabelResolution | None = None
    issue: CreatedIssue | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS

    @property
    def exit_code(self) -> ExitCode:
        return _EXIT_CODES[self.status]


def find_state(states: list[WorkflowState], name: str) -> WorkflowState | None:
    """Workflow state by exact name, then by partial name (case-insensitive)."""
    lower_name = name.lower()
    for state in states:
        if state.name.lower() == lower_name:
            return state
    for state in states:
        if lower_name in state.name.lower():
            return state
    return None


class AgentPipeline:
    """Runs the create and update flows against one tracker."""

    def __init__(
        self,
        extractor: ExtractionClient,
        tracker: IssueTrackerPort,
        snapshot_cache: WorkspaceSnapshotCache,
        config: AgentConfig,
        resolver: RecordResolver | None = None,
        validator: RecordValidator | None = None,
    ):
        self.extractor = extractor
        self.tracker = tracker
        self.snapshot_cache = snapshot_cache
        self.config = config
        self.resolver = resolver or RecordResolver()
        self.validator = validator or RecordValidator()
        self.color_picker = LabelColorPicker()
        self.logger = logging.getLogger("AgentPipeline")

    # -------------------------------------------------------------------------
    # Shared steps
    # -------------------------------------------------------------------------

    async def load_snapshot(self, use_context: bool | None = None) -> WorkspaceSnapshot:
        """
        Fetch the workspace snapshot, or an empty one when context is off.

        Tracker failures other than authentication degrade to an empty
        snapshot.
        """
        enabled = self.config.enable_context if use_context is None else use_context
        if not enabled:
            return WorkspaceSnapshot.empty()

        try:
            return await self.snapshot_cache.fetch()
        except AuthenticationError:
            raise
        except TrackerError as e:
            self.logger.warning(f"Continuing without workspace context: {e}")
            return WorkspaceSnapshot.empty()

    async def _current_user_id(self, snapshot: WorkspaceSnapshot) -> str:
        if snapshot.user.id:
            return snapshot.user.id
        user = await self.tracker.get_current_user()
        return user.id

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    async def create(
        self,
        text: str,
        options: CreateOptions | None = None,
        confirm: Callable[[PipelineOutcome], bool] | None = None,
    ) -> PipelineOutcome:
        """
        Create one issue from free-form text.

        Args:
            text: User input
            options: Overrides and dry-run flag
            confirm: Asked with the resolved outcome before anything is written

        Returns:
            PipelineOutcome describing the run
        """
        options = options or CreateOptions()
        snapshot = await self.load_snapshot(options.use_context)

        try:
            record = await self.extractor.extract_issue(text, snapshot)
        except LLMAuthenticationError:
            raise
        except (ExtractionError, LLMError) as e:
            self.logger.error(f"Extraction failed: {e}")
            return PipelineOutcome(status=OutcomeStatus.EXTRACTION_FAILED, errors=[e.message])

        await self._apply_overrides(record, snapshot, options)
        record = self.resolver.resolve_defaults(record, snapshot, self.config)

        validation = self.validator.validate(record, snapshot)
        if not validation.valid:
            return PipelineOutcome(
                status=OutcomeStatus.VALIDATION_FAILED,
                record=record,
                validation=validation,
                errors=list(validation.errors),
                warnings=list(validation.warnings),
                suggestions=self.validator.suggestions(validation, snapshot),
            )

        # Missing labels are auto-created below, so only the team is taken
        record = validation.apply(record, keys=("team_id",))
        resolution = self.resolver.parse(record, snapshot, self.config)
        warnings = list(validation.warnings)

        outcome = PipelineOutcome(
            status=OutcomeStatus.DRY_RUN,
            record=record,
            validation=validation,
            resolution=resolution,
            warnings=warnings,
        )

        if resolution.team is None:
            outcome.status = OutcomeStatus.VALIDATION_FAILED
            outcome.errors.append("Could not resolve team")
            outcome.suggestions.append(
                f"Use --team flag to specify a team: {', '.join(t.key for t in snapshot.teams)}"
            )
            return outcome

        if options.dry_run:
            return outcome

        if confirm is not None and not confirm(outcome):
            outcome.status = OutcomeStatus.CANCELLED
            return outcome

        try:
            if record.labels:
                outcome.labels = await resolve_or_create_labels(
                    self.tracker,
                    record.labels,
                    snapshot.labels,
                    resolution.team.id,
                    self.color_picker,
                )
                resolution.input.label_ids = list(outcome.labels.label_ids)
                if outcome.labels.created_labels:
                    self.snapshot_cache.invalidate()

            created = await self.tracker.create_issue(resolution.input)
        except AuthenticationError:
            raise
        except TrackerError as e:
            self.logger.error(f"Creating issue failed: {e}")
            outcome.status = OutcomeStatus.WRITE_FAILED
            outcome.errors.append(e.message)
            return outcome

        if created is None:
            outcome.status = OutcomeStatus.WRITE_FAILED
            outcome.errors.append("Failed to create issue")
            return outcome

        self.logger.info(f"Created {created.identifier}")
        outcome.status = OutcomeStatus.CREATED
        outcome.issue = created
        return outcome

    async def _apply_overrides(
        self, record: ExtractedRecord, snapshot: WorkspaceSnapshot, options: CreateOptions
    ) -> None:
        if options.team_key:
            record.team_key = options.team_key.upper()
            record.team_id = None
        if options.priority is not None:
            record.priority = options.priority
        if options.project:
            if snapshot.find_project_by_id(options.project):
                record.project_id = options.project
                record.project_name = None
            else:
                record.project_id = None
                record.project_name = options.project
        if options.assign_to_me:
            record.assignee_id = await self._current_user_id(snapshot)

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    async def update(
        self, issue_ref: str, text: str, options: UpdateOptions | None = None
    ) -> PipelineOutcome:
        """
        Apply free-form changes to an existing issue.

        Args:
            issue_ref: Issue identifier (e.g. ENG-123) or id
            text: User input describing the changes
            options: Dry-run flag and context toggle

        Returns:
            PipelineOutcome describing the run
        """
        options = options or UpdateOptions()

        try:
            issue = await self.tracker.get_issue(issue_ref)
        except ResourceNotFoundError as e:
            return PipelineOutcome(status=OutcomeStatus.VALIDATION_FAILED, errors=[e.message])

        snapshot = await self.load_snapshot(options.use_context)
        context = IssueContext(
            identifier=issue.identifier, title=issue.title, current_status=issue.status
        )

        try:
            update = await self.extractor.extract_update(text, context, snapshot)
        except LLMAuthenticationError:
            raise
        except (ExtractionError, LLMError) as e:
            self.logger.error(f"Extraction failed: {e}")
            return PipelineOutcome(status=OutcomeStatus.EXTRACTION_FAILED, errors=[e.message])

        outcome = PipelineOutcome(status=OutcomeStatus.DRY_RUN, update=update)
        if options.dry_run:
            return outcome

        if not update.has_changes:
            outcome.status = OutcomeStatus.NO_CHANGES
            return outcome

        try:
            changes = await self._build_changes(issue, update, snapshot, outcome.warnings)

            if not changes.is_empty:
                result = await self.tracker.update_issue(issue.id, changes)
                if result is None:
                    outcome.status = OutcomeStatus.WRITE_FAILED
                    outcome.errors.append(f"Failed to update {issue.identifier}")
                    return outcome

            if update.comment and not await self.tracker.add_comment(issue.id, update.comment):
                outcome.status = OutcomeStatus.WRITE_FAILED
                outcome.errors.append(f"Failed to comment on {issue.identifier}")
                return outcome
        except AuthenticationError:
            raise
        except TrackerError as e:
            self.logger.error(f"Updating {issue.identifier} failed: {e}")
            outcome.status = OutcomeStatus.WRITE_FAILED
            outcome.errors.append(e.message)
            return outcome

        self.logger.info(f"Updated {issue.identifier}")
        outcome.status = OutcomeStatus.UPDATED
        outcome.issue = CreatedIssue(
            id=issue.id, identifier=issue.identifier, url=issue.url, title=issue.title
        )
        return outcome

    async def _build_changes(
        self,
        issue: IssueDetails,
        update: ExtractedUpdateRecord,
        snapshot: WorkspaceSnapshot,
        warnings: list[str],
    ) -> IssueUpdatePayload:
        changes = IssueUpdatePayload(
            priority=update.priority_change,
            title=update.title_update,
        )

        if update.status_change and issue.team_id:
            states = await self.tracker.list_workflow_states(issue.team_id)
            state = find_state(states, update.status_change)
            if state is None:
                warnings.append(f'Workflow state "{update.status_change}" not found')
            elif state.name != issue.status:
                changes.state_id = state.id

        if update.append_description:
            current = issue.description.rstrip()
            addition = update.append_description
            changes.description = f"{current}\n\n{addition}" if current else addition

        if update.assignee_change == "none":
            changes.unassign = True
        elif update.assignee_change == "me":
            changes.assignee_id = await self._current_user_id(snapshot)
        elif update.assignee_change:
            warnings.append(f'Cannot assign to "{update.assignee_change}", use "me" or "none"')

        if update.add_labels or update.remove_labels:
            changes.label_ids = await self._merge_labels(issue, update, snapshot)

        return changes

    async def _merge_labels(
        self,
        issue: IssueDetails,
        update: ExtractedUpdateRecord,
        snapshot: WorkspaceSnapshot,
    ) -> list[str] | None:
        removed = {name.lower() for name in update.remove_labels}
        kept: list[Label] = [label for label in issue.labels if label.name.lower() not in removed]
        current = {label.name.lower() for label in kept}

        to_add = [name for name in update.add_labels if name.lower() not in current]
        added = await resolve_or_create_labels(
            self.tracker,
            to_add,
            snapshot.labels,
            issue.team_id or None,
            self.color_picker,
        )

        label_ids = [label.id for label in kept]
        label_ids += [label_id for label_id in added.label_ids if label_id not in label_ids]
        if label_ids == [label.id for label in issue.labels]:
            return None
        return label_ids
