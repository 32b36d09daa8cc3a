"""
Tests for the single-issue create and update pipeline.

Tests cover:
- Create flow: overrides, validation, dry run, confirmation, label creation
- Update flow: state changes, descriptions, assignees, labels, comments
- Outcome exit codes
"""

from unittest.mock import MagicMock

import pytest

from linear_agent.adapters.cache import WorkspaceSnapshotCache
from linear_agent.application.agent import (
    AgentPipeline,
    CreateOptions,
    OutcomeStatus,
    PipelineOutcome,
    UpdateOptions,
)
from linear_agent.application.agent.pipeline import find_state
from linear_agent.cli.exit_codes import ExitCode
from linear_agent.core.domain.entities import Label, WorkspaceSnapshot
from linear_agent.core.exceptions import (
    AuthenticationError,
    LLMAuthenticationError,
    ResourceNotFoundError,
    TrackerError,
    TransientError,
)
from linear_agent.core.ports.issue_tracker import IssueDetails


DARK_MODE = {
    "title": "Add dark mode support",
    "teamKey": "FE",
    "priority": 2,
    "labels": ["frontend", "dark mode"],
}


@pytest.fixture
def cache(snapshot):
    mock = MagicMock(spec=WorkspaceSnapshotCache)
    mock.fetch.return_value = snapshot
    return mock


@pytest.fixture
def make_pipeline(extractor_factory, tracker, cache, agent_config):
    def factory(*replies, config=None):
        return AgentPipeline(extractor_factory(*replies), tracker, cache, config or agent_config)

    return factory


@pytest.fixture
def issue():
    return IssueDetails(
        id="issue-9",
        identifier="FE-9",
        title="Navbar overlaps content",
        description="Old text",
        status="Todo",
        team_id="team-fe",
        labels=[Label(id="label-bug", name="bug")],
        url="https://linear.app/acme/issue/FE-9",
    )


@pytest.mark.asyncio
class TestCreate:
    """Tests for AgentPipeline.create."""

    async def test_creates_issue_and_missing_labels(self, make_pipeline, tracker, cache):
        outcome = await make_pipeline(DARK_MODE).create("Add dark mode support to the FE app")

        assert outcome.status is OutcomeStatus.CREATED
        assert outcome.exit_code == ExitCode.SUCCESS
        assert outcome.issue.identifier == "ENG-1"
        assert outcome.labels.created_labels == ["Dark Mode"]
        assert "Labels not found in workspace: dark mode" in outcome.warnings

        payload = tracker.create_issue.await_args.args[0]
        assert payload.team_id == "team-fe"
        assert payload.priority == 2
        assert payload.label_ids == ["label-frontend", "label-dark mode"]
        cache.invalidate.assert_called_once()

    async def test_existing_labels_keep_cache(self, make_pipeline, tracker, cache):
        pipeline = make_pipeline({"title": "Fix crash", "teamKey": "FE", "labels": ["bug"]})

        outcome = await pipeline.create("x")

        assert outcome.status is OutcomeStatus.CREATED
        tracker.create_label.assert_not_awaited()
        cache.invalidate.assert_not_called()

    async def test_overrides(self, make_pipeline, tracker):
        pipeline = make_pipeline({"title": "Add dark mode", "teamKey": "ENG"})

        await pipeline.create(
            "x", CreateOptions(team_key="be", project="Platform", priority=1, assign_to_me=True)
        )

        payload = tracker.create_issue.await_args.args[0]
        assert payload.team_id == "team-be"
        assert payload.project_id == "proj-platform"
        assert payload.priority == 1
        assert payload.assignee_id == "user-1"

    async def test_dry_run_writes_nothing(self, make_pipeline, tracker):
        outcome = await make_pipeline(DARK_MODE).create("x", CreateOptions(dry_run=True))

        assert outcome.status is OutcomeStatus.DRY_RUN
        assert outcome.success
        assert outcome.resolution.team.key == "FE"
        tracker.create_issue.assert_not_awaited()
        tracker.create_label.assert_not_awaited()

    async def test_confirm_sees_resolved_outcome(self, make_pipeline, tracker):
        seen = []

        def confirm(outcome: PipelineOutcome) -> bool:
            seen.append(outcome.resolution.input.title)
            return False

        outcome = await make_pipeline(DARK_MODE).create("x", confirm=confirm)

        assert seen == ["Add dark mode support"]
        assert outcome.status is OutcomeStatus.CANCELLED
        assert outcome.exit_code == ExitCode.SUCCESS
        tracker.create_issue.assert_not_awaited()

    async def test_extraction_failure(self, make_pipeline):
        outcome = await make_pipeline("I am not JSON").create("x")

        assert outcome.status is OutcomeStatus.EXTRACTION_FAILED
        assert outcome.exit_code == ExitCode.EXTRACTION_ERROR
        assert outcome.errors[0].startswith("Failed to parse AI response as JSON")

    async def test_llm_auth_error_propagates(self, make_pipeline):
        with pytest.raises(LLMAuthenticationError):
            await make_pipeline(LLMAuthenticationError()).create("x")

    async def test_validation_failure_with_suggestions(self, make_pipeline, tracker):
        outcome = await make_pipeline({"title": "Launch campaign", "teamKey": "MKT"}).create("x")

        assert outcome.status is OutcomeStatus.VALIDATION_FAILED
        assert outcome.exit_code == ExitCode.VALIDATION_ERROR
        assert outcome.suggestions == ["Use --team flag to specify a team: ENG, FE, BE"]
        tracker.create_issue.assert_not_awaited()

    async def test_unresolvable_team(self, make_pipeline, cache, snapshot):
        """Several teams, no key, no default and no history."""
        cache.fetch.return_value = WorkspaceSnapshot(user=snapshot.user, teams=snapshot.teams)

        outcome = await make_pipeline({"title": "Quarterly planning"}).create("x")

        assert outcome.status is OutcomeStatus.VALIDATION_FAILED
        assert outcome.errors == ["Could not resolve team"]

    async def test_create_returning_none(self, make_pipeline, tracker):
        tracker.create_issue.return_value = None

        outcome = await make_pipeline(DARK_MODE).create("x")

        assert outcome.status is OutcomeStatus.WRITE_FAILED
        assert outcome.exit_code == ExitCode.WRITE_FAILURE
        assert outcome.errors == ["Failed to create issue"]

    async def test_tracker_error_on_write(self, make_pipeline, tracker):
        tracker.create_issue.side_effect = TransientError("Linear returned 502")

        outcome = await make_pipeline(DARK_MODE).create("x")

        assert outcome.status is OutcomeStatus.WRITE_FAILED
        assert outcome.errors == ["Linear returned 502"]

    async def test_auth_error_on_snapshot_propagates(self, make_pipeline, cache):
        cache.fetch.side_effect = AuthenticationError("bad key")

        with pytest.raises(AuthenticationError):
            await make_pipeline(DARK_MODE).create("x")

    async def test_snapshot_failure_degrades_to_empty(self, make_pipeline, cache):
        cache.fetch.side_effect = TrackerError("timeout")
        pipeline = make_pipeline(DARK_MODE)

        snapshot = await pipeline.load_snapshot()

        assert snapshot.teams == ()

    async def test_context_disabled_skips_fetch(self, make_pipeline, cache):
        pipeline = make_pipeline()

        snapshot = await pipeline.load_snapshot(use_context=False)

        assert snapshot.teams == ()
        cache.fetch.assert_not_awaited()


@pytest.mark.asyncio
class TestUpdate:
    """Tests for AgentPipeline.update."""

    @pytest.fixture(autouse=True)
    def serve_issue(self, tracker, issue):
        tracker.get_issue.return_value = issue

    async def test_status_change_and_comment(self, make_pipeline, tracker):
        pipeline = make_pipeline({"statusChange": "In Progress", "comment": "Picked up"})

        outcome = await pipeline.update("FE-9", "started on this")

        assert outcome.status is OutcomeStatus.UPDATED
        assert outcome.issue.identifier == "FE-9"
        tracker.list_workflow_states.assert_awaited_once_with("team-fe")
        issue_id, changes = tracker.update_issue.await_args.args
        assert issue_id == "issue-9"
        assert changes.to_dict() == {"stateId": "state-progress"}
        tracker.add_comment.assert_awaited_once_with("issue-9", "Picked up")

    async def test_partial_state_name(self, make_pipeline, tracker):
        await make_pipeline({"statusChange": "progress"}).update("FE-9", "x")
        assert tracker.update_issue.await_args.args[1].state_id == "state-progress"

    async def test_same_state_is_not_written(self, make_pipeline, tracker):
        outcome = await make_pipeline({"statusChange": "todo"}).update("FE-9", "x")

        assert outcome.status is OutcomeStatus.UPDATED
        tracker.update_issue.assert_not_awaited()

    async def test_unknown_state_warns(self, make_pipeline, tracker):
        outcome = await make_pipeline({"statusChange": "archived"}).update("FE-9", "x")

        assert 'Workflow state "archived" not found' in outcome.warnings
        tracker.update_issue.assert_not_awaited()

    async def test_append_description(self, make_pipeline, tracker):
        await make_pipeline({"appendDescription": "Also on mobile"}).update("FE-9", "x")

        changes = tracker.update_issue.await_args.args[1]
        assert changes.description == "Old text\n\nAlso on mobile"

    @pytest.mark.parametrize(
        ("assignee", "expected"),
        [("none", {"assigneeId": None}), ("me", {"assigneeId": "user-1"})],
    )
    async def test_assignee_changes(self, make_pipeline, tracker, assignee, expected):
        await make_pipeline({"assigneeChange": assignee}).update("FE-9", "x")
        assert tracker.update_issue.await_args.args[1].to_dict() == expected

    async def test_named_assignee_warns(self, make_pipeline, tracker):
        outcome = await make_pipeline({"assigneeChange": "sarah"}).update("FE-9", "x")

        assert outcome.warnings == ['Cannot assign to "sarah", use "me" or "none"']
        tracker.update_issue.assert_not_awaited()

    async def test_labels_merged(self, make_pipeline, tracker):
        """Existing labels are kept and already-present ones are not re-added."""
        await make_pipeline({"addLabels": ["Frontend", "bug"]}).update("FE-9", "x")

        changes = tracker.update_issue.await_args.args[1]
        assert changes.label_ids == ["label-bug", "label-frontend"]

    async def test_labels_removed(self, make_pipeline, tracker):
        await make_pipeline({"removeLabels": ["BUG"]}).update("FE-9", "x")
        assert tracker.update_issue.await_args.args[1].to_dict() == {"labelIds": []}

    async def test_no_changes(self, make_pipeline, tracker):
        outcome = await make_pipeline({"summary": "Nothing to do"}).update("FE-9", "x")

        assert outcome.status is OutcomeStatus.NO_CHANGES
        assert outcome.success
        tracker.update_issue.assert_not_awaited()
        tracker.add_comment.assert_not_awaited()

    async def test_dry_run(self, make_pipeline, tracker):
        outcome = await make_pipeline({"comment": "hi"}).update(
            "FE-9", "x", UpdateOptions(dry_run=True)
        )

        assert outcome.status is OutcomeStatus.DRY_RUN
        assert outcome.update.comment == "hi"
        tracker.add_comment.assert_not_awaited()

    async def test_issue_not_found(self, make_pipeline, tracker):
        tracker.get_issue.side_effect = ResourceNotFoundError("Issue FE-404 not found")

        outcome = await make_pipeline().update("FE-404", "x")

        assert outcome.status is OutcomeStatus.VALIDATION_FAILED
        assert outcome.exit_code == ExitCode.VALIDATION_ERROR
        assert outcome.errors == ["Issue FE-404 not found"]

    async def test_update_returning_none(self, make_pipeline, tracker):
        tracker.update_issue.return_value = None

        outcome = await make_pipeline({"priorityChange": 1}).update("FE-9", "x")

        assert outcome.status is OutcomeStatus.WRITE_FAILED
        assert outcome.errors == ["Failed to update FE-9"]

    async def test_comment_failure(self, make_pipeline, tracker):
        tracker.add_comment.return_value = False

        outcome = await make_pipeline({"comment": "hi"}).update("FE-9", "x")

        assert outcome.status is OutcomeStatus.WRITE_FAILED
        assert outcome.errors == ["Failed to comment on FE-9"]


class TestFindState:
    def test_exact_before_partial(self, snapshot):
        states = list(snapshot.states)
        assert find_state(states, "DONE").id == "state-done"
        assert find_state(states, "prog").id == "state-progress"
        assert find_state(states, "review") is None


class TestExitCodes:
    @pytest.mark.parametrize(
        ("status", "code"),
        [
            (OutcomeStatus.CREATED, 0),
            (OutcomeStatus.UPDATED, 0),
            (OutcomeStatus.DRY_RUN, 0),
            (OutcomeStatus.NO_CHANGES, 0),
            (OutcomeStatus.CANCELLED, 0),
            (OutcomeStatus.VALIDATION_FAILED, 3),
            (OutcomeStatus.EXTRACTION_FAILED, 4),
            (OutcomeStatus.WRITE_FAILED, 5),
        ],
    )
    def test_mapping(self, status, code):
        assert PipelineOutcome(status=status).exit_code == code
