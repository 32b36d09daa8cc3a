"""
Tests for the batch orchestrator.

Tests cover:
- parse_batch_input splitting rules
- Per-item isolation of failures
- continue_on_error and delay scheduling
- Overrides, dry run and progress reporting
"""

from unittest.mock import AsyncMock

import pytest

from linear_agent.application.agent import BatchOptions, BatchOrchestrator, parse_batch_input
from linear_agent.application.agent.batch import BatchItemResult, BatchResult
from linear_agent.core.ports.issue_tracker import CreatedIssue


class TestParseBatchInput:
    """Tests for parse_batch_input."""

    def test_one_per_line(self):
        assert parse_batch_input("Fix bug A\r\n\nFix bug B\n  \n") == ["Fix bug A", "Fix bug B"]

    def test_semicolons_on_single_line(self):
        assert parse_batch_input("Fix A; Add B ;") == ["Fix A", "Add B"]

    def test_semicolons_kept_on_multiline(self):
        assert parse_batch_input("Fix A; then B\nAdd C") == ["Fix A; then B", "Add C"]

    def test_empty(self):
        assert parse_batch_input("  \n ") == []


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def make_orchestrator(extractor_factory, tracker, snapshot, agent_config, sleep):
    def factory(*replies):
        return BatchOrchestrator(
            extractor_factory(*replies), tracker, snapshot, agent_config, sleep=sleep
        )

    return factory


@pytest.mark.asyncio
class TestBatchOrchestrator:
    """Tests for process_batch."""

    async def test_all_succeed(self, make_orchestrator, tracker):
        tracker.create_issue.side_effect = [
            CreatedIssue(id="1", identifier="FE-1", url="u1"),
            CreatedIssue(id="2", identifier="FE-2", url="u2"),
        ]
        orchestrator = make_orchestrator(
            {"title": "Add dark mode", "teamKey": "FE"}, {"title": "Fix navbar", "teamKey": "FE"}
        )

        result = await orchestrator.process_batch(["Add dark mode", "Fix navbar"])

        assert (result.total, result.succeeded, result.failed) == (2, 2, 0)
        assert [item.issue_identifier for item in result.items] == ["FE-1", "FE-2"]
        assert [item.line_number for item in result.items] == [1, 2]

    async def test_failure_isolated(self, make_orchestrator, tracker):
        """A bad item fails alone; its neighbours still succeed."""
        orchestrator = make_orchestrator(
            {"title": "A", "teamKey": "FE"}, "not json", {"title": "C", "teamKey": "FE"}
        )

        result = await orchestrator.process_batch(["a", "b", "c"])

        assert (result.total, result.succeeded, result.failed) == (3, 2, 1)
        failed = result.items[1]
        assert not failed.success
        assert failed.line_number == 2
        assert "Failed to parse AI response" in failed.error
        assert tracker.create_issue.await_count == 2

    async def test_stop_on_error(self, make_orchestrator, tracker):
        orchestrator = make_orchestrator({"title": "A", "teamKey": "MKT"}, {"title": "B"})

        result = await orchestrator.process_batch(
            ["a", "b"], BatchOptions(continue_on_error=False)
        )

        assert result.total == 1
        assert result.failed == 1
        assert result.items[0].error.startswith('Team "MKT" not found')
        tracker.create_issue.assert_not_awaited()

    async def test_delay_only_between_items(self, make_orchestrator, sleep):
        orchestrator = make_orchestrator(*({"title": f"T{i}", "teamKey": "FE"} for i in range(3)))

        await orchestrator.process_batch(["a", "b", "c"], BatchOptions(delay=0.25))

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.25)

    async def test_no_delay_after_stop(self, make_orchestrator, sleep):
        orchestrator = make_orchestrator("not json")

        await orchestrator.process_batch(
            ["a", "b"], BatchOptions(delay=1.0, continue_on_error=False)
        )

        sleep.assert_not_awaited()

    async def test_blank_inputs_skipped_but_numbered(self, make_orchestrator):
        orchestrator = make_orchestrator({"title": "B", "teamKey": "FE"})

        result = await orchestrator.process_batch(["", "  b  ", "   "])

        assert result.total == 1
        assert result.items[0].line_number == 2
        assert result.items[0].input == "b"

    async def test_overrides_applied(self, make_orchestrator, tracker):
        orchestrator = make_orchestrator({"title": "Add dark mode", "teamKey": "ENG"})

        await orchestrator.process_batch(
            ["x"], BatchOptions(team_key="fe", priority=1, assignee_id="user-9")
        )

        payload = tracker.create_issue.await_args.args[0]
        assert payload.team_id == "team-fe"
        assert payload.priority == 1
        assert payload.assignee_id == "user-9"

    async def test_missing_labels_dropped(self, make_orchestrator, tracker):
        """Batch items only use labels that already exist."""
        orchestrator = make_orchestrator(
            {"title": "Fix crash", "teamKey": "FE", "labels": ["bug", "seo"]}
        )

        await orchestrator.process_batch(["x"])

        assert tracker.create_issue.await_args.args[0].label_ids == ["label-bug"]
        tracker.create_label.assert_not_awaited()

    async def test_dry_run_never_writes(self, make_orchestrator, tracker):
        orchestrator = make_orchestrator({"title": "Add dark mode", "teamKey": "FE"})

        result = await orchestrator.process_batch(["x"], BatchOptions(dry_run=True))

        assert result.succeeded == 1
        assert result.items[0].issue_identifier is None
        assert result.items[0].extracted.team_id == "team-fe"
        tracker.create_issue.assert_not_awaited()

    async def test_create_returning_none(self, make_orchestrator, tracker):
        tracker.create_issue.return_value = None
        orchestrator = make_orchestrator({"title": "A", "teamKey": "FE"})

        result = await orchestrator.process_batch(["a"])

        assert result.items[0].error == "Failed to create issue"

    async def test_unexpected_exception_captured(self, make_orchestrator, tracker):
        tracker.create_issue.side_effect = RuntimeError("socket closed")
        orchestrator = make_orchestrator({"title": "A", "teamKey": "FE"})

        result = await orchestrator.process_batch(["a"])

        assert result.items[0].error == "socket closed"

    async def test_progress_callback(self, make_orchestrator):
        seen = []
        orchestrator = make_orchestrator({"title": "A", "teamKey": "FE"}, "bad")

        await orchestrator.process_batch(["a", "b"], on_progress=seen.append)

        assert [item.success for item in seen] == [True, False]


class TestBatchResultSerialization:
    def test_to_dict(self):
        item = BatchItemResult(input="a", line_number=1, success=False, error="boom")
        result = BatchResult(total=1, succeeded=0, failed=1, items=(item,))

        data = result.to_dict()

        assert data["failed"] == 1
        assert data["items"][0] == {
            "input": "a",
            "line_number": 1,
            "success": False,
            "issue_identifier": None,
            "issue_url": None,
            "error": "boom",
            "extracted": None,
        }
