"""
Tests for LinearAdapter.

The GraphQL client is mocked; these tests check the mapping between the
Linear schema and the domain entities.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from linear_agent.adapters.linear import LinearAdapter
from linear_agent.adapters.linear.adapter import ISSUE_CREATE_MUTATION, LABEL_CREATE_MUTATION
from linear_agent.core.domain.entities import Label
from linear_agent.core.exceptions import ResourceNotFoundError
from linear_agent.core.ports.issue_tracker import IssueCreatePayload, IssueUpdatePayload


@pytest.fixture
def client():
    mock = MagicMock()
    mock.execute = AsyncMock(return_value={})
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def adapter(client):
    return LinearAdapter(client)


@pytest.mark.asyncio
class TestLinearAdapterReads:
    """Tests for read operations."""

    async def test_list_teams(self, adapter, client):
        client.execute.return_value = {
            "teams": {"nodes": [{"id": "t1", "key": "ENG", "name": "Engineering"}]}
        }

        teams = await adapter.list_teams()

        assert [(t.id, t.key, t.name) for t in teams] == [("t1", "ENG", "Engineering")]

    async def test_list_projects_with_teams(self, adapter, client):
        client.execute.return_value = {
            "projects": {
                "nodes": [
                    {
                        "id": "p1",
                        "name": "Roadmap",
                        "teams": {"nodes": [{"id": "t1"}, {"id": "t2"}]},
                    }
                ]
            }
        }

        projects = await adapter.list_projects()

        assert projects[0].team_ids == ("t1", "t2")

    async def test_list_recent_issues_skips_teamless(self, adapter, client):
        """Issues without a team cannot inform team inference and are skipped."""
        client.execute.return_value = {
            "issues": {
                "nodes": [
                    {"id": "i1", "title": "A", "priority": 2, "team": {"key": "FE"}},
                    {"id": "i2", "title": "B", "priority": None, "team": None},
                ]
            }
        }

        issues = await adapter.list_recent_issues(10)

        assert len(issues) == 1
        assert issues[0].team_key == "FE"
        assert client.execute.await_args.args[1] == {"first": 10}

    async def test_get_current_user_falls_back_to_display_name(self, adapter, client):
        client.execute.return_value = {
            "viewer": {"id": "u1", "email": None, "name": None, "displayName": "dev"}
        }

        user = await adapter.get_current_user()

        assert (user.id, user.email, user.name) == ("u1", "", "dev")

    async def test_get_issue(self, adapter, client):
        client.execute.return_value = {
            "issue": {
                "id": "uuid-1",
                "identifier": "ENG-7",
                "title": "Login crash",
                "description": None,
                "priority": 2,
                "url": "https://linear.app/x/ENG-7",
                "state": {"name": "Todo"},
                "team": {"id": "t1"},
                "labels": {"nodes": [{"id": "l1", "name": "bug"}]},
            }
        }

        issue = await adapter.get_issue("ENG-7")

        assert issue.identifier == "ENG-7"
        assert issue.status == "Todo"
        assert issue.team_id == "t1"
        assert issue.description == ""
        assert issue.labels == [Label(id="l1", name="bug")]

    async def test_get_missing_issue(self, adapter, client):
        client.execute.return_value = {"issue": None}

        with pytest.raises(ResourceNotFoundError, match="ENG-404"):
            await adapter.get_issue("ENG-404")

    async def test_find_label_by_name(self, adapter, client):
        client.execute.return_value = {"issueLabels": {"nodes": [{"id": "l1", "name": "Bug"}]}}
        assert await adapter.find_label_by_name("bug") == Label(id="l1", name="Bug")

        client.execute.return_value = {"issueLabels": {"nodes": []}}
        assert await adapter.find_label_by_name("nope") is None


@pytest.mark.asyncio
class TestLinearAdapterWrites:
    """Tests for write operations."""

    async def test_create_issue(self, adapter, client):
        """The payload is sent as camelCase input."""
        client.execute.return_value = {
            "issueCreate": {
                "success": True,
                "issue": {"id": "i1", "identifier": "FE-12", "url": "https://l/FE-12"},
            }
        }
        payload = IssueCreatePayload(team_id="t1", title="Add dark mode", priority=3)

        created = await adapter.create_issue(payload)

        assert created.identifier == "FE-12"
        assert created.url == "https://l/FE-12"
        client.execute.assert_awaited_once_with(
            ISSUE_CREATE_MUTATION,
            {"input": {"teamId": "t1", "title": "Add dark mode", "priority": 3}},
            operation="issueCreate",
        )

    async def test_create_issue_unsuccessful(self, adapter, client):
        """success=false maps to None."""
        client.execute.return_value = {"issueCreate": {"success": False, "issue": None}}
        assert await adapter.create_issue(IssueCreatePayload(team_id="t", title="x")) is None

    async def test_update_issue(self, adapter, client):
        client.execute.return_value = {
            "issueUpdate": {"success": True, "issue": {"id": "i1", "identifier": "ENG-1"}}
        }

        updated = await adapter.update_issue("i1", IssueUpdatePayload(state_id="s-done"))

        assert updated.identifier == "ENG-1"
        assert client.execute.await_args.args[1] == {"id": "i1", "input": {"stateId": "s-done"}}

    async def test_add_comment(self, adapter, client):
        client.execute.return_value = {"commentCreate": {"success": True}}
        assert await adapter.add_comment("i1", "Done")

        client.execute.return_value = {}
        assert not await adapter.add_comment("i1", "Done")

    async def test_create_label_scoped_to_team(self, adapter, client):
        client.execute.return_value = {
            "issueLabelCreate": {"success": True, "issueLabel": {"id": "l9", "name": "Api"}}
        }

        label = await adapter.create_label("Api", "t1", "#16A085")

        assert label == Label(id="l9", name="Api")
        client.execute.assert_awaited_once_with(
            LABEL_CREATE_MUTATION,
            {"input": {"name": "Api", "color": "#16A085", "teamId": "t1"}},
            operation="issueLabelCreate",
        )

    async def test_create_workspace_label(self, adapter, client):
        """Without a team the label is created workspace-wide."""
        client.execute.return_value = {"issueLabelCreate": {"success": False}}

        assert await adapter.create_label("Api", None, "#000000") is None
        assert "teamId" not in client.execute.await_args.args[1]["input"]

    async def test_close_closes_client(self, adapter, client):
        await adapter.close()
        client.close.assert_awaited_once()
