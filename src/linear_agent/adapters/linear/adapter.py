"""
Linear Adapter - Implements IssueTrackerPort for Linear.

Translates between the Linear GraphQL schema and the domain entities.
"""

from __future__ import annotations

import logging
from typing import Any

from linear_agent.core.domain.entities import (
    Label,
    Project,
    RecentIssue,
    Team,
    WorkflowState,
    WorkspaceUser,
)
from linear_agent.core.exceptions import ResourceNotFoundError
from linear_agent.core.ports.issue_tracker import (
    CreatedIssue,
    IssueCreatePayload,
    IssueDetails,
    IssueTrackerPort,
    IssueUpdatePayload,
)

from .client import LinearGraphQLClient


# -----------------------------------------------------------------------------
# GraphQL documents
# -----------------------------------------------------------------------------

TEAMS_QUERY = """
query Teams {
  teams { nodes { id key name } }
}
"""

PROJECTS_QUERY = """
query Projects($first: Int!) {
  projects(first: $first) {
    nodes { id name teams { nodes { id } } }
  }
}
"""

LABELS_QUERY = """
query Labels($first: Int!) {
  issueLabels(first: $first) { nodes { id name } }
}
"""

LABEL_BY_NAME_QUERY = """
query LabelByName($name: String!) {
  issueLabels(first: 1, filter: { name: { eqIgnoreCase: $name } }) { nodes { id name } }
}
"""

WORKFLOW_STATES_QUERY = """
query WorkflowStates($teamId: ID!) {
  workflowStates(filter: { team: { id: { eq: $teamId } } }) { nodes { id name type } }
}
"""

RECENT_ISSUES_QUERY = """
query RecentIssues($first: Int!) {
  issues(first: $first, orderBy: createdAt) {
    nodes { id title priority team { key } }
  }
}
"""

VIEWER_QUERY = """
query Viewer {
  viewer { id email name displayName }
}
"""

ISSUE_QUERY = """
query Issue($id: String!) {
  issue(id: $id) {
    id identifier title description priority url
    state { name }
    team { id }
    labels { nodes { id name } }
  }
}
"""

ISSUE_CREATE_MUTATION = """
mutation IssueCreate($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue { id identifier url title }
  }
}
"""

ISSUE_UPDATE_MUTATION = """
mutation IssueUpdate($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) {
    success
    issue { id identifier url title }
  }
}
"""

COMMENT_CREATE_MUTATION = """
mutation CommentCreate($input: CommentCreateInput!) {
  commentCreate(input: $input) { success }
}
"""

LABEL_CREATE_MUTATION = """
mutation IssueLabelCreate($input: IssueLabelCreateInput!) {
  issueLabelCreate(input: $input) {
    success
    issueLabel { id name }
  }
}
"""


class LinearAdapter(IssueTrackerPort):
    """Linear implementation of the IssueTrackerPort."""

    DEFAULT_PAGE_SIZE = 50

    def __init__(self, client: LinearGraphQLClient):
        self._client = client
        self.logger = logging.getLogger("LinearAdapter")

    @property
    def name(self) -> str:
        return "Linear"

    async def close(self) -> None:
        await self._client.close()

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    async def list_teams(self) -> list[Team]:
        data = await self._client.execute(TEAMS_QUERY, operation="teams")
        return [
            Team(id=node["id"], key=node["key"], name=node["name"])
            for node in _nodes(data.get("teams"))
        ]

    async def list_projects(self) -> list[Project]:
        data = await self._client.execute(
            PROJECTS_QUERY, {"first": self.DEFAULT_PAGE_SIZE}, operation="projects"
        )
        return [
            Project(
                id=node["id"],
                name=node["name"],
                team_ids=tuple(team["id"] for team in _nodes(node.get("teams"))),
            )
            for node in _nodes(data.get("projects"))
        ]

    async def list_labels(self) -> list[Label]:
        data = await self._client.execute(
            LABELS_QUERY, {"first": self.DEFAULT_PAGE_SIZE}, operation="labels"
        )
        return [_to_label(node) for node in _nodes(data.get("issueLabels"))]

    async def list_workflow_states(self, team_id: str) -> list[WorkflowState]:
        data = await self._client.execute(
            WORKFLOW_STATES_QUERY, {"teamId": team_id}, operation="workflowStates"
        )
        return [
            WorkflowState(id=node["id"], name=node["name"], type=node.get("type") or "")
            for node in _nodes(data.get("workflowStates"))
        ]

    async def list_recent_issues(self, limit: int) -> list[RecentIssue]:
        data = await self._client.execute(
            RECENT_ISSUES_QUERY, {"first": limit}, operation="issues"
        )
        issues = []
        for node in _nodes(data.get("issues")):
            team = node.get("team")
            if not team:
                continue
            issues.append(
                RecentIssue(
                    id=node["id"],
                    title=node.get("title", ""),
                    team_key=team["key"],
                    priority=node.get("priority") or 0,
                )
            )
        return issues

    async def get_current_user(self) -> WorkspaceUser:
        data = await self._client.execute(VIEWER_QUERY, operation="viewer")
        viewer = data.get("viewer") or {}
        return WorkspaceUser(
            id=viewer.get("id", ""),
            email=viewer.get("email") or "",
            name=viewer.get("name") or viewer.get("displayName") or "",
        )

    async def get_issue(self, identifier: str) -> IssueDetails:
        data = await self._client.execute(ISSUE_QUERY, {"id": identifier}, operation="issue")
        node = data.get("issue")
        if not node:
            raise ResourceNotFoundError(f"Issue {identifier} not found", issue_key=identifier)

        return IssueDetails(
            id=node["id"],
            identifier=node["identifier"],
            title=node.get("title", ""),
            description=node.get("description") or "",
            status=(node.get("state") or {}).get("name", ""),
            priority=node.get("priority") or 0,
            team_id=(node.get("team") or {}).get("id", ""),
            labels=[_to_label(label) for label in _nodes(node.get("labels"))],
            url=node.get("url") or "",
        )

    async def find_label_by_name(self, name: str) -> Label | None:
        data = await self._client.execute(
            LABEL_BY_NAME_QUERY, {"name": name}, operation="issueLabels"
        )
        nodes = _nodes(data.get("issueLabels"))
        return _to_label(nodes[0]) if nodes else None

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    async def create_issue(self, payload: IssueCreatePayload) -> CreatedIssue | None:
        data = await self._client.execute(
            ISSUE_CREATE_MUTATION, {"input": payload.to_dict()}, operation="issueCreate"
        )
        return _to_created(data.get("issueCreate"))

    async def update_issue(
        self, issue_id: str, changes: IssueUpdatePayload
    ) -> CreatedIssue | None:
        data = await self._client.execute(
            ISSUE_UPDATE_MUTATION,
            {"id": issue_id, "input": changes.to_dict()},
            operation="issueUpdate",
        )
        return _to_created(data.get("issueUpdate"))

    async def add_comment(self, issue_id: str, body: str) -> bool:
        data = await self._client.execute(
            COMMENT_CREATE_MUTATION,
            {"input": {"issueId": issue_id, "body": body}},
            operation="commentCreate",
        )
        return bool((data.get("commentCreate") or {}).get("success"))

    async def create_label(self, name: str, team_id: str | None, color: str) -> Label | None:
        label_input: dict[str, Any] = {"name": name, "color": color}
        if team_id:
            label_input["teamId"] = team_id

        data = await self._client.execute(
            LABEL_CREATE_MUTATION, {"input": label_input}, operation="issueLabelCreate"
        )
        result = data.get("issueLabelCreate") or {}
        if not result.get("success") or not result.get("issueLabel"):
            return None
        return _to_label(result["issueLabel"])


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _nodes(connection: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Extract ``nodes`` from a GraphQL connection."""
    if not connection:
        return []
    return list(connection.get("nodes") or [])


def _to_label(node: dict[str, Any]) -> Label:
    return Label(id=node["id"], name=node["name"])


def _to_created(result: dict[str, Any] | None) -> CreatedIssue | None:
    if not result or not result.get("success") or not result.get("issue"):
        return None
    issue = result["issue"]
    return CreatedIssue(
        id=issue["id"],
        identifier=issue.get("identifier", ""),
        url=issue.get("url") or "",
        title=issue.get("title") or "",
    )
