"""
Issue Tracker Port - Abstract interface for the issue tracker.

Implementations:
- LinearAdapter: Linear (GraphQL over aiohttp)

All operations are coroutines; the application layer runs on a single
asyncio event loop.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from linear_agent.core.domain.entities import (
    Label,
    Project,
    RecentIssue,
    Team,
    WorkflowState,
    WorkspaceUser,
)
from linear_agent.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    RateLimitError,
    ResourceNotFoundError,
    TrackerError,
    TransientError,
)


__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "CreatedIssue",
    "IssueCreatePayload",
    "IssueDetails",
    "IssueTrackerPort",
    "IssueUpdatePayload",
    "RateLimitError",
    "ResourceNotFoundError",
    "TrackerError",
    "TransientError",
]


@dataclass
class IssueCreatePayload:
    """
    Tracker-ready input for creating an issue.

    Only ``team_id`` and ``title`` are required by the tracker.
    """

    team_id: str
    title: str
    description: str | None = None
    priority: int | None = None
    estimate: float | None = None
    label_ids: list[str] = field(default_factory=list)
    project_id: str | None = None
    assignee_id: str | None = None
    due_date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the tracker's camelCase input object, omitting unset fields."""
        data: dict[str, Any] = {"teamId": self.team_id, "title": self.title}
        if self.description:
            data["description"] = self.description
        if self.priority is not None:
            data["priority"] = self.priority
        if self.estimate is not None:
            data["estimate"] = self.estimate
        if self.label_ids:
            data["labelIds"] = list(self.label_ids)
        if self.project_id:
            data["projectId"] = self.project_id
        if self.assignee_id:
            data["assigneeId"] = self.assignee_id
        if self.due_date:
            data["dueDate"] = self.due_date
        return data


@dataclass
class IssueUpdatePayload:
    """Changes to apply to an existing issue. Unset fields are left untouched."""

    title: str | None = None
    description: str | None = None
    priority: int | None = None
    state_id: str | None = None
    assignee_id: str | None = None
    label_ids: list[str] | None = None
    unassign: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the tracker's camelCase input object."""
        data: dict[str, Any] = {}
        if self.title is not None:
            data["title"] = self.title
        if self.description is not None:
            data["description"] = self.description
        if self.priority is not None:
            data["priority"] = self.priority
        if self.state_id is not None:
            data["stateId"] = self.state_id
        if self.unassign:
            data["assigneeId"] = None
        elif self.assignee_id is not None:
            data["assigneeId"] = self.assignee_id
        if self.label_ids is not None:
            data["labelIds"] = list(self.label_ids)
        return data


@dataclass
class CreatedIssue:
    """Result of a successful create or update."""

    id: str
    identifier: str
    url: str = ""
    title: str = ""


@dataclass
class IssueDetails:
    """An existing issue as needed to build an update."""

    id: str
    identifier: str
    title: str
    description: str = ""
    status: str = ""
    priority: int = 0
    team_id: str = ""
    labels: list[Label] = field(default_factory=list)
    url: str = ""


class IssueTrackerPort(ABC):
    """
    Abstract interface for the issue tracker.

    Read operations feed the workspace snapshot; write operations are only
    reached with validated records.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tracker name (e.g., 'Linear')."""
        ...

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_teams(self) -> list[Team]:
        """List all teams the user can see."""
        ...

    @abstractmethod
    async def list_projects(self) -> list[Project]:
        """List projects with their team associations."""
        ...

    @abstractmethod
    async def list_labels(self) -> list[Label]:
        """List issue labels."""
        ...

    @abstractmethod
    async def list_workflow_states(self, team_id: str) -> list[WorkflowState]:
        """List workflow states for a team."""
        ...

    @abstractmethod
    async def list_recent_issues(self, limit: int) -> list[RecentIssue]:
        """List the most recently created issues, newest first."""
        ...

    @abstractmethod
    async def get_current_user(self) -> WorkspaceUser:
        """Get the authenticated user."""
        ...

    @abstractmethod
    async def get_issue(self, identifier: str) -> IssueDetails:
        """
        Fetch a single issue by identifier.

        Args:
            identifier: Issue identifier (e.g., 'ENG-123') or ID

        Raises:
            ResourceNotFoundError: If the issue doesn't exist
        """
        ...

    @abstractmethod
    async def find_label_by_name(self, name: str) -> Label | None:
        """Look up a label by exact name (case-insensitive)."""
        ...

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_issue(self, payload: IssueCreatePayload) -> CreatedIssue | None:
        """
        Create an issue.

        Returns:
            The created issue, or None if the tracker reported failure
        """
        ...

    @abstractmethod
    async def update_issue(self, issue_id: str, changes: IssueUpdatePayload) -> CreatedIssue | None:
        """Apply changes to an existing issue."""
        ...

    @abstractmethod
    async def add_comment(self, issue_id: str, body: str) -> bool:
        """Add a comment to an issue."""
        ...

    @abstractmethod
    async def create_label(self, name: str, team_id: str | None, color: str) -> Label | None:
        """
        Create a label.

        Args:
            name: Label name
            team_id: Team to scope the label to, or None for a workspace label
            color: Hex colour (e.g., '#ef4444')

        Returns:
            The created label, or None if the tracker reported failure
        """
        ...
