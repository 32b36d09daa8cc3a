"""
Domain Entities - Workspace metadata and extracted records.

The workspace snapshot types are frozen: a snapshot is fetched as a whole and
replaced as a whole, never edited in place. Extracted records are mutable
working copies that flow through the resolver and validator.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any

from .enums import IssueType


# =============================================================================
# Workspace Snapshot
# =============================================================================


@dataclass(frozen=True)
class Team:
    """A team in the workspace."""

    id: str
    key: str
    name: str


@dataclass(frozen=True)
class Project:
    """A project and the teams it belongs to."""

    id: str
    name: str
    team_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Label:
    """An issue label."""

    id: str
    name: str


@dataclass(frozen=True)
class WorkflowState:
    """A workflow state (issue status)."""

    id: str
    name: str
    type: str = ""


@dataclass(frozen=True)
class RecentIssue:
    """A recently created issue, used for team inference."""

    id: str
    title: str
    team_key: str
    priority: int = 0


@dataclass(frozen=True)
class WorkspaceUser:
    """The authenticated user."""

    id: str
    email: str = ""
    name: str = ""


@dataclass(frozen=True)
class WorkspaceSnapshot:
    """
    Read-only view of workspace metadata at one point in time.

    Built by the snapshot cache and shared by reference with every stage of a
    single extraction, resolution and validation pass.
    """

    user: WorkspaceUser
    teams: tuple[Team, ...] = ()
    projects: tuple[Project, ...] = ()
    labels: tuple[Label, ...] = ()
    states: tuple[WorkflowState, ...] = ()
    recent_issues: tuple[RecentIssue, ...] = ()

    @classmethod
    def empty(cls, user: WorkspaceUser | None = None) -> WorkspaceSnapshot:
        """Snapshot with no metadata, used when context fetching is disabled."""
        return cls(user=user or WorkspaceUser(id=""))

    def find_team_by_key(self, key: str) -> Team | None:
        """Find a team by key (case-insensitive)."""
        upper_key = key.upper()
        for team in self.teams:
            if team.key.upper() == upper_key:
                return team
        return None

    def find_team_by_id(self, team_id: str) -> Team | None:
        """Find a team by ID."""
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def find_team_by_name(self, name: str) -> Team | None:
        """Find a team whose name contains name (case-insensitive)."""
        lower_name = name.lower()
        for team in self.teams:
            if lower_name in team.name.lower():
                return team
        return None

    def find_label(self, name: str) -> Label | None:
        """Find a label by exact name (case-insensitive)."""
        lower_name = name.lower()
        for label in self.labels:
            if label.name.lower() == lower_name:
                return label
        return None

    def find_project_by_id(self, project_id: str) -> Project | None:
        """Find a project by ID."""
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    def find_project_by_name(self, name: str) -> Project | None:
        """Find a project whose name contains name (case-insensitive)."""
        lower_name = name.lower()
        for project in self.projects:
            if lower_name in project.name.lower():
                return project
        return None

    def find_state(self, name: str) -> WorkflowState | None:
        """Find a workflow state by name, falling back to a partial match."""
        lower_name = name.lower()
        for state in self.states:
            if state.name.lower() == lower_name:
                return state
        for state in self.states:
            if lower_name in state.name.lower():
                return state
        return None


# =============================================================================
# Extracted Records
# =============================================================================


@dataclass
class ExtractedRecord:
    """
    Structured issue data derived from free-form text.

    Only ``title`` is required. ``dropped_fields`` lists model fields that were
    present but failed their own type or range check.
    """

    title: str
    description: str | None = None
    team_key: str | None = None
    team_id: str | None = None
    project_id: str | None = None
    project_name: str | None = None
    priority: int | None = None
    estimate: float | None = None
    labels: list[str] = field(default_factory=list)
    issue_type: IssueType | None = None
    due_date: str | None = None
    assignee_id: str | None = None
    dropped_fields: list[str] = field(default_factory=list, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display and JSON output."""
        data = asdict(self)
        data["issue_type"] = self.issue_type.value if self.issue_type else None
        data.pop("dropped_fields")
        return {key: value for key, value in data.items() if value not in (None, [])}


@dataclass
class ExtractedUpdateRecord:
    """Changes to an existing issue derived from free-form text."""

    comment: str | None = None
    status_change: str | None = None
    priority_change: int | None = None
    add_labels: list[str] = field(default_factory=list)
    remove_labels: list[str] = field(default_factory=list)
    title_update: str | None = None
    append_description: str | None = None
    assignee_change: str | None = None
    summary: str | None = None
    dropped_fields: list[str] = field(default_factory=list, compare=False)

    @property
    def has_changes(self) -> bool:
        """Check whether the update would modify anything."""
        return any(
            (
                self.comment,
                self.status_change,
                self.priority_change is not None,
                self.add_labels,
                self.remove_labels,
                self.title_update,
                self.append_description,
                self.assignee_change,
            )
        )


@dataclass(frozen=True)
class IssueContext:
    """The issue an update is aimed at, as shown to the model."""

    identifier: str
    title: str
    current_status: str


# =============================================================================
# Helpers
# =============================================================================

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_due_date(value: str) -> date | None:
    """
    Parse an ISO date or datetime string into a date.

    Returns None when the value is not a valid ISO-8601 date.
    """
    text = value.strip()
    if not text:
        return None
    try:
        if _DATE_ONLY.match(text):
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None
