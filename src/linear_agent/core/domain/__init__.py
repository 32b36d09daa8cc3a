"""
Domain layer - Workspace metadata and extracted issue records.
"""

from .entities import (
    ExtractedRecord,
    ExtractedUpdateRecord,
    IssueContext,
    Label,
    Project,
    RecentIssue,
    Team,
    WorkflowState,
    WorkspaceSnapshot,
    WorkspaceUser,
    parse_due_date,
)
from .enums import IssueType, Priority


__all__ = [
    "ExtractedRecord",
    "ExtractedUpdateRecord",
    "IssueContext",
    "IssueType",
    "Label",
    "Priority",
    "Project",
    "RecentIssue",
    "Team",
    "WorkflowState",
    "WorkspaceSnapshot",
    "WorkspaceUser",
    "parse_due_date",
]
