"""
Record Resolver - Map extracted names onto workspace identifiers.

Resolution never fails: anything that cannot be resolved is reported as a
warning and left for the validator to judge.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace

from linear_agent.core.domain.entities import (
    ExtractedRecord,
    Label,
    Project,
    Team,
    WorkspaceSnapshot,
)
from linear_agent.core.domain.enums import IssueType, Priority
from linear_agent.core.ports.config_provider import AgentConfig
from linear_agent.core.ports.issue_tracker import IssueCreatePayload


# Alias groups used when a team key does not match exactly
TEAM_ALIASES: dict[str, tuple[str, ...]] = {
    "backend": ("backend", "be", "server", "api"),
    "frontend": ("frontend", "fe", "client", "ui", "web"),
    "devops": ("devops", "ops", "infra", "infrastructure", "platform"),
    "mobile": ("mobile", "ios", "android", "app"),
    "design": ("design", "ux", "ui"),
    "qa": ("qa", "quality", "test", "testing"),
}

BUG_KEYWORDS = (
    "fix",
    "bug",
    "error",
    "crash",
    "broken",
    "failing",
    "issue",
    "problem",
    "wrong",
    "incorrect",
)
FEATURE_KEYWORDS = ("add", "new", "implement", "create", "build", "support", "enable")
IMPROVEMENT_KEYWORDS = ("improve", "enhance", "refactor", "optimize", "update", "upgrade", "better")


@dataclass
class ResolutionResult:
    """A tracker-ready payload plus what was resolved along the way."""

    input: IssueCreatePayload
    team: Team | None = None
    labels: list[Label] = field(default_factory=list)
    project: Project | None = None
    warnings: list[str] = field(default_factory=list)


def infer_issue_type(title: str, description: str | None = None) -> IssueType:
    """
    Classify text by keyword, checking bug, then feature, then improvement.

    Matching is a case-insensitive substring test; the first category with
    any hit wins and ``task`` is the fallback.
    """
    text = f"{title} {description or ''}".lower()
    for keywords, issue_type in (
        (BUG_KEYWORDS, IssueType.BUG),
        (FEATURE_KEYWORDS, IssueType.FEATURE),
        (IMPROVEMENT_KEYWORDS, IssueType.IMPROVEMENT),
    ):
        if any(keyword in text for keyword in keywords):
            return issue_type
    return IssueType.TASK


class RecordResolver:
    """Applies defaults and resolves team, labels and project for a record."""

    def __init__(self) -> None:
        self.logger = logging.getLogger("RecordResolver")

    # -------------------------------------------------------------------------
    # Defaults
    # -------------------------------------------------------------------------

    def resolve_defaults(
        self,
        record: ExtractedRecord,
        snapshot: WorkspaceSnapshot,
        config: AgentConfig,
    ) -> ExtractedRecord:
        """
        Return a copy of record with configured defaults filled in.

        Only unset fields are touched: priority, team key, project name and
        issue type.
        """
        updates: dict[str, object] = {}

        if record.priority is None:
            updates["priority"] = config.default_priority

        if not record.team_key and not record.team_id and config.default_team:
            updates["team_key"] = config.default_team

        if not record.project_id and not record.project_name and config.default_project:
            updates["project_name"] = config.default_project

        if record.issue_type is None:
            updates["issue_type"] = infer_issue_type(record.title, record.description)

        return replace(record, labels=list(record.labels), **updates)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def parse(
        self,
        record: ExtractedRecord,
        snapshot: WorkspaceSnapshot,
        config: AgentConfig,
    ) -> ResolutionResult:
        """Resolve record against snapshot into a tracker-ready payload."""
        warnings: list[str] = []

        team = self.resolve_team(record, snapshot, config)
        if team is None and record.team_key:
            warnings.append(f'Team "{record.team_key}" not found in workspace')

        labels = self.resolve_labels(record.labels, snapshot)
        found = {label.name.lower() for label in labels}
        unresolved = [name for name in record.labels if name.lower() not in found]
        if unresolved:
            warnings.append(f"Labels not found: {', '.join(unresolved)}")

        project = None
        if record.project_id:
            project = snapshot.find_project_by_id(record.project_id)
            if project is None:
                warnings.append(f'Project ID "{record.project_id}" not found')
        elif record.project_name:
            project = snapshot.find_project_by_name(record.project_name)
            if project is None:
                warnings.append(f'Project "{record.project_name}" not found')

        priority = (
            record.priority if Priority.is_valid(record.priority) else config.default_priority
        )
        estimate = record.estimate if record.estimate is not None and record.estimate > 0 else None

        payload = IssueCreatePayload(
            team_id=team.id if team else "",
            title=record.title,
            description=record.description or None,
            priority=priority,
            estimate=estimate,
            label_ids=[label.id for label in labels],
            project_id=project.id if project else None,
            assignee_id=record.assignee_id or None,
            due_date=record.due_date or None,
        )

        for warning in warnings:
            self.logger.debug(warning)

        return ResolutionResult(
            input=payload, team=team, labels=labels, project=project, warnings=warnings
        )

    def resolve_team(
        self,
        record: ExtractedRecord,
        snapshot: WorkspaceSnapshot,
        config: AgentConfig,
    ) -> Team | None:
        """
        Resolve the team, first match wins.

        1. Exact team key (case-insensitive)
        2. Alias group, then substring of team name
        3. Explicit team id
        4. Configured default team key
        5. Most frequent team among recent issues
        6. The only team, if exactly one exists
        """
        if record.team_key:
            team = snapshot.find_team_by_key(record.team_key)
            if team:
                return team
            team = self.find_team_by_alias(record.team_key, snapshot)
            if team:
                return team

        if record.team_id:
            team = snapshot.find_team_by_id(record.team_id)
            if team:
                return team

        if config.default_team:
            team = snapshot.find_team_by_key(config.default_team)
            if team:
                return team

        team = self.infer_team_from_recent(snapshot)
        if team:
            return team

        if len(snapshot.teams) == 1:
            return snapshot.teams[0]

        return None

    @staticmethod
    def find_team_by_alias(pattern: str, snapshot: WorkspaceSnapshot) -> Team | None:
        """Match a loose team mention via alias groups, then by name substring."""
        lower_pattern = pattern.lower()

        for aliases in TEAM_ALIASES.values():
            if lower_pattern not in aliases:
                continue
            for team in snapshot.teams:
                team_name = team.name.lower()
                if any(alias in team_name for alias in aliases):
                    return team

        return snapshot.find_team_by_name(pattern)

    @staticmethod
    def infer_team_from_recent(snapshot: WorkspaceSnapshot) -> Team | None:
        """
        Most frequent team key among recent issues.

        Ties go to the key seen first in recent-issue order.
        """
        if not snapshot.recent_issues:
            return None

        counts = Counter(issue.team_key for issue in snapshot.recent_issues)
        # most_common keeps insertion order among equal counts
        team_key, _ = counts.most_common(1)[0]

        for team in snapshot.teams:
            if team.key == team_key:
                return team
        return None

    @staticmethod
    def resolve_labels(names: list[str], snapshot: WorkspaceSnapshot) -> list[Label]:
        """Exact, case-insensitive label lookup; unknown names are skipped."""
        resolved: list[Label] = []
        for name in names:
            label = snapshot.find_label(name)
            if label is not None:
                resolved.append(label)
        return resolved
