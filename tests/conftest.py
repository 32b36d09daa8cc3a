"""
Shared pytest fixtures for the linear-agent test suite.

Fixture Categories:
- Domain: Workspace snapshots and extracted records
- Configuration: AgentConfig, LLMConfig
- Mocks: Issue tracker, scripted LLM, extraction client
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from linear_agent.application.agent import ExtractionClient
from linear_agent.core.domain.entities import (
    Label,
    Project,
    RecentIssue,
    Team,
    WorkflowState,
    WorkspaceSnapshot,
    WorkspaceUser,
)
from linear_agent.core.ports.config_provider import AgentConfig, LLMConfig
from linear_agent.core.ports.issue_tracker import CreatedIssue, IssueTrackerPort
from linear_agent.core.ports.llm import CompletionOptions, LLMPort


# =============================================================================
# Domain - Workspace Snapshots
# =============================================================================


@pytest.fixture
def user() -> WorkspaceUser:
    return WorkspaceUser(id="user-1", email="dev@example.com", name="Dev")


@pytest.fixture
def teams() -> tuple[Team, ...]:
    return (
        Team(id="team-eng", key="ENG", name="Engineering"),
        Team(id="team-fe", key="FE", name="Frontend"),
        Team(id="team-be", key="BE", name="Backend Services"),
    )


@pytest.fixture
def snapshot(user: WorkspaceUser, teams: tuple[Team, ...]) -> WorkspaceSnapshot:
    """
    Workspace with three teams.

    Contains:
    - Projects: Q1 Roadmap (FE), Platform (ENG, BE)
    - Labels: bug, feature, frontend, performance
    - States: Backlog, Todo, In Progress, Done
    - Recent issues: mostly FE
    """
    return WorkspaceSnapshot(
        user=user,
        teams=teams,
        projects=(
            Project(id="proj-q1", name="Q1 Roadmap", team_ids=("team-fe",)),
            Project(id="proj-platform", name="Platform", team_ids=("team-eng", "team-be")),
        ),
        labels=(
            Label(id="label-bug", name="bug"),
            Label(id="label-feature", name="feature"),
            Label(id="label-frontend", name="frontend"),
            Label(id="label-performance", name="Performance"),
        ),
        states=(
            WorkflowState(id="state-backlog", name="Backlog", type="backlog"),
            WorkflowState(id="state-todo", name="Todo", type="unstarted"),
            WorkflowState(id="state-progress", name="In Progress", type="started"),
            WorkflowState(id="state-done", name="Done", type="completed"),
        ),
        recent_issues=(
            RecentIssue(id="i1", title="Fix navbar overlap", team_key="FE", priority=2),
            RecentIssue(id="i2", title="Add retry to jobs", team_key="BE", priority=3),
            RecentIssue(id="i3", title="Dark theme tokens", team_key="FE", priority=3),
        ),
    )


@pytest.fixture
def single_team_snapshot(user: WorkspaceUser) -> WorkspaceSnapshot:
    """Workspace with exactly one team and no recent issues."""
    return WorkspaceSnapshot(
        user=user,
        teams=(Team(id="team-only", key="OPS", name="Operations"),),
        labels=(Label(id="label-bug", name="bug"),),
    )


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(default_priority=3, batch_delay=0.0)


@pytest.fixture
def llm_config() -> LLMConfig:
    """LLM settings with zero backoff so retries never wait."""
    return LLMConfig(api_key="sk-test", max_retries=2, base_delay=0.0, jitter=0.0)


# =============================================================================
# Mocks
# =============================================================================


class ScriptedLLM(LLMPort):
    """LLMPort that replays canned replies (or raises canned errors) in order."""

    def __init__(self, replies: list[Any]):
        self.replies = list(replies)
        self.calls: list[tuple[str, str, CompletionOptions]] = []

    @property
    def name(self) -> str:
        return "Scripted"

    async def complete(
        self, system_prompt: str, user_prompt: str, options: CompletionOptions
    ) -> str:
        self.calls.append((system_prompt, user_prompt, options))
        if not self.replies:
            raise AssertionError("ScriptedLLM ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture
def scripted_llm() -> Callable[..., ScriptedLLM]:
    """Factory: scripted_llm(reply, ...) where dict replies are sent as JSON."""

    def factory(*replies: Any) -> ScriptedLLM:
        return ScriptedLLM(list(replies))

    return factory


@pytest.fixture
def extractor_factory(llm_config: LLMConfig) -> Callable[..., ExtractionClient]:
    """Factory building an ExtractionClient over a ScriptedLLM."""

    def factory(*replies: Any) -> ExtractionClient:
        return ExtractionClient(ScriptedLLM(list(replies)), llm_config, sleep=AsyncMock())

    return factory


@pytest.fixture
def tracker(snapshot: WorkspaceSnapshot) -> MagicMock:
    """
    Mock issue tracker serving the ``snapshot`` workspace.

    Writes succeed by default and return ENG-1.
    """
    mock = MagicMock(spec=IssueTrackerPort)
    mock.list_teams.return_value = list(snapshot.teams)
    mock.list_projects.return_value = list(snapshot.projects)
    mock.list_labels.return_value = list(snapshot.labels)
    mock.list_workflow_states.return_value = list(snapshot.states)
    mock.list_recent_issues.return_value = list(snapshot.recent_issues)
    mock.get_current_user.return_value = snapshot.user
    mock.find_label_by_name.return_value = None
    mock.create_issue.return_value = CreatedIssue(
        id="issue-1", identifier="ENG-1", url="https://linear.app/acme/issue/ENG-1"
    )
    mock.update_issue.return_value = CreatedIssue(id="issue-1", identifier="ENG-1")
    mock.add_comment.return_value = True
    mock.create_label.side_effect = lambda name, team_id, color: Label(
        id=f"label-{name.lower()}", name=name
    )
    return mock
