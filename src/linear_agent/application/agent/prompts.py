"""
Prompts - System prompts and prompt builders for record extraction.

The workspace slice embedded in a prompt is bounded so prompt size does not
grow with the workspace.
"""

from __future__ import annotations

import re

from linear_agent.core.domain.entities import IssueContext, WorkspaceSnapshot
from linear_agent.core.domain.enums import Priority


MAX_PROMPT_PROJECTS = 10
MAX_PROMPT_LABELS = 30
MAX_PROMPT_RECENT_ISSUES = 5
MAX_PROMPT_STATES = 20


SYSTEM_PROMPT = """You extract structured Linear issue data from natural language input.

Extract these fields from the user's input:
- title: Concise, action-oriented issue title (required)
- description: Additional detail or context, if any
- teamKey: Team identifier if mentioned (e.g., ENG, FE, BE, OPS)
- projectName: Project name if mentioned
- priority: 0=No priority, 1=Urgent, 2=High, 3=Medium, 4=Low
- estimate: Story points (1, 2, 3, 5, 8, 13, 21) if mentioned
- labels: Relevant labels drawn from technical terms in the input
- issueType: bug, feature, improvement, or task
- dueDate: ISO date string if a deadline is mentioned

Guidelines:
1. Extract only what is stated or clearly implied; use null for anything else
2. Infer the issue type from wording:
   - bug: fix, broke, broken, error, crash, failing, doesn't work
   - feature: add, new, implement, create, build, support
   - improvement: refactor, improve, enhance, optimize, upgrade
   - task: change, configure, set up, migrate
3. Infer priority from urgency:
   - Urgent (1): urgent, ASAP, critical, emergency, production down, P0
   - High (2): high priority, important, soon, P1
   - Medium (3): medium, normal, P2
   - Low (4): low priority, when possible, nice to have, P3, P4
4. Keep titles under 80 characters
5. Prefer teams, projects and labels listed in the workspace context over new ones
6. Map team mentions to common patterns:
   - backend, BE, server, api -> backend team
   - frontend, FE, UI, client -> frontend team
   - devops, ops, infra, infrastructure -> ops team

Return ONLY valid JSON with this schema and no other text or markdown:
{
  "title": "string (required)",
  "description": "string or null",
  "teamKey": "string or null",
  "projectName": "string or null",
  "priority": "number 0-4 or null",
  "estimate": "number or null",
  "labels": "array of strings or null",
  "issueType": "bug|feature|improvement|task or null",
  "dueDate": "ISO date string or null"
}"""


UPDATE_SYSTEM_PROMPT = """You extract changes to an existing Linear issue from natural language.

Extract these fields from the user's input:
- comment: Text to post as a comment (progress notes, findings, questions)
- statusChange: Target workflow state name if the status should change
- priorityChange: New priority, 0=No priority, 1=Urgent, 2=High, 3=Medium, 4=Low
- addLabels: Labels to add
- removeLabels: Labels to remove
- titleUpdate: New title, only if a rename is explicitly requested
- appendDescription: Text to append to the description
- assigneeChange: "me", "none", or a user name if the assignee should change
- summary: One-line summary of the update

Guidelines:
1. Extract only what is stated or clearly implied; use null for anything else
2. Use workflow state names from the workspace context for statusChange
3. Phrases like "done", "finished", "shipped" mean the issue is complete
4. Phrases like "started", "working on", "picked up" mean it is in progress

Return ONLY valid JSON with this schema and no other text or markdown:
{
  "comment": "string or null",
  "statusChange": "string or null",
  "priorityChange": "number 0-4 or null",
  "addLabels": "array of strings or null",
  "removeLabels": "array of strings or null",
  "titleUpdate": "string or null",
  "appendDescription": "string or null",
  "assigneeChange": "string or null",
  "summary": "string or null"
}"""


_ROLE_MARKER = re.compile(r"\b(?:system|assistant|user|human):", re.IGNORECASE)
_SPECIAL_TOKEN = re.compile(r"<\|.*?\|>")
_MARKUP_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")


def sanitize_input(text: str) -> str:
    """
    Strip prompt-injection vectors from user text.

    Removes role markers (``system:``, ``assistant:``, ``user:``, ``human:``),
    ``<|...|>`` tokens and markup tags, then collapses whitespace.
    """
    cleaned = _ROLE_MARKER.sub("", text)
    cleaned = _SPECIAL_TOKEN.sub("", cleaned)
    cleaned = _MARKUP_TAG.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def build_context_prompt(snapshot: WorkspaceSnapshot) -> str:
    """Render a bounded slice of the workspace for the model."""
    lines: list[str] = []

    if snapshot.teams:
        lines.append("Available teams in this workspace:")
        lines.extend(f"- {team.key}: {team.name}" for team in snapshot.teams)
        lines.append("")

    if snapshot.projects:
        lines.append("Active projects:")
        lines.extend(f"- {project.name}" for project in snapshot.projects[:MAX_PROMPT_PROJECTS])
        lines.append("")

    if snapshot.labels:
        lines.append("Common labels (use these when applicable):")
        lines.append(", ".join(label.name for label in snapshot.labels[:MAX_PROMPT_LABELS]))
        lines.append("")

    if snapshot.recent_issues:
        lines.append("Recent issue patterns in this workspace:")
        for issue in snapshot.recent_issues[:MAX_PROMPT_RECENT_ISSUES]:
            priority = Priority.label_for(issue.priority)
            lines.append(f'- "{issue.title}" (Team: {issue.team_key}, Priority: {priority})')
        lines.append("")

    return "\n".join(lines)


def build_user_prompt(text: str, snapshot: WorkspaceSnapshot | None = None) -> str:
    """Build the user message for issue extraction."""
    lines: list[str] = []

    if snapshot is not None:
        context = build_context_prompt(snapshot)
        if context.strip():
            lines.append("Workspace context:")
            lines.append(context)

    lines.append("User input to parse:")
    lines.append(f'"{text}"')
    return "\n".join(lines)


def build_update_prompt(
    text: str,
    issue: IssueContext,
    snapshot: WorkspaceSnapshot | None = None,
) -> str:
    """Build the user message for update extraction."""
    lines = [
        "Issue being updated:",
        f"- Identifier: {issue.identifier}",
        f"- Title: {issue.title}",
        f"- Current status: {issue.current_status}",
        "",
    ]

    if snapshot is not None:
        if snapshot.states:
            lines.append("Available workflow states:")
            lines.append(
                ", ".join(state.name for state in snapshot.states[:MAX_PROMPT_STATES])
            )
            lines.append("")
        if snapshot.labels:
            lines.append("Available labels:")
            lines.append(
                ", ".join(label.name for label in snapshot.labels[:MAX_PROMPT_LABELS])
            )
            lines.append("")

    lines.append("User input to parse:")
    lines.append(f'"{text}"')
    return "\n".join(lines)
