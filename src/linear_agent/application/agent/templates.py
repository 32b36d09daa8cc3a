"""
Templates - Named input patterns for quick issue creation.

Templates are stored as YAML. Built-in templates are always available; the
file only holds user-defined templates and overrides.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from linear_agent.core.exceptions import ConfigFileError


DEFAULT_TEMPLATES_PATH = Path.home() / ".config" / "linear-agent" / "templates.yaml"

# Index is the priority value
PRIORITY_KEYWORDS = ("", "urgent", "high priority", "medium priority", "low priority")


@dataclass
class AgentTemplate:
    """A reusable input pattern with placeholders such as ``{title}``."""

    name: str
    pattern: str
    team_key: str | None = None
    priority: int | None = None
    labels: list[str] = field(default_factory=list)
    issue_type: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value not in (None, [])}

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> AgentTemplate:
        return cls(
            name=str(data.get("name") or name).lower(),
            pattern=str(data.get("pattern", "{title}")),
            team_key=data.get("team_key"),
            priority=data.get("priority"),
            labels=list(data.get("labels") or []),
            issue_type=data.get("issue_type"),
            description=data.get("description"),
        )


DEFAULT_TEMPLATES: dict[str, AgentTemplate] = {
    "bug": AgentTemplate(
        name="bug",
        pattern="Fix {title}",
        priority=2,
        issue_type="bug",
        description="Quick bug report template",
    ),
    "feature": AgentTemplate(
        name="feature",
        pattern="Add {title}",
        priority=3,
        issue_type="feature",
        description="New feature template",
    ),
    "task": AgentTemplate(
        name="task",
        pattern="{title}",
        priority=4,
        issue_type="task",
        description="General task template",
    ),
    "urgent": AgentTemplate(
        name="urgent",
        pattern="[URGENT] {title}",
        priority=1,
        issue_type="bug",
        description="Urgent issue template",
    ),
}


@dataclass(frozen=True)
class TemplateApplication:
    """Input text produced by a template, with the template used."""

    input: str
    template: AgentTemplate


def parse_template_definition(definition: str) -> AgentTemplate | None:
    """
    Parse ``name:pattern[:team[:priority]]``.

    Returns None when the definition has no pattern.
    """
    parts = [part.strip() for part in definition.split(":")]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None

    template = AgentTemplate(name=parts[0].lower(), pattern=parts[1])
    if len(parts) > 2 and parts[2]:
        template.team_key = parts[2].upper()
    if len(parts) > 3 and parts[3].isdigit() and 0 <= int(parts[3]) <= 4:
        template.priority = int(parts[3])
    return template


class TemplateManager:
    """Loads, stores and applies agent templates."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path).expanduser() if path else DEFAULT_TEMPLATES_PATH
        self.logger = logging.getLogger("TemplateManager")

    def _load_custom(self) -> dict[str, AgentTemplate]:
        if not self.path.exists():
            return {}

        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            self.logger.warning(f"Ignoring unreadable templates file {self.path}: {e}")
            return {}

        stored = data.get("templates") if isinstance(data, dict) else None
        if not isinstance(stored, dict):
            return {}
        return {
            name.lower(): AgentTemplate.from_dict(name, value)
            for name, value in stored.items()
            if isinstance(value, dict)
        }

    def _write_custom(self, templates: dict[str, AgentTemplate]) -> None:
        custom = {
            name: template.to_dict()
            for name, template in templates.items()
            if DEFAULT_TEMPLATES.get(name) != template
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                yaml.safe_dump({"templates": custom}, sort_keys=True), encoding="utf-8"
            )
        except OSError as e:
            raise ConfigFileError(f"Cannot write templates file: {e}", path=str(self.path)) from e

    def load(self) -> dict[str, AgentTemplate]:
        """All templates, built-ins overridden by stored ones."""
        templates = dict(DEFAULT_TEMPLATES)
        templates.update(self._load_custom())
        return templates

    def list(self) -> list[AgentTemplate]:
        return list(self.load().values())

    def get(self, name: str) -> AgentTemplate | None:
        return self.load().get(name.lower())

    def save(self, template: AgentTemplate) -> None:
        templates = self.load()
        template.name = template.name.lower()
        templates[template.name] = template
        self._write_custom(templates)
        self.logger.info(f"Saved template {template.name}")

    def delete(self, name: str) -> bool:
        """Delete a user-defined template. Built-ins cannot be deleted."""
        lower_name = name.lower()
        if lower_name in DEFAULT_TEMPLATES:
            return False

        templates = self.load()
        if lower_name not in templates:
            return False

        del templates[lower_name]
        self._write_custom(templates)
        return True

    def apply(self, name: str, values: dict[str, str]) -> TemplateApplication | None:
        """
        Fill a template's placeholders and append its team and priority hints.

        Returns None when no template has that name.
        """
        template = self.get(name)
        if template is None:
            return None

        text = template.pattern
        for key, value in values.items():
            placeholder = re.compile(r"\{" + re.escape(key) + r"\}", re.IGNORECASE)
            text = placeholder.sub(lambda _, value=value: value, text)

        if template.team_key:
            text += f", {template.team_key} team"

        if template.priority is not None and 0 <= template.priority < len(PRIORITY_KEYWORDS):
            keyword = PRIORITY_KEYWORDS[template.priority]
            if keyword:
                text += f", {keyword}"

        if template.labels:
            text += f", labels: {', '.join(template.labels)}"

        return TemplateApplication(input=text, template=template)
