"""
Labels - Resolve label names to IDs, creating missing labels on demand.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from linear_agent.core.domain.entities import Label
from linear_agent.core.exceptions import TrackerError
from linear_agent.core.ports.issue_tracker import IssueTrackerPort


logger = logging.getLogger("Labels")


LABEL_COLOR_PALETTE: tuple[str, ...] = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEAA7",
    "#DDA0DD",
    "#98D8C8",
    "#F7DC6F",
    "#BB8FCE",
    "#85C1E9",
    "#F8B500",
    "#00CEC9",
    "#E17055",
    "#74B9FF",
    "#A29BFE",
    "#FD79A8",
    "#00B894",
    "#FDCB6E",
    "#6C5CE7",
    "#81ECEC",
)

# Keyword -> colour, matched as a substring of the lowercased label name.
# Order matters: the first matching keyword wins.
SEMANTIC_COLORS: dict[str, str] = {
    # Bugs and errors
    "bug": "#E74C3C",
    "error": "#E74C3C",
    "fix": "#E74C3C",
    "critical": "#C0392B",
    "urgent": "#C0392B",
    "hotfix": "#E74C3C",
    # Features
    "feature": "#27AE60",
    "enhancement": "#2ECC71",
    "improvement": "#58D68D",
    "new": "#27AE60",
    # UI and frontend
    "ui": "#3498DB",
    "frontend": "#5DADE2",
    "design": "#9B59B6",
    "ux": "#8E44AD",
    "css": "#9B59B6",
    "styling": "#9B59B6",
    # Backend
    "backend": "#1ABC9C",
    "api": "#16A085",
    "server": "#17A589",
    "database": "#148F77",
    "db": "#148F77",
    # DevOps
    "devops": "#E67E22",
    "infra": "#D35400",
    "infrastructure": "#D35400",
    "deploy": "#E67E22",
    "ci": "#F39C12",
    "cd": "#F39C12",
    # Testing
    "test": "#F1C40F",
    "testing": "#F1C40F",
    "qa": "#F4D03F",
    # Docs
    "docs": "#7F8C8D",
    "documentation": "#7F8C8D",
    "readme": "#95A5A6",
    # Security
    "security": "#E74C3C",
    "auth": "#E74C3C",
    "authentication": "#E74C3C",
    # Performance
    "performance": "#F39C12",
    "optimization": "#F39C12",
    "perf": "#F39C12",
    # Priority
    "high": "#E74C3C",
    "medium": "#F39C12",
    "low": "#3498DB",
    "p0": "#C0392B",
    "p1": "#E74C3C",
    "p2": "#F39C12",
    "p3": "#3498DB",
    # AI/ML
    "ai": "#9B59B6",
    "ml": "#9B59B6",
    "machine-learning": "#9B59B6",
}


class LabelColorPicker:
    """Semantic colour lookup with palette rotation as the fallback."""

    def __init__(self, palette: tuple[str, ...] = LABEL_COLOR_PALETTE):
        self.palette = palette
        self._index = 0

    def pick(self, label_name: str) -> str:
        lower_name = label_name.lower()
        for keyword, color in SEMANTIC_COLORS.items():
            if keyword in lower_name:
                return color

        color = self.palette[self._index % len(self.palette)]
        self._index += 1
        return color


def to_title_case(name: str) -> str:
    """'api integration' -> 'Api Integration'."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split())


def parse_labels(value: str) -> list[str]:
    """Split a comma-separated label string."""
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class LabelResolution:
    """Label IDs plus which names existed and which were created."""

    label_ids: list[str] = field(default_factory=list)
    existing_labels: list[str] = field(default_factory=list)
    created_labels: list[str] = field(default_factory=list)


async def resolve_or_create_labels(
    tracker: IssueTrackerPort,
    names: Iterable[str],
    existing: Iterable[Label],
    team_id: str | None,
    color_picker: LabelColorPicker | None = None,
) -> LabelResolution:
    """
    Resolve label names to IDs, creating any that don't exist.

    Args:
        tracker: Issue tracker used to create or look up labels
        names: Label names to resolve
        existing: Labels already known from the workspace snapshot
        team_id: Team to create new labels in
        color_picker: Colour source for created labels

    Returns:
        LabelResolution with the IDs in input order
    """
    picker = color_picker or LabelColorPicker()
    known = {label.name.lower(): label for label in existing}
    result = LabelResolution()

    for name in names:
        label = known.get(name.lower())
        if label is not None:
            result.label_ids.append(label.id)
            result.existing_labels.append(label.name)
            continue

        title_name = to_title_case(name)
        try:
            created = await tracker.create_label(title_name, team_id, picker.pick(name))
        except TrackerError as e:
            logger.debug(f"Creating label {title_name!r} failed: {e}")
            created = None

        if created is not None:
            result.label_ids.append(created.id)
            result.created_labels.append(created.name)
            known[created.name.lower()] = created
            continue

        # Creation can fail when another client created the label first
        try:
            found = await tracker.find_label_by_name(title_name)
        except TrackerError as e:
            logger.warning(f'Could not create or find label "{title_name}": {e}')
            continue

        if found is None:
            logger.warning(f'Could not create or find label "{title_name}"')
            continue

        result.label_ids.append(found.id)
        result.existing_labels.append(found.name)
        known[found.name.lower()] = found

    return result
