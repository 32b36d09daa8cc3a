"""
Domain enums - Issue type and priority.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class IssueType(Enum):
    """Classification of an issue derived from its text."""

    BUG = "bug"
    FEATURE = "feature"
    IMPROVEMENT = "improvement"
    TASK = "task"

    @classmethod
    def from_string(cls, value: str) -> IssueType | None:
        """Parse an issue type, returning None for unknown values."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.capitalize()


class Priority(IntEnum):
    """Tracker priority scale: 0 means no priority, 1 is the most urgent."""

    NONE = 0
    URGENT = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4

    @classmethod
    def is_valid(cls, value: object) -> bool:
        """Check that value is an integer in [0, 4] (bools excluded)."""
        return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 4

    @classmethod
    def label_for(cls, value: int) -> str:
        """Display label for a raw priority, 'None' when out of range."""
        if cls.is_valid(value):
            return cls(value).display_name
        return "None"

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.name.capitalize()
