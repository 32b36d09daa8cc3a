"""
Ports - Abstract interfaces for external dependencies.

Ports define the contracts that adapters must implement.
This enables dependency inversion and easy testing.
"""

from .config_provider import (
    AgentConfig,
    AppConfig,
    ConfigProviderPort,
    LinearConfig,
    LLMConfig,
)
from .issue_tracker import (
    CreatedIssue,
    IssueCreatePayload,
    IssueDetails,
    IssueTrackerPort,
    IssueUpdatePayload,
)
from .llm import CompletionOptions, LLMPort


__all__ = [
    # Configuration
    "AgentConfig",
    "AppConfig",
    "ConfigProviderPort",
    "LLMConfig",
    "LinearConfig",
    # Issue tracker
    "CreatedIssue",
    "IssueCreatePayload",
    "IssueDetails",
    "IssueTrackerPort",
    "IssueUpdatePayload",
    # LLM
    "CompletionOptions",
    "LLMPort",
]
