"""
Configuration Provider Port - Abstract interface for configuration.

Implementations:
- FileConfigProvider: Load from YAML/TOML/JSON config files
- EnvironmentConfigProvider: Layer env vars and .env over a config file
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


DEFAULT_MODEL = "claude-haiku-4-5-20251001"


@dataclass
class LinearConfig:
    """Configuration for the Linear tracker."""

    api_key: str = ""
    api_url: str = "https://api.linear.app/graphql"
    timeout: float = 30.0

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return bool(self.api_key)


@dataclass
class LLMConfig:
    """Configuration for the completion model."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = 1024
    temperature: float = 0.3
    timeout: float = 10.0

    # Retry policy for completion calls
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 0.2

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return bool(self.api_key)


@dataclass
class AgentConfig:
    """Defaults applied to extracted records."""

    default_team: str | None = None
    default_project: str | None = None
    default_priority: int = 0
    enable_context: bool = True
    confirm: bool = True

    # Snapshot cache
    cache_ttl: float = 300.0

    # Batch mode
    batch_delay: float = 0.5

    # Template storage (None = ~/.config/linear-agent/templates.yaml)
    templates_path: str | None = None


@dataclass
class AppConfig:
    """Complete application configuration."""

    linear: LinearConfig = field(default_factory=LinearConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.linear.api_key:
            errors.append("Missing Linear API key (linear.api_key or LINEAR_API_KEY)")
        if not self.llm.api_key:
            errors.append("Missing Anthropic API key (llm.api_key or ANTHROPIC_API_KEY)")
        if not 0 <= self.agent.default_priority <= 4:
            errors.append(
                f"Invalid default priority {self.agent.default_priority} "
                "(agent.default_priority or LINEAR_AGENT_DEFAULT_PRIORITY must be 0-4)"
            )

        return errors


class ConfigProviderPort(ABC):
    """
    Abstract interface for configuration providers.

    Configuration can come from:
    - YAML/TOML/JSON config files
    - .env files
    - Environment variables
    - Command line arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """Load configuration from source."""
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration value.

        Args:
            key: Configuration key (dot notation supported)
            default: Default value if not found
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set a configuration value (dot notation supported)."""
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """Validate loaded configuration."""
        ...
