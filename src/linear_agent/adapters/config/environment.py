"""
Environment Configuration Provider - Layer env vars and .env over a config file.

Precedence, lowest to highest:
1. Config file (see FileConfigProvider)
2. .env file in the current directory
3. Process environment
4. CLI overrides
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from linear_agent.core.exceptions import ConfigError
from linear_agent.core.ports.config_provider import AppConfig, ConfigProviderPort

from .file_provider import (
    CLI_OVERRIDE_KEYS,
    FileConfigProvider,
    apply_cli_overrides,
    build_app_config,
    get_dotted,
    set_dotted,
)


# Environment variable -> dotted config key
ENV_VARS = {
    "LINEAR_API_KEY": "linear.api_key",
    "LINEAR_API_URL": "linear.api_url",
    "ANTHROPIC_API_KEY": "llm.api_key",
    "LINEAR_AGENT_MODEL": "llm.model",
    "LINEAR_AGENT_DEFAULT_TEAM": "agent.default_team",
    "LINEAR_AGENT_DEFAULT_PROJECT": "agent.default_project",
    "LINEAR_AGENT_DEFAULT_PRIORITY": "agent.default_priority",
    "LINEAR_AGENT_ENABLE_CONTEXT": "agent.enable_context",
}


class EnvironmentConfigProvider(ConfigProviderPort):
    """Configuration provider combining file, .env, environment and CLI values."""

    def __init__(
        self,
        config_file: Path | str | None = None,
        env_file: Path | str | None = None,
        cli_overrides: dict[str, Any] | None = None,
        environ: dict[str, str] | None = None,
    ):
        """
        Initialize the provider.

        Args:
            config_file: Explicit config file; auto-detected when None
            env_file: .env file; ./.env when None
            cli_overrides: Highest-precedence values (flat or dotted keys)
            environ: Environment mapping (defaults to os.environ)
        """
        self.logger = logging.getLogger("EnvironmentConfigProvider")
        self._file_provider = FileConfigProvider(config_path=config_file)
        self._env_file = Path(env_file) if env_file else None
        self._cli_overrides = dict(cli_overrides or {})
        self._environ = environ

    @property
    def name(self) -> str:
        path = self._file_provider.config_file_path
        if path:
            return f"Environment + {path.name}"
        return "Environment"

    @property
    def config_file_path(self) -> Path | None:
        return self._file_provider.config_file_path

    def load(self) -> AppConfig:
        """
        Load the layered configuration.

        Raises:
            ConfigError: If the config file or a value is invalid
        """
        error = self._file_provider.load_error
        if error is not None and self._file_provider.is_explicit:
            raise error
        return build_app_config(self._merged())

    def get(self, key: str, default: Any = None) -> Any:
        return get_dotted(self._merged(), CLI_OVERRIDE_KEYS.get(key, key), default)

    def set(self, key: str, value: Any) -> None:
        self._cli_overrides[key] = value

    def validate(self) -> list[str]:
        error = self._file_provider.load_error
        if error is not None:
            return [str(error)]
        try:
            config = build_app_config(self._merged())
        except ConfigError as e:
            return [str(e)]

        messages = config.validate()
        if messages and self._file_provider.config_file_path is None:
            messages.append(
                "No config file found; create .linear-agent.yaml or set the environment "
                "variables listed above"
            )
        return messages

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _read_env_file(self) -> dict[str, str]:
        path = self._env_file or Path.cwd() / ".env"
        if not path.is_file():
            return {}
        self.logger.debug(f"Reading {path}")
        return {key: value for key, value in dotenv_values(path).items() if value is not None}

    def _environment(self) -> dict[str, str]:
        if self._environ is not None:
            return self._environ
        return dict(os.environ)

    def _merged(self) -> dict[str, Any]:
        data = self._file_provider.file_data

        for source in (self._read_env_file(), self._environment()):
            for env_var, key in ENV_VARS.items():
                value = source.get(env_var)
                if value is not None and value != "":
                    set_dotted(data, key, value)

        apply_cli_overrides(data, self._cli_overrides)
        return data
