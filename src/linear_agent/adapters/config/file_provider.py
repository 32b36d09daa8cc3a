"""
File Configuration Provider - Load configuration from YAML, TOML or JSON files.

Search order when no explicit path is given:
1. .linear-agent.yaml / .linear-agent.yml / .linear-agent.toml / .linear-agent.json
   in the current directory
2. pyproject.toml with a [tool.linear-agent] section in the current directory
3. ~/.config/linear-agent/config.yaml

File layout:

    linear:
      api_key: lin_api_...
    llm:
      api_key: sk-ant-...
      model: claude-haiku-4-5-20251001
    agent:
      default_team: ENG
      default_priority: 3
      enable_context: true
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

import yaml

from linear_agent.core.exceptions import ConfigError, ConfigFileError
from linear_agent.core.ports.config_provider import (
    AgentConfig,
    AppConfig,
    ConfigProviderPort,
    LinearConfig,
    LLMConfig,
)


try:
    import tomllib
except ImportError:  # Python < 3.11
    import tomli as tomllib


CONFIG_FILE_NAMES = (
    ".linear-agent.yaml",
    ".linear-agent.yml",
    ".linear-agent.toml",
    ".linear-agent.json",
)

PYPROJECT_SECTION = "linear-agent"

# Flat CLI override names mapped to dotted config keys
CLI_OVERRIDE_KEYS = {
    "linear_api_key": "linear.api_key",
    "anthropic_api_key": "llm.api_key",
    "model": "llm.model",
    "team": "agent.default_team",
    "default_team": "agent.default_team",
    "project": "agent.default_project",
    "default_project": "agent.default_project",
    "priority": "agent.default_priority",
    "default_priority": "agent.default_priority",
    "enable_context": "agent.enable_context",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def default_user_config_path() -> Path:
    """Path of the per-user config file."""
    return Path.home() / ".config" / "linear-agent" / "config.yaml"


def find_config_file(cwd: Path | None = None) -> Path | None:
    """Locate a config file using the documented search order."""
    base = cwd or Path.cwd()

    for name in CONFIG_FILE_NAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate

    pyproject = base / "pyproject.toml"
    if pyproject.is_file():
        try:
            with pyproject.open("rb") as f:
                if PYPROJECT_SECTION in tomllib.load(f).get("tool", {}):
                    return pyproject
        except (OSError, tomllib.TOMLDecodeError):
            pass

    user_config = default_user_config_path()
    if user_config.is_file():
        return user_config

    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Parse a config file into a nested dictionary.

    Raises:
        ConfigFileError: If the file is missing or malformed
    """
    if not path.is_file():
        raise ConfigFileError(f"Config file not found: {path}", path=str(path))

    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        elif suffix == ".toml":
            with path.open("rb") as f:
                data = tomllib.load(f)
            if path.name == "pyproject.toml":
                data = data.get("tool", {}).get(PYPROJECT_SECTION, {})
        elif suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        else:
            raise ConfigFileError(
                f"Unsupported config file format: {path.suffix}", path=str(path)
            )
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML syntax in {path}", path=str(path), cause=e) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigFileError(f"Invalid TOML syntax in {path}", path=str(path), cause=e) from e
    except json.JSONDecodeError as e:
        raise ConfigFileError(f"Invalid JSON syntax in {path}", path=str(path), cause=e) from e
    except OSError as e:
        raise ConfigFileError(f"Cannot read config file {path}", path=str(path), cause=e) from e

    if not isinstance(data, dict):
        raise ConfigFileError(f"Config file {path} must contain a mapping", path=str(path))
    return data


# -----------------------------------------------------------------------------
# Nested dict helpers
# -----------------------------------------------------------------------------


def get_dotted(data: dict[str, Any], key: str, default: Any = None) -> Any:
    """Read ``a.b.c`` from a nested dictionary."""
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_dotted(data: dict[str, Any], key: str, value: Any) -> None:
    """Write ``a.b.c`` into a nested dictionary, creating sections as needed."""
    parts = key.split(".")
    current = data
    for part in parts[:-1]:
        section = current.get(part)
        if not isinstance(section, dict):
            section = {}
            current[part] = section
        current = section
    current[parts[-1]] = value


def apply_cli_overrides(data: dict[str, Any], overrides: dict[str, Any] | None) -> None:
    """Apply CLI overrides (flat or dotted keys), skipping None values."""
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        set_dotted(data, CLI_OVERRIDE_KEYS.get(key, key), value)


# -----------------------------------------------------------------------------
# Typed config assembly
# -----------------------------------------------------------------------------


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value!r}")


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Invalid integer for {key}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid integer for {key}: {value!r}", cause=e) from e


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid number for {key}: {value!r}", cause=e) from e


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_app_config(data: dict[str, Any]) -> AppConfig:
    """
    Build a typed AppConfig from a nested dictionary.

    The ``llm`` section may also be spelled ``anthropic``.

    Raises:
        ConfigError: If a value has the wrong type
    """
    linear = data.get("linear") or {}
    llm = data.get("llm") or data.get("anthropic") or {}
    agent = data.get("agent") or {}

    linear_defaults = LinearConfig()
    llm_defaults = LLMConfig()
    agent_defaults = AgentConfig()

    linear_config = LinearConfig(
        api_key=str(linear.get("api_key") or ""),
        api_url=str(linear.get("api_url") or linear_defaults.api_url),
        timeout=_as_float(linear.get("timeout", linear_defaults.timeout), "linear.timeout"),
    )

    llm_config = LLMConfig(
        api_key=str(llm.get("api_key") or ""),
        model=str(llm.get("model") or llm_defaults.model),
        max_tokens=_as_int(llm.get("max_tokens", llm_defaults.max_tokens), "llm.max_tokens"),
        temperature=_as_float(
            llm.get("temperature", llm_defaults.temperature), "llm.temperature"
        ),
        timeout=_as_float(llm.get("timeout", llm_defaults.timeout), "llm.timeout"),
        max_retries=_as_int(llm.get("max_retries", llm_defaults.max_retries), "llm.max_retries"),
        base_delay=_as_float(llm.get("base_delay", llm_defaults.base_delay), "llm.base_delay"),
        max_delay=_as_float(llm.get("max_delay", llm_defaults.max_delay), "llm.max_delay"),
        jitter=_as_float(llm.get("jitter", llm_defaults.jitter), "llm.jitter"),
    )

    default_team = _optional_str(agent.get("default_team"))
    agent_config = AgentConfig(
        default_team=default_team.upper() if default_team else None,
        default_project=_optional_str(agent.get("default_project")),
        default_priority=_as_int(
            agent.get("default_priority", agent_defaults.default_priority),
            "agent.default_priority",
        ),
        enable_context=_as_bool(
            agent.get("enable_context", agent_defaults.enable_context), "agent.enable_context"
        ),
        confirm=_as_bool(agent.get("confirm", agent_defaults.confirm), "agent.confirm"),
        cache_ttl=_as_float(agent.get("cache_ttl", agent_defaults.cache_ttl), "agent.cache_ttl"),
        batch_delay=_as_float(
            agent.get("batch_delay", agent_defaults.batch_delay), "agent.batch_delay"
        ),
        templates_path=_optional_str(agent.get("templates_path")),
    )

    return AppConfig(linear=linear_config, llm=llm_config, agent=agent_config)


# -----------------------------------------------------------------------------
# Provider
# -----------------------------------------------------------------------------


class FileConfigProvider(ConfigProviderPort):
    """Configuration provider that reads a single config file."""

    def __init__(
        self,
        config_path: Path | str | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ):
        """
        Initialize the provider.

        Args:
            config_path: Explicit config file; auto-detected when None
            cli_overrides: Values that take precedence over the file
        """
        self.logger = logging.getLogger("FileConfigProvider")
        self._explicit_path = Path(config_path).expanduser() if config_path else None
        self._cli_overrides = dict(cli_overrides or {})
        self._config_path: Path | None = None
        self._file_data: dict[str, Any] = {}
        self._load_error: ConfigFileError | None = None
        self._loaded = False

    @property
    def name(self) -> str:
        if self.config_file_path:
            return f"File ({self.config_file_path.name})"
        return "File"

    @property
    def config_file_path(self) -> Path | None:
        """Path of the config file in use, if any."""
        self._ensure_loaded()
        return self._config_path

    @property
    def is_explicit(self) -> bool:
        """True when the config file path was given rather than auto-detected."""
        return self._explicit_path is not None

    @property
    def load_error(self) -> ConfigFileError | None:
        """Error raised while reading the config file, if any."""
        self._ensure_loaded()
        return self._load_error

    @property
    def file_data(self) -> dict[str, Any]:
        """Raw nested data read from the file (without CLI overrides)."""
        self._ensure_loaded()
        return copy.deepcopy(self._file_data)

    def load(self) -> AppConfig:
        """
        Load configuration.

        Raises:
            ConfigFileError: If an explicitly requested file cannot be read
            ConfigError: If a value has the wrong type
        """
        self._ensure_loaded()
        if self._load_error is not None and self._explicit_path is not None:
            raise self._load_error
        return build_app_config(self._merged())

    def get(self, key: str, default: Any = None) -> Any:
        return get_dotted(self._merged(), CLI_OVERRIDE_KEYS.get(key, key), default)

    def set(self, key: str, value: Any) -> None:
        self._cli_overrides[key] = value

    def validate(self) -> list[str]:
        self._ensure_loaded()
        if self._load_error is not None:
            return [str(self._load_error)]
        try:
            return self.load().validate()
        except ConfigError as e:
            return [str(e)]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        path = self._explicit_path or find_config_file()
        if path is None:
            self.logger.debug("No config file found")
            return

        self._config_path = path
        try:
            self._file_data = read_config_file(path)
            self.logger.debug(f"Loaded config file {path}")
        except ConfigFileError as e:
            self._load_error = e
            self.logger.warning(str(e))

    def _merged(self) -> dict[str, Any]:
        self._ensure_loaded()
        data = copy.deepcopy(self._file_data)
        apply_cli_overrides(data, self._cli_overrides)
        return data
