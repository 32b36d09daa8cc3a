"""
Configuration adapters - File and environment configuration providers.
"""

from .environment import ENV_VARS, EnvironmentConfigProvider
from .file_provider import (
    CONFIG_FILE_NAMES,
    FileConfigProvider,
    build_app_config,
    find_config_file,
)


__all__ = [
    "CONFIG_FILE_NAMES",
    "ENV_VARS",
    "EnvironmentConfigProvider",
    "FileConfigProvider",
    "build_app_config",
    "find_config_file",
]
