"""
Exit codes for the linear-agent CLI.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit status."""

    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    VALIDATION_ERROR = 3
    EXTRACTION_ERROR = 4
    WRITE_FAILURE = 5
    SIGINT = 130
