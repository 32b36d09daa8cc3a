"""
CLI Module - Command Line Interface for linear-agent.

The entry point lives in ``linear_agent.cli.app``.
"""

from .exit_codes import ExitCode


__all__ = ["ExitCode"]
