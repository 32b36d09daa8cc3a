"""
Exceptions - Centralized exception hierarchy for linear-agent.

All errors raised by the core, the adapters and the application layer derive
from LinearAgentError so callers can catch a single base type.

Hierarchy:
    LinearAgentError
    ├── ConfigError
    │   ├── MissingConfigError
    │   └── ConfigFileError
    ├── TrackerError
    │   ├── AuthenticationError
    │   ├── AccessDeniedError
    │   ├── ResourceNotFoundError
    │   ├── RateLimitError
    │   └── TransientError
    ├── LLMError
    │   ├── LLMAuthenticationError (also a ConfigError)
    │   ├── LLMRateLimitError
    │   ├── LLMUnavailableError
    │   └── LLMTimeoutError
    └── ExtractionError

Each class carries a ``retryable`` attribute consumed by the default
retry classifier in ``linear_agent.adapters.async_base``.
"""

from __future__ import annotations


__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "ConfigError",
    "ConfigFileError",
    "ExtractionError",
    "LLMAuthenticationError",
    "LLMError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "LLMUnavailableError",
    "LinearAgentError",
    "MissingConfigError",
    "RateLimitError",
    "ResourceNotFoundError",
    "TrackerError",
    "TransientError",
]


# =============================================================================
# Base
# =============================================================================


class LinearAgentError(Exception):
    """
    Base exception for all linear-agent errors.

    Attributes:
        message: Human-readable error message.
        cause: Optional underlying exception.
    """

    retryable: bool | None = None

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(LinearAgentError):
    """Invalid or missing configuration. Never retried."""

    retryable = False


class MissingConfigError(ConfigError):
    """A required configuration value is missing."""

    def __init__(self, message: str, *, key: str | None = None, cause: BaseException | None = None):
        super().__init__(message, cause=cause)
        self.key = key


class ConfigFileError(ConfigError):
    """A configuration file could not be read or parsed."""

    def __init__(
        self, message: str, *, path: str | None = None, cause: BaseException | None = None
    ):
        super().__init__(message, cause=cause)
        self.path = path


# =============================================================================
# Tracker Errors
# =============================================================================


class TrackerError(LinearAgentError):
    """Error talking to the issue tracker."""

    def __init__(
        self,
        message: str,
        *,
        issue_key: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.issue_key = issue_key


class AuthenticationError(TrackerError):
    """Tracker rejected the credentials."""

    retryable = False


class AccessDeniedError(TrackerError):
    """Credentials are valid but lack permission for the operation."""

    retryable = False


class ResourceNotFoundError(TrackerError):
    """Requested tracker resource does not exist."""

    retryable = False


class RateLimitError(TrackerError):
    """Tracker rate limit exceeded."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        issue_key: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, issue_key=issue_key, cause=cause)
        self.retry_after = retry_after


class TransientError(TrackerError):
    """Temporary tracker failure (5xx, connection reset)."""

    retryable = True


# =============================================================================
# LLM Errors
# =============================================================================


class LLMError(LinearAgentError):
    """Error returned by the LLM completion API."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class LLMAuthenticationError(LLMError, ConfigError):
    """The LLM API key is invalid (HTTP 401)."""

    retryable = False

    def __init__(
        self,
        message: str = "Invalid Anthropic API key. Please check your configuration.",
        *,
        cause: BaseException | None = None,
    ):
        super().__init__(message, status_code=401, cause=cause)


class LLMRateLimitError(LLMError):
    """The LLM API throttled the request (HTTP 429)."""

    retryable = True


class LLMUnavailableError(LLMError):
    """The LLM API is temporarily unavailable (5xx or network failure)."""

    retryable = True


class LLMTimeoutError(LLMError):
    """The LLM request timed out."""

    retryable = True


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(LinearAgentError):
    """
    The model output could not be turned into a record.

    Raised for empty input after sanitization, invalid JSON and a missing
    ``title``. No partial record is ever returned alongside this error.
    """

    retryable = False

    def __init__(
        self,
        message: str,
        *,
        raw_response: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, cause=cause)
        self.raw_response = raw_response
