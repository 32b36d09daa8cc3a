"""
Linear GraphQL Client - Low-level async HTTP client for the Linear API.

This handles the raw HTTP communication with Linear.
The LinearAdapter uses this to implement the IssueTrackerPort.

Linear GraphQL API documentation:
https://developers.linear.app/docs/graphql/working-with-the-graphql-api
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from linear_agent.adapters.async_base import RetryConfig, get_retry_after, with_retry
from linear_agent.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    RateLimitError,
    ResourceNotFoundError,
    TrackerError,
    TransientError,
)


class LinearGraphQLClient:
    """
    Async Linear GraphQL API client.

    Features:
    - API key authentication
    - Automatic retry with exponential backoff for transient failures
    - Mapping of HTTP and GraphQL errors onto the tracker exceptions
    """

    API_URL = "https://api.linear.app/graphql"

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_RETRY = RetryConfig(max_retries=3, base_delay=1.0, max_delay=30.0, jitter=0.1)

    def __init__(
        self,
        api_key: str,
        api_url: str = API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry: RetryConfig = DEFAULT_RETRY,
    ):
        """
        Initialize the Linear client.

        Args:
            api_key: Linear personal API key
            api_url: GraphQL endpoint
            timeout: Total request timeout in seconds
            retry: Retry policy for transient failures
        """
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.retry = retry
        self.logger = logging.getLogger("LinearGraphQLClient")

        self.headers = {
            "Authorization": api_key,
            "Content-Type": "application/json",
        }

        self._session: aiohttp.ClientSession | None = None

    # -------------------------------------------------------------------------
    # Session Management
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the HTTP session if not already open."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> LinearGraphQLClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        operation: str = "query",
    ) -> dict[str, Any]:
        """
        Execute a GraphQL operation with retry.

        Args:
            query: GraphQL document
            variables: Operation variables
            operation: Short name used in log and error messages

        Returns:
            The ``data`` object of the response

        Raises:
            TrackerError: On API errors
        """
        await self.connect()

        def on_retry(attempt: int, error: BaseException, delay: float) -> None:
            self.logger.warning(
                f"Linear {operation} failed ({error}), retry {attempt}/{self.retry.max_retries} "
                f"in {delay:.2f}s"
            )

        return await with_retry(
            lambda: self._execute_once(query, variables or {}, operation),
            on_retry=on_retry,
            **self.retry.as_kwargs(),
        )

    async def _execute_once(
        self, query: str, variables: dict[str, Any], operation: str
    ) -> dict[str, Any]:
        assert self._session is not None

        try:
            async with self._session.post(
                self.api_url, json={"query": query, "variables": variables}
            ) as response:
                if response.status == 401:
                    raise AuthenticationError(
                        "Linear authentication failed. Check your API key (LINEAR_API_KEY)."
                    )
                if response.status == 403:
                    raise AccessDeniedError(f"Access denied for Linear {operation}")
                if response.status == 429:
                    raise RateLimitError(
                        "Linear rate limit exceeded",
                        retry_after=get_retry_after(response),
                    )
                if response.status >= 500:
                    raise TransientError(f"Linear server error {response.status} on {operation}")

                body = await response.json(content_type=None)
                status = response.status
        except aiohttp.ClientError as e:
            raise TransientError(f"Connection to Linear failed: {e}", cause=e) from e
        except asyncio.TimeoutError as e:
            raise TransientError(f"Linear request timed out on {operation}", cause=e) from e

        if not isinstance(body, dict):
            raise TrackerError(f"Unexpected Linear response for {operation}")

        errors = body.get("errors")
        if errors:
            raise self._map_graphql_errors(errors, operation)

        if status >= 400:
            raise TrackerError(f"Linear request failed with status {status} on {operation}")

        return body.get("data") or {}

    def _map_graphql_errors(self, errors: list[dict[str, Any]], operation: str) -> TrackerError:
        """Translate a GraphQL ``errors`` array into a tracker exception."""
        first = errors[0] if errors else {}
        message = first.get("message", "Unknown GraphQL error")
        code = str((first.get("extensions") or {}).get("code", "")).upper()

        if code == "RATELIMITED":
            return RateLimitError(f"Linear rate limit exceeded: {message}")
        if code in ("AUTHENTICATION_ERROR", "UNAUTHENTICATED"):
            return AuthenticationError(f"Linear authentication failed: {message}")
        if code == "FORBIDDEN":
            return AccessDeniedError(f"Access denied for Linear {operation}: {message}")
        if "not found" in message.lower():
            return ResourceNotFoundError(message)
        return TrackerError(f"Linear {operation} failed: {message}")
