from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from types import TracebackType
from typing import Any

import httpx
from loguru import logger

from repocatalog.errors import (
    GitHubError,
    GraphQLError,
    NotFoundError,
    RateLimitedError,
    TransientError,
)

GITHUB_API = "https://api.github.com"
USER_AGENT = "repo-catalog-sync"

_MAX_ATTEMPTS = 3
_BASE_DELAY = 1.0


class RetryState(Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED_RETRYABLE = "failed_retryable"
    FAILED_TERMINAL = "failed_terminal"


def next_state(
    error: GitHubError | None, attempt: int, max_attempts: int = _MAX_ATTEMPTS
) -> RetryState:
    """Transition out of ``ATTEMPTING`` after the 0-based ``attempt`` finished.

    ==========================  ====================  ==================
    outcome                     attempts left         next state
    ==========================  ====================  ==================
    no error                    any                   SUCCEEDED
    NotFound / RateLimited      any                   FAILED_TERMINAL
    transient                   yes                   FAILED_RETRYABLE
    transient                   no                    FAILED_TERMINAL
    ==========================  ====================  ==================
    """
    if error is None:
        return RetryState.SUCCEEDED
    if isinstance(error, (NotFoundError, RateLimitedError)):
        return RetryState.FAILED_TERMINAL
    if attempt + 1 < max_attempts:
        return RetryState.FAILED_RETRYABLE
    return RetryState.FAILED_TERMINAL


@dataclass
class FetchResult:
    data: Any = None
    etag: str | None = None
    not_modified: bool = False


def _parse_reset(raw: str | None) -> datetime:
    if raw:
        try:
            return datetime.fromtimestamp(int(raw), tz=timezone.utc)
        except ValueError:
            pass
    return datetime.now(timezone.utc)


class GitHubClient:
    def __init__(
        self,
        token: str = "",
        *,
        base_url: str = GITHUB_API,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = _MAX_ATTEMPTS,
        initial_delay: float = _BASE_DELAY,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=30,
            follow_redirects=True,
            transport=transport,
        )
        self.has_token = bool(token)
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self._sleep = sleep

    # -- context manager ---------------------------------------------------

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- public API ---------------------------------------------------------

    def fetch(self, endpoint: str, etag: str | None = None) -> FetchResult:
        """GET a REST endpoint, retrying transient failures with exponential backoff.

        Passing ``etag`` makes the request conditional; a 304 answer comes back
        as ``FetchResult(not_modified=True)`` and the caller keeps its copy.
        """
        error: GitHubError | None = None
        for attempt in range(self.max_attempts):
            try:
                return self._get(endpoint, etag)
            except GitHubError as exc:
                error = exc
            if next_state(error, attempt, self.max_attempts) is RetryState.FAILED_TERMINAL:
                break
            delay = self.initial_delay * (2 ** attempt)
            logger.warning(
                "Retry {}/{} for {} in {:.1f}s… ({})",
                attempt + 1, self.max_attempts, endpoint, delay, error,
            )
            self._sleep(delay)
        raise error

    def graphql(self, query: str, variables: dict[str, Any]) -> dict:
        """POST a GraphQL query and return its ``data`` object. Not retried."""
        try:
            resp = self._client.post(
                "/graphql", json={"query": query, "variables": variables}
            )
        except httpx.HTTPError as exc:
            raise TransientError(f"{type(exc).__name__}: {exc}") from exc
        if not resp.is_success:
            raise TransientError(
                f"HTTP {resp.status_code}: {resp.reason_phrase}", resp.status_code
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise TransientError(f"Invalid JSON from /graphql: {exc}") from exc
        if not isinstance(body, dict):
            raise TransientError(f"Unexpected /graphql response: {type(body).__name__}")
        errors = body.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else None
            message = first.get("message") if isinstance(first, dict) else None
            raise GraphQLError(message or "GraphQL error")
        data = body.get("data")
        return data if isinstance(data, dict) else {}

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------

    def _get(self, endpoint: str, etag: str | None) -> FetchResult:
        headers = {"If-None-Match": etag} if etag else {}
        try:
            resp = self._client.get(endpoint, headers=headers)
        except httpx.HTTPError as exc:
            raise TransientError(f"{type(exc).__name__}: {exc}") from exc

        if resp.status_code == 403 and resp.headers.get("X-RateLimit-Remaining") == "0":
            reset_at = _parse_reset(resp.headers.get("X-RateLimit-Reset"))
            self._log_rate_limit(reset_at)
            raise RateLimitedError(reset_at)
        if resp.status_code == 304:
            return FetchResult(not_modified=True)
        if resp.status_code == 404:
            raise NotFoundError(endpoint)
        if not resp.is_success:
            raise TransientError(
                f"HTTP {resp.status_code}: {resp.reason_phrase}", resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransientError(f"Invalid JSON from {endpoint}: {exc}") from exc
        return FetchResult(data=data, etag=resp.headers.get("ETag"))

    def _log_rate_limit(self, reset_at: datetime) -> None:
        wait = max(0, int((reset_at - datetime.now(timezone.utc)).total_seconds() // 60) + 1)
        logger.error("GitHub API rate limit exceeded!")
        if not self.has_token:
            logger.error(
                "Set GITHUB_TOKEN for higher rate limits (5000/hr instead of 60/hr)"
            )
        logger.error("Rate limit resets at {:%H:%M:%S} UTC ({} minutes)", reset_at, wait)
