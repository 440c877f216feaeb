from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repocatalog.models import RepoConfig


class SyncError(Exception):
    """Base class for every error raised by the sync pipeline."""


class ConfigError(SyncError):
    pass


class GitHubError(SyncError):
    pass


class NotFoundError(GitHubError):
    def __init__(self, endpoint: str) -> None:
        super().__init__(f"Not found: {endpoint}")
        self.endpoint = endpoint


class RateLimitedError(GitHubError):
    def __init__(self, reset_at: datetime) -> None:
        super().__init__(f"Rate limit exceeded (resets at {reset_at.isoformat()})")
        self.reset_at = reset_at


class TransientError(GitHubError):
    """Network failure or unexpected status; safe to retry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GraphQLError(GitHubError):
    pass


class FetchError(SyncError):
    pass


class DecodeFailure(SyncError):
    pass


class EntryFailure(SyncError):
    """A catalog entry could not be fetched; the run continues without it."""

    def __init__(self, entry: RepoConfig, cause: BaseException) -> None:
        super().__init__(f"{entry.full_name}: {cause}")
        self.entry = entry
        self.cause = cause
