"""
Error types for jobs, media processing and source fetching.

All errors inherit from BrollError for easy catching.
"""
from __future__ import annotations

from brollmix.core.enums import FetchErrorKind


class BrollError(Exception):
    """Base exception for all brollmix failures."""
    pass


class ConfigurationError(BrollError, ValueError):
    """Raised when a job configuration is rejected before any work starts."""
    pass


class JobNotFoundError(BrollError, LookupError):
    """Raised when a job id is unknown to the job table."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class JobAlreadyTerminalError(BrollError):
    """Raised when cancelling a job that already completed or failed."""

    def __init__(self, job_id: str, state: str):
        self.job_id = job_id
        self.state = state
        super().__init__(f"Job {job_id} is already {state.lower()} and can't be cancelled")


class MediaError(BrollError):
    """Raised when the media engine fails to process a file."""

    def __init__(self, message: str, stderr: str | None = None):
        self.stderr = stderr
        super().__init__(message)


class InvalidMediaError(MediaError):
    """Raised when a file can't be probed as playable video."""
    pass


class EmptyInputError(MediaError):
    """Raised when a media operation receives no inputs."""
    pass


class FetchError(BrollError):
    """Raised when a remote source can't be fetched."""

    def __init__(self, kind: FetchErrorKind, url: str, message: str):
        self.kind = kind
        self.url = url
        super().__init__(f"{kind.value}: {url}: {message}")
