"""Exception hierarchy shared across the pipeline."""

from __future__ import annotations


class JobsiftError(Exception):
    """Base class for all jobsift errors."""


class ConfigurationError(JobsiftError):
    """Missing credentials, malformed identifiers or unusable input files."""


class ScrapeTaskError(JobsiftError):
    """A remote scrape run finished without producing a dataset."""


class BatchJobError(JobsiftError):
    """Remote batch reached a terminal non-success status."""

    def __init__(self, batch_id: str, status: str, message: str | None = None) -> None:
        self.batch_id = batch_id
        self.status = status
        super().__init__(message or f"Batch {batch_id} ended with status {status}")


class BatchTimeoutError(BatchJobError):
    """Polling exceeded the wall-clock deadline."""

    def __init__(self, batch_id: str, deadline_seconds: float) -> None:
        self.deadline_seconds = deadline_seconds
        super().__init__(
            batch_id,
            "timeout",
            f"Batch {batch_id} did not finish within {deadline_seconds:.0f}s",
        )


class BatchCancelledError(BatchJobError):
    """Polling was aborted locally through the cancellation token."""

    def __init__(self, batch_id: str) -> None:
        super().__init__(batch_id, "aborted", f"Polling for batch {batch_id} was cancelled")


__all__ = [
    "BatchCancelledError",
    "BatchJobError",
    "BatchTimeoutError",
    "ConfigurationError",
    "JobsiftError",
    "ScrapeTaskError",
]
