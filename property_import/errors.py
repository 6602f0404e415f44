"""Exceptions raised by the import client.

Transport and configuration failures are exceptions. A job that the remote
queue reports as failed is returned as an `ImportJobResult` instead; only
`ImportJobResult.raise_for_status()` turns it into `JobDomainError`.
"""

from __future__ import annotations

from typing import Optional


class ImportJobError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(ImportJobError):
    """A required endpoint address is not configured."""


class SubmissionError(ImportJobError):
    """The creation endpoint did not accept the job."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PollingTransportError(ImportJobError):
    """A status request failed; polling stops immediately."""

    def __init__(self, message: str, job_id: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.status_code = status_code


class JobTimeoutError(ImportJobError):
    """The job was still running when the polling deadline passed."""

    def __init__(self, job_id: str, timeout_s: float) -> None:
        super().__init__("Import job timed out. Please try again.")
        self.job_id = job_id
        self.timeout_s = timeout_s


class PollCancelledError(ImportJobError):
    """Polling (or a whole import) was cancelled by the caller."""

    def __init__(self, job_id: Optional[str] = None) -> None:
        super().__init__(f"Import job {job_id} was cancelled" if job_id else "Import was cancelled")
        self.job_id = job_id


class JobDomainError(ImportJobError):
    """The remote job finished with `status: error`."""

    def __init__(self, message: str, retry_after_seconds: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
