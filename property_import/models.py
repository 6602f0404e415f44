"""Data models for the property import client.

The remote job queue speaks camelCase JSON; these models expose snake_case
attributes and keep the wire names as aliases so results can be dumped back in
the exact shape the queue used (`model_dump(by_alias=True, exclude_none=True)`).

This file uses Pydantic v2.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import JobDomainError


JobState = Literal["queued", "working", "success", "error"]

TERMINAL_STATES = frozenset({"success", "error"})

# Position of each state in the queued -> working -> terminal progression.
STATE_ORDER = {"queued": 0, "working": 1, "success": 2, "error": 2}


class ImportRequest(BaseModel):
    """Body of the create-job request."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., description="Listing URL (or free text) to import.")
    user_id: str = Field(..., alias="userId")


class JobAccepted(BaseModel):
    """Body of a 202 response from the creation endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    job_id: str = Field(..., alias="jobId", min_length=1)


class ImportJobStatus(BaseModel):
    """One status snapshot of a remote import job.

    The record is owned by the remote queue; the client only reads it. Unknown
    fields are kept so callers rendering progress can use them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    job_id: Optional[str] = Field(default=None, alias="jobId")
    status: JobState
    result: Optional[Any] = None
    error: Optional[str] = None
    retry_after_seconds: Optional[Union[int, float]] = Field(default=None, alias="retryAfterSeconds")
    created_at: Optional[Any] = Field(default=None, alias="createdAt")
    updated_at: Optional[Any] = Field(default=None, alias="updatedAt")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES


class ImportJobResult(BaseModel):
    """Terminal outcome of an import.

    A job that failed remotely is still a *result* (`status == "error"`), not an
    exception: callers decide on retry/backoff using `retry_after_seconds`.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success", "error"]
    result: Optional[Any] = None
    error: Optional[str] = None
    retry_after_seconds: Optional[Union[int, float]] = Field(default=None, alias="retryAfterSeconds")

    @classmethod
    def from_status(cls, status: ImportJobStatus) -> "ImportJobResult":
        """Build the result for a terminal status snapshot."""
        if status.status == "success":
            return cls(status="success", result=status.result)
        if status.status == "error":
            return cls(
                status="error",
                error=status.error,
                retry_after_seconds=status.retry_after_seconds,
            )
        raise ValueError(f"status {status.status!r} is not terminal")

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def listing(self) -> Optional[Any]:
        """Extracted property fields, unwrapping a nested `data` object if present."""
        if isinstance(self.result, dict) and self.result.get("data") is not None:
            return self.result["data"]
        return self.result

    def raise_for_status(self) -> "ImportJobResult":
        """Raise `JobDomainError` if the job failed remotely, else return self."""
        if self.status == "error":
            raise JobDomainError(self.error or "Import failed", retry_after_seconds=self.retry_after_seconds)
        return self

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
