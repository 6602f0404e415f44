"""Job creation.

Posts one import request to the creation endpoint and returns the job id the
queue assigned. A single attempt is made; anything but `202 {jobId}` raises
`SubmissionError` carrying the best error text the server gave us.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .config import require_endpoint
from .errors import SubmissionError
from .models import ImportRequest, JobAccepted
from .utils import http_client, request_key, response_error_message

logger = logging.getLogger(__name__)


class JobSubmitter:
    """Create remote import jobs."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout_s: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout_s
        self._client = client

    @property
    def endpoint(self) -> str:
        return require_endpoint(self._endpoint, "IMPORT_ENDPOINT")

    async def submit(self, url: str, user_id: str) -> JobAccepted:
        """Create an import job for `url` on behalf of `user_id`.

        Raises:
            ValueError: empty url or user id.
            ConfigurationError: no creation endpoint configured (before any I/O).
            SubmissionError: the job was not accepted.
        """
        text = (url or "").strip()
        if not text:
            raise ValueError("Please enter a listing link or description")
        if not (user_id or "").strip():
            raise ValueError("A user id is required to import properties")

        endpoint = self.endpoint
        key = request_key(url, user_id)
        body = ImportRequest(text=text, user_id=user_id).model_dump(by_alias=True)

        logger.info("Creating import job for %s", key)
        async with http_client(self._client, self._timeout) as client:
            try:
                resp = await client.post(endpoint, json=body)
            except httpx.HTTPError as exc:
                raise SubmissionError(f"Failed to reach import endpoint: {exc}") from exc

        logger.debug("Job creation response for %s: %s", key, resp.status_code)

        if resp.status_code != 202:
            raise SubmissionError(response_error_message(resp), status_code=resp.status_code)

        try:
            accepted = JobAccepted.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise SubmissionError("No job ID returned", status_code=resp.status_code) from exc

        logger.info("Job %s created for %s", accepted.job_id, key)
        return accepted
