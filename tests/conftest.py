"""Shared fixtures.

`FakeQueue` stands in for the remote job queue behind an `httpx.MockTransport`
so no test touches the network. POSTs create jobs `job-1`, `job-2`, ...; GETs
replay `statuses` in order and keep repeating the last one.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

import httpx
import pytest

from property_import import ImportOrchestrator, JobPoller, JobSubmitter

CREATE_URL = "https://queue.test/importPropertyFromText"
STATUS_URL = "https://queue.test/getImportJobStatus"


class FakeQueue:
    def __init__(self) -> None:
        self.posts: List[Dict[str, Any]] = []
        self.gets: List[str] = []
        self.statuses: List[Union[Dict[str, Any], httpx.Response]] = [{"status": "success", "result": {}}]
        self.create_response: Optional[httpx.Response] = None
        self._created = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            self.posts.append(json.loads(request.content))
            if self.create_response is not None:
                return self.create_response
            self._created += 1
            return httpx.Response(202, json={"jobId": f"job-{self._created}"})

        job_id = request.url.params["id"]
        self.gets.append(job_id)
        body = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json={"jobId": job_id, **body})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def queue() -> FakeQueue:
    return FakeQueue()


@pytest.fixture
def make_orchestrator():
    """Build an orchestrator wired to a client, with fast polling by default."""

    def _make(client: httpx.AsyncClient, interval_s: float = 0.001, timeout_s: float = 2.0) -> ImportOrchestrator:
        submitter = JobSubmitter(CREATE_URL, client=client)
        poller = JobPoller(STATUS_URL, interval_s=interval_s, timeout_s=timeout_s, client=client)
        return ImportOrchestrator(submitter, poller)

    return _make
