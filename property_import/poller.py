"""Job status polling.

`JobPoller.start()` returns a `PollTask`: an awaitable polling loop that asks
the status endpoint for one job at a fixed interval until the job reaches a
terminal state, the deadline passes, or the caller cancels it.

Each decoded status is handed to the caller's `on_tick` callback exactly once,
before the loop decides whether to continue, which is what progress displays
hook into. A job that failed remotely resolves normally with
`ImportJobResult(status="error")`; only this client's own failures raise.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from .config import require_endpoint
from .errors import JobTimeoutError, PollCancelledError, PollingTransportError
from .models import STATE_ORDER, ImportJobResult, ImportJobStatus
from .utils import http_client, response_error_message

logger = logging.getLogger(__name__)

TickCallback = Callable[[ImportJobStatus], None]


class PollTask:
    """A running poll for one job id.

    Await it for the `ImportJobResult`. `cancel()` stops the loop before its
    next request; the awaited task then raises `PollCancelledError`.
    """

    def __init__(
        self,
        poller: "JobPoller",
        job_id: str,
        on_tick: Optional[TickCallback],
        interval_s: float,
        timeout_s: float,
    ) -> None:
        self.job_id = job_id
        self.interval_s = interval_s
        self.timeout_s = timeout_s
        self._poller = poller
        self._on_tick = on_tick
        self._cancel_requested = asyncio.Event()
        self._task = asyncio.ensure_future(self._run())

    def __await__(self):
        return self._task.__await__()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> bool:
        """Ask the loop to stop. Returns False if the poll had already finished."""
        if self._task.done():
            return False
        logger.info("Cancelling poll for job %s", self.job_id)
        self._cancel_requested.set()
        return True

    def _raise_if_cancelled(self) -> None:
        if self._cancel_requested.is_set():
            raise PollCancelledError(self.job_id)

    async def _run(self) -> ImportJobResult:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_s
        last_state: Optional[str] = None

        logger.info(
            "Starting job polling for %s (interval=%ss, timeout=%ss)",
            self.job_id, self.interval_s, self.timeout_s,
        )

        async with self._poller.client() as client:
            while True:
                self._raise_if_cancelled()
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise self._timed_out()

                # A request still pending at the deadline counts as a timeout.
                try:
                    status = await asyncio.wait_for(self._poller.fetch_status(client, self.job_id), timeout=remaining)
                except asyncio.TimeoutError:
                    raise self._timed_out() from None
                logger.debug("Status tick for %s: %s", self.job_id, status.status)

                if last_state is not None and STATE_ORDER[status.status] < STATE_ORDER[last_state]:
                    logger.warning("Job %s went from %s back to %s", self.job_id, last_state, status.status)
                last_state = status.status

                if self._on_tick is not None:
                    self._on_tick(status)

                if status.is_terminal:
                    logger.info("Job %s done: %s", self.job_id, status.status)
                    return ImportJobResult.from_status(status)

                self._raise_if_cancelled()
                await self._sleep(min(self.interval_s, max(deadline - loop.time(), 0.0)))

    def _timed_out(self) -> JobTimeoutError:
        logger.warning("Job %s polling timeout exceeded after %ss", self.job_id, self.timeout_s)
        return JobTimeoutError(self.job_id, self.timeout_s)

    async def _sleep(self, delay: float) -> None:
        # Wakes early when cancel() is called.
        try:
            await asyncio.wait_for(self._cancel_requested.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass


class JobPoller:
    """Poll the status endpoint for import jobs."""

    def __init__(
        self,
        status_endpoint: Optional[str] = None,
        interval_s: float = 2.0,
        timeout_s: float = 120.0,
        http_timeout_s: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._status_endpoint = status_endpoint
        self.interval_s = interval_s
        self.timeout_s = timeout_s
        self._http_timeout = http_timeout_s
        self._client = client

    @property
    def status_endpoint(self) -> str:
        return require_endpoint(self._status_endpoint, "IMPORT_STATUS_ENDPOINT")

    def client(self):
        return http_client(self._client, self._http_timeout)

    async def fetch_status(self, client: httpx.AsyncClient, job_id: str) -> ImportJobStatus:
        """GET one status snapshot; any failure raises `PollingTransportError`."""
        try:
            resp = await client.get(self.status_endpoint, params={"id": job_id})
        except httpx.HTTPError as exc:
            raise PollingTransportError(f"Failed to reach status endpoint: {exc}", job_id) from exc

        if not resp.is_success:
            raise PollingTransportError(response_error_message(resp), job_id, status_code=resp.status_code)

        try:
            return ImportJobStatus.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise PollingTransportError(
                f"Malformed status response for job {job_id}", job_id, status_code=resp.status_code
            ) from exc

    def start(
        self,
        job_id: str,
        on_tick: Optional[TickCallback] = None,
        interval_s: Optional[float] = None,
        timeout_s: Optional[float] = None,
    ) -> PollTask:
        """Start polling `job_id` in the background and return the task.

        The status endpoint is resolved first, so a missing address raises
        `ConfigurationError` here rather than inside the task.
        """
        require_endpoint(self._status_endpoint, "IMPORT_STATUS_ENDPOINT")
        return PollTask(
            self,
            job_id,
            on_tick,
            interval_s=self.interval_s if interval_s is None else interval_s,
            timeout_s=self.timeout_s if timeout_s is None else timeout_s,
        )

    async def poll(
        self,
        job_id: str,
        on_tick: Optional[TickCallback] = None,
        interval_s: Optional[float] = None,
        timeout_s: Optional[float] = None,
    ) -> ImportJobResult:
        """Poll `job_id` until it finishes; see `PollTask`."""
        return await self.start(job_id, on_tick, interval_s=interval_s, timeout_s=timeout_s)
