"""Import orchestration: submit, then poll, once per logical request.

`ImportOrchestrator.import_property()` runs job creation and status polling as
one unit behind a `SingleFlightRegistry`. While an import for a given
(url, user) is outstanding, further calls for the same request join it instead
of creating another job, and every caller's status callback receives the
shared poll stream from the moment it joined. Once the import settles, the
next call starts a new job.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import List, Literal, Optional

import httpx

from .config import ImportSettings
from .errors import JobTimeoutError, PollCancelledError
from .models import ImportJobResult, ImportJobStatus
from .poller import JobPoller, PollTask, TickCallback
from .single_flight import SingleFlightRegistry
from .submitter import JobSubmitter
from .utils import request_key

logger = logging.getLogger(__name__)


ImportState = Literal[
    "idle",
    "submitting",
    "polling",
    "succeeded",
    "domain-errored",
    "transport-failed",
    "timed-out",
    "cancelled",
]


@dataclass
class _Flight:
    """Bookkeeping for one outstanding import."""

    key: str
    state: ImportState = "submitting"
    listeners: List[TickCallback] = field(default_factory=list)
    poll_task: Optional[PollTask] = None
    cancel_requested: bool = False


class ImportOrchestrator:
    """Run property imports with per-request deduplication."""

    def __init__(
        self,
        submitter: JobSubmitter,
        poller: JobPoller,
        registry: Optional[SingleFlightRegistry] = None,
    ) -> None:
        self._submitter = submitter
        self._poller = poller
        self._registry = registry if registry is not None else SingleFlightRegistry()

    @classmethod
    def from_settings(
        cls, settings: ImportSettings, client: Optional[httpx.AsyncClient] = None
    ) -> "ImportOrchestrator":
        submitter = JobSubmitter(settings.import_endpoint, timeout_s=settings.http_timeout_s, client=client)
        poller = JobPoller(
            settings.status_endpoint,
            interval_s=settings.poll_interval_s,
            timeout_s=settings.poll_timeout_s,
            http_timeout_s=settings.http_timeout_s,
            client=client,
        )
        return cls(submitter, poller)

    async def __aenter__(self) -> "ImportOrchestrator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel outstanding imports and refuse new ones."""
        await self._registry.aclose()

    def _flight(self, key: str) -> Optional[_Flight]:
        # Kept in the registry entry so orchestrators sharing a registry see the same flight.
        flight = self._registry.context(key)
        return flight if isinstance(flight, _Flight) else None

    def state(self, url: str, user_id: str) -> ImportState:
        flight = self._flight(request_key(url, user_id))
        return flight.state if flight is not None else "idle"

    def cancel(self, url: str, user_id: str) -> bool:
        """Request cancellation of the outstanding import for (url, user_id).

        Callers awaiting it get `PollCancelledError`. Returns False when nothing
        is outstanding for that request.
        """
        flight = self._flight(request_key(url, user_id))
        if flight is None:
            return False
        flight.cancel_requested = True
        if flight.poll_task is not None:
            return flight.poll_task.cancel()
        return True

    async def import_property(
        self,
        url: str,
        user_id: str,
        on_status_update: Optional[TickCallback] = None,
    ) -> ImportJobResult:
        """Import one listing and return its terminal result.

        A remote failure comes back as `ImportJobResult(status="error")`;
        submission, transport, timeout and cancellation failures raise.
        """
        if self._registry.closed:
            raise RuntimeError("ImportOrchestrator is closed")
        key = request_key(url, user_id)

        flight = self._flight(key)
        if flight is None:
            flight = _Flight(key)
        else:
            logger.info("Reusing active import for %s", key)

        if on_status_update is not None:
            flight.listeners.append(on_status_update)

        task = self._registry.run_exclusive(key, partial(self._run, flight, url, user_id), context=flight)
        try:
            # Cancelling this caller leaves the shared task running.
            return await asyncio.shield(task)
        finally:
            if on_status_update is not None and on_status_update in flight.listeners:
                flight.listeners.remove(on_status_update)

    async def _run(self, flight: _Flight, url: str, user_id: str) -> ImportJobResult:
        try:
            if flight.cancel_requested:
                raise PollCancelledError()
            accepted = await self._submitter.submit(url, user_id)

            if flight.cancel_requested:
                raise PollCancelledError(accepted.job_id)
            flight.state = "polling"
            flight.poll_task = self._poller.start(accepted.job_id, partial(self._fan_out, flight))
            result = await flight.poll_task

            flight.state = "succeeded" if result.ok else "domain-errored"
            return result
        except JobTimeoutError:
            flight.state = "timed-out"
            raise
        except (PollCancelledError, asyncio.CancelledError):
            flight.state = "cancelled"
            raise
        except Exception:
            flight.state = "transport-failed"
            raise
        finally:
            logger.info("Import %s finished: %s", flight.key, flight.state)

    def _fan_out(self, flight: _Flight, status: ImportJobStatus) -> None:
        for callback in list(flight.listeners):
            try:
                callback(status)
            except Exception:
                logger.exception("Status callback failed for %s", flight.key)
