"""Single-flight registry: at most one in-flight task per key."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlightRegistry:
    """Keyed map from a logical request key to its one in-flight task.

    Concurrent callers asking for the same key get the same task back. The
    entry is removed as soon as the task settles, whatever the outcome, so the
    next call for that key starts fresh.
    """

    def __init__(self) -> None:
        self._inflight: Dict[str, asyncio.Task] = {}
        self._context: Dict[str, Any] = {}
        self._closed = False

    def __contains__(self, key: str) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, key: str) -> Optional[asyncio.Task]:
        return self._inflight.get(key)

    def context(self, key: str) -> Optional[Any]:
        """Object stored alongside the in-flight task for `key`, if any."""
        return self._context.get(key)

    def run_exclusive(
        self, key: str, factory: Callable[[], Awaitable[T]], context: Optional[Any] = None
    ) -> "asyncio.Future[T]":
        """Return the in-flight task for `key`, starting one with `factory` if none exists.

        Deliberately not a coroutine: the lookup and the insert happen in the
        same synchronous step, so two callers on the same loop turn can never
        both start a task. `context` is stored with a new entry and dropped with
        it; it is ignored when joining. Must be called with a running event loop.
        """
        if self._closed:
            raise RuntimeError("SingleFlightRegistry is closed")

        existing = self._inflight.get(key)
        if existing is not None:
            logger.debug("Joining in-flight task for %s", key)
            return existing

        async def run() -> T:
            try:
                return await factory()
            finally:
                # Removed before awaiters see the outcome.
                if self._inflight.get(key) is task:
                    del self._inflight[key]
                    self._context.pop(key, None)

        task = asyncio.ensure_future(run())
        self._inflight[key] = task
        if context is not None:
            self._context[key] = context
        return task

    async def aclose(self) -> None:
        """Cancel every in-flight task and wait for them to finish."""
        self._closed = True
        tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("Cancelling %d in-flight task(s)", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        self._context.clear()
