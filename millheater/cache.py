"""Read-through cache of a heater's control status."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
import time

from .models import CachedSnapshot, ControlStatus

_LOGGER = logging.getLogger(__name__)


class StatusCache:
    """Hold the latest control status of one heater.

    Snapshots younger than ``ttl`` seconds are served without a network call.
    Callers arriving while a fetch is running share that fetch instead of
    starting their own, so several getters fired in the same loop iteration
    cost one request.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[ControlStatus]],
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            fetch: Coroutine function reading the control status from the device
            ttl: Freshness window in seconds
            clock: Monotonic clock, replaceable in tests
        """
        self._fetch_status = fetch
        self.ttl = ttl
        self._clock = clock
        self._snapshot: CachedSnapshot | None = None
        self._inflight: asyncio.Task[ControlStatus] | None = None
        self._tasks: set[asyncio.Task[ControlStatus]] = set()
        self._generation = 0
        self._stored_generation = 0

    @property
    def snapshot(self) -> CachedSnapshot | None:
        """Return the last stored snapshot."""
        return self._snapshot

    @property
    def age(self) -> float | None:
        """Return the age of the stored snapshot in seconds."""
        if self._snapshot is None:
            return None
        return self._clock() - self._snapshot.fetched_at

    @property
    def is_fresh(self) -> bool:
        """Check if the stored snapshot is within the TTL."""
        age = self.age
        return age is not None and age < self.ttl

    async def get_fresh(self) -> ControlStatus:
        """Return the cached status, fetching it when stale."""
        if self._snapshot is not None and self.is_fresh:
            return self._snapshot.value
        if self._inflight is not None:
            _LOGGER.debug("Joining in-flight control status fetch")
            return await asyncio.shield(self._inflight)
        return await self._start_fetch()

    async def force_refresh(self) -> ControlStatus:
        """Fetch the status regardless of the age of the cached one."""
        return await self._start_fetch()

    def invalidate(self) -> None:
        """Mark the stored snapshot as stale."""
        if self._snapshot is not None:
            self._snapshot = CachedSnapshot(
                value=self._snapshot.value, fetched_at=float("-inf")
            )

    @property
    def fetching(self) -> bool:
        """Check if a fetch is still running."""
        return bool(self._tasks)

    async def drain(self) -> None:
        """Wait until every running fetch has finished, successful or not."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    def clear(self) -> None:
        """Drop the stored snapshot."""
        self._snapshot = None

    def _start_fetch(self) -> asyncio.Future[ControlStatus]:
        self._generation += 1
        task = asyncio.ensure_future(self._fetch(self._generation))
        self._inflight = task
        self._tasks.add(task)
        task.add_done_callback(self._fetch_done)
        # A cancelled caller must not cancel a fetch other callers share
        return asyncio.shield(task)

    async def _fetch(self, generation: int) -> ControlStatus:
        value = await self._fetch_status()
        # An older fetch finishing late must not replace a newer snapshot
        if generation > self._stored_generation:
            self._stored_generation = generation
            self._snapshot = CachedSnapshot(value=value, fetched_at=self._clock())
        return value

    def _fetch_done(self, task: asyncio.Task[ControlStatus]) -> None:
        self._tasks.discard(task)
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Mark the exception as retrieved, awaiting callers still receive it
            task.exception()
