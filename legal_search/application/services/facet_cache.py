"""Discovery facet cache with single-flight, stale-while-revalidate refresh.

Lifecycle: empty at process start, filled by the first read (or a warm-up
refresh), dropped with the process. At most one recomputation is in flight;
once a snapshot exists readers never wait for it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

import structlog

from legal_search.application.dto.search_dto import DiscoveryData
from legal_search.application.ports import ClockPort, TelemetryPort

logger = structlog.get_logger(__name__)

DEFAULT_FACET_TTL = timedelta(minutes=5)


class FacetCache:
    """Serves the latest facet snapshot; refreshes it in the background when stale."""

    def __init__(
        self,
        loader: Callable[[], Awaitable[DiscoveryData]],
        clock: ClockPort,
        ttl: timedelta = DEFAULT_FACET_TTL,
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self._loader = loader
        self._clock = clock
        self._ttl = ttl
        self._telemetry = telemetry
        self._snapshot: DiscoveryData | None = None
        self._loaded_at: datetime | None = None
        self._inflight: asyncio.Task[DiscoveryData] | None = None

    @property
    def loaded_at(self) -> datetime | None:
        return self._loaded_at

    def is_stale(self) -> bool:
        if self._loaded_at is None:
            return True
        return self._clock.now() - self._loaded_at >= self._ttl

    async def get(self) -> DiscoveryData:
        """Current facets.

        Only a cold read (no snapshot yet) waits, and it joins the single
        in-flight load instead of starting another one.
        """
        if self._snapshot is None:
            return await asyncio.shield(self.refresh())
        if self.is_stale():
            self.refresh()
        return self._snapshot

    def refresh(self) -> asyncio.Task[DiscoveryData]:
        """Start a recomputation unless one is already running; return its task."""
        if self._inflight is not None and not self._inflight.done():
            return self._inflight
        task = asyncio.get_running_loop().create_task(self._load())
        task.add_done_callback(self._finished)
        self._inflight = task
        return task

    async def close(self) -> None:
        task, self._inflight = self._inflight, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _load(self) -> DiscoveryData:
        logger.info("facet refresh started")
        data = await self._loader()
        self._snapshot = data
        self._loaded_at = self._clock.now()
        logger.info(
            "facet refresh finished",
            courts=len(data.courts),
            cities=len(data.cities),
            legal_categories=len(data.legal_categories),
        )
        return data

    def _finished(self, task: asyncio.Task[DiscoveryData]) -> None:
        if task.cancelled():
            return
        ex = task.exception()
        status = "failure" if ex is not None else "success"
        if ex is not None:
            # previous snapshot (if any) keeps being served; next stale read retries
            logger.warning("facet refresh failed", error=str(ex), error_type=type(ex).__name__)
        if self._telemetry is not None:
            self._telemetry.incr("legal_search.facets.refresh", {"status": status})
