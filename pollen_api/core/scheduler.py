"""
pollen_api/core/scheduler.py
═══════════════════════════════════════════════════════════════════════════════
Background refresher with two triggers feeding the same rebuild:

  1. Periodic  → every REFRESH_INTERVAL_S (10 min), unconditionally
  2. Eager     → a cache miss calls request_rebuild(); the eager loop picks it up
  3. ONE rebuild at a time (PollenCache holds the rebuild lock)
  4. Redundant miss requests collapse into one Event; the eager loop skips the
     rebuild when the cache became warm while it was waiting
  5. Failed rebuild → keep last good snapshot. Periodic failures follow
     REFRESH_FAILURE_POLICY: "continue" logs and waits, "exit" terminates
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
import os
import signal
import time
from typing import Optional

from pollen_api.core.cache import PollenCache, SnapshotSource
from pollen_api.core.config import (
    LOCAL_TZ,
    POLICY_CONTINUE,
    POLICY_EXIT,
    REFRESH_FAILURE_POLICY,
    REFRESH_INTERVAL_S,
    WARM_ON_START,
)

log = logging.getLogger("scheduler")


class RefreshScheduler:
    def __init__(
        self,
        cache: PollenCache,
        source: SnapshotSource,
        interval_s: float = REFRESH_INTERVAL_S,
        failure_policy: str = REFRESH_FAILURE_POLICY,
        warm_on_start: bool = WARM_ON_START,
    ):
        if failure_policy not in (POLICY_CONTINUE, POLICY_EXIT):
            raise ValueError(f"unknown failure policy {failure_policy!r}")
        self.cache = cache
        self.source = source
        self.interval_s = interval_s
        self.failure_policy = failure_policy
        self.warm_on_start = warm_on_start
        self._wake = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    # ── Triggers ──────────────────────────────────────────────────────────────

    def request_rebuild(self) -> None:
        """Fire-and-forget. Wired as the cache's on_miss hook."""
        self._wake.set()

    async def _rebuild(self, trigger: str) -> None:
        t0 = time.time()
        snapshot = await self.cache.rebuild(self.source)
        local = snapshot.captured_at.astimezone(LOCAL_TZ).strftime("%Y-%m-%d %H:%M:%S %Z")
        log.info(
            f"Cache rebuild successful ({trigger}): {len(snapshot.records)} regions "
            f"in {time.time() - t0:.1f}s, captured {local}"
        )

    # ── Loops ─────────────────────────────────────────────────────────────────

    async def _eager_loop(self) -> None:
        while True:
            await self._wake.wait()
            self._wake.clear()
            if self.cache.is_warm:
                log.debug("Rebuild requested but cache is already warm — skipping")
                continue
            try:
                await self._rebuild("eager")
            except Exception as ex:
                log.error(f"Eager cache rebuild failed: {ex}")

    async def _periodic_loop(self) -> None:
        if self.warm_on_start:
            try:
                await self._rebuild("startup")
            except Exception as ex:
                log.error(f"Startup cache rebuild failed: {ex}")

        while True:
            await asyncio.sleep(self.interval_s)
            try:
                await self._rebuild("periodic")
            except Exception as ex:
                if self.failure_policy == POLICY_EXIT:
                    log.critical(f"Error rebuilding cache: {ex} — terminating")
                    os.kill(os.getpid(), signal.SIGTERM)
                    return
                log.error(f"Error rebuilding cache (continuing): {ex}")

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Called once from the app lifespan. A second call is ignored."""
        if self.running:
            log.warning("Scheduler already running — ignoring duplicate start")
            return
        self._tasks = [
            asyncio.create_task(self._periodic_loop(), name="pollen-periodic-refresh"),
            asyncio.create_task(self._eager_loop(), name="pollen-eager-refresh"),
        ]
        log.info(f"Scheduler started (interval {self.interval_s}s, policy '{self.failure_policy}')")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        log.info("Scheduler stopped")


def build_refresher(source: SnapshotSource, **kwargs) -> tuple[PollenCache, RefreshScheduler]:
    """Cache + scheduler wired together: a miss on the cache wakes the eager loop."""
    cache = PollenCache()
    scheduler = RefreshScheduler(cache, source, **kwargs)
    cache.on_miss = scheduler.request_rebuild
    return cache, scheduler


def describe(cache: PollenCache) -> dict:
    """Metadata only — safe to expose in /health."""
    snapshot = cache.peek()
    last: Optional[str] = None
    if snapshot is not None:
        last = snapshot.captured_at.astimezone(LOCAL_TZ).isoformat()
    return {
        "status":       "healthy" if snapshot is not None else "warming_up",
        "records":      len(snapshot.records) if snapshot is not None else 0,
        "age_s":        cache.age_s(),
        "rebuilding":   cache.rebuilding,
        "last_rebuild": last,
    }
