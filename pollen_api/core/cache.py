"""
pollen_api/core/cache.py
═══════════════════════════════════════════════════════════════════════════
Single-slot snapshot cache.
  • Only the scheduler calls rebuild()
  • Only routers call read()
  • The slot is swapped under a threading lock → atomic replace, never partial
  • rebuild() holds an asyncio lock across fetch + extract → one rebuild at a time
  • Failed rebuilds never touch the slot → last good snapshot stays valid
  • A miss asks for a rebuild through on_miss and fails fast with CacheEmpty
═══════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
import threading
import time
from datetime import datetime
from typing import Awaitable, Callable, Optional

from pollen_api.core.errors import CacheEmpty
from pollen_api.core.models import Snapshot

log = logging.getLogger("cache")

SnapshotSource = Callable[[], Awaitable[Snapshot]]


class PollenCache:
    def __init__(self, on_miss: Optional[Callable[[], None]] = None):
        self.on_miss = on_miss
        self._snapshot: Optional[Snapshot] = None
        self._ts: Optional[float] = None
        self._slot_lock = threading.Lock()
        self._rebuild_lock = asyncio.Lock()

    # ── Reads ─────────────────────────────────────────────────────────────────

    def read(self) -> Snapshot:
        """Current snapshot. On a cold cache, request a rebuild and raise CacheEmpty."""
        with self._slot_lock:
            snapshot = self._snapshot
        if snapshot is None:
            if self.on_miss is not None:
                self.on_miss()
            raise CacheEmpty()
        return snapshot

    def peek(self) -> Optional[Snapshot]:
        """Current snapshot or None. Never triggers a rebuild."""
        with self._slot_lock:
            return self._snapshot

    @property
    def is_warm(self) -> bool:
        return self.peek() is not None

    @property
    def rebuilding(self) -> bool:
        return self._rebuild_lock.locked()

    @property
    def last_rebuild(self) -> Optional[datetime]:
        with self._slot_lock:
            return self._snapshot.captured_at if self._snapshot else None

    def age_s(self) -> Optional[float]:
        """Seconds since the last successful rebuild, or None."""
        with self._slot_lock:
            return round(time.time() - self._ts, 1) if self._ts is not None else None

    # ── Writes ────────────────────────────────────────────────────────────────

    def write(self, snapshot: Snapshot) -> None:
        """Atomically publish a fully built snapshot."""
        with self._slot_lock:
            self._snapshot = snapshot
            self._ts = time.time()

    async def rebuild(self, source: SnapshotSource) -> Snapshot:
        """
        Run source() (fetch + extract) under the rebuild lock and publish the result.
        Errors propagate to the caller; the previous snapshot is kept.
        """
        async with self._rebuild_lock:
            t0 = time.time()
            snapshot = await source()
            self.write(snapshot)
            log.debug(f"Snapshot replaced ({len(snapshot.records)} records, {time.time() - t0:.1f}s)")
            return snapshot
