"""KeelCache Expiration - TTL Index and Background Sweeping.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ExpirationManager:
    """Tracks per-key expiry times.

    Keys with a TTL live in a min-heap ordered by expiry time. Each key has
    one current record, identified by its sequence number; changing or
    clearing a TTL leaves the old record in the heap as stale. Stale records
    are dropped when they reach the top, and the heap is rebuilt from the
    current records once stale ones outnumber them, so the heap never holds
    more than twice the TTL keys. Keys without a TTL are never indexed.

    Not thread-safe on its own; the owning store holds the lock.

    Example:
        expiry = ExpirationManager()
        expiry.set_ttl("key", 10.0, now=100.0)
        expiry.is_expired("key", now=105.0)   # False
        expiry.pop_expired(now=111.0)         # "key"
    """

    def __init__(self):
        # Key -> (expires_at, seq) of its current heap record
        self._records: Dict[str, Tuple[float, int]] = {}
        self._heap: List[Tuple[float, int, str]] = []
        self._counter = itertools.count()
        self._stale = 0

    def set_ttl(self, key: str, duration: float, now: float) -> float:
        """Set key to expire ``duration`` seconds after ``now``.

        Args:
            key: Cache key
            duration: TTL in seconds
            now: Current time

        Returns:
            Expiry timestamp
        """
        expires_at = now + duration
        seq = next(self._counter)
        if key in self._records:
            self._stale += 1
        self._records[key] = (expires_at, seq)
        heapq.heappush(self._heap, (expires_at, seq, key))
        self._maybe_compact()
        return expires_at

    def clear_ttl(self, key: str) -> None:
        """Drop the TTL for a key."""
        if self._records.pop(key, None) is not None:
            self._stale += 1
            self._maybe_compact()

    def expires_at(self, key: str) -> Optional[float]:
        """Get expiry timestamp for a key, None without TTL."""
        record = self._records.get(key)
        return record[0] if record is not None else None

    def is_expired(self, key: str, now: float) -> bool:
        """Check whether a key's TTL has elapsed.

        Args:
            key: Cache key
            now: Current time

        Returns:
            True only if the key has a TTL and ``now >= expires_at``
        """
        record = self._records.get(key)
        return record is not None and now >= record[0]

    def heap_size(self) -> int:
        """Get number of heap records, stale ones included."""
        return len(self._heap)

    def _is_current(self, entry: Tuple[float, int, str]) -> bool:
        expires_at, seq, key = entry
        return self._records.get(key) == (expires_at, seq)

    def _maybe_compact(self) -> None:
        if self._stale <= len(self._records):
            return
        self._heap = [(exp, seq, key) for key, (exp, seq) in self._records.items()]
        heapq.heapify(self._heap)
        self._stale = 0

    def _discard_stale(self) -> None:
        while self._heap and not self._is_current(self._heap[0]):
            heapq.heappop(self._heap)
            self._stale -= 1

    def pop_expired(self, now: float) -> Optional[str]:
        """Remove and return the earliest expired key.

        Args:
            now: Current time

        Returns:
            Expired key, or None once the earliest live record is not expired
        """
        self._discard_stale()
        if not self._heap or self._heap[0][0] > now:
            return None
        _, _, key = heapq.heappop(self._heap)
        del self._records[key]
        return key

    def next_expiry(self) -> Optional[float]:
        """Get earliest pending expiry timestamp."""
        self._discard_stale()
        return self._heap[0][0] if self._heap else None

    def clear(self) -> None:
        self._records.clear()
        self._heap.clear()
        self._stale = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return key in self._records


class ExpirySweeper:
    """Background thread that periodically purges expired entries.

    Example:
        sweeper = ExpirySweeper(store.sweep_expired, interval=1.0)
        sweeper.start()
        ...
        sweeper.stop()
    """

    def __init__(
        self,
        sweep: Callable[..., List[str]],
        interval: float = 60.0,
        name: str = "cache",
    ):
        """Initialize sweeper.

        Args:
            sweep: Callable accepting ``stop_event`` and returning purged keys
            interval: Seconds between sweeps
            name: Owner name for the thread
        """
        self.interval = interval
        self.name = name
        self._sweep = sweep
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start sweeping."""
        if self._thread is not None:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name=f"Cache-{self.name}-sweeper",
        )
        self._thread.start()
        logger.info(f"Expiry sweeper for {self.name} started (interval={self.interval}s)")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop sweeping; an in-flight sweep stops at the next key boundary."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info(f"Expiry sweeper for {self.name} stopped")

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                purged = self._sweep(stop_event=self._stop_event)
                if purged:
                    logger.debug(f"Swept {len(purged)} expired entries from {self.name}")
            except Exception as e:
                logger.error(f"Sweep error: {e}")


__all__ = ["ExpirationManager", "ExpirySweeper"]
