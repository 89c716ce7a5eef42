"""KeelCache Write-Behind Strategy - Asynchronous Persistence.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from keelcache_core.cache.store import EntryStore
from keelcache_core.errors import QueueFullError, SourceError, SourceWriteError
from keelcache_core.metrics.collector import MetricsCollector
from keelcache_core.strategy.backoff import calculate_backoff_delay
from keelcache_core.strategy.base import Loader, SourceCaller, Strategy, Writer
from keelcache_core.strategy.modes import StrategyType

logger = logging.getLogger(__name__)

# on_error(key, value, error) once a write exhausts its retries
WriteErrorCallback = Callable[[str, Any, SourceError], None]


@dataclass
class PendingWrite:
    """A queued write.

    Attributes:
        key: Cache key
        value: Value to persist
        version: Entry version when queued
        enqueued_at: When queued
    """

    key: str
    value: Any
    version: Optional[int] = None
    enqueued_at: float = field(default_factory=time.time)


class WriteBehindStrategy(Strategy):
    """Write-behind: cache now, persist later from a worker thread.

    ``put`` stores the value, marks the entry dirty and hands a
    PendingWrite to a bounded queue. A single daemon worker drains the
    queue in order. Each write is tried up to ``retry_limit + 1`` times
    with bounded exponential backoff between attempts. Success clears the
    dirty flag when the entry still holds the queued version. Exhaustion
    calls ``on_error`` once for that write and leaves the entry dirty.

    Durability gap: queued writes live only in memory. Anything still
    queued when the process dies, or when ``close(flush=False)`` is
    called, is never written; ``close`` logs how many were dropped.

    Example:
        strategy = WriteBehindStrategy(store, writer=db.save, on_error=alert)
        strategy.put("user:1", user)   # returns immediately
        strategy.flush(timeout=5.0)    # wait for the backlog
        strategy.close()
    """

    strategy_type = StrategyType.WRITE_BEHIND

    def __init__(
        self,
        store: EntryStore,
        writer: Writer,
        metrics: Optional[MetricsCollector] = None,
        loader: Optional[Loader] = None,
        caller: Optional[SourceCaller] = None,
        load_ttl: Optional[float] = None,
        queue_depth: int = 1000,
        retry_limit: int = 3,
        retry_base_delay: float = 0.05,
        retry_max_delay: float = 2.0,
        on_error: Optional[WriteErrorCallback] = None,
        name: str = "cache",
    ):
        """Initialize write-behind strategy.

        Args:
            store: Entry store
            writer: Sink for puts
            metrics: Metrics collector
            loader: Optional source for missed keys
            caller: Runs source calls with timeouts
            load_ttl: TTL for loaded values
            queue_depth: Maximum queued writes
            retry_limit: Retries after the first failed attempt
            retry_base_delay: Delay before the first retry
            retry_max_delay: Upper bound for retry delays
            on_error: Called once per write that exhausts retries
            name: Owner name for the worker thread
        """
        if writer is None:
            raise ValueError("WriteBehindStrategy requires a writer")
        super().__init__(store, metrics, loader=loader, caller=caller, load_ttl=load_ttl)
        self.writer = writer
        self.queue_depth = queue_depth
        self.retry_limit = retry_limit
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.on_error = on_error
        self.name = name

        self._queue: "queue.Queue[PendingWrite]" = queue.Queue(maxsize=queue_depth)
        self._worker: Optional[threading.Thread] = None
        self._worker_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._abort_event = threading.Event()

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def pending(self) -> int:
        """Get number of writes queued or in flight."""
        return self._queue.unfinished_tasks

    def start(self) -> None:
        """Start the flush worker."""
        with self._worker_lock:
            if self.running:
                return
            self._stop_event.clear()
            self._abort_event.clear()
            self._worker = threading.Thread(
                target=self._run,
                daemon=True,
                name=f"Cache-{self.name}-write-behind",
            )
            self._worker.start()
        logger.info(f"Write-behind worker for {self.name} started")

    def put(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        size_cost: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[str]:
        """Cache the value and queue its write.

        Raises:
            CapacityExceededError: Value can never fit; nothing queued
            QueueFullError: Backlog saturated; the key is invalidated
        """
        self.start()

        with self._key_locks.hold(key):
            evicted = self.store.put(key, value, ttl=ttl, size_cost=size_cost)
            version = self.store.mark_dirty(key)
            try:
                self._queue.put_nowait(PendingWrite(key, value, version))
            except queue.Full:
                self.store.delete(key)
                logger.warning(f"Write-behind queue full, invalidated {key!r}")
                raise QueueFullError(key, self.queue_depth) from None

        self.metrics.record_set()
        return evicted

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every queued write has been attempted.

        Args:
            timeout: Seconds to wait, None for no limit

        Returns:
            True if the backlog drained
        """
        if self._queue.unfinished_tasks:
            self.start()

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                if deadline is None:
                    self._queue.all_tasks_done.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def close(self, flush: bool = True, timeout: Optional[float] = None) -> None:
        """Stop the worker.

        Args:
            flush: Drain the backlog first
            timeout: Seconds to wait for the drain
        """
        if flush:
            self.flush(timeout)
        else:
            self._abort_event.set()

        self._stop_event.set()
        if self._worker is not None:
            self._worker.join(timeout=5.0)
            self._worker = None

        dropped = self._drain()
        if dropped:
            logger.warning(
                f"Write-behind for {self.name} closed with {dropped} unwritten "
                f"entries; they will not be persisted"
            )
        super().close(flush, timeout)
        logger.info(f"Write-behind worker for {self.name} stopped")

    def _drain(self) -> int:
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return dropped
            self._queue.task_done()
            dropped += 1

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                item = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                self._write(item)
            except Exception as e:
                logger.error(f"Write-behind worker error for {item.key!r}: {e}")
            finally:
                self._queue.task_done()

    def _write(self, item: PendingWrite) -> bool:
        """Persist one item, retrying with backoff.

        Returns:
            True if the writer succeeded
        """
        attempts = self.retry_limit + 1
        last_error: Optional[BaseException] = None

        for attempt in range(attempts):
            if attempt > 0:
                delay = calculate_backoff_delay(
                    attempt - 1,
                    base_delay=self.retry_base_delay,
                    max_delay=self.retry_max_delay,
                )
                logger.warning(
                    f"Retrying write of {item.key!r} in {delay:.3f}s "
                    f"(attempt {attempt + 1}/{attempts}): {last_error}"
                )
                if self._abort_event.wait(delay):
                    logger.warning(f"Write of {item.key!r} abandoned on close")
                    return False
                self.metrics.record_write_retry()

            try:
                self._caller.call(item.key, self.writer, item.key, item.value)
            except Exception as e:
                last_error = e
                continue

            self.metrics.record_write()
            self.store.mark_clean(item.key, item.version)
            return True

        self.metrics.record_write_failure()
        logger.error(f"Write of {item.key!r} failed after {attempts} attempts: {last_error}")
        self._report(item, last_error)
        return False

    def _report(self, item: PendingWrite, cause: Optional[BaseException]) -> None:
        if self.on_error is None:
            return
        error = cause if isinstance(cause, SourceError) else SourceWriteError(item.key, cause)
        if error is not cause and cause is not None:
            error.__cause__ = cause
        try:
            self.on_error(item.key, item.value, error)
        except Exception as e:
            logger.error(f"Write error callback failed for {item.key!r}: {e}")


__all__ = ["WriteBehindStrategy", "PendingWrite", "WriteErrorCallback"]
