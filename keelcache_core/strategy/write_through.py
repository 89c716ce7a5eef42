"""KeelCache Write-Through Strategy - Synchronous Persistence.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from keelcache_core.cache.store import EntryStore
from keelcache_core.errors import SourceTimeoutError, SourceWriteError
from keelcache_core.metrics.collector import MetricsCollector
from keelcache_core.strategy.base import Loader, SourceCaller, Strategy, Writer
from keelcache_core.strategy.modes import StrategyType

logger = logging.getLogger(__name__)


class WriteThroughStrategy(Strategy):
    """Write-through: persist first, cache only after the write succeeds.

    The writer runs outside the store lock. If it raises or times out the
    cache is left exactly as it was and the error reaches the caller;
    the cache never retries. Reads load through ``loader`` when one is
    given, otherwise a miss raises NotFoundError.

    Example:
        strategy = WriteThroughStrategy(store, writer=db.save)
        strategy.put("user:1", user)  # db.save("user:1", user), then cached
    """

    strategy_type = StrategyType.WRITE_THROUGH

    def __init__(
        self,
        store: EntryStore,
        writer: Writer,
        metrics: Optional[MetricsCollector] = None,
        loader: Optional[Loader] = None,
        caller: Optional[SourceCaller] = None,
        load_ttl: Optional[float] = None,
    ):
        """Initialize write-through strategy.

        Args:
            store: Entry store
            writer: Sink for puts
            metrics: Metrics collector
            loader: Optional source for missed keys
            caller: Runs source calls with timeouts
            load_ttl: TTL for loaded values
        """
        if writer is None:
            raise ValueError("WriteThroughStrategy requires a writer")
        super().__init__(store, metrics, loader=loader, caller=caller, load_ttl=load_ttl)
        self.writer = writer

    def put(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        size_cost: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[str]:
        """Write to the source, then cache.

        Raises:
            CapacityExceededError: Value can never fit; nothing is written
            SourceWriteError: Writer raised; cache unchanged
            SourceTimeoutError: Writer timed out; cache unchanged
        """
        cost = self.store.cost_of(key, value, size_cost)

        with self._key_locks.hold(key):
            try:
                self._caller.call(key, self.writer, key, value, timeout=timeout)
            except SourceTimeoutError:
                self.metrics.record_write_failure()
                logger.error(f"Writer timed out for {key!r}")
                raise
            except Exception as e:
                self.metrics.record_write_failure()
                logger.error(f"Writer failed for {key!r}: {e}")
                raise SourceWriteError(key, e) from e

            self.metrics.record_write()
            evicted = self.store.put(key, value, ttl=ttl, size_cost=cost)

        self.metrics.record_set()
        return evicted


__all__ = ["WriteThroughStrategy"]
