"""KeelCache Entry Store - Bounded Key-Value Storage.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from keelcache_core.cache.entry import CacheEntry, EntryState
from keelcache_core.errors import CapacityExceededError, ConfigurationError
from keelcache_core.eviction.policy import EvictionPolicy
from keelcache_core.expiration.manager import ExpirationManager
from keelcache_core.protocol.sizer import Sizer, UnitSizer

logger = logging.getLogger(__name__)

# listener(key, value, reason) with reason in REMOVAL_REASONS
RemovalListener = Callable[[str, Any, str], None]

EVICTED = "evicted"
EXPIRED = "expired"
DELETED = "deleted"
REMOVAL_REASONS = (EVICTED, EXPIRED, DELETED)


class EntryStore:
    """Fixed-capacity mapping from key to entry.

    One re-entrant lock guards the entries, the eviction policy and the
    expiry index together; every public method takes it, including reads,
    because reads update policy bookkeeping. Nothing in here calls out to
    external data sources.

    Invariant: after any method returns, the summed ``size_cost`` of live
    entries is at most ``capacity``.

    Example:
        store = EntryStore(capacity=2, policy=LRUPolicy(2))
        store.put("a", 1)
        store.put("b", 2)
        store.get("a")          # (1, True)
        store.put("c", 3)       # ["b"]
    """

    def __init__(
        self,
        capacity: int,
        policy: EvictionPolicy,
        expiration: Optional[ExpirationManager] = None,
        sizer: Optional[Sizer] = None,
        default_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        listener: Optional[RemovalListener] = None,
    ):
        """Initialize store.

        Args:
            capacity: Maximum aggregate size cost
            policy: Eviction policy
            expiration: Expiry index
            sizer: Cost function for values (default: 1 per entry)
            default_ttl: TTL applied when put() gets none
            clock: Time source in seconds
            listener: Called for every removal
        """
        if capacity <= 0:
            raise ConfigurationError(f"capacity must be positive, got {capacity}")

        self.capacity = capacity
        self.default_ttl = default_ttl
        self._policy = policy
        self._expiration = expiration or ExpirationManager()
        self._sizer = sizer or UnitSizer()
        self._clock = clock
        self._listener = listener

        self._entries: Dict[str, CacheEntry] = {}
        self._size_used = 0
        self._lock = threading.RLock()

    @property
    def policy(self) -> EvictionPolicy:
        return self._policy

    @property
    def expiration(self) -> ExpirationManager:
        return self._expiration

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Tuple[Any, bool]:
        """Get value for key.

        Args:
            key: Cache key

        Returns:
            (value, True) on hit, (None, False) if absent or expired
        """
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None, False

            entry.touch(self._clock())
            self._policy.on_access(key)
            return entry.value, True

    def put(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        size_cost: Optional[int] = None,
    ) -> List[str]:
        """Insert or overwrite an entry.

        Args:
            key: Cache key
            value: Value to store
            ttl: TTL in seconds (falls back to the store default)
            size_cost: Explicit cost, otherwise computed by the sizer

        Returns:
            Keys evicted to make room, in eviction order

        Raises:
            CapacityExceededError: If the entry alone exceeds capacity
        """
        cost = self.cost_of(key, value, size_cost)
        ttl = ttl if ttl is not None else self.default_ttl

        with self._lock:
            now = self._clock()
            entry = self._live_entry(key)

            if entry is not None:
                self._size_used -= entry.size_cost
                entry.update_value(value, cost, ttl, now)
                self._policy.on_update(key)
            else:
                entry = CacheEntry(key=key, value=value, size_cost=cost, ttl_seconds=ttl)
                entry.metadata.created_at = now
                entry.metadata.accessed_at = now
                self._entries[key] = entry
                self._policy.on_insert(key)

            self._size_used += cost

            if ttl is not None:
                self._expiration.set_ttl(key, ttl, now)
            else:
                self._expiration.clear_ttl(key)

            return self._evict_overflow(protect=key)

    def cost_of(self, key: str, value: Any, size_cost: Optional[int] = None) -> int:
        """Compute and validate the cost of storing ``value``.

        Raises:
            CapacityExceededError: If the cost alone exceeds capacity
        """
        cost = self._sizer.size_of(value) if size_cost is None else size_cost
        if cost < 0:
            raise ValueError(f"size_cost must be non-negative, got {cost}")
        if cost > self.capacity:
            raise CapacityExceededError(key, cost, self.capacity)
        return cost

    def delete(self, key: str) -> bool:
        """Delete key.

        Args:
            key: Cache key

        Returns:
            True if a live entry was removed
        """
        with self._lock:
            if self._live_entry(key) is None:
                return False
            self._remove(key, DELETED)
            return True

    def contains(self, key: str) -> bool:
        """Check for a live entry without touching it."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expiration.is_expired(key, self._clock())

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Get the entry without bookkeeping or expiry purge."""
        with self._lock:
            return self._entries.get(key)

    def is_expired(self, key: str, now: Optional[float] = None) -> bool:
        """Check whether key's TTL has elapsed."""
        with self._lock:
            return self._expiration.is_expired(key, self._clock() if now is None else now)

    def keys(self) -> List[str]:
        """Get keys of entries not yet expired."""
        with self._lock:
            now = self._clock()
            return [k for k in self._entries if not self._expiration.is_expired(k, now)]

    def len(self) -> int:
        """Get number of stored entries."""
        return len(self._entries)

    def size_used(self) -> int:
        """Get aggregate size cost of stored entries."""
        return self._size_used

    def clear(self) -> int:
        """Remove everything without notifying the listener.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._policy.clear()
            self._expiration.clear()
            self._size_used = 0
            return count

    def sweep_expired(
        self,
        now: Optional[float] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> List[str]:
        """Remove every entry whose expiry is at or before ``now``.

        Walks the expiry index in ascending order and stops at the first
        live entry. Checks ``stop_event`` between removals.

        Args:
            now: Sweep time, defaults to the clock
            stop_event: Cancels the sweep when set

        Returns:
            Keys removed
        """
        purged: List[str] = []
        with self._lock:
            now = self._clock() if now is None else now
            while stop_event is None or not stop_event.is_set():
                key = self._expiration.pop_expired(now)
                if key is None:
                    break
                if key in self._entries:
                    self._remove(key, EXPIRED)
                    purged.append(key)
        return purged

    def mark_dirty(self, key: str) -> Optional[int]:
        """Flag entry as pending write-behind.

        Returns:
            Entry version, or None if absent
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            entry.mark_dirty()
            return entry.version

    def mark_clean(self, key: str, version: int) -> bool:
        """Clear the dirty flag if the entry still holds ``version``.

        Returns:
            True if the flag was cleared
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.version != version:
                return False
            entry.mark_clean()
            return True

    def dirty_keys(self) -> List[str]:
        """Get keys with a pending write-behind flush."""
        with self._lock:
            return [k for k, e in self._entries.items() if e.state == EntryState.DIRTY]

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        """Get entry, purging it first if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expiration.is_expired(key, self._clock()):
            self._remove(key, EXPIRED)
            return None
        return entry

    def _evict_overflow(self, protect: str) -> List[str]:
        evicted: List[str] = []
        while self._size_used > self.capacity:
            victim = self._policy.select_victim(exclude=protect)
            if victim is None or victim not in self._entries:
                # Policy and store disagree; should be unreachable
                logger.error(f"Eviction policy returned unusable victim {victim!r}")
                break
            self._remove(victim, EVICTED)
            evicted.append(victim)
        if evicted:
            logger.debug(f"Evicted {len(evicted)} entries for {protect!r}")
        return evicted

    def _remove(self, key: str, reason: str) -> None:
        entry = self._entries.pop(key)
        self._size_used -= entry.size_cost
        self._policy.on_remove(key, evicted=reason == EVICTED)
        self._expiration.clear_ttl(key)
        if reason == EXPIRED:
            entry.state = EntryState.EXPIRED
        elif reason == EVICTED:
            entry.state = EntryState.EVICTED

        if self._listener is not None:
            try:
                self._listener(key, entry.value, reason)
            except Exception as e:
                logger.error(f"Removal listener error for {key!r}: {e}")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def __repr__(self) -> str:
        return (
            f"EntryStore(entries={len(self._entries)}, "
            f"used={self._size_used}/{self.capacity})"
        )


__all__ = ["EntryStore", "RemovalListener", "EVICTED", "EXPIRED", "DELETED"]
