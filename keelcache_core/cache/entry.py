"""KeelCache Entry - Cache Entry with TTL and State Management.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class EntryState(Enum):
    """Cache entry states."""

    VALID = auto()       # Entry is valid and persisted (or never needs to be)
    DIRTY = auto()       # Written to cache, pending write-behind flush
    EXPIRED = auto()     # TTL elapsed, removed
    EVICTED = auto()     # Removed under capacity pressure


@dataclass
class EntryMetadata:
    """Bookkeeping for a cache entry.

    Attributes:
        created_at: When the current value was written
        accessed_at: Last access time
        access_count: Number of reads since the value was written
        version: Incremented on every overwrite
    """

    created_at: float = field(default_factory=time.time)
    accessed_at: float = field(default_factory=time.time)
    access_count: int = 0
    version: int = 1

    def touch(self, now: Optional[float] = None) -> None:
        """Update access time and count."""
        self.accessed_at = time.time() if now is None else now
        self.access_count += 1

    def age_seconds(self, now: Optional[float] = None) -> float:
        """Get entry age in seconds."""
        return (time.time() if now is None else now) - self.created_at

    def idle_seconds(self, now: Optional[float] = None) -> float:
        """Get time since last access."""
        return (time.time() if now is None else now) - self.accessed_at


@dataclass
class CacheEntry:
    """A cache entry with value, cost, TTL and metadata.

    Attributes:
        key: Cache key
        value: Cached value
        size_cost: Cost charged against the store capacity
        ttl_seconds: Time to live in seconds
        state: Entry state
        metadata: Entry metadata
    """

    key: str
    value: Any
    size_cost: int = 1
    ttl_seconds: Optional[float] = None
    state: EntryState = EntryState.VALID
    metadata: EntryMetadata = field(default_factory=EntryMetadata)

    @property
    def expires_at(self) -> Optional[float]:
        """Get expiration timestamp."""
        if self.ttl_seconds is None:
            return None
        return self.metadata.created_at + self.ttl_seconds

    @property
    def is_dirty(self) -> bool:
        """Check if a write-behind flush is pending."""
        return self.state == EntryState.DIRTY

    @property
    def version(self) -> int:
        return self.metadata.version

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Check if entry has expired at ``now``."""
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return (time.time() if now is None else now) >= expires_at

    def remaining_ttl(self, now: Optional[float] = None) -> Optional[float]:
        """Get remaining TTL in seconds."""
        expires_at = self.expires_at
        if expires_at is None:
            return None
        return max(0.0, expires_at - (time.time() if now is None else now))

    def touch(self, now: Optional[float] = None) -> None:
        """Record a read."""
        self.metadata.touch(now)

    def update_value(
        self,
        value: Any,
        size_cost: int,
        ttl: Optional[float],
        now: Optional[float] = None,
    ) -> None:
        """Overwrite the cached value.

        Resets creation time (and so expiry) and bumps the version.

        Args:
            value: New value
            size_cost: New cost
            ttl: New TTL, None for no expiry
            now: Current time
        """
        now = time.time() if now is None else now
        self.value = value
        self.size_cost = size_cost
        self.ttl_seconds = ttl
        self.metadata.created_at = now
        self.metadata.accessed_at = now
        self.metadata.version += 1
        self.state = EntryState.VALID

    def mark_dirty(self) -> None:
        """Mark entry as pending write-behind."""
        self.state = EntryState.DIRTY

    def mark_clean(self) -> None:
        """Mark entry as persisted."""
        if self.state == EntryState.DIRTY:
            self.state = EntryState.VALID

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary representation
        """
        return {
            "key": self.key,
            "value": self.value,
            "size_cost": self.size_cost,
            "ttl_seconds": self.ttl_seconds,
            "expires_at": self.expires_at,
            "state": self.state.name,
            "metadata": {
                "created_at": self.metadata.created_at,
                "accessed_at": self.metadata.accessed_at,
                "access_count": self.metadata.access_count,
                "version": self.metadata.version,
            },
        }

    def __repr__(self) -> str:
        return (
            f"CacheEntry(key={self.key!r}, state={self.state.name}, "
            f"cost={self.size_cost}, ttl={self.ttl_seconds})"
        )


__all__ = ["CacheEntry", "EntryState", "EntryMetadata"]
