"""KeelCache Errors - Exception Hierarchy.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        message: Human-readable message
        context: Extra details for logging
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(CacheError, ValueError):
    """Raised for invalid cache configuration."""


class CapacityExceededError(CacheError):
    """Raised when a single entry cannot fit even in an empty cache."""

    def __init__(self, key: str, size_cost: int, capacity: int):
        super().__init__(
            f"Entry {key!r} costs {size_cost}, capacity is {capacity}",
            {"key": key, "size_cost": size_cost, "capacity": capacity},
        )
        self.key = key
        self.size_cost = size_cost
        self.capacity = capacity


class NotFoundError(CacheError, KeyError):
    """Raised on a miss when no loader can supply the value."""

    def __init__(self, key: str):
        super().__init__(f"Key {key!r} not found", {"key": key})
        self.key = key

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return self.message


class SourceError(CacheError):
    """Failure of an external loader or writer.

    The underlying exception is chained as ``__cause__``.
    """

    operation = "access"

    def __init__(self, key: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"Source {self.operation} failed for {key!r}{detail}",
            {"key": key, "cause": repr(cause) if cause is not None else None},
        )
        self.key = key
        self.cause = cause


class SourceLoadError(SourceError):
    """Loader raised while fetching a missed key."""

    operation = "load"


class SourceWriteError(SourceError):
    """Writer raised while persisting a key."""

    operation = "write"


class SourceTimeoutError(SourceError, TimeoutError):
    """Loader or writer did not answer within the allowed time."""

    operation = "call"

    def __init__(self, key: str, timeout: float):
        CacheError.__init__(
            self,
            f"Source call for {key!r} timed out after {timeout:.3f}s",
            {"key": key, "timeout": timeout},
        )
        self.key = key
        self.cause = None
        self.timeout = timeout


class QueueFullError(CacheError):
    """Write-behind backlog is saturated."""

    def __init__(self, key: str, depth: int):
        super().__init__(
            f"Write-behind queue full (depth={depth}), rejected {key!r}",
            {"key": key, "depth": depth},
        )
        self.key = key
        self.depth = depth


__all__ = [
    "CacheError",
    "ConfigurationError",
    "CapacityExceededError",
    "NotFoundError",
    "SourceError",
    "SourceLoadError",
    "SourceWriteError",
    "SourceTimeoutError",
    "QueueFullError",
]
