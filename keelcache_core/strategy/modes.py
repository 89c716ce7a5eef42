"""KeelCache Strategy Modes.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from enum import Enum


class StrategyType(Enum):
    """Read/write strategies."""

    ASIDE = "aside"                   # Caller loads and stores
    READ_THROUGH = "read_through"     # Cache loads on miss
    WRITE_THROUGH = "write_through"   # Persist, then cache
    WRITE_BEHIND = "write_behind"     # Cache, persist asynchronously


__all__ = ["StrategyType"]
