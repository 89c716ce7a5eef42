"""KeelCache Backoff - Bounded Exponential Retry Delays.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import random
from typing import Optional


def calculate_backoff_delay(
    attempt: int,
    base_delay: float = 0.05,
    max_delay: float = 2.0,
    exponential_base: float = 2.0,
    jitter: bool = False,
    jitter_factor: float = 0.25,
    rng: Optional[random.Random] = None,
) -> float:
    """Calculate delay before a retry.

    delay = min(base_delay * exponential_base ** attempt, max_delay),
    optionally spread by +/- ``jitter_factor`` of itself.

    Args:
        attempt: Retry number (0 for the first retry)
        base_delay: Delay before the first retry in seconds
        max_delay: Upper bound in seconds
        exponential_base: Growth factor per retry
        jitter: Whether to add random jitter
        jitter_factor: Jitter fraction (0.25 = +/-25%)
        rng: Random source for jitter

    Returns:
        Delay in seconds, never negative and never above max_delay
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)

    if jitter and delay > 0:
        jitter_amount = delay * jitter_factor
        delay += (rng or random).uniform(-jitter_amount, jitter_amount)

    return min(max(0.0, delay), max_delay)


__all__ = ["calculate_backoff_delay"]
