"""
Expiry policy.

Timestamps are epoch milliseconds. ``INFINITE`` marks entries that never
expire; it is ``math.inf`` so it sorts after every real timestamp.
"""

import math
import time
from typing import Optional

INFINITE = math.inf


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000


def compute_expiration(lifetime: float = 0, now: Optional[float] = None) -> float:
    """
    Absolute expiration for an entry living ``lifetime`` ms from ``now``.

    Args:
        lifetime: Relative lifetime in milliseconds, or INFINITE
        now: Reference time (defaults to the current time)

    Returns:
        Absolute expiration timestamp, or INFINITE
    """
    if lifetime == INFINITE:
        return INFINITE
    if now is None:
        now = now_ms()
    return now + lifetime


def is_expired(expires_at: Optional[float] = 0, now: Optional[float] = None) -> bool:
    """Check whether ``expires_at`` has passed. A missing value counts as 0."""
    if expires_at is None:
        expires_at = 0
    if expires_at == INFINITE:
        return False
    if now is None:
        now = now_ms()
    return expires_at <= now
