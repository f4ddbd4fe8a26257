"""
Timing Utilities
================
Millisecond clock and countdown formatting shared by the OTP service
and the rate tracker.
"""

import math
import time
from typing import Callable

Clock = Callable[[], int]

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def seconds_until(deadline_ms: int, now: int) -> int:
    """Whole seconds left before deadline_ms, rounded up. Never negative."""
    remaining = deadline_ms - now
    if remaining <= 0:
        return 0
    return math.ceil(remaining / MS_PER_SECOND)


def format_time(seconds: int) -> str:
    """
    Format a countdown as ``m:ss``.

    Examples:
        >>> format_time(299)
        '4:59'
        >>> format_time(5)
        '0:05'
    """
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"
