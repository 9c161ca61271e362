"""
Time semantics utilities for deadline-based timing.

The timer never counts down in memory. While a phase runs, the only
source of truth is an absolute deadline in epoch milliseconds; remaining
time is derived from it against the wall clock on every poll or resume.
"""

import math
import time
from datetime import date, datetime, timedelta
from typing import Callable, Optional

Clock = Callable[[], int]


def current_time_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def compute_end_time(now_ms: int, remaining_seconds: int) -> int:
    """Absolute deadline for a phase with the given seconds left."""
    return now_ms + remaining_seconds * 1000


def remaining_seconds(end_time_ms: Optional[int], now_ms: int) -> int:
    """
    Whole seconds left until the deadline, never negative.

    Args:
        end_time_ms: Absolute deadline in epoch milliseconds
        now_ms: Current time in epoch milliseconds

    Returns:
        floor((end_time_ms - now_ms) / 1000) clamped at 0; 0 if no deadline
    """
    if end_time_ms is None:
        return 0
    return max(0, math.floor((end_time_ms - now_ms) / 1000))


def ms_to_local_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000)


def format_calendar_day(timestamp_ms: int) -> str:
    """Local calendar day as YYYY-MM-DD."""
    return ms_to_local_datetime(timestamp_ms).strftime("%Y-%m-%d")


def format_clock_time(timestamp_ms: int) -> str:
    """Local clock time as HH:MM."""
    return ms_to_local_datetime(timestamp_ms).strftime("%H:%M")


def format_remaining(seconds: int) -> str:
    """Render a countdown as MM:SS (minutes are not wrapped at 60)."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def week_start(day: date) -> date:
    """Monday of the ISO week containing the given day."""
    return day - timedelta(days=day.weekday())
