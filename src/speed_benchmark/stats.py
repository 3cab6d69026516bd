"""
Summary statistics for latency samples and transfer rates.

Pure functions only; callers sort their samples before asking for a percentile.
"""

import math
from collections.abc import Sequence
from datetime import timedelta


def average_duration(items: Sequence[timedelta]) -> timedelta:
    """
    Arithmetic mean of the durations, truncated to the timedelta resolution.

    Args:
        items: Durations to average

    Returns:
        The mean, or a zero timedelta for an empty sequence
    """
    if not items:
        return timedelta(0)
    return sum(items, timedelta(0)) // len(items)


def percentile_duration(items: Sequence[timedelta], percentile: float) -> timedelta:
    """
    Nearest-rank percentile over an ascending sequence.

    Args:
        items: Durations sorted ascending
        percentile: Fraction between 0 and 1

    Returns:
        The element at index ceil(len * percentile) - 1, clamped to the valid range
    """
    if not items:
        return timedelta(0)
    if percentile <= 0:
        return items[0]
    if percentile >= 1:
        return items[-1]

    index = math.ceil(len(items) * percentile) - 1
    index = max(index, 0)
    index = min(index, len(items) - 1)
    return items[index]


def bytes_to_mbps(num_bytes: int, duration: timedelta) -> float:
    """Convert a byte count over a duration to megabits per second."""
    seconds = duration.total_seconds()
    if seconds <= 0:
        return 0.0
    return num_bytes * 8 / seconds / 1_000_000


def clamp_percent(percent: float) -> float:
    if percent < 0:
        return 0.0
    if percent > 100:
        return 100.0
    return percent


def percent_done(current: int, total: int) -> float:
    """Share of ``total`` bytes already moved, as a percentage."""
    if total <= 0:
        return 0.0
    return clamp_percent(current / total * 100)


def percent_elapsed(elapsed: timedelta, target: timedelta) -> float:
    """Share of the ``target`` duration already elapsed, as a percentage."""
    if target <= timedelta(0):
        return 0.0
    return clamp_percent(elapsed / target * 100)
