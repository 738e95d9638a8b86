"""Estadísticas agregadas sobre lecturas de glucosa."""

from __future__ import annotations

import math
from collections.abc import Sequence

from glucomate.model import (
    DAY_MS,
    DetailedStats,
    Reading,
    ReadingsByType,
    ReadingType,
    StatsSnapshot,
    now_ms,
)

LOW_THRESHOLD = 70
HIGH_THRESHOLD = 140

STATUS_LOW = "Low"
STATUS_NORMAL = "Normal"
STATUS_HIGH = "High"


def classify_value(value: float) -> str:
    """Clasifica un valor en Low / Normal / High (rango 70-140 inclusive)."""
    if value < LOW_THRESHOLD:
        return STATUS_LOW
    if value > HIGH_THRESHOLD:
        return STATUS_HIGH
    return STATUS_NORMAL


def round_half_up(value: float) -> int | float:
    """Round to the nearest integer, halves away from negative infinity.

    ``round()`` uses banker's rounding (70.5 -> 70); display averages
    need 70.5 -> 71. NaN and infinities are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    return int(math.floor(value + 0.5))


def mean_value(readings: Sequence[Reading]) -> float:
    """Arithmetic mean of values; 0 for an empty sequence."""
    if not readings:
        return 0
    return sum(r.value for r in readings) / len(readings)


def readings_in_range(
    readings: Sequence[Reading], start: int, end: int
) -> list[Reading]:
    """Filtra lecturas con ``start <= timestamp <= end`` conservando el orden."""
    return [r for r in readings if start <= r.timestamp <= end]


def compute_stats(readings: Sequence[Reading]) -> StatsSnapshot:
    """Compute average, extremes and range counts.

    Args:
        readings: Any sequence of readings, possibly empty.

    Returns:
        Stats snapshot. ``highest``/``lowest`` keep the first reading
        encountered among equal values.
    """
    if not readings:
        return StatsSnapshot.empty()

    highest = readings[0]
    lowest = readings[0]
    in_range = high_count = low_count = 0
    for r in readings:
        if r.value > highest.value:
            highest = r
        if r.value < lowest.value:
            lowest = r
        status = _bucket(r.value)
        if status == STATUS_LOW:
            low_count += 1
        elif status == STATUS_HIGH:
            high_count += 1
        elif status == STATUS_NORMAL:
            in_range += 1

    return StatsSnapshot(
        average=round_half_up(mean_value(readings)),
        highest=highest,
        lowest=lowest,
        total=len(readings),
        in_range=in_range,
        high_count=high_count,
        low_count=low_count,
    )


def compute_windowed_stats(
    readings: Sequence[Reading], window_days: float, reference_time: int
) -> StatsSnapshot:
    """Stats over readings within ``window_days`` before ``reference_time``."""
    start = reference_time - window_days * DAY_MS
    return compute_stats(readings_in_range(readings, start, reference_time))


def partition_by_type(readings: Sequence[Reading]) -> ReadingsByType:
    """Agrupa lecturas por tipo conservando el orden de entrada."""
    return ReadingsByType(
        fasting=tuple(r for r in readings if r.type == ReadingType.FASTING),
        post_meal=tuple(r for r in readings if r.type == ReadingType.POST_MEAL),
        random=tuple(r for r in readings if r.type == ReadingType.RANDOM),
    )


def get_detailed_stats(
    readings: Sequence[Reading],
    days: float = 14,
    reference_time: int | None = None,
) -> DetailedStats:
    """Windowed stats plus a by-type partition of the window.

    Args:
        readings: Readings, newest first.
        days: Lookback window in days.
        reference_time: End of the window in ms; defaults to now.

    Returns:
        Detailed stats; zeros and empty buckets when the window is empty.
    """
    if reference_time is None:
        reference_time = now_ms()
    start = reference_time - days * DAY_MS
    period = readings_in_range(readings, start, reference_time)
    snapshot = compute_stats(period)
    return DetailedStats(
        average=snapshot.average,
        highest=snapshot.highest,
        lowest=snapshot.lowest,
        total=snapshot.total,
        in_range=snapshot.in_range,
        high_count=snapshot.high_count,
        low_count=snapshot.low_count,
        by_type=partition_by_type(period),
    )


def _bucket(value: float) -> str | None:
    # NaN no cae en ningún rango.
    if math.isnan(value):
        return None
    return classify_value(value)
