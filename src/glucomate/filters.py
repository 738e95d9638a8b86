"""Filtros del historial por tipo y rango de fechas."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import Enum

from glucomate.model import DAY_MS, Reading, ReadingType


class DateRange(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


@dataclass(frozen=True)
class FilterOptions:
    """History filter; ``type=None`` means all types."""

    type: ReadingType | None = None
    date_range: DateRange = DateRange.ALL

    @property
    def active_count(self) -> int:
        return int(self.type is not None) + int(self.date_range != DateRange.ALL)


def range_start(date_range: DateRange, reference_time: int, zone: tzinfo) -> int | None:
    """First timestamp (ms) included by ``date_range``; None for ALL.

    TODAY starts at local midnight of the reference day, WEEK and MONTH
    are rolling 7 and 30 day windows.
    """
    date_range = DateRange(date_range)
    if date_range == DateRange.TODAY:
        ref = datetime.fromtimestamp(reference_time / 1000, tz=zone)
        midnight = ref.replace(hour=0, minute=0, second=0, microsecond=0)
        return int(midnight.timestamp() * 1000)
    if date_range == DateRange.WEEK:
        return reference_time - 7 * DAY_MS
    if date_range == DateRange.MONTH:
        return reference_time - 30 * DAY_MS
    return None


def filter_readings(
    readings: Sequence[Reading],
    options: FilterOptions,
    reference_time: int,
    zone: tzinfo,
) -> list[Reading]:
    """Apply type and date filters, keeping input order."""
    out = list(readings)
    if options.type is not None:
        out = [r for r in out if r.type == options.type]
    start = range_start(options.date_range, reference_time, zone)
    if start is not None:
        out = [r for r in out if r.timestamp >= start]
    return out
