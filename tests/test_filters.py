from __future__ import annotations

from datetime import datetime

from dateutil import tz

from glucomate.filters import DateRange, FilterOptions, filter_readings, range_start
from glucomate.model import DAY_MS, Reading, ReadingType

_ZONE = tz.gettz("America/Argentina/Buenos_Aires")


def _ms(*args: int) -> int:
    return int(datetime(*args, tzinfo=_ZONE).timestamp() * 1000)


REF = _ms(2025, 10, 9, 15, 0)


def _r(rid: str, ts: int, rtype: ReadingType = ReadingType.RANDOM) -> Reading:
    return Reading(id=rid, type=rtype, value=100, timestamp=ts)


def test_today_starts_at_local_midnight() -> None:
    readings = [
        _r("today", _ms(2025, 10, 9, 0, 30)),
        _r("yesterday", _ms(2025, 10, 8, 23, 30)),
    ]
    out = filter_readings(readings, FilterOptions(date_range=DateRange.TODAY), REF, _ZONE)
    assert [r.id for r in out] == ["today"]
    assert range_start(DateRange.TODAY, REF, _ZONE) == _ms(2025, 10, 9, 0, 0)


def test_week_and_month_are_rolling_windows() -> None:
    readings = [
        _r("d6", REF - 6 * DAY_MS),
        _r("d8", REF - 8 * DAY_MS),
        _r("d31", REF - 31 * DAY_MS),
    ]
    week = filter_readings(readings, FilterOptions(date_range=DateRange.WEEK), REF, _ZONE)
    month = filter_readings(
        readings, FilterOptions(date_range=DateRange.MONTH), REF, _ZONE
    )
    assert [r.id for r in week] == ["d6"]
    assert [r.id for r in month] == ["d6", "d8"]


def test_type_filter_and_all_range() -> None:
    readings = [
        _r("f", REF, ReadingType.FASTING),
        _r("p", REF - 1, ReadingType.POST_MEAL),
        _r("old", REF - 400 * DAY_MS, ReadingType.FASTING),
    ]
    out = filter_readings(readings, FilterOptions(type=ReadingType.FASTING), REF, _ZONE)
    assert [r.id for r in out] == ["f", "old"]
    assert range_start(DateRange.ALL, REF, _ZONE) is None


def test_active_count() -> None:
    assert FilterOptions().active_count == 0
    assert FilterOptions(type=ReadingType.RANDOM).active_count == 1
    assert (
        FilterOptions(type=ReadingType.RANDOM, date_range=DateRange.WEEK).active_count
        == 2
    )
