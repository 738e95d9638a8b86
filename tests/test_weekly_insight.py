from __future__ import annotations

import pytest

from glucomate import insights
from glucomate.insights import get_weekly_insight, weekly_windows
from glucomate.model import DAY_MS, WEEK_MS, Reading, ReadingType

REF = 1_760_000_000_000

R = ReadingType.RANDOM
F = ReadingType.FASTING
P = ReadingType.POST_MEAL


def _week(
    current: list[float],
    previous: list[float],
    current_type: ReadingType = R,
) -> list[Reading]:
    """Current-week readings at REF - (i+1)h, previous-week at REF - 8d - ih."""
    hour = DAY_MS // 24
    out = [
        Reading(id=f"c{i}", type=current_type, value=v, timestamp=REF - (i + 1) * hour)
        for i, v in enumerate(current)
    ]
    out += [
        Reading(id=f"p{i}", type=R, value=v, timestamp=REF - 8 * DAY_MS - i * hour)
        for i, v in enumerate(previous)
    ]
    return out


def test_too_few_readings() -> None:
    assert get_weekly_insight([], REF) == insights.MSG_WEEKLY_TOO_FEW
    assert get_weekly_insight(_week([100], []), REF) == insights.MSG_WEEKLY_TOO_FEW


def test_no_readings_this_week() -> None:
    assert get_weekly_insight(_week([], [100, 110]), REF) == (
        insights.MSG_WEEKLY_NO_CURRENT
    )


def test_no_previous_week() -> None:
    assert get_weekly_insight(_week([100, 110], []), REF) == (
        insights.MSG_WEEKLY_NO_PREVIOUS
    )


def test_average_rose_mentions_both_averages() -> None:
    msg = get_weekly_insight(_week([120, 120], [110, 110]), REF)
    assert "rose this week" in msg
    assert "120" in msg
    assert "110" in msg


def test_average_improved() -> None:
    msg = get_weekly_insight(_week([100, 100], [120, 120]), REF)
    assert "improved this week" in msg
    assert "(100 vs 120 mg/dL last week)" in msg


def test_difference_of_five_is_not_a_change() -> None:
    msg = get_weekly_insight(_week([105, 105], [100, 100]), REF)
    assert "rose" not in msg
    assert msg.startswith("➡️ Stable week.")


def test_fasting_highs_counted() -> None:
    readings = _week([115, 115, 115], [115], current_type=F)
    msg = get_weekly_insight(readings, REF)
    assert "3 high fasting readings" in msg


def test_post_meal_spikes_counted() -> None:
    readings = _week([165, 165, 170], [166], current_type=P)
    msg = get_weekly_insight(readings, REF)
    assert "3 post-meal spikes" in msg


def test_frequent_lows() -> None:
    msg = get_weekly_insight(_week([65, 66], [65]), REF)
    assert "2 low readings this week" in msg


def test_well_tracked_week() -> None:
    msg = get_weekly_insight(_week([100] * 7, [100]), REF)
    assert msg == "✅ Stable week with 7 readings. Keep tracking daily!"


def test_stable_week_default() -> None:
    msg = get_weekly_insight(_week([100, 100], [100]), REF)
    assert msg == "➡️ Stable week. Keep tracking daily! (2 readings this week)"


def test_weekly_windows_boundary_in_both_weeks() -> None:
    edge = Reading(id="edge", type=R, value=100, timestamp=REF - WEEK_MS)
    old = Reading(id="old", type=R, value=100, timestamp=REF - 2 * WEEK_MS - 1)
    current, previous = weekly_windows([edge, old], REF)
    assert [r.id for r in current] == ["edge"]
    assert [r.id for r in previous] == ["edge"]


def test_reference_time_defaults_to_now(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(insights, "now_ms", lambda: REF)
    msg = get_weekly_insight(_week([120, 120], [110, 110]))
    assert "rose this week" in msg


def test_overflowing_week_average_does_not_raise() -> None:
    msg = get_weekly_insight(_week([1e308, 1e308], [100]), REF)
    assert "rose this week" in msg
