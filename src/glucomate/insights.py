"""Generación de mensajes de insight y tendencia a partir de lecturas.

All functions are pure: readings are expected newest first and are never
re-sorted or mutated. Rule tables are evaluated in order and the first
matching rule wins.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from glucomate.model import WEEK_MS, Reading, ReadingType, Trend, now_ms
from glucomate.stats import mean_value, readings_in_range, round_half_up

HOUR_MS = 60 * 60 * 1000

TREND_THRESHOLD = 10
WEEKLY_DIFF_THRESHOLD = 5

MSG_ONBOARDING = "Start tracking your glucose levels to get personalized insights! 📊"
MSG_FIRST_READING = "Great start! Add more readings to see trends and patterns. 🎯"
MSG_LATEST_LOW = (
    "⚠️ Your latest reading is low. "
    "Consider having a snack and retest in 15 minutes."
)
MSG_LATEST_HIGH = (
    "⚠️ Your latest reading is high. Stay hydrated and monitor closely."
)
MSG_LATEST_ELEVATED = (
    "📈 Your latest reading is slightly elevated. "
    "Consider reviewing your recent meals."
)
MSG_AVERAGE_LOW = (
    "💡 Your average is on the lower side. "
    "Discuss with your doctor about adjusting your management plan."
)
MSG_AVERAGE_HIGH = (
    "💡 Your average is higher than target. "
    "Consider reviewing your diet and medication with your doctor."
)
MSG_EXCELLENT = (
    "✨ Excellent! Your glucose levels are well-controlled. "
    "Keep up the great work!"
)
MSG_GREAT_CONTROL = "👍 Great control! Your average is in the optimal range."
MSG_VARIABILITY = (
    "📊 Your readings show high variability. "
    "Try to maintain consistent meal and activity patterns."
)
MSG_FASTING_ELEVATED = (
    "🌅 Your fasting readings are elevated. "
    "Consider discussing with your healthcare provider."
)
MSG_FASTING_GREAT = (
    "🌅 Your fasting glucose levels look great! Keep maintaining your routine."
)
MSG_POST_MEAL_HIGH = (
    "🍽️ Post-meal readings are high. "
    "Consider portion control or reviewing your meal choices."
)
MSG_STREAK = (
    "🎉 Amazing! All your recent readings are in the target range. "
    "You're doing fantastic!"
)
MSG_CONSISTENCY = (
    "⏰ Great consistency! "
    "Regular monitoring helps you understand your patterns better."
)
MSG_DEFAULT = (
    "📈 Keep tracking consistently to get better insights "
    "into your glucose patterns!"
)

MSG_WEEKLY_TOO_FEW = "Add more readings to see weekly trends!"
MSG_WEEKLY_NO_CURRENT = "No readings this week. Stay consistent with your tracking!"
MSG_WEEKLY_NO_PREVIOUS = (
    "Keep tracking! Add more readings to see weekly comparisons."
)

_TREND_EMOJI = {Trend.UP: "📈", Trend.DOWN: "📉", Trend.STABLE: "➡️"}


@dataclass(frozen=True)
class InsightContext:
    """Inputs shared by every insight rule."""

    readings: Sequence[Reading]
    latest: Reading | None
    average: float


@dataclass(frozen=True)
class InsightRule:
    """Predicate plus the message it produces when it matches."""

    name: str
    predicate: Callable[[InsightContext], bool]
    message: Callable[[InsightContext], str]


def _const(text: str) -> Callable[[object], str]:
    return lambda _ctx: text


def _recent_of_type(
    readings: Sequence[Reading], reading_type: ReadingType, limit: int
) -> list[Reading]:
    return [r for r in readings if r.type == reading_type][:limit]


def _in_target(value: float) -> bool:
    return 70 <= value <= 140


def _latest_value(ctx: InsightContext) -> float | None:
    return ctx.latest.value if ctx.latest is not None else None


def _latest_low(ctx: InsightContext) -> bool:
    value = _latest_value(ctx)
    return value is not None and value < 70


def _latest_high(ctx: InsightContext) -> bool:
    value = _latest_value(ctx)
    return value is not None and value > 180


def _latest_elevated(ctx: InsightContext) -> bool:
    value = _latest_value(ctx)
    return value is not None and 140 <= value <= 180


def _high_variability(ctx: InsightContext) -> bool:
    values = [r.value for r in ctx.readings[:7]]
    if not values:
        return False
    return max(values) - min(values) > 100


def _fasting_mean(ctx: InsightContext) -> float | None:
    fasting = _recent_of_type(ctx.readings, ReadingType.FASTING, 3)
    if len(fasting) < 3:
        return None
    return mean_value(fasting)


def _fasting_elevated(ctx: InsightContext) -> bool:
    avg = _fasting_mean(ctx)
    return avg is not None and avg > 110


def _fasting_great(ctx: InsightContext) -> bool:
    avg = _fasting_mean(ctx)
    return avg is not None and 70 <= avg <= 100


def _post_meal_high(ctx: InsightContext) -> bool:
    post_meal = _recent_of_type(ctx.readings, ReadingType.POST_MEAL, 3)
    return len(post_meal) >= 3 and mean_value(post_meal) > 140


def _in_range_streak(ctx: InsightContext) -> bool:
    if len(ctx.readings) < 7:
        return False
    return all(_in_target(r.value) for r in ctx.readings[:7])


def _consistent_logging(ctx: InsightContext) -> bool:
    if len(ctx.readings) < 5:
        return False
    recent = ctx.readings[:5]
    return all(
        abs(cur.timestamp - prev.timestamp) <= 24 * HOUR_MS
        for prev, cur in zip(recent, recent[1:])
    )


INSIGHT_RULES: tuple[InsightRule, ...] = (
    InsightRule("no_readings", lambda c: len(c.readings) == 0, _const(MSG_ONBOARDING)),
    InsightRule(
        "single_reading", lambda c: len(c.readings) == 1, _const(MSG_FIRST_READING)
    ),
    InsightRule("latest_low", _latest_low, _const(MSG_LATEST_LOW)),
    InsightRule("latest_high", _latest_high, _const(MSG_LATEST_HIGH)),
    InsightRule("latest_elevated", _latest_elevated, _const(MSG_LATEST_ELEVATED)),
    InsightRule("average_low", lambda c: c.average < 80, _const(MSG_AVERAGE_LOW)),
    InsightRule("average_high", lambda c: c.average > 130, _const(MSG_AVERAGE_HIGH)),
    InsightRule(
        "average_excellent",
        lambda c: 100 <= c.average <= 110,
        _const(MSG_EXCELLENT),
    ),
    InsightRule(
        "average_great",
        lambda c: 80 <= c.average < 100,
        _const(MSG_GREAT_CONTROL),
    ),
    InsightRule("high_variability", _high_variability, _const(MSG_VARIABILITY)),
    InsightRule("fasting_elevated", _fasting_elevated, _const(MSG_FASTING_ELEVATED)),
    InsightRule("fasting_great", _fasting_great, _const(MSG_FASTING_GREAT)),
    InsightRule("post_meal_high", _post_meal_high, _const(MSG_POST_MEAL_HIGH)),
    InsightRule("in_range_streak", _in_range_streak, _const(MSG_STREAK)),
    InsightRule("consistent_logging", _consistent_logging, _const(MSG_CONSISTENCY)),
    InsightRule("default", lambda _c: True, _const(MSG_DEFAULT)),
)


def _first_match(rules: Sequence[InsightRule], ctx: InsightContext) -> InsightRule:
    for rule in rules:
        if rule.predicate(ctx):
            return rule
    # La última regla siempre coincide.
    return rules[-1]


def matching_rule(
    readings: Sequence[Reading], latest_reading: Reading | None, average: float
) -> str:
    """Name of the insight rule that wins for these inputs."""
    ctx = InsightContext(readings, latest_reading, average)
    return _first_match(INSIGHT_RULES, ctx).name


def generate_insight(
    readings: Sequence[Reading], latest_reading: Reading | None, average: float
) -> str:
    """Return a single personalized insight sentence.

    Args:
        readings: Readings sorted newest first.
        latest_reading: Most recent reading, or None.
        average: Display average of ``readings``.

    Returns:
        Message of the first matching rule in :data:`INSIGHT_RULES`.
    """
    ctx = InsightContext(readings, latest_reading, average)
    return _first_match(INSIGHT_RULES, ctx).message(ctx)


def get_trend(readings: Sequence[Reading]) -> Trend:
    """Compare the newest value with the mean of the next two."""
    if len(readings) < 3:
        return Trend.STABLE
    newest = readings[0].value
    previous = (readings[1].value + readings[2].value) / 2
    if newest > previous + TREND_THRESHOLD:
        return Trend.UP
    if newest < previous - TREND_THRESHOLD:
        return Trend.DOWN
    return Trend.STABLE


def trend_emoji(trend: Trend) -> str:
    """Emoji para mostrar la tendencia."""
    return _TREND_EMOJI[Trend(trend)]


@dataclass(frozen=True)
class WeeklyContext:
    """Current and previous 7-day windows with their display averages."""

    current: Sequence[Reading]
    previous: Sequence[Reading]
    current_avg: float
    previous_avg: float

    @property
    def difference(self) -> float:
        return self.current_avg - self.previous_avg


@dataclass(frozen=True)
class WeeklyRule:
    """Weekly rule: predicate plus message builder."""

    name: str
    predicate: Callable[[WeeklyContext], bool]
    message: Callable[[WeeklyContext], str]


def _fasting_highs(ctx: WeeklyContext) -> int:
    return sum(
        1 for r in ctx.current if r.type == ReadingType.FASTING and r.value > 110
    )


def _post_meal_spikes(ctx: WeeklyContext) -> int:
    return sum(
        1 for r in ctx.current if r.type == ReadingType.POST_MEAL and r.value > 160
    )


def _lows(ctx: WeeklyContext) -> int:
    return sum(1 for r in ctx.current if r.value < 70)


WEEKLY_RULES: tuple[WeeklyRule, ...] = (
    WeeklyRule(
        "average_rose",
        lambda c: c.difference > WEEKLY_DIFF_THRESHOLD,
        lambda c: (
            f"📈 Your glucose average rose this week "
            f"({c.current_avg} vs {c.previous_avg} mg/dL last week)."
        ),
    ),
    WeeklyRule(
        "average_improved",
        lambda c: c.difference < -WEEKLY_DIFF_THRESHOLD,
        lambda c: (
            f"📉 Great job — readings improved this week! "
            f"({c.current_avg} vs {c.previous_avg} mg/dL last week)"
        ),
    ),
    WeeklyRule(
        "fasting_highs",
        lambda c: _fasting_highs(c) >= 3,
        lambda c: (
            f"🌅 You've had {_fasting_highs(c)} high fasting readings recently. "
            "Consider reviewing your evening routine."
        ),
    ),
    WeeklyRule(
        "post_meal_spikes",
        lambda c: _post_meal_spikes(c) >= 3,
        lambda c: (
            f"🍽️ You've had {_post_meal_spikes(c)} post-meal spikes this week. "
            "Consider portion sizes or meal composition."
        ),
    ),
    WeeklyRule(
        "frequent_lows",
        lambda c: _lows(c) >= 2,
        lambda c: (
            f"⚠️ You've had {_lows(c)} low readings this week. "
            "Discuss with your healthcare provider if this continues."
        ),
    ),
    WeeklyRule(
        "well_tracked_week",
        lambda c: len(c.current) >= 7,
        lambda c: (
            f"✅ Stable week with {len(c.current)} readings. Keep tracking daily!"
        ),
    ),
    WeeklyRule(
        "stable_week",
        lambda _c: True,
        lambda c: (
            f"➡️ Stable week. Keep tracking daily! "
            f"({len(c.current)} readings this week)"
        ),
    ),
)


def weekly_windows(
    readings: Sequence[Reading], reference_time: int
) -> tuple[list[Reading], list[Reading]]:
    """Split readings into the last 7 days and the 7 days before that.

    Both windows are inclusive at their edges, so a reading exactly one
    week before ``reference_time`` belongs to both.
    """
    current_start = reference_time - WEEK_MS
    previous_start = reference_time - 2 * WEEK_MS
    current = readings_in_range(readings, current_start, reference_time)
    previous = readings_in_range(readings, previous_start, current_start)
    return current, previous


def get_weekly_insight(
    readings: Sequence[Reading], reference_time: int | None = None
) -> str:
    """Week-over-week commentary.

    Args:
        readings: Readings, newest first.
        reference_time: "Now" in ms; defaults to the wall clock.

    Returns:
        Guard message when data is missing, otherwise the first matching
        message of :data:`WEEKLY_RULES`.
    """
    if len(readings) < 2:
        return MSG_WEEKLY_TOO_FEW
    if reference_time is None:
        reference_time = now_ms()

    current, previous = weekly_windows(readings, reference_time)
    if not current:
        return MSG_WEEKLY_NO_CURRENT
    if not previous:
        return MSG_WEEKLY_NO_PREVIOUS

    ctx = WeeklyContext(
        current=current,
        previous=previous,
        current_avg=round_half_up(mean_value(current)),
        previous_avg=round_half_up(mean_value(previous)),
    )
    for rule in WEEKLY_RULES:
        if rule.predicate(ctx):
            return rule.message(ctx)
    return WEEKLY_RULES[-1].message(ctx)
