from __future__ import annotations

import pytest

from glucomate.model import DetailedStats, Reading, ReadingType, StatsSnapshot

REF = 1_760_000_000_000


def test_create_generates_unique_ids_and_defaults() -> None:
    a = Reading.create(100, ReadingType.FASTING, now=REF)
    b = Reading.create(100, ReadingType.FASTING, now=REF)
    assert a.id != b.id
    assert a.timestamp == REF
    assert a.notes is None


def test_create_accepts_type_label_and_drops_empty_notes() -> None:
    r = Reading.create(150, "Post-meal", REF - 1, "")
    assert r.type == ReadingType.POST_MEAL
    assert r.timestamp == REF - 1
    assert r.notes is None


def test_from_dict_rejects_unknown_type() -> None:
    with pytest.raises(ValueError):
        Reading.from_dict({"id": "a", "type": "Snack", "value": 1, "timestamp": 1})


def test_from_dict_requires_fields() -> None:
    with pytest.raises(KeyError):
        Reading.from_dict({"id": "a", "type": "Random", "value": 1})


def test_reading_is_immutable() -> None:
    r = Reading.create(100, ReadingType.RANDOM, now=REF)
    with pytest.raises(AttributeError):
        r.value = 120  # type: ignore[misc]


def test_detailed_stats_defaults_to_empty_buckets() -> None:
    empty = StatsSnapshot.empty()
    detailed = DetailedStats(
        average=empty.average,
        highest=empty.highest,
        lowest=empty.lowest,
        total=empty.total,
        in_range=empty.in_range,
        high_count=empty.high_count,
        low_count=empty.low_count,
    )
    assert detailed.by_type.fasting == ()
    assert detailed.by_type.random == ()
