from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from glucomate.errors import InvalidReadingError
from glucomate.model import Reading, ReadingType
from glucomate.storage import SQLiteStore

REF = 1_760_000_000_000


def test_save_and_list_newest_first(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "nested" / "app.sqlite3")
    older = store.save_reading(100.0, ReadingType.FASTING, REF - 5000, "ayuno")
    newer = store.save_reading(150.0, ReadingType.POST_MEAL, REF)
    middle = store.save_reading(120.0, ReadingType.RANDOM, REF - 1000)

    readings = store.list()
    assert [r.id for r in readings] == [newer.id, middle.id, older.id]
    assert readings[2].notes == "ayuno"
    assert readings[0].notes is None
    assert readings[0].type == ReadingType.POST_MEAL


@pytest.mark.parametrize("value", [0, -1, 600.5, 601])
def test_save_rejects_out_of_domain_values(tmp_path: Path, value: float) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    with pytest.raises(InvalidReadingError, match="between 1 and 600"):
        store.save_reading(value, ReadingType.RANDOM, REF)
    assert store.list() == []


def test_save_accepts_upper_bound(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    reading = store.save_reading(600, ReadingType.RANDOM, REF)
    assert store.get(reading.id) == reading


def test_save_rejects_long_notes(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    with pytest.raises(ValueError):
        store.save_reading(100, ReadingType.RANDOM, REF, "x" * 201)


def test_update_changes_fields(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    reading = store.save_reading(100, ReadingType.RANDOM, REF, "antes")

    updated = store.update(reading.id, value=130, type=ReadingType.POST_MEAL)
    assert updated is not None
    assert updated.id == reading.id
    assert updated.value == 130
    assert updated.type == ReadingType.POST_MEAL
    assert updated.notes == "antes"
    assert store.get(reading.id) == updated


def test_update_unknown_id_returns_none(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.update("nope", value=120) is None


def test_update_validates_and_rejects_unknown_fields(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    reading = store.save_reading(100, ReadingType.RANDOM, REF)
    with pytest.raises(InvalidReadingError):
        store.update(reading.id, value=0)
    with pytest.raises(TypeError):
        store.update(reading.id, id="other")
    assert store.get(reading.id) == reading


def test_remove(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    reading = store.save_reading(100, ReadingType.RANDOM, REF)
    assert store.remove(reading.id) is True
    assert store.remove(reading.id) is False
    assert store.list() == []


def test_by_date_range_and_type(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    a = store.save_reading(100, ReadingType.FASTING, REF)
    b = store.save_reading(110, ReadingType.RANDOM, REF - 10)
    store.save_reading(120, ReadingType.FASTING, REF - 11)

    assert [r.id for r in store.by_date_range(REF - 10, REF)] == [a.id, b.id]
    assert [r.value for r in store.by_type(ReadingType.FASTING)] == [100, 120]


def test_append_duplicate_id_raises(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    reading = Reading(id="a", type=ReadingType.RANDOM, value=100, timestamp=REF)
    store.append(reading)
    with pytest.raises(sqlite3.IntegrityError):
        store.append(reading)


def test_add_missing_skips_known_ids(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    store.append(Reading(id="a", type=ReadingType.RANDOM, value=100, timestamp=REF))
    added = store.add_missing(
        [
            Reading(id="a", type=ReadingType.RANDOM, value=999, timestamp=REF),
            Reading(id="b", type=ReadingType.FASTING, value=90, timestamp=REF - 1),
            Reading(id="b", type=ReadingType.FASTING, value=91, timestamp=REF - 2),
        ]
    )
    assert added == 1
    values = {r.id: r.value for r in store.list()}
    assert values == {"a": 100, "b": 90}


def test_clear(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    store.save_reading(100, ReadingType.RANDOM, REF)
    store.save_reading(110, ReadingType.RANDOM, REF - 1)
    assert store.clear() == 2
    assert store.list() == []


def test_last_export_timestamp(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.last_export_timestamp() is None
    store.mark_exported(REF)
    store.mark_exported(REF + 1)
    assert store.last_export_timestamp() == REF + 1

    store.set_setting("last_export_timestamp", "garbage")
    assert store.last_export_timestamp() is None


def test_reopen_keeps_data(tmp_path: Path) -> None:
    path = tmp_path / "app.sqlite3"
    reading = SQLiteStore(path).save_reading(100, ReadingType.RANDOM, REF)
    assert SQLiteStore(path).list() == [reading]
