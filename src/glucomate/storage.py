"""Persistencia SQLite para lecturas y configuracion clave/valor."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from glucomate.errors import InvalidReadingError
from glucomate.model import (
    MAX_NOTES_LENGTH,
    MAX_VALUE,
    MIN_VALUE_EXCLUSIVE,
    Reading,
    ReadingType,
)

logger = logging.getLogger(__name__)

LAST_EXPORT_KEY = "last_export_timestamp"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS readings (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    value REAL NOT NULL,
    timestamp INTEGER NOT NULL,
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_readings_timestamp
ON readings(timestamp);
"""

_UPDATABLE = ("type", "value", "timestamp", "notes")


def validate_reading(value: float, notes: str | None = None) -> None:
    """Check value domain (0, 600] and notes length.

    Raises:
        InvalidReadingError: If the value or notes are out of bounds.
    """
    if not MIN_VALUE_EXCLUSIVE < value <= MAX_VALUE:
        raise InvalidReadingError(
            "Invalid glucose value. Must be between 1 and 600 mg/dL"
        )
    if notes is not None and len(notes) > MAX_NOTES_LENGTH:
        raise InvalidReadingError(
            f"Notes must be at most {MAX_NOTES_LENGTH} characters"
        )


class SQLiteStore:
    """Repositorio SQLite de lecturas."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            self._migrate(conn)
            conn.commit()

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Apply lightweight schema migrations."""
        cols = {row["name"] for row in conn.execute("PRAGMA table_info(readings)")}
        if "notes" not in cols:
            conn.execute("ALTER TABLE readings ADD COLUMN notes TEXT")
        # Versiones previas guardaban notas vacías como ''.
        conn.execute("UPDATE readings SET notes = NULL WHERE notes = ''")

    def list(self) -> list[Reading]:
        """Todas las lecturas, más recientes primero."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, type, value, timestamp, notes FROM readings "
                "ORDER BY timestamp DESC"
            ).fetchall()
        return [_row_to_reading(row) for row in rows]

    def get(self, reading_id: str) -> Reading | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, type, value, timestamp, notes FROM readings WHERE id = ?",
                (reading_id,),
            ).fetchone()
        if row is None:
            return None
        return _row_to_reading(row)

    def append(self, reading: Reading) -> Reading:
        """Insert an already-built reading.

        Raises:
            sqlite3.IntegrityError: If the id already exists.
        """
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO readings(id, type, value, timestamp, notes) "
                "VALUES (?, ?, ?, ?, ?)",
                _reading_params(reading),
            )
            conn.commit()
        logger.debug("Saved reading %s (%s mg/dL)", reading.id, reading.value)
        return reading

    def save_reading(
        self,
        value: float,
        reading_type: ReadingType,
        timestamp: int | None = None,
        notes: str | None = None,
    ) -> Reading:
        """Validate and store a new reading.

        Args:
            value: Glucose value in mg/dL.
            reading_type: Fasting, Post-meal or Random.
            timestamp: Measurement time in ms; defaults to now.
            notes: Optional notes (max 200 characters).

        Returns:
            The stored reading.

        Raises:
            InvalidReadingError: If value or notes are invalid.
        """
        validate_reading(value, notes)
        return self.append(Reading.create(value, reading_type, timestamp, notes))

    def update(self, reading_id: str, **changes: Any) -> Reading | None:
        """Actualiza campos de una lectura. Devuelve None si no existe.

        Raises:
            InvalidReadingError: If the updated value or notes are invalid.
            TypeError: If an unknown field (or ``id``) is given.
        """
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise TypeError(f"Cannot update fields: {sorted(unknown)}")

        current = self.get(reading_id)
        if current is None:
            logger.info("Reading %s not found for update", reading_id)
            return None

        merged = {**current.to_dict(), **changes}
        merged["id"] = current.id
        updated = Reading.from_dict(merged)
        validate_reading(updated.value, updated.notes)

        with self._connect() as conn:
            conn.execute(
                "UPDATE readings SET type = ?, value = ?, timestamp = ?, notes = ? "
                "WHERE id = ?",
                (*_reading_params(updated)[1:], updated.id),
            )
            conn.commit()
        return updated

    def remove(self, reading_id: str) -> bool:
        """Borra por id. True si había una fila."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM readings WHERE id = ?", (reading_id,))
            conn.commit()
        return cur.rowcount > 0

    def by_date_range(self, start: int, end: int) -> list[Reading]:
        """Lecturas con ``start <= timestamp <= end``, más recientes primero."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, type, value, timestamp, notes FROM readings "
                "WHERE timestamp BETWEEN ? AND ? ORDER BY timestamp DESC",
                (start, end),
            ).fetchall()
        return [_row_to_reading(row) for row in rows]

    def by_type(self, reading_type: ReadingType) -> list[Reading]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, type, value, timestamp, notes FROM readings "
                "WHERE type = ? ORDER BY timestamp DESC",
                (ReadingType(reading_type).value,),
            ).fetchall()
        return [_row_to_reading(row) for row in rows]

    def add_missing(self, readings: Iterable[Reading]) -> int:
        """Inserta lecturas cuyo id no exista. Devuelve cuántas se agregaron."""
        existing = {r.id for r in self.list()}
        new_rows = []
        for reading in readings:
            if reading.id in existing:
                continue
            existing.add(reading.id)
            new_rows.append(_reading_params(reading))
        if not new_rows:
            return 0
        with self._connect() as conn:
            conn.executemany(
                "INSERT INTO readings(id, type, value, timestamp, notes) "
                "VALUES (?, ?, ?, ?, ?)",
                new_rows,
            )
            conn.commit()
        return len(new_rows)

    def clear(self) -> int:
        """Borra todas las lecturas. Devuelve la cantidad borrada."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM readings")
            conn.commit()
        logger.warning("Cleared %d readings from %s", cur.rowcount, self._db_path)
        return cur.rowcount

    def get_setting(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM app_config WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def set_setting(self, key: str, value: str) -> None:
        """Guarda un valor en la tabla key/value."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (key, value),
            )
            conn.commit()

    def last_export_timestamp(self) -> int | None:
        raw = self.get_setting(LAST_EXPORT_KEY)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring malformed %s value %r", LAST_EXPORT_KEY, raw)
            return None

    def mark_exported(self, timestamp: int) -> None:
        self.set_setting(LAST_EXPORT_KEY, str(int(timestamp)))


def _reading_params(reading: Reading) -> tuple[object, ...]:
    return (
        reading.id,
        reading.type.value,
        reading.value,
        reading.timestamp,
        reading.notes,
    )


def _row_to_reading(row: sqlite3.Row) -> Reading:
    return Reading(
        id=row["id"],
        type=ReadingType(row["type"]),
        value=row["value"],
        timestamp=int(row["timestamp"]),
        notes=row["notes"],
    )
