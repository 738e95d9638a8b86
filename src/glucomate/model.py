"""Modelos tipados para lecturas de glucosa y estadísticas derivadas."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DAY_MS = 24 * 60 * 60 * 1000
WEEK_MS = 7 * DAY_MS

MIN_VALUE_EXCLUSIVE = 0
MAX_VALUE = 600
MAX_NOTES_LENGTH = 200


class ReadingType(str, Enum):
    """Momento de la medición."""

    FASTING = "Fasting"
    POST_MEAL = "Post-meal"
    RANDOM = "Random"


class Trend(str, Enum):
    """Dirección reciente de las lecturas."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


def now_ms() -> int:
    """Current wall clock in milliseconds since epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Reading:
    """One glucose measurement (mg/dL) with its type and timestamp."""

    id: str
    type: ReadingType
    value: float
    timestamp: int
    notes: str | None = None

    @classmethod
    def create(
        cls,
        value: float,
        type: ReadingType,
        timestamp: int | None = None,
        notes: str | None = None,
        *,
        now: int | None = None,
    ) -> Reading:
        """Build a new reading with a fresh id.

        Args:
            value: Glucose value in mg/dL.
            type: Reading type.
            timestamp: Measurement time in ms; defaults to ``now``.
            notes: Optional free text; empty strings are dropped.
            now: Clock override used when ``timestamp`` is missing.

        Returns:
            New reading (not validated).
        """
        if timestamp is None:
            timestamp = now if now is not None else now_ms()
        return cls(
            id=str(uuid.uuid4()),
            type=ReadingType(type),
            value=value,
            timestamp=int(timestamp),
            notes=notes or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializa a la forma JSON persistida."""
        out: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "value": self.value,
            "timestamp": self.timestamp,
        }
        if self.notes:
            out["notes"] = self.notes
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Reading:
        """Inverse of :meth:`to_dict`.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If ``type`` is not a known label.
        """
        return cls(
            id=str(data["id"]),
            type=ReadingType(data["type"]),
            value=data["value"],
            timestamp=int(data["timestamp"]),
            notes=data.get("notes") or None,
        )


@dataclass(frozen=True)
class StatsSnapshot:
    """Aggregate metrics over a set of readings (recomputed on demand)."""

    average: int
    highest: Reading | None
    lowest: Reading | None
    total: int
    in_range: int
    high_count: int
    low_count: int

    @classmethod
    def empty(cls) -> StatsSnapshot:
        return cls(
            average=0,
            highest=None,
            lowest=None,
            total=0,
            in_range=0,
            high_count=0,
            low_count=0,
        )


@dataclass(frozen=True)
class ReadingsByType:
    """Partición de lecturas por tipo."""

    fasting: tuple[Reading, ...] = ()
    post_meal: tuple[Reading, ...] = ()
    random: tuple[Reading, ...] = ()


@dataclass(frozen=True)
class DetailedStats(StatsSnapshot):
    """Windowed stats plus the by-type partition of the window."""

    by_type: ReadingsByType = field(default_factory=ReadingsByType)
