"""Vistas tabulares (pandas) de las lecturas: historial y resumen diario."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, tzinfo

import pandas as pd

from glucomate.model import Reading
from glucomate.stats import classify_value

READING_COLUMNS = [
    "id",
    "datetime",
    "date",
    "time",
    "type",
    "glucose_mg_dl",
    "status",
    "notes",
]

DAILY_COLUMNS = [
    "date",
    "glucose_count",
    "glucose_min",
    "glucose_max",
    "glucose_avg",
]


def readings_to_frame(readings: Sequence[Reading], zone: tzinfo) -> pd.DataFrame:
    """Convert readings to a DataFrame with local date/time and status."""
    rows = []
    for r in readings:
        ts = datetime.fromtimestamp(r.timestamp / 1000, tz=zone)
        rows.append(
            {
                "id": r.id,
                "datetime": ts,
                "date": ts.date(),
                "time": ts.time().replace(second=0, microsecond=0),
                "type": r.type.value,
                "glucose_mg_dl": float(r.value),
                "status": classify_value(r.value),
                "notes": r.notes or "",
            }
        )
    if not rows:
        return pd.DataFrame(columns=READING_COLUMNS)
    df = pd.DataFrame(rows, columns=READING_COLUMNS)
    return df.sort_values("datetime", ascending=False, kind="stable").reset_index(
        drop=True
    )


def daily_glucose_summary(glucose_events: pd.DataFrame) -> pd.DataFrame:
    """Aggregate glucose by day (count/min/max/avg)."""
    if glucose_events.empty:
        return pd.DataFrame(columns=DAILY_COLUMNS)
    g = glucose_events.groupby("date", as_index=False).agg(
        glucose_count=("glucose_mg_dl", "count"),
        glucose_min=("glucose_mg_dl", "min"),
        glucose_max=("glucose_mg_dl", "max"),
        glucose_avg=("glucose_mg_dl", "mean"),
    )
    g["glucose_avg"] = g["glucose_avg"].round(2)
    return g.sort_values("date").reset_index(drop=True)
