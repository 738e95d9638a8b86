"""Generación de reporte Excel formateado para entrega médica."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from glucomate.frames import readings_to_frame
from glucomate.insights import (
    generate_insight,
    get_trend,
    get_weekly_insight,
    trend_emoji,
)
from glucomate.model import Reading, StatsSnapshot
from glucomate.stats import (
    STATUS_HIGH,
    STATUS_LOW,
    compute_stats,
    get_detailed_stats,
)

_HEADER_MAP: dict[str, str] = {
    "datetime": "Fecha / Hora",
    "type": "Tipo",
    "glucose_mg_dl": "Glucosa (mg/dL)",
    "status": "Estado",
    "notes": "Notas",
}

_STATUS_FILL: dict[str, str] = {
    STATUS_LOW: "FFE0B2",
    STATUS_HIGH: "FFCDD2",
}


@dataclass(frozen=True)
class ReportLayout:
    """Layout/formatting configuration for the report workbook."""

    summary_sheet: str = "Resumen"
    readings_sheet: str = "Lecturas"
    max_rows: int = 30
    detail_days: int = 14


def report_filename(reference_time: int, zone: tzinfo) -> str:
    day = datetime.fromtimestamp(reference_time / 1000, tz=zone).date()
    return f"GlucoMate-Report-{day.isoformat()}.xlsx"


def _format_extreme(reading: Reading | None) -> object:
    return reading.value if reading is not None else "-"


def _stats_rows(label: str, stats: StatsSnapshot) -> list[tuple[str, object]]:
    return [
        (f"{label}: promedio (mg/dL)", stats.average),
        (f"{label}: máximo (mg/dL)", _format_extreme(stats.highest)),
        (f"{label}: mínimo (mg/dL)", _format_extreme(stats.lowest)),
        (f"{label}: lecturas", stats.total),
        (f"{label}: en rango", stats.in_range),
        (f"{label}: altas", stats.high_count),
        (f"{label}: bajas", stats.low_count),
    ]


def build_summary_frame(
    readings: Sequence[Reading], reference_time: int, layout: ReportLayout
) -> pd.DataFrame:
    """Two-column summary (Métrica / Valor) for the report's first sheet."""
    all_time = compute_stats(readings)
    detailed = get_detailed_stats(readings, layout.detail_days, reference_time)
    latest = readings[0] if readings else None
    trend = get_trend(readings)

    rows: list[tuple[str, object]] = []
    rows.extend(_stats_rows("Total", all_time))
    rows.extend(_stats_rows(f"Últimos {layout.detail_days} días", detailed))
    rows.extend(
        [
            ("Ayuno", len(detailed.by_type.fasting)),
            ("Post-comida", len(detailed.by_type.post_meal)),
            ("Aleatoria", len(detailed.by_type.random)),
            ("Tendencia", f"{trend_emoji(trend)} {trend.value}"),
            ("Insight", generate_insight(readings, latest, all_time.average)),
            ("Resumen semanal", get_weekly_insight(readings, reference_time)),
        ]
    )
    return pd.DataFrame(rows, columns=["Métrica", "Valor"])


def _prepare_readings(
    readings: Sequence[Reading], zone: tzinfo, layout: ReportLayout
) -> pd.DataFrame:
    """Últimas N lecturas, sin timezone y con cabeceras legibles."""
    df = readings_to_frame(readings, zone).head(layout.max_rows)
    df = df[list(_HEADER_MAP)].copy()
    if not df.empty:
        # Excel no admite datetimes con timezone.
        df["datetime"] = pd.to_datetime(
            df["datetime"].map(lambda ts: ts.replace(tzinfo=None))
        )
    return df.rename(columns=_HEADER_MAP)


def write_report_xlsx(
    readings: Sequence[Reading],
    out_path: Path,
    layout: ReportLayout,
    reference_time: int,
    zone: tzinfo,
) -> None:
    """Write a formatted Excel report suitable for printing.

    Args:
        readings: Readings, newest first.
        out_path: Output path for the XLSX file.
        layout: Report layout parameters.
        reference_time: "Now" in ms for windowed stats.
        zone: Timezone used to display timestamps.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    summary = build_summary_frame(readings, reference_time, layout)
    detail = _prepare_readings(readings, zone, layout)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        summary.to_excel(writer, index=False, sheet_name=layout.summary_sheet)
        detail.to_excel(writer, index=False, sheet_name=layout.readings_sheet)
        summary_ws = writer.book[layout.summary_sheet]
        _style_header_row(summary_ws)
        summary_ws.column_dimensions["A"].width = 32
        summary_ws.column_dimensions["B"].width = 80
        _format_sheet(writer.book[layout.readings_sheet])


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border
        ws.row_dimensions[row[0].row].height = 15


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    widths = [
        ("Fecha / Hora", 18),
        ("Tipo", 12),
        ("Glucosa (mg/dL)", 14),
        ("Estado", 10),
        ("Notas", 40),
    ]
    for header, width in widths:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    fmt_map: dict[str, str] = {
        "Fecha / Hora": "dd/mm/yyyy hh:mm",
        "Glucosa (mg/dL)": "0",
    }
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _highlight_status(ws: Any, col_index: dict[str, int]) -> None:
    """Colorea las celdas de estado Low / High."""
    idx = col_index.get("Estado")
    if idx is None:
        return
    for row in ws.iter_rows(min_row=2):
        cell = row[idx - 1]
        color = _STATUS_FILL.get(str(cell.value))
        if color is not None:
            cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths, number formats and status colors.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
    _highlight_status(ws, col_index)
