"""CLI para registrar lecturas de glucosa, ver estadísticas y exportar."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo
from pathlib import Path

from dateutil import parser as date_parser

from glucomate.backup import backup_info, restore_backup, write_backup
from glucomate.config import load_settings
from glucomate.errors import GlucoMateError, InvalidReadingError
from glucomate.filters import DateRange, FilterOptions, filter_readings
from glucomate.frames import daily_glucose_summary, readings_to_frame
from glucomate.insights import (
    generate_insight,
    get_trend,
    get_weekly_insight,
    matching_rule,
    trend_emoji,
)
from glucomate.model import Reading, ReadingType, StatsSnapshot, now_ms
from glucomate.report import ReportLayout, report_filename, write_report_xlsx
from glucomate.stats import classify_value, compute_stats, get_detailed_stats
from glucomate.storage import SQLiteStore

_TYPE_CHOICES = [t.value for t in ReadingType]
_RANGE_CHOICES = [r.value for r in DateRange]


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        prog="glucomate",
        description="Registro personal de glucosa: lecturas, estadísticas e insights.",
    )
    parser.add_argument("--db", help="Ruta de la base SQLite (default: $GLUCOMATE_DB).")
    parser.add_argument("--tz", help="Zona horaria IANA (default: $GLUCOMATE_TZ o local).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logging DEBUG.")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Registrar una lectura.")
    add.add_argument("value", type=float, help="Glucosa en mg/dL.")
    add.add_argument("--type", choices=_TYPE_CHOICES, default=ReadingType.RANDOM.value)
    add.add_argument("--at", help="Fecha/hora de la lectura (default: ahora).")
    add.add_argument("--notes")

    lst = sub.add_parser("list", help="Listar lecturas.")
    lst.add_argument("--type", choices=_TYPE_CHOICES)
    lst.add_argument("--range", choices=_RANGE_CHOICES, default=DateRange.ALL.value)

    delete = sub.add_parser("delete", help="Borrar una lectura.")
    delete.add_argument("id")

    edit = sub.add_parser("edit", help="Editar una lectura.")
    edit.add_argument("id")
    edit.add_argument("--value", type=float)
    edit.add_argument("--type", choices=_TYPE_CHOICES)
    edit.add_argument("--at")
    edit.add_argument("--notes")

    stats = sub.add_parser("stats", help="Estadísticas.")
    stats.add_argument("--days", type=int, help="Ventana en días (default: todo).")

    sub.add_parser("daily", help="Resumen diario.")

    insight = sub.add_parser("insight", help="Insight personalizado.")
    insight.add_argument("--explain", action="store_true", help="Mostrar la regla.")

    sub.add_parser("weekly", help="Comparación semanal.")
    sub.add_parser("trend", help="Tendencia reciente.")

    export = sub.add_parser("export", help="Exportar reporte Excel.")
    export.add_argument("--out", default=".", help="Directorio de salida.")

    backup = sub.add_parser("backup", help="Crear backup JSON.")
    backup.add_argument("--out", default=".", help="Directorio de salida.")

    restore = sub.add_parser("restore", help="Restaurar desde backup JSON.")
    restore.add_argument("file")

    clear = sub.add_parser("clear", help="Borrar todas las lecturas.")
    clear.add_argument("--yes", action="store_true", help="Confirmar.")

    return parser.parse_args(argv)


def _parse_when(raw: str | None, zone: tzinfo) -> int | None:
    if raw is None:
        return None
    try:
        dt = date_parser.parse(raw)
    except (ValueError, OverflowError) as exc:
        raise InvalidReadingError(f"Invalid date/time: {raw}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=zone)
    return int(dt.timestamp() * 1000)


def _fmt_time(timestamp: int, zone: tzinfo) -> str:
    return datetime.fromtimestamp(timestamp / 1000, tz=zone).strftime("%Y-%m-%d %H:%M")


def _fmt_reading(r: Reading, zone: tzinfo) -> str:
    line = (
        f"{r.id}  {_fmt_time(r.timestamp, zone)}  {r.type.value:<9}  "
        f"{r.value:>5g} mg/dL  {classify_value(r.value)}"
    )
    if r.notes:
        line += f"  {r.notes}"
    return line


def _print_stats(stats: StatsSnapshot, zone: tzinfo) -> None:
    print(f"Lecturas: {stats.total}")
    print(f"Promedio: {stats.average} mg/dL")
    if stats.highest is not None and stats.lowest is not None:
        print(
            f"Máximo: {stats.highest.value:g} mg/dL "
            f"({_fmt_time(stats.highest.timestamp, zone)})"
        )
        print(
            f"Mínimo: {stats.lowest.value:g} mg/dL "
            f"({_fmt_time(stats.lowest.timestamp, zone)})"
        )
    print(
        f"En rango: {stats.in_range}  Altas: {stats.high_count}  "
        f"Bajas: {stats.low_count}"
    )


def _run(ns: argparse.Namespace, store: SQLiteStore, zone: tzinfo) -> int:
    now = now_ms()

    if ns.command == "add":
        reading = store.save_reading(
            ns.value, ReadingType(ns.type), _parse_when(ns.at, zone), ns.notes
        )
        print(f"OK: {_fmt_reading(reading, zone)}")
        return 0

    if ns.command == "edit":
        changes: dict[str, object] = {}
        if ns.value is not None:
            changes["value"] = ns.value
        if ns.type is not None:
            changes["type"] = ReadingType(ns.type)
        if ns.at is not None:
            changes["timestamp"] = _parse_when(ns.at, zone)
        if ns.notes is not None:
            changes["notes"] = ns.notes or None
        updated = store.update(ns.id, **changes)
        if updated is None:
            print(f"Error: reading not found: {ns.id}")
            return 1
        print(f"OK: {_fmt_reading(updated, zone)}")
        return 0

    if ns.command == "delete":
        if not store.remove(ns.id):
            print(f"Error: reading not found: {ns.id}")
            return 1
        print(f"OK: deleted {ns.id}")
        return 0

    if ns.command == "clear":
        if not ns.yes:
            print("Error: use --yes to delete all readings")
            return 1
        print(f"OK: deleted {store.clear()} readings")
        return 0

    if ns.command == "restore":
        path = Path(ns.file).expanduser()
        info = backup_info(path)
        if info is not None:
            print(
                f"Backup v{info.version} from {_fmt_time(info.timestamp, zone)} "
                f"({info.total_readings} readings)"
            )
        result = restore_backup(store, path)
        print(f"OK: restored {result.count} new readings")
        return 0

    readings = store.list()

    if ns.command == "list":
        options = FilterOptions(
            type=ReadingType(ns.type) if ns.type else None,
            date_range=DateRange(ns.range),
        )
        shown = filter_readings(readings, options, now, zone)
        for r in shown:
            print(_fmt_reading(r, zone))
        print(f"{len(shown)} of {len(readings)} readings")
        return 0

    if ns.command == "stats":
        if ns.days is None:
            _print_stats(compute_stats(readings), zone)
            return 0
        detailed = get_detailed_stats(readings, ns.days, now)
        _print_stats(detailed, zone)
        print(
            f"Ayuno: {len(detailed.by_type.fasting)}  "
            f"Post-comida: {len(detailed.by_type.post_meal)}  "
            f"Aleatoria: {len(detailed.by_type.random)}"
        )
        return 0

    if ns.command == "daily":
        summary = daily_glucose_summary(readings_to_frame(readings, zone))
        if summary.empty:
            print("Sin lecturas")
        else:
            print(summary.to_string(index=False))
        return 0

    if ns.command == "insight":
        latest = readings[0] if readings else None
        average = compute_stats(readings).average
        print(generate_insight(readings, latest, average))
        if ns.explain:
            print(f"(rule: {matching_rule(readings, latest, average)})")
        return 0

    if ns.command == "weekly":
        print(get_weekly_insight(readings, now))
        return 0

    if ns.command == "trend":
        trend = get_trend(readings)
        print(f"{trend_emoji(trend)} {trend.value}")
        return 0

    if ns.command == "export":
        out_path = Path(ns.out).expanduser() / report_filename(now, zone)
        write_report_xlsx(readings, out_path, ReportLayout(), now, zone)
        store.mark_exported(now)
        print(f"OK: Output: {out_path}")
        return 0

    if ns.command == "backup":
        out_path = write_backup(readings, Path(ns.out).expanduser(), zone, now)
        print(f"OK: Backup: {out_path} ({len(readings)} readings)")
        return 0

    raise ValueError(f"Unknown command: {ns.command}")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 1 on a reported error).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings(ns.db, ns.tz)
    try:
        zone = settings.tzinfo
        return _run(ns, SQLiteStore(settings.db_path), zone)
    except GlucoMateError as exc:
        print(f"Error: {exc}")
        return 1
