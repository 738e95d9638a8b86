"""Backups JSON de lecturas: creación, validación y restauración."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any

from glucomate.errors import BackupError
from glucomate.model import Reading, ReadingType, now_ms
from glucomate.storage import SQLiteStore

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
APP_VERSION = "1.0.0"

_TYPE_LABELS = {t.value for t in ReadingType}


@dataclass(frozen=True)
class BackupInfo:
    """Backup metadata read without restoring."""

    version: str
    timestamp: int
    total_readings: int


@dataclass(frozen=True)
class RestoreResult:
    success: bool
    count: int


def build_backup(readings: Sequence[Reading], created_at: int) -> dict[str, Any]:
    """Arma el documento de backup.

    Raises:
        BackupError: If there are no readings.
    """
    if not readings:
        raise BackupError("No readings to backup")
    return {
        "version": BACKUP_VERSION,
        "timestamp": created_at,
        "appVersion": APP_VERSION,
        "totalReadings": len(readings),
        "readings": [r.to_dict() for r in readings],
    }


def backup_filename(created_at: int, zone: tzinfo) -> str:
    day = datetime.fromtimestamp(created_at / 1000, tz=zone).date()
    return f"GlucoMate-Backup-{day.isoformat()}.json"


def write_backup(
    readings: Sequence[Reading],
    out_dir: Path,
    zone: tzinfo,
    created_at: int | None = None,
) -> Path:
    """Write a backup JSON file into ``out_dir``.

    Args:
        readings: Readings to save (newest first).
        out_dir: Destination directory, created if missing.
        zone: Timezone for the date in the filename.
        created_at: Backup time in ms; defaults to now.

    Returns:
        Path of the written file.

    Raises:
        BackupError: If there are no readings.
    """
    if created_at is None:
        created_at = now_ms()
    data = build_backup(readings, created_at)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / backup_filename(created_at, zone)
    out_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Wrote backup with %d readings to %s", len(readings), out_path)
    return out_path


def validate_backup(data: Any) -> bool:
    """Check backup structure and the field types of every reading."""
    if not isinstance(data, dict):
        return False
    if not data.get("version") or not _is_finite_number(data.get("timestamp")):
        return False
    readings = data.get("readings")
    if not isinstance(readings, list):
        return False
    return all(_valid_reading(item) for item in readings)


def _is_finite_number(value: Any) -> bool:
    # json.loads acepta NaN / Infinity.
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)


def _valid_reading(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    return (
        isinstance(item.get("id"), str)
        and _is_finite_number(item.get("value"))
        and _is_finite_number(item.get("timestamp"))
        and item.get("type") in _TYPE_LABELS
    )


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise BackupError(f"Backup file is not valid JSON: {path}") from exc


def restore_backup(store: SQLiteStore, path: Path) -> RestoreResult:
    """Merge backup readings into the store, skipping known ids.

    Raises:
        BackupError: If the file is not valid JSON or not a backup.
        FileNotFoundError: If ``path`` does not exist.
    """
    data = _load_json(path)
    if not validate_backup(data):
        raise BackupError("Invalid backup file format")
    readings = [Reading.from_dict(item) for item in data["readings"]]
    count = store.add_missing(readings)
    logger.info("Restored %d new readings from %s", count, path)
    return RestoreResult(success=True, count=count)


def backup_info(path: Path) -> BackupInfo | None:
    """Lee metadatos del backup; None si el archivo no es válido."""
    try:
        data = _load_json(path)
    except (OSError, BackupError):
        logger.warning("Could not read backup %s", path, exc_info=True)
        return None
    if not validate_backup(data):
        return None
    total = data.get("totalReadings")
    if isinstance(total, bool) or not isinstance(total, int):
        total = len(data["readings"])
    return BackupInfo(
        version=str(data["version"]),
        timestamp=int(data["timestamp"]),
        total_readings=total,
    )
