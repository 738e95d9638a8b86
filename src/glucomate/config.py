"""Configuracion: zona horaria local y ubicación de la base de datos."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from dateutil import tz

from glucomate.errors import ConfigError

DB_ENV = "GLUCOMATE_DB"
TZ_ENV = "GLUCOMATE_TZ"


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from CLI flags and environment."""

    db_path: Path
    tz_name: str | None = None

    @property
    def tzinfo(self) -> tzinfo:
        return local_tz(self.tz_name)


def default_db_path() -> Path:
    """``$GLUCOMATE_DB`` o ``~/.glucomate/glucomate.sqlite3``."""
    raw = os.environ.get(DB_ENV)
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".glucomate" / "glucomate.sqlite3"


def local_tz(name: str | None = None) -> tzinfo:
    """Resolve a timezone name, falling back to the system zone.

    Args:
        name: IANA name; when None, ``$GLUCOMATE_TZ`` is used.

    Raises:
        ConfigError: If an explicit name is unknown.
    """
    name = name or os.environ.get(TZ_ENV)
    if not name:
        return tz.tzlocal()
    zone = tz.gettz(name)
    if zone is None:
        raise ConfigError(f"Unknown timezone: {name}")
    return zone


def load_settings(db: str | None = None, tz_name: str | None = None) -> Settings:
    """Combine CLI overrides with environment defaults."""
    db_path = Path(db).expanduser() if db else default_db_path()
    return Settings(db_path=db_path, tz_name=tz_name or os.environ.get(TZ_ENV))
