"""Excepciones de los colaboradores (almacenamiento y backups)."""

from __future__ import annotations


class GlucoMateError(Exception):
    """Base error for store, backup and export failures."""


class InvalidReadingError(GlucoMateError, ValueError):
    """A reading failed value or notes validation."""


class ConfigError(GlucoMateError, ValueError):
    """Invalid setting such as an unknown timezone."""


class BackupError(GlucoMateError):
    """Backup could not be written or restored."""
