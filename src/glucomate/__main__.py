"""Punto de entrada de ``python -m glucomate``."""

from __future__ import annotations

from glucomate.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
