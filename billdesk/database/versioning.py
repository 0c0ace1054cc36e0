# database/versioning.py
"""
Single-row record of the schema version a database file was created with.

The schema is applied with CREATE IF NOT EXISTS on every open, so a newer
build never drops data; the stored version tells it which release last
touched the file.
"""
from __future__ import annotations

import logging
import sqlite3

from ..constants import TABLE_SCHEMA_VERSION

_log = logging.getLogger(__name__)


def _ensure_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION}("
        "id INTEGER PRIMARY KEY CHECK (id=1), version TEXT NOT NULL)"
    )


def get_current_version(conn: sqlite3.Connection) -> str | None:
    _ensure_table(conn)
    row = conn.execute(f"SELECT version FROM {TABLE_SCHEMA_VERSION} WHERE id=1").fetchone()
    return row[0] if row else None


def set_current_version(conn: sqlite3.Connection, version: str) -> None:
    """Record `version`; the caller commits."""
    _ensure_table(conn)
    conn.execute(
        f"INSERT INTO {TABLE_SCHEMA_VERSION}(id, version) VALUES (1, ?) "
        "ON CONFLICT(id) DO UPDATE SET version=excluded.version",
        (version,),
    )


def stamp_version(conn: sqlite3.Connection, expected: str) -> str | None:
    """
    Record `expected` on a fresh file, or move an older stamp forward.
    Returns the version found before stamping (None for a new database).
    """
    found = get_current_version(conn)
    if found != expected:
        if found is not None:
            _log.info("Database schema %s -> %s", found, expected)
        set_current_version(conn, expected)
    return found
