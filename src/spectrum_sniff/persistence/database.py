"""SQLite database shared by the checksum ledger and the report store."""

import sqlite3
from pathlib import Path
from typing import Union

from ..logging_config import get_logger

logger = get_logger(__name__)

# Current schema version (bump when tables change).
_SCHEMA_VERSION = 1


def connect(db_path: Union[str, Path]) -> sqlite3.Connection:
    """Open (or create) the database at ``db_path`` and run migrations.

    The caller owns the returned connection and must close it.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        _migrate(conn)
    except sqlite3.Error:
        conn.close()
        raise
    logger.debug("Database connected at %s", path)
    return conn


def _migrate(c: sqlite3.Connection) -> None:
    """Idempotently create all tables."""
    c.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER NOT NULL
        )
        """
    )

    row = c.execute("SELECT version FROM schema_version").fetchone()
    if row is None:
        c.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (_SCHEMA_VERSION,),
        )

    # ── checksums ────────────────────────────────────────────────
    c.execute(
        """
        CREATE TABLE IF NOT EXISTS checksums (
            checksum    TEXT PRIMARY KEY,
            imported_at TEXT NOT NULL
        )
        """
    )

    # ── reports ──────────────────────────────────────────────────
    c.execute(
        """
        CREATE TABLE IF NOT EXISTS reports (
            id                      INTEGER PRIMARY KEY AUTOINCREMENT,
            stored_at               TEXT NOT NULL,
            laboratory              TEXT NOT NULL DEFAULT '',
            operator                TEXT NOT NULL DEFAULT '',
            sample_title            TEXT NOT NULL DEFAULT '',
            sample_identification   TEXT NOT NULL DEFAULT '',
            sample_type             TEXT NOT NULL DEFAULT '',
            sample_component        TEXT NOT NULL DEFAULT '',
            sample_geometry         TEXT NOT NULL DEFAULT '',
            sample_location_type    TEXT NOT NULL DEFAULT '',
            sample_location         TEXT NOT NULL DEFAULT '',
            sample_community_county TEXT NOT NULL DEFAULT '',
            sample_latitude         REAL NOT NULL DEFAULT 0,
            sample_longitude        REAL NOT NULL DEFAULT 0,
            sample_altitude         REAL NOT NULL DEFAULT 0,
            comment                 TEXT NOT NULL DEFAULT '',
            sample_size             REAL NOT NULL DEFAULT 0,
            sample_error            REAL NOT NULL DEFAULT 0,
            sample_unit             TEXT NOT NULL DEFAULT '',
            nuclide_library         TEXT NOT NULL DEFAULT '',
            sample_time             TEXT,
            acquisition_time        TEXT,
            livetime                REAL NOT NULL DEFAULT 0,
            realtime                REAL NOT NULL DEFAULT 0,
            deadtime                REAL NOT NULL DEFAULT 0
        )
        """
    )

    # ── report_results ───────────────────────────────────────────
    c.execute(
        """
        CREATE TABLE IF NOT EXISTS report_results (
            id                   INTEGER PRIMARY KEY AUTOINCREMENT,
            report_id            INTEGER NOT NULL REFERENCES reports(id) ON DELETE CASCADE,
            position             INTEGER NOT NULL,
            nuclide_name         TEXT    NOT NULL,
            activity             REAL    NOT NULL,
            activity_uncertainty REAL    NOT NULL,
            mda                  REAL    NOT NULL DEFAULT 0
        )
        """
    )

    c.execute(
        "CREATE INDEX IF NOT EXISTS idx_report_results_report ON report_results(report_id)"
    )

    c.commit()
