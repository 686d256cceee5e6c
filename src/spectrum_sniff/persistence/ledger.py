"""Checksum ledger: the durable set of file digests already imported.

The coordinator opens the ledger around every single file (check, import,
insert, close) rather than holding it across a batch, so a failure on one
file never leaves a long-lived handle in an unknown state.

Usage::

    ledger = ChecksumLedger(config.ledger_path)
    with ledger:
        if not ledger.has_checksum(digest):
            ...
            ledger.insert_checksum(digest)
"""

from __future__ import annotations

import hashlib
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from ..exceptions import FileAccessError, LedgerError
from ..logging_config import get_logger
from .database import connect

logger = get_logger(__name__)

_CHUNK_SIZE = 1024 * 1024


def file_checksum(path: Union[str, Path]) -> str:
    """Return the SHA-256 hex digest of a file's bytes.

    Raises:
        FileAccessError: If the file cannot be read
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise FileAccessError(Path(path), f"OS error: {e}")
    return digest.hexdigest()


class ChecksumLedger:
    """Open/close-scoped access to the persisted checksum set."""

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if the ledger is closed."""
        if self._conn is None:
            raise LedgerError("ledger is not open", self.db_path)
        return self._conn

    # ── lifecycle ─────────────────────────────────────────────────

    def open(self) -> None:
        """Acquire a handle to the ledger. Opening twice is a no-op."""
        if self._conn is not None:
            return
        try:
            self._conn = connect(self.db_path)
        except sqlite3.Error as e:
            raise LedgerError(str(e), self.db_path) from e

    def close(self) -> None:
        """Release the handle if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "ChecksumLedger":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── queries ───────────────────────────────────────────────────

    def has_checksum(self, checksum: str) -> bool:
        try:
            row = self.conn.execute(
                "SELECT 1 FROM checksums WHERE checksum = ?", (checksum,)
            ).fetchone()
        except sqlite3.Error as e:
            raise LedgerError(str(e), self.db_path) from e
        return row is not None

    def insert_checksum(self, checksum: str) -> None:
        """Record ``checksum`` as imported. Re-inserting is harmless."""
        try:
            self.conn.execute(
                "INSERT OR IGNORE INTO checksums (checksum, imported_at) VALUES (?, ?)",
                (checksum, datetime.now(timezone.utc).isoformat()),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise LedgerError(str(e), self.db_path) from e
        logger.debug("Checksum recorded: %s", checksum)

    def count(self) -> int:
        """Number of checksums in the ledger."""
        try:
            row = self.conn.execute("SELECT COUNT(*) FROM checksums").fetchone()
        except sqlite3.Error as e:
            raise LedgerError(str(e), self.db_path) from e
        return int(row[0])
