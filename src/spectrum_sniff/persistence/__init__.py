"""SQLite persistence: checksum ledger and parsed report storage."""

from .database import connect
from .ledger import ChecksumLedger, file_checksum
from .reports import ReportStore, SqliteReportStore

__all__ = [
    "connect",
    "ChecksumLedger",
    "file_checksum",
    "ReportStore",
    "SqliteReportStore",
]
