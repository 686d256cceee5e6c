"""Ingestion exceptions: per-file failures and the fatal ledger error.

Every :class:`IngestError` is scoped to a single spectrum file. The
coordinator logs it, withholds the checksum and moves on, so the file is
retried on the next catch-up pass. :class:`LedgerError` is not an
``IngestError``: without the ledger there is no way to avoid reprocessing,
so it stops the pipeline.
"""

from pathlib import Path
from typing import Dict, Optional

from .base import SpectrumSniffError


class IngestError(SpectrumSniffError):
    """Base class for recoverable per-file errors."""

    pass


class FileAccessError(IngestError):
    """Raised when a file cannot be accessed or read."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class ReportParseError(IngestError):
    """Raised when a recognised report field holds a malformed value."""

    def __init__(self, field: str, value: str, reason: str, line_number: Optional[int] = None):
        details: Dict[str, str] = {"field": field, "value": value, "reason": reason}
        if line_number is not None:
            details["line"] = str(line_number)

        super().__init__(f"Failed to parse report field '{field}'", details=details)
        self.field = field
        self.value = value
        self.reason = reason
        self.line_number = line_number


class ReportGenerationError(IngestError):
    """Raised when the external report tool fails for a spectrum."""

    def __init__(self, spectrum_path: Path, reason: str, returncode: Optional[int] = None):
        details: Dict[str, str] = {"spectrum": str(spectrum_path), "reason": reason}
        if returncode is not None:
            details["returncode"] = str(returncode)

        super().__init__(f"Report generation failed for {spectrum_path}", details=details)
        self.spectrum_path = spectrum_path
        self.reason = reason
        self.returncode = returncode


class StorageError(IngestError):
    """Raised when a parsed report cannot be stored."""

    def __init__(self, reason: str):
        super().__init__(f"Failed to store report: {reason}", details={"reason": reason})
        self.reason = reason


class LedgerError(SpectrumSniffError):
    """Raised when the checksum ledger is unreachable or misused."""

    def __init__(self, reason: str, db_path: Optional[Path] = None):
        details = {"reason": reason}
        if db_path is not None:
            details["db_path"] = str(db_path)

        super().__init__(f"Checksum ledger failure: {reason}", details=details)
        self.reason = reason
        self.db_path = db_path
