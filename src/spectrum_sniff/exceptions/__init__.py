"""Exception hierarchy for Spectrum Sniff."""

from .base import SpectrumSniffError
from .config import (
    ConfigurationError,
    InstanceAlreadyRunningError,
    InvalidConfigError,
    MissingToolError,
)
from .ingest import (
    FileAccessError,
    IngestError,
    LedgerError,
    ReportGenerationError,
    ReportParseError,
    StorageError,
)

__all__ = [
    "SpectrumSniffError",
    "ConfigurationError",
    "InvalidConfigError",
    "MissingToolError",
    "InstanceAlreadyRunningError",
    "IngestError",
    "FileAccessError",
    "ReportParseError",
    "ReportGenerationError",
    "StorageError",
    "LedgerError",
]
