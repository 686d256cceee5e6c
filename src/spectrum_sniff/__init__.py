"""
Spectrum Sniff - gamma spectrum ingestion

Watches a directory for spectrum files, runs the external report tool on
each new one, parses the report into typed records and hands them to
storage. A checksum ledger guarantees each file content is imported once.
"""

__version__ = "0.3.0"

from .models import EventKind, FileEvent, SpectrumReport, SpectrumResult
from .reports.parser import parse_report, parse_report_file

__all__ = [
    "EventKind",
    "FileEvent",
    "SpectrumReport",
    "SpectrumResult",
    "parse_report",
    "parse_report_file",
]
