"""Report generation and parsing."""

from .generator import ReportGenerator
from .parser import parse_report, parse_report_file

__all__ = ["ReportGenerator", "parse_report", "parse_report_file"]
