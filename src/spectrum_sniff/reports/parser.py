"""Parse generated report text into a :class:`SpectrumReport`.

The report tool fills a template whose interesting lines look like::

    Laboratory:::NRPA
    Sample Coordinates:::59.91 10.75 12
    +++INTR+++
    Cs-137  661.66  1.00  0.95  12.3  0.8
    ---INTR---
    +++MDA+++
    Cs-137  661.66  1.00  0.95  0.42  0.01  Y
    ---MDA---

Scalar fields are ``<Tag>:::<value>``. The INTR section lists one
six-token row per identified nuclide (name first, activity and its
uncertainty last). The MDA section lists seven-token rows whose fifth
token is the minimum detectable activity for an already listed nuclide.
Everything else in the report is ignored.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from ..exceptions import FileAccessError, ReportParseError
from ..logging_config import get_logger
from ..models import SpectrumReport, SpectrumResult

logger = get_logger(__name__)

DELIMITER = ":::"

INTR_START = "+++INTR+++"
INTR_END = "---INTR---"
MDA_START = "+++MDA+++"
MDA_END = "---MDA---"

INTR_TOKENS = 6
MDA_TOKENS = 7

# Plain ASCII decimal, period separator, optional exponent
DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

# Layouts the report tool has been seen to emit, tried after ISO 8601
DATETIME_FORMATS = (
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%d-%b-%Y %H:%M:%S",
    "%d-%b-%Y %H:%M",
    "%d.%m.%Y",
    "%m/%d/%Y",
    "%d-%b-%Y",
)

Numbered = Iterator[tuple[int, str]]


def parse_float(value: str, field: str, line_number: Optional[int] = None) -> float:
    """Parse a decimal with a period separator, independent of locale."""
    if not DECIMAL_PATTERN.fullmatch(value):
        raise ReportParseError(field, value, "not a number", line_number)
    return float(value)


def parse_datetime(value: str, field: str, line_number: Optional[int] = None) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ReportParseError(field, value, "not a recognised date-time", line_number)


def extract_parameter(tag: str, line: str) -> str:
    """Return the value of ``tag`` on ``line``, or ``""`` if it does not match.

    The line must start with the tag; the value is everything after the
    first delimiter, trimmed. An empty value counts as no match.
    """
    if not line.startswith(tag):
        return ""
    _, sep, value = line.partition(DELIMITER)
    if not sep:
        return ""
    return value.strip()


# ── Field setters ────────────────────────────────────────────────


def _text(attr: str) -> Callable[[SpectrumReport, str, int], None]:
    def setter(report: SpectrumReport, value: str, line_number: int) -> None:
        setattr(report, attr, value)

    return setter


def _number(attr: str, field: str) -> Callable[[SpectrumReport, str, int], None]:
    def setter(report: SpectrumReport, value: str, line_number: int) -> None:
        setattr(report, attr, parse_float(value, field, line_number))

    return setter


def _timestamp(attr: str, field: str) -> Callable[[SpectrumReport, str, int], None]:
    def setter(report: SpectrumReport, value: str, line_number: int) -> None:
        setattr(report, attr, parse_datetime(value, field, line_number))

    return setter


def _set_coordinates(report: SpectrumReport, value: str, line_number: int) -> None:
    tokens = value.split()
    if len(tokens) > 0:
        report.sample_latitude = parse_float(tokens[0], "Sample Coordinates", line_number)
    if len(tokens) > 1:
        report.sample_longitude = parse_float(tokens[1], "Sample Coordinates", line_number)
    if len(tokens) > 2:
        report.sample_altitude = parse_float(tokens[2], "Sample Coordinates", line_number)


def _set_size_error(report: SpectrumReport, value: str, line_number: int) -> None:
    tokens = value.split()
    if len(tokens) > 0:
        report.sample_size = parse_float(tokens[0], "Sample Size/Error", line_number)
    if len(tokens) > 1:
        report.sample_error = parse_float(tokens[1], "Sample Size/Error", line_number)
    if len(tokens) > 2:
        report.sample_unit = tokens[2]


# Checked in order, first match wins. "Sample Location Type" must precede
# "Sample Location" since the latter is a prefix of the former.
SCALAR_TAGS: tuple[tuple[str, Callable[[SpectrumReport, str, int], None]], ...] = (
    ("Laboratory", _text("laboratory")),
    ("Operator", _text("operator")),
    ("Sample Title", _text("sample_title")),
    ("Sample Identification", _text("sample_identification")),
    ("Sample Type", _text("sample_type")),
    ("Sample Component", _text("sample_component")),
    ("Sample Geometry", _text("sample_geometry")),
    ("Sample Location Type", _text("sample_location_type")),
    ("Sample Location", _text("sample_location")),
    ("Sample Community/County", _text("sample_community_county")),
    ("Sample Coordinates", _set_coordinates),
    ("Sample Comment", _text("comment")),
    ("Sample Size/Error", _set_size_error),
    ("Sample Taken On", _timestamp("sample_time", "Sample Taken On")),
    ("Acquisition Started", _timestamp("acquisition_time", "Acquisition Started")),
    ("Live Time", _number("livetime", "Live Time")),
    ("Real Time", _number("realtime", "Real Time")),
    ("Dead Time", _number("deadtime", "Dead Time")),
    ("Nuclide Library Used", _text("nuclide_library")),
)


# ── Sections ─────────────────────────────────────────────────────


def _read_intr(lines: Numbered, report: SpectrumReport) -> None:
    """Replace the result list with the rows up to the INTR end marker."""
    report.results.clear()
    for line_number, raw in lines:
        line = raw.strip()
        if line.startswith(INTR_END):
            return
        tokens = line.split()
        if len(tokens) != INTR_TOKENS:
            continue
        report.results.append(
            SpectrumResult(
                nuclide_name=tokens[0],
                activity=parse_float(tokens[4], "INTR activity", line_number),
                activity_uncertainty=parse_float(tokens[5], "INTR uncertainty", line_number),
            )
        )
    logger.debug("INTR section not terminated before end of report")


def _read_mda(lines: Numbered, report: SpectrumReport) -> None:
    """Attach MDA values to existing results by nuclide name."""
    for line_number, raw in lines:
        line = raw.strip()
        if line.startswith(MDA_END):
            return
        tokens = line.split()
        if len(tokens) != MDA_TOKENS:
            continue
        result = report.find_result(tokens[0])
        if result is None:
            logger.debug("Dropping MDA for %s: no activity result", tokens[0])
            continue
        result.mda = parse_float(tokens[4], "MDA", line_number)
    logger.debug("MDA section not terminated before end of report")


# ── Public API ───────────────────────────────────────────────────


def parse_report(text: str) -> SpectrumReport:
    """Convert the full text of a generated report into a SpectrumReport.

    Raises:
        ReportParseError: If a recognised numeric or date field is malformed
    """
    report = SpectrumReport()
    lines: Numbered = enumerate(text.splitlines(), start=1)

    for line_number, raw in lines:
        line = raw.strip()

        for tag, setter in SCALAR_TAGS:
            value = extract_parameter(tag, line)
            if value:
                setter(report, value, line_number)
                break
        else:
            if line.startswith(INTR_START):
                _read_intr(lines, report)
            elif line.startswith(MDA_START):
                _read_mda(lines, report)

    return report


def parse_report_file(path: Union[str, Path], encoding: str = "utf-8") -> SpectrumReport:
    """Read and parse a report file.

    Raises:
        FileAccessError: If the file cannot be read
        ReportParseError: If a recognised field is malformed
    """
    try:
        text = Path(path).read_text(encoding=encoding, errors="replace")
    except OSError as e:
        raise FileAccessError(Path(path), f"OS error: {e}")
    return parse_report(text)
