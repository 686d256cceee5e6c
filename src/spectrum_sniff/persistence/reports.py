"""Storage for parsed spectrum reports."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, Union

from ..exceptions import StorageError
from ..logging_config import get_logger
from ..models import SpectrumReport, SpectrumResult
from .database import connect

logger = get_logger(__name__)

# Scalar report columns, in table order
_REPORT_COLUMNS = (
    "laboratory",
    "operator",
    "sample_title",
    "sample_identification",
    "sample_type",
    "sample_component",
    "sample_geometry",
    "sample_location_type",
    "sample_location",
    "sample_community_county",
    "sample_latitude",
    "sample_longitude",
    "sample_altitude",
    "comment",
    "sample_size",
    "sample_error",
    "sample_unit",
    "nuclide_library",
    "sample_time",
    "acquisition_time",
    "livetime",
    "realtime",
    "deadtime",
)

_DATETIME_COLUMNS = ("sample_time", "acquisition_time")


class ReportStore(Protocol):
    """Anything that accepts one fully-populated report per call."""

    def store(self, report: SpectrumReport) -> None: ...


class SqliteReportStore:
    """Stores reports and their nuclide results in the sniff database.

    Each call opens its own connection and writes the report row and its
    result rows in a single transaction.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = Path(db_path)

    def store(self, report: SpectrumReport) -> None:
        """Persist ``report``.

        Raises:
            StorageError: If the database rejects the write
        """
        try:
            conn = connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            values = [_column_value(report, name) for name in _REPORT_COLUMNS]
            placeholders = ", ".join("?" for _ in range(len(_REPORT_COLUMNS) + 1))
            cur.execute(
                f"INSERT INTO reports (stored_at, {', '.join(_REPORT_COLUMNS)}) "
                f"VALUES ({placeholders})",
                (datetime.now(timezone.utc).isoformat(), *values),
            )
            report_id = cur.lastrowid
            assert report_id is not None

            result_rows = [
                (
                    report_id,
                    position,
                    result.nuclide_name,
                    result.activity,
                    result.activity_uncertainty,
                    result.mda,
                )
                for position, result in enumerate(report.results)
            ]
            if result_rows:
                cur.executemany(
                    """
                    INSERT INTO report_results (
                        report_id, position, nuclide_name, activity,
                        activity_uncertainty, mda
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    result_rows,
                )
            cur.execute("COMMIT")
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        finally:
            conn.close()

        logger.debug(
            "Stored report #%d (%s, %d result(s))",
            report_id,
            report.sample_identification or report.sample_title or "unnamed",
            len(report.results),
        )

    def load_reports(self) -> list[SpectrumReport]:
        """Read every stored report back, oldest first."""
        try:
            conn = connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

        try:
            reports: list[SpectrumReport] = []
            for row in conn.execute("SELECT * FROM reports ORDER BY id").fetchall():
                kwargs = {name: row[name] for name in _REPORT_COLUMNS}
                for name in _DATETIME_COLUMNS:
                    if kwargs[name] is not None:
                        kwargs[name] = datetime.fromisoformat(kwargs[name])
                report = SpectrumReport(**kwargs)
                result_rows = conn.execute(
                    """
                    SELECT nuclide_name, activity, activity_uncertainty, mda
                    FROM report_results WHERE report_id = ? ORDER BY position
                    """,
                    (row["id"],),
                ).fetchall()
                report.results = [
                    SpectrumResult(
                        nuclide_name=r["nuclide_name"],
                        activity=r["activity"],
                        activity_uncertainty=r["activity_uncertainty"],
                        mda=r["mda"],
                    )
                    for r in result_rows
                ]
                reports.append(report)
            return reports
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        finally:
            conn.close()


def _column_value(report: SpectrumReport, name: str):
    value = getattr(report, name)
    if name in _DATETIME_COLUMNS and value is not None:
        return value.isoformat()
    return value
