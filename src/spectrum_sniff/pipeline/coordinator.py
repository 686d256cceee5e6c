"""Pipeline coordinator: catch-up pass, then periodic queue drains.

For each spectrum file the coordinator runs, strictly one file at a time::

    exists? -> checksum -> ledger check -> generate -> parse -> store -> record checksum

The ledger is opened and closed around every file. A failure on one file
(tool error, malformed report, storage error) is logged and the checksum is
withheld so the file is retried on the next catch-up pass. A ledger failure
is fatal and propagates.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from ..exceptions import IngestError
from ..models import SpectrumReport
from ..persistence.ledger import ChecksumLedger, file_checksum
from ..persistence.reports import ReportStore
from ..reports.generator import ReportGenerator
from ..reports.parser import parse_report_file
from .queue import EventQueue
from .watcher import SpectrumFilter

logger = logging.getLogger(__name__)

# Fixed drain interval
TICK_INTERVAL_SECONDS = 0.5


class ProcessOutcome(Enum):
    IMPORTED = "imported"
    DUPLICATE = "duplicate"
    MISSING = "missing"
    FAILED = "failed"


@dataclass
class PipelineStats:
    """Per-outcome counters for one catch-up pass or drain."""

    imported: int = 0
    duplicate: int = 0
    missing: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.imported + self.duplicate + self.missing + self.failed

    def record(self, outcome: ProcessOutcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    def merge(self, other: "PipelineStats") -> None:
        for outcome in ProcessOutcome:
            setattr(
                self,
                outcome.value,
                getattr(self, outcome.value) + getattr(other, outcome.value),
            )


class PipelineCoordinator:
    """Drives spectrum files through generation, parsing and storage."""

    def __init__(
        self,
        watch_directory: Union[str, Path],
        file_filter: str,
        events: EventQueue,
        ledger: ChecksumLedger,
        generator: ReportGenerator,
        store: ReportStore,
        recursive: bool = True,
        parser: Callable[[Path], SpectrumReport] = parse_report_file,
    ) -> None:
        self.watch_directory = Path(watch_directory).resolve()
        self.file_filter = file_filter
        self.recursive = recursive
        self.events = events
        self.ledger = ledger
        self.generator = generator
        self.store = store
        self.parser = parser
        self.stats = PipelineStats()

        self._filter = SpectrumFilter(str(self.watch_directory), file_filter, recursive)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.fatal_error: Optional[BaseException] = None

    # ── single file ───────────────────────────────────────────────

    def process_file(self, path: Union[str, Path]) -> ProcessOutcome:
        """Import one spectrum file unless its content was imported before.

        Raises:
            LedgerError: If the ledger cannot be opened, queried or updated
        """
        path = Path(path)
        if not path.is_file():
            # The same change is often reported more than once
            logger.debug("Skipping %s: file no longer exists", path)
            return self._record(ProcessOutcome.MISSING)

        try:
            checksum = file_checksum(path)
        except IngestError as e:
            logger.error("Cannot checksum %s: %s", path, e)
            return self._record(ProcessOutcome.FAILED)

        self.ledger.open()
        try:
            if self.ledger.has_checksum(checksum):
                logger.debug("Skipping %s: already imported [%s]", path, checksum)
                return self._record(ProcessOutcome.DUPLICATE)

            logger.info("Importing %s [%s]", path, checksum)
            try:
                report_path = self.generator.generate(path)
                report = self.parser(report_path)
                self.store.store(report)
            except IngestError as e:
                logger.error("Import of %s failed, will retry on next catch-up: %s", path, e)
                return self._record(ProcessOutcome.FAILED)

            self.ledger.insert_checksum(checksum)
            logger.debug("Imported %s with %d result(s)", path, len(report.results))
            return self._record(ProcessOutcome.IMPORTED)
        finally:
            self.ledger.close()

    def _record(self, outcome: ProcessOutcome) -> ProcessOutcome:
        self.stats.record(outcome)
        return outcome

    # ── catch-up phase ────────────────────────────────────────────

    def iter_existing_files(self) -> Iterator[Path]:
        """Yield files in the watch tree that match the filter."""
        if not self.watch_directory.is_dir():
            return
        candidates = (
            self.watch_directory.rglob("*") if self.recursive else self.watch_directory.iterdir()
        )
        for path in candidates:
            if path.is_file() and self._filter.matches(str(path)):
                yield path

    def catch_up(self) -> PipelineStats:
        """Import every existing file not yet in the ledger."""
        stats = PipelineStats()
        for path in self.iter_existing_files():
            stats.record(self.process_file(path))
        logger.info(
            "Catch-up complete: %d imported, %d already imported, %d failed",
            stats.imported,
            stats.duplicate,
            stats.failed,
        )
        return stats

    # ── steady-state phase ────────────────────────────────────────

    def drain(self) -> PipelineStats:
        """Process every queued event, in queue order."""
        stats = PipelineStats()
        for event in self.events.drain():
            stats.record(self.process_file(event.full_path))
        if stats.total:
            logger.debug(
                "Drained %d event(s): %d imported, %d skipped, %d failed",
                stats.total,
                stats.imported,
                stats.duplicate + stats.missing,
                stats.failed,
            )
        return stats

    def run(
        self,
        stop_event: threading.Event,
        tick_interval: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        """Drain the queue every ``tick_interval`` seconds until stopped."""
        while not stop_event.wait(tick_interval):
            self.drain()

    def start(self, tick_interval: float = TICK_INTERVAL_SECONDS) -> None:
        """Run the tick loop on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._tick_loop,
            args=(tick_interval,),
            name="spectrum-sniff-coordinator",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop ticking. An import in progress is allowed to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Coordinator still busy with an import at shutdown")
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _tick_loop(self, tick_interval: float) -> None:
        try:
            self.run(self._stop_event, tick_interval)
        except Exception as e:
            self.fatal_error = e
            logger.exception("Pipeline stopped on fatal error")
