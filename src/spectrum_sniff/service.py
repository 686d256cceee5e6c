"""Wires the watcher, queue, coordinator and collaborators together.

Startup order matters: the report tool is checked first (a missing tool
or template aborts before anything is watched), then existing files are
caught up, then the tick loop and the watcher start.
"""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path
from typing import Optional

from .config import SniffConfig
from .persistence.ledger import ChecksumLedger
from .persistence.reports import ReportStore, SqliteReportStore
from .pipeline.coordinator import PipelineCoordinator, PipelineStats
from .pipeline.queue import EventQueue
from .pipeline.watcher import DirectoryWatcher
from .reports.generator import ReportGenerator

logger = logging.getLogger(__name__)


class SniffService:
    """The running ingestion pipeline for one watch directory."""

    def __init__(
        self,
        config: SniffConfig,
        store: Optional[ReportStore] = None,
        generator: Optional[ReportGenerator] = None,
    ) -> None:
        self.config = config
        self.events = EventQueue()
        self.ledger = ChecksumLedger(config.ledger_path)
        self.store = store if store is not None else SqliteReportStore(config.ledger_path)
        self.generator = generator or ReportGenerator(
            executable=config.report_executable,
            template=config.report_template,
            output_path=config.report_output_path,
            timeout=config.generator_timeout_seconds,
        )
        self.coordinator = PipelineCoordinator(
            watch_directory=config.watch_directory,
            file_filter=config.file_filter,
            events=self.events,
            ledger=self.ledger,
            generator=self.generator,
            store=self.store,
            recursive=config.recursive,
        )
        self.watcher = DirectoryWatcher(
            root_dir=config.watch_directory,
            file_filter=config.file_filter,
            events=self.events,
            recursive=config.recursive,
            debounce_ms=config.watch_debounce_ms,
            include_modified=config.include_modified,
        )
        self._stopped = threading.Event()
        self._shutdown_requested = threading.Event()

    def prepare(self) -> None:
        """Check the report tool and make sure the watch directory exists.

        Raises:
            MissingToolError: If the report executable or template is missing
        """
        self.generator.check()
        Path(self.config.watch_directory).mkdir(parents=True, exist_ok=True)
        Path(self.config.state_dir).mkdir(parents=True, exist_ok=True)

    def scan(self) -> PipelineStats:
        """One-shot catch-up pass without watching."""
        self.prepare()
        return self.coordinator.catch_up()

    def start(self) -> PipelineStats:
        """Catch up, then start the tick loop and the watcher."""
        self.prepare()
        self._stopped.clear()
        self._shutdown_requested.clear()
        stats = self.coordinator.catch_up()
        self.coordinator.start(self.config.tick_interval_seconds)
        self.watcher.start()
        return stats

    def stop(self) -> None:
        """Stop watching and ticking. Safe to call multiple times."""
        if self._stopped.is_set():
            return
        self._stopped.set()
        self.watcher.stop()
        self.coordinator.stop()
        logger.info("Spectrum Sniff stopped")

    def request_shutdown(self) -> None:
        """Ask a blocking :meth:`run_forever` to return."""
        self._shutdown_requested.set()

    def run_forever(self) -> None:
        """Start and block until SIGINT/SIGTERM or a fatal pipeline error."""
        self.start()

        def _handle_signal(signum, frame):
            logger.debug("Received signal %d", signum)
            self._shutdown_requested.set()

        previous = {
            sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            while not self._shutdown_requested.wait(1.0):
                if self.coordinator.fatal_error is not None:
                    raise self.coordinator.fatal_error
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
            self.stop()
