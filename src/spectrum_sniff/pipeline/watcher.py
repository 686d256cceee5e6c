"""Background directory watcher that queues new spectrum files."""

from __future__ import annotations

import fnmatch
import logging
import threading
from pathlib import Path
from typing import Iterable, Optional

from watchfiles import Change, watch

from ..models import EventKind, FileEvent
from .queue import EventQueue

logger = logging.getLogger(__name__)

# Debounce: group filesystem notifications arriving within this window
DEBOUNCE_MS = 200

# How long to wait for the watcher thread on stop
STOP_TIMEOUT_SECONDS = 5.0


class SpectrumFilter:
    """watchfiles filter: only files in scope whose name matches the glob.

    Deletions are let through for any in-scope file so that a rename from a
    temporary name can still be recognised as a rename.
    """

    def __init__(self, root: str, file_filter: str, recursive: bool = True) -> None:
        self.root = Path(root)
        self.pattern = file_filter.lower()
        self.recursive = recursive

    def in_scope(self, path: str) -> bool:
        p = Path(path)
        if not self.recursive and p.parent != self.root:
            return False
        return True

    def matches(self, path: str) -> bool:
        return fnmatch.fnmatch(Path(path).name.lower(), self.pattern)

    def __call__(self, change: Change, path: str) -> bool:
        if not self.in_scope(path):
            return False
        if change == Change.deleted:
            return True
        return self.matches(path)


class DirectoryWatcher:
    """Watches a directory tree and puts a FileEvent on the queue per new file.

    Uses ``watchfiles`` (Rust-backed) on a daemon thread. Publishing is a
    non-blocking queue put, so notifications are never held up by imports.
    Delivery is at-least-once: the same file may be reported repeatedly.
    """

    def __init__(
        self,
        root_dir: str,
        file_filter: str,
        events: EventQueue,
        recursive: bool = True,
        debounce_ms: int = DEBOUNCE_MS,
        include_modified: bool = False,
    ) -> None:
        self.root_dir = str(Path(root_dir).resolve())
        self.events = events
        self.recursive = recursive
        self.debounce_ms = debounce_ms
        self.include_modified = include_modified
        self.filter = SpectrumFilter(self.root_dir, file_filter, recursive)

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the watcher thread."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="spectrum-sniff-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop."""
        logger.debug("Stopping watcher thread...")
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=STOP_TIMEOUT_SECONDS)
            if self._thread.is_alive():
                logger.warning(
                    "Watcher thread did not exit cleanly within %.0f seconds",
                    STOP_TIMEOUT_SECONDS,
                )
            else:
                logger.debug("Watcher thread stopped successfully")
            self._thread = None

    def handle_changes(self, changes: Iterable[tuple[Change, str]]) -> list[FileEvent]:
        """Turn one batch of watchfiles changes into queued events.

        An addition is reported as a rename when the same batch also
        deleted a file in the same directory.
        """
        changes = list(changes)
        deleted_dirs = {
            str(Path(path).parent) for change, path in changes if change == Change.deleted
        }

        published: list[FileEvent] = []
        for change, path in changes:
            if not self.filter.in_scope(path) or not self.filter.matches(path):
                continue
            if change == Change.added:
                kind = (
                    EventKind.RENAMED
                    if str(Path(path).parent) in deleted_dirs
                    else EventKind.CREATED
                )
            elif change == Change.modified and self.include_modified:
                kind = EventKind.CHANGED
            else:
                continue

            event = FileEvent(full_path=path, kind=kind)
            self.events.put(event)
            published.append(event)

        if published:
            logger.debug("Queued %d file event(s)", len(published))
        return published

    def _watch_loop(self) -> None:
        """Background thread: watch files and queue matching changes."""
        logger.info("Watching %s for %s", self.root_dir, self.filter.pattern)

        try:
            for changes in watch(
                self.root_dir,
                watch_filter=self.filter,
                debounce=self.debounce_ms,
                stop_event=self._stop_event,
                rust_timeout=5000,
                recursive=self.recursive,
            ):
                if self._stop_event.is_set():
                    break
                self.handle_changes(changes)
        except Exception:
            logger.exception("Watcher stopped unexpectedly")
