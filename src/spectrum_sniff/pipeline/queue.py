"""Thread-safe FIFO of pending file events.

The watcher thread puts, the coordinator tick drains. ``queue.SimpleQueue``
is unbounded and its ``put`` never blocks, so the watcher is never held up
by a slow import.
"""

from __future__ import annotations

import queue
from typing import Iterator, Optional

from ..models import FileEvent


class EventQueue:
    """Multi-producer, single-consumer queue of :class:`FileEvent`."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[FileEvent] = queue.SimpleQueue()

    def put(self, event: FileEvent) -> None:
        self._queue.put_nowait(event)

    def try_get(self) -> Optional[FileEvent]:
        """Return the oldest event, or ``None`` if the queue is empty."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> Iterator[FileEvent]:
        """Yield events in insertion order until the queue is empty.

        Events put while draining are yielded too.
        """
        while True:
            event = self.try_get()
            if event is None:
                return
            yield event

    def empty(self) -> bool:
        return self._queue.empty()

    def qsize(self) -> int:
        return self._queue.qsize()
