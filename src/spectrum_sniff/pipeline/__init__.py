"""Watcher, event queue and coordinator."""

from .coordinator import PipelineCoordinator, PipelineStats, ProcessOutcome
from .queue import EventQueue
from .watcher import DirectoryWatcher

__all__ = [
    "DirectoryWatcher",
    "EventQueue",
    "PipelineCoordinator",
    "PipelineStats",
    "ProcessOutcome",
]
