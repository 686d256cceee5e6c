"""Tests for pipeline.coordinator: dedup, failure isolation, phases."""

import sys
import threading
import time

import pytest

from spectrum_sniff.exceptions import LedgerError, StorageError
from spectrum_sniff.models import EventKind, FileEvent
from spectrum_sniff.persistence.ledger import ChecksumLedger, file_checksum
from spectrum_sniff.pipeline.coordinator import (
    PipelineCoordinator,
    PipelineStats,
    ProcessOutcome,
)
from spectrum_sniff.pipeline.queue import EventQueue


@pytest.fixture
def ledger(tmp_path):
    return ChecksumLedger(tmp_path / "state" / "sniff.db")


@pytest.fixture
def coordinator(watch_dir, ledger, stub_generator, memory_store):
    return PipelineCoordinator(
        watch_directory=watch_dir,
        file_filter="*.spe",
        events=EventQueue(),
        ledger=ledger,
        generator=stub_generator,
        store=memory_store,
    )


def _ledger_has(ledger, path):
    with ledger:
        return ledger.has_checksum(file_checksum(path))


class TestProcessFile:
    def test_imports_new_file(self, coordinator, watch_dir, memory_store, ledger):
        spectrum = watch_dir / "a.spe"
        spectrum.write_bytes(b"spectrum a")

        assert coordinator.process_file(spectrum) is ProcessOutcome.IMPORTED
        assert len(memory_store.reports) == 1
        assert memory_store.reports[0].sample_identification == "S-114"
        assert _ledger_has(ledger, spectrum)
        assert not ledger.is_open

    def test_same_content_imported_once(self, coordinator, watch_dir, memory_store, ledger):
        (watch_dir / "a.spe").write_bytes(b"identical")
        (watch_dir / "copy-of-a.spe").write_bytes(b"identical")

        assert coordinator.process_file(watch_dir / "a.spe") is ProcessOutcome.IMPORTED
        assert coordinator.process_file(watch_dir / "copy-of-a.spe") is ProcessOutcome.DUPLICATE
        assert coordinator.process_file(watch_dir / "a.spe") is ProcessOutcome.DUPLICATE

        assert len(memory_store.reports) == 1
        with ledger:
            assert ledger.count() == 1

    def test_missing_file(self, coordinator, watch_dir, stub_generator):
        outcome = coordinator.process_file(watch_dir / "gone.spe")
        assert outcome is ProcessOutcome.MISSING
        assert stub_generator.calls == []

    def test_malformed_report_not_marked_imported(
        self, coordinator, watch_dir, stub_generator, memory_store, ledger
    ):
        spectrum = watch_dir / "bad.spe"
        spectrum.write_bytes(b"bad")
        stub_generator.reports["bad.spe"] = "Laboratory:::NRPA\nLive Time:::abc\n"

        assert coordinator.process_file(spectrum) is ProcessOutcome.FAILED
        assert memory_store.reports == []
        assert not _ledger_has(ledger, spectrum)
        assert not ledger.is_open

    def test_failed_file_is_retried(self, coordinator, watch_dir, stub_generator, memory_store):
        spectrum = watch_dir / "flaky.spe"
        spectrum.write_bytes(b"flaky")
        stub_generator.failing.add("flaky.spe")
        assert coordinator.process_file(spectrum) is ProcessOutcome.FAILED

        stub_generator.failing.clear()
        assert coordinator.process_file(spectrum) is ProcessOutcome.IMPORTED
        assert len(memory_store.reports) == 1

    def test_storage_failure_withholds_checksum(self, watch_dir, ledger, stub_generator):
        class BrokenStore:
            def store(self, report):
                raise StorageError("database is locked")

        coordinator = PipelineCoordinator(
            watch_dir, "*.spe", EventQueue(), ledger, stub_generator, BrokenStore()
        )
        spectrum = watch_dir / "a.spe"
        spectrum.write_bytes(b"a")

        assert coordinator.process_file(spectrum) is ProcessOutcome.FAILED
        assert not _ledger_has(ledger, spectrum)

    def test_ledger_failure_is_fatal(self, watch_dir, stub_generator, memory_store):
        class BrokenLedger(ChecksumLedger):
            def has_checksum(self, checksum):
                raise LedgerError("database disk image is malformed")

        coordinator = PipelineCoordinator(
            watch_dir,
            "*.spe",
            EventQueue(),
            BrokenLedger(watch_dir.parent / "sniff.db"),
            stub_generator,
            memory_store,
        )
        (watch_dir / "a.spe").write_bytes(b"a")
        with pytest.raises(LedgerError):
            coordinator.process_file(watch_dir / "a.spe")
        assert not coordinator.ledger.is_open

    def test_cumulative_stats(self, coordinator, watch_dir):
        (watch_dir / "a.spe").write_bytes(b"a")
        coordinator.process_file(watch_dir / "a.spe")
        coordinator.process_file(watch_dir / "a.spe")
        coordinator.process_file(watch_dir / "missing.spe")
        assert coordinator.stats == PipelineStats(imported=1, duplicate=1, missing=1)


class TestCatchUp:
    def test_only_unfiled_files_processed(
        self, coordinator, watch_dir, ledger, stub_generator, memory_store
    ):
        already = []
        for i in range(2):
            path = watch_dir / f"old-{i}.spe"
            path.write_bytes(f"old {i}".encode())
            already.append(path)
        with ledger:
            for path in already:
                ledger.insert_checksum(file_checksum(path))

        sub = watch_dir / "2017"
        sub.mkdir()
        for i in range(3):
            (sub / f"new-{i}.spe").write_bytes(f"new {i}".encode())
        (watch_dir / "readme.txt").write_text("not a spectrum")

        stats = coordinator.catch_up()

        assert stats.imported == 3
        assert stats.duplicate == 2
        assert len(memory_store.reports) == 3
        assert sorted(p.name for p in stub_generator.calls) == ["new-0.spe", "new-1.spe", "new-2.spe"]

    def test_non_recursive(self, watch_dir, ledger, stub_generator, memory_store):
        coordinator = PipelineCoordinator(
            watch_dir, "*.spe", EventQueue(), ledger, stub_generator, memory_store, recursive=False
        )
        (watch_dir / "top.spe").write_bytes(b"top")
        (watch_dir / "sub").mkdir()
        (watch_dir / "sub" / "deep.spe").write_bytes(b"deep")

        stats = coordinator.catch_up()
        assert stats.imported == 1
        assert [p.name for p in stub_generator.calls] == ["top.spe"]

    def test_failure_does_not_stop_pass(self, coordinator, watch_dir, stub_generator):
        for name in ("a.spe", "b.spe", "c.spe"):
            (watch_dir / name).write_bytes(name.encode())
        stub_generator.failing.add("b.spe")

        stats = coordinator.catch_up()
        assert stats.imported == 2
        assert stats.failed == 1

    def test_missing_watch_directory(self, tmp_path, ledger, stub_generator, memory_store):
        coordinator = PipelineCoordinator(
            tmp_path / "nowhere", "*.spe", EventQueue(), ledger, stub_generator, memory_store
        )
        assert coordinator.catch_up().total == 0


class TestDrain:
    def test_stale_event_skipped_and_order_kept(self, coordinator, watch_dir, stub_generator):
        (watch_dir / "first.spe").write_bytes(b"first")
        (watch_dir / "last.spe").write_bytes(b"last")
        coordinator.events.put(FileEvent(str(watch_dir / "first.spe")))
        coordinator.events.put(FileEvent(str(watch_dir / "vanished.spe")))
        coordinator.events.put(FileEvent(str(watch_dir / "last.spe"), EventKind.RENAMED))

        stats = coordinator.drain()

        assert stats == PipelineStats(imported=2, missing=1)
        assert [p.name for p in stub_generator.calls] == ["first.spe", "last.spe"]
        assert coordinator.events.empty()

    def test_duplicate_events_import_once(self, coordinator, watch_dir, memory_store):
        path = str(watch_dir / "a.spe")
        (watch_dir / "a.spe").write_bytes(b"a")
        for _ in range(3):
            coordinator.events.put(FileEvent(path))

        stats = coordinator.drain()
        assert stats.imported == 1
        assert stats.duplicate == 2
        assert len(memory_store.reports) == 1

    def test_empty_queue(self, coordinator):
        assert coordinator.drain().total == 0


class TestTickLoop:
    def test_run_stops_on_event(self, coordinator):
        stop = threading.Event()
        stop.set()
        coordinator.run(stop, tick_interval=0.01)

    def test_background_ticks_drain_queue(self, coordinator, watch_dir, memory_store):
        (watch_dir / "a.spe").write_bytes(b"a")
        coordinator.start(tick_interval=0.01)
        try:
            coordinator.events.put(FileEvent(str(watch_dir / "a.spe")))
            deadline = time.monotonic() + 5
            while not memory_store.reports and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            coordinator.stop(timeout=5)
        assert len(memory_store.reports) == 1
        assert not coordinator.is_running

    def test_fatal_error_recorded(self, watch_dir, stub_generator, memory_store):
        class BrokenLedger(ChecksumLedger):
            def open(self):
                raise LedgerError("unreachable")

        coordinator = PipelineCoordinator(
            watch_dir,
            "*.spe",
            EventQueue(),
            BrokenLedger(watch_dir.parent / "sniff.db"),
            stub_generator,
            memory_store,
        )
        (watch_dir / "a.spe").write_bytes(b"a")
        coordinator.events.put(FileEvent(str(watch_dir / "a.spe")))
        coordinator.start(tick_interval=0.01)
        deadline = time.monotonic() + 5
        while coordinator.is_running and time.monotonic() < deadline:
            time.sleep(0.01)
        coordinator.stop(timeout=5)
        assert isinstance(coordinator.fatal_error, LedgerError)


@pytest.mark.skipif(sys.platform == "win32", reason="needs /bin/sh")
class TestRealReportTool:
    LATIN1_OUTPUT = "fullført Østerås\n".encode("latin-1")

    def _coordinator(self, watch_dir, ledger, generator, memory_store):
        return PipelineCoordinator(
            watch_dir, "*.spe", EventQueue(), ledger, generator, memory_store
        )

    def test_non_utf8_tool_output_does_not_stop_drain(
        self, watch_dir, ledger, make_report_tool, memory_store
    ):
        tool = make_report_tool(stdout=self.LATIN1_OUTPUT, stderr=self.LATIN1_OUTPUT)
        coordinator = self._coordinator(watch_dir, ledger, tool, memory_store)
        for name in ("a.spe", "b.spe"):
            (watch_dir / name).write_bytes(name.encode())
            coordinator.events.put(FileEvent(str(watch_dir / name)))

        stats = coordinator.drain()

        assert stats == PipelineStats(imported=2)
        assert coordinator.events.empty()
        assert [r.laboratory for r in memory_store.reports] == ["NRPA Osteras"] * 2

    def test_failing_tool_with_non_utf8_stderr_is_per_file(
        self, watch_dir, ledger, make_report_tool, memory_store
    ):
        tool = make_report_tool(report_text=None, exit_code=2, stderr=self.LATIN1_OUTPUT)
        coordinator = self._coordinator(watch_dir, ledger, tool, memory_store)
        for name in ("a.spe", "b.spe"):
            (watch_dir / name).write_bytes(name.encode())
            coordinator.events.put(FileEvent(str(watch_dir / name)))

        stats = coordinator.drain()

        assert stats == PipelineStats(failed=2)
        assert coordinator.events.empty()
        assert not _ledger_has(ledger, watch_dir / "a.spe")
