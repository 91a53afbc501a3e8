#!/usr/bin/env python3
"""
Test suite for the store and the run controller.

Tests cover:
- Snapshot serialization and backends
- Pure state machine steps (start, page load, delete, clear)
- Run completion without over-accumulation
- RunController effect dispatch and reload cancellation
- End-to-end page loads through PerformanceTool
"""

import json

import pytest

from perf_tool.console import PerformanceTool, PerfToolConsole
from perf_tool.constants import (
    BOOT_MARK_NAME,
    DEFAULT_COLUMNS,
    FIRST_CONTENTFUL_PAINT,
    RUN_START_DELAY_MS,
    STORE_KEY,
)
from perf_tool.controller import (
    LogMessage,
    NotifyOperator,
    PageHost,
    ReloadAfterDelay,
    ReloadHandle,
    ReloadNow,
    RunController,
    ShowSummary,
    clear_all,
    delete_run,
    page_loaded,
    start_run,
)
from perf_tool.store import JsonFileStore, MemoryStore, StoreSnapshot, append_iteration
from perf_tool.timing import MarkEntry, NavigationEntry, PaintEntry, PerformanceTimeline


def record(value=1.0):
    return {column: value for column in DEFAULT_COLUMNS}


class FakeHost(PageHost):
    """Host that records what the controller asked for."""

    def __init__(self, debug_render_tree=False):
        self.debug_render_tree = debug_render_tree
        self.reloads = 0
        self.scheduled = []
        self.alerts = []
        self.logs = []

    def reload(self):
        self.reloads += 1

    def schedule_reload(self, delay_ms):
        self.scheduled.append(delay_ms)
        return ReloadHandle()

    def alert(self, message):
        self.alerts.append(message)

    def log(self, text, prefix=True):
        self.logs.append(text)


# ============================================================================
# Store Tests
# ============================================================================

class TestStoreSnapshot:
    """Test snapshot shape and persistence"""

    def test_empty_roundtrip(self):
        assert StoreSnapshot().to_json() == {}
        assert StoreSnapshot.from_json(None) == StoreSnapshot()
        assert StoreSnapshot.from_json({}) == StoreSnapshot()

    def test_label_and_iterations_together(self):
        raw = StoreSnapshot(label="a", iterations=3, data={"a": [record()]}).to_json()
        assert raw == {"label": "a", "iterations": 3, "data": {"a": [record()]}}

        idle = StoreSnapshot(data={"a": [record()]}).to_json()
        assert "label" not in idle and "iterations" not in idle

    def test_append_requires_run(self):
        with pytest.raises(ValueError):
            append_iteration(StoreSnapshot(), record())

    def test_append_does_not_mutate_input(self):
        before = StoreSnapshot(label="a", iterations=3)
        after = append_iteration(before, record())
        assert before.data == {}
        assert after.data == {"a": [record()]}

    def test_memory_store_key(self):
        store = MemoryStore()
        store.save(StoreSnapshot(data={"a": [record(2.0)]}))

        assert json.loads(store.items[STORE_KEY]) == {"data": {"a": [record(2.0)]}}
        assert store.load().data == {"a": [record(2.0)]}

    def test_json_file_store(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        store = JsonFileStore(str(path))
        assert store.load() == StoreSnapshot()

        store.save(StoreSnapshot(label="a", iterations=2))
        assert path.exists()
        assert JsonFileStore(str(path)).load() == StoreSnapshot(label="a", iterations=2)


# ============================================================================
# State Machine Tests
# ============================================================================

class TestStartRun:
    """Test start_run preconditions"""

    def test_start(self):
        result = start_run(StoreSnapshot(), "a", 3)

        assert result.accepted
        assert result.snapshot.label == "a"
        assert result.snapshot.iterations == 3
        assert result.effects[-1] == ReloadAfterDelay(RUN_START_DELAY_MS)
        assert "Performing 3 iterations for a" in result.message

    def test_duplicate_label_rejected(self):
        snapshot = StoreSnapshot(data={"a": [record()]})
        result = start_run(snapshot, "a", 3)

        assert not result.accepted
        assert result.snapshot is snapshot
        assert "already data stored for a" in result.message
        assert not any(isinstance(e, ReloadAfterDelay) for e in result.effects)

    def test_debug_rendering_rejected(self):
        result = start_run(StoreSnapshot(), "a", 3, debug_render_tree=True)

        assert not result.accepted
        assert "WARNING" in result.message
        assert "force=True" in result.message

    def test_debug_rendering_forced(self):
        result = start_run(StoreSnapshot(), "a", 3, force=True, debug_render_tree=True)
        assert result.accepted

    def test_duplicate_checked_before_environment(self):
        result = start_run(StoreSnapshot(data={"a": [record()]}), "a", 3, debug_render_tree=True)
        assert "already data stored" in result.message

    @pytest.mark.parametrize("label,iterations", [("", 3), ("a", 0), ("a", -1)])
    def test_invalid_arguments(self, label, iterations):
        assert not start_run(StoreSnapshot(), label, iterations).accepted

    def test_run_already_in_progress(self):
        result = start_run(StoreSnapshot(label="a", iterations=3), "b", 3)
        assert not result.accepted
        assert "'a' is already in progress" in result.message


class TestPageLoaded:
    """Test page_loaded transitions"""

    def test_run_completion(self):
        snapshot = start_run(StoreSnapshot(), "a", 3).snapshot

        effects = []
        for i in range(3):
            result = page_loaded(snapshot, record(float(i)))
            snapshot = result.snapshot
            effects.append(result.effects)

        assert effects[0] == [ReloadNow()]
        assert effects[1] == [ReloadNow()]
        assert isinstance(effects[2][0], NotifyOperator)
        assert "Completed run labelled 'a'" in effects[2][0].message
        assert effects[2][-1] == ShowSummary()

        assert len(snapshot.data["a"]) == 3
        assert snapshot.label is None
        assert snapshot.iterations is None

    def test_no_append_after_completion(self):
        snapshot = StoreSnapshot(label="a", iterations=1)
        snapshot = page_loaded(snapshot, record()).snapshot
        result = page_loaded(snapshot, record(9.0))

        assert result.snapshot.data["a"] == [record()]
        assert result.effects == [ShowSummary()]

    def test_iterations_recorded_in_order(self):
        snapshot = StoreSnapshot(label="a", iterations=3)
        for value in (3.0, 1.0, 2.0):
            snapshot = page_loaded(snapshot, record(value)).snapshot
        assert [r["dns"] for r in snapshot.data["a"]] == [3.0, 1.0, 2.0]

    def test_idle_without_data(self):
        result = page_loaded(StoreSnapshot(), record())
        assert result.effects == []
        assert result.snapshot == StoreSnapshot()

    def test_appends_to_existing_label_data(self):
        snapshot = StoreSnapshot(label="a", iterations=3, data={"a": [record(), record()]})
        result = page_loaded(snapshot, record())
        assert result.snapshot.label is None
        assert len(result.snapshot.data["a"]) == 3


class TestDeleteAndClear:
    def test_delete(self):
        result = delete_run(StoreSnapshot(data={"a": [record()], "b": [record()]}), "a")
        assert result.accepted
        assert list(result.snapshot.data.keys()) == ["b"]
        assert result.message == "Deleted data for a"

    def test_delete_missing_is_noop(self):
        snapshot = StoreSnapshot(data={"b": [record()]})
        result = delete_run(snapshot, "a")
        assert not result.accepted
        assert result.snapshot is snapshot
        assert "No data stored for a" in result.message

    def test_delete_on_empty_store(self):
        assert not delete_run(StoreSnapshot(), "a").accepted

    def test_delete_in_progress_label_before_first_iteration(self):
        snapshot = start_run(StoreSnapshot(), "a", 3).snapshot
        result = delete_run(snapshot, "a")

        assert result.accepted
        assert result.snapshot == StoreSnapshot()
        assert "Aborted the run labelled 'a'" in result.message
        assert start_run(result.snapshot, "b", 3).accepted

    def test_delete_in_progress_label_after_iterations(self):
        snapshot = StoreSnapshot(label="a", iterations=3, data={"a": [record()], "b": [record()]})
        result = delete_run(snapshot, "a")

        assert result.accepted
        assert result.snapshot.label is None
        assert result.snapshot.iterations is None
        assert list(result.snapshot.data.keys()) == ["b"]

        # The next page load does not record into the aborted run
        after = page_loaded(result.snapshot, record())
        assert "a" not in after.snapshot.data
        assert start_run(result.snapshot, "c", 3).accepted

    def test_delete_other_label_keeps_run(self):
        snapshot = StoreSnapshot(label="a", iterations=3, data={"b": [record()]})
        result = delete_run(snapshot, "b")
        assert result.snapshot.label == "a"
        assert result.snapshot.data == {}

    def test_clear(self):
        result = clear_all(StoreSnapshot(label="a", iterations=2, data={"a": [record()]}))
        assert result.snapshot == StoreSnapshot()


# ============================================================================
# RunController Tests
# ============================================================================

class TestRunController:
    """Test effect dispatch against a store and host"""

    def test_full_run_against_store(self):
        store, host = MemoryStore(), FakeHost()
        controller = RunController(store, host)

        assert controller.start_run("a", 3).ok
        assert host.scheduled == [RUN_START_DELAY_MS]
        assert store.load().label == "a"

        for _ in range(3):
            controller.report(record())

        assert host.reloads == 2
        assert len(host.alerts) == 1
        assert len(store.load().data["a"]) == 3
        assert store.load().label is None
        assert any(log.startswith("Summary of recorded runs") for log in host.logs)

        # A further page load only shows the summary
        controller.report(record())
        assert host.reloads == 2
        assert len(store.load().data["a"]) == 3

    def test_rejected_start_does_not_write(self):
        store = MemoryStore()
        store.save(StoreSnapshot(data={"a": [record()]}))
        before = dict(store.items)

        result = RunController(store, FakeHost()).start_run("a", 3)

        assert not result.ok
        assert store.items == before

    def test_debug_host_blocks_run(self):
        host = FakeHost(debug_render_tree=True)
        controller = RunController(MemoryStore(), host)

        assert not controller.start_run("a", 3).ok
        assert controller.start_run("a", 3, force=True).ok

    def test_cancel_pending_reload(self):
        controller = RunController(MemoryStore(), FakeHost())
        assert controller.cancel_pending_reload() is False

        controller.start_run("a", 3)
        handle = controller.pending_reload

        assert controller.cancel_pending_reload() is True
        assert handle.cancelled
        assert controller.cancel_pending_reload() is False

    def test_delete_aborts_run_and_pending_reload(self):
        store = MemoryStore()
        controller = RunController(store, FakeHost())
        controller.start_run("a", 3)
        handle = controller.pending_reload

        assert controller.delete_run("a").ok
        assert handle.cancelled
        assert store.load() == StoreSnapshot()
        assert controller.start_run("b", 3).ok

    def test_page_load_report_logged(self):
        host = FakeHost()
        RunController(MemoryStore(), host).report(record())
        assert host.logs[0].startswith("Data for this page load:")


# ============================================================================
# End-to-end Tests
# ============================================================================

def page_load(boot_time=400.0):
    timeline = PerformanceTimeline()
    timeline.add_entry(NavigationEntry(
        domain_lookup_start=0.0,
        domain_lookup_end=2.0,
        connect_start=2.0,
        connect_end=10.0,
        request_start=10.0,
        response_start=100.0,
        dom_content_loaded_event_start=700.0,
    ))
    timeline.add_entry(MarkEntry(name=BOOT_MARK_NAME, start_time=boot_time))
    timeline.add_entry(PaintEntry(name=FIRST_CONTENTFUL_PAINT, start_time=1000.0))
    return timeline


class TestPerformanceTool:
    """Simulated page loads through the console facade"""

    def test_run_over_reloads(self):
        store, host = MemoryStore(), FakeHost()

        # Page load where the operator starts the run
        PerformanceTool.start(page_load(), store, host)
        assert PerformanceTool.run("a", 2).ok

        # Each reload is a fresh tool instance reading the same store
        for boot_time in (400.0, 420.0, 440.0):
            timeline = page_load(boot_time)
            PerformanceTool.start(timeline, store, host)
            timeline.deliver_pending()

        data = store.load().data["a"]
        assert [r["loading"] for r in data] == [300.0, 320.0]
        assert [r["init + rendering"] for r in data] == [600.0, 580.0]
        assert store.load().label is None

    def test_repeated_delivery_records_once(self):
        store = MemoryStore()
        store.save(StoreSnapshot(label="a", iterations=5))

        timeline = page_load()
        console = PerfToolConsole(store, FakeHost())
        console.listen(timeline)
        timeline.deliver_pending()
        # Same entries delivered again in later batches
        console.correlator.handle_batch(timeline.get_entries_by_type("navigation"))
        console.correlator.handle_batch(timeline.get_entries_by_type("paint"))

        assert len(store.load().data["a"]) == 1

    def test_facade_requires_start(self):
        PerformanceTool.instance = None
        with pytest.raises(RuntimeError):
            PerformanceTool.help()

    def test_delete_and_clear(self):
        store, host = MemoryStore(), FakeHost()
        store.save(StoreSnapshot(data={"a": [record()], "b": [record()]}))
        console = PerfToolConsole(store, host)

        assert console.delete("a").ok
        assert not console.delete("a").ok
        assert list(store.load().data.keys()) == ["b"]

        console.clear()
        assert store.load() == StoreSnapshot()

    def test_help(self):
        host = FakeHost()
        text = PerfToolConsole(MemoryStore(), host).help()
        assert "run('somename', 100)" in text
        assert host.logs == [text]
