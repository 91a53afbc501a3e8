"""Timing entries and the performance timeline they are delivered through.

The browser reports three kinds of entries that matter to the tool: the
navigation entry of the page load, the first-contentful-paint entry and the
boot mark set by the application as soon as its boot script runs. They are
modelled as frozen dataclasses so that handlers can dispatch on type.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .constants import (
    BOOT_MARK_NAME,
    ENTRY_TYPE_MARK,
    ENTRY_TYPE_NAVIGATION,
    ENTRY_TYPE_PAINT,
)


@dataclass(frozen=True)
class NavigationEntry:
    """Navigation timing of the current page load (one per load)."""
    domain_lookup_start: float
    domain_lookup_end: float
    connect_start: float
    connect_end: float
    request_start: float
    response_start: float
    dom_content_loaded_event_start: float

    entry_type = ENTRY_TYPE_NAVIGATION


@dataclass(frozen=True)
class PaintEntry:
    name: str
    start_time: float

    entry_type = ENTRY_TYPE_PAINT


@dataclass(frozen=True)
class MarkEntry:
    name: str
    start_time: float

    entry_type = ENTRY_TYPE_MARK


TimingEntry = Union[NavigationEntry, PaintEntry, MarkEntry]

EntryCallback = Callable[[List[TimingEntry]], None]


def entry_from_json(raw: Dict[str, Any]) -> Optional[TimingEntry]:
    """
    Build a TimingEntry from a serialized PerformanceEntry.

    Accepts the shape produced by ``JSON.stringify(performance.getEntries())``
    in a browser console. Entries of other types (resource, measure, ...)
    return None.

    Raises:
        ValueError: If a supported entry is missing a required field
    """
    entry_type = raw.get("entryType")
    try:
        if entry_type == ENTRY_TYPE_NAVIGATION:
            return NavigationEntry(
                domain_lookup_start=float(raw["domainLookupStart"]),
                domain_lookup_end=float(raw["domainLookupEnd"]),
                connect_start=float(raw["connectStart"]),
                connect_end=float(raw["connectEnd"]),
                request_start=float(raw["requestStart"]),
                response_start=float(raw["responseStart"]),
                dom_content_loaded_event_start=float(raw["domContentLoadedEventStart"]),
            )
        if entry_type == ENTRY_TYPE_PAINT:
            return PaintEntry(name=str(raw["name"]), start_time=float(raw["startTime"]))
        if entry_type == ENTRY_TYPE_MARK:
            return MarkEntry(name=str(raw["name"]), start_time=float(raw["startTime"]))
    except KeyError as e:
        raise ValueError(f"{entry_type} entry is missing field {e.args[0]!r}") from e
    return None


def entries_from_json(raw_entries: List[Dict[str, Any]]) -> List[TimingEntry]:
    entries = []
    for raw in raw_entries:
        entry = entry_from_json(raw)
        if entry is not None:
            entries.append(entry)
    return entries


class PerformanceTimeline:
    """
    In-memory stand-in for the browser performance timeline.

    Entries recorded with ``add_entry`` are queued for observers and handed
    out in batches by ``deliver_pending``, mirroring the way the browser
    delivers PerformanceObserver callbacks from its task queue rather than
    synchronously.

    Args:
        buffered_types: Entry types that honour ``buffered=True`` on observe.
            Some browsers do not replay buffered paint entries, which is
            simulated by leaving "paint" out of this set.
    """

    def __init__(self, buffered_types=(ENTRY_TYPE_NAVIGATION, ENTRY_TYPE_PAINT, ENTRY_TYPE_MARK)):
        self._origin = time.perf_counter()
        self._entries: List[TimingEntry] = []
        self._observers: List[tuple] = []
        self._pending: List[tuple] = []
        self.buffered_types = set(buffered_types)

    def now(self) -> float:
        """Milliseconds since the timeline was created."""
        return (time.perf_counter() - self._origin) * 1000.0

    def add_entry(self, entry: TimingEntry) -> None:
        self._entries.append(entry)
        for entry_type, callback in self._observers:
            if entry.entry_type == entry_type:
                self._pending.append((callback, [entry]))

    def mark(self, name: str) -> MarkEntry:
        entry = MarkEntry(name=name, start_time=self.now())
        self.add_entry(entry)
        return entry

    def get_entries_by_type(self, entry_type: str) -> List[TimingEntry]:
        return [e for e in self._entries if e.entry_type == entry_type]

    def observe(self, callback: EntryCallback, entry_type: str, buffered: bool = False) -> None:
        self._observers.append((entry_type, callback))
        if buffered and entry_type in self.buffered_types:
            existing = self.get_entries_by_type(entry_type)
            if existing:
                self._pending.append((callback, existing))

    def deliver_pending(self) -> int:
        """Run queued observer callbacks. Returns the number of batches delivered."""
        delivered = 0
        while self._pending:
            callback, batch = self._pending.pop(0)
            callback(list(batch))
            delivered += 1
        return delivered


class BootMarker:
    """
    Records the boot mark exactly once.

    Call ``mark_boot`` from the first line of application bootstrap; later
    calls are ignored so that only the earliest instant is kept.
    """

    def __init__(self, timeline: PerformanceTimeline, name: str = BOOT_MARK_NAME):
        self.timeline = timeline
        self.name = name
        self.booted = False

    def mark_boot(self) -> Optional[MarkEntry]:
        if self.booted:
            return None
        self.booted = True
        return self.timeline.mark(self.name)
