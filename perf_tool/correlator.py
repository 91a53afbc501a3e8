from __future__ import annotations

from typing import Callable, List, Optional

from .constants import (
    BOOT_MARK_NAME,
    ENTRY_TYPE_MARK,
    ENTRY_TYPE_NAVIGATION,
    ENTRY_TYPE_PAINT,
    FIRST_CONTENTFUL_PAINT,
)
from .timing import MarkEntry, NavigationEntry, PaintEntry, PerformanceTimeline, TimingEntry

ReadyCallback = Callable[[NavigationEntry, PaintEntry, MarkEntry], None]


class EventCorrelator:
    """
    Collects the three entries needed to derive stages for one page load.

    ``on_ready`` is called exactly once, after the first batch that leaves
    the navigation, first-contentful-paint and boot mark slots all filled.
    Entries delivered again after that are still recorded but never trigger
    a second report.
    """

    def __init__(self, on_ready: ReadyCallback, boot_mark_name: str = BOOT_MARK_NAME):
        self.on_ready = on_ready
        self.boot_mark_name = boot_mark_name
        self.navigation_entry: Optional[NavigationEntry] = None
        self.first_contentful_paint_entry: Optional[PaintEntry] = None
        self.boot_mark_entry: Optional[MarkEntry] = None
        self.reported = False

    def observe(self, timeline: PerformanceTimeline) -> None:
        for entry_type in (ENTRY_TYPE_NAVIGATION, ENTRY_TYPE_PAINT, ENTRY_TYPE_MARK):
            timeline.observe(self.handle_batch, entry_type, buffered=True)

        # Buffered replay is not guaranteed for paint entries, so pick up any
        # that already fired. Harmless when the observer replays them too.
        self.handle_batch(timeline.get_entries_by_type(ENTRY_TYPE_PAINT))

    def handle_batch(self, entries: List[TimingEntry]) -> None:
        for entry in entries:
            self.handle_entry(entry)
        self.report_if_ready()

    def handle_entry(self, entry: TimingEntry) -> None:
        if isinstance(entry, NavigationEntry):
            self.navigation_entry = entry
        elif isinstance(entry, PaintEntry):
            if entry.name == FIRST_CONTENTFUL_PAINT:
                self.first_contentful_paint_entry = entry
        elif isinstance(entry, MarkEntry):
            if entry.name == self.boot_mark_name:
                self.boot_mark_entry = entry

    @property
    def ready(self) -> bool:
        return (
            self.navigation_entry is not None
            and self.first_contentful_paint_entry is not None
            and self.boot_mark_entry is not None
        )

    def report_if_ready(self) -> bool:
        """Finalize once all entries are present. Returns True only on the finalizing call."""
        if self.reported or not self.ready:
            return False

        self.reported = True
        self.on_ready(
            self.navigation_entry,
            self.first_contentful_paint_entry,
            self.boot_mark_entry,
        )
        return True
