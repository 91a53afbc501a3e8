"""Operator console.

``PerformanceTool.start(...)`` wires the tool into a page: it observes the
timeline, derives the stages once all entries are in and hands the record to
the run controller. The remaining class methods are the commands an operator
types into the console.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .constants import BOOT_MARK_NAME, DEFAULT_COLUMNS, DEFAULT_GRAPH_STAGE
from .controller import CommandResult, PageHost, RunController
from .correlator import EventCorrelator
from .export import chart_config, to_csv
from .html_template import render_graph_page
from .stages import StageRecord, derive_stages
from .store import StoreBackend
from .summary import format_summary
from .timing import MarkEntry, NavigationEntry, PaintEntry, PerformanceTimeline

HELP_TEXT = "\n".join([
    "perf-tool can collect javascript performance data, then analyse/graph the results.",
    "  To collect 100 datapoints labelled 'somename', run `run('somename', 100)`",
    "  To delete a labelled dataset, use `delete('somename')`",
    "  To clear all data, use `clear()`",
    "  To export all data as CSV, use `csv()`",
    "  To show the graph UI, use `graph()`",
    "  To cancel a run that has not started measuring yet, use `cancel()`",
    "",
])


class PerfToolConsole:
    """One tool instance bound to a store and a page host."""

    def __init__(self, store: StoreBackend, host: PageHost, boot_mark_name: str = BOOT_MARK_NAME):
        self.store = store
        self.host = host
        self.controller = RunController(store, host)
        self.correlator = EventCorrelator(self._on_entries_ready, boot_mark_name=boot_mark_name)
        self.last_record: Optional[StageRecord] = None

    def listen(self, timeline: PerformanceTimeline) -> None:
        self.correlator.observe(timeline)

    def _on_entries_ready(self, nav: NavigationEntry, fcp: PaintEntry, boot_mark: MarkEntry) -> None:
        self.last_record = derive_stages(nav, fcp, boot_mark)
        self.controller.report(self.last_record)

    @property
    def data(self) -> Dict[str, List[StageRecord]]:
        return self.store.load().data

    def help(self) -> str:
        self.host.log(HELP_TEXT)
        return HELP_TEXT

    def run(self, label: str, iterations: int, force: bool = False) -> CommandResult:
        return self.controller.start_run(label, iterations, force=force)

    def delete(self, label: str) -> CommandResult:
        return self.controller.delete_run(label)

    def clear(self) -> CommandResult:
        return self.controller.clear_all()

    def cancel(self) -> bool:
        cancelled = self.controller.cancel_pending_reload()
        if cancelled:
            self.host.log("Cancelled the scheduled reload")
        return cancelled

    def summary(self, columns: Sequence[str] = DEFAULT_COLUMNS) -> str:
        text = format_summary(self.data, columns)
        self.host.log(text)
        return text

    def csv(self, out: Optional[str] = None, columns: Sequence[str] = DEFAULT_COLUMNS) -> str:
        text = to_csv(self.data, columns)
        if out:
            Path(out).write_text(text, encoding="utf-8")
            self.host.log(f"CSV Generated Successfully: {out}")
        return text

    def graph(
        self,
        chart_type: str = "boxplot",
        stage: str = DEFAULT_GRAPH_STAGE,
        labels: Optional[Sequence[str]] = None,
        show_outliers: bool = True,
        out: Optional[str] = None,
    ) -> str:
        """Render the graph page as HTML, optionally writing it to ``out``."""
        data = self.data
        if labels is None:
            labels = list(data.keys())
        config = chart_config(data, chart_type, stage, labels, show_outliers)
        html = render_graph_page(config, chart_type, stage, list(labels), show_outliers)
        if out:
            Path(out).write_text(html, encoding="utf-8")
            self.host.log(f"Wrote graph to {out}")
        return html


class PerformanceTool:
    """Class-level facade over the running instance."""

    instance: Optional[PerfToolConsole] = None

    @classmethod
    def start(
        cls,
        timeline: PerformanceTimeline,
        store: StoreBackend,
        host: PageHost,
        boot_mark_name: str = BOOT_MARK_NAME,
    ) -> PerfToolConsole:
        cls.instance = PerfToolConsole(store, host, boot_mark_name=boot_mark_name)
        cls.instance.listen(timeline)
        return cls.instance

    @classmethod
    def _require(cls) -> PerfToolConsole:
        if cls.instance is None:
            raise RuntimeError("PerformanceTool.start() has not been called")
        return cls.instance

    @classmethod
    def help(cls) -> str:
        return cls._require().help()

    @classmethod
    def run(cls, label: str, iterations: int, force: bool = False) -> CommandResult:
        return cls._require().run(label, iterations, force=force)

    @classmethod
    def delete(cls, label: str) -> CommandResult:
        return cls._require().delete(label)

    @classmethod
    def clear(cls) -> CommandResult:
        return cls._require().clear()

    @classmethod
    def cancel(cls) -> bool:
        return cls._require().cancel()

    @classmethod
    def csv(cls, out: Optional[str] = None) -> str:
        return cls._require().csv(out)

    @classmethod
    def graph(cls, **kwargs) -> str:
        return cls._require().graph(**kwargs)
