#!/usr/bin/env python3
"""Command line front end.

Each ``record`` invocation stands for one page load: it reads the entries a
browser reported (``JSON.stringify(performance.getEntries())``), derives the
stages and advances the run stored in the JSON store file.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional

from .console import PerfToolConsole
from .constants import (
    BOOT_MARK_NAME,
    DEFAULT_COLUMNS,
    DEFAULT_GRAPH_STAGE,
    DEFAULT_STORE_PATH,
    EXIT_FAILURE,
    EXIT_PARSE_ERROR,
    EXIT_SUCCESS,
)
from .controller import PageHost, ReloadHandle
from .store import JsonFileStore
from .timing import PerformanceTimeline, entries_from_json


class CliHost(PageHost):
    """Host for command line use: reloads become instructions to the operator."""

    def __init__(self, debug_render_tree: bool = False):
        self.debug_render_tree = debug_render_tree
        self.reload_requested = False

    def reload(self) -> None:
        self.reload_requested = True
        self.log("Reload the page and record the next page load")

    def schedule_reload(self, delay_ms: int) -> ReloadHandle:
        self.reload_requested = True
        self.log(f"Start reloading and recording page loads after {delay_ms / 1000:.0f} seconds")
        return ReloadHandle()

    def alert(self, message: str) -> None:
        print(f"🎉 {message}")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def _load_entries(path: str) -> list:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("entries", [])
    if not isinstance(raw, list):
        raise ValueError("Entries file must hold a JSON list of performance entries")
    return entries_from_json(raw)


def _split_list(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="perf-tool",
        description="Collect page load timing stages over repeated runs and summarize them.",
    )
    p.add_argument(
        "--store",
        default=os.getenv("PERF_TOOL_STORE", DEFAULT_STORE_PATH),
        help=f"Store file (default: $PERF_TOOL_STORE or {DEFAULT_STORE_PATH})",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("help", help="Show usage of the operator commands")

    run = sub.add_parser("run", help="Start a labelled run of N iterations")
    run.add_argument("label")
    run.add_argument("iterations", type=int)
    run.add_argument("--force", action="store_true", help="Run even in an unrepresentative environment")

    record = sub.add_parser("record", help="Record one page load from a performance entries JSON file")
    record.add_argument("entries", help="JSON file with the page's performance entries")
    record.add_argument(
        "--boot-mark",
        default=os.getenv("PERF_TOOL_BOOT_MARK", BOOT_MARK_NAME),
        help=f"Name of the boot mark (default: {BOOT_MARK_NAME})",
    )

    summary = sub.add_parser("summary", help="Print median ± MAD per label and stage")
    summary.add_argument("--columns", help="Comma-separated stages (default: all)")

    delete = sub.add_parser("delete", help="Delete a labelled dataset")
    delete.add_argument("label")

    sub.add_parser("clear", help="Delete all data")

    csv_cmd = sub.add_parser("csv", help="Export all data as CSV")
    csv_cmd.add_argument("--out", help="Output file (default: stdout)")

    graph = sub.add_parser("graph", help="Write the graph page as HTML")
    graph.add_argument("--type", choices=["boxplot", "histogram"], default="boxplot")
    graph.add_argument("--stage", choices=DEFAULT_COLUMNS, default=DEFAULT_GRAPH_STAGE)
    graph.add_argument("--labels", help="Comma-separated labels (default: all)")
    graph.add_argument("--outliers", choices=["show", "hide"], default="show")
    graph.add_argument("--out", default="perf-tool-graph.html", help="Output HTML file")

    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    host = CliHost(debug_render_tree=_env_flag("PERF_TOOL_DEBUG_RENDER_TREE"))
    store = JsonFileStore(args.store)
    boot_mark = getattr(args, "boot_mark", BOOT_MARK_NAME)
    console = PerfToolConsole(store, host, boot_mark_name=boot_mark)

    try:
        if args.command == "help":
            console.help()
            return EXIT_SUCCESS

        if args.command == "run":
            result = console.run(args.label, args.iterations, force=args.force)
            return EXIT_SUCCESS if result.ok else EXIT_FAILURE

        if args.command == "record":
            timeline = PerformanceTimeline()
            for entry in _load_entries(args.entries):
                timeline.add_entry(entry)
            console.listen(timeline)
            timeline.deliver_pending()
            if console.last_record is None:
                print(
                    "Error: entries must include a navigation entry, a first-contentful-paint "
                    f"entry and a '{boot_mark}' mark",
                    file=sys.stderr,
                )
                return EXIT_PARSE_ERROR
            return EXIT_SUCCESS

        if args.command == "summary":
            console.summary(_split_list(args.columns) or DEFAULT_COLUMNS)
            return EXIT_SUCCESS

        if args.command == "delete":
            result = console.delete(args.label)
            return EXIT_SUCCESS if result.ok else EXIT_FAILURE

        if args.command == "clear":
            console.clear()
            return EXIT_SUCCESS

        if args.command == "csv":
            text = console.csv(args.out)
            if not args.out:
                print(text)
            return EXIT_SUCCESS

        if args.command == "graph":
            console.graph(
                chart_type=args.type,
                stage=args.stage,
                labels=_split_list(args.labels),
                show_outliers=args.outliers == "show",
                out=args.out,
            )
            return EXIT_SUCCESS
    except (ValueError, KeyError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_PARSE_ERROR

    return EXIT_PARSE_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
