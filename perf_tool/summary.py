#!/usr/bin/env python3
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .constants import DEFAULT_COLUMNS
from .stages import StageRecord, negative_stages, page_load_rows, to_fixed


@dataclass
class SummaryRow:
    """Per-label summary.

    Attributes:
        label: Run label
        iterations: Number of recorded page loads
        stages: Stage name -> (median, median absolute deviation) in ms
    """
    label: str
    iterations: int
    stages: Dict[str, Tuple[float, float]] = field(default_factory=dict)


# -----------------------------
# Helpers (robust stats)
# -----------------------------

def lower_median(values: Sequence[float]) -> float:
    """
    Element at index n // 2 of the sorted values.

    For an even count this is the upper of the two middle values, not their
    mean: [10, 20, 30, 40] -> 30.
    """
    x = np.sort(np.asarray(values, dtype=float))
    if len(x) == 0:
        raise ValueError("Cannot take the median of an empty sequence")
    return float(x[len(x) // 2])


def median_absolute_deviation(values: Sequence[float], median: Optional[float] = None) -> float:
    """
    Median Absolute Deviation (MAD), unscaled, using the same positional median.

    >>> median_absolute_deviation([10, 20, 30, 40])
    10.0
    """
    if median is None:
        median = lower_median(values)
    deviations = np.abs(np.asarray(values, dtype=float) - median)
    return lower_median(deviations)


def stage_values(runs: List[StageRecord], stage: str) -> List[float]:
    return [float(r[stage]) for r in runs]


def summarize(
    data: Dict[str, List[StageRecord]],
    columns: Sequence[str] = DEFAULT_COLUMNS,
) -> List[SummaryRow]:
    """Median and MAD of every stage for every label, in label insertion order."""
    rows = []
    for label, runs in data.items():
        row = SummaryRow(label=label, iterations=len(runs))
        if runs:
            for column in columns:
                values = stage_values(runs, column)
                median = lower_median(values)
                row.stages[column] = (median, median_absolute_deviation(values, median))
        rows.append(row)
    return rows


# -----------------------------
# Console rendering
# -----------------------------

def render_table(rows: List[List[str]]) -> str:
    """
    Render rows as a right-aligned pipe table; the first row is the header.

    | STAGE | DURATION |
    |------:|---------:|
    """
    column_widths: List[int] = []
    for row in rows:
        for col_index, value in enumerate(row):
            if col_index >= len(column_widths):
                column_widths.append(len(value))
            elif len(value) > column_widths[col_index]:
                column_widths[col_index] = len(value)

    lines = []
    for row_index, row in enumerate(rows):
        lines.append("|" + "".join(f" {value.rjust(column_widths[i])} |" for i, value in enumerate(row)))
        if row_index == 0:
            lines.append("|" + "".join(":|".rjust(column_widths[i] + 3, "-") for i in range(len(row))))
    return "\n".join(lines) + "\n"


def format_stat(median: float, mad: float) -> str:
    return f"{to_fixed(median, 0)} ± {to_fixed(mad, 0)} ms"


def summary_table_rows(rows: List[SummaryRow], columns: Sequence[str] = DEFAULT_COLUMNS) -> List[List[str]]:
    table = [["LABEL", "ITERATIONS", *columns]]
    for row in rows:
        cells = [row.label, str(row.iterations)]
        for column in columns:
            stat = row.stages.get(column)
            cells.append(format_stat(*stat) if stat else "-")
        table.append(cells)
    return table


def format_summary(data: Dict[str, List[StageRecord]], columns: Sequence[str] = DEFAULT_COLUMNS) -> str:
    table = render_table(summary_table_rows(summarize(data, columns), columns))
    return (
        "Summary of recorded runs (median ± median-absolute-deviation):\n\n"
        f"{table}\nRun help for more info"
    )


def format_page_load_report(record: StageRecord) -> str:
    text = f"Data for this page load:\n\n{render_table(page_load_rows(record))}"
    negative = negative_stages(record)
    if negative:
        text += (
            f"⚠️ Negative duration for {', '.join(negative)}: browser timestamps are inconsistent, "
            "values are recorded unchanged\n"
        )
    return text + "Run help for more info\n"
