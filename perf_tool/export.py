"""CSV export and Chart.js chart configuration."""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, List, Optional, Sequence

from .constants import (
    BOXPLOT_BACKGROUND_COLOR,
    BOXPLOT_BORDER_COLOR,
    BOXPLOT_HEIGHT_PER_LABEL,
    BOXPLOT_OUTLIER_COLOR,
    CHART_COLORS,
    CHART_FOOTER,
    CHART_FOOTER_OUTLIERS,
    CHART_MIN_HEIGHT,
    CSV_PRECISION,
    DEFAULT_COLUMNS,
    DEFAULT_GRAPH_STAGE,
    IQR_OUTLIER_MULTIPLIER,
)
from .histogram import boxplot_view, histogram_view
from .stages import StageRecord, to_fixed

CHART_TYPES = ("boxplot", "histogram")


# -----------------------------
# CSV
# -----------------------------

def to_csv(data: Dict[str, List[StageRecord]], columns: Sequence[str] = DEFAULT_COLUMNS) -> str:
    """
    One row per (label, stage), one column per iteration.

    label,stage
    before,dns,1.20,1.35,...
    """
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(["label", "stage"])
    for label, runs in data.items():
        for column in columns:
            writer.writerow([label, column, *(to_fixed(r[column], CSV_PRECISION) for r in runs)])
    return out.getvalue().rstrip("\n")


def parse_csv(text: str) -> Dict[str, List[StageRecord]]:
    """
    Read an exported CSV back into per-label iteration records.

    Raises:
        ValueError: If the header is missing or stages disagree on iteration count
    """
    rows = list(csv.reader(io.StringIO(text)))
    if not rows or rows[0][:2] != ["label", "stage"]:
        raise ValueError("CSV must start with a 'label,stage' header")

    data: Dict[str, List[StageRecord]] = {}
    for row in rows[1:]:
        if not row:
            continue
        label, stage, values = row[0], row[1], [float(v) for v in row[2:]]
        runs = data.setdefault(label, [])
        if not runs:
            runs.extend({} for _ in values)
        if len(runs) != len(values):
            raise ValueError(
                f"Stage '{stage}' of '{label}' has {len(values)} values, expected {len(runs)}"
            )
        for record, value in zip(runs, values):
            record[stage] = value
    return data


# -----------------------------
# Chart configuration
# -----------------------------

class ColorCycle:
    def __init__(self, colors: Sequence[str] = CHART_COLORS):
        self.colors = list(colors)
        self.index = 0

    def next(self) -> str:
        color = self.colors[self.index]
        self.index = (self.index + 1) % len(self.colors)
        return color


def _footer(show_outliers: bool) -> List[str]:
    footer = [CHART_FOOTER]
    if not show_outliers:
        footer.append(CHART_FOOTER_OUTLIERS)
    return footer


def _title_plugins(stage: str, show_outliers: bool) -> Dict[str, Any]:
    return {
        "title": {"display": True, "text": f"'{stage}' duration"},
        "subtitle": {
            "display": True,
            "position": "bottom",
            "align": "end",
            "text": _footer(show_outliers),
            "font": {"style": "italic", "size": 10},
        },
    }


def boxplot_config(
    data: Dict[str, List[StageRecord]],
    stage: str,
    labels: Optional[Sequence[str]] = None,
    show_outliers: bool = True,
) -> Dict[str, Any]:
    view = boxplot_view(data, stage, labels)
    plugins = _title_plugins(stage, show_outliers)
    plugins["legend"] = {"display": False}

    return {
        "type": "boxplot",
        "data": {
            "labels": [[label, f"({len(view.data[label])} iter)"] for label in view.labels],
            "datasets": [{
                "backgroundColor": BOXPLOT_BACKGROUND_COLOR,
                "borderColor": BOXPLOT_BORDER_COLOR,
                "borderWidth": 2,
                "data": [view.data[label] for label in view.labels],
                "outlierBackgroundColor": BOXPLOT_OUTLIER_COLOR,
                "minStats": "min" if show_outliers else "whiskerMin",
                "maxStats": "max" if show_outliers else "whiskerMax",
                "itemRadius": 2,
                "outlierRadius": 2 if show_outliers else 0,
                "coef": IQR_OUTLIER_MULTIPLIER,
            }],
        },
        "options": {
            "layout": {"padding": 10},
            "maintainAspectRatio": False,
            "animation": {"duration": 0},
            "indexAxis": "y",
            "plugins": plugins,
            "scales": {
                "x": {
                    "beginAtZero": False,
                    "title": {"display": True, "text": "Duration (ms)"},
                },
            },
        },
    }


def histogram_config(
    data: Dict[str, List[StageRecord]],
    stage: str,
    labels: Optional[Sequence[str]] = None,
    show_outliers: bool = True,
) -> Dict[str, Any]:
    view = histogram_view(data, stage, labels, hide_outliers=not show_outliers)
    colors = ColorCycle()

    datasets = []
    for dataset in view.datasets:
        color = colors.next()
        datasets.append({
            "label": f"{dataset.label} ({dataset.iterations} iter)",
            "data": dataset.data,
            "backgroundColor": f"{color}40",
            "borderColor": f"{color}80",
            "borderWidth": 1,
            "fill": True,
            "stepped": "before",
            "pointRadius": 0,
        })

    return {
        "type": "line",
        "data": {"labels": view.labels, "datasets": datasets},
        "options": {
            "plugins": _title_plugins(stage, show_outliers),
            "animation": {"duration": 0},
            "scales": {
                "x": {"title": {"display": True, "text": "Duration (ms)"}},
                "y": {
                    "title": {"display": True, "text": "Proportion of requests"},
                    "grid": {"display": False},
                    "beginAtZero": True,
                },
            },
        },
    }


def chart_config(
    data: Dict[str, List[StageRecord]],
    chart_type: str = "boxplot",
    stage: str = DEFAULT_GRAPH_STAGE,
    labels: Optional[Sequence[str]] = None,
    show_outliers: bool = True,
) -> Dict[str, Any]:
    """
    Chart.js configuration for one stage.

    Raises:
        ValueError: On an unknown chart type or stage, or a label without data
    """
    if chart_type not in CHART_TYPES:
        raise ValueError(f"Unknown chart type '{chart_type}', expected one of {', '.join(CHART_TYPES)}")
    if stage not in DEFAULT_COLUMNS:
        raise ValueError(f"Unknown stage '{stage}'")

    if chart_type == "boxplot":
        return boxplot_config(data, stage, labels, show_outliers)
    return histogram_config(data, stage, labels, show_outliers)


def chart_height(config: Dict[str, Any]) -> int:
    if config["type"] == "boxplot":
        return max(CHART_MIN_HEIGHT, len(config["data"]["labels"]) * BOXPLOT_HEIGHT_PER_LABEL)
    return CHART_MIN_HEIGHT
