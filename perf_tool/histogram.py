"""Chart-ready views of the recorded data.

Both views take one stage across a set of labels. The boxplot view keeps
every value (the chart draws whiskers and outliers itself); the histogram
view optionally drops IQR outliers and buckets what remains on a shared axis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .constants import HISTOGRAM_BUCKET_COUNT
from .outliers import filter_outliers
from .stages import StageRecord
from .summary import stage_values


@dataclass
class HistogramDataset:
    label: str
    iterations: int
    data: List[float]


@dataclass
class HistogramView:
    """Step function data, ``labels`` holds bucket minimums followed by the max."""
    labels: List[float] = field(default_factory=list)
    datasets: List[HistogramDataset] = field(default_factory=list)


@dataclass
class BoxplotView:
    labels: List[str] = field(default_factory=list)
    data: Dict[str, List[float]] = field(default_factory=dict)


def select_stage(
    data: Dict[str, List[StageRecord]],
    stage: str,
    labels: Optional[Sequence[str]] = None,
) -> Dict[str, List[float]]:
    """
    Sorted values of ``stage`` for each requested label.

    Raises:
        ValueError: If a requested label has no recorded data
    """
    if labels is None:
        labels = list(data.keys())
    selected = {}
    for label in labels:
        if label not in data:
            raise ValueError(f"No data recorded for label '{label}'")
        selected[label] = sorted(stage_values(data[label], stage))
    return selected


def bucket_minimums(minimum: float, maximum: float, bucket_count: int = HISTOGRAM_BUCKET_COUNT) -> List[float]:
    interval = (maximum - minimum) / bucket_count
    return [minimum + interval * i for i in range(bucket_count)]


def bucketize(sorted_values: Sequence[float], minimums: Sequence[float]) -> List[float]:
    """
    Proportion of values falling in each bucket.

    Each value adds 1/n to its bucket, so the buckets of any non-empty
    dataset sum to 1. Values beyond the last minimum land in the last bucket.
    """
    buckets = [0.0] * len(minimums)
    if not sorted_values:
        return buckets

    weight = 1 / len(sorted_values)
    bucket_index = 0
    for point in sorted_values:
        while bucket_index + 1 < len(minimums) and point > minimums[bucket_index + 1]:
            bucket_index += 1
        buckets[bucket_index] += weight
    return buckets


def histogram_view(
    data: Dict[str, List[StageRecord]],
    stage: str,
    labels: Optional[Sequence[str]] = None,
    hide_outliers: bool = False,
    bucket_count: int = HISTOGRAM_BUCKET_COUNT,
) -> HistogramView:
    selected = select_stage(data, stage, labels)
    kept = {label: filter_outliers(values, hide_outliers) for label, values in selected.items()}

    non_empty = [values for values in kept.values() if values]
    if not non_empty:
        return HistogramView()

    minimum = float(np.min([values[0] for values in non_empty]))
    maximum = float(np.max([values[-1] for values in non_empty]))
    minimums = bucket_minimums(minimum, maximum, bucket_count)

    view = HistogramView(labels=[*minimums, maximum])
    for label, values in kept.items():
        buckets = bucketize(values, minimums)
        view.datasets.append(HistogramDataset(
            label=label,
            iterations=len(values),
            data=[*buckets, buckets[-1]],
        ))
    return view


def boxplot_view(
    data: Dict[str, List[StageRecord]],
    stage: str,
    labels: Optional[Sequence[str]] = None,
) -> BoxplotView:
    selected = select_stage(data, stage, labels)
    return BoxplotView(labels=list(selected.keys()), data=selected)
