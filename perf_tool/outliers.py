from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .constants import IQR_OUTLIER_MULTIPLIER, Q1_QUANTILE, Q3_QUANTILE


@dataclass
class OutlierBounds:
    """Quartile bounds of one sorted sample.

    Attributes:
        q1: values[floor(0.25 * n)]
        q3: values[ceil(0.75 * n)]
        low: q1 - k * iqr
        high: q3 + k * iqr
    """
    q1: float
    q3: float
    low: float
    high: float

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    def is_outlier(self, value: float) -> bool:
        return value < self.low or value > self.high


@dataclass
class OutlierPartition:
    kept: List[float] = field(default_factory=list)
    discarded: List[float] = field(default_factory=list)
    bounds: Optional[OutlierBounds] = None


def outlier_bounds(
    sorted_values: Sequence[float],
    k: float = IQR_OUTLIER_MULTIPLIER,
) -> Optional[OutlierBounds]:
    """
    Positional (non-interpolated) quartile bounds for Tukey's fences.

    Returns None when the Q3 index falls outside the sample (n <= 3), in
    which case no value can be classified as an outlier.

    Example:
        >>> b = outlier_bounds([1, 2, 3, 4, 5, 6, 7, 8, 9, 10])
        >>> (b.q1, b.q3, b.low, b.high)
        (3.0, 9.0, -6.0, 18.0)
    """
    n = len(sorted_values)
    q1_index = math.floor(Q1_QUANTILE * n)
    q3_index = math.ceil(Q3_QUANTILE * n)
    if n == 0 or q3_index >= n:
        return None

    q1 = float(sorted_values[q1_index])
    q3 = float(sorted_values[q3_index])
    iqr = q3 - q1
    return OutlierBounds(q1=q1, q3=q3, low=q1 - iqr * k, high=q3 + iqr * k)


def partition_outliers(sorted_values: Sequence[float], k: float = IQR_OUTLIER_MULTIPLIER) -> OutlierPartition:
    bounds = outlier_bounds(sorted_values, k)
    partition = OutlierPartition(bounds=bounds)
    for v in sorted_values:
        if bounds is not None and bounds.is_outlier(v):
            partition.discarded.append(float(v))
        else:
            partition.kept.append(float(v))
    return partition


def filter_outliers(sorted_values: Sequence[float], hide_outliers: bool = True) -> List[float]:
    if not hide_outliers:
        return [float(v) for v in sorted_values]
    return partition_outliers(sorted_values).kept
