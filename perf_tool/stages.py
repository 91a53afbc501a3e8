from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from .constants import (
    DEFAULT_COLUMNS,
    PAGE_LOAD_PRECISION,
    STAGE_CONNECT,
    STAGE_DNS,
    STAGE_INIT_RENDERING,
    STAGE_INITIALIZING,
    STAGE_LOADING,
    STAGE_RENDERING,
    STAGE_WAITING,
)
from .timing import MarkEntry, NavigationEntry, PaintEntry

StageRecord = Dict[str, float]


def derive_stages(nav: NavigationEntry, fcp: PaintEntry, boot_mark: MarkEntry) -> StageRecord:
    """
    Derive the stage durations (ms) of one page load.

    Values are not clamped: inconsistent browser timestamps produce negative
    durations, which are returned as-is.
    """
    return {
        STAGE_DNS: nav.domain_lookup_end - nav.domain_lookup_start,
        STAGE_CONNECT: nav.connect_end - nav.connect_start,
        STAGE_WAITING: nav.response_start - nav.request_start,
        STAGE_LOADING: boot_mark.start_time - nav.response_start,
        STAGE_INITIALIZING: nav.dom_content_loaded_event_start - boot_mark.start_time,
        STAGE_RENDERING: fcp.start_time - nav.dom_content_loaded_event_start,
        STAGE_INIT_RENDERING: fcp.start_time - boot_mark.start_time,
    }


def negative_stages(record: StageRecord) -> List[str]:
    return [stage for stage in DEFAULT_COLUMNS if record.get(stage, 0.0) < 0]


def round_half_up(value: float, precision: int = PAGE_LOAD_PRECISION) -> float:
    """Round exact halves towards +inf (12.25 -> 12.3, -2.5 at 0 digits -> -2)."""
    multiplier = 10 ** precision
    return math.floor(value * multiplier + 0.5) / multiplier


def to_fixed(value: float, digits: int) -> str:
    """
    Fixed-point text with exact ties rounded away from zero.

    Format specs round ties to even (f"{0.125:.2f}" == "0.12"); here
    0.125 -> "0.13" and 12.5 -> "13".
    """
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def page_load_rows(record: StageRecord) -> List[List[str]]:
    """Rows of the per-page-load table, header first."""
    rows = [["STAGE", "DURATION"]]
    for stage in DEFAULT_COLUMNS:
        value = round_half_up(record[stage])
        rows.append([stage, f"{to_fixed(value, PAGE_LOAD_PRECISION)} ms"])
    return rows
