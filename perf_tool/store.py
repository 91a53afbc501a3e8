"""Persisted run data.

The whole store is one JSON blob of the shape::

    {"label": "...", "iterations": 100, "data": {"<label>": [{"<stage>": ms}, ...]}}

``label`` and ``iterations`` are only present while a run is in progress.
Every change reads the full snapshot and writes it back wholesale; there is
no locking, so only one writer (one browser tab, one CLI process) may drive a
run against a given store at a time.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import STORE_KEY
from .stages import StageRecord


@dataclass
class StoreSnapshot:
    """Full persisted state.

    Attributes:
        label: Label of the run in progress, None when idle
        iterations: Target iteration count of the run in progress
        data: Recorded stage durations per label, in recording order
    """
    label: Optional[str] = None
    iterations: Optional[int] = None
    data: Dict[str, List[StageRecord]] = field(default_factory=dict)

    @property
    def in_progress(self) -> bool:
        return self.label is not None

    def copy(self) -> "StoreSnapshot":
        return copy.deepcopy(self)

    def to_json(self) -> Dict[str, Any]:
        raw: Dict[str, Any] = {}
        if self.label is not None:
            raw["label"] = self.label
            raw["iterations"] = self.iterations
        if self.data:
            raw["data"] = self.data
        return raw

    @classmethod
    def from_json(cls, raw: Optional[Dict[str, Any]]) -> "StoreSnapshot":
        if not raw:
            return cls()
        return cls(
            label=raw.get("label"),
            iterations=raw.get("iterations"),
            data={label: list(runs) for label, runs in (raw.get("data") or {}).items()},
        )


class StoreBackend:
    """Key-value persistence holding the serialized snapshot."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError()

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError()

    def load(self) -> StoreSnapshot:
        raw = self.get_item(STORE_KEY)
        if raw:
            return StoreSnapshot.from_json(json.loads(raw))
        return StoreSnapshot()

    def save(self, snapshot: StoreSnapshot) -> None:
        self.set_item(STORE_KEY, json.dumps(snapshot.to_json()))


class MemoryStore(StoreBackend):
    """Dict-backed store, the equivalent of one browser's localStorage."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class JsonFileStore(StoreBackend):
    """
    Store persisted in a JSON file mapping keys to serialized values.

    A missing file reads as an empty store; the file is created on first save.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            text = f.read()
        return json.loads(text) if text.strip() else {}

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(items, f, indent=2)


# -----------------------------
# Snapshot mutations
# -----------------------------

def begin_run(snapshot: StoreSnapshot, label: str, iterations: int) -> StoreSnapshot:
    new = snapshot.copy()
    new.label = label
    new.iterations = iterations
    return new


def append_iteration(snapshot: StoreSnapshot, record: StageRecord) -> StoreSnapshot:
    """Append a record to the dataset of the run in progress."""
    if snapshot.label is None:
        raise ValueError("No run in progress")
    new = snapshot.copy()
    new.data.setdefault(new.label, []).append(dict(record))
    return new


def end_run(snapshot: StoreSnapshot) -> StoreSnapshot:
    new = snapshot.copy()
    new.label = None
    new.iterations = None
    return new


def remove_label(snapshot: StoreSnapshot, label: str) -> StoreSnapshot:
    new = snapshot.copy()
    new.data.pop(label, None)
    return new
