"""Run control across page reloads.

A run of N iterations spans N+1 page loads: the one where the operator starts
it and one per measurement. The only state carried between them is the
persisted StoreSnapshot, so each step is a pure function of the snapshot and
the triggering event, returning the new snapshot plus the effects the host
must perform (reload, alert, log).
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .constants import LOG_PREFIX, RUN_START_DELAY_MS
from .stages import StageRecord
from .store import (
    StoreBackend,
    StoreSnapshot,
    append_iteration,
    begin_run,
    end_run,
    remove_label,
)
from .summary import format_page_load_report, format_summary


# -----------------------------
# Effects
# -----------------------------

@dataclass(frozen=True)
class ReloadNow:
    pass


@dataclass(frozen=True)
class ReloadAfterDelay:
    delay_ms: int


@dataclass(frozen=True)
class NotifyOperator:
    """Blocking notification (an alert in the browser)."""
    message: str


@dataclass(frozen=True)
class LogMessage:
    text: str


@dataclass(frozen=True)
class ShowSummary:
    pass


Effect = Union[ReloadNow, ReloadAfterDelay, NotifyOperator, LogMessage, ShowSummary]


@dataclass
class StepResult:
    """Outcome of one state machine step.

    Attributes:
        snapshot: State to persist (unchanged when the step was rejected)
        effects: Side effects for the host, in order
        accepted: False if a precondition rejected the operation
    """
    snapshot: StoreSnapshot
    effects: List[Effect] = field(default_factory=list)
    accepted: bool = True

    @property
    def message(self) -> str:
        return "\n".join(e.text for e in self.effects if isinstance(e, LogMessage))


def _reject(snapshot: StoreSnapshot, text: str) -> StepResult:
    return StepResult(snapshot=snapshot, effects=[LogMessage(text)], accepted=False)


# -----------------------------
# Steps
# -----------------------------

def start_run(
    snapshot: StoreSnapshot,
    label: str,
    iterations: int,
    force: bool = False,
    debug_render_tree: bool = False,
) -> StepResult:
    if not label:
        return _reject(snapshot, "A run needs a non-empty label")

    if iterations < 1:
        return _reject(snapshot, f"Iterations must be at least 1, got {iterations}")

    if label in snapshot.data:
        return _reject(
            snapshot,
            f"There is already data stored for {label}. To clear, run delete('{label}')",
        )

    if snapshot.in_progress:
        return _reject(
            snapshot,
            f"A run labelled '{snapshot.label}' is already in progress. "
            f"Wait for it to finish or run delete('{snapshot.label}')",
        )

    if not force and debug_render_tree:
        return _reject(
            snapshot,
            "⚠️ WARNING - Ember debug rendering is enabled. Make sure you are running Ember in "
            "production mode, and that the Ember Inspector browser extension is not running. "
            f"To bypass this check, use run('{label}', {iterations}, force=True)",
        )

    return StepResult(
        snapshot=begin_run(snapshot, label, iterations),
        effects=[
            LogMessage(f"Performing {iterations} iterations for {label}"),
            LogMessage(
                "Close your development tools, and keep the browser in the foreground. "
                f"Measurements will start in {RUN_START_DELAY_MS // 1000} seconds, "
                "and you will be alerted upon completion."
            ),
            ReloadAfterDelay(RUN_START_DELAY_MS),
        ],
    )


def page_loaded(snapshot: StoreSnapshot, record: StageRecord) -> StepResult:
    """Record one page load into the run in progress, if any."""
    if snapshot.in_progress:
        label = snapshot.label
        new = append_iteration(snapshot, record)
        if len(new.data[label]) < new.iterations:
            return StepResult(snapshot=new, effects=[ReloadNow()])

        return StepResult(
            snapshot=end_run(new),
            effects=[
                NotifyOperator(
                    f"perf-tool: Completed run labelled '{label}'. Open dev tools console for results."
                ),
                LogMessage(f"Completed run labelled '{label}'"),
                ShowSummary(),
            ],
        )

    if snapshot.data:
        return StepResult(snapshot=snapshot, effects=[ShowSummary()])
    return StepResult(snapshot=snapshot)


def delete_run(snapshot: StoreSnapshot, label: str) -> StepResult:
    """Delete a labelled dataset; deleting the label of the run in progress aborts that run."""
    aborting = snapshot.in_progress and snapshot.label == label
    if label not in snapshot.data and not aborting:
        return _reject(snapshot, f"⚠️ No data stored for {label}, nothing deleted")

    new = remove_label(snapshot, label)
    effects: List[Effect] = [LogMessage(f"Deleted data for {label}")]
    if aborting:
        new = end_run(new)
        effects.append(LogMessage(f"Aborted the run labelled '{label}'"))
    return StepResult(snapshot=new, effects=effects)


def clear_all(snapshot: StoreSnapshot) -> StepResult:
    return StepResult(snapshot=StoreSnapshot(), effects=[LogMessage("Cleared all data")])


# -----------------------------
# Host
# -----------------------------

class ReloadHandle:
    """Cancellable pending reload."""

    def __init__(self, timer: Optional[threading.Timer] = None):
        self.timer = timer
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        if self.timer is not None:
            self.timer.cancel()


class PageHost:
    """
    The page the tool runs in.

    Subclasses provide the actual reload; logging goes to stdout with the
    tool prefix.
    """

    debug_render_tree = False

    def reload(self) -> None:
        raise NotImplementedError()

    def schedule_reload(self, delay_ms: int) -> ReloadHandle:
        timer = threading.Timer(delay_ms / 1000.0, self.reload)
        timer.daemon = True
        timer.start()
        return ReloadHandle(timer)

    def alert(self, message: str) -> None:
        print(message)

    def log(self, text: str, prefix: bool = True) -> None:
        print(f"{LOG_PREFIX if prefix else ''}{text}")


@dataclass
class CommandResult:
    ok: bool
    message: str = ""


class RunController:
    """Applies state machine steps to a store and a host."""

    def __init__(self, store: StoreBackend, host: PageHost):
        self.store = store
        self.host = host
        self.pending_reload: Optional[ReloadHandle] = None

    @property
    def snapshot(self) -> StoreSnapshot:
        return self.store.load()

    def _apply(self, result: StepResult) -> CommandResult:
        if result.accepted:
            self.store.save(result.snapshot)
        for effect in result.effects:
            self._dispatch(effect, result.snapshot)
        return CommandResult(ok=result.accepted, message=result.message)

    def _dispatch(self, effect: Effect, snapshot: StoreSnapshot) -> None:
        if isinstance(effect, LogMessage):
            self.host.log(effect.text)
        elif isinstance(effect, NotifyOperator):
            self.host.alert(effect.message)
        elif isinstance(effect, ReloadNow):
            self.host.reload()
        elif isinstance(effect, ReloadAfterDelay):
            self.pending_reload = self.host.schedule_reload(effect.delay_ms)
        elif isinstance(effect, ShowSummary):
            self.host.log(format_summary(snapshot.data))

    def start_run(self, label: str, iterations: int, force: bool = False) -> CommandResult:
        return self._apply(start_run(
            self.snapshot, label, iterations,
            force=force,
            debug_render_tree=self.host.debug_render_tree,
        ))

    def report(self, record: StageRecord) -> CommandResult:
        """Handle the stage record derived for the current page load."""
        self.host.log(format_page_load_report(record))
        return self._apply(page_loaded(self.snapshot, record))

    def delete_run(self, label: str) -> CommandResult:
        result = self._apply(delete_run(self.snapshot, label))
        if result.ok and not self.snapshot.in_progress:
            self.cancel_pending_reload()
        return result

    def clear_all(self) -> CommandResult:
        return self._apply(clear_all(self.snapshot))

    def cancel_pending_reload(self) -> bool:
        """
        Cancel a scheduled start-of-run reload.

        The run stays marked in progress in the store; the next page load
        records into it as usual.
        """
        if self.pending_reload is None or self.pending_reload.cancelled:
            return False
        self.pending_reload.cancel()
        self.pending_reload = None
        return True
