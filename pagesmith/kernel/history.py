"""
pagesmith Kernel — History

Linear undo/redo log: two stacks of full tree snapshots.

    past    oldest … newest   (undo pops from the end)
    future  next … latest     (redo pops from the front)

Every recorded mutation clears `future`. Undo and redo only ever swap whole
snapshots; they never touch individual settings.

HistoryLog is an immutable value. Each operation returns a new one.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

Tree = list[dict[str, Any]]


@dataclass(frozen=True)
class HistoryLog:
    past: tuple[Tree, ...] = ()
    future: tuple[Tree, ...] = ()

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)


def record(history: HistoryLog, snapshot: Tree, limit: int | None = None) -> HistoryLog:
    """Push the pre-mutation snapshot and drop the redo branch."""
    past = (*history.past, copy.deepcopy(snapshot))
    if limit is not None and len(past) > limit:
        past = past[len(past) - limit:]
    return HistoryLog(past=past, future=())


def undo(history: HistoryLog, current: Tree) -> tuple[HistoryLog, Tree] | None:
    """Step back one snapshot. None when there is nothing to undo."""
    if not history.past:
        return None
    *past, previous = history.past
    return HistoryLog(past=tuple(past), future=(copy.deepcopy(current), *history.future)), previous


def redo(history: HistoryLog, current: Tree) -> tuple[HistoryLog, Tree] | None:
    """Step forward one snapshot. None when there is nothing to redo."""
    if not history.future:
        return None
    following, *future = history.future
    return HistoryLog(past=(*history.past, copy.deepcopy(current)), future=tuple(future)), following
