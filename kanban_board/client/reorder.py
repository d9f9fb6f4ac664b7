"""Reorder/move engine: pure drag-end reconciliation.

Given the ordered columns, the tasks and a drag-end event, compute the new
arrangement and rewrite ``ord`` so it is dense and 1-based wherever the
move touched. Nothing here performs I/O, raises, or mutates its inputs:
records are frozen and replaced. Invalid events (no destination, unknown
container, out-of-range index) are no-ops.

Containers: column drags happen in the ``BOARD`` container; task drags use
column ids as containers.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List, Optional

BOARD = "board"


class ItemKind(str, Enum):
    COLUMN = "COLUMN"
    TASK = "TASK"


@dataclass(frozen=True)
class DragEvent:
    item_kind: ItemKind
    source_container: Any
    source_index: int
    dest_container: Any = None
    dest_index: Optional[int] = None


@dataclass(frozen=True)
class DragResult:
    columns: List
    tasks: List
    changed: bool = False

    @classmethod
    def unchanged(cls, columns, tasks):
        return cls(columns=list(columns), tasks=list(tasks), changed=False)


def _is_index(value, upper):
    """True if ``value`` is an int in [0, upper]."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= upper


def resequence(items):
    """Return ``items`` with ord rewritten to position + 1."""
    return [
        item if item.ord == i else replace(item, ord=i)
        for i, item in enumerate(items, start=1)
    ]


def column_lanes(columns, tasks):
    """Group tasks per column id, each lane ordered by ord.

    Lanes follow column order; tasks pointing at an unknown column are
    kept in trailing lanes so nothing is ever dropped.
    """
    lanes = {col.id: [] for col in columns}
    for task in sorted(tasks, key=lambda t: t.ord):
        lanes.setdefault(task.column_id, []).append(task)
    return lanes


def flatten_lanes(lanes):
    return [task for lane in lanes.values() for task in lane]


def move_column(columns, source_index, dest_index):
    """Array-move a column. Returns the re-sequenced list, or None for a no-op."""
    last = len(columns) - 1
    if not (_is_index(source_index, last) and _is_index(dest_index, last)):
        return None
    if source_index == dest_index:
        return None

    ordered = list(columns)
    moved = ordered.pop(source_index)
    ordered.insert(dest_index, moved)
    return resequence(ordered)


def move_task(columns, tasks, source_column, source_index, dest_column, dest_index):
    """Move a task within or across columns.

    Returns every task flattened in column-then-ord sequence, with the
    source and destination lanes re-sequenced, or None for a no-op.
    """
    colors = {col.id: col.color for col in columns}
    if source_column not in colors or dest_column not in colors:
        return None

    lanes = column_lanes(columns, tasks)
    source = list(lanes[source_column])
    if not _is_index(source_index, len(source) - 1):
        return None

    if source_column == dest_column:
        if source_index == dest_index or not _is_index(dest_index, len(source) - 1):
            return None
        moved = source.pop(source_index)
        source.insert(dest_index, moved)
        lanes[source_column] = resequence(source)
        return flatten_lanes(lanes)

    destination = list(lanes[dest_column])
    # appending after the last task is a valid drop target across columns
    if not _is_index(dest_index, len(destination)):
        return None
    moved = source.pop(source_index)
    moved = replace(moved, column_id=dest_column, color=colors[dest_column])
    destination.insert(dest_index, moved)
    lanes[source_column] = resequence(source)
    lanes[dest_column] = resequence(destination)
    return flatten_lanes(lanes)


def apply_drag(columns, tasks, event):
    """Resolve a drag-end event against the current board state."""
    if event.dest_container is None or event.dest_index is None:
        return DragResult.unchanged(columns, tasks)

    if event.item_kind == ItemKind.COLUMN:
        if event.source_container != BOARD or event.dest_container != BOARD:
            return DragResult.unchanged(columns, tasks)
        moved = move_column(columns, event.source_index, event.dest_index)
        if moved is None:
            return DragResult.unchanged(columns, tasks)
        return DragResult(columns=moved, tasks=list(tasks), changed=True)

    if event.item_kind == ItemKind.TASK:
        moved = move_task(
            columns,
            tasks,
            event.source_container,
            event.source_index,
            event.dest_container,
            event.dest_index,
        )
        if moved is None:
            return DragResult.unchanged(columns, tasks)
        return DragResult(columns=list(columns), tasks=moved, changed=True)

    return DragResult.unchanged(columns, tasks)
