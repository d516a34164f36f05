"""
pagesmith Kernel — Drag and Drop

Two pure steps between a pointer and the mutation engine:

    classify_drop   pointer y + target geometry → before | after | inside
    resolve_drop    (dragged, target, position)  → DropTarget(parent_id, index)

The reducer only ever sees the resolved parent and index. The index is
expressed against the target sibling list as it is now; the move handler
corrects for the removal of the dragged node itself.
"""

from __future__ import annotations

from typing import Any

from pagesmith.kernel.tree import locate
from pagesmith.kernel.types import DROP_POSITIONS, DropTarget, Rect
from pagesmith.kernel.widgets import get_widget

# Fraction of a container's height, at the top and at the bottom, that still
# means before/after rather than inside.
CONTAINER_EDGE = 0.25


def classify_drop(pointer_y: float, rect: Rect, is_container: bool = False) -> str:
    """
    Classify a pointer position relative to a target's bounding box.

    Leaves split at the vertical midpoint. Containers reserve their top and
    bottom bands for before/after and treat the interior as inside.
    """
    if not is_container:
        return "before" if pointer_y < rect.top + rect.height / 2 else "after"

    edge = rect.height * CONTAINER_EDGE
    if pointer_y < rect.top + edge:
        return "before"
    if pointer_y > rect.bottom - edge:
        return "after"
    return "inside"


def resolve_drop(
    elements: list[dict[str, Any]],
    dragged_id: str | None,
    target_id: str | None,
    position: str,
) -> DropTarget | None:
    """
    Turn a classified drop into the parent and index to insert or move to.

    dragged_id is None for a new widget coming from the palette. target_id is
    None when dropping on the empty root zone. Returns None when the drop is
    meaningless (unknown target, dropping a node on itself).
    """
    if position not in DROP_POSITIONS:
        raise ValueError(f"Unknown drop position: {position!r}")

    if target_id is None:
        return DropTarget(parent_id=None)

    if dragged_id is not None and dragged_id == target_id:
        return None

    found = locate(elements, target_id)
    if found is None:
        return None
    siblings, index, parent = found

    if position == "inside":
        widget = get_widget(siblings[index].get("type"))
        if widget is not None and widget.is_container:
            # Existing nodes land at the top of the container, new ones at the end.
            return DropTarget(parent_id=target_id, index=0 if dragged_id is not None else None)
        position = "after"

    parent_id = parent.get("id") if parent is not None else None
    return DropTarget(parent_id=parent_id, index=index if position == "before" else index + 1)
