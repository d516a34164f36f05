"""
pagesmith Kernel — Reducer

Pure function: (elements, action) → ReduceResult
No side effects. No IO. Deterministic apart from the fresh ids minted by
duplicate.

Every structural failure (unknown id, cycle, non-container parent, …) is a
rejection: applied=False, the input tree is returned untouched, and `error`
carries "CODE: message". The reducer never raises.

Actions are plain dicts:

    {"type": "element.insert",    "parent": id|None, "node": {...}, "index": int|None}
    {"type": "element.update",    "id": id, "settings": {...}}
    {"type": "element.delete",    "id": id}
    {"type": "element.duplicate", "id": id}
    {"type": "element.move",      "id": id, "parent": id|None, "index": int|None}
    {"type": "document.replace",  "elements": [...]}

The named helpers below (insert_element, move_element, …) build the action
and reduce it in one call.
"""

from __future__ import annotations

import copy
from typing import Any

from pagesmith.kernel.responsive import ResponsiveValueError, normalize_settings, validate_settings
from pagesmith.kernel.tree import collect_ids, is_descendant, locate, validate_tree
from pagesmith.kernel.types import ReduceResult, is_root
from pagesmith.kernel.widgets import generate_id, get_widget

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def reduce(elements: list[dict[str, Any]], action: dict[str, Any]) -> ReduceResult:
    """
    Apply one action to the current tree.
    Returns new tree + applied flag + error.

    Pure function. The input tree is never modified (deep copy on mutation).
    """
    action_type = action.get("type")
    if action_type is None:
        return ReduceResult(elements=elements, applied=False, error="MISSING_TYPE: action has no 'type' field")

    handler = _HANDLERS.get(action_type)
    if handler is None:
        return ReduceResult(elements=elements, applied=False, error=f"UNKNOWN_ACTION: {action_type}")

    snap = copy.deepcopy(elements)
    result = handler(snap, action)
    if not result.applied:
        # Hand back the caller's tree, not the scratch copy.
        result.elements = elements
    return result


def insert_element(
    elements: list[dict[str, Any]],
    parent_id: str | None,
    node: dict[str, Any],
    index: int | None = None,
) -> ReduceResult:
    return reduce(elements, {"type": "element.insert", "parent": parent_id, "node": node, "index": index})


def update_element(elements: list[dict[str, Any]], node_id: str, settings: dict[str, Any]) -> ReduceResult:
    return reduce(elements, {"type": "element.update", "id": node_id, "settings": settings})


def delete_element(elements: list[dict[str, Any]], node_id: str) -> ReduceResult:
    return reduce(elements, {"type": "element.delete", "id": node_id})


def duplicate_element(elements: list[dict[str, Any]], node_id: str) -> ReduceResult:
    return reduce(elements, {"type": "element.duplicate", "id": node_id})


def move_element(
    elements: list[dict[str, Any]],
    node_id: str,
    parent_id: str | None,
    index: int | None = None,
) -> ReduceResult:
    return reduce(elements, {"type": "element.move", "id": node_id, "parent": parent_id, "index": index})


def replace_elements(elements: list[dict[str, Any]], new_elements: list[dict[str, Any]]) -> ReduceResult:
    return reduce(elements, {"type": "document.replace", "elements": new_elements})


def clone_with_new_ids(node: dict[str, Any]) -> dict[str, Any]:
    """Deep copy of a subtree where every node gets a fresh id."""
    clone = copy.deepcopy(node)
    clone["id"] = generate_id()
    if "children" in node:
        clone["children"] = [clone_with_new_ids(c) for c in node.get("children") or []]
    return clone


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(snap: list, code: str, msg: str) -> ReduceResult:
    return ReduceResult(elements=snap, applied=False, error=f"{code}: {msg}")


def _ok(snap: list, **kwargs: Any) -> ReduceResult:
    return ReduceResult(elements=snap, applied=True, **kwargs)


def _normalized(node: dict[str, Any]) -> dict[str, Any]:
    """Copy of node with unset settings dropped throughout the subtree."""
    out = {
        "id": node["id"],
        "type": node["type"],
        "settings": normalize_settings(node.get("settings") or {}),
    }
    widget = get_widget(node["type"])
    if widget is not None and widget.is_container:
        out["children"] = [_normalized(c) for c in node.get("children") or []]
    return out


def _resolve_parent(snap: list, parent_id: str | None, child_type: str) -> tuple[list | None, ReduceResult | None]:
    """
    Find the sibling list a node of child_type would be placed into.
    Returns (siblings, None) or (None, rejection).
    """
    if is_root(parent_id):
        return snap, None

    found = locate(snap, parent_id)
    if found is None:
        return None, _reject(snap, "PARENT_NOT_FOUND", f"Parent '{parent_id}' not found")

    siblings, index, _grandparent = found
    parent = siblings[index]
    widget = get_widget(parent.get("type"))
    if widget is None or not widget.is_container:
        return None, _reject(snap, "NOT_A_CONTAINER", f"'{parent_id}' ({parent.get('type')}) cannot hold children")
    if not widget.accepts_child(child_type):
        return None, _reject(snap, "CHILD_NOT_ALLOWED", f"'{child_type}' is not allowed inside '{widget.type}'")

    parent.setdefault("children", [])
    return parent["children"], None


def _valid_index(index: Any) -> bool:
    return index is None or (isinstance(index, int) and not isinstance(index, bool))


def _clamp(index: int | None, length: int) -> int:
    if index is None:
        return length
    return max(0, min(index, length))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_insert(snap: list, action: dict[str, Any]) -> ReduceResult:
    node = action.get("node")
    errors = validate_tree([node])
    if errors:
        return _reject(snap, "INVALID_NODE", "; ".join(errors))

    index = action.get("index")
    if not _valid_index(index):
        return _reject(snap, "INVALID_INDEX", f"index must be an integer, got {index!r}")

    clashes = set(collect_ids([node])) & set(collect_ids(snap))
    if clashes:
        return _reject(snap, "DUPLICATE_ID", f"ids already in the tree: {sorted(clashes)}")

    siblings, rejection = _resolve_parent(snap, action.get("parent"), node["type"])
    if rejection is not None:
        return rejection

    siblings.insert(_clamp(index, len(siblings)), _normalized(node))
    return _ok(snap, created_ids=collect_ids([node]))


def _handle_update(snap: list, action: dict[str, Any]) -> ReduceResult:
    node_id = action.get("id")
    partial = action.get("settings")
    if not isinstance(partial, dict):
        return _reject(snap, "INVALID_SETTINGS", "settings must be an object")

    errors = validate_settings(partial)
    if errors:
        return _reject(snap, "INVALID_SETTINGS", "; ".join(errors))

    found = locate(snap, node_id)
    if found is None:
        return _reject(snap, "NOT_FOUND", f"Element '{node_id}' not found")

    siblings, index, _parent = found
    node = siblings[index]
    settings = dict(node.get("settings") or {})
    for key, value in partial.items():
        if value is None:
            settings.pop(key, None)
        else:
            settings[key] = copy.deepcopy(value)
    try:
        node["settings"] = normalize_settings(settings)
    except ResponsiveValueError as e:
        return _reject(snap, "INVALID_SETTINGS", str(e))

    return _ok(snap)


def _handle_delete(snap: list, action: dict[str, Any]) -> ReduceResult:
    node_id = action.get("id")
    found = locate(snap, node_id)
    if found is None:
        return _reject(snap, "NOT_FOUND", f"Element '{node_id}' not found")

    siblings, index, _parent = found
    removed = siblings.pop(index)
    return _ok(snap, removed_ids=set(collect_ids([removed])))


def _handle_duplicate(snap: list, action: dict[str, Any]) -> ReduceResult:
    node_id = action.get("id")
    found = locate(snap, node_id)
    if found is None:
        return _reject(snap, "NOT_FOUND", f"Element '{node_id}' not found")

    siblings, index, _parent = found
    clone = clone_with_new_ids(siblings[index])
    siblings.insert(index + 1, clone)
    return _ok(snap, created_ids=collect_ids([clone]))


def _handle_move(snap: list, action: dict[str, Any]) -> ReduceResult:
    """
    Move a node to (parent, index).

    `index` addresses the target sibling list as it is *before* the move:
    "land in front of whatever is at index now". When the node moves later
    within its own parent, removing it first shifts that slot down by one,
    so the index is decremented.
    """
    node_id = action.get("id")
    parent_id = action.get("parent")
    index = action.get("index")

    if not _valid_index(index):
        return _reject(snap, "INVALID_INDEX", f"index must be an integer, got {index!r}")

    found = locate(snap, node_id)
    if found is None:
        return _reject(snap, "NOT_FOUND", f"Element '{node_id}' not found")

    old_siblings, old_index, _old_parent = found
    node = old_siblings[old_index]

    if not is_root(parent_id):
        if parent_id == node_id:
            return _reject(snap, "CYCLE", f"Cannot move '{node_id}' into itself")
        if is_descendant(node, parent_id):
            return _reject(snap, "CYCLE", f"Cannot move '{node_id}' into its own descendant '{parent_id}'")

    new_siblings, rejection = _resolve_parent(snap, parent_id, node["type"])
    if rejection is not None:
        return rejection

    target = _clamp(index, len(new_siblings))
    if new_siblings is old_siblings and old_index < target:
        target -= 1

    if new_siblings is old_siblings and target == old_index:
        return _reject(snap, "NO_CHANGE", f"'{node_id}' is already at that position")

    old_siblings.pop(old_index)
    new_siblings.insert(target, node)
    return _ok(snap)


def _handle_replace(snap: list, action: dict[str, Any]) -> ReduceResult:
    new_elements = action.get("elements")
    errors = validate_tree(new_elements)
    if errors:
        return _reject(snap, "INVALID_DOCUMENT", "; ".join(errors))
    return _ok([_normalized(n) for n in new_elements], created_ids=collect_ids(new_elements))


_HANDLERS = {
    "element.insert": _handle_insert,
    "element.update": _handle_update,
    "element.delete": _handle_delete,
    "element.duplicate": _handle_duplicate,
    "element.move": _handle_move,
    "document.replace": _handle_replace,
}
