"""
pagesmith Kernel — Element Tree

Read-only helpers over the element tree (a list of top-level node dicts) and
the structural invariants every tree must satisfy:

- ids are unique across the whole tree
- only container widgets carry children, and only allowed child types
- every node appears exactly once (no shared subtrees, no cycles)
- responsive settings carry a desktop entry

Lookups never mutate. The reducer owns mutation.
"""

from __future__ import annotations

from typing import Any, Iterator

from pagesmith.kernel.responsive import validate_settings
from pagesmith.kernel.widgets import get_widget


def iter_nodes(
    elements: list[dict[str, Any]],
    parent: dict[str, Any] | None = None,
) -> Iterator[tuple[dict[str, Any], dict[str, Any] | None]]:
    """Depth-first (node, parent) pairs. parent is None for top-level nodes."""
    for node in elements:
        yield node, parent
        children = node.get("children")
        if children:
            yield from iter_nodes(children, node)


def find_node(elements: list[dict[str, Any]], node_id: str) -> dict[str, Any] | None:
    for node, _parent in iter_nodes(elements):
        if node.get("id") == node_id:
            return node
    return None


def locate(
    elements: list[dict[str, Any]],
    node_id: str,
) -> tuple[list[dict[str, Any]], int, dict[str, Any] | None] | None:
    """
    Find where a node lives.
    Returns (sibling list, index in it, parent node or None), or None if absent.
    """
    for index, node in enumerate(elements):
        if node.get("id") == node_id:
            return elements, index, None
    for node in elements:
        children = node.get("children")
        if not children:
            continue
        found = locate(children, node_id)
        if found is not None:
            siblings, index, parent = found
            return siblings, index, parent if parent is not None else node
    return None


def find_parent(elements: list[dict[str, Any]], node_id: str) -> dict[str, Any] | None:
    """Parent node of node_id; None if it is top-level or missing."""
    found = locate(elements, node_id)
    return found[2] if found else None


def get_element_path(elements: list[dict[str, Any]], node_id: str) -> list[dict[str, Any]] | None:
    """Nodes from the top level down to node_id inclusive (breadcrumb), or None."""
    for node in elements:
        if node.get("id") == node_id:
            return [node]
        children = node.get("children")
        if children:
            sub = get_element_path(children, node_id)
            if sub is not None:
                return [node, *sub]
    return None


def is_descendant(node: dict[str, Any], candidate_id: str) -> bool:
    """True if candidate_id is somewhere below node (node itself excluded)."""
    for child, _parent in iter_nodes(node.get("children") or []):
        if child.get("id") == candidate_id:
            return True
    return False


def collect_ids(elements: list[dict[str, Any]]) -> list[str]:
    return [node.get("id") for node, _parent in iter_nodes(elements)]


def count_nodes(elements: list[dict[str, Any]]) -> int:
    return sum(1 for _ in iter_nodes(elements))


def validate_node(node: Any, *, path: str = "node") -> list[str]:
    """Validate a single node's own fields (not its uniqueness in a tree)."""
    if not isinstance(node, dict):
        return [f"{path}: must be an object"]

    errors: list[str] = []
    node_id = node.get("id")
    if not isinstance(node_id, str) or not node_id:
        errors.append(f"{path}: 'id' must be a non-empty string")

    widget = get_widget(node.get("type")) if isinstance(node.get("type"), str) else None
    if widget is None:
        errors.append(f"{path}: unknown widget type {node.get('type')!r}")

    errors.extend(f"{path}: {e}" for e in validate_settings(node.get("settings", {})))

    children = node.get("children")
    if children is not None and not isinstance(children, list):
        errors.append(f"{path}: 'children' must be a list")
    elif children and widget is not None:
        if not widget.is_container:
            errors.append(f"{path}: '{widget.type}' is not a container but has children")
        else:
            for i, child in enumerate(children):
                child_type = child.get("type") if isinstance(child, dict) else None
                if isinstance(child_type, str) and get_widget(child_type) and not widget.accepts_child(child_type):
                    errors.append(f"{path}.children[{i}]: '{child_type}' not allowed inside '{widget.type}'")

    return errors


def validate_tree(elements: Any) -> list[str]:
    """
    Check every structural invariant of a tree.
    Returns a list of error strings. Empty list = valid.
    """
    if not isinstance(elements, list):
        return ["elements must be a list"]

    errors: list[str] = []
    seen_ids: set[str] = set()
    seen_objects: set[int] = set()

    def walk(nodes: list[Any], prefix: str) -> None:
        for i, node in enumerate(nodes):
            path = f"{prefix}[{i}]"
            if id(node) in seen_objects:
                errors.append(f"{path}: node appears more than once in the tree")
                continue
            seen_objects.add(id(node))

            errors.extend(validate_node(node, path=path))
            if not isinstance(node, dict):
                continue

            node_id = node.get("id")
            if isinstance(node_id, str):
                if node_id in seen_ids:
                    errors.append(f"{path}: duplicate id {node_id!r}")
                seen_ids.add(node_id)

            children = node.get("children")
            if isinstance(children, list):
                walk(children, f"{path}.children")

    walk(elements, "elements")
    return errors
