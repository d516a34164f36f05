"""
pagesmith Kernel — Shared Types

Constants and data classes used across the registry, tree model, reducer,
renderer, importer and store. These are the contracts that bind the kernel
together.

An element node is a plain dict:

    {
        "id": "el_…",                 # opaque, unique across the tree
        "type": "heading",            # one of WIDGET_TYPES
        "settings": {...},            # scalar or responsive values
        "children": [...],            # containers only
    }

A responsive value is a dict keyed by viewport class with a mandatory
"desktop" entry, e.g. {"desktop": "24px", "mobile": "20px"}.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Viewports
# ---------------------------------------------------------------------------

DESKTOP = "desktop"
TABLET = "tablet"
MOBILE = "mobile"

VIEWPORTS: tuple[str, ...] = (DESKTOP, TABLET, MOBILE)

# Most specific first. resolve() walks this chain for the requested viewport.
VIEWPORT_CASCADE: dict[str, tuple[str, ...]] = {
    DESKTOP: (DESKTOP,),
    TABLET: (TABLET, DESKTOP),
    MOBILE: (MOBILE, TABLET, DESKTOP),
}

# ---------------------------------------------------------------------------
# Widget type tags
# ---------------------------------------------------------------------------

WIDGET_TYPES: tuple[str, ...] = (
    "heading",
    "text",
    "image",
    "button",
    "divider",
    "spacer",
    "html",
    "one-column",
    "two-columns",
    "three-columns",
    "columns",
    "column",
)

WIDGET_CATEGORIES: tuple[str, ...] = ("basic", "layout", "media", "advanced")

CONTROL_KINDS: set[str] = {
    "text",
    "textarea",
    "number",
    "select",
    "color",
    "slider",
    "toggle",
    "code",
    "image",
    "url",
}

# Root of the tree. Actions addressing the top-level sequence use this
# (or None) as the parent id.
ROOT = "root"

DROP_POSITIONS: tuple[str, ...] = ("before", "after", "inside")

# ---------------------------------------------------------------------------
# Markup conventions
# ---------------------------------------------------------------------------

# Placeholder a container's render function leaves for its children.
CHILDREN_SLOT = "{{children}}"

# Class on the export content wrapper. The importer looks for it first.
CONTAINER_CLASS = "email-container"

# Editor-only attributes emitted in instrumented mode.
ATTR_ELEMENT_ID = "data-element-id"
ATTR_ELEMENT_TYPE = "data-element-type"
ATTR_CONTAINER = "data-container"
ATTR_SELECTED = "data-selected"
ATTR_PARENT_HIGHLIGHTED = "data-parent-highlighted"
# Marks the div added around fragments that have no single taggable root.
ATTR_EDITOR_WRAPPER = "data-editor-wrapper"

# Classes of editor affordances injected inside a node's opening tag.
AFFORDANCE_CLASSES: tuple[str, ...] = ("element-toolbar", "parent-toolbar", "drag-handle")

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ReduceResult:
    """
    Result of applying one action to an element tree.
    The reducer never throws; it always returns one of these.
    """

    elements: list[dict[str, Any]]
    applied: bool
    error: str | None = None
    # Ids the action removed from the tree (delete) or created (duplicate).
    removed_ids: set[str] = field(default_factory=set)
    created_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Rect:
    """Bounding box of a rendered node, in display-surface coordinates."""

    top: float
    left: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width


@dataclass(frozen=True)
class DropTarget:
    """Resolved destination of a drop: parent (None = root) and index."""

    parent_id: str | None
    index: int | None = None


def is_root(parent_id: str | None) -> bool:
    return parent_id is None or parent_id == ROOT
