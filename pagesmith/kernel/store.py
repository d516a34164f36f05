"""
pagesmith Kernel — Document Store

The single owner of an editing session's state. Every change swaps in a new
immutable EditorDocument; readers go through `store.state` and never keep
references into an old snapshot.

    dispatch(action) → reduce → on success: push history, fix selection

Viewport switches, selection and global style edits are not tree mutations
and never touch history.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any

from pagesmith.config import settings
from pagesmith.kernel import history as hist
from pagesmith.kernel import renderer
from pagesmith.kernel.dragdrop import resolve_drop
from pagesmith.kernel.history import HistoryLog
from pagesmith.kernel.importer import parse_markup
from pagesmith.kernel.reducer import reduce
from pagesmith.kernel.serialization import DocumentValidationError, dump_document, load_document
from pagesmith.kernel.tree import find_node, get_element_path
from pagesmith.kernel.types import VIEWPORTS, ReduceResult
from pagesmith.kernel.widgets import create_default_element

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorDocument:
    """One immutable snapshot of the whole editable state."""

    elements: list[dict[str, Any]] = field(default_factory=list)
    global_styles: dict[str, Any] = field(default_factory=dict)
    viewport: str = "desktop"
    selected_id: str | None = None
    history: HistoryLog = field(default_factory=HistoryLog)


class DocumentStore:
    """Editing session: current document plus undo/redo."""

    def __init__(
        self,
        elements: list[dict[str, Any]] | None = None,
        global_styles: dict[str, Any] | None = None,
        viewport: str | None = None,
        history_limit: int | None = None,
    ):
        self.history_limit = history_limit if history_limit is not None else settings.HISTORY_LIMIT
        viewport = viewport or settings.DEFAULT_VIEWPORT
        if viewport not in VIEWPORTS:
            raise ValueError(f"Unknown viewport: {viewport!r}")

        seed = reduce([], {"type": "document.replace", "elements": elements or []})
        if not seed.applied:
            raise DocumentValidationError([seed.error])

        self._state = EditorDocument(
            elements=seed.elements,
            global_styles={**settings.default_global_styles, **(global_styles or {})},
            viewport=viewport,
        )

    @property
    def state(self) -> EditorDocument:
        return self._state

    # -- Mutations ---------------------------------------------------------

    def dispatch(self, action: dict[str, Any]) -> ReduceResult:
        """Apply one tree action. Rejections leave the document untouched."""
        current = self._state
        result = reduce(current.elements, action)
        if not result.applied:
            logger.warning("store: rejected %s (%s)", action.get("type"), result.error)
            return result

        selected = current.selected_id
        if selected is not None and find_node(result.elements, selected) is None:
            selected = None

        self._state = dataclasses.replace(
            current,
            elements=result.elements,
            selected_id=selected,
            history=hist.record(current.history, current.elements, self.history_limit),
        )
        logger.debug("store: applied %s", action.get("type"))
        return result

    def insert(self, parent_id: str | None, node: dict[str, Any], index: int | None = None) -> ReduceResult:
        return self.dispatch({"type": "element.insert", "parent": parent_id, "node": node, "index": index})

    def add_widget(self, widget_type: str, parent_id: str | None = None, index: int | None = None) -> ReduceResult:
        """Insert a freshly created default element of widget_type."""
        return self.insert(parent_id, create_default_element(widget_type), index)

    def update(self, node_id: str, partial: dict[str, Any]) -> ReduceResult:
        return self.dispatch({"type": "element.update", "id": node_id, "settings": partial})

    def delete(self, node_id: str) -> ReduceResult:
        return self.dispatch({"type": "element.delete", "id": node_id})

    def duplicate(self, node_id: str) -> ReduceResult:
        return self.dispatch({"type": "element.duplicate", "id": node_id})

    def move(self, node_id: str, parent_id: str | None, index: int | None = None) -> ReduceResult:
        return self.dispatch({"type": "element.move", "id": node_id, "parent": parent_id, "index": index})

    def drop(
        self,
        target_id: str | None,
        position: str,
        *,
        dragged_id: str | None = None,
        widget_type: str | None = None,
    ) -> ReduceResult | None:
        """
        Complete a drag: move dragged_id, or insert a new widget_type, at the
        resolved drop target. None when the drop resolves to nothing.
        """
        if (dragged_id is None) == (widget_type is None):
            raise ValueError("drop needs exactly one of dragged_id or widget_type")

        target = resolve_drop(self._state.elements, dragged_id, target_id, position)
        if target is None:
            return None
        if dragged_id is not None:
            return self.move(dragged_id, target.parent_id, target.index)
        return self.add_widget(widget_type, target.parent_id, target.index)

    def undo(self) -> bool:
        stepped = hist.undo(self._state.history, self._state.elements)
        if stepped is None:
            return False
        self._restore(*stepped)
        return True

    def redo(self) -> bool:
        stepped = hist.redo(self._state.history, self._state.elements)
        if stepped is None:
            return False
        self._restore(*stepped)
        return True

    def _restore(self, history: HistoryLog, elements: list[dict[str, Any]]) -> None:
        selected = self._state.selected_id
        if selected is not None and find_node(elements, selected) is None:
            selected = None
        self._state = dataclasses.replace(self._state, elements=elements, history=history, selected_id=selected)

    # -- Session state (outside history) -------------------------------------

    def select(self, node_id: str | None) -> bool:
        """Select a node (None clears). Unknown ids are ignored."""
        if node_id is not None and find_node(self._state.elements, node_id) is None:
            return False
        self._state = dataclasses.replace(self._state, selected_id=node_id)
        return True

    def set_viewport(self, viewport: str) -> None:
        if viewport not in VIEWPORTS:
            raise ValueError(f"Unknown viewport: {viewport!r}")
        self._state = dataclasses.replace(self._state, viewport=viewport)

    def update_global_styles(self, partial: dict[str, Any]) -> None:
        styles = dict(self._state.global_styles)
        for key, value in partial.items():
            if value is None:
                styles.pop(key, None)
            else:
                styles[key] = value
        self._state = dataclasses.replace(self._state, global_styles=styles)

    @property
    def selected_element(self) -> dict[str, Any] | None:
        if self._state.selected_id is None:
            return None
        return find_node(self._state.elements, self._state.selected_id)

    def element_path(self, node_id: str) -> list[dict[str, Any]]:
        return get_element_path(self._state.elements, node_id) or []

    # -- Import / export -----------------------------------------------------

    def import_markup(self, markup: str) -> ReduceResult:
        """Replace the tree with the parse of markup. Undoable."""
        return self.dispatch({"type": "document.replace", "elements": parse_markup(markup)})

    def import_json(self, text: str) -> ReduceResult:
        """
        Replace the tree (and merge global styles) from a serialized document.
        Raises DocumentValidationError before anything changes.
        """
        elements, global_styles = load_document(text)
        result = self.dispatch({"type": "document.replace", "elements": elements})
        if result.applied and global_styles:
            self.update_global_styles(global_styles)
        return result

    def export_markup(self, viewport: str | None = None) -> str:
        state = self._state
        return renderer.export_markup(state.elements, state.global_styles, viewport or state.viewport)

    def export_json(self) -> str:
        return dump_document(self._state.elements, self._state.global_styles)

    def render_for_editing(self) -> str:
        state = self._state
        return renderer.render_for_editing(state.elements, state.global_styles, state.viewport, state.selected_id)
