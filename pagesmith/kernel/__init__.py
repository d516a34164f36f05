"""
pagesmith Kernel — the pure document engine.

Components:
  responsive  — per-viewport values and the mobile → tablet → desktop cascade
  widgets     — registry of element types (defaults, controls, renderers)
  tree        — lookups and structural invariants of the element tree
  reducer     — (elements, action) → elements  (pure, never raises)
  renderer    — elements → clean export markup or instrumented editing markup
  importer    — markup → elements  (heuristic, total)
  store       — editing session: snapshots, selection, undo/redo
  assembly    — coordinates store + storage IO
"""

from pagesmith.kernel.assembly import EditorAssembly
from pagesmith.kernel.dragdrop import classify_drop, resolve_drop
from pagesmith.kernel.importer import parse_markup
from pagesmith.kernel.reducer import reduce
from pagesmith.kernel.renderer import export_markup, render_for_editing
from pagesmith.kernel.responsive import resolve
from pagesmith.kernel.serialization import dump_document, load_document
from pagesmith.kernel.store import DocumentStore
from pagesmith.kernel.widgets import create_default_element, get_widget, list_widgets

__all__ = [
    "resolve",
    "get_widget",
    "list_widgets",
    "create_default_element",
    "reduce",
    "export_markup",
    "render_for_editing",
    "parse_markup",
    "classify_drop",
    "resolve_drop",
    "dump_document",
    "load_document",
    "DocumentStore",
    "EditorAssembly",
]
