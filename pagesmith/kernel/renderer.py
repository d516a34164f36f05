"""
pagesmith Kernel — Renderer

Pure functions: (elements, global styles, viewport) → markup string
No IO. Deterministic: same input → same output, always.

Two modes share one traversal:
  clean        export markup, no editor metadata
  instrumented editing markup: every node carries its id and type, plus a
               toolbar and drag handle injected right after its opening tag
               (never inside the children slot)

Type-specific output comes only from the widget registry.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import chevron

from pagesmith.config import settings
from pagesmith.kernel.responsive import resolve_settings
from pagesmith.kernel.types import (
    ATTR_CONTAINER,
    ATTR_EDITOR_WRAPPER,
    ATTR_ELEMENT_ID,
    ATTR_ELEMENT_TYPE,
    ATTR_PARENT_HIGHLIGHTED,
    ATTR_SELECTED,
    CHILDREN_SLOT,
    CONTAINER_CLASS,
    DESKTOP,
)
from pagesmith.kernel.tree import find_parent
from pagesmith.kernel.widgets import UnknownWidgetError, WidgetDefinition, escape, get_widget

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Document shells
# ---------------------------------------------------------------------------

EXPORT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<style>
* {
  box-sizing: border-box;
}
body {
  margin: 0;
  padding: 20px;
  font-family: {{{font_family}}};
  background: {{{body_background}}};
}
.{{container_class}} {
  max-width: {{{content_width}}};
  margin: 0 auto;
  background: white;
  padding: 20px;
}
img {
  max-width: 100%;
  height: auto;
}
a {
  color: inherit;
}
@media (max-width: 768px) {
  body {
    padding: 10px;
  }
  .{{container_class}} {
    padding: 15px;
  }
}
</style>
</head>
<body>
<div class="{{container_class}}">
{{{content}}}
</div>
</body>
</html>"""

EDITOR_STYLES = """
[data-element-id] {
  position: relative;
  margin: 4px 0;
}
[data-element-id][data-selected="true"] {
  outline: 2px solid #3b82f6 !important;
  outline-offset: 2px;
}
[data-element-id][data-parent-highlighted="true"] {
  outline: 2px dashed #94a3b8 !important;
  outline-offset: 4px;
}
.element-toolbar {
  position: absolute;
  top: -32px;
  right: 0;
  display: none;
  align-items: center;
  gap: 2px;
  background: #3b82f6;
  border-radius: 4px;
  padding: 4px 6px;
  z-index: 1000;
}
[data-element-id][data-selected="true"] > .element-toolbar {
  display: flex;
}
.element-toolbar-btn {
  width: 24px;
  height: 24px;
  background: transparent;
  border: none;
  cursor: pointer;
  color: white;
}
.element-toolbar-label {
  color: white;
  font-size: 11px;
  padding: 0 6px;
  white-space: nowrap;
}
.parent-toolbar {
  position: absolute;
  top: -32px;
  left: 0;
  display: none;
  background: #64748b;
  border-radius: 4px;
  padding: 4px 6px;
  color: white;
  font-size: 11px;
}
[data-element-id][data-parent-highlighted="true"] > .parent-toolbar {
  display: flex;
}
.drag-handle {
  position: absolute;
  left: -28px;
  top: 50%;
  transform: translateY(-50%);
  width: 24px;
  height: 24px;
  display: none;
  background: #64748b;
  border-radius: 4px;
  cursor: grab;
  color: white;
}
[data-element-id]:hover > .drag-handle,
[data-element-id][data-selected="true"] > .drag-handle {
  display: flex;
}
[data-container="true"] {
  min-height: 100px;
  border: 1px dashed #c7d2fe;
  padding: 8px;
}
[data-column="true"] {
  min-height: 80px;
  border: 1px dashed #a5b4fc;
  padding: 8px;
}
[data-drop-zone="true"] {
  min-height: 60px;
  border: 2px dashed #d1d5db;
}
.drop-indicator {
  height: 4px;
  background: #3b82f6;
  margin: 4px 0;
  pointer-events: none;
}
"""

EDITOR_TEMPLATE = """<style>
* {
  box-sizing: border-box;
}
.editor-root {
  margin: 0;
  padding: 20px;
  font-family: {{{font_family}}};
  background: {{{body_background}}};
  min-height: 100%;
  width: 100%;
}
.{{container_class}} {
  width: 100%;
  margin: 0 auto;
  background: white;
  padding: 20px;
  border: 2px dashed #e5e7eb;
}
img {
  max-width: 100%;
  height: auto;
}
</style>
<style>{{{editor_styles}}}</style>
<div class="editor-root">
<div class="{{container_class}}" data-drop-zone="true" data-root-container="true">{{{content}}}</div>
</div>"""

_ICONS = {
    "drag": (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" fill="none" stroke="currentColor" '
        'stroke-width="2"><circle cx="9" cy="5" r="1"/><circle cx="9" cy="12" r="1"/><circle cx="9" cy="19" r="1"/>'
        '<circle cx="15" cy="5" r="1"/><circle cx="15" cy="12" r="1"/><circle cx="15" cy="19" r="1"/></svg>'
    ),
    "duplicate": (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" fill="none" stroke="currentColor" '
        'stroke-width="2"><rect x="9" y="9" width="13" height="13" rx="2" ry="2"/>'
        '<path d="M5 15H4a2 2 0 0 1-2-2V4a2 2 0 0 1 2-2h9a2 2 0 0 1 2 2v1"/></svg>'
    ),
    "delete": (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" fill="none" stroke="currentColor" '
        'stroke-width="2"><path d="M3 6h18"/><path d="M19 6v14c0 1-1 2-2 2H7c-1 0-2-1-2-2V6"/>'
        '<path d="M8 6V4c0-1 1-2 2-2h4c1 0 2 1 2 2v2"/></svg>'
    ),
}

_OPENING_TAG_RE = re.compile(r"^<([a-zA-Z][a-zA-Z0-9-]*)([^>]*?)(\s*/?)>")
_VOID_TAGS = {"area", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "wbr"}
_CSS_UNSAFE_RE = re.compile(r"[<>{};]")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_element(
    node: dict[str, Any],
    viewport: str = DESKTOP,
    *,
    editing: bool = False,
    selected_id: str | None = None,
    highlighted_id: str | None = None,
) -> str:
    """
    Render one node and its subtree to a markup fragment.

    Clean mode drops unknown types (with a warning). Editing mode raises
    UnknownWidgetError: an unknown type there means the document is corrupt.
    """
    widget = get_widget(node.get("type"))
    if widget is None:
        if editing:
            logger.error("renderer: unknown widget type %r on element %s", node.get("type"), node.get("id"))
            raise UnknownWidgetError(node.get("type"))
        logger.warning("renderer: skipping element %s with unknown type %r", node.get("id"), node.get("type"))
        return ""

    resolved = {**node, "settings": resolve_settings(node.get("settings"), viewport)}
    html = widget.render(resolved, viewport)

    if widget.is_container:
        children_html = "".join(
            render_element(c, viewport, editing=editing, selected_id=selected_id, highlighted_id=highlighted_id)
            for c in node.get("children") or []
        )
        html = html.replace(CHILDREN_SLOT, children_html, 1)

    if editing:
        html = _instrument(html, node, widget, selected_id=selected_id, highlighted_id=highlighted_id)

    return html


def render_elements(
    elements: list[dict[str, Any]],
    viewport: str = DESKTOP,
    *,
    editing: bool = False,
    selected_id: str | None = None,
) -> str:
    highlighted_id = None
    if editing and selected_id:
        parent = find_parent(elements, selected_id)
        highlighted_id = parent.get("id") if parent else None
    return "".join(
        render_element(n, viewport, editing=editing, selected_id=selected_id, highlighted_id=highlighted_id)
        for n in elements
    )


def export_markup(
    elements: list[dict[str, Any]],
    global_styles: dict[str, Any] | None = None,
    viewport: str = DESKTOP,
) -> str:
    """Complete standalone document in clean mode."""
    context = _shell_context(global_styles)
    context["content"] = render_elements(elements, viewport)
    return chevron.render(EXPORT_TEMPLATE, context)


def render_for_editing(
    elements: list[dict[str, Any]],
    global_styles: dict[str, Any] | None = None,
    viewport: str = DESKTOP,
    selected_id: str | None = None,
) -> str:
    """Instrumented markup for the editing surface, with editor styles and a root drop zone."""
    context = _shell_context(global_styles)
    context["editor_styles"] = EDITOR_STYLES
    context["content"] = render_elements(elements, viewport, editing=True, selected_id=selected_id)
    return chevron.render(EDITOR_TEMPLATE, context)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _css_value(value: Any) -> str:
    """Strip characters that could escape a CSS declaration."""
    return _CSS_UNSAFE_RE.sub("", str(value))


def _shell_context(global_styles: dict[str, Any] | None) -> dict[str, Any]:
    styles = {**settings.default_global_styles, **(global_styles or {})}
    return {
        "font_family": _css_value(styles.get("fontFamily") or settings.FONT_FAMILY),
        "body_background": _css_value(styles.get("bodyBackground") or settings.BODY_BACKGROUND),
        "content_width": _css_value(styles.get("contentWidth") or settings.CONTENT_WIDTH),
        "container_class": CONTAINER_CLASS,
    }


def _affordances(node: dict[str, Any], widget: WidgetDefinition) -> str:
    node_id = escape(node.get("id", ""))
    label = escape(widget.label)
    return (
        f'<span class="element-toolbar">'
        f'<span class="element-toolbar-label">{label}</span>'
        f'<button class="element-toolbar-btn" data-action="duplicate" data-target-id="{node_id}" title="Duplicate">'
        f'{_ICONS["duplicate"]}</button>'
        f'<button class="element-toolbar-btn" data-action="delete" data-target-id="{node_id}" title="Delete">'
        f'{_ICONS["delete"]}</button>'
        f"</span>"
        f'<span class="drag-handle" draggable="true" data-target-id="{node_id}" title="Drag to move">'
        f'{_ICONS["drag"]}</span>'
        f'<span class="parent-toolbar">{label}</span>'
    )


def _instrument(
    html: str,
    node: dict[str, Any],
    widget: WidgetDefinition,
    *,
    selected_id: str | None,
    highlighted_id: str | None,
) -> str:
    """Tag the fragment's root with identity attributes and inject the affordances inside it."""
    match = _OPENING_TAG_RE.match(html)
    if not widget.single_root or match is None or match.group(1).lower() in _VOID_TAGS:
        html = f'<div {ATTR_EDITOR_WRAPPER}="true">{html}</div>'
        match = _OPENING_TAG_RE.match(html)

    attrs = [
        f'{ATTR_ELEMENT_ID}="{escape(node.get("id", ""))}"',
        f'{ATTR_ELEMENT_TYPE}="{escape(widget.type)}"',
    ]
    if widget.is_container:
        attrs.append(f'{ATTR_CONTAINER}="true"')
    if node.get("id") == selected_id:
        attrs.append(f'{ATTR_SELECTED}="true"')
    if highlighted_id is not None and node.get("id") == highlighted_id:
        attrs.append(f'{ATTR_PARENT_HIGHLIGHTED}="true"')

    tag, existing, _self_closing = match.groups()
    opening = f"<{tag}{existing} {' '.join(attrs)}>"
    return opening + _affordances(node, widget) + html[match.end():]
