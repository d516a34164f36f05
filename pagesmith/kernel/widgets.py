"""
pagesmith Kernel — Widget Registry

Static catalogue of element types. Each WidgetDefinition carries everything
type-specific: default settings, the editable-control schema, the container
flag and allow-list, and a pure render function (node, viewport) → markup
fragment.

Container fragments leave CHILDREN_SLOT where their children go; the
renderer fills it. Nothing outside this module branches on a type tag:
callers look the definition up and use its fields.

The registry is built once at import and is read-only afterwards.
"""

from __future__ import annotations

import copy
import re
import uuid
from dataclasses import dataclass
from html import escape as _html_escape
from types import MappingProxyType
from typing import Any, Callable, Mapping

from pagesmith.kernel.responsive import resolve
from pagesmith.kernel.types import CHILDREN_SLOT, MOBILE, TABLET, WIDGET_TYPES

RenderFn = Callable[[dict[str, Any], str], str]


class RegistryError(Exception):
    """Base class for registry lookups that fail."""


class UnknownWidgetError(RegistryError):
    """A node references a type the registry does not define."""

    def __init__(self, widget_type: Any) -> None:
        super().__init__(f"Unknown widget type: {widget_type!r}")
        self.widget_type = widget_type


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WidgetControl:
    """One editable field shown in the settings panel."""

    kind: str
    key: str
    label: str
    section: str | None = None
    responsive: bool = False
    options: tuple[tuple[str, str], ...] = ()
    placeholder: str | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None


@dataclass(frozen=True)
class WidgetDefinition:
    type: str
    label: str
    icon: str
    category: str
    default_settings: dict[str, Any]
    controls: tuple[WidgetControl, ...]
    render: RenderFn
    is_container: bool = False
    allowed_children: tuple[str, ...] | None = None
    # Number of empty column slots synthesized by create_default_element.
    column_count: int = 0
    # False when the fragment may have several top-level nodes (raw markup).
    single_root: bool = True

    def accepts_child(self, child_type: str) -> bool:
        if not self.is_container:
            return False
        return self.allowed_children is None or child_type in self.allowed_children

    def control(self, key: str) -> WidgetControl | None:
        for c in self.controls:
            if c.key == key:
                return c
        return None

    def is_responsive_key(self, key: str) -> bool:
        c = self.control(key)
        return c is not None and c.responsive


# ---------------------------------------------------------------------------
# Style helpers
# ---------------------------------------------------------------------------

_CAMEL_RE = re.compile(r"([A-Z])")


def escape(text: Any) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


def kebab_case(name: str) -> str:
    return _CAMEL_RE.sub(r"-\1", name).lower()


def build_style(styles: Mapping[str, Any]) -> str:
    """Render {camelCase: value} as an inline style string, skipping unset values."""
    parts = []
    for key, value in styles.items():
        if value is None or value == "":
            continue
        parts.append(f"{kebab_case(key)}: {value}")
    return escape("; ".join(parts))


def base_styles(settings: Mapping[str, Any], viewport: str) -> dict[str, Any]:
    """Box-model, background, border and display settings every widget understands."""
    background_image = settings.get("backgroundImage")
    return {
        "margin": resolve(settings.get("margin"), viewport),
        "padding": resolve(settings.get("padding"), viewport),
        "width": resolve(settings.get("width"), viewport),
        "height": resolve(settings.get("height"), viewport),
        "maxWidth": resolve(settings.get("maxWidth"), viewport),
        "minHeight": resolve(settings.get("minHeight"), viewport),
        "backgroundColor": settings.get("backgroundColor"),
        "backgroundImage": f"url({background_image})" if background_image else None,
        "backgroundSize": settings.get("backgroundSize"),
        "backgroundPosition": settings.get("backgroundPosition"),
        "borderRadius": settings.get("borderRadius"),
        "borderWidth": settings.get("borderWidth"),
        "borderColor": settings.get("borderColor"),
        "borderStyle": settings.get("borderStyle"),
        "display": resolve(settings.get("display"), viewport),
        "visibility": resolve(settings.get("visibility"), viewport),
    }


def _should_stack(stack_on: Any, viewport: str) -> bool:
    if stack_on == MOBILE:
        return viewport == MOBILE
    if stack_on == TABLET:
        return viewport in (MOBILE, TABLET)
    return False


# ---------------------------------------------------------------------------
# Shared controls
# ---------------------------------------------------------------------------

_ALIGN_OPTIONS = (("Left", "left"), ("Center", "center"), ("Right", "right"))
_WEIGHT_OPTIONS = (("Normal", "normal"), ("Bold", "bold"))
_TARGET_OPTIONS = (("Same Window", "_self"), ("New Window", "_blank"))
_STACK_OPTIONS = (("Never", "never"), ("Mobile", "mobile"), ("Tablet", "tablet"))

MARGIN = WidgetControl("text", "margin", "Margin", section="Spacing", responsive=True)
PADDING = WidgetControl("text", "padding", "Padding", section="Spacing", responsive=True)
FONT_SIZE = WidgetControl("text", "fontSize", "Font Size", section="Style", responsive=True)
COLOR = WidgetControl("color", "color", "Color", section="Style")
LINE_HEIGHT = WidgetControl("text", "lineHeight", "Line Height", section="Style")
BORDER_RADIUS = WidgetControl("text", "borderRadius", "Border Radius", section="Style")
WIDTH = WidgetControl("text", "width", "Width", section="Style", responsive=True)
GAP = WidgetControl("text", "gap", "Gap", section="Layout", responsive=True)
STACK_ON = WidgetControl("select", "stackOn", "Stack On", section="Layout", options=_STACK_OPTIONS)


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------

_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}


def _render_heading(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    tag = s.get("tag") if s.get("tag") in _HEADING_TAGS else "h2"
    style = build_style({
        **base_styles(s, viewport),
        "color": s.get("color"),
        "fontSize": resolve(s.get("fontSize"), viewport, "24px"),
        "fontWeight": s.get("fontWeight"),
        "fontFamily": s.get("fontFamily"),
        "textAlign": resolve(s.get("textAlign"), viewport, "left"),
        "lineHeight": s.get("lineHeight"),
        "letterSpacing": s.get("letterSpacing"),
    })
    return f'<{tag} style="{style}">{escape(s.get("text", ""))}</{tag}>'


def _render_text(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    style = build_style({
        **base_styles(s, viewport),
        "color": s.get("color"),
        "fontSize": resolve(s.get("fontSize"), viewport, "16px"),
        "fontWeight": s.get("fontWeight"),
        "fontFamily": s.get("fontFamily"),
        "textAlign": resolve(s.get("textAlign"), viewport, "left"),
        "lineHeight": s.get("lineHeight"),
    })
    return f'<p style="{style}">{escape(s.get("text", ""))}</p>'


def _render_image(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    style = build_style({
        **base_styles(s, viewport),
        "display": "block",
        "objectFit": s.get("objectFit"),
    })
    img = f'<img src="{escape(s.get("src", ""))}" alt="{escape(s.get("alt", ""))}" style="{style}" />'
    link = s.get("linkUrl")
    if link:
        target = escape(s.get("linkTarget") or "_self")
        return f'<a href="{escape(link)}" target="{target}">{img}</a>'
    return img


def _render_button(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    wrapper_style = build_style({
        "textAlign": resolve(s.get("textAlign"), viewport, "left"),
        "margin": resolve(s.get("margin"), viewport, "10px 0"),
    })
    button_style = build_style({
        "display": "inline-block",
        "color": s.get("color"),
        "backgroundColor": s.get("backgroundColor"),
        "fontSize": resolve(s.get("fontSize"), viewport, "16px"),
        "fontWeight": s.get("fontWeight"),
        "padding": resolve(s.get("padding"), viewport, "12px 30px"),
        "borderRadius": s.get("borderRadius"),
        "textDecoration": "none",
        "border": "none",
        "cursor": "pointer",
    })
    url = escape(s.get("url") or "#")
    target = escape(s.get("target") or "_self")
    text = escape(s.get("text") or "Button")
    return (
        f'<div style="{wrapper_style}">'
        f'<a href="{url}" target="{target}" style="{button_style}">{text}</a>'
        f"</div>"
    )


def _render_divider(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    thickness = s.get("thickness") or "2px"
    line = s.get("style") or "solid"
    color = s.get("color") or "#e5e7eb"
    style = build_style({
        "border": "none",
        "borderTop": f"{thickness} {line} {color}",
        "width": resolve(s.get("width"), viewport, "100%"),
        "margin": resolve(s.get("margin"), viewport, "20px 0"),
    })
    return f'<hr style="{style}" />'


def _render_spacer(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    style = build_style({"height": resolve(s.get("height"), viewport, "40px")})
    return f'<div style="{style}"></div>'


def _render_html(node: dict[str, Any], viewport: str) -> str:
    # Raw markup passes through untouched, scripts and styles included.
    s = node.get("settings", {})
    raw = s.get("rawHtml") or ""
    wrapper_style = build_style({
        "margin": resolve(s.get("margin"), viewport),
        "padding": resolve(s.get("padding"), viewport),
    })
    if wrapper_style:
        return f'<div style="{wrapper_style}">{raw}</div>'
    return raw


def _render_single_column_layout(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    style = build_style({
        "display": "block",
        "margin": resolve(s.get("margin"), viewport, "20px 0"),
        "padding": resolve(s.get("padding"), viewport),
    })
    return f'<div style="{style}" data-columns="1">{CHILDREN_SLOT}</div>'


def _render_column_layout(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    stacked = _should_stack(s.get("stackOn"), viewport)
    style = build_style({
        "display": "block" if stacked else "flex",
        "gap": "0" if stacked else resolve(s.get("gap"), viewport, "20px"),
        "margin": resolve(s.get("margin"), viewport, "20px 0"),
        "padding": resolve(s.get("padding"), viewport),
    })
    count = escape(s.get("columns") or len(node.get("children") or []) or 2)
    return f'<div style="{style}" data-columns="{count}">{CHILDREN_SLOT}</div>'


_ALIGN_ITEMS = {"top": "flex-start", "middle": "center", "bottom": "flex-end"}


def _render_column(node: dict[str, Any], viewport: str) -> str:
    s = node.get("settings", {})
    width = resolve(s.get("width"), viewport)
    style = build_style({
        "flex": f"0 0 {width}" if width else "1",
        "display": "flex",
        "flexDirection": "column",
        "alignItems": _ALIGN_ITEMS.get(s.get("verticalAlign") or "top", "flex-start"),
        "padding": resolve(s.get("padding"), viewport, "10px"),
        "backgroundColor": s.get("backgroundColor"),
        "borderRadius": s.get("borderRadius"),
        "minHeight": "50px",
    })
    return f'<div style="{style}" data-column="true">{CHILDREN_SLOT}</div>'


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


_COLUMNS_SELECT = WidgetControl(
    "select", "columns", "Columns", section="Layout",
    options=(("2 Columns", "2"), ("3 Columns", "3"), ("4 Columns", "4")),
)


def _layout(
    widget_type: str,
    label: str,
    icon: str,
    count: int,
    gap: dict[str, str],
    stack_on: str,
    *,
    selectable_count: bool = False,
) -> WidgetDefinition:
    controls: tuple[WidgetControl, ...] = (GAP, STACK_ON, MARGIN, PADDING)
    if selectable_count:
        controls = (_COLUMNS_SELECT, *controls)
    return WidgetDefinition(
        type=widget_type,
        label=label,
        icon=icon,
        category="layout",
        is_container=True,
        allowed_children=("column",),
        column_count=count,
        default_settings={
            "columns": count,
            "gap": gap,
            "stackOn": stack_on,
            "margin": "20px 0",
        },
        controls=controls,
        render=_render_single_column_layout if count == 1 else _render_column_layout,
    )


_RESPONSIVE_GAP = {"desktop": "20px", "tablet": "15px", "mobile": "10px"}

_DEFINITIONS: list[WidgetDefinition] = [
    WidgetDefinition(
        type="heading",
        label="Heading",
        icon="📝",
        category="basic",
        default_settings={
            "text": "New Heading",
            "tag": "h2",
            "color": "#333333",
            "fontSize": {"desktop": "24px", "tablet": "22px", "mobile": "20px"},
            "fontWeight": "bold",
            "textAlign": {"desktop": "left"},
            "margin": "0 0 15px 0",
        },
        controls=(
            WidgetControl("textarea", "text", "Text", section="Content"),
            WidgetControl(
                "select", "tag", "Tag", section="Content",
                options=tuple((t.upper(), t) for t in sorted(_HEADING_TAGS)),
            ),
            COLOR,
            FONT_SIZE,
            WidgetControl(
                "select", "fontWeight", "Font Weight", section="Style",
                options=_WEIGHT_OPTIONS + tuple((w, w) for w in ("100", "300", "500", "700", "900")),
            ),
            WidgetControl("select", "textAlign", "Alignment", section="Style", responsive=True, options=_ALIGN_OPTIONS),
            LINE_HEIGHT,
            WidgetControl("text", "letterSpacing", "Letter Spacing", section="Style"),
            MARGIN,
            PADDING,
        ),
        render=_render_heading,
    ),
    WidgetDefinition(
        type="text",
        label="Text",
        icon="📄",
        category="basic",
        default_settings={
            "text": "Add your text here. Click to edit this paragraph.",
            "color": "#666666",
            "fontSize": {"desktop": "16px", "tablet": "15px", "mobile": "14px"},
            "lineHeight": "1.6",
            "textAlign": {"desktop": "left"},
            "margin": "0 0 15px 0",
        },
        controls=(
            WidgetControl("textarea", "text", "Text", section="Content"),
            COLOR,
            FONT_SIZE,
            WidgetControl("select", "fontWeight", "Font Weight", section="Style", options=_WEIGHT_OPTIONS),
            WidgetControl(
                "select", "textAlign", "Alignment", section="Style", responsive=True,
                options=_ALIGN_OPTIONS + (("Justify", "justify"),),
            ),
            LINE_HEIGHT,
            MARGIN,
            PADDING,
        ),
        render=_render_text,
    ),
    WidgetDefinition(
        type="image",
        label="Image",
        icon="🖼️",
        category="media",
        default_settings={
            "src": "https://via.placeholder.com/600x300",
            "alt": "Image",
            "width": {"desktop": "100%"},
            "objectFit": "cover",
            "margin": "0 0 15px 0",
        },
        controls=(
            WidgetControl("image", "src", "Image URL", section="Content"),
            WidgetControl("text", "alt", "Alt Text", section="Content"),
            WidgetControl("url", "linkUrl", "Link URL", section="Content"),
            WidgetControl("select", "linkTarget", "Link Target", section="Content", options=_TARGET_OPTIONS),
            WIDTH,
            WidgetControl("text", "height", "Height", section="Style", responsive=True),
            WidgetControl(
                "select", "objectFit", "Object Fit", section="Style",
                options=(("Cover", "cover"), ("Contain", "contain"), ("Fill", "fill"), ("None", "none")),
            ),
            BORDER_RADIUS,
            MARGIN,
            PADDING,
        ),
        render=_render_image,
    ),
    WidgetDefinition(
        type="button",
        label="Button",
        icon="🔘",
        category="basic",
        default_settings={
            "text": "Click Me",
            "url": "#",
            "target": "_self",
            "color": "#ffffff",
            "backgroundColor": "#007bff",
            "fontSize": {"desktop": "16px"},
            "fontWeight": "normal",
            "padding": "12px 30px",
            "borderRadius": "4px",
            "textAlign": {"desktop": "left"},
            "margin": "10px 0",
        },
        controls=(
            WidgetControl("text", "text", "Button Text", section="Content"),
            WidgetControl("url", "url", "URL", section="Content"),
            WidgetControl("select", "target", "Open In", section="Content", options=_TARGET_OPTIONS),
            WidgetControl("color", "color", "Text Color", section="Style"),
            WidgetControl("color", "backgroundColor", "Background", section="Style"),
            FONT_SIZE,
            WidgetControl("select", "fontWeight", "Font Weight", section="Style", options=_WEIGHT_OPTIONS),
            BORDER_RADIUS,
            PADDING,
            MARGIN,
            WidgetControl("select", "textAlign", "Alignment", section="Style", responsive=True, options=_ALIGN_OPTIONS),
        ),
        render=_render_button,
    ),
    WidgetDefinition(
        type="divider",
        label="Divider",
        icon="➖",
        category="basic",
        default_settings={
            "color": "#e5e7eb",
            "thickness": "2px",
            "style": "solid",
            "width": {"desktop": "100%"},
            "margin": "20px 0",
        },
        controls=(
            COLOR,
            WidgetControl("text", "thickness", "Thickness", section="Style"),
            WidgetControl(
                "select", "style", "Style", section="Style",
                options=(("Solid", "solid"), ("Dashed", "dashed"), ("Dotted", "dotted")),
            ),
            WIDTH,
            MARGIN,
        ),
        render=_render_divider,
    ),
    WidgetDefinition(
        type="spacer",
        label="Spacer",
        icon="⬜",
        category="basic",
        default_settings={"height": {"desktop": "40px", "tablet": "30px", "mobile": "20px"}},
        controls=(WidgetControl("text", "height", "Height", section="Style", responsive=True),),
        render=_render_spacer,
    ),
    WidgetDefinition(
        type="html",
        label="HTML",
        icon="🧩",
        category="advanced",
        default_settings={
            "rawHtml": (
                '<div style="padding: 20px; background: #f0f0f0; border-radius: 4px;">\n'
                "  <p>Custom HTML content</p>\n"
                "</div>"
            ),
        },
        controls=(
            WidgetControl("code", "rawHtml", "HTML Code", section="Content"),
            MARGIN,
            PADDING,
        ),
        render=_render_html,
        single_root=False,
    ),
    _layout("one-column", "1 Column", "⬜", 1, {"desktop": "0px"}, "never"),
    _layout("two-columns", "2 Columns", "⬜⬜", 2, _RESPONSIVE_GAP, "mobile"),
    _layout("three-columns", "3 Columns", "⬜⬜⬜", 3, _RESPONSIVE_GAP, "mobile"),
    _layout("columns", "4 Columns", "⬜⬜⬜⬜", 4, _RESPONSIVE_GAP, "mobile", selectable_count=True),
    WidgetDefinition(
        type="column",
        label="Column",
        icon="⬜",
        category="layout",
        is_container=True,
        # Any content widget, but columns never nest directly.
        allowed_children=tuple(t for t in WIDGET_TYPES if t != "column"),
        default_settings={"padding": "10px", "verticalAlign": "top"},
        controls=(
            WIDTH,
            WidgetControl(
                "select", "verticalAlign", "Vertical Align", section="Style",
                options=(("Top", "top"), ("Middle", "middle"), ("Bottom", "bottom")),
            ),
            WidgetControl("color", "backgroundColor", "Background", section="Style"),
            PADDING,
            BORDER_RADIUS,
        ),
        render=_render_column,
    ),
]

WIDGETS: Mapping[str, WidgetDefinition] = MappingProxyType({w.type: w for w in _DEFINITIONS})

# Container types the importer reconstructs column layouts as: a block-level
# single column keeps its own type, every other layout becomes "columns".
IMPORTED_COLUMNS_TYPE = "columns"
SINGLE_COLUMN_TYPE = "one-column"
COLUMN_TYPE = "column"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_widget(widget_type: str) -> WidgetDefinition | None:
    return WIDGETS.get(widget_type)


def require_widget(widget_type: str) -> WidgetDefinition:
    """Like get_widget, but raises UnknownWidgetError."""
    widget = WIDGETS.get(widget_type)
    if widget is None:
        raise UnknownWidgetError(widget_type)
    return widget


def list_widgets() -> list[WidgetDefinition]:
    return list(WIDGETS.values())


def list_widgets_by_category(category: str) -> list[WidgetDefinition]:
    return [w for w in WIDGETS.values() if w.category == category]


def generate_id() -> str:
    """Fresh element id. Never derived from position or content."""
    return f"el_{uuid.uuid4().hex[:16]}"


def make_node(widget_type: str, settings: dict[str, Any] | None = None, children: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    """Build a node with a fresh id. Containers always get a children list."""
    widget = require_widget(widget_type)
    node: dict[str, Any] = {
        "id": generate_id(),
        "type": widget_type,
        "settings": settings or {},
    }
    if widget.is_container:
        node["children"] = children or []
    return node


def create_default_element(widget_type: str) -> dict[str, Any]:
    """
    Instantiate a node from its widget's defaults.

    Column layouts are created with their declared number of empty column
    children, each with its own fresh id.
    """
    widget = require_widget(widget_type)
    node = make_node(widget_type, copy.deepcopy(widget.default_settings))

    if widget.column_count:
        column = require_widget(COLUMN_TYPE)
        node["children"] = [
            make_node(COLUMN_TYPE, copy.deepcopy(column.default_settings))
            for _ in range(widget.column_count)
        ]

    return node
