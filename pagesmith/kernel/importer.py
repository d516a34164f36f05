"""
pagesmith Kernel — Markup Importer

parse_markup(markup) → list of element nodes

Best-effort, heuristic and total: any input string produces a tree, nothing
raises. Each markup element is offered to an ordered list of rules
(name, rule). A rule returns a node or None; the last rule always matches and
keeps the element verbatim as a raw-markup node.

Editor artifacts from instrumented markup (toolbars, drag handles, identity
attributes) are stripped first. Every node gets a fresh id: ids are never
read back from markup.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from pagesmith.kernel.types import AFFORDANCE_CLASSES, ATTR_EDITOR_WRAPPER, CONTAINER_CLASS
from pagesmith.kernel.widgets import (
    COLUMN_TYPE,
    IMPORTED_COLUMNS_TYPE,
    SINGLE_COLUMN_TYPE,
    make_node,
    require_widget,
)

logger = logging.getLogger(__name__)

Node = dict[str, Any]
Rule = Callable[[Tag, dict[str, str]], "Node | None"]

# Tried in order; the first match is the main content root.
ROOT_SELECTORS: tuple[str, ...] = (
    f".{CONTAINER_CLASS}",
    '[class*="container"]',
    'table[align="center"]',
    "center > table",
)

_EDITOR_ATTRS = {
    "draggable",
    "data-container",
    "data-selected",
    "data-parent-highlighted",
    "data-drop-zone",
    "data-root-container",
}

_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
_RAW_TAGS = {"table", "script", "style"}
_BORDER_STYLES = {"none", "hidden", "solid", "dashed", "dotted", "double", "groove", "ridge", "inset", "outset"}
_BORDER_WIDTH_RE = re.compile(r"^(\d*\.?\d+(px|em|rem|pt)?|thin|medium|thick)$")
_BORDER_TOKEN_RE = re.compile(r"[\w-]+\([^)]*\)|\S+")
_URL_RE = re.compile(r"""^url\(\s*['"]?(.*?)['"]?\s*\)$""")
_KEBAB_RE = re.compile(r"-([a-z])")

_VERTICAL_ALIGN = {"flex-start": "top", "start": "top", "center": "middle", "flex-end": "bottom", "end": "bottom"}

BOX_KEYS = ("margin", "padding")
TEXT_KEYS = ("color", "fontSize", "fontWeight", "fontFamily", "textAlign", "lineHeight", "letterSpacing")
BASE_KEYS = (
    "width",
    "height",
    "maxWidth",
    "minHeight",
    "backgroundColor",
    "backgroundImage",
    "backgroundSize",
    "backgroundPosition",
    "borderRadius",
    "display",
    "visibility",
)
IMAGE_KEYS = ("width", "height", "maxWidth", "borderRadius", "objectFit", *BOX_KEYS)
BUTTON_KEYS = ("color", "backgroundColor", "fontSize", "fontWeight", "padding", "borderRadius", "margin", "textAlign")
# Wrapper styles an elided div hands down to its only child.
INHERITED_KEYS = ("textAlign", "margin")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_markup(markup: str) -> list[Node]:
    """
    Parse a markup document into an element tree.

    Empty or whitespace-only input yields []. Any other input yields at least
    one node: if no rule produces anything, the located root's contents are
    kept as one raw-markup node.
    """
    if not isinstance(markup, str) or not markup.strip():
        return []

    try:
        soup = BeautifulSoup(markup, "html.parser")
        strip_editor_artifacts(soup)
        root = find_content_root(soup)
        elements = parse_children(root)
        if elements:
            return elements
        raw = root.decode_contents().strip() or markup.strip()
    except RecursionError:
        logger.warning("importer: markup nested too deeply to classify, keeping %d chars as raw markup", len(markup))
        return [make_node("html", {"rawHtml": markup.strip()})]

    logger.warning("importer: no classifiable content, keeping %d chars as raw markup", len(raw))
    return [make_node("html", {"rawHtml": raw})]


def parse_inline_styles(style: str | None) -> dict[str, str]:
    """'font-size: 12px; color: red' → {"fontSize": "12px", "color": "red"}."""
    if not style:
        return {}
    styles: dict[str, str] = {}
    for declaration in style.split(";"):
        prop, sep, value = declaration.partition(":")
        prop, value = prop.strip().lower(), value.strip()
        if sep and prop and value:
            styles[_KEBAB_RE.sub(lambda m: m.group(1).upper(), prop)] = value
    return styles


def strip_editor_artifacts(soup: BeautifulSoup) -> None:
    """Remove toolbars, drag handles and identity attributes left by instrumented rendering."""
    for cls in AFFORDANCE_CLASSES:
        for el in soup.select(f".{cls}"):
            el.decompose()
    for el in soup.find_all(attrs={ATTR_EDITOR_WRAPPER: True}):
        el.unwrap()
    for el in soup.find_all(True):
        for attr in list(el.attrs):
            if attr.startswith("data-element-") or attr in _EDITOR_ATTRS:
                del el[attr]


def find_content_root(soup: BeautifulSoup) -> Tag:
    for selector in ROOT_SELECTORS:
        found = soup.select_one(selector)
        if found is not None:
            return found
    return soup.body or soup


def parse_children(container: Tag) -> list[Node]:
    """Classify each child of container. Bare text becomes an unstyled text widget."""
    nodes: list[Node] = []
    for child in container.children:
        if isinstance(child, Tag):
            nodes.append(classify(child))
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            text = child.strip()
            if text:
                nodes.append(make_node("text", {"text": text}))
    return nodes


def classify(tag: Tag) -> Node:
    styles = parse_inline_styles(tag.get("style"))
    for name, rule in RULES:
        node = rule(tag, styles)
        if node is not None:
            logger.debug("importer: <%s> matched rule %s → %s", tag.name, name, node["type"])
            return node
    raise AssertionError("terminal rule did not match")  # pragma: no cover


# ---------------------------------------------------------------------------
# Style lifting
# ---------------------------------------------------------------------------


def lift_settings(widget_type: str, styles: dict[str, str], keys: tuple[str, ...]) -> dict[str, Any]:
    """
    Copy the named styles into settings.
    Keys the widget edits per viewport become {"desktop": value}.
    """
    widget = require_widget(widget_type)
    settings: dict[str, Any] = {}
    for key in keys:
        value = styles.get(key)
        if not value:
            continue
        if key == "backgroundImage":
            value = unwrap_url(value)
        settings[key] = {"desktop": value} if widget.is_responsive_key(key) else value
    return settings


def unwrap_url(value: str) -> str:
    m = _URL_RE.match(value.strip())
    return m.group(1) if m else value


def split_border(value: str | None) -> dict[str, str]:
    """Decompose a border shorthand ('2px dashed #ccc') into width/style/color."""
    if not value:
        return {}
    parts: dict[str, str] = {}
    color: list[str] = []
    for token in _BORDER_TOKEN_RE.findall(value):
        if token.lower() in _BORDER_STYLES and "style" not in parts:
            parts["style"] = token.lower()
        elif _BORDER_WIDTH_RE.match(token) and "width" not in parts:
            parts["width"] = token
        else:
            color.append(token)
    if color:
        parts["color"] = " ".join(color)
    return parts


def _text(tag: Tag) -> str:
    return tag.get_text().strip()


def _element_children(tag: Tag) -> list[Tag]:
    return [c for c in tag.children if isinstance(c, Tag)]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _rule_heading(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name not in _HEADING_TAGS:
        return None
    settings = {
        "text": _text(tag),
        "tag": tag.name,
        **lift_settings("heading", styles, TEXT_KEYS + BOX_KEYS + BASE_KEYS),
    }
    return make_node("heading", settings)


def _rule_paragraph(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name != "p":
        return None
    return make_node("text", {"text": _text(tag), **lift_settings("text", styles, TEXT_KEYS + BOX_KEYS + BASE_KEYS)})


def _image_node(img: Tag, styles: dict[str, str]) -> Node:
    settings = {
        "src": img.get("src") or "",
        "alt": img.get("alt") or "",
        **lift_settings("image", styles, IMAGE_KEYS),
    }
    return make_node("image", settings)


def _rule_image(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name != "img":
        return None
    return _image_node(tag, styles)


def _rule_linked_image(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name != "a":
        return None
    children = _element_children(tag)
    if len(children) != 1 or children[0].name != "img" or _text(tag):
        return None
    node = _image_node(children[0], parse_inline_styles(children[0].get("style")))
    if tag.get("href"):
        node["settings"]["linkUrl"] = tag["href"]
        node["settings"]["linkTarget"] = tag.get("target") or "_self"
    return node


def _rule_button(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name != "a":
        return None
    looks_like_button = (
        styles.get("backgroundColor")
        or styles.get("background")
        or (styles.get("padding") and styles.get("display") in ("inline-block", "block"))
    )
    if not looks_like_button:
        return None
    if "backgroundColor" not in styles and "background" in styles:
        styles = {**styles, "backgroundColor": styles["background"]}
    settings = {
        "text": _text(tag),
        "url": tag.get("href") or "#",
        "target": tag.get("target") or "_self",
        **lift_settings("button", styles, BUTTON_KEYS),
    }
    return make_node("button", settings)


def _rule_divider(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name != "hr":
        return None
    border = split_border(styles.get("borderTop")) or split_border(styles.get("border"))
    settings = {
        "color": styles.get("borderTopColor") or styles.get("borderColor") or border.get("color"),
        "thickness": styles.get("borderTopWidth") or styles.get("borderWidth") or border.get("width"),
        "style": styles.get("borderTopStyle") or styles.get("borderStyle") or border.get("style") or "solid",
        **lift_settings("divider", styles, ("width", "margin")),
    }
    return make_node("divider", {k: v for k, v in settings.items() if v})


def _rule_raw_block(tag: Tag, styles: dict[str, str]) -> Node | None:
    # Tabular layouts and embedded code are never decomposed.
    if tag.name not in _RAW_TAGS:
        return None
    return make_node("html", {"rawHtml": str(tag)})


def _rule_spacer(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name != "div" or _element_children(tag) or not styles.get("height") or _text(tag):
        return None
    return make_node("spacer", lift_settings("spacer", styles, ("height",)))


def _column_node(tag: Tag) -> Node:
    styles = parse_inline_styles(tag.get("style"))
    if "backgroundColor" not in styles and "background" in styles:
        styles["backgroundColor"] = styles["background"]
    settings = lift_settings(COLUMN_TYPE, styles, ("padding", "backgroundColor", "borderRadius", "width"))

    if "width" not in settings:
        # flex: 0 0 <basis>
        parts = styles.get("flex", "").split()
        if len(parts) == 3 and parts[2] not in ("auto", "0", "0%"):
            settings.update(lift_settings(COLUMN_TYPE, {"width": parts[2]}, ("width",)))

    align = _VERTICAL_ALIGN.get(styles.get("alignItems", ""))
    if align:
        settings["verticalAlign"] = align

    return make_node(COLUMN_TYPE, settings, parse_children(tag))


def _rule_columns(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name != "div":
        return None
    is_row = styles.get("display") == "flex" and not styles.get("flexDirection", "").startswith("column")
    children = _element_children(tag)
    if not children or not (is_row or tag.has_attr("data-columns")):
        return None

    widget_type = SINGLE_COLUMN_TYPE if not is_row and len(children) == 1 else IMPORTED_COLUMNS_TYPE
    settings = {
        "columns": len(children),
        **lift_settings(widget_type, styles, ("gap", "margin", "padding")),
    }
    return make_node(widget_type, settings, [_column_node(c) for c in children])


def _rule_wrapper(tag: Tag, styles: dict[str, str]) -> Node | None:
    """
    A div around exactly one classifiable child is transparent: keep the child,
    handing down alignment and margin it does not set itself. Several
    children keep the whole div verbatim.
    """
    if tag.name != "div" or not _element_children(tag):
        return None

    parsed = parse_children(tag)
    if len(parsed) > 1:
        return make_node("html", {"rawHtml": str(tag)})
    if not parsed:
        return None

    child = parsed[0]
    inherited = lift_settings(child["type"], styles, INHERITED_KEYS)
    widget = require_widget(child["type"])
    for key, value in inherited.items():
        if widget.control(key) is not None and key not in child["settings"]:
            child["settings"][key] = value
    return child


def _rule_text_block(tag: Tag, styles: dict[str, str]) -> Node | None:
    if tag.name not in ("div", "span") or not _text(tag):
        return None
    keys = ("color", "fontSize") if tag.name == "span" else ("color", "fontSize", "fontWeight", "textAlign", "lineHeight", *BOX_KEYS)
    return make_node("text", {"text": _text(tag), **lift_settings("text", styles, keys)})


def _rule_raw(tag: Tag, styles: dict[str, str]) -> Node:
    return make_node("html", {"rawHtml": str(tag)})


RULES: list[tuple[str, Rule]] = [
    ("heading", _rule_heading),
    ("paragraph", _rule_paragraph),
    ("image", _rule_image),
    ("linked_image", _rule_linked_image),
    ("button", _rule_button),
    ("divider", _rule_divider),
    ("raw_block", _rule_raw_block),
    ("spacer", _rule_spacer),
    ("columns", _rule_columns),
    ("wrapper", _rule_wrapper),
    ("text_block", _rule_text_block),
    ("raw", _rule_raw),
]
