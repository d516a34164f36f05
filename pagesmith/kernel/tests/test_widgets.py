"""
pagesmith Widget Registry — Catalogue, Defaults and Render Functions
"""

import pytest

from pagesmith.kernel.responsive import validate_settings
from pagesmith.kernel.types import CHILDREN_SLOT, CONTROL_KINDS, WIDGET_CATEGORIES, WIDGET_TYPES
from pagesmith.kernel.widgets import (
    WIDGETS,
    UnknownWidgetError,
    build_style,
    create_default_element,
    generate_id,
    get_widget,
    kebab_case,
    list_widgets,
    list_widgets_by_category,
    make_node,
    require_widget,
)

LAYOUTS = {"one-column": 1, "two-columns": 2, "three-columns": 3, "columns": 4}


# ============================================================================
# Lookup
# ============================================================================

class TestLookup:
    def test_every_type_registered(self):
        assert sorted(WIDGETS) == sorted(WIDGET_TYPES)

    def test_list_widgets(self):
        assert len(list_widgets()) == len(WIDGET_TYPES)

    def test_by_category(self):
        layout = {w.type for w in list_widgets_by_category("layout")}
        assert layout == {*LAYOUTS, "column"}

    def test_every_category_known(self):
        assert {w.category for w in list_widgets()} <= set(WIDGET_CATEGORIES)

    def test_unknown_returns_none(self):
        assert get_widget("carousel") is None

    def test_require_raises(self):
        with pytest.raises(UnknownWidgetError) as exc:
            require_widget("carousel")
        assert exc.value.widget_type == "carousel"

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            WIDGETS["carousel"] = WIDGETS["text"]


# ============================================================================
# Definitions
# ============================================================================

class TestDefinitions:
    @pytest.mark.parametrize("widget_type", WIDGET_TYPES)
    def test_defaults_are_well_formed(self, widget_type):
        assert validate_settings(get_widget(widget_type).default_settings) == []

    @pytest.mark.parametrize("widget_type", WIDGET_TYPES)
    def test_control_kinds_known(self, widget_type):
        for control in get_widget(widget_type).controls:
            assert control.kind in CONTROL_KINDS

    def test_layouts_accept_only_columns(self):
        for widget_type in LAYOUTS:
            w = get_widget(widget_type)
            assert w.accepts_child("column")
            assert not w.accepts_child("text")

    def test_column_accepts_content_not_columns(self):
        column = get_widget("column")
        assert column.accepts_child("text")
        assert column.accepts_child("two-columns")
        assert not column.accepts_child("column")

    def test_leaves_accept_nothing(self):
        assert not get_widget("heading").accepts_child("text")

    def test_responsive_keys_come_from_controls(self):
        heading = get_widget("heading")
        assert heading.is_responsive_key("fontSize")
        assert not heading.is_responsive_key("color")
        assert not heading.is_responsive_key("nonexistent")

    def test_container_fragments_have_children_slot(self):
        for w in list_widgets():
            if w.is_container:
                node = make_node(w.type)
                assert CHILDREN_SLOT in w.render(node, "desktop")


# ============================================================================
# Element creation
# ============================================================================

class TestCreateDefaultElement:
    def test_two_columns_has_two_empty_columns(self):
        node = create_default_element("two-columns")
        assert len(node["children"]) == 2
        for child in node["children"]:
            assert child["type"] == "column"
            assert child["children"] == []

    @pytest.mark.parametrize("widget_type,count", LAYOUTS.items())
    def test_column_count_matches(self, widget_type, count):
        assert len(create_default_element(widget_type)["children"]) == count

    def test_ids_are_fresh_and_distinct(self):
        node = create_default_element("three-columns")
        ids = [node["id"], *(c["id"] for c in node["children"])]
        assert len(set(ids)) == 4
        assert all(i.startswith("el_") for i in ids)

    def test_settings_are_deep_copied(self):
        node = create_default_element("heading")
        node["settings"]["fontSize"]["desktop"] = "99px"
        assert get_widget("heading").default_settings["fontSize"]["desktop"] == "24px"

    def test_leaf_has_no_children(self):
        assert "children" not in create_default_element("text")

    def test_column_starts_empty(self):
        assert create_default_element("column")["children"] == []

    def test_unknown_type_raises(self):
        with pytest.raises(UnknownWidgetError):
            create_default_element("carousel")

    def test_generate_id_unique(self):
        assert len({generate_id() for _ in range(200)}) == 200


# ============================================================================
# Render functions
# ============================================================================

def render(widget_type, settings, viewport="desktop"):
    return get_widget(widget_type).render({"id": "x", "type": widget_type, "settings": settings}, viewport)


class TestStyleHelpers:
    def test_kebab_case(self):
        assert kebab_case("backgroundColor") == "background-color"

    def test_build_style_skips_unset(self):
        assert build_style({"color": "red", "margin": None, "padding": ""}) == "color: red"

    def test_build_style_escapes(self):
        assert "&quot;" in build_style({"fontFamily": '"Open Sans"'})


class TestRenderFunctions:
    def test_heading_tag_and_text(self):
        html = render("heading", {"text": "Hi", "tag": "h3"})
        assert html.startswith("<h3 ")
        assert html.endswith(">Hi</h3>")

    def test_heading_bad_tag_falls_back(self):
        assert render("heading", {"text": "Hi", "tag": "script"}).startswith("<h2 ")

    def test_heading_resolves_font_size_per_viewport(self):
        settings = {"text": "Hi", "fontSize": {"desktop": "24px", "mobile": "18px"}}
        assert "font-size: 24px" in render("heading", settings, "desktop")
        assert "font-size: 18px" in render("heading", settings, "mobile")

    def test_text_escapes_content(self):
        assert "&lt;b&gt;" in render("text", {"text": "<b>"})

    def test_image_plain(self):
        html = render("image", {"src": "a.png", "alt": "A"})
        assert html.startswith('<img src="a.png" alt="A"')

    def test_image_linked(self):
        html = render("image", {"src": "a.png", "linkUrl": "https://x.test", "linkTarget": "_blank"})
        assert html.startswith('<a href="https://x.test" target="_blank"><img ')

    def test_button_defaults(self):
        html = render("button", {})
        assert 'href="#"' in html
        assert ">Button</a>" in html
        assert "padding: 12px 30px" in html

    def test_divider_border(self):
        html = render("divider", {"thickness": "3px", "style": "dashed", "color": "red"})
        assert "border-top: 3px dashed red" in html

    def test_spacer_height(self):
        assert render("spacer", {"height": {"desktop": "40px", "mobile": "20px"}}, "mobile") == (
            '<div style="height: 20px"></div>'
        )

    def test_html_passes_through(self):
        assert render("html", {"rawHtml": "<table></table>"}) == "<table></table>"

    def test_html_wrapped_when_spaced(self):
        assert render("html", {"rawHtml": "<b>x</b>", "margin": "5px"}) == '<div style="margin: 5px"><b>x</b></div>'

    def test_columns_stack_on_mobile(self):
        settings = {"stackOn": "mobile", "gap": {"desktop": "20px"}}
        assert "display: flex" in render("two-columns", settings, "desktop")
        stacked = render("two-columns", settings, "mobile")
        assert "display: block" in stacked
        assert "gap: 0" in stacked

    def test_columns_stack_on_tablet(self):
        settings = {"stackOn": "tablet"}
        assert "display: block" in render("three-columns", settings, "tablet")

    def test_column_width_becomes_flex_basis(self):
        assert "flex: 0 0 30%" in render("column", {"width": {"desktop": "30%"}})
        assert "flex: 1" in render("column", {})

    def test_column_vertical_align(self):
        assert "align-items: center" in render("column", {"verticalAlign": "middle"})
