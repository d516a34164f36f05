"""
pagesmith Responsive Values — Resolution and Validation Tests

resolve() cascades mobile → tablet → desktop. Well-formedness (a desktop
entry, known viewports, scalar entries) is checked at construction time.
"""

import itertools

import pytest

from pagesmith.kernel.responsive import (
    ResponsiveValueError,
    is_responsive,
    normalize_settings,
    resolve,
    resolve_settings,
    responsive,
    validate_settings,
    validate_value,
)
from pagesmith.kernel.types import VIEWPORTS


class TestResolveScalars:
    def test_scalar_returned_as_is(self):
        assert resolve("12px", "mobile") == "12px"

    def test_numbers_and_booleans_pass_through(self):
        assert resolve(0, "desktop", "fallback") == 0
        assert resolve(False, "tablet", True) is False

    def test_none_uses_fallback(self):
        assert resolve(None, "desktop", "16px") == "16px"

    def test_none_without_fallback(self):
        assert resolve(None, "desktop") is None


class TestResolveCascade:
    def test_desktop_only_serves_every_viewport(self):
        value = {"desktop": "24px"}
        assert [resolve(value, vp) for vp in VIEWPORTS] == ["24px", "24px", "24px"]

    def test_mobile_prefers_mobile(self):
        value = {"desktop": "24px", "tablet": "22px", "mobile": "20px"}
        assert resolve(value, "mobile") == "20px"

    def test_mobile_falls_back_to_tablet(self):
        assert resolve({"desktop": "24px", "tablet": "22px"}, "mobile") == "22px"

    def test_tablet_ignores_mobile(self):
        assert resolve({"desktop": "24px", "mobile": "20px"}, "tablet") == "24px"

    def test_desktop_ignores_smaller_viewports(self):
        assert resolve({"desktop": "24px", "tablet": "22px", "mobile": "20px"}, "desktop") == "24px"

    def test_unknown_viewport_raises(self):
        with pytest.raises(ValueError):
            resolve({"desktop": "1px"}, "watch")

    def test_mobile_never_undefined_when_desktop_present(self):
        for tablet, mobile in itertools.product([None, "t"], [None, "m"]):
            value = {"desktop": "d"}
            if tablet:
                value["tablet"] = tablet
            if mobile:
                value["mobile"] = mobile
            assert resolve(value, "mobile") is not None

    def test_resolve_settings(self):
        settings = {"color": {"desktop": "#f00", "mobile": "#0f0"}, "text": "hi", "level": 2}
        assert resolve_settings(settings, "mobile") == {"color": "#0f0", "text": "hi", "level": 2}
        assert resolve_settings(settings, "tablet") == {"color": "#f00", "text": "hi", "level": 2}
        assert resolve_settings(None, "desktop") == {}


class TestResponsiveConstruction:
    def test_builds_minimal_value(self):
        assert responsive("10px") == {"desktop": "10px"}

    def test_builds_full_value(self):
        assert responsive("3", "2", "1") == {"desktop": "3", "tablet": "2", "mobile": "1"}

    def test_requires_desktop(self):
        with pytest.raises(ResponsiveValueError):
            responsive(None, "2")

    def test_error_is_a_value_error(self):
        assert issubclass(ResponsiveValueError, ValueError)

    def test_is_responsive(self):
        assert is_responsive({"desktop": "1px"})
        assert not is_responsive({})
        assert not is_responsive({"color": "red"})
        assert not is_responsive("1px")


class TestValidation:
    def test_scalars_are_valid(self):
        assert validate_value("x", "a") == []
        assert validate_value("x", 3) == []
        assert validate_value("x", None) == []

    def test_missing_desktop(self):
        errors = validate_value("fontSize", {"mobile": "12px"})
        assert any("desktop" in e for e in errors)

    def test_unknown_viewport(self):
        errors = validate_value("fontSize", {"desktop": "12px", "watch": "8px"})
        assert any("unknown viewport" in e for e in errors)

    def test_non_scalar_entry(self):
        errors = validate_value("fontSize", {"desktop": ["12px"]})
        assert errors

    def test_list_value_rejected(self):
        assert validate_value("items", [1, 2])

    def test_settings_must_be_mapping(self):
        assert validate_settings(["a"]) == ["settings must be an object"]

    def test_settings_collects_every_error(self):
        errors = validate_settings({"a": {"mobile": "1"}, "b": [1]})
        assert len(errors) == 2


class TestNormalize:
    def test_drops_none_scalars(self):
        assert normalize_settings({"text": "hi", "color": None}) == {"text": "hi"}

    def test_drops_none_viewport_entries(self):
        out = normalize_settings({"fontSize": {"desktop": "12px", "mobile": None}})
        assert out == {"fontSize": {"desktop": "12px"}}

    def test_returns_copy(self):
        original = {"fontSize": {"desktop": "12px"}}
        out = normalize_settings(original)
        out["fontSize"]["desktop"] = "99px"
        assert original["fontSize"]["desktop"] == "12px"

    def test_raises_on_missing_desktop(self):
        with pytest.raises(ResponsiveValueError):
            normalize_settings({"fontSize": {"tablet": "12px"}})
