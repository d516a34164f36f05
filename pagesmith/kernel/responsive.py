"""
pagesmith Kernel — Responsive Values

A setting may vary per viewport class. Such a value is a dict keyed by
viewport with a mandatory "desktop" entry:

    {"desktop": "24px", "tablet": "22px", "mobile": "20px"}

resolve() is the only place the mobile → tablet → desktop cascade lives.
Renderers and editing controls call it; nothing else walks viewports.

Well-formedness is checked when a value enters a node (construction,
update, import), never while reading it back.
"""

from __future__ import annotations

import copy
from typing import Any

from pagesmith.kernel.types import DESKTOP, VIEWPORT_CASCADE, VIEWPORTS

SCALAR_TYPES = (str, int, float, bool)


class ResponsiveValueError(ValueError):
    """A responsive value is malformed (missing desktop, unknown viewport, non-scalar entry)."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_responsive(value: Any) -> bool:
    """True if value is shaped like a per-viewport mapping."""
    return isinstance(value, dict) and bool(value) and all(k in VIEWPORTS for k in value)


def resolve(value: Any, viewport: str, fallback: Any = None) -> Any:
    """
    Resolve a possibly-responsive value to a scalar for one viewport.

    Plain scalars are returned as-is (None → fallback). Responsive values
    cascade by specificity: mobile → tablet → desktop.
    """
    chain = VIEWPORT_CASCADE.get(viewport)
    if chain is None:
        raise ValueError(f"Unknown viewport: {viewport!r}")

    if value is None:
        return fallback

    if isinstance(value, dict):
        for vp in chain:
            candidate = value.get(vp)
            if candidate is not None:
                return candidate
        return fallback

    return value


def resolve_settings(settings: dict[str, Any] | None, viewport: str) -> dict[str, Any]:
    """Flatten every responsive entry of a settings mapping to its value for one viewport."""
    return {
        key: resolve(value, viewport) if is_responsive(value) else value
        for key, value in (settings or {}).items()
    }


def responsive(desktop: Any, tablet: Any = None, mobile: Any = None) -> dict[str, Any]:
    """Build a well-formed responsive value. Omitted viewports inherit via the cascade."""
    if desktop is None:
        raise ResponsiveValueError("responsive value requires a desktop entry")
    value = {DESKTOP: desktop}
    if tablet is not None:
        value["tablet"] = tablet
    if mobile is not None:
        value["mobile"] = mobile
    return value


def validate_value(key: str, value: Any) -> list[str]:
    """
    Validate one setting value. Returns a list of error strings.
    Empty list = valid.
    """
    if value is None or isinstance(value, SCALAR_TYPES):
        return []

    if isinstance(value, dict):
        errors: list[str] = []
        unknown = [k for k in value if k not in VIEWPORTS]
        if unknown:
            errors.append(f"Setting '{key}': unknown viewport(s) {sorted(unknown)}")
        if value.get(DESKTOP) is None:
            errors.append(f"Setting '{key}': responsive value is missing 'desktop'")
        for vp, entry in value.items():
            if entry is not None and not isinstance(entry, SCALAR_TYPES):
                errors.append(f"Setting '{key}': '{vp}' entry must be a scalar")
        return errors

    return [f"Setting '{key}': value must be a scalar or a responsive mapping"]


def validate_settings(settings: Any) -> list[str]:
    """Validate a whole settings mapping. Returns a list of error strings."""
    if not isinstance(settings, dict):
        return ["settings must be an object"]
    errors: list[str] = []
    for key, value in settings.items():
        if not isinstance(key, str):
            errors.append(f"Setting key {key!r} must be a string")
            continue
        errors.extend(validate_value(key, value))
    return errors


def normalize_settings(settings: dict[str, Any]) -> dict[str, Any]:
    """
    Return a deep copy of settings with unset entries dropped.

    None scalars are removed, None viewport entries are removed from
    responsive values. Raises ResponsiveValueError if the result is still
    malformed.
    """
    errors = validate_settings(settings)
    if errors:
        raise ResponsiveValueError("; ".join(errors))

    normalized: dict[str, Any] = {}
    for key, value in settings.items():
        if value is None:
            continue
        if isinstance(value, dict):
            normalized[key] = {vp: v for vp, v in value.items() if v is not None}
        else:
            normalized[key] = copy.copy(value)
    return normalized
