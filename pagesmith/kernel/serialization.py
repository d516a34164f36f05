"""
pagesmith Kernel — Document Serialization

JSON import/export of the element tree itself, bypassing markup:

    {
        "version": "1.0",
        "elements": [ {id, type, settings, children?}, ... ],
        "globalStyles": {...}
    }

A bare element array is accepted on load. Loading validates the shape with
pydantic, then every tree invariant (known types, desktop entries on
responsive values, container rules, unique ids). Invalid documents are
rejected whole, never repaired.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from pagesmith.kernel.tree import validate_tree
from pagesmith.kernel.widgets import get_widget

DOCUMENT_VERSION = "1.0"


class DocumentValidationError(Exception):
    """Serialized document rejected at the boundary."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class ElementModel(BaseModel):
    """One serialized node."""

    model_config = {"extra": "forbid"}

    id: str = Field(min_length=1)
    type: str
    settings: dict[str, Any] = Field(default_factory=dict)
    children: list[ElementModel] | None = None

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if get_widget(value) is None:
            raise ValueError(f"unknown widget type {value!r}")
        return value

    def to_node(self) -> dict[str, Any]:
        node: dict[str, Any] = {"id": self.id, "type": self.type, "settings": dict(self.settings)}
        if self.children is not None:
            node["children"] = [c.to_node() for c in self.children]
        return node


ElementModel.model_rebuild()


class DocumentModel(BaseModel):
    """Whole serialized document."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    version: str = DOCUMENT_VERSION
    elements: list[ElementModel]
    global_styles: dict[str, Any] = Field(default_factory=dict, alias="globalStyles")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def dump_document(elements: list[dict[str, Any]], global_styles: dict[str, Any] | None = None) -> str:
    payload = {
        "version": DOCUMENT_VERSION,
        "elements": elements,
        "globalStyles": global_styles or {},
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def load_document(text: str) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    """
    Parse and validate a serialized document.
    Returns (elements, global_styles). Raises DocumentValidationError.
    """
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise DocumentValidationError([f"invalid JSON: {e}"]) from e

    if isinstance(data, list):
        data = {"elements": data}

    try:
        doc = DocumentModel.model_validate(data)
    except ValidationError as e:
        raise DocumentValidationError(_format_errors(e)) from e

    elements = [m.to_node() for m in doc.elements]
    errors = validate_tree(elements)
    if errors:
        raise DocumentValidationError(errors)

    return elements, dict(doc.global_styles)


def _format_errors(exc: ValidationError) -> list[str]:
    out = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "document"
        out.append(f"{loc}: {err['msg']}")
    return out
