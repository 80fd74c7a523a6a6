"""
core/properties.py - Pure mutations behind the properties panel.

Every function takes the document explicitly and touches only the element
it names. Numeric input coming from text fields is parsed leniently: a
value that is not a number falls back to a fixed default instead of
raising.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

from .models import BarcodeElement, Element, TemplateDocument

if TYPE_CHECKING:
    from .editor import EditorState

log = logging.getLogger(__name__)

DUPLICATE_OFFSET: Tuple[float, float] = (10.0, 10.0)

GEOMETRY_FIELDS = ("x", "y", "width", "height", "rotation_degrees")
STYLE_FIELDS = (
    "font_size",
    "font_weight",
    "font_style",
    "text_decoration",
    "text_align",
    "color",
    "background_color",
    "border_width",
    "border_color",
    "border_style",
    "opacity",
    "z_index",
)
BARCODE_FIELDS = ("symbology", "show_text")

# fallback used when a numeric field does not parse
NUMERIC_FALLBACKS: Dict[str, float] = {
    "x": 0,
    "y": 0,
    "width": 50,
    "height": 20,
    "rotation_degrees": 0,
    "font_size": 12,
    "border_width": 0,
    "opacity": 1,
    "z_index": 1,
}
INTEGER_FIELDS = ("z_index",)

# names used by the persisted document representation
FIELD_ALIASES: Dict[str, str] = {
    "rotationDegrees": "rotation_degrees",
    "rotation": "rotation_degrees",
    "fontSize": "font_size",
    "fontWeight": "font_weight",
    "fontStyle": "font_style",
    "textDecoration": "text_decoration",
    "textAlign": "text_align",
    "backgroundColor": "background_color",
    "borderWidth": "border_width",
    "borderColor": "border_color",
    "borderStyle": "border_style",
    "zIndex": "z_index",
    "showText": "show_text",
}


def canonical_field(name: str) -> str:
    return FIELD_ALIASES.get(name, name)


def coerce_number(value: Any, fallback: float, integer: bool = False) -> float:
    """Parse *value* as a number, returning *fallback* when it does not parse."""
    if isinstance(value, bool):
        return fallback
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return fallback
    if number != number or number in (float("inf"), float("-inf")):
        return fallback
    return int(number) if integer else number


def _require(document: TemplateDocument, element_id: str) -> Element:
    elem = document.get(element_id)
    if elem is None:
        raise KeyError(f"No element with id {element_id!r}")
    return elem


def _coerce(name: str, value: Any) -> Any:
    if name in NUMERIC_FALLBACKS:
        # optional style fields may be reset to "inherit"
        if value is None and name in ("font_size", "border_width"):
            return None
        return coerce_number(value, NUMERIC_FALLBACKS[name], integer=name in INTEGER_FIELDS)
    if name == "show_text":
        return value if isinstance(value, bool) else str(value).strip().lower() in ("1", "true", "yes", "on")
    if value is None:
        return None
    return str(value)


def update_element(
    document: TemplateDocument, element_id: str, changes: Mapping[str, Any]
) -> Element:
    """
    Merge *changes* into one element and return it.

    Accepts snake_case field names or the camelCase names of the persisted
    form. Unknown names raise KeyError before anything is applied.
    """
    elem = _require(document, element_id)
    resolved: Dict[str, Any] = {}
    for raw_name, value in changes.items():
        name = canonical_field(raw_name)
        if name == "content" or name in GEOMETRY_FIELDS or name in STYLE_FIELDS:
            pass
        elif name in BARCODE_FIELDS and isinstance(elem, BarcodeElement):
            pass
        else:
            raise KeyError(f"Unknown field {raw_name!r} for {elem.kind} element")
        resolved[name] = _coerce(name, value)

    for name, value in resolved.items():
        if name == "content":
            elem.content = "" if value is None else value
        elif name in GEOMETRY_FIELDS:
            setattr(elem.geometry, name, value)
        elif name in STYLE_FIELDS:
            setattr(elem.style, name, value)
        else:
            setattr(elem, name, value)

    elem.normalize()
    elem.geometry.clamp_into(document.width_px, document.height_px)
    log.debug("Updated %s: %s", element_id, sorted(resolved))
    return elem


def duplicate_element(
    document: TemplateDocument,
    element_id: str,
    offset: Tuple[float, float] = DUPLICATE_OFFSET,
) -> Element:
    """Copy an element with a new id, shifted by *offset*, painted on top."""
    source = _require(document, element_id)
    dup = source.copy_with(document.new_element_id(source.kind))
    dup.geometry.x += offset[0]
    dup.geometry.y += offset[1]
    dup.style.z_index = document.next_z_index()
    return document.add(dup)


def delete_element(
    document: TemplateDocument,
    element_id: str,
    state: Optional["EditorState"] = None,
) -> Optional[Element]:
    removed = document.remove(element_id)
    if state is not None and state.selected_id == element_id:
        state.selected_id = None
        state.drag = None
    return removed


def shift_z_index(document: TemplateDocument, element_id: str, delta: int) -> Element:
    """Move an element up or down the paint order; never below layer 1."""
    elem = _require(document, element_id)
    elem.style.z_index = max(1, elem.style.z_index + int(delta))
    return elem
