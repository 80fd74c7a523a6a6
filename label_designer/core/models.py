from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type

from .geometry import clamp, clamp_rect, mm_to_px, rect_contains


ELEMENT_TYPES: Tuple[str, ...] = ("text", "barcode", "image", "price", "mrp", "sku")
TEXT_LIKE_TYPES: Tuple[str, ...] = ("text", "price", "mrp", "sku")

FONT_WEIGHTS = ("normal", "bold")
FONT_STYLES = ("normal", "italic")
TEXT_DECORATIONS = ("none", "underline")
TEXT_ALIGNS = ("left", "center", "right")
BORDER_STYLES = ("solid", "dashed", "dotted", "none")

MIN_ELEMENT_SIZE_PX = 1.0
MIN_DIMENSION_MM = 1.0
MAX_ROTATION = 360.0

DEFAULT_TEMPLATE_NAME = "Untitled Label"

# explicit box styles for generated elements, so they do not pick up the page border
PLAIN_BOX = dict(background_color="transparent", border_width=0.0, border_style="none")
FRAMED_BOX = dict(
    background_color="transparent", border_width=1.0, border_color="#cccccc", border_style="solid"
)


def _choice(value: Any, allowed: Tuple[str, ...], default: Optional[str] = None) -> str:
    text = str(value).strip().lower() if value is not None else ""
    if text in allowed:
        return text
    return default if default is not None else allowed[0]


def _to_float(value: Any, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def _to_int(value: Any, default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        # OverflowError: "inf" or 1e400
        return default


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ---------- Geometry / style ----------

@dataclass
class Geometry:
    """Bounding box in un-zoomed document pixels."""
    x: float = 0.0
    y: float = 0.0
    width: float = 50.0
    height: float = 20.0
    rotation_degrees: float = 0.0

    def normalize(self) -> None:
        self.x = _to_float(self.x, 0.0)
        self.y = _to_float(self.y, 0.0)
        self.width = max(MIN_ELEMENT_SIZE_PX, _to_float(self.width, MIN_ELEMENT_SIZE_PX))
        self.height = max(MIN_ELEMENT_SIZE_PX, _to_float(self.height, MIN_ELEMENT_SIZE_PX))
        self.rotation_degrees = clamp(
            _to_float(self.rotation_degrees, 0.0), -MAX_ROTATION, MAX_ROTATION
        )

    def clamp_into(self, bounds_w: float, bounds_h: float) -> None:
        self.x, self.y, self.width, self.height = clamp_rect(
            self.x, self.y, self.width, self.height, bounds_w, bounds_h
        )

    def contains(self, px: float, py: float) -> bool:
        return rect_contains(self.x, self.y, self.width, self.height, px, py)

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0


@dataclass
class Style:
    # None = inherit the document default
    font_size: Optional[float] = None
    font_weight: str = "normal"
    font_style: str = "normal"
    text_decoration: str = "none"
    text_align: str = "left"
    color: Optional[str] = None
    background_color: Optional[str] = None
    border_width: Optional[float] = None
    border_color: str = "#000000"
    border_style: Optional[str] = None
    opacity: float = 1.0
    z_index: int = 1

    def normalize(self) -> None:
        size = _optional_float(self.font_size)
        self.font_size = size if size is None or size > 0 else None
        self.font_weight = _choice(self.font_weight, FONT_WEIGHTS)
        self.font_style = _choice(self.font_style, FONT_STYLES)
        self.text_decoration = _choice(self.text_decoration, TEXT_DECORATIONS)
        self.text_align = _choice(self.text_align, TEXT_ALIGNS)
        self.color = _optional_str(self.color)
        self.background_color = _optional_str(self.background_color)
        width = _optional_float(self.border_width)
        self.border_width = None if width is None else max(0.0, width)
        self.border_color = _optional_str(self.border_color) or "#000000"
        if self.border_style is not None:
            self.border_style = _choice(self.border_style, BORDER_STYLES, default="none")
        self.opacity = clamp(_to_float(self.opacity, 1.0), 0.0, 1.0)
        self.z_index = max(1, _to_int(self.z_index, 1))


# ---------- Element variants ----------

@dataclass
class Element:
    """One placeable item on the label. Subclasses fix the variant."""
    id: str
    geometry: Geometry = field(default_factory=Geometry)
    style: Style = field(default_factory=Style)
    content: str = ""

    kind: ClassVar[str] = ""

    @property
    def z_index(self) -> int:
        return self.style.z_index

    @property
    def is_text_like(self) -> bool:
        return self.kind in TEXT_LIKE_TYPES

    def normalize(self) -> None:
        self.content = "" if self.content is None else str(self.content)
        self.geometry.normalize()
        self.style.normalize()

    def copy_with(self, new_id: str) -> "Element":
        dup = copy.deepcopy(self)
        dup.id = new_id
        return dup

    # ---- helpers used by persistence ----
    def to_dict(self) -> Dict[str, Any]:
        g, s = self.geometry, self.style
        return {
            "id": self.id,
            "type": self.kind,
            "x": g.x,
            "y": g.y,
            "width": g.width,
            "height": g.height,
            "rotationDegrees": g.rotation_degrees,
            "fontSize": s.font_size,
            "fontWeight": s.font_weight,
            "fontStyle": s.font_style,
            "textDecoration": s.text_decoration,
            "textAlign": s.text_align,
            "color": s.color,
            "backgroundColor": s.background_color,
            "borderWidth": s.border_width,
            "borderColor": s.border_color,
            "borderStyle": s.border_style,
            "opacity": s.opacity,
            "zIndex": s.z_index,
            "content": self.content,
        }

    def _load_extra(self, d: Dict[str, Any]) -> None:
        """Variant-specific fields; overridden by subclasses that have any."""


@dataclass
class TextElement(Element):
    kind: ClassVar[str] = "text"


@dataclass
class PriceElement(Element):
    kind: ClassVar[str] = "price"


@dataclass
class MrpElement(Element):
    kind: ClassVar[str] = "mrp"


@dataclass
class SkuElement(Element):
    kind: ClassVar[str] = "sku"


@dataclass
class BarcodeElement(Element):
    """Barcode bars fill the box; text alignment/decoration are ignored."""
    symbology: str = "CODE128"
    show_text: bool = True

    kind: ClassVar[str] = "barcode"

    def normalize(self) -> None:
        super().normalize()
        self.symbology = (str(self.symbology or "").strip() or "CODE128").upper()
        self.show_text = bool(self.show_text)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["symbology"] = self.symbology
        d["showText"] = self.show_text
        return d

    def _load_extra(self, d: Dict[str, Any]) -> None:
        self.symbology = d.get("symbology", self.symbology)
        self.show_text = d.get("showText", self.show_text)


@dataclass
class ImageElement(Element):
    """content is a file path, http(s) URL or data URI."""
    kind: ClassVar[str] = "image"


ELEMENT_CLASSES: Dict[str, Type[Element]] = {
    cls.kind: cls
    for cls in (TextElement, BarcodeElement, ImageElement, PriceElement, MrpElement, SkuElement)
}


def make_element(
    kind: str,
    element_id: str,
    x: float = 0.0,
    y: float = 0.0,
    width: float = 50.0,
    height: float = 20.0,
    content: str = "",
    **style: Any,
) -> Element:
    try:
        cls = ELEMENT_CLASSES[kind]
    except KeyError:
        raise ValueError(f"Unknown element type: {kind!r}") from None
    elem = cls(
        id=element_id,
        geometry=Geometry(x=x, y=y, width=width, height=height),
        style=Style(**style),
        content=content,
    )
    elem.normalize()
    return elem


def element_from_dict(d: Dict[str, Any]) -> Element:
    kind = str(d.get("type", "text")).strip().lower()
    cls = ELEMENT_CLASSES.get(kind)
    if cls is None:
        raise ValueError(f"Unknown element type: {kind!r}")
    elem_id = str(d.get("id") or "").strip()
    if not elem_id:
        raise ValueError("Element is missing an id")

    elem = cls(
        id=elem_id,
        geometry=Geometry(
            x=d.get("x", 0.0),
            y=d.get("y", 0.0),
            width=d.get("width", 50.0),
            height=d.get("height", 20.0),
            rotation_degrees=d.get("rotationDegrees", 0.0),
        ),
        style=Style(
            font_size=d.get("fontSize"),
            font_weight=d.get("fontWeight", "normal"),
            font_style=d.get("fontStyle", "normal"),
            text_decoration=d.get("textDecoration", "none"),
            text_align=d.get("textAlign", "left"),
            color=d.get("color"),
            background_color=d.get("backgroundColor"),
            border_width=d.get("borderWidth"),
            border_color=d.get("borderColor", "#000000"),
            border_style=d.get("borderStyle"),
            opacity=d.get("opacity", 1.0),
            z_index=d.get("zIndex", 1),
        ),
        content=d.get("content", ""),
    )
    elem._load_extra(d)
    elem.normalize()
    return elem


# ---------- Template / document ----------

@dataclass
class TemplateDocument:
    name: str = DEFAULT_TEMPLATE_NAME
    width_mm: float = 50.0
    height_mm: float = 30.0

    # document-level style defaults
    default_font_size: float = 18.0
    text_color: str = "#000000"
    background_color: str = "#ffffff"
    border_width: float = 1.0
    border_style: str = "solid"

    # toggles for the auto-populated default elements
    include_barcode: bool = True
    include_price: bool = True
    include_mrp: bool = False
    include_description: bool = False
    include_manufacturing_date: bool = False
    include_expiry_date: bool = False

    elements: List[Element] = field(default_factory=list)

    # id assigned by the template store, None until first save
    id: Optional[str] = None

    def __post_init__(self) -> None:
        self.normalize()

    # ---- convenience ----
    @property
    def width_px(self) -> float:
        return mm_to_px(self.width_mm)

    @property
    def height_px(self) -> float:
        return mm_to_px(self.height_mm)

    def normalize(self) -> None:
        self.name = str(self.name or "").strip() or DEFAULT_TEMPLATE_NAME
        self.width_mm = max(MIN_DIMENSION_MM, _to_float(self.width_mm, MIN_DIMENSION_MM))
        self.height_mm = max(MIN_DIMENSION_MM, _to_float(self.height_mm, MIN_DIMENSION_MM))
        self.default_font_size = _to_float(self.default_font_size, 18.0)
        if self.default_font_size <= 0:
            self.default_font_size = 18.0
        self.text_color = _optional_str(self.text_color) or "#000000"
        self.background_color = _optional_str(self.background_color) or "#ffffff"
        self.border_width = max(0.0, _to_float(self.border_width, 0.0))
        self.border_style = _choice(self.border_style, BORDER_STYLES, default="none")

    def get(self, element_id: Optional[str]) -> Optional[Element]:
        if element_id is None:
            return None
        for elem in self.elements:
            if elem.id == element_id:
                return elem
        return None

    def add(self, element: Element) -> Element:
        if self.get(element.id) is not None:
            raise ValueError(f"Duplicate element id: {element.id!r}")
        element.geometry.clamp_into(self.width_px, self.height_px)
        self.elements.append(element)
        return element

    def remove(self, element_id: str) -> Optional[Element]:
        elem = self.get(element_id)
        if elem is not None:
            self.elements.remove(elem)
        return elem

    def next_z_index(self) -> int:
        # may repeat an existing value after deletions; paint order then
        # falls back to insertion order
        return len(self.elements) + 1

    def new_element_id(self, kind: str) -> str:
        taken = {e.id for e in self.elements}
        n = len(self.elements) + 1
        while f"{kind}-{n}" in taken:
            n += 1
        return f"{kind}-{n}"

    def paint_order(self) -> List[Element]:
        """Ascending z_index; sorted() is stable so ties keep insertion order."""
        return sorted(self.elements, key=lambda e: e.style.z_index)

    def topmost_at(self, x: float, y: float) -> Optional[Element]:
        for elem in reversed(self.paint_order()):
            if elem.geometry.contains(x, y):
                return elem
        return None

    def elements_of_kind(self, kind: str) -> List[Element]:
        return [e for e in self.elements if e.kind == kind]

    def clamp_elements(self) -> None:
        for elem in self.elements:
            elem.geometry.clamp_into(self.width_px, self.height_px)

    @classmethod
    def create(cls, **kwargs: Any) -> "TemplateDocument":
        """New document with the default elements its toggles ask for."""
        doc = cls(**kwargs)
        populate_default_elements(doc)
        return doc

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "widthMm": self.width_mm,
            "heightMm": self.height_mm,
            "defaultFontSize": self.default_font_size,
            "textColor": self.text_color,
            "backgroundColor": self.background_color,
            "borderWidth": self.border_width,
            "borderStyle": self.border_style,
            "includeBarcode": self.include_barcode,
            "includePrice": self.include_price,
            "includeMrp": self.include_mrp,
            "includeDescription": self.include_description,
            "includeManufacturingDate": self.include_manufacturing_date,
            "includeExpiryDate": self.include_expiry_date,
            "elements": [e.to_dict() for e in self.elements],
        }
        if self.id is not None:
            d["id"] = self.id
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TemplateDocument":
        if not isinstance(d, dict):
            raise ValueError("Template data must be a JSON object")
        doc = TemplateDocument(
            name=d.get("name", DEFAULT_TEMPLATE_NAME),
            width_mm=d.get("widthMm", 50.0),
            height_mm=d.get("heightMm", 30.0),
            default_font_size=d.get("defaultFontSize", 18.0),
            text_color=d.get("textColor", "#000000"),
            background_color=d.get("backgroundColor", "#ffffff"),
            border_width=d.get("borderWidth", 1.0),
            border_style=d.get("borderStyle", "solid"),
            include_barcode=bool(d.get("includeBarcode", True)),
            include_price=bool(d.get("includePrice", True)),
            include_mrp=bool(d.get("includeMrp", False)),
            include_description=bool(d.get("includeDescription", False)),
            include_manufacturing_date=bool(d.get("includeManufacturingDate", False)),
            include_expiry_date=bool(d.get("includeExpiryDate", False)),
            id=_optional_str(d.get("id")),
        )
        for raw in d.get("elements") or []:
            elem = element_from_dict(raw)
            if doc.get(elem.id) is not None:
                raise ValueError(f"Duplicate element id: {elem.id!r}")
            doc.elements.append(elem)
        doc.clamp_elements()
        return doc


# ---------- Default layout ----------

def populate_default_elements(doc: TemplateDocument) -> List[Element]:
    """
    Fill an empty document with the elements its include_* toggles ask for.

    Does nothing if the document already has elements. Returns the
    elements that were added.
    """
    if doc.elements:
        return []

    w, h = doc.width_px, doc.height_px
    size = doc.default_font_size
    specs: List[Tuple[str, str, Dict[str, Any]]] = []

    specs.append(("text", "product-name", dict(
        x=10, y=10, width=w - 20, height=40, content="{{product.name}}",
        font_size=size, font_weight="bold",
    )))
    if doc.include_price:
        specs.append(("price", "price", dict(
            x=10, y=55, width=120, height=35, content="{{product.price}}",
            font_size=size + 2, font_weight="bold",
        )))
    if doc.include_mrp:
        specs.append(("mrp", "mrp", dict(
            x=w - 130, y=55, width=120, height=35, content="MRP: {{product.mrp}}",
            font_size=max(size - 2, 1), text_align="right", color="#666666",
        )))
    if doc.include_description:
        specs.append(("text", "description", dict(
            x=10, y=95, width=w - 20, height=25, content="{{product.description}}",
            font_size=max(size - 4, 10),
        )))
    if not doc.include_barcode:
        specs.append(("sku", "sku", dict(
            x=10, y=h - 35, width=160, height=25, content="{{product.sku}}",
            font_size=max(size - 6, 10), color="#666666",
        )))
    if doc.include_barcode:
        specs.append(("barcode", "barcode", dict(
            x=(w - 140) / 2, y=h - 80, width=140, height=60,
            content="{{product.barcode}}", font_size=12, text_align="center",
            **FRAMED_BOX,
        )))
    if doc.include_manufacturing_date:
        specs.append(("text", "manufacturing-date", dict(
            x=10, y=h - 25, width=120, height=20,
            content="Mfg: {{product.manufacturingDate}}",
            font_size=max(size - 6, 8),
        )))
    if doc.include_expiry_date:
        specs.append(("text", "expiry-date", dict(
            x=w - 130, y=h - 25, width=120, height=20,
            content="Exp: {{product.expiryDate}}",
            font_size=max(size - 6, 8), text_align="right",
        )))

    added = []
    for z, (kind, elem_id, params) in enumerate(specs, start=1):
        elem = make_element(kind, elem_id, z_index=z, **{**PLAIN_BOX, **params})
        added.append(doc.add(elem))
    return added
