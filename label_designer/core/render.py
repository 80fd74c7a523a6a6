"""
core/render.py - Template + product record -> camera-ready SVG markup.

The root <svg> carries the label's physical size in millimeters and a
viewBox in document pixels, so element geometry is used as stored.
Rendering is deterministic: the same document and product always yield
the same bytes.
"""
from __future__ import annotations

import base64
import io
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, List, Optional, Tuple
from xml.sax.saxutils import escape, quoteattr

from PIL import Image, UnidentifiedImageError

from .barcodes import BarcodeDrawing, EncodeError, encode
from .geometry import mm_to_px
from .models import BarcodeElement, Element, TemplateDocument
from .placeholders import (
    DEFAULT_CURRENCY_SYMBOL,
    ProductLike,
    as_product,
    format_money,
    has_placeholder,
    resolve_placeholders,
    to_decimal,
)

log = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
FONT_FAMILY = "Arial, Helvetica, sans-serif"
TEXT_PADDING_PX = 2.0
LINE_HEIGHT = 1.3
# baseline offset from the vertical center, as a share of the font size
BASELINE_SHIFT = 0.35
ENCODE_ERROR_STROKE = "#999999"
PAGE_BORDER_COLOR = "#cccccc"
NO_FILL = ("", "none", "transparent")

Encoder = Callable[..., BarcodeDrawing]


@dataclass(frozen=True)
class RenderIssue:
    """A recoverable per-element failure; the element renders as an empty box."""
    element_id: str
    kind: str
    message: str


@dataclass
class RenderResult:
    markup: str
    issues: List[RenderIssue] = field(default_factory=list)
    savings: Optional[Decimal] = None
    body: str = ""

    @property
    def ok(self) -> bool:
        return not self.issues


def _num(value: float) -> str:
    text = f"{float(value):.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _attrs(**kwargs) -> str:
    parts = []
    for key, value in kwargs.items():
        if value is None:
            continue
        name = key.rstrip("_").replace("_", "-")
        if isinstance(value, float):
            value = _num(value)
        parts.append(f"{name}={quoteattr(str(value))}")
    return " ".join(parts)


def _dasharray(style: str, width: float) -> Optional[str]:
    if style == "dashed":
        return f"{_num(width * 4)} {_num(width * 2)}"
    if style == "dotted":
        return f"{_num(width)} {_num(width)}"
    return None


def svg_root(width_mm: float, height_mm: float, **extra) -> str:
    """Opening <svg> tag: physical size in millimeters, viewBox in document pixels."""
    w, h = mm_to_px(width_mm), mm_to_px(height_mm)
    return (
        f"<svg xmlns=\"{SVG_NS}\" xmlns:xlink=\"{XLINK_NS}\" "
        f"{_attrs(width=f'{_num(width_mm)}mm', height=f'{_num(height_mm)}mm')} "
        f"viewBox=\"0 0 {_num(w)} {_num(h)}\" {_attrs(**extra)}>"
    )


# ---------- savings ----------

def compute_savings(document: TemplateDocument, product: Optional[ProductLike]) -> Optional[Decimal]:
    """
    mrp - price, only when both toggles are on, the document carries both a
    price and an MRP element, and the MRP is actually higher.
    """
    if not (document.include_mrp and document.include_price):
        return None
    if not (document.elements_of_kind("mrp") and document.elements_of_kind("price")):
        return None
    record = as_product(product)
    mrp = to_decimal(record.mrp)
    price = to_decimal(record.price)
    if mrp is None or price is None or mrp <= price:
        return None
    return mrp - price


# ---------- renderer ----------

class LabelRenderer:
    def __init__(
        self,
        document: TemplateDocument,
        product: Optional[ProductLike],
        currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
        encoder: Encoder = encode,
        base_dir: Optional[str] = None,
    ):
        self.document = document
        self.product = as_product(product)
        self.currency_symbol = currency_symbol
        self.encoder = encoder
        self.base_dir = base_dir
        self.issues: List[RenderIssue] = []
        self._out: List[str] = []

    # ---- style resolution ----
    def _font_size(self, elem: Element) -> float:
        size = elem.style.font_size
        return float(size) if size is not None else float(self.document.default_font_size)

    def _color(self, elem: Element) -> str:
        return elem.style.color or self.document.text_color

    def _resolve(self, elem: Element) -> str:
        return resolve_placeholders(elem.content, self.product, self.currency_symbol) or ""

    # ---- page ----
    def _open_page(self) -> None:
        doc = self.document
        w, h = doc.width_px, doc.height_px
        self._out.append(svg_root(doc.width_mm, doc.height_mm, data_template=doc.name))
        border = doc.border_width if doc.border_style != "none" else 0.0
        # stroke is centered on the path, inset by half its width to stay on the label
        inset = border / 2.0
        self._out.append(
            "<rect "
            + _attrs(
                class_="label-background",
                x=inset,
                y=inset,
                width=max(w - border, 0.0),
                height=max(h - border, 0.0),
                fill=doc.background_color,
                stroke=PAGE_BORDER_COLOR if border else "none",
                stroke_width=border if border else None,
                stroke_dasharray=_dasharray(doc.border_style, border) if border else None,
            )
            + "/>"
        )

    # ---- element frame ----
    def _open_element(self, elem: Element) -> None:
        g = elem.geometry
        transform = None
        if g.rotation_degrees:
            cx, cy = g.center
            transform = f"rotate({_num(g.rotation_degrees)} {_num(cx)} {_num(cy)})"
        self._out.append(
            "<g "
            + _attrs(
                id=elem.id,
                class_=f"element element-{elem.kind}",
                opacity=float(elem.style.opacity) if elem.style.opacity < 1 else None,
                transform=transform,
            )
            + ">"
        )
        self._box(elem)

    def _background(self, elem: Element) -> Optional[str]:
        color = elem.style.background_color
        if color is None:
            color = self.document.background_color
        return None if color.lower() in NO_FILL else color

    def _border(self, elem: Element) -> Tuple[float, str]:
        s, doc = elem.style, self.document
        width = s.border_width if s.border_width is not None else doc.border_width
        style = s.border_style if s.border_style is not None else doc.border_style
        return float(width), style

    def _box(self, elem: Element) -> None:
        s, g = elem.style, elem.geometry
        background = self._background(elem)
        border, border_style = self._border(elem)
        has_border = border > 0 and border_style != "none"
        if background is None and not has_border:
            return
        self._out.append(
            "<rect "
            + _attrs(
                class_="element-box",
                x=float(g.x),
                y=float(g.y),
                width=float(g.width),
                height=float(g.height),
                fill=background or "none",
                stroke=s.border_color if has_border else None,
                stroke_width=float(border) if has_border else None,
                stroke_dasharray=_dasharray(border_style, border) if has_border else None,
            )
            + "/>"
        )

    def _empty_box(self, elem: Element, css_class: str) -> None:
        g = elem.geometry
        self._out.append(
            "<rect "
            + _attrs(
                class_=css_class,
                x=float(g.x),
                y=float(g.y),
                width=float(g.width),
                height=float(g.height),
                fill="none",
                stroke=ENCODE_ERROR_STROKE,
                stroke_width=0.5,
            )
            + "/>"
        )

    # ---- text ----
    def _text(
        self,
        text: str,
        x: float,
        y: float,
        width: float,
        height: float,
        font_size: float,
        color: str,
        align: str = "left",
        weight: str = "normal",
        font_style: str = "normal",
        decoration: str = "none",
        css_class: Optional[str] = None,
    ) -> None:
        if align == "center":
            tx, anchor = x + width / 2.0, "middle"
        elif align == "right":
            tx, anchor = x + width - TEXT_PADDING_PX, "end"
        else:
            tx, anchor = x + TEXT_PADDING_PX, "start"
        self._out.append(
            "<text "
            + _attrs(
                class_=css_class,
                x=float(tx),
                y=float(y + height / 2.0 + font_size * BASELINE_SHIFT),
                font_family=FONT_FAMILY,
                font_size=float(font_size),
                font_weight=weight if weight != "normal" else None,
                font_style=font_style if font_style != "normal" else None,
                text_decoration=decoration if decoration != "none" else None,
                text_anchor=anchor,
                fill=color,
            )
            + f">{escape(text)}</text>"
        )

    def _render_text_like(self, elem: Element) -> None:
        g, s = elem.geometry, elem.style
        self._text(
            self._resolve(elem),
            g.x, g.y, g.width, g.height,
            self._font_size(elem),
            self._color(elem),
            align=s.text_align,
            weight=s.font_weight,
            font_style=s.font_style,
            decoration=s.text_decoration,
        )

    # ---- barcode ----
    def _render_barcode(self, elem: BarcodeElement) -> None:
        g = elem.geometry
        data = self._resolve(elem)
        try:
            if has_placeholder(data):
                raise EncodeError(f"Unresolved placeholder in barcode data: {data!r}")
            drawing = self.encoder(
                data, elem.symbology, g.width, g.height, show_text=elem.show_text
            )
        except EncodeError as exc:
            log.warning("Barcode %s not rendered: %s", elem.id, exc)
            self.issues.append(RenderIssue(elem.id, "barcode", str(exc)))
            self._empty_box(elem, "encode-error")
            return

        color = self._color(elem)
        shift = f"translate({_num(g.x)} {_num(g.y)})"
        self._out.append(f"<g {_attrs(class_='bars', fill=color, transform=shift)}>")
        for x, y, w, h in drawing.rects:
            self._out.append(f"<rect {_attrs(x=float(x), y=float(y), width=float(w), height=float(h))}/>")
        self._out.append("</g>")
        if drawing.text:
            band_top = drawing.bar_area_height
            band = max(g.height - band_top, 1.0)
            self._text(
                drawing.text,
                g.x, g.y + band_top, g.width, band,
                min(self._font_size(elem), band * 0.9),
                color,
                align="center",
                css_class="barcode-text",
            )

    # ---- image ----
    def _image_href(self, source: str) -> str:
        if source.startswith(("data:", "http://", "https://")):
            return source
        path = source
        if self.base_dir and not os.path.isabs(path):
            path = os.path.join(self.base_dir, path)
        with Image.open(path) as img:
            img.load()
            buf = io.BytesIO()
            img.convert("RGBA").save(buf, format="PNG")
        return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")

    def _render_image(self, elem: Element) -> None:
        g = elem.geometry
        source = self._resolve(elem).strip()
        if not source:
            self._empty_box(elem, "image-empty")
            return
        try:
            href = self._image_href(source)
        except (OSError, ValueError, UnidentifiedImageError) as exc:
            log.warning("Image %s not rendered: %s", elem.id, exc)
            self.issues.append(RenderIssue(elem.id, "image", str(exc)))
            self._empty_box(elem, "image-error")
            return
        self._out.append(
            "<image "
            + _attrs(
                x=float(g.x),
                y=float(g.y),
                width=float(g.width),
                height=float(g.height),
                preserveAspectRatio="xMidYMid meet",
            )
            + f" xlink:href={quoteattr(href)}/>"
        )

    # ---- savings ----
    def _render_savings(self, savings: Decimal) -> None:
        doc = self.document
        anchor = doc.paint_order()
        mrp = next(e for e in anchor if e.kind == "mrp")
        g = mrp.geometry
        font_size = max(self._font_size(mrp) - 2, 6.0)
        height = font_size * LINE_HEIGHT
        y = g.y + g.height
        if y + height > doc.height_px:
            y = max(g.y - height, 0.0)
        self._text(
            f"Save: {self.currency_symbol}{format_money(savings)}",
            g.x, y, g.width, height,
            font_size,
            "#059669",
            align=mrp.style.text_align,
            css_class="savings",
        )

    # ---- entry ----
    def render(self) -> RenderResult:
        self.issues = []
        self._out = []
        self._open_page()
        for elem in self.document.paint_order():
            self._open_element(elem)
            if isinstance(elem, BarcodeElement):
                self._render_barcode(elem)
            elif elem.kind == "image":
                self._render_image(elem)
            else:
                self._render_text_like(elem)
            self._out.append("</g>")

        savings = compute_savings(self.document, self.product)
        if savings is not None:
            self._render_savings(savings)

        # everything inside the root element, for placing the label on a sheet
        body = "\n".join(self._out[1:])
        self._out.append("</svg>")
        return RenderResult("\n".join(self._out), list(self.issues), savings, body)


def render_label(
    document: TemplateDocument,
    product: Optional[ProductLike],
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    encoder: Encoder = encode,
    base_dir: Optional[str] = None,
) -> RenderResult:
    """Render *document* for *product*; barcode/image failures land in issues."""
    return LabelRenderer(document, product, currency_symbol, encoder, base_dir).render()
