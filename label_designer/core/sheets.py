"""
core/sheets.py - Lay rendered labels out on print sheets.

A print run is a list of products, each printed ``copies`` times. Labels
fill a sheet of ``columns`` x ``rows`` cells left to right, top to bottom;
a run that does not fit starts a new sheet. Each sheet is one SVG document
with its physical size in millimeters, like a single label.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .barcodes import encode
from .geometry import mm_to_px
from .models import TemplateDocument, _to_float, _to_int
from .placeholders import DEFAULT_CURRENCY_SYMBOL, ProductLike
from .render import Encoder, RenderIssue, RenderResult, render_label, svg_root

log = logging.getLogger(__name__)

MAX_COPIES = 999


@dataclass
class SheetLayout:
    columns: int = 1
    rows: int = 1
    gap_mm: float = 0.0

    def normalize(self) -> None:
        self.columns = max(1, _to_int(self.columns, 1))
        self.rows = max(1, _to_int(self.rows, 1))
        self.gap_mm = max(0.0, _to_float(self.gap_mm, 0.0))

    @property
    def per_sheet(self) -> int:
        return self.columns * self.rows

    def sheet_size_mm(self, label_w_mm: float, label_h_mm: float) -> Tuple[float, float]:
        return (
            self.columns * label_w_mm + (self.columns - 1) * self.gap_mm,
            self.rows * label_h_mm + (self.rows - 1) * self.gap_mm,
        )

    def cell_origin_px(self, index: int, label_w_mm: float, label_h_mm: float) -> Tuple[float, float]:
        """Top-left corner of cell *index* (row-major) in sheet pixels."""
        row, col = divmod(index, self.columns)
        return (
            mm_to_px(col * (label_w_mm + self.gap_mm)),
            mm_to_px(row * (label_h_mm + self.gap_mm)),
        )


def copy_slots(product_count: int, copies: int) -> List[int]:
    """Product index for every label of the run, copies kept together."""
    copies = min(max(1, _to_int(copies, 1)), MAX_COPIES)
    return [i for i in range(product_count) for _ in range(copies)]


def _unique(issues: Sequence[RenderIssue]) -> List[RenderIssue]:
    seen, out = set(), []
    for issue in issues:
        if issue not in seen:
            seen.add(issue)
            out.append(issue)
    return out


def compose_sheets(
    document: TemplateDocument,
    products: Sequence[Optional[ProductLike]],
    copies: int = 1,
    layout: Optional[SheetLayout] = None,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    encoder: Encoder = encode,
    base_dir: Optional[str] = None,
) -> List[RenderResult]:
    """
    Render every product once and place its copies on sheets.

    Returns one RenderResult per sheet. A sheet's issues are those of the
    products printed on it; savings are per label and not carried.
    """
    if not products:
        raise ValueError("No products to print")
    layout = layout or SheetLayout()
    layout.normalize()

    labels = [
        render_label(document, product, currency_symbol, encoder, base_dir)
        for product in products
    ]
    slots = copy_slots(len(labels), copies)
    w_mm, h_mm = document.width_mm, document.height_mm
    sheet_w, sheet_h = layout.sheet_size_mm(w_mm, h_mm)

    sheets = []
    for number, start in enumerate(range(0, len(slots), layout.per_sheet), start=1):
        chunk = slots[start:start + layout.per_sheet]
        out = [svg_root(sheet_w, sheet_h, data_template=document.name, data_sheet=number)]
        issues: List[RenderIssue] = []
        for cell, product_index in enumerate(chunk):
            x, y = layout.cell_origin_px(cell, w_mm, h_mm)
            label = labels[product_index]
            out.append(f'<g class="label-cell" transform="translate({x:.3f} {y:.3f})">')
            out.append(label.body)
            out.append("</g>")
            issues.extend(label.issues)
        out.append("</svg>")
        sheets.append(RenderResult("\n".join(out), _unique(issues)))

    log.info(
        "Composed %d labels for %d products on %d sheets", len(slots), len(labels), len(sheets)
    )
    return sheets
