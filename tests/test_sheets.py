"""
Tests for laying labels out on print sheets.
"""
import re

import pytest

from label_designer.core.barcodes import EncodeError
from label_designer.core.geometry import mm_to_px
from label_designer.core.models import TemplateDocument
from label_designer.core.placeholders import ProductRecord
from label_designer.core.sheets import SheetLayout, compose_sheets, copy_slots

TRANSLATE = re.compile(r'class="label-cell" transform="translate\(([\d.]+) ([\d.]+)\)"')


@pytest.fixture()
def doc():
    return TemplateDocument.create(name="Shelf", width_mm=50, height_mm=30)


@pytest.fixture()
def products():
    return [
        ProductRecord(name="Tea", price="12", barcode="111111"),
        ProductRecord(name="Rice", price="45", barcode="222222"),
        ProductRecord(name="Salt", price="8", barcode="333333"),
    ]


def _cells(markup):
    return [(float(x), float(y)) for x, y in TRANSLATE.findall(markup)]


class TestLayout:
    def test_normalize_floors(self):
        layout = SheetLayout(columns=0, rows="x", gap_mm=-2)
        layout.normalize()
        assert (layout.columns, layout.rows, layout.gap_mm) == (1, 1, 0.0)

    def test_sheet_size_includes_gaps(self):
        assert SheetLayout(3, 2, 2.0).sheet_size_mm(50, 30) == (154.0, 62.0)

    def test_cells_fill_rows_first(self):
        layout = SheetLayout(2, 2, 5.0)
        assert layout.cell_origin_px(1, 50, 30) == (pytest.approx(mm_to_px(55)), 0.0)
        assert layout.cell_origin_px(2, 50, 30) == (0.0, pytest.approx(mm_to_px(35)))

    def test_copies_stay_together(self):
        assert copy_slots(2, 3) == [0, 0, 0, 1, 1, 1]
        assert copy_slots(2, 0) == [0, 1]


class TestComposeSheets:
    def test_single_label_per_sheet(self, doc, products):
        sheets = compose_sheets(doc, products)
        assert len(sheets) == 3
        assert 'width="50mm"' in sheets[0].markup
        assert "Tea" in sheets[0].markup and "Rice" not in sheets[0].markup
        assert "Salt" in sheets[2].markup

    def test_grid_with_copies(self, doc, products):
        sheets = compose_sheets(doc, products, copies=2, layout=SheetLayout(2, 2, 5.0))
        assert len(sheets) == 2
        first, second = sheets
        assert 'width="105mm"' in first.markup and 'height="65mm"' in first.markup
        assert 'data-sheet="2"' in second.markup
        assert len(_cells(first.markup)) == 4
        assert len(_cells(second.markup)) == 2
        # sheet one holds Tea, Tea, Rice, Rice; sheet two Salt, Salt
        assert first.markup.count(">Tea<") == 2
        assert ">Salt<" not in first.markup
        assert second.markup.count(">Salt<") == 2

    def test_cell_positions(self, doc, products):
        sheet = compose_sheets(doc, products[:1], copies=3, layout=SheetLayout(2, 2, 5.0))[0]
        cells = _cells(sheet.markup)
        assert cells[0] == (0.0, 0.0)
        assert cells[1] == (pytest.approx(mm_to_px(55), abs=1e-3), 0.0)
        assert cells[2] == (0.0, pytest.approx(mm_to_px(35), abs=1e-3))

    def test_one_root_per_sheet(self, doc, products):
        sheet = compose_sheets(doc, products, layout=SheetLayout(3, 1))[0]
        assert sheet.markup.count("<svg") == 1
        assert sheet.markup.rstrip().endswith("</svg>")

    def test_issues_collected_once(self, doc, products):
        def failing(*args, **kwargs):
            raise EncodeError("printer says no")

        sheets = compose_sheets(doc, products[:1], copies=4, layout=SheetLayout(2, 2), encoder=failing)
        assert len(sheets) == 1
        assert [i.message for i in sheets[0].issues] == ["printer says no"]

    def test_no_products(self, doc):
        with pytest.raises(ValueError):
            compose_sheets(doc, [])
