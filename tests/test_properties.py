"""
Tests for property edits, duplication, deletion and z-order shifts.
"""
import pytest

from label_designer.core.editor import EditorState
from label_designer.core.models import TemplateDocument, make_element
from label_designer.core.properties import (
    coerce_number,
    delete_element,
    duplicate_element,
    shift_z_index,
    update_element,
)


@pytest.fixture()
def doc():
    d = TemplateDocument(width_mm=100, height_mm=60)
    d.add(make_element("text", "t", x=10, y=10, width=100, height=30, z_index=1))
    d.add(make_element("barcode", "bc", x=20, y=80, width=120, height=60, z_index=2,
                       content="{{product.barcode}}"))
    return d


class TestCoercion:
    @pytest.mark.parametrize("raw, expected", [
        ("12.5", 12.5), (" 7 ", 7.0), (3, 3.0),
        ("abc", 99.0), ("", 99.0), (None, 99.0), (True, 99.0), ("inf", 99.0),
    ])
    def test_coerce_number(self, raw, expected):
        assert coerce_number(raw, 99.0) == expected

    def test_integer(self):
        assert coerce_number("4.7", 1, integer=True) == 4


class TestUpdate:
    def test_unparseable_numbers_fall_back(self, doc):
        elem = update_element(doc, "t", {
            "fontSize": "huge", "x": "left", "width": "wide", "rotation": "?",
        })
        assert elem.style.font_size == 12
        assert elem.geometry.x == 0
        assert elem.geometry.width == 50
        assert elem.geometry.rotation_degrees == 0

    def test_fallbacks_for_height_border_opacity_z(self, doc):
        elem = update_element(doc, "t", {
            "height": "", "border_width": "x", "opacity": "x", "z_index": "x",
        })
        assert elem.geometry.height == 20
        assert elem.style.border_width == 0
        assert elem.style.opacity == 1
        assert elem.style.z_index == 1

    def test_snake_and_camel_names(self, doc):
        elem = update_element(doc, "t", {"font_weight": "bold", "textAlign": "center"})
        assert elem.style.font_weight == "bold"
        assert elem.style.text_align == "center"

    def test_position_clamped(self, doc):
        elem = update_element(doc, "t", {"x": 10000, "y": -50})
        assert elem.geometry.x + elem.geometry.width == pytest.approx(doc.width_px)
        assert elem.geometry.y == 0

    def test_only_target_changes(self, doc):
        before = doc.get("bc").to_dict()
        update_element(doc, "t", {"content": "changed"})
        assert doc.get("bc").to_dict() == before

    def test_unknown_field(self, doc):
        with pytest.raises(KeyError):
            update_element(doc, "t", {"sparkle": True})

    def test_unknown_field_applies_nothing(self, doc):
        with pytest.raises(KeyError):
            update_element(doc, "t", {"content": "x", "sparkle": True})
        assert doc.get("t").content == ""

    def test_barcode_fields_only_on_barcodes(self, doc):
        with pytest.raises(KeyError):
            update_element(doc, "t", {"symbology": "QR"})
        elem = update_element(doc, "bc", {"symbology": "qr", "showText": "false"})
        assert elem.symbology == "QR"
        assert elem.show_text is False

    def test_unknown_element(self, doc):
        with pytest.raises(KeyError):
            update_element(doc, "ghost", {"x": 1})

    def test_reset_to_inherit(self, doc):
        update_element(doc, "t", {"font_size": 30, "color": "#ff0000"})
        elem = update_element(doc, "t", {"font_size": None, "color": None})
        assert elem.style.font_size is None
        assert elem.style.color is None


class TestDuplicateDeleteZ:
    def test_duplicate_offset_and_z(self, doc):
        dup = duplicate_element(doc, "t")
        assert dup.id not in ("t", "bc")
        assert (dup.geometry.x, dup.geometry.y) == (20, 20)
        assert dup.z_index == 3
        assert doc.get(dup.id) is dup

    def test_duplicate_is_independent(self, doc):
        dup = duplicate_element(doc, "t")
        dup.style.font_weight = "bold"
        assert doc.get("t").style.font_weight == "normal"

    def test_duplicate_near_edge_clamped(self, doc):
        update_element(doc, "t", {"x": 10000})
        dup = duplicate_element(doc, "t")
        assert dup.geometry.x + dup.geometry.width <= doc.width_px + 1e-9

    def test_delete_clears_matching_selection(self, doc):
        state = EditorState(selected_id="t")
        assert delete_element(doc, "t", state).id == "t"
        assert state.selected_id is None

    def test_delete_keeps_other_selection(self, doc):
        state = EditorState(selected_id="bc")
        delete_element(doc, "t", state)
        assert state.selected_id == "bc"

    def test_delete_missing_returns_none(self, doc):
        assert delete_element(doc, "ghost") is None

    def test_z_floor(self, doc):
        assert shift_z_index(doc, "t", -5).z_index == 1
        assert shift_z_index(doc, "t", 3).z_index == 4
