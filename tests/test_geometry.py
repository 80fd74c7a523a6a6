"""
Tests for unit conversion, zoom transforms and clamping.
"""
import pytest

from label_designer.core.geometry import (
    PX_PER_MM,
    ZOOM_LEVELS,
    clamp_rect,
    document_to_screen,
    mm_to_px,
    px_to_mm,
    rect_contains,
    screen_to_document,
    snap_zoom,
    zoom_factor,
)


class TestUnits:
    def test_mm_px_roundtrip(self):
        for mm in (0.0, 1.0, 25.4, 50.0, 150.0, 297.3):
            assert px_to_mm(mm_to_px(mm)) == pytest.approx(mm)

    def test_one_inch_is_96_px(self):
        assert mm_to_px(25.4) == pytest.approx(96.0)
        assert PX_PER_MM == pytest.approx(3.7795, abs=1e-4)


class TestZoom:
    def test_factor(self):
        assert zoom_factor(100) == 1.0
        assert zoom_factor(50) == 0.5
        assert zoom_factor(200) == 2.0

    @pytest.mark.parametrize("bad", [0, -50])
    def test_non_positive_zoom_rejected(self, bad):
        with pytest.raises(ValueError):
            zoom_factor(bad)

    def test_screen_to_document_divides_by_zoom(self):
        assert screen_to_document(100, 50, 200) == (50.0, 25.0)
        assert screen_to_document(100, 50, 50) == (200.0, 100.0)

    def test_document_to_screen_is_inverse(self):
        for zoom in ZOOM_LEVELS:
            sx, sy = document_to_screen(37.5, 12.25, zoom)
            assert screen_to_document(sx, sy, zoom) == pytest.approx((37.5, 12.25))

    def test_snap_zoom(self):
        assert snap_zoom(100) == 100
        assert snap_zoom(110) == 100
        assert snap_zoom(180) == 200
        assert snap_zoom(10) == 50
        assert snap_zoom(1000) == 200


class TestClamp:
    def test_inside_unchanged(self):
        assert clamp_rect(10, 20, 30, 40, 100, 100) == (10, 20, 30, 40)

    def test_origin_pulled_back_inside(self):
        x, y, w, h = clamp_rect(90, -5, 30, 40, 100, 100)
        assert (x, y, w, h) == (70, 0, 30, 40)

    def test_oversized_box_shrinks_to_bounds(self):
        x, y, w, h = clamp_rect(-10, 50, 300, 20, 100, 60)
        assert (x, y, w, h) == (0, 40, 100, 20)

    def test_contains_edges_inclusive(self):
        assert rect_contains(10, 10, 20, 20, 10, 10)
        assert rect_contains(10, 10, 20, 20, 30, 30)
        assert not rect_contains(10, 10, 20, 20, 30.1, 15)
