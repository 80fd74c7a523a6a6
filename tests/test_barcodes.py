"""
Tests for barcode validation and encoding into drawable rectangles.
"""
import pytest

from label_designer.core.barcodes import (
    BarcodeValidationError,
    EncodeError,
    ean13_checksum,
    encode,
    normalize_symbology,
    upca_checksum,
    validate_barcode_data,
)


def _within(drawing):
    return all(
        x >= 0 and y >= 0
        and x + w <= drawing.width + 1e-6
        and y + h <= drawing.height + 1e-6
        for x, y, w, h in drawing.rects
    )


class TestChecksums:
    def test_ean13(self):
        assert ean13_checksum("890123456789") == "0"
        assert ean13_checksum("400638133393") == "1"

    def test_upca(self):
        assert upca_checksum("03600029145") == "2"


class TestValidation:
    def test_ean13_check_digit_appended(self):
        assert validate_barcode_data("EAN13", "890123456789") == "8901234567890"

    def test_ean13_bad_check_digit(self):
        with pytest.raises(BarcodeValidationError):
            validate_barcode_data("EAN13", "8901234567891")

    def test_ean13_wrong_length(self):
        with pytest.raises(BarcodeValidationError):
            validate_barcode_data("EAN13", "12345")

    def test_code39_uppercases(self):
        assert validate_barcode_data("CODE39", "abc-12") == "ABC-12"

    def test_code39_rejects_star(self):
        with pytest.raises(BarcodeValidationError):
            validate_barcode_data("CODE39", "A*B")

    def test_itf_needs_even_digits(self):
        with pytest.raises(BarcodeValidationError):
            validate_barcode_data("ITF", "123")

    def test_code128_rejects_control_chars(self):
        with pytest.raises(BarcodeValidationError):
            validate_barcode_data("CODE128", "ab\x01")

    def test_empty_data(self):
        with pytest.raises(BarcodeValidationError):
            validate_barcode_data("CODE128", "")

    def test_symbology_aliases(self):
        assert normalize_symbology("code-128") == "CODE128"
        assert normalize_symbology("upc") == "UPCA"
        assert normalize_symbology("qr code") == "QR"
        with pytest.raises(EncodeError):
            normalize_symbology("pdf417")


class TestEncode:
    def test_ean13_thirteen_digits(self):
        drawing = encode("8901234567890", "EAN13", 140, 60)
        assert drawing.symbology == "EAN13"
        assert drawing.text == "8901234567890"
        assert drawing.rects
        assert _within(drawing)

    def test_code128_default(self):
        drawing = encode("SKU123")
        assert drawing.symbology == "CODE128"
        assert drawing.rects
        assert _within(drawing)
        # text band sits below the bars
        assert drawing.bar_area_height < drawing.height

    def test_hidden_text_uses_full_height(self):
        drawing = encode("SKU123", "CODE128", 120, 40, show_text=False)
        assert drawing.text == ""
        assert drawing.bar_area_height == pytest.approx(40)

    def test_qr_is_square_and_centered(self):
        drawing = encode("https://example.com/p/42", "QR", 200, 100)
        assert drawing.rects
        xs = [x for x, _, _, _ in drawing.rects]
        assert min(xs) >= 50 - 1e-6
        assert max(x + w for x, _, w, _ in drawing.rects) <= 150 + 1e-6

    def test_deterministic(self):
        assert encode("12345678", "ITF") == encode("12345678", "ITF")

    def test_invalid_data_raises_encode_error(self):
        with pytest.raises(EncodeError):
            encode("not-digits", "EAN13")

    def test_empty_box_rejected(self):
        with pytest.raises(EncodeError):
            encode("SKU123", "CODE128", 0, 60)
