from __future__ import annotations

"""
Barcode encoding helpers.

Turns a data string into a resolution-independent drawing: a list of filled
rectangles in the target box's local pixel coordinates plus the
human-readable line. The renderer decides how to paint them.

Dependencies:
- python-barcode  → 1D symbologies (Code 128, Code 39, EAN-13, UPC-A, ITF)
- qrcode          → QR Code
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import barcode
import qrcode
from barcode.errors import BarcodeError
from qrcode.exceptions import DataOverflowError

SYMBOLOGIES: Tuple[str, ...] = ("CODE128", "CODE39", "EAN13", "UPCA", "ITF", "QR")
DEFAULT_SYMBOLOGY = "CODE128"

# python-barcode class names
_PYBARCODE_NAMES: Dict[str, str] = {
    "CODE128": "code128",
    "CODE39": "code39",
    "EAN13": "ean13",
    "UPCA": "upca",
    "ITF": "itf",
}

# quiet zone on each side of 1D symbols, in modules
QUIET_ZONE_MODULES = 10
# height of the human-readable band as a share of the box (capped in px)
TEXT_BAND_RATIO = 0.22
TEXT_BAND_MAX_PX = 14.0


# --- Exceptions & checksums -----------------------------------------------


class EncodeError(Exception):
    """Raised when data cannot be turned into bars for a symbology."""


class BarcodeValidationError(EncodeError):
    """Raised when barcode data is invalid for the selected symbology."""


def ean13_checksum(data: str) -> str:
    """Check digit for the first 12 digits of an EAN-13."""
    digits = [int(ch) for ch in data[:12] if ch.isdigit()]
    if len(digits) != 12:
        raise ValueError("EAN-13 requires 12 digits for checksum")
    s = sum(d * (3 if i % 2 else 1) for i, d in enumerate(digits))
    return str((10 - s % 10) % 10)


def upca_checksum(data: str) -> str:
    """Check digit for the first 11 digits of a UPC-A."""
    digits = [int(ch) for ch in data[:11] if ch.isdigit()]
    if len(digits) != 11:
        raise ValueError("UPC-A requires 11 digits for checksum")
    total = sum(digits[0::2]) * 3 + sum(digits[1::2])
    return str((10 - total % 10) % 10)


def normalize_symbology(symbology: str) -> str:
    key = (symbology or "").strip().upper().replace(" ", "").replace("-", "").replace("_", "")
    aliases = {"UPC": "UPCA", "I2OF5": "ITF", "INTERLEAVED2OF5": "ITF", "QRCODE": "QR"}
    key = aliases.get(key, key) or DEFAULT_SYMBOLOGY
    if key not in SYMBOLOGIES:
        raise EncodeError(f"Unsupported barcode symbology: {symbology!r}")
    return key


# --- Validation helpers ---------------------------------------------------


def _validate_code128(data: str) -> str:
    if not data:
        raise BarcodeValidationError("Code 128 data cannot be empty.")
    for ch in data:
        if ord(ch) < 32 or ord(ch) > 126:
            raise BarcodeValidationError(
                f"Code 128 only supports printable ASCII (32–126). Offending char: {ch!r}"
            )
    return data


def _validate_code39(data: str) -> str:
    data = data.strip().upper()
    if not data:
        raise BarcodeValidationError("Code 39 data cannot be empty.")
    if "*" in data:
        raise BarcodeValidationError("'*' is reserved for Code 39 start/stop.")
    allowed = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ -.$/+%"
    for ch in data:
        if ch not in allowed:
            raise BarcodeValidationError(
                f"Code 39 does not allow {ch!r}. Allowed: A–Z, 0–9, space, - . $ / + %"
            )
    return data


def _validate_itf(data: str) -> str:
    data = data.strip()
    if not data:
        raise BarcodeValidationError("ITF data cannot be empty.")
    if not data.isdigit():
        raise BarcodeValidationError("ITF (Interleaved 2 of 5) supports digits only.")
    if len(data) % 2 != 0:
        raise BarcodeValidationError("ITF requires an even number of digits.")
    return data


def _validate_check_digit(data: str, name: str, body_len: int, checksum) -> str:
    data = data.strip()
    if not data:
        raise BarcodeValidationError(f"{name} data cannot be empty.")
    if not data.isdigit():
        raise BarcodeValidationError(f"{name} supports digits only.")
    if len(data) not in (body_len, body_len + 1):
        raise BarcodeValidationError(f"{name} must be {body_len} or {body_len + 1} digits long.")
    if len(data) == body_len:
        return data + checksum(data)
    expected = checksum(data[:-1])
    if data[-1] != expected:
        raise BarcodeValidationError(
            f"Invalid {name} check digit: got {data[-1]}, expected {expected}."
        )
    return data


def _validate_qr(data: str) -> str:
    if not data.strip():
        raise BarcodeValidationError("QR Code data cannot be empty.")
    if len(data) > 500:
        raise BarcodeValidationError("QR Code data too long (>500 chars).")
    return data


def validate_barcode_data(symbology: str, data: str) -> str:
    """
    Main entry point for data validation.

    Returns normalized data (EAN-13 / UPC-A gain their check digit), or
    raises BarcodeValidationError.
    """
    key = normalize_symbology(symbology)
    data = data or ""
    if key == "CODE128":
        return _validate_code128(data)
    if key == "CODE39":
        return _validate_code39(data)
    if key == "ITF":
        return _validate_itf(data)
    if key == "EAN13":
        return _validate_check_digit(data, "EAN-13", 12, ean13_checksum)
    if key == "UPCA":
        return _validate_check_digit(data, "UPC-A", 11, upca_checksum)
    return _validate_qr(data)


# --- Drawing --------------------------------------------------------------


@dataclass(frozen=True)
class BarcodeDrawing:
    """Filled rectangles (x, y, w, h) local to a width x height box."""
    symbology: str
    data: str
    text: str
    width: float
    height: float
    rects: Tuple[Tuple[float, float, float, float], ...] = field(default_factory=tuple)

    @property
    def bar_area_height(self) -> float:
        if not self.rects:
            return 0.0
        return max(y + h for _, y, _, h in self.rects)


def _r(value: float) -> float:
    return round(value, 3)


def _linear_modules(key: str, data: str) -> Tuple[str, str]:
    """Module pattern ("1" = bar) and human-readable text from python-barcode."""
    bc_class = barcode.get_barcode_class(_PYBARCODE_NAMES[key])
    # python-barcode computes the check digit itself from the body
    payload = data[:-1] if key in ("EAN13", "UPCA") else data
    try:
        bc = bc_class(payload)
        modules = "".join(bc.build())
        text = bc.get_fullcode()
    except (BarcodeError, ValueError, KeyError, IndexError) as exc:
        raise EncodeError(f"{key} encoding failed: {exc}") from exc
    if not modules:
        raise EncodeError(f"{key} encoding produced no bars")
    return modules, text


def _bars_from_modules(modules: str, width: float, bar_height: float) -> List[Tuple[float, float, float, float]]:
    total = len(modules) + 2 * QUIET_ZONE_MODULES
    module_w = width / total
    rects = []
    run_start = None
    for i, ch in enumerate(modules + "0"):
        is_bar = ch != "0"
        if is_bar and run_start is None:
            run_start = i
        elif not is_bar and run_start is not None:
            x = (QUIET_ZONE_MODULES + run_start) * module_w
            rects.append((_r(x), 0.0, _r((i - run_start) * module_w), _r(bar_height)))
            run_start = None
    return rects


def _qr_rects(data: str, width: float, height: float) -> List[Tuple[float, float, float, float]]:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=1,
        border=0,
    )
    try:
        qr.add_data(data)
        qr.make(fit=True)
    except (ValueError, DataOverflowError) as exc:
        raise EncodeError(f"QR encoding failed: {exc}") from exc
    matrix = qr.get_matrix()
    side = min(width, height)
    module = side / len(matrix)
    off_x = (width - side) / 2.0
    off_y = (height - side) / 2.0
    rects = []
    for row, cells in enumerate(matrix):
        for col, dark in enumerate(cells):
            if dark:
                rects.append((
                    _r(off_x + col * module), _r(off_y + row * module), _r(module), _r(module)
                ))
    return rects


def encode(
    data: str,
    symbology: str = DEFAULT_SYMBOLOGY,
    target_width_px: float = 120.0,
    target_height_px: float = 60.0,
    show_text: bool = True,
) -> BarcodeDrawing:
    """
    Encode *data* into bars that fill a target_width_px x target_height_px box.

    Raises EncodeError (or BarcodeValidationError) when the data cannot be
    encoded; the caller decides how to degrade.
    """
    if target_width_px <= 0 or target_height_px <= 0:
        raise EncodeError("Barcode target box must have a positive size.")
    key = normalize_symbology(symbology)
    data = validate_barcode_data(key, data)

    if key == "QR":
        rects = _qr_rects(data, target_width_px, target_height_px)
        return BarcodeDrawing(key, data, "", target_width_px, target_height_px, tuple(rects))

    modules, text = _linear_modules(key, data)
    band = min(target_height_px * TEXT_BAND_RATIO, TEXT_BAND_MAX_PX) if show_text else 0.0
    rects = _bars_from_modules(modules, target_width_px, target_height_px - band)
    return BarcodeDrawing(
        key,
        data,
        text if show_text else "",
        target_width_px,
        target_height_px,
        tuple(rects),
    )
