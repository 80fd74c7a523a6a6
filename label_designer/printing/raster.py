from __future__ import annotations

import re
from typing import Tuple

from PySide6 import QtCore, QtGui, QtSvg

from .exceptions import PrintJobError

MM_PER_INCH = 25.4

_ROOT_SIZE = re.compile(r'<svg\b[^>]*?\bwidth="([\d.]+)mm"[^>]*?\bheight="([\d.]+)mm"')


def label_size_mm(markup: str) -> Tuple[float, float]:
    """Physical size declared on the root <svg> element."""
    match = _ROOT_SIZE.search(markup or "")
    if match is None:
        raise PrintJobError("Label markup has no physical size (width/height in mm).")
    return float(match.group(1)), float(match.group(2))


def svg_to_qimage(markup: str, dpi: int) -> QtGui.QImage:
    """Rasterize label markup at *dpi* onto a white background."""
    width_mm, height_mm = label_size_mm(markup)
    width = max(1, round(width_mm / MM_PER_INCH * dpi))
    height = max(1, round(height_mm / MM_PER_INCH * dpi))

    renderer = QtSvg.QSvgRenderer(QtCore.QByteArray(markup.encode("utf-8")))
    if not renderer.isValid():
        raise PrintJobError("Label markup could not be parsed as SVG.")

    img = QtGui.QImage(width, height, QtGui.QImage.Format.Format_ARGB32)
    img.fill(QtGui.QColor("white"))
    # dots per meter
    dpm = round(dpi / MM_PER_INCH * 1000)
    img.setDotsPerMeterX(dpm)
    img.setDotsPerMeterY(dpm)

    painter = QtGui.QPainter(img)
    try:
        painter.setRenderHint(QtGui.QPainter.Antialiasing, True)
        renderer.render(painter, QtCore.QRectF(0, 0, width, height))
    finally:
        painter.end()
    return img


def svg_to_png_bytes(markup: str, dpi: int) -> bytes:
    img = svg_to_qimage(markup, dpi)
    buf = QtCore.QBuffer()
    buf.open(QtCore.QIODevice.OpenModeFlag.WriteOnly)
    if not img.save(buf, "PNG"):
        raise PrintJobError("Could not encode the label as PNG.")
    return bytes(buf.data())
