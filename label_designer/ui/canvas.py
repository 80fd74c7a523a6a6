from __future__ import annotations

import logging
from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets, QtSvg

from ..core.editor import InteractionEngine
from ..core.geometry import zoom_factor
from ..core.placeholders import DEFAULT_CURRENCY_SYMBOL, ProductRecord
from ..core.render import RenderResult, render_label

log = logging.getLogger(__name__)

# product used for the on-canvas preview
SAMPLE_PRODUCT = ProductRecord(
    name="Sample Product",
    sku="SKU123",
    price="45.00",
    mrp="50.00",
    barcode="8901234567890",
    extra={
        "description": "Product description",
        "manufacturingDate": "2024-01-15",
        "expiryDate": "2025-01-15",
    },
)

SELECTION_COLOR = QtGui.QColor("#2563eb")
MARGIN = 20


class LabelCanvas(QtWidgets.QWidget):
    """
    Paints the label at the engine's zoom and forwards mouse input to it.

    The canvas never edits the document itself; every change goes through
    the interaction engine, after which the canvas repaints and tells the
    window what happened.
    """

    selection_changed = QtCore.Signal(object)   # Element or None
    document_changed = QtCore.Signal()
    tool_changed = QtCore.Signal(str)

    def __init__(self, engine: InteractionEngine, parent=None):
        super().__init__(parent)
        self.engine = engine
        self.product = SAMPLE_PRODUCT
        self.currency_symbol = DEFAULT_CURRENCY_SYMBOL
        self.last_result: Optional[RenderResult] = None
        self.setMouseTracking(False)
        self.setFocusPolicy(QtCore.Qt.StrongFocus)
        self.setAutoFillBackground(True)
        pal = self.palette()
        pal.setColor(QtGui.QPalette.Window, QtGui.QColor("#e5e7eb"))
        self.setPalette(pal)
        self._sync_size()

    # -------------------------
    # geometry
    # -------------------------
    def _scale(self) -> float:
        return zoom_factor(self.engine.state.zoom_percent)

    def _label_rect(self) -> QtCore.QRectF:
        doc = self.engine.document
        s = self._scale()
        return QtCore.QRectF(MARGIN, MARGIN, doc.width_px * s, doc.height_px * s)

    def _sync_size(self) -> None:
        r = self._label_rect()
        self.setFixedSize(int(r.width()) + 2 * MARGIN, int(r.height()) + 2 * MARGIN)

    def _to_label(self, pos: QtCore.QPointF) -> tuple[float, float]:
        """Widget position -> screen pixels relative to the label's corner."""
        return pos.x() - MARGIN, pos.y() - MARGIN

    # -------------------------
    # public API
    # -------------------------
    def refresh(self) -> None:
        self._sync_size()
        self.update()

    def set_zoom(self, zoom_percent: float) -> int:
        level = self.engine.set_zoom(zoom_percent)
        self.refresh()
        return level

    def set_currency_symbol(self, symbol: str) -> None:
        self.currency_symbol = symbol
        self.update()

    # -------------------------
    # painting
    # -------------------------
    def paintEvent(self, event):
        self.last_result = render_label(
            self.engine.document, self.product, self.currency_symbol
        )
        target = self._label_rect()

        painter = QtGui.QPainter(self)
        try:
            painter.setRenderHint(QtGui.QPainter.Antialiasing, True)
            renderer = QtSvg.QSvgRenderer(
                QtCore.QByteArray(self.last_result.markup.encode("utf-8"))
            )
            renderer.render(painter, target)

            elem = self.engine.selected_element
            if elem is not None:
                s = self._scale()
                g = elem.geometry
                box = QtCore.QRectF(
                    target.x() + g.x * s, target.y() + g.y * s, g.width * s, g.height * s
                )
                pen = QtGui.QPen(SELECTION_COLOR, 1.5, QtCore.Qt.DashLine)
                painter.setPen(pen)
                painter.setBrush(QtCore.Qt.NoBrush)
                if g.rotation_degrees:
                    painter.translate(box.center())
                    painter.rotate(g.rotation_degrees)
                    painter.translate(-box.center())
                painter.drawRect(box)
        finally:
            painter.end()

    # -------------------------
    # mouse
    # -------------------------
    def mousePressEvent(self, event):
        if event.button() != QtCore.Qt.LeftButton:
            return super().mousePressEvent(event)
        tool_before = self.engine.state.tool
        count_before = len(self.engine.document.elements)
        x, y = self._to_label(event.position())
        self.engine.pointer_down(x, y)

        if len(self.engine.document.elements) != count_before:
            self.document_changed.emit()
        if self.engine.state.tool != tool_before:
            self.tool_changed.emit(self.engine.state.tool)
        self.selection_changed.emit(self.engine.selected_element)
        self.update()

    def mouseMoveEvent(self, event):
        x, y = self._to_label(event.position())
        down = bool(event.buttons() & QtCore.Qt.LeftButton)
        if self.engine.pointer_move(x, y, button_down=down):
            self.document_changed.emit()
            self.update()

    def mouseReleaseEvent(self, event):
        if event.button() == QtCore.Qt.LeftButton:
            self.engine.pointer_up()
        super().mouseReleaseEvent(event)
