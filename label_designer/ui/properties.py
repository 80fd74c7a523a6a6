from __future__ import annotations

import logging
from typing import Any, Optional

from PySide6 import QtCore, QtWidgets

from ..core.barcodes import SYMBOLOGIES
from ..core.models import (
    BORDER_STYLES,
    TEXT_ALIGNS,
    BarcodeElement,
    Element,
    TemplateDocument,
)
from ..core.properties import update_element

log = logging.getLogger(__name__)


class PropertiesPanel(QtWidgets.QWidget):
    """
    Right-side properties panel.

    Shows the selected element's fields and pushes every edit through
    ``core.properties.update_element``; the panel never writes to the
    element directly. Barcode-only controls hide for other element types.
    """

    element_changed = QtCore.Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._document: Optional[TemplateDocument] = None
        self._elem: Optional[Element] = None
        self._updating_ui = False

        self._build_ui()
        self._set_active(False)

    # --------------------- sizing hints ---------------------
    def sizeHint(self) -> QtCore.QSize:  # type: ignore[override]
        base = super().sizeHint()
        return QtCore.QSize(280, base.height())

    def minimumSizeHint(self) -> QtCore.QSize:  # type: ignore[override]
        return QtCore.QSize(220, 0)

    # --------------------- UI construction ---------------------

    def _spin(self, lo: float, hi: float, step: float = 1.0, suffix: str = "") -> QtWidgets.QDoubleSpinBox:
        spin = QtWidgets.QDoubleSpinBox()
        spin.setRange(lo, hi)
        spin.setSingleStep(step)
        spin.setDecimals(1)
        if suffix:
            spin.setSuffix(suffix)
        return spin

    def _build_ui(self):
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(8)

        # --- Target summary ---
        self.lbl_target = QtWidgets.QLabel("")
        font_bold = self.lbl_target.font()
        font_bold.setBold(True)
        self.lbl_target.setFont(font_bold)
        layout.addWidget(self.lbl_target)

        # --- Content ---
        self.grp_content = QtWidgets.QGroupBox("Content")
        content_layout = QtWidgets.QVBoxLayout(self.grp_content)
        self.txt_content = QtWidgets.QPlainTextEdit()
        self.txt_content.setPlaceholderText("Text or {{product.field}} placeholders")
        self.txt_content.setMaximumHeight(70)
        self.txt_content.textChanged.connect(
            lambda: self._push("content", self.txt_content.toPlainText())
        )
        content_layout.addWidget(self.txt_content)
        layout.addWidget(self.grp_content)

        # --- Position & size ---
        self.grp_geom = QtWidgets.QGroupBox("Position & Size")
        geom_layout = QtWidgets.QFormLayout(self.grp_geom)
        self.spin_x = self._spin(0, 10000, suffix=" px")
        self.spin_y = self._spin(0, 10000, suffix=" px")
        self.spin_w = self._spin(1, 10000, suffix=" px")
        self.spin_h = self._spin(1, 10000, suffix=" px")
        self.spin_rot = self._spin(-360, 360, step=5, suffix=" °")
        for label, spin, name in (
            ("X:", self.spin_x, "x"),
            ("Y:", self.spin_y, "y"),
            ("Width:", self.spin_w, "width"),
            ("Height:", self.spin_h, "height"),
            ("Rotation:", self.spin_rot, "rotation_degrees"),
        ):
            spin.valueChanged.connect(lambda v, n=name: self._push(n, v))
            geom_layout.addRow(label, spin)
        layout.addWidget(self.grp_geom)

        # --- Font ---
        self.grp_font = QtWidgets.QGroupBox("Font")
        font_layout = QtWidgets.QFormLayout(self.grp_font)

        self.spin_font_size = self._spin(1, 300, suffix=" px")
        self.spin_font_size.valueChanged.connect(lambda v: self._push("font_size", v))
        font_layout.addRow("Size:", self.spin_font_size)

        font_style_row = QtWidgets.QHBoxLayout()
        self.chk_bold = QtWidgets.QCheckBox("Bold")
        self.chk_bold.toggled.connect(
            lambda on: self._push("font_weight", "bold" if on else "normal")
        )
        self.chk_italic = QtWidgets.QCheckBox("Italic")
        self.chk_italic.toggled.connect(
            lambda on: self._push("font_style", "italic" if on else "normal")
        )
        self.chk_underline = QtWidgets.QCheckBox("Underline")
        self.chk_underline.toggled.connect(
            lambda on: self._push("text_decoration", "underline" if on else "none")
        )
        font_style_row.addWidget(self.chk_bold)
        font_style_row.addWidget(self.chk_italic)
        font_style_row.addWidget(self.chk_underline)
        font_style_row.addStretch(1)
        font_layout.addRow("", font_style_row)

        self.combo_align = QtWidgets.QComboBox()
        self.combo_align.addItems([a.capitalize() for a in TEXT_ALIGNS])
        self.combo_align.currentTextChanged.connect(
            lambda text: self._push("text_align", text.lower())
        )
        font_layout.addRow("Align:", self.combo_align)

        self.edit_color = QtWidgets.QLineEdit()
        self.edit_color.setPlaceholderText("inherit")
        self.edit_color.editingFinished.connect(
            lambda: self._push("color", self.edit_color.text() or None)
        )
        font_layout.addRow("Color:", self.edit_color)
        layout.addWidget(self.grp_font)

        # --- Box ---
        self.grp_box = QtWidgets.QGroupBox("Box")
        box_layout = QtWidgets.QFormLayout(self.grp_box)

        self.edit_background = QtWidgets.QLineEdit()
        self.edit_background.setPlaceholderText("none")
        self.edit_background.editingFinished.connect(
            lambda: self._push("background_color", self.edit_background.text() or None)
        )
        box_layout.addRow("Background:", self.edit_background)

        self.spin_border = self._spin(0, 50, step=0.5, suffix=" px")
        self.spin_border.valueChanged.connect(lambda v: self._push("border_width", v))
        box_layout.addRow("Border:", self.spin_border)

        self.edit_border_color = QtWidgets.QLineEdit()
        self.edit_border_color.editingFinished.connect(
            lambda: self._push("border_color", self.edit_border_color.text())
        )
        box_layout.addRow("Border color:", self.edit_border_color)

        self.combo_border_style = QtWidgets.QComboBox()
        self.combo_border_style.addItems(list(BORDER_STYLES))
        self.combo_border_style.currentTextChanged.connect(
            lambda text: self._push("border_style", text)
        )
        box_layout.addRow("Border style:", self.combo_border_style)

        self.spin_opacity = QtWidgets.QDoubleSpinBox()
        self.spin_opacity.setRange(0.0, 1.0)
        self.spin_opacity.setSingleStep(0.1)
        self.spin_opacity.setDecimals(2)
        self.spin_opacity.valueChanged.connect(lambda v: self._push("opacity", v))
        box_layout.addRow("Opacity:", self.spin_opacity)

        self.spin_z = QtWidgets.QSpinBox()
        self.spin_z.setRange(1, 9999)
        self.spin_z.valueChanged.connect(lambda v: self._push("z_index", v))
        box_layout.addRow("Layer (z):", self.spin_z)
        layout.addWidget(self.grp_box)

        # --- Barcode ---
        self.grp_barcode = QtWidgets.QGroupBox("Barcode")
        bc_layout = QtWidgets.QFormLayout(self.grp_barcode)
        self.combo_symbology = QtWidgets.QComboBox()
        self.combo_symbology.addItems(list(SYMBOLOGIES))
        self.combo_symbology.currentTextChanged.connect(
            lambda text: self._push("symbology", text)
        )
        bc_layout.addRow("Symbology:", self.combo_symbology)
        self.chk_show_text = QtWidgets.QCheckBox("Show human-readable text")
        self.chk_show_text.toggled.connect(lambda on: self._push("show_text", on))
        bc_layout.addRow("", self.chk_show_text)
        layout.addWidget(self.grp_barcode)

        layout.addStretch(1)

        self._groups = [
            self.grp_content,
            self.grp_geom,
            self.grp_font,
            self.grp_box,
            self.grp_barcode,
        ]

    def _set_active(self, active: bool) -> None:
        for grp in self._groups:
            grp.setEnabled(active)
        if not active:
            self.lbl_target.setText("No selection")
            self.grp_barcode.setVisible(False)

    # --------------------- binding ---------------------

    def bind(self, document: Optional[TemplateDocument], elem: Optional[Element]) -> None:
        """Show *elem* (or nothing); called on every selection change."""
        self._document = document
        self._elem = elem if document is not None else None
        if self._elem is None:
            self._set_active(False)
            return
        self._set_active(True)
        self.refresh()

    def refresh(self) -> None:
        """Re-read the bound element into the controls (e.g. after a drag)."""
        elem = self._elem
        if elem is None:
            return
        g, s = elem.geometry, elem.style
        doc = self._document
        self._updating_ui = True
        try:
            self.lbl_target.setText(f"{elem.kind.capitalize()} · {elem.id}")
            if self.txt_content.toPlainText() != elem.content:
                self.txt_content.setPlainText(elem.content)
            self.spin_x.setValue(g.x)
            self.spin_y.setValue(g.y)
            self.spin_w.setValue(g.width)
            self.spin_h.setValue(g.height)
            self.spin_rot.setValue(g.rotation_degrees)
            self.spin_font_size.setValue(
                s.font_size if s.font_size is not None else doc.default_font_size
            )
            self.chk_bold.setChecked(s.font_weight == "bold")
            self.chk_italic.setChecked(s.font_style == "italic")
            self.chk_underline.setChecked(s.text_decoration == "underline")
            self.combo_align.setCurrentText(s.text_align.capitalize())
            self.edit_color.setText(s.color or "")
            self.edit_background.setText(s.background_color or "")
            self.spin_border.setValue(s.border_width or 0.0)
            self.edit_border_color.setText(s.border_color)
            self.combo_border_style.setCurrentText(s.border_style or "none")
            self.spin_opacity.setValue(s.opacity)
            self.spin_z.setValue(s.z_index)

            is_barcode = isinstance(elem, BarcodeElement)
            self.grp_barcode.setVisible(is_barcode)
            self.grp_font.setTitle("Human-readable text" if is_barcode else "Font")
            if is_barcode:
                self.combo_symbology.setCurrentText(elem.symbology)
                self.chk_show_text.setChecked(elem.show_text)
        finally:
            self._updating_ui = False

    # --------------------- edits ---------------------

    def _push(self, field: str, value: Any) -> None:
        if self._updating_ui or self._elem is None or self._document is None:
            return
        try:
            update_element(self._document, self._elem.id, {field: value})
        except KeyError as exc:
            # element was removed behind the panel's back
            log.warning("Property edit dropped: %s", exc)
            self.bind(self._document, None)
            return
        # clamping may have changed what was typed
        if field in ("x", "y", "width", "height"):
            self.refresh()
        self.element_changed.emit()
