# label_designer/ui/dialogs/new_template.py
"""Dialog for starting a new label: name, physical size and default elements."""
from __future__ import annotations

from PySide6 import QtWidgets

from ...core.models import DEFAULT_TEMPLATE_NAME, MIN_DIMENSION_MM, TemplateDocument

# (attribute, checkbox label, checked by default)
TOGGLES = (
    ("include_barcode", "Barcode", True),
    ("include_price", "Price", True),
    ("include_mrp", "MRP (with savings)", False),
    ("include_description", "Description", False),
    ("include_manufacturing_date", "Manufacturing date", False),
    ("include_expiry_date", "Expiry date", False),
)


class NewTemplateDialog(QtWidgets.QDialog):
    def __init__(self, parent: QtWidgets.QWidget | None = None):
        super().__init__(parent)
        self.setWindowTitle("New Label Template")
        layout = QtWidgets.QFormLayout(self)

        self.edit_name = QtWidgets.QLineEdit(DEFAULT_TEMPLATE_NAME)
        layout.addRow("Name:", self.edit_name)

        self.sb_width = QtWidgets.QDoubleSpinBox()
        self.sb_width.setRange(MIN_DIMENSION_MM, 1000)
        self.sb_width.setValue(50)
        self.sb_width.setSuffix(" mm")
        self.sb_width.setDecimals(1)
        layout.addRow("Width:", self.sb_width)

        self.sb_height = QtWidgets.QDoubleSpinBox()
        self.sb_height.setRange(MIN_DIMENSION_MM, 1000)
        self.sb_height.setValue(30)
        self.sb_height.setSuffix(" mm")
        self.sb_height.setDecimals(1)
        layout.addRow("Height:", self.sb_height)

        self.sb_font = QtWidgets.QSpinBox()
        self.sb_font.setRange(6, 120)
        self.sb_font.setValue(18)
        self.sb_font.setSuffix(" px")
        layout.addRow("Default font size:", self.sb_font)

        self.checks: dict[str, QtWidgets.QCheckBox] = {}
        grp = QtWidgets.QGroupBox("Include")
        grp_layout = QtWidgets.QVBoxLayout(grp)
        for attr, label, default in TOGGLES:
            chk = QtWidgets.QCheckBox(label)
            chk.setChecked(default)
            grp_layout.addWidget(chk)
            self.checks[attr] = chk
        layout.addRow(grp)

        buttons = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def document(self) -> TemplateDocument:
        """A fresh document populated from the form."""
        return TemplateDocument.create(
            name=self.edit_name.text(),
            width_mm=self.sb_width.value(),
            height_mm=self.sb_height.value(),
            default_font_size=self.sb_font.value(),
            **{attr: chk.isChecked() for attr, chk in self.checks.items()},
        )


def show_new_template_dialog(
    parent: QtWidgets.QWidget | None = None,
) -> TemplateDocument | None:
    """
    Show a modal dialog for a new template.

    Returns the populated document if accepted, or *None* if cancelled.
    """
    dialog = NewTemplateDialog(parent)
    if dialog.exec() == QtWidgets.QDialog.Accepted:
        return dialog.document()
    return None
