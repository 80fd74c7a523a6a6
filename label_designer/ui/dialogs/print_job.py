# label_designer/ui/dialogs/print_job.py
"""Dialog for a print run over loaded products: copies and sheet grid."""
from __future__ import annotations

from PySide6 import QtWidgets

from ...core.sheets import MAX_COPIES, SheetLayout


class PrintJobDialog(QtWidgets.QDialog):
    def __init__(
        self,
        product_count: int,
        copies: int = 1,
        layout: SheetLayout | None = None,
        parent: QtWidgets.QWidget | None = None,
    ):
        super().__init__(parent)
        self.setWindowTitle("Print Labels")
        layout = layout or SheetLayout()
        form = QtWidgets.QFormLayout(self)

        form.addRow("Products:", QtWidgets.QLabel(str(product_count)))

        self.sb_copies = QtWidgets.QSpinBox()
        self.sb_copies.setRange(1, MAX_COPIES)
        self.sb_copies.setValue(max(1, int(copies)))
        form.addRow("Copies per product:", self.sb_copies)

        self.sb_columns = QtWidgets.QSpinBox()
        self.sb_columns.setRange(1, 20)
        self.sb_columns.setValue(layout.columns)
        form.addRow("Labels per row:", self.sb_columns)

        self.sb_rows = QtWidgets.QSpinBox()
        self.sb_rows.setRange(1, 50)
        self.sb_rows.setValue(layout.rows)
        form.addRow("Rows per sheet:", self.sb_rows)

        self.sb_gap = QtWidgets.QDoubleSpinBox()
        self.sb_gap.setRange(0, 50)
        self.sb_gap.setDecimals(1)
        self.sb_gap.setSuffix(" mm")
        self.sb_gap.setValue(layout.gap_mm)
        form.addRow("Gap:", self.sb_gap)

        buttons = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        form.addRow(buttons)

    def copies(self) -> int:
        return self.sb_copies.value()

    def layout_choice(self) -> SheetLayout:
        return SheetLayout(self.sb_columns.value(), self.sb_rows.value(), self.sb_gap.value())


def show_print_job_dialog(
    product_count: int,
    copies: int = 1,
    layout: SheetLayout | None = None,
    parent: QtWidgets.QWidget | None = None,
) -> tuple[int, SheetLayout] | None:
    """Returns (copies, layout) if accepted, or *None* if cancelled."""
    dialog = PrintJobDialog(product_count, copies, layout, parent)
    if dialog.exec() == QtWidgets.QDialog.Accepted:
        return dialog.copies(), dialog.layout_choice()
    return None
