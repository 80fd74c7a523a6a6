# label_designer/ui/dialogs/print_preview.py
"""Print preview dialog with zoom controls."""
from __future__ import annotations

from typing import Sequence

from PySide6 import QtCore, QtGui, QtWidgets

from ...core.render import RenderIssue


class PrintPreviewDialog(QtWidgets.QDialog):
    """Modal dialog showing the rasterized label, plus any render issues."""

    def __init__(
        self,
        image: QtGui.QImage,
        issues: Sequence[RenderIssue] = (),
        dpi: int = 300,
        parent=None,
    ):
        super().__init__(parent)
        self.setWindowTitle("Print Preview")
        self.image = image
        self.issues = list(issues)
        self.dpi = dpi
        self._zoom = 1.0

        self._build_ui()
        self.resize(700, 600)

    def _build_ui(self):
        layout = QtWidgets.QVBoxLayout(self)

        # Info bar with zoom controls
        info_layout = QtWidgets.QHBoxLayout()
        self.lbl_info = QtWidgets.QLabel(
            f"Preview: {self.image.width()}×{self.image.height()} px @ {self.dpi} dpi"
        )
        info_layout.addWidget(self.lbl_info)
        info_layout.addStretch()

        btn_zoom_out = QtWidgets.QPushButton("−")
        btn_zoom_out.setMaximumWidth(30)
        btn_zoom_out.clicked.connect(self._zoom_out)

        btn_zoom_in = QtWidgets.QPushButton("+")
        btn_zoom_in.setMaximumWidth(30)
        btn_zoom_in.clicked.connect(self._zoom_in)

        btn_zoom_fit = QtWidgets.QPushButton("Fit")
        btn_zoom_fit.clicked.connect(self._zoom_fit)

        self.lbl_zoom = QtWidgets.QLabel("100%")
        self.lbl_zoom.setMinimumWidth(50)

        info_layout.addWidget(btn_zoom_out)
        info_layout.addWidget(self.lbl_zoom)
        info_layout.addWidget(btn_zoom_in)
        info_layout.addWidget(btn_zoom_fit)
        layout.addLayout(info_layout)

        self.lbl_image = QtWidgets.QLabel()
        self.lbl_image.setAlignment(QtCore.Qt.AlignCenter)

        self.scroll = QtWidgets.QScrollArea()
        self.scroll.setWidget(self.lbl_image)
        self.scroll.setWidgetResizable(False)
        layout.addWidget(self.scroll)
        self._update_preview()

        if self.issues:
            lines = [f"{issue.element_id}: {issue.message}" for issue in self.issues]
            self.lbl_issues = QtWidgets.QLabel("Not rendered:\n" + "\n".join(lines))
            self.lbl_issues.setStyleSheet("color: #b45309;")
            self.lbl_issues.setWordWrap(True)
            layout.addWidget(self.lbl_issues)

        btn_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel
        )
        btn_box.button(QtWidgets.QDialogButtonBox.Ok).setText("Print")
        btn_box.accepted.connect(self.accept)
        btn_box.rejected.connect(self.reject)
        layout.addWidget(btn_box)

    def _update_preview(self):
        scaled = self.image.scaled(
            max(1, int(self.image.width() * self._zoom)),
            max(1, int(self.image.height() * self._zoom)),
            QtCore.Qt.KeepAspectRatio,
            QtCore.Qt.SmoothTransformation,
        )
        self.lbl_image.setPixmap(QtGui.QPixmap.fromImage(scaled))
        self.lbl_image.resize(scaled.size())
        self.lbl_zoom.setText(f"{int(self._zoom * 100)}%")

    def _zoom_in(self):
        self._zoom = min(self._zoom * 1.25, 8.0)
        self._update_preview()

    def _zoom_out(self):
        self._zoom = max(self._zoom / 1.25, 0.1)
        self._update_preview()

    def _zoom_fit(self):
        view = self.scroll.viewport().size()
        if self.image.width() and self.image.height():
            self._zoom = min(
                view.width() / self.image.width(),
                view.height() / self.image.height(),
            )
        self._update_preview()
