# label_designer/ui/toolbox.py

from __future__ import annotations
from PySide6 import QtCore, QtWidgets

from ..core.editor import TOOLS


class Toolbox(QtWidgets.QWidget):
    tool_selected = QtCore.Signal(str)

    LABELS = {
        "select": "Select",
        "text": "Text",
        "barcode": "Barcode",
        "image": "Image",
    }

    def __init__(self, parent=None):
        super().__init__(parent)
        self._buttons: dict[str, QtWidgets.QPushButton] = {}
        self._group = QtWidgets.QButtonGroup(self)
        self._group.setExclusive(True)
        self._build_ui()
        self.set_tool("select")

    def _make_button(self, tool: str) -> QtWidgets.QPushButton:
        btn = QtWidgets.QPushButton(self.LABELS[tool])
        btn.setCheckable(True)
        btn.setMinimumHeight(32)
        btn.setSizePolicy(
            QtWidgets.QSizePolicy.Expanding,
            QtWidgets.QSizePolicy.Fixed,
        )
        btn.clicked.connect(lambda _checked=False, t=tool: self.tool_selected.emit(t))
        self._group.addButton(btn)
        self._buttons[tool] = btn
        return btn

    def _build_ui(self):
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(10)

        grp_tools = QtWidgets.QGroupBox("Tools")
        tools_layout = QtWidgets.QVBoxLayout(grp_tools)
        for tool in TOOLS:
            tools_layout.addWidget(self._make_button(tool))
        layout.addWidget(grp_tools)

        hint = QtWidgets.QLabel("Pick a tool, then click the label to place it.")
        hint.setWordWrap(True)
        hint.setStyleSheet("color: #666666;")
        layout.addWidget(hint)

        layout.addStretch(1)

    def current_tool(self) -> str:
        for tool, btn in self._buttons.items():
            if btn.isChecked():
                return tool
        return "select"

    def set_tool(self, tool: str) -> None:
        """Reflect the engine's tool without re-emitting tool_selected."""
        btn = self._buttons.get(tool)
        if btn is not None and not btn.isChecked():
            btn.setChecked(True)
