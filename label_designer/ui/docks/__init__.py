# label_designer/ui/docks/__init__.py
"""
Dock widget orchestration.

Builds the toolbox (left) and properties (right) docks and wires their
signals to the window. This module must NOT import main_window to avoid
circular imports.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6 import QtCore, QtWidgets

from ..properties import PropertiesPanel
from ..toolbox import Toolbox

if TYPE_CHECKING:
    from ..main_window import MainWindow


def build_docks(mw: "MainWindow") -> None:
    """
    Create the toolbox and properties docks and attach them to *mw*.

    Sets attributes on *mw*: toolbox, props.
    """
    # LEFT: Toolbox
    mw.toolbox = Toolbox(mw)
    mw.toolbox.tool_selected.connect(mw.set_tool)

    dock_left = QtWidgets.QDockWidget("Toolbox", mw)
    dock_left.setObjectName("ToolboxDock")
    dock_left.setWidget(mw.toolbox)
    mw.addDockWidget(QtCore.Qt.LeftDockWidgetArea, dock_left)

    # RIGHT: Properties, scrollable since the panel is tall
    mw.props = PropertiesPanel(mw)
    scroll = QtWidgets.QScrollArea()
    scroll.setWidgetResizable(True)
    scroll.setWidget(mw.props)

    dock_right = QtWidgets.QDockWidget("Properties", mw)
    dock_right.setObjectName("PropertiesDock")
    dock_right.setWidget(scroll)
    mw.addDockWidget(QtCore.Qt.RightDockWidgetArea, dock_right)

    # Keep panels in sync
    mw.canvas.selection_changed.connect(mw._on_selection_changed)
    mw.canvas.document_changed.connect(mw._on_document_changed)
    mw.canvas.tool_changed.connect(mw.toolbox.set_tool)
    mw.props.element_changed.connect(mw._on_props_element_changed)
