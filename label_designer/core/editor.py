"""
core/editor.py - Tool / selection / drag state machine for the canvas.

All pointer positions come in as screen pixels relative to the canvas'
top-left corner; the engine converts them through the current zoom. Every
handler runs to completion synchronously, so a UI event loop can call them
directly from mouse events.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .geometry import DEFAULT_ZOOM, clamp_rect, screen_to_document, snap_zoom, zoom_factor
from .models import FRAMED_BOX, PLAIN_BOX, Element, TemplateDocument, make_element
from . import properties

log = logging.getLogger(__name__)

TOOLS = ("select", "text", "barcode", "image")

# (width, height, content) for elements created with a tool click
CREATE_DEFAULTS: Dict[str, Tuple[float, float, str]] = {
    "text": (150.0, 30.0, "New Text"),
    "barcode": (120.0, 60.0, "{{product.barcode}}"),
    "image": (100.0, 100.0, ""),
}


@dataclass
class DragState:
    start_screen_x: float
    start_screen_y: float
    # element position when the drag began
    origin_x: float
    origin_y: float


@dataclass
class EditorState:
    tool: str = "select"
    selected_id: Optional[str] = None
    drag: Optional[DragState] = None
    zoom_percent: int = DEFAULT_ZOOM

    @property
    def is_dragging(self) -> bool:
        return self.drag is not None


@dataclass
class InteractionEngine:
    document: TemplateDocument
    state: EditorState = field(default_factory=EditorState)

    # ---- tool / zoom ----
    def set_tool(self, tool: str) -> None:
        if tool not in TOOLS:
            raise ValueError(f"Unknown tool: {tool!r}")
        self.state.tool = tool
        self.state.drag = None

    def set_zoom(self, zoom_percent: float) -> int:
        """Snap to a supported zoom level. Element geometry is not touched."""
        self.state.zoom_percent = snap_zoom(zoom_percent)
        return self.state.zoom_percent

    def to_document(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        return screen_to_document(screen_x, screen_y, self.state.zoom_percent)

    # ---- selection ----
    @property
    def selected_element(self) -> Optional[Element]:
        elem = self.document.get(self.state.selected_id)
        if elem is None and self.state.selected_id is not None:
            # element vanished (e.g. document replaced); drop the stale id
            self.state.selected_id = None
            self.state.drag = None
        return elem

    def select(self, element_id: Optional[str]) -> Optional[Element]:
        self.state.selected_id = element_id if self.document.get(element_id) else None
        self.state.drag = None
        return self.selected_element

    def clear_selection(self) -> None:
        self.state.selected_id = None
        self.state.drag = None

    def hit_test(self, doc_x: float, doc_y: float) -> Optional[Element]:
        return self.document.topmost_at(doc_x, doc_y)

    # ---- pointer events ----
    def pointer_down(self, screen_x: float, screen_y: float) -> Optional[Element]:
        """
        Select tool: pick the topmost element under the pointer and start a
        drag, or clear the selection on empty canvas.
        Create tools: place a new element and fall back to the select tool.
        """
        doc_x, doc_y = self.to_document(screen_x, screen_y)

        if self.state.tool != "select":
            return self.create_element(self.state.tool, doc_x, doc_y)

        hit = self.hit_test(doc_x, doc_y)
        if hit is None:
            self.clear_selection()
            return None

        self.state.selected_id = hit.id
        self.state.drag = DragState(
            start_screen_x=float(screen_x),
            start_screen_y=float(screen_y),
            origin_x=hit.geometry.x,
            origin_y=hit.geometry.y,
        )
        return hit

    def pointer_move(self, screen_x: float, screen_y: float, button_down: bool = True) -> bool:
        """Returns True when the selected element moved."""
        drag = self.state.drag
        if drag is None:
            return False
        if not button_down:
            self.state.drag = None
            return False
        elem = self.selected_element
        if elem is None:
            return False

        scale = zoom_factor(self.state.zoom_percent)
        dx = (float(screen_x) - drag.start_screen_x) / scale
        dy = (float(screen_y) - drag.start_screen_y) / scale
        g = elem.geometry
        x, y, _, _ = clamp_rect(
            drag.origin_x + dx,
            drag.origin_y + dy,
            g.width,
            g.height,
            self.document.width_px,
            self.document.height_px,
        )
        if (x, y) == (g.x, g.y):
            return False
        g.x, g.y = x, y
        return True

    def pointer_up(self) -> None:
        self.state.drag = None

    # ---- creation ----
    def create_element(self, kind: str, doc_x: float, doc_y: float) -> Element:
        if kind not in CREATE_DEFAULTS:
            raise ValueError(f"Cannot create element of type {kind!r} with a tool")
        width, height, content = CREATE_DEFAULTS[kind]
        style = PLAIN_BOX if kind == "text" else FRAMED_BOX
        elem = make_element(
            kind,
            self.document.new_element_id(kind),
            x=doc_x,
            y=doc_y,
            width=width,
            height=height,
            content=content,
            z_index=self.document.next_z_index(),
            text_align="center" if kind == "barcode" else "left",
            **style,
        )
        self.document.add(elem)
        self.state.selected_id = elem.id
        self.state.drag = None
        # one-shot: every creation needs the tool picked again
        self.state.tool = "select"
        log.debug("Created %s at (%.1f, %.1f)", elem.id, elem.geometry.x, elem.geometry.y)
        return elem

    # ---- property binding ----
    def update_selected(self, **changes) -> Optional[Element]:
        elem = self.selected_element
        if elem is None:
            return None
        return properties.update_element(self.document, elem.id, changes)

    def duplicate_selected(self) -> Optional[Element]:
        elem = self.selected_element
        if elem is None:
            return None
        dup = properties.duplicate_element(self.document, elem.id)
        self.state.selected_id = dup.id
        return dup

    def delete_selected(self) -> Optional[Element]:
        elem = self.selected_element
        if elem is None:
            return None
        return properties.delete_element(self.document, elem.id, self.state)

    def bring_forward(self) -> Optional[Element]:
        elem = self.selected_element
        return properties.shift_z_index(self.document, elem.id, +1) if elem else None

    def send_backward(self) -> Optional[Element]:
        elem = self.selected_element
        return properties.shift_z_index(self.document, elem.id, -1) if elem else None

    # ---- document swap ----
    def replace_document(self, document: TemplateDocument) -> None:
        self.document = document
        self.state.selected_id = None
        self.state.drag = None
