from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence, Union

from PySide6 import QtCore, QtGui, QtWidgets

from ..core.editor import InteractionEngine
from ..core.geometry import ZOOM_LEVELS
from ..core.models import TemplateDocument, populate_default_elements
from ..core.persistence import JsonFileStore, TemplateStore, make_store
from ..core.placeholders import ProductRecord, missing_fields
from ..core.products import JsonProductSource, ProductSource, make_product_source
from ..core.render import RenderResult, render_label
from ..core.sheets import SheetLayout, compose_sheets
from ..printing.exceptions import friendly_message
from ..printing.sinks import make_sink
from ..printing.worker import PrintWorker
from .canvas import LabelCanvas
from .dialogs import PrintPreviewDialog, show_new_template_dialog, show_print_job_dialog
from .docks import build_docks
from .settings import APP_NAME, DesignerSettings, load_settings
from .workers import ProductLoadWorker, TemplateIOWorker

log = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
BROWSE_ITEM = "Browse…"


class MainWindow(QtWidgets.QMainWindow):
    def __init__(
        self,
        settings: Optional[DesignerSettings] = None,
        store: Optional[TemplateStore] = None,
    ):
        super().__init__()

        self.setWindowTitle(f"{APP_NAME} — {APP_VERSION}")
        self.resize(1200, 800)
        self.settings = settings if settings is not None else load_settings()
        self._store = store
        self._workers: set[QtCore.QThread] = set()
        self.products: List[ProductRecord] = []

        self.engine = InteractionEngine(TemplateDocument.create())
        self.engine.set_zoom(self.settings.default_zoom)

        self._build_canvas()
        self._build_toolbars()
        build_docks(self)
        self.canvas.set_currency_symbol(self.settings.currency_symbol)

        self._update_title()
        self.statusBar().showMessage("Ready.")

    @property
    def document(self) -> TemplateDocument:
        return self.engine.document

    # -------------------------
    # UI construction
    # -------------------------
    def _build_canvas(self):
        self.canvas = LabelCanvas(self.engine, self)
        self.scroll = QtWidgets.QScrollArea(self)
        self.scroll.setWidget(self.canvas)
        self.scroll.setAlignment(QtCore.Qt.AlignCenter)
        self.scroll.setBackgroundRole(QtGui.QPalette.Dark)
        self.setCentralWidget(self.scroll)

    def _action(self, text: str, slot, shortcut=None) -> QtGui.QAction:
        act = QtGui.QAction(text, self)
        act.triggered.connect(slot)
        if shortcut is not None:
            act.setShortcut(shortcut)
        return act

    def _build_toolbars(self):
        tb_main = QtWidgets.QToolBar("Main")
        tb_main.setObjectName("MainToolbar")
        tb_main.setIconSize(QtCore.QSize(16, 16))
        self.addToolBar(tb_main)

        self.act_new = self._action("New", self.new_template, QtGui.QKeySequence.New)
        self.act_open = self._action("Open", self.load_template, QtGui.QKeySequence.Open)
        self.act_save = self._action("Save", self.save_template, QtGui.QKeySequence.Save)
        for act in (self.act_new, self.act_open, self.act_save):
            tb_main.addAction(act)

        tb_main.addSeparator()
        self.act_preview = self._action("Preview", self.preview)
        self.act_products = self._action("Products", lambda: self.load_products())
        self.act_print = self._action("Print", self.print_now, QtGui.QKeySequence.Print)
        tb_main.addAction(self.act_preview)
        tb_main.addAction(self.act_print)
        tb_main.addAction(self.act_products)

        tb_main.addSeparator()
        self.act_duplicate = self._action("Duplicate", self.duplicate_selected, "Ctrl+D")
        self.act_delete = self._action("Delete", self.delete_selected, QtGui.QKeySequence.Delete)
        self.act_forward = self._action("Bring Forward", self.bring_forward, "Ctrl+]")
        self.act_backward = self._action("Send Backward", self.send_backward, "Ctrl+[")
        for act in (self.act_duplicate, self.act_delete, self.act_forward, self.act_backward):
            tb_main.addAction(act)

        tb_main.addSeparator()
        tb_main.addWidget(QtWidgets.QLabel(" Zoom: "))
        self.zoom_combo = QtWidgets.QComboBox()
        for level in ZOOM_LEVELS:
            self.zoom_combo.addItem(f"{level}%", level)
        self.zoom_combo.setCurrentIndex(ZOOM_LEVELS.index(self.engine.state.zoom_percent))
        self.zoom_combo.currentIndexChanged.connect(
            lambda i: self.set_zoom(self.zoom_combo.itemData(i))
        )
        tb_main.addWidget(self.zoom_combo)

        self._update_selection_actions()

    # -------------------------
    # state sync
    # -------------------------
    def _update_title(self):
        doc = self.document
        self.setWindowTitle(
            f"{doc.name} ({doc.width_mm:g} × {doc.height_mm:g} mm) — {APP_NAME} {APP_VERSION}"
        )

    def _update_selection_actions(self):
        has_sel = self.engine.selected_element is not None
        for act in (self.act_duplicate, self.act_delete, self.act_forward, self.act_backward):
            act.setEnabled(has_sel)

    def _sync_after_edit(self):
        self.props.bind(self.document, self.engine.selected_element)
        self._update_selection_actions()
        self.canvas.refresh()

    def _on_selection_changed(self, elem):
        self.props.bind(self.document, elem)
        self._update_selection_actions()

    def _on_document_changed(self):
        self.props.refresh()

    def _on_props_element_changed(self):
        self.canvas.update()

    # -------------------------
    # tools / zoom
    # -------------------------
    def set_tool(self, tool: str) -> None:
        try:
            self.engine.set_tool(tool)
        except ValueError as exc:
            log.error("%s", exc)
            return
        self.toolbox.set_tool(self.engine.state.tool)
        self.statusBar().showMessage(f"Tool: {tool}")

    def set_zoom(self, zoom_percent) -> None:
        level = self.canvas.set_zoom(zoom_percent)
        idx = self.zoom_combo.findData(level)
        if idx >= 0 and idx != self.zoom_combo.currentIndex():
            self.zoom_combo.blockSignals(True)
            self.zoom_combo.setCurrentIndex(idx)
            self.zoom_combo.blockSignals(False)

    # -------------------------
    # element commands
    # -------------------------
    def duplicate_selected(self):
        if self.engine.duplicate_selected() is not None:
            self._sync_after_edit()

    def delete_selected(self):
        if self.engine.delete_selected() is not None:
            self._sync_after_edit()

    def bring_forward(self):
        if self.engine.bring_forward() is not None:
            self._sync_after_edit()

    def send_backward(self):
        if self.engine.send_backward() is not None:
            self._sync_after_edit()

    # -------------------------
    # documents
    # -------------------------
    def set_document(self, document: TemplateDocument) -> None:
        """Swap in a new or loaded document; selection is cleared."""
        populate_default_elements(document)
        self.engine.replace_document(document)
        self.engine.set_tool("select")
        self.toolbox.set_tool("select")
        self._sync_after_edit()
        self._update_title()

    def new_template(self):
        doc = show_new_template_dialog(self)
        if doc is not None:
            self.set_document(doc)
            self.statusBar().showMessage(f"New template: {doc.name}")

    def _template_store(self) -> TemplateStore:
        if self._store is None:
            self._store = make_store(self.settings)
        return self._store

    def _start_worker(self, worker: QtCore.QThread) -> None:
        self._workers.add(worker)
        worker.signals.finished.connect(lambda w=worker: self._workers.discard(w))
        worker.start()

    def save_template(self):
        try:
            store = self._template_store()
        except ValueError as exc:
            QtWidgets.QMessageBox.critical(self, "Save", str(exc))
            return
        doc = self.document
        worker = TemplateIOWorker(store, "save", document=doc, parent=self)
        worker.signals.saved.connect(lambda template_id, d=doc: self._on_template_saved(d, template_id))
        worker.signals.error.connect(lambda msg: self._io_error("Save", msg))
        self.statusBar().showMessage("Saving…")
        self._start_worker(worker)

    def _on_template_saved(self, document: TemplateDocument, template_id: str):
        # the operator may have opened another document while the save ran
        if self.document is document:
            document.id = template_id
        self.statusBar().showMessage(f"Saved template {template_id}.", 5000)

    def _ask_template(self) -> tuple[Optional[TemplateStore], Optional[str]]:
        """Pick which template to open: one of the saved ids, a browsed file, or a typed id."""
        try:
            store = self._template_store()
        except ValueError as exc:
            QtWidgets.QMessageBox.critical(self, "Open", str(exc))
            return None, None
        if isinstance(store, JsonFileStore):
            ids = store.list_ids()
            choice = BROWSE_ITEM
            if ids:
                choice, ok = QtWidgets.QInputDialog.getItem(
                    self, "Open Template", "Saved templates:", ids + [BROWSE_ITEM], 0, False
                )
                if not ok:
                    return None, None
            if choice != BROWSE_ITEM:
                return store, choice
            path, _ = QtWidgets.QFileDialog.getOpenFileName(
                self, "Open Template", store.directory, "Label templates (*.json)"
            )
            if not path:
                return None, None
            stem = os.path.splitext(os.path.basename(path))[0]
            return JsonFileStore(os.path.dirname(path)), stem
        template_id, ok = QtWidgets.QInputDialog.getText(self, "Open Template", "Template id:")
        if not ok or not template_id.strip():
            return None, None
        return store, template_id.strip()

    def load_template(self):
        store, template_id = self._ask_template()
        if store is None:
            return
        worker = TemplateIOWorker(store, "load", template_id=template_id, parent=self)
        worker.signals.loaded.connect(self._on_template_loaded)
        worker.signals.error.connect(lambda msg: self._io_error("Open", msg))
        self.statusBar().showMessage("Loading…")
        self._start_worker(worker)

    def _on_template_loaded(self, document: TemplateDocument):
        self.set_document(document)
        self.statusBar().showMessage(f"Loaded template {document.name}.", 5000)

    def _io_error(self, title: str, message: str):
        self.statusBar().showMessage(f"{title} failed.", 5000)
        QtWidgets.QMessageBox.critical(self, title, message)

    # -------------------------
    # products
    # -------------------------
    def _ask_product_source(self) -> Optional[ProductSource]:
        s = self.settings
        if (s.store_backend or "file").lower() == "http" and not s.products_file:
            try:
                return make_product_source(s)
            except ValueError as exc:
                QtWidgets.QMessageBox.critical(self, "Products", str(exc))
                return None
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Load Products", s.products_file or s.templates_dir, "Product lists (*.json)"
        )
        if not path:
            return None
        return JsonProductSource(path)

    def load_products(self, source: Optional[ProductSource] = None):
        if source is None:
            source = self._ask_product_source()
            if source is None:
                return
        worker = ProductLoadWorker(source, parent=self)
        worker.signals.loaded.connect(self._on_products_loaded)
        worker.signals.error.connect(lambda msg: self._io_error("Products", msg))
        self.statusBar().showMessage("Loading products…")
        self._start_worker(worker)
        return worker

    def _on_products_loaded(self, products: Sequence[ProductRecord]):
        self.products = list(products)
        if not self.products:
            self.statusBar().showMessage("No products found.", 5000)
            return
        first = self.products[0]
        self.canvas.product = first
        self.canvas.refresh()
        message = f"Loaded {len(self.products)} products."
        missing = missing_fields(self.document, first)
        if missing:
            message += " Not filled for the first product: " + ", ".join(sorted(missing))
        self.statusBar().showMessage(message, 10000)

    # -------------------------
    # preview / print
    # -------------------------
    def render_current(self) -> RenderResult:
        return render_label(self.document, self.canvas.product, self.settings.currency_symbol)

    def preview(self):
        from ..printing.raster import svg_to_qimage

        result = self.render_current()
        try:
            image = svg_to_qimage(result.markup, self.settings.print_dpi)
        except Exception as exc:
            QtWidgets.QMessageBox.critical(self, "Preview", friendly_message(exc))
            return
        dlg = PrintPreviewDialog(image, result.issues, self.settings.print_dpi, self)
        if dlg.exec() == QtWidgets.QDialog.Accepted:
            self.print_now()

    def _sheet_layout(self) -> SheetLayout:
        s = self.settings
        return SheetLayout(s.sheet_columns, s.sheet_rows, s.sheet_gap_mm)

    def print_now(self):
        """One label for the preview product, or a print run when products are loaded."""
        if not self.products:
            self._send(self.render_current())
            return
        s = self.settings
        choice = show_print_job_dialog(len(self.products), s.copies, self._sheet_layout(), self)
        if choice is None:
            return
        copies, layout = choice
        s.copies = copies
        s.sheet_columns, s.sheet_rows, s.sheet_gap_mm = layout.columns, layout.rows, layout.gap_mm
        self.print_products(self.products, copies, layout)

    def print_products(
        self,
        products: Sequence[ProductRecord],
        copies: Optional[int] = None,
        layout: Optional[SheetLayout] = None,
    ) -> Optional[PrintWorker]:
        s = self.settings
        try:
            sheets = compose_sheets(
                self.document,
                products,
                s.copies if copies is None else copies,
                layout or self._sheet_layout(),
                s.currency_symbol,
            )
        except ValueError as exc:
            QtWidgets.QMessageBox.critical(self, "Print", str(exc))
            return None
        return self._send(sheets)

    def _send(self, result: Union[RenderResult, List[RenderResult]]) -> Optional[PrintWorker]:
        s = self.settings
        try:
            sink = make_sink(s.print_format, s.print_dir, s.print_dpi)
        except Exception as exc:
            QtWidgets.QMessageBox.critical(self, "Print", friendly_message(exc))
            return None
        worker = PrintWorker(sink, result, self.document.name, parent=self)
        worker.signals.sent.connect(
            lambda where: self.statusBar().showMessage(f"Label sent to {where}.", 5000)
        )
        worker.signals.error.connect(lambda msg: self._io_error("Print", msg))
        self._start_worker(worker)
        return worker

    def closeEvent(self, event):
        for worker in list(self._workers):
            worker.wait(5000)
        super().closeEvent(event)
