from __future__ import annotations

import copy
import logging
from typing import Optional

from PySide6 import QtCore

from ..core.models import TemplateDocument
from ..core.persistence import PersistenceError, TemplateStore
from ..core.products import ProductSource

log = logging.getLogger(__name__)


class TemplateIOSignals(QtCore.QObject):
    saved = QtCore.Signal(str)          # template id
    loaded = QtCore.Signal(object)      # TemplateDocument
    error = QtCore.Signal(str)
    finished = QtCore.Signal()


class TemplateIOWorker(QtCore.QThread):
    """
    Runs one save or load against a template store off the UI thread.

    Saves work on a snapshot of the document, so the user can keep editing
    while the write is in flight. Results come back through ``signals`` and
    are applied by the receiver on the UI thread.
    """
    def __init__(
        self,
        store: TemplateStore,
        action: str,
        document: Optional[TemplateDocument] = None,
        template_id: Optional[str] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.store = store
        self.action = (action or "").lower()
        if self.action == "save" and document is None:
            raise ValueError("save requires a document")
        if self.action == "load" and not template_id:
            raise ValueError("load requires a template id")
        if self.action not in ("save", "load"):
            raise ValueError(f"Unknown template action: {action!r}")
        self.snapshot = copy.deepcopy(document) if document is not None else None
        self.template_id = template_id
        self.signals = TemplateIOSignals()

    def run(self):
        try:
            if self.action == "save":
                self.signals.saved.emit(self.store.save(self.snapshot))
            else:
                self.signals.loaded.emit(self.store.load(self.template_id))
        except PersistenceError as e:
            log.warning("Template %s failed: %s", self.action, e)
            self.signals.error.emit(str(e))
        except Exception as e:
            log.exception("Template %s failed unexpectedly", self.action)
            self.signals.error.emit(f"Template {self.action} failed: {e}")
        finally:
            self.signals.finished.emit()


class ProductLoadSignals(QtCore.QObject):
    loaded = QtCore.Signal(object)      # List[ProductRecord]
    error = QtCore.Signal(str)
    finished = QtCore.Signal()


class ProductLoadWorker(QtCore.QThread):
    """Fetches the products for a print run from a product source."""
    def __init__(self, source: ProductSource, parent=None):
        super().__init__(parent)
        self.source = source
        self.signals = ProductLoadSignals()

    def run(self):
        try:
            self.signals.loaded.emit(self.source.products())
        except PersistenceError as e:
            log.warning("Loading products failed: %s", e)
            self.signals.error.emit(str(e))
        except Exception as e:
            log.exception("Loading products failed unexpectedly")
            self.signals.error.emit(f"Loading products failed: {e}")
        finally:
            self.signals.finished.emit()
