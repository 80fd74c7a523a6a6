from __future__ import annotations

import logging
from typing import List, Sequence, Union

from PySide6 import QtCore

from ..core.render import RenderResult
from .exceptions import friendly_message
from .sinks import BaseSink, send_sheets

log = logging.getLogger(__name__)


class WorkerSignals(QtCore.QObject):
    finished = QtCore.Signal()       # no-arg; UI just shows "done"
    error = QtCore.Signal(str)       # error message
    sent = QtCore.Signal(str)        # where the job went (path / dry-run id)


class PrintWorker(QtCore.QThread):
    """
    Thread that hands rendered labels or sheets to a sink.

    Rendering happens on the UI thread beforehand; only the sink's I/O
    (file writes, rasterization) happens here. No retries: a failure is
    reported once through ``signals.error``. ``sent`` fires once per
    sheet delivered.
    """
    def __init__(
        self,
        sink: BaseSink,
        result: Union[RenderResult, Sequence[RenderResult]],
        name: str,
        parent=None,
    ):
        super().__init__(parent)
        self.sink = sink
        self.results: List[RenderResult] = (
            [result] if isinstance(result, RenderResult) else list(result)
        )
        self.name = name
        self.signals = WorkerSignals()
        self.destinations: List[str] = []

    @property
    def destination(self):
        return self.destinations[-1] if self.destinations else None

    def run(self):
        try:
            log.debug("Sending %d sheet(s) of %r to %s",
                      len(self.results), self.name, type(self.sink).__name__)
            for where in send_sheets(self.sink, self.results, self.name):
                self.destinations.append(str(where))
                self.signals.sent.emit(str(where))
        except Exception as e:
            log.exception("Print job %r failed", self.name)
            self.signals.error.emit(friendly_message(e))
        finally:
            # Always emit finished once we're done/error.
            self.signals.finished.emit()
