from __future__ import annotations
import logging
import os
import sys
from PySide6.QtCore import QCoreApplication
from PySide6.QtWidgets import QApplication
from .ui.main_window import APP_VERSION, MainWindow
from .ui.settings import APP_NAME, ORG_NAME

LOG_LEVEL_ENV = "LABEL_DESIGNER_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Root logging setup; the level comes from LABEL_DESIGNER_LOG_LEVEL (default INFO)."""
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)


def main():
    configure_logging()
    QCoreApplication.setOrganizationName(ORG_NAME)
    QCoreApplication.setApplicationName(APP_NAME)
    QCoreApplication.setApplicationVersion(APP_VERSION)

    app = QApplication(sys.argv)
    win = MainWindow()
    win.show()
    logging.getLogger(__name__).info("%s %s started", APP_NAME, APP_VERSION)
    sys.exit(app.exec())

if __name__ == '__main__':
    main()
