"""
ui/settings.py - Designer configuration kept in QSettings.

All settings live in one JSON blob under ``designer/settings_json`` so new
keys can be added without migrating individual QSettings entries. Unknown
keys in the blob are ignored; missing keys take their defaults.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional

from PySide6 import QtCore

from ..core.barcodes import DEFAULT_SYMBOLOGY
from ..core.geometry import DEFAULT_ZOOM
from ..core.placeholders import DEFAULT_CURRENCY_SYMBOL

log = logging.getLogger(__name__)

ORG_NAME = "LabelDesigner"
APP_NAME = "LabelDesigner"
SETTINGS_KEY = "designer/settings_json"
SERVICE_URL_ENV = "LABEL_DESIGNER_SERVICE_URL"


def _default_templates_dir() -> str:
    return os.path.join(os.path.expanduser("~"), "LabelDesigner", "templates")


def _default_print_dir() -> str:
    return os.path.join(os.path.expanduser("~"), "LabelDesigner", "output")


@dataclass
class DesignerSettings:
    store_backend: str = "file"          # "file" | "http"
    templates_dir: str = ""
    service_url: str = ""
    request_timeout: float = 10.0
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    default_symbology: str = DEFAULT_SYMBOLOGY
    default_zoom: int = DEFAULT_ZOOM
    print_dir: str = ""
    print_format: str = "png"            # "png" | "svg" | "dry-run"
    print_dpi: int = 300
    products_file: str = ""              # JSON products for print runs
    copies: int = 1                      # labels per product
    sheet_columns: int = 1
    sheet_rows: int = 1
    sheet_gap_mm: float = 0.0

    def __post_init__(self):
        self.templates_dir = self.templates_dir or _default_templates_dir()
        self.print_dir = self.print_dir or _default_print_dir()

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, raw: str) -> "DesignerSettings":
        data = json.loads(raw) if raw else {}
        if not isinstance(data, dict):
            data = {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def _qsettings() -> QtCore.QSettings:
    return QtCore.QSettings(ORG_NAME, APP_NAME)


def load_settings(store: Optional[QtCore.QSettings] = None) -> DesignerSettings:
    """
    Read settings from QSettings, falling back to defaults if the blob is
    missing or unreadable. The service URL environment variable wins over
    the stored value.
    """
    s = store if store is not None else _qsettings()
    raw = s.value(SETTINGS_KEY, "", type=str)
    try:
        settings = DesignerSettings.from_json(raw)
    except (ValueError, TypeError) as exc:
        log.warning("Ignoring unreadable settings blob: %s", exc)
        settings = DesignerSettings()

    env_url = os.environ.get(SERVICE_URL_ENV, "").strip()
    if env_url:
        settings.service_url = env_url
    return settings


def save_settings(settings: DesignerSettings, store: Optional[QtCore.QSettings] = None) -> None:
    s = store if store is not None else _qsettings()
    s.setValue(SETTINGS_KEY, settings.to_json())
    s.sync()
