"""
core/persistence.py - Save/load adapter for template documents.

Two stores share one contract:

- JsonFileStore: one ``<id>.json`` per template in a directory. Writes go
  through a temp file + os.replace so a crash never leaves half a template.
- HttpTemplateStore: the label-template REST resource of the data service.

Every failure (I/O, HTTP, bad JSON, bad document) is raised as a single
PersistenceError with the original exception chained. Neither store
mutates the document it is given.
"""
from __future__ import annotations

import http.client
import json
import logging
import os
import re
import tempfile
import urllib.error
import urllib.parse
import urllib.request
import uuid
from typing import Any, Dict, Optional, Protocol

from .models import TemplateDocument

log = logging.getLogger(__name__)

TEMPLATES_ENDPOINT = "/api/label-templates"
DEFAULT_TIMEOUT = 10.0

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class PersistenceError(Exception):
    """Raised when a template cannot be saved or loaded."""


class TemplateStore(Protocol):
    def save(self, document: TemplateDocument) -> str:
        ...

    def load(self, template_id: str) -> TemplateDocument:
        ...


# ---------- asset paths ----------

def _is_windows_absolute(path: str) -> bool:
    """Drive letter or UNC path, recognized even on non-Windows hosts."""
    if not path:
        return False
    if re.match(r"^[a-zA-Z]:[\\/]", path):
        return True
    return re.match(r"^[\\/]{2}[^\\/]+[\\/]+[^\\/]+", path) is not None


def _is_local_path(source: str) -> bool:
    return bool(source) and not source.startswith(("data:", "http://", "https://"))


def make_asset_path_portable(asset_path: str, directory: str) -> str:
    """
    Relative path if *asset_path* lives under *directory*, else unchanged.
    """
    if not asset_path or not directory or not os.path.isabs(asset_path):
        return asset_path
    base = os.path.normcase(os.path.normpath(os.path.abspath(directory)))
    target = os.path.normcase(os.path.normpath(os.path.abspath(asset_path)))
    try:
        if os.path.commonpath([base, target]) != base:
            return asset_path
    except ValueError:
        # different drives on Windows
        return asset_path
    return os.path.relpath(os.path.abspath(asset_path), os.path.abspath(directory))


def resolve_asset_path(asset_path: str, directory: str) -> str:
    """Absolute path for a relative *asset_path* stored next to the templates."""
    if not asset_path or not directory:
        return asset_path
    if os.path.isabs(asset_path) or _is_windows_absolute(asset_path):
        return asset_path
    return os.path.normpath(os.path.join(os.path.abspath(directory), asset_path))


def _map_image_paths(data: Dict[str, Any], fn, directory: str) -> Dict[str, Any]:
    for raw in data.get("elements") or []:
        if isinstance(raw, dict) and raw.get("type") == "image":
            content = raw.get("content") or ""
            if _is_local_path(content):
                raw["content"] = fn(content, directory)
    return data


def _decode(payload: Any, template_id: Optional[str]) -> TemplateDocument:
    try:
        doc = TemplateDocument.from_dict(payload)
    except (TypeError, ValueError, AttributeError, OverflowError) as exc:
        raise PersistenceError(f"Template {template_id!r} is not a valid document: {exc}") from exc
    if doc.id is None:
        doc.id = template_id
    return doc


# ---------- JSON files ----------

class JsonFileStore:
    def __init__(self, directory: str):
        self.directory = os.path.abspath(os.path.expanduser(directory))

    def path_for(self, template_id: str) -> str:
        if not _SAFE_ID.match(template_id or ""):
            raise PersistenceError(f"Invalid template id: {template_id!r}")
        return os.path.join(self.directory, f"{template_id}.json")

    def save(self, document: TemplateDocument) -> str:
        template_id = document.id or uuid.uuid4().hex[:12]
        path = self.path_for(template_id)

        data = document.to_dict()
        data["id"] = template_id
        _map_image_paths(data, make_asset_path_portable, self.directory)

        tmp_path = None
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as exc:
            raise PersistenceError(f"Could not save template to {path}: {exc}") from exc
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)

        log.info("Saved template %s to %s", template_id, path)
        return template_id

    def load(self, template_id: str) -> TemplateDocument:
        path = self.path_for(template_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not load template from {path}: {exc}") from exc
        if isinstance(data, dict):
            _map_image_paths(data, resolve_asset_path, self.directory)
        doc = _decode(data, template_id)
        log.info("Loaded template %s from %s", template_id, path)
        return doc

    def list_ids(self):
        """Template ids in the directory, sorted."""
        if not os.path.isdir(self.directory):
            return []
        ids = []
        for name in os.listdir(self.directory):
            stem, ext = os.path.splitext(name)
            if ext == ".json" and _SAFE_ID.match(stem):
                ids.append(stem)
        return sorted(ids)


# ---------- HTTP service ----------

def request_json(
    method: str,
    url: str,
    body: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """One JSON exchange with the data service; None for an empty reply."""
    data = None
    headers = {"Accept": "application/json"}
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"
    try:
        # a base URL without a scheme fails here with ValueError
        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
    except urllib.error.HTTPError as exc:
        raise PersistenceError(f"{method} {url} failed: HTTP {exc.code} {exc.reason}") from exc
    except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
        raise PersistenceError(f"{method} {url} failed: {exc}") from exc
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PersistenceError(f"{method} {url} returned invalid JSON: {exc}") from exc


class HttpTemplateStore:
    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        if not base_url:
            raise ValueError("HttpTemplateStore requires a base URL")
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)

    def _url(self, template_id: Optional[str] = None) -> str:
        url = self.base_url + TEMPLATES_ENDPOINT
        if template_id:
            url += "/" + urllib.parse.quote(template_id, safe="")
        return url

    def save(self, document: TemplateDocument) -> str:
        body = document.to_dict()
        if document.id:
            reply = request_json("PUT", self._url(document.id), body, self.timeout)
        else:
            reply = request_json("POST", self._url(), body, self.timeout)
        template_id = reply.get("id") if isinstance(reply, dict) else None
        template_id = str(template_id) if template_id is not None else document.id
        if not template_id:
            raise PersistenceError("Template service did not return an id")
        log.info("Saved template %s to %s", template_id, self.base_url)
        return template_id

    def load(self, template_id: str) -> TemplateDocument:
        data = request_json("GET", self._url(template_id), timeout=self.timeout)
        return _decode(data, template_id)


def make_store(settings) -> TemplateStore:
    """Pick the store named by ``settings.store_backend`` ("file" or "http")."""
    backend = (getattr(settings, "store_backend", "file") or "file").lower()
    if backend == "http":
        return HttpTemplateStore(
            settings.service_url,
            timeout=getattr(settings, "request_timeout", DEFAULT_TIMEOUT),
        )
    if backend == "file":
        return JsonFileStore(settings.templates_dir)
    raise ValueError(f"Unknown template store: {backend!r}")
