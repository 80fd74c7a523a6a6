"""
core/products.py - Where the product records for a print run come from.

Two sources, mirroring the template stores:

- JsonProductSource: a JSON file holding a list of product objects, or an
  object with a ``products`` list.
- HttpProductSource: the products resource of the data service.

Failures are raised as PersistenceError, the same as template I/O.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, List, Optional, Protocol

from .persistence import DEFAULT_TIMEOUT, PersistenceError, request_json
from .placeholders import ProductRecord

log = logging.getLogger(__name__)

PRODUCTS_ENDPOINT = "/api/products"


class ProductSource(Protocol):
    def products(self) -> List[ProductRecord]:
        ...


def parse_products(payload: Any, origin: str = "products") -> List[ProductRecord]:
    """Product records from a decoded JSON payload; non-object entries are skipped."""
    if isinstance(payload, dict) and "products" in payload:
        payload = payload["products"]
    if not isinstance(payload, list):
        raise PersistenceError(f"{origin} does not hold a list of products")
    records = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            log.warning("Skipping product %d in %s: not an object", index, origin)
            continue
        records.append(ProductRecord.from_dict(item))
    return records


class JsonProductSource:
    def __init__(self, path: str):
        self.path = os.path.abspath(os.path.expanduser(path))

    def products(self) -> List[ProductRecord]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read products from {self.path}: {exc}") from exc
        records = parse_products(data, self.path)
        log.info("Loaded %d products from %s", len(records), self.path)
        return records


class HttpProductSource:
    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        if not base_url:
            raise ValueError("HttpProductSource requires a base URL")
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)

    def products(self) -> List[ProductRecord]:
        url = self.base_url + PRODUCTS_ENDPOINT
        records = parse_products(request_json("GET", url, timeout=self.timeout), url)
        log.info("Fetched %d products from %s", len(records), url)
        return records


def make_product_source(settings, path: Optional[str] = None) -> ProductSource:
    """
    A file source for *path* (or the configured products file), otherwise
    the data service when the http backend is configured.
    """
    path = path or getattr(settings, "products_file", "")
    if path:
        return JsonProductSource(path)
    backend = (getattr(settings, "store_backend", "file") or "file").lower()
    if backend == "http":
        return HttpProductSource(
            settings.service_url,
            timeout=getattr(settings, "request_timeout", DEFAULT_TIMEOUT),
        )
    raise ValueError("No product source configured: pick a products file")
