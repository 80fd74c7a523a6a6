"""
core/placeholders.py - Product records and {{product.field}} substitution.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional, Set, Union

# {{product.<identifier>}}, case sensitive, no nesting or escaping
PLACEHOLDER_PATTERN = re.compile(r"\{\{product\.([A-Za-z_][A-Za-z0-9_]*)\}\}")

CURRENCY_FIELDS = frozenset({"price", "mrp", "cost", "wholesalePrice", "salePrice"})
DEFAULT_CURRENCY_SYMBOL = "₹"

_CENTS = Decimal("0.01")


@dataclass
class ProductRecord:
    """Read-only product data handed to the renderer."""
    name: Optional[str] = None
    sku: Optional[str] = None
    price: Any = None
    mrp: Any = None
    barcode: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _CORE_FIELDS = ("name", "sku", "price", "mrp", "barcode")

    def get(self, name: str) -> Any:
        if name in self._CORE_FIELDS:
            return getattr(self, name)
        return self.extra.get(name)

    def to_dict(self) -> Dict[str, Any]:
        d = {key: getattr(self, key) for key in self._CORE_FIELDS}
        d.update(self.extra)
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ProductRecord":
        extra = {k: v for k, v in d.items() if k not in ProductRecord._CORE_FIELDS}
        return ProductRecord(
            name=d.get("name"),
            sku=d.get("sku"),
            price=d.get("price"),
            mrp=d.get("mrp"),
            barcode=d.get("barcode"),
            extra=extra,
        )


ProductLike = Union[ProductRecord, Mapping[str, Any]]


def as_product(product: Optional[ProductLike]) -> ProductRecord:
    if product is None:
        return ProductRecord()
    if isinstance(product, ProductRecord):
        return product
    return ProductRecord.from_dict(product)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a money-ish value; None when it is missing or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def format_money(value: Decimal) -> str:
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_currency(value: Any, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> Optional[str]:
    amount = to_decimal(value)
    if amount is None:
        return None
    return f"{symbol}{format_money(amount)}"


def format_field(name: str, value: Any, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> Optional[str]:
    if value is None:
        return None
    if name in CURRENCY_FIELDS:
        formatted = format_currency(value, currency_symbol)
        # non-numeric money values are printed as given
        return formatted if formatted is not None else str(value)
    return str(value)


def resolve_placeholders(
    text: Optional[str],
    product: Optional[ProductLike],
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> Optional[str]:
    """
    Replace every {{product.field}} token in *text*.

    Tokens naming a field the product does not have (or has as None) are
    left as literal text.
    """
    if not text:
        return text
    record = as_product(product)

    def _sub(match: re.Match) -> str:
        name = match.group(1)
        formatted = format_field(name, record.get(name), currency_symbol)
        return match.group(0) if formatted is None else formatted

    return PLACEHOLDER_PATTERN.sub(_sub, text)


def has_placeholder(text: Optional[str]) -> bool:
    return bool(text) and PLACEHOLDER_PATTERN.search(text) is not None


def scan_placeholders(template) -> Set[str]:
    """Field names referenced by any element of *template*."""
    used: Set[str] = set()
    for elem in template.elements:
        if elem.content:
            used.update(PLACEHOLDER_PATTERN.findall(elem.content))
    return used


def missing_fields(template, product: Optional[ProductLike]) -> Set[str]:
    """Referenced fields that *product* cannot fill; they print as literal tokens."""
    record = as_product(product)
    return {name for name in scan_placeholders(template) if record.get(name) is None}
