"""
Tests for {{product.field}} substitution and money formatting.
"""
from decimal import Decimal

import pytest

from label_designer.core.models import TemplateDocument, make_element
from label_designer.core.placeholders import (
    ProductRecord,
    format_currency,
    has_placeholder,
    missing_fields,
    resolve_placeholders,
    scan_placeholders,
    to_decimal,
)


@pytest.fixture()
def product():
    return ProductRecord(
        name="Basmati Rice 1kg",
        sku="SKU123",
        price=45,
        mrp="55.5",
        barcode="8901234567890",
        extra={"description": "Aged long grain", "weight": None},
    )


class TestResolve:
    def test_plain_fields(self, product):
        assert resolve_placeholders("{{product.sku}}", product) == "SKU123"
        assert resolve_placeholders("{{product.name}}!", product) == "Basmati Rice 1kg!"

    def test_currency_fields_formatted(self, product):
        assert resolve_placeholders("{{product.price}}", product) == "₹45.00"
        assert resolve_placeholders("MRP: {{product.mrp}}", product, "$") == "MRP: $55.50"

    def test_extra_fields(self, product):
        assert resolve_placeholders("{{product.description}}", product) == "Aged long grain"

    def test_unknown_or_empty_fields_left_literal(self, product):
        assert resolve_placeholders("{{product.color}}", product) == "{{product.color}}"
        assert resolve_placeholders("{{product.weight}}", product) == "{{product.weight}}"

    def test_no_nested_or_foreign_tokens(self, product):
        assert resolve_placeholders("{{ product.sku }}", product) == "{{ product.sku }}"
        assert resolve_placeholders("{{store.name}}", product) == "{{store.name}}"

    def test_several_tokens(self, product):
        text = "{{product.sku}} / {{product.sku}} / {{product.price}}"
        assert resolve_placeholders(text, product) == "SKU123 / SKU123 / ₹45.00"

    def test_mapping_products(self):
        data = {"name": "Tea", "price": "12.345", "origin": "Assam"}
        assert resolve_placeholders("{{product.price}}", data) == "₹12.35"
        assert resolve_placeholders("{{product.origin}}", data) == "Assam"

    def test_non_numeric_price_passes_through(self):
        assert resolve_placeholders("{{product.price}}", {"price": "free"}) == "free"

    def test_empty_text(self, product):
        assert resolve_placeholders("", product) == ""
        assert resolve_placeholders(None, product) is None


class TestHelpers:
    def test_to_decimal(self):
        assert to_decimal("10.5") == Decimal("10.5")
        assert to_decimal(None) is None
        assert to_decimal(True) is None
        assert to_decimal("n/a") is None
        assert to_decimal("nan") is None

    def test_format_currency_rounds_half_up(self):
        assert format_currency("2.005", "₹") == "₹2.01"
        assert format_currency(None) is None

    def test_has_placeholder(self):
        assert has_placeholder("x {{product.sku}}")
        assert not has_placeholder("plain")
        assert not has_placeholder("")

    def test_scan_placeholders(self):
        doc = TemplateDocument()
        doc.add(make_element("text", "a", content="{{product.name}} {{product.sku}}"))
        doc.add(make_element("mrp", "b", content="MRP: {{product.mrp}}"))
        assert scan_placeholders(doc) == {"name", "sku", "mrp"}

    def test_record_from_dict_keeps_unknown_keys(self):
        record = ProductRecord.from_dict({"name": "Tea", "hsn": "0902"})
        assert record.get("hsn") == "0902"
        assert record.to_dict()["hsn"] == "0902"

    def test_missing_core_fields_stay_literal(self):
        record = ProductRecord.from_dict({"price": "10"})
        assert record.sku is None
        assert resolve_placeholders("{{product.sku}}", record) == "{{product.sku}}"
        assert resolve_placeholders("{{product.name}}", ProductRecord()) == "{{product.name}}"

    def test_explicit_empty_field_renders_empty(self):
        assert resolve_placeholders("[{{product.sku}}]", {"sku": ""}) == "[]"

    def test_missing_fields(self):
        doc = TemplateDocument()
        doc.add(make_element("text", "a", content="{{product.name}} {{product.batch}}"))
        doc.add(make_element("sku", "b", content="{{product.sku}}"))
        assert missing_fields(doc, {"name": "Tea", "sku": "T1"}) == {"batch"}
        assert missing_fields(doc, None) == {"name", "batch", "sku"}
