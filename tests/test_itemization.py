from decimal import Decimal

from receipt_engine.classifier import DocumentProfile, DocumentType
from receipt_engine.extraction import extract_line_items, extract_taxes


def test_line_items(receipt_text):
    items = extract_line_items(receipt_text)
    assert [i.description for i in items] == ["Farmhouse Pizza", "Garlic Bread"]
    pizza = items[0]
    assert pizza.quantity == Decimal("2")
    assert pizza.unit_price == Decimal("200.00")
    assert pizza.total_price == Decimal("400.00")
    assert items[1].quantity is None


def test_summary_lines_are_not_items():
    assert extract_line_items("Subtotal 450.00\nTax 22.50\nTotal 472.50") is None


def test_inconsistent_unit_price_is_dropped():
    items = extract_line_items("Masala Dosa 2 x 60.00 100.00")
    assert items[0].unit_price is None
    assert items[0].total_price == Decimal("100.00")


def test_not_itemized_documents():
    screenshot = DocumentProfile(document_type=DocumentType.PAYMENT_SCREENSHOT)
    assert extract_line_items("Coffee 120.00", screenshot) is None


def test_taxes(receipt_text):
    taxes = extract_taxes(receipt_text)
    assert [t.kind for t in taxes] == ["CGST", "SGST"]
    assert all(t.rate == Decimal("2.5") and t.amount == Decimal("11.25") for t in taxes)


def test_tax_without_rate_is_ignored():
    assert extract_taxes("GST 55.00") is None
