from decimal import Decimal

from receipt_engine.classifier import DocumentProfile, DocumentType
from receipt_engine.extraction import FieldExtractor, TransactionType


def test_full_receipt(receipt_text):
    fields = FieldExtractor().extract(receipt_text)

    assert fields.amount == Decimal("472.50")
    assert fields.date == "2024-01-15"
    assert fields.merchant == "Dominos Pizza"
    assert fields.category == "Food & Dining"
    assert fields.payment_method == "Credit Card"
    assert fields.transaction_id == "TXN12345678"
    assert fields.currency == "INR"
    assert len(fields.line_items) == 2
    assert len(fields.taxes) == 2
    assert fields.transaction_type == TransactionType.EXPENSE
    assert fields.defaulted == frozenset({"transaction_type"})
    assert fields.raw_text == receipt_text


def test_payment_screenshot(upi_text):
    profile = DocumentProfile(document_type=DocumentType.PAYMENT_SCREENSHOT)
    fields = FieldExtractor().extract(upi_text, profile)

    assert fields.amount == Decimal("500.00")
    assert fields.date == "2024-01-15"
    assert fields.merchant == "Sharma General Store"
    assert fields.payment_method == "PhonePe"
    assert fields.transaction_id == "412345678901"
    assert fields.line_items is None
    assert fields.category == "Other"
    assert "category" in fields.defaulted


def test_empty_text_yields_only_defaults():
    fields = FieldExtractor().extract("")
    assert fields.evidence_fields() == []
    assert fields.category == "Other"
    assert fields.transaction_type == TransactionType.EXPENSE


def test_failing_extractor_is_isolated(receipt_text):
    extractor = FieldExtractor()

    def explode(text, profile, found):
        raise ValueError("bad pattern")

    extractor._extractors = [
        (name, explode if name == "date" else fn) for name, fn in extractor._extractors
    ]
    fields = extractor.extract(receipt_text)

    assert fields.date is None
    assert fields.amount == Decimal("472.50")
    assert any("date" in w for w in fields.warnings)


def test_extraction_confidence_is_recorded(receipt_text):
    fields = FieldExtractor().extract(receipt_text)
    assert set(fields.extraction_confidence) == set(fields.evidence_fields())
    assert all(0.0 <= c <= 1.0 for c in fields.extraction_confidence.values())


def test_custom_categories():
    extractor = FieldExtractor(extra_categories={"Pets": ["petco"]})
    assert extractor.extract("PETCO\nTotal 300.00").category == "Pets"
