from receipt_engine.classifier import DocumentClassifier, DocumentType, LayoutHint, QualityHint

MEDIUM = 500_000


def test_pdf_is_structured_invoice():
    profile = DocumentClassifier().classify("application/pdf", MEDIUM, "march.pdf")
    assert profile.document_type == DocumentType.INVOICE
    assert profile.layout_hint == LayoutHint.STRUCTURED


def test_screenshot_filename():
    profile = DocumentClassifier().classify("image/png", MEDIUM, "Screenshot_2024-01-15.png")
    assert profile.document_type == DocumentType.PAYMENT_SCREENSHOT
    assert profile.layout_hint == LayoutHint.UNSTRUCTURED
    assert profile.merchant_type_hint == "digital_payment"
    assert not profile.is_itemized


def test_statement_filename_overrides_media_type():
    profile = DocumentClassifier().classify("application/pdf", MEDIUM, "hdfc_statement_jan.pdf")
    assert profile.document_type == DocumentType.BANK_STATEMENT
    assert profile.layout_hint == LayoutHint.TABLE


def test_size_drives_quality():
    classifier = DocumentClassifier()
    assert classifier.classify("image/jpeg", 10_000).quality_hint == QualityHint.POOR
    assert classifier.classify("image/jpeg", 50_000).quality_hint == QualityHint.FAIR
    assert classifier.classify("image/jpeg", MEDIUM).quality_hint == QualityHint.GOOD
    assert classifier.classify("image/jpeg", 3_000_000).quality_hint == QualityHint.EXCELLENT


def test_small_file_gets_advisory_note():
    profile = DocumentClassifier().classify("image/jpeg", 50_000)
    assert profile.advisory_notes == ("Small file size may indicate low image quality",)


def test_defaults_and_language():
    profile = DocumentClassifier(language="hin").classify("image/jpeg", MEDIUM, None)
    assert profile.document_type == DocumentType.RECEIPT
    assert profile.language == "hin"
    assert profile.to_dict()["quality_hint"] == "good"
