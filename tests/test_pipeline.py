import json
from decimal import Decimal

import pytest

from receipt_engine.input_handler import InputHandler, RawDocument
from receipt_engine.ocr_engine import RecognizerFactory
from receipt_engine.pipeline import ExtractionPipeline
from receipt_engine.utils.exceptions import (
    InitializationFailure,
    PreprocessingFailure,
    RecognitionFailure,
    UnsupportedInputFailure,
)

from conftest import FakeRecognizer, TrackingProvider, image_bytes


def comparable(result):
    data = result.to_dict()
    data.pop("processing_time")
    return data


def test_image_end_to_end(pipeline, provider, fake_recognizer, png_bytes):
    result = pipeline.extract(RawDocument(png_bytes, "image/png", "dominos_receipt.png"))

    assert result.fields.amount == Decimal("472.50")
    assert result.fields.merchant == "Dominos Pizza"
    assert result.processing_method == "ocr"
    assert result.source_file == "dominos_receipt.png"
    assert 0.0 <= result.overall_confidence <= 1.0
    assert not result.no_signal
    assert provider.acquired == 1
    assert fake_recognizer.releases == 1
    assert {v.field for v in result.verdicts} == set(result.fields.populated_fields())


def test_unsupported_media_type(pipeline, provider):
    with pytest.raises(UnsupportedInputFailure):
        pipeline.extract(RawDocument(b"hello", "text/plain", "notes.txt"))
    assert provider.acquired == 0


def test_empty_payload(pipeline):
    with pytest.raises(UnsupportedInputFailure):
        pipeline.extract(RawDocument(b"", "image/png"))


def test_corrupt_image(pipeline, provider):
    with pytest.raises(PreprocessingFailure):
        pipeline.extract(RawDocument(b"\x89PNG not really", "image/png", "broken.png"))
    assert provider.acquired == 0


def test_recognition_failure_resets_recognizer(png_bytes):
    recognizer = FakeRecognizer(error=RuntimeError("engine crashed"))
    pipeline = ExtractionPipeline(recognizers=TrackingProvider(recognizer))

    with pytest.raises(RecognitionFailure):
        pipeline.extract(RawDocument(png_bytes, "image/png"))
    assert recognizer.resets >= 1
    assert recognizer.releases == 1


def test_initialization_failure(png_bytes):
    class Unopenable(FakeRecognizer):
        def open(self):
            raise RuntimeError("tesseract is not installed")

    pipeline = ExtractionPipeline(recognizers=RecognizerFactory(build=Unopenable))
    with pytest.raises(InitializationFailure) as excinfo:
        pipeline.extract(RawDocument(png_bytes, "image/png"))
    assert excinfo.value.retryable


def test_unexpected_preprocessing_error_is_typed(png_bytes, provider):
    class BrokenPreprocessor:
        def enhance(self, image):
            raise MemoryError("too big")

    pipeline = ExtractionPipeline(
        input_handler=InputHandler(),
        preprocessor=BrokenPreprocessor(),
        recognizers=provider,
    )
    with pytest.raises(PreprocessingFailure):
        pipeline.extract(RawDocument(png_bytes, "image/png"))


def test_text_layer_pdf_skips_ocr(provider):
    class DigitalPDF:
        def extract_text_layer(self, payload, source):
            return "Invoice from Acme Traders Pvt Ltd\nInvoice Date: 05/01/2024\nTotal Amount: Rs 1,180.00"

        def rasterize(self, payload, source):
            raise AssertionError("digital PDFs must not be rasterized")

    pipeline = ExtractionPipeline(
        input_handler=InputHandler(pdf_processor=DigitalPDF()),
        recognizers=provider,
    )
    result = pipeline.extract(RawDocument(b"%PDF-1.7 ...", "application/pdf", "acme.pdf"))

    assert provider.acquired == 0
    assert result.processing_method == "pdf_text_layer"
    assert result.recognition_confidence == pytest.approx(0.95)
    assert result.fields.amount == Decimal("1180.00")
    assert result.fields.date == "2024-01-05"


def test_pipeline_is_idempotent(pipeline, png_bytes):
    document = RawDocument(png_bytes, "image/png", "dominos_receipt.png")
    assert comparable(pipeline.extract(document)) == comparable(pipeline.extract(document))


@pytest.mark.parametrize("text", ["", "   \n  ", "\x00\x01\x02", "%%%% 1e999 ####", "9" * 5000])
def test_text_stage_never_raises(pipeline, text):
    result = pipeline.extract_from_text(text)
    assert 0.0 <= result.overall_confidence <= 1.0


def test_no_signal_is_a_result_not_an_error(pipeline):
    result = pipeline.extract_from_text("")
    assert result.no_signal
    assert result.decision == "reject"
    assert result.fields.category == "Other"


def test_broken_validator_does_not_escape(receipt_text):
    class BrokenValidator:
        def validate(self, fields):
            raise RuntimeError("validator down")

    result = ExtractionPipeline(validator=BrokenValidator(), recognizers=object()).extract_from_text(receipt_text)
    assert result.verdicts == []
    assert any("validator down" in w for w in result.fields.warnings)


def test_good_receipt_text_scores_higher_than_sparse_text(pipeline, receipt_text):
    full = pipeline.extract_from_text(receipt_text)
    sparse = pipeline.extract_from_text("Total 472.50")
    assert full.overall_confidence > sparse.overall_confidence


def test_extract_file(pipeline, tmp_path):
    path = tmp_path / "dominos_receipt.png"
    path.write_bytes(image_bytes(size=(200, 120)))

    result = pipeline.extract_file(path)

    assert result.source_file == "dominos_receipt.png"
    assert result.fields.amount == Decimal("472.50")


def test_extract_missing_file(pipeline, tmp_path):
    with pytest.raises(PreprocessingFailure):
        pipeline.extract_file(tmp_path / "missing.png")


def test_result_serializes_to_json(pipeline, receipt_text):
    payload = json.loads(pipeline.extract_from_text(receipt_text, source_file="r.txt").to_json())
    assert payload["fields"]["amount"] == "472.50"
    assert payload["fields"]["transaction_type"] == "expense"
    assert payload["decision"] in {"accept", "review", "reject"}
    assert payload["source_file"] == "r.txt"
