"""
Extraction Pipeline.

Runs one document through every stage:

    RawDocument -> InputHandler -> DocumentClassifier -> ImagePreprocessor
                -> OCRRunner (owned recognizer) -> FieldExtractor
                -> Validator -> ConfidenceAggregator -> ExtractionResult

Only the stages that read the document raise, and only typed
``ExtractionFailure`` subclasses. Once text exists the pipeline always
returns a result.

Usage:
    from receipt_engine.pipeline import ExtractionPipeline

    pipeline = ExtractionPipeline()
    result = pipeline.extract_file("receipt.jpg")
    print(result.fields.amount, result.overall_confidence)
"""

import time
from pathlib import Path
from typing import List, Optional, Union

from PIL import Image

from config import get_config
from receipt_engine.classifier import DocumentClassifier, DocumentProfile
from receipt_engine.extraction import FieldExtractor, ExtractedFields
from receipt_engine.input_handler import InputHandler, ImagePreprocessor, LoadedDocument, RawDocument
from receipt_engine.ocr_engine import FusedText, OCRRunner, RecognizerFactory
from receipt_engine.postprocessor import ConfidenceAggregator, FieldVerdict, Validator
from receipt_engine.utils.exceptions import (
    ExtractionFailure,
    PreprocessingFailure,
    RecognitionFailure,
)
from receipt_engine.utils.logger import get_logger

from .extraction_result import (
    ExtractionResult,
    PROCESSING_OCR,
    PROCESSING_TEXT,
    PROCESSING_TEXT_LAYER,
)

logger = get_logger(__name__)


class ExtractionPipeline:
    """
    End-to-end receipt extraction.

    Every collaborator can be injected; the defaults read their
    settings from config. ``recognizers`` is anything with an
    ``acquire()`` context manager (``RecognizerFactory`` or
    ``RecognizerPool``).

    Example:
        >>> pipeline = ExtractionPipeline()
        >>> result = pipeline.extract(RawDocument(payload, "image/jpeg", "dominos.jpg"))
        >>> result.fields.category
        'Food & Dining'
    """

    def __init__(
        self,
        input_handler: Optional[InputHandler] = None,
        classifier: Optional[DocumentClassifier] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        runner: Optional[OCRRunner] = None,
        recognizers=None,
        field_extractor: Optional[FieldExtractor] = None,
        validator: Optional[Validator] = None,
        aggregator: Optional[ConfidenceAggregator] = None,
        timeout_seconds: Optional[float] = None
    ) -> None:
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.input_handler = input_handler or InputHandler(preprocessor=self.preprocessor)
        self.classifier = classifier or DocumentClassifier()
        self.runner = runner or OCRRunner()
        self.recognizers = recognizers or RecognizerFactory()
        self.field_extractor = field_extractor or FieldExtractor()
        self.validator = validator or Validator()
        self.aggregator = aggregator or ConfidenceAggregator()
        self.timeout_seconds = timeout_seconds
        self.text_layer_confidence = float(get_config("input.pdf.text_layer_confidence", 0.95))

        logger.debug("ExtractionPipeline initialized")

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def extract(self, document: RawDocument) -> ExtractionResult:
        """
        Extract fields from a raw document.

        Raises:
            UnsupportedInputFailure: Unsupported media type or empty payload.
            PreprocessingFailure: The payload could not be decoded or enhanced.
            InitializationFailure: No recognizer could be acquired.
            RecognitionFailure: Recognition failed or timed out.
        """
        start = time.monotonic()
        logger.info(f"Processing: {document.source}")

        loaded = self._load(document)
        profile = self.classifier.classify(
            loaded.media_type, document.byte_size, document.filename
        )

        if loaded.has_text_layer:
            logger.info(f"{document.source}: using embedded PDF text, OCR skipped")
            text = loaded.embedded_text
            recognition_confidence = self.text_layer_confidence
            method = PROCESSING_TEXT_LAYER
        else:
            pages = self._preprocess(loaded)
            fused = self._recognize(pages, document.source)
            text = fused.text
            recognition_confidence = fused.confidence
            method = PROCESSING_OCR

        return self._build_result(
            text, profile,
            source_file=document.filename,
            processing_method=method,
            recognition_confidence=recognition_confidence,
            start=start,
        )

    def extract_from_text(self, text: str, profile: Optional[DocumentProfile] = None,
                          source_file: Optional[str] = None) -> ExtractionResult:
        """Run extraction, validation and scoring on already-recognized text. Never raises."""
        return self._build_result(
            text or '', profile or DocumentProfile(),
            source_file=source_file,
            processing_method=PROCESSING_TEXT,
            recognition_confidence=1.0,
            start=time.monotonic(),
        )

    def extract_file(self, filepath: Union[str, Path], media_type: Optional[str] = None) -> ExtractionResult:
        """Convenience wrapper: read a file from disk and extract it."""
        path = Path(filepath)
        try:
            document = RawDocument.from_path(path, media_type)
        except OSError as e:
            raise PreprocessingFailure(str(path), str(e))
        return self.extract(document)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _load(self, document: RawDocument) -> LoadedDocument:
        try:
            return self.input_handler.load(document)
        except ExtractionFailure:
            raise
        except Exception as e:
            logger.error(f"Unexpected error loading {document.source}: {e}")
            raise PreprocessingFailure(document.source, str(e))

    def _preprocess(self, loaded: LoadedDocument) -> List[Image.Image]:
        try:
            return [self.preprocessor.enhance(image) for image in loaded.images]
        except ExtractionFailure:
            raise
        except Exception as e:
            logger.error(f"Preprocessing failed for {loaded.source}: {e}")
            raise PreprocessingFailure(loaded.source, str(e))

    def _recognize(self, pages: List[Image.Image], source: str) -> FusedText:
        try:
            with self.recognizers.acquire() as recognizer:
                return self.runner.run(pages, recognizer, source, self.timeout_seconds)
        except ExtractionFailure as e:
            logger.error(f"{type(e).__name__}: {e}")
            raise
        except Exception as e:
            logger.error(f"Unexpected recognition error for {source}: {e}")
            raise RecognitionFailure(source, str(e))

    def _build_result(
        self,
        text: str,
        profile: DocumentProfile,
        source_file: Optional[str],
        processing_method: str,
        recognition_confidence: float,
        start: float
    ) -> ExtractionResult:
        fields = self.field_extractor.extract(text, profile)
        verdicts = self._validate(fields)
        overall = self._score(verdicts, profile, fields)

        result = ExtractionResult(
            fields=fields,
            overall_confidence=overall,
            profile=profile,
            verdicts=verdicts,
            source_file=source_file,
            processing_method=processing_method,
            recognition_confidence=recognition_confidence,
            processing_time=time.monotonic() - start,
            decision_value=self.aggregator.decision(overall),
        )

        if result.no_signal:
            logger.warning(f"No usable fields found in {source_file or 'text'}")
        else:
            logger.info(
                f"Extracted {source_file or 'text'}: amount={fields.amount}, "
                f"date={fields.date}, merchant={fields.merchant!r}, "
                f"confidence={overall:.2f} ({result.decision})"
            )
        return result

    def _validate(self, fields: ExtractedFields) -> List[FieldVerdict]:
        try:
            return self.validator.validate(fields)
        except Exception as e:
            logger.error(f"Validation failed: {e}")
            fields.warnings.append(f"Validation failed: {e}")
            return []

    def _score(self, verdicts: List[FieldVerdict], profile: DocumentProfile, fields: ExtractedFields) -> float:
        try:
            return self.aggregator.score(verdicts, profile, fields.defaulted)
        except Exception as e:
            logger.error(f"Confidence aggregation failed: {e}")
            fields.warnings.append(f"Confidence aggregation failed: {e}")
            return 0.0
