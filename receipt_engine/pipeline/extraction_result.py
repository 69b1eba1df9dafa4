"""
Pipeline result record.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from receipt_engine.classifier.document_profile import DocumentProfile
from receipt_engine.extraction.extraction_result import ExtractedFields
from receipt_engine.postprocessor.confidence import ACCEPT, REJECT, REVIEW
from receipt_engine.postprocessor.validators import FieldVerdict

PROCESSING_OCR = 'ocr'
PROCESSING_TEXT_LAYER = 'pdf_text_layer'
PROCESSING_TEXT = 'text'


@dataclass
class ExtractionResult:
    """
    Everything the pipeline learned about one document.

    Attributes:
        fields: Extracted field values.
        overall_confidence: Aggregate confidence in [0, 1].
        profile: Classifier priors used during extraction.
        verdicts: One verdict per populated field.
        source_file: Filename, when known.
        processing_method: ``ocr``, ``pdf_text_layer`` or ``text``.
        recognition_confidence: Fused OCR confidence (1.0 for supplied text).
        processing_time: Wall-clock seconds for the whole document.
        decision_value: accept / review / reject, set by the aggregator.
    """
    fields: ExtractedFields
    overall_confidence: float
    profile: DocumentProfile
    verdicts: List[FieldVerdict] = field(default_factory=list)
    source_file: Optional[str] = None
    processing_method: str = PROCESSING_OCR
    recognition_confidence: float = 0.0
    processing_time: float = 0.0
    decision_value: Optional[str] = None

    @property
    def no_signal(self) -> bool:
        """True when nothing in the document backed any field."""
        return not self.fields.evidence_fields()

    @property
    def decision(self) -> str:
        if self.no_signal:
            return REJECT
        return self.decision_value or REVIEW

    @property
    def needs_review(self) -> bool:
        return self.decision != ACCEPT

    def verdict_for(self, field_name: str) -> Optional[FieldVerdict]:
        for verdict in self.verdicts:
            if verdict.field == field_name:
                return verdict
        return None

    def to_dict(self, include_raw_text: bool = True) -> Dict[str, Any]:
        fields = self.fields.to_dict()
        if not include_raw_text:
            fields.pop('raw_text', None)
        return {
            'source_file': self.source_file,
            'fields': fields,
            'overall_confidence': round(self.overall_confidence, 4),
            'decision': self.decision,
            'no_signal': self.no_signal,
            'profile': self.profile.to_dict(),
            'verdicts': [v.to_dict() for v in self.verdicts],
            'processing_method': self.processing_method,
            'recognition_confidence': round(self.recognition_confidence, 4),
            'processing_time': round(self.processing_time, 3),
        }

    def to_json(self, indent: Optional[int] = 2, include_raw_text: bool = True) -> str:
        return json.dumps(self.to_dict(include_raw_text), indent=indent, ensure_ascii=False)

    def __repr__(self) -> str:
        return (
            f"ExtractionResult(source={self.source_file!r}, "
            f"confidence={self.overall_confidence:.2f}, decision={self.decision!r})"
        )
