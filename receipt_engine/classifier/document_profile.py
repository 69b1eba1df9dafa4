"""
Document profile produced by the classifier.

The profile is a set of priors, not facts: extractors may consult it to
break ties, but nothing in it overrides evidence found in the text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class DocumentType(str, Enum):
    RECEIPT = 'receipt'
    INVOICE = 'invoice'
    BANK_STATEMENT = 'bank_statement'
    PAYMENT_SCREENSHOT = 'payment_screenshot'
    UNKNOWN = 'unknown'


class LayoutHint(str, Enum):
    STRUCTURED = 'structured'
    UNSTRUCTURED = 'unstructured'
    TABLE = 'table'
    HANDWRITTEN = 'handwritten'


class QualityHint(str, Enum):
    EXCELLENT = 'excellent'
    GOOD = 'good'
    FAIR = 'fair'
    POOR = 'poor'


@dataclass(frozen=True)
class DocumentProfile:
    """
    Cheap, metadata-only guess about a document.

    Attributes:
        document_type: Kind of financial document.
        layout_hint: Expected text layout.
        quality_hint: Expected scan quality.
        language: Recognition language code (Tesseract style, e.g. "eng").
        merchant_type_hint: Coarse merchant family ("retail", "digital_payment", ...).
        advisory_notes: Human-readable remarks for reviewers.
    """
    document_type: DocumentType = DocumentType.RECEIPT
    layout_hint: LayoutHint = LayoutHint.STRUCTURED
    quality_hint: QualityHint = QualityHint.GOOD
    language: str = 'eng'
    merchant_type_hint: str = 'retail'
    advisory_notes: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_itemized(self) -> bool:
        """Whether line items are worth looking for on this kind of document."""
        return self.document_type not in (
            DocumentType.PAYMENT_SCREENSHOT,
            DocumentType.BANK_STATEMENT,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'document_type': self.document_type.value,
            'layout_hint': self.layout_hint.value,
            'quality_hint': self.quality_hint.value,
            'language': self.language,
            'merchant_type_hint': self.merchant_type_hint,
            'advisory_notes': list(self.advisory_notes),
        }
