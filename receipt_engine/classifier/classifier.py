"""
Document Classifier Module.

Guesses type, layout and quality from file metadata alone, so it can
run before recognition. Heuristics, in order of precedence:

    - filename keywords ("screenshot", "statement", "invoice", "receipt")
    - media type (PDF leans invoice / structured)
    - byte size (tiny files lean poor, small ones fair, large ones excellent)
"""

from typing import List, Optional

from config import get_config
from receipt_engine.utils.logger import get_logger

from .document_profile import DocumentProfile, DocumentType, LayoutHint, QualityHint

logger = get_logger(__name__)

# filename keyword -> (document type, layout)
FILENAME_HINTS = (
    ('screenshot', DocumentType.PAYMENT_SCREENSHOT, LayoutHint.UNSTRUCTURED),
    ('statement', DocumentType.BANK_STATEMENT, LayoutHint.TABLE),
    ('invoice', DocumentType.INVOICE, LayoutHint.STRUCTURED),
    ('receipt', DocumentType.RECEIPT, LayoutHint.STRUCTURED),
)

MERCHANT_TYPE_BY_DOCUMENT = {
    DocumentType.PAYMENT_SCREENSHOT: 'digital_payment',
    DocumentType.BANK_STATEMENT: 'bank',
    DocumentType.INVOICE: 'business',
}


class DocumentClassifier:
    """
    Metadata-only document classifier.

    Example:
        >>> classifier = DocumentClassifier()
        >>> profile = classifier.classify("application/pdf", 250000, "march.pdf")
        >>> profile.document_type
        <DocumentType.INVOICE: 'invoice'>
    """

    def __init__(
        self,
        tiny_file_bytes: Optional[int] = None,
        small_file_bytes: Optional[int] = None,
        large_file_bytes: Optional[int] = None,
        language: Optional[str] = None
    ) -> None:
        self.tiny_file_bytes = int(tiny_file_bytes or get_config("classifier.tiny_file_bytes", 20000))
        self.small_file_bytes = int(small_file_bytes or get_config("classifier.small_file_bytes", 100000))
        self.large_file_bytes = int(large_file_bytes or get_config("classifier.large_file_bytes", 2000000))
        self.language = language or get_config("ocr.language", "eng")
        self.default_merchant_type = get_config("classifier.default_merchant_type", "retail")

    def classify(
        self,
        media_type: str,
        byte_size: int,
        filename: Optional[str] = None
    ) -> DocumentProfile:
        """Build a profile from media type, payload size and filename."""
        document_type = DocumentType.RECEIPT
        layout_hint = LayoutHint.STRUCTURED
        quality_hint = QualityHint.GOOD
        notes: List[str] = []

        if (media_type or '').lower() == 'application/pdf':
            document_type = DocumentType.INVOICE

        lowered = (filename or '').lower()
        for keyword, kind, layout in FILENAME_HINTS:
            if keyword in lowered:
                document_type, layout_hint = kind, layout
                break

        if byte_size < self.tiny_file_bytes:
            quality_hint = QualityHint.POOR
            notes.append("Very small file; text may be too low-resolution to read reliably")
        elif byte_size < self.small_file_bytes:
            quality_hint = QualityHint.FAIR
            notes.append("Small file size may indicate low image quality")
        elif byte_size > self.large_file_bytes:
            quality_hint = QualityHint.EXCELLENT

        profile = DocumentProfile(
            document_type=document_type,
            layout_hint=layout_hint,
            quality_hint=quality_hint,
            language=self.language,
            merchant_type_hint=MERCHANT_TYPE_BY_DOCUMENT.get(document_type, self.default_merchant_type),
            advisory_notes=tuple(notes),
        )

        logger.debug(
            f"Classified {filename or '<bytes>'} as {document_type.value} "
            f"({layout_hint.value}, quality={quality_hint.value})"
        )
        return profile
