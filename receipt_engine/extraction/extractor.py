"""
Field Extractor.

Runs every field extractor over the fused text and assembles an
``ExtractedFields`` record. Each extractor runs in its own guard: one
that raises is logged and its field left empty, and the rest carry on.

Usage:
    from receipt_engine.extraction import FieldExtractor

    extractor = FieldExtractor()
    fields = extractor.extract(fused_text, profile)
    print(fields.amount, fields.date, fields.merchant)
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from config import get_config
from receipt_engine.classifier.document_profile import DocumentProfile
from receipt_engine.utils.logger import get_logger

from .amount import find_amount, find_currency
from .candidates import Candidate
from .classification import FALLBACK_CATEGORY, build_category_table, find_category, find_transaction_type
from .dates import find_date
from .extraction_result import ExtractedFields, TransactionType
from .itemization import find_line_items, find_taxes
from .merchant import find_merchant
from .payment import find_payment_method, find_transaction_id

logger = get_logger(__name__)

# Applied when an extractor finds nothing; recorded in ExtractedFields.defaulted
FIELD_DEFAULTS: Dict[str, Any] = {
    'category': FALLBACK_CATEGORY,
    'transaction_type': TransactionType.EXPENSE,
}


class FieldExtractor:
    """
    Independent, failure-isolated field extraction.

    Attributes:
        max_amount: Amounts at or above this are treated as misread ids.
        typical_range: Amount range that earns the typical-range bonus.
        tie_tolerance: Confidence gap within which amounts count as tied.
        day_first: Preferred order for ambiguous numeric dates.
        category_table: Category -> keywords table.

    Example:
        >>> extractor = FieldExtractor()
        >>> fields = extractor.extract("Dominos Pizza\\nGrand Total: Rs 450.50")
        >>> fields.amount, fields.category
        (Decimal('450.50'), 'Food & Dining')
    """

    def __init__(
        self,
        max_amount: Optional[Decimal] = None,
        typical_range: Optional[Tuple[Decimal, Decimal]] = None,
        tie_tolerance: Optional[float] = None,
        day_first: Optional[bool] = None,
        merchant_length: Optional[Tuple[int, int]] = None,
        extra_categories: Optional[Dict[str, List[str]]] = None
    ) -> None:
        self.max_amount = Decimal(str(
            max_amount if max_amount is not None
            else get_config("extraction.amount.max_amount", 10000000)
        ))
        self.typical_range = typical_range or (
            Decimal(str(get_config("extraction.amount.typical_min", 10))),
            Decimal(str(get_config("extraction.amount.typical_max", 50000))),
        )
        self.tie_tolerance = float(
            tie_tolerance if tie_tolerance is not None
            else get_config("extraction.amount.tie_tolerance", 0.05)
        )
        self.day_first = (
            day_first if day_first is not None
            else bool(get_config("extraction.date.day_first", True))
        )
        self.merchant_length = merchant_length or (
            int(get_config("extraction.merchant.min_length", 3)),
            int(get_config("extraction.merchant.max_length", 49)),
        )
        self.category_table = build_category_table(
            extra_categories if extra_categories is not None
            else get_config("extraction.categories", {}) or {}
        )

        self._extractors = self._build_extractors()

    def _build_extractors(self) -> List[Tuple[str, Callable[[str, DocumentProfile, Dict[str, Any]], Optional[Candidate]]]]:
        """(field, extractor) pairs in run order; category reads the merchant found before it."""
        return [
            ('amount', lambda text, profile, found: find_amount(
                text, profile, self.max_amount, self.typical_range, self.tie_tolerance)),
            ('date', lambda text, profile, found: find_date(text, profile, self.day_first)),
            ('merchant', lambda text, profile, found: find_merchant(
                text, profile, self.merchant_length[0], self.merchant_length[1])),
            ('category', lambda text, profile, found: find_category(
                text, profile, found.get('merchant'), self.category_table)),
            ('transaction_type', lambda text, profile, found: find_transaction_type(text, profile)),
            ('payment_method', lambda text, profile, found: find_payment_method(text, profile)),
            ('transaction_id', lambda text, profile, found: find_transaction_id(text, profile)),
            ('line_items', lambda text, profile, found: find_line_items(text, profile)),
            ('taxes', lambda text, profile, found: find_taxes(text, profile)),
            ('currency', lambda text, profile, found: find_currency(text, profile)),
        ]

    @property
    def field_names(self) -> List[str]:
        return [name for name, _ in self._extractors]

    def extract(self, text: str, profile: Optional[DocumentProfile] = None) -> ExtractedFields:
        """
        Extract every field from ``text``. Never raises.

        Args:
            text: Fused OCR text (or a digital PDF's text layer).
            profile: Classifier hints; a neutral profile is used when None.
        """
        profile = profile or DocumentProfile()
        text = text or ''

        found: Dict[str, Any] = {}
        confidence: Dict[str, float] = {}
        warnings: List[str] = []

        for field_name, extractor in self._extractors:
            try:
                candidate = extractor(text, profile, found)
            except Exception as e:
                logger.warning(f"Error extracting {field_name}: {e}")
                warnings.append(f"Error extracting {field_name}: {e}")
                continue

            if candidate is not None:
                found[field_name] = candidate.value
                confidence[field_name] = candidate.normalized_confidence
                logger.debug(f"Extracted {field_name}: {candidate.value!r} via {candidate.rule}")

        defaulted = set()
        for field_name, default in FIELD_DEFAULTS.items():
            if found.get(field_name) is None:
                found[field_name] = default
                defaulted.add(field_name)

        fields = ExtractedFields(
            raw_text=text,
            defaulted=frozenset(defaulted),
            extraction_confidence=confidence,
            warnings=warnings,
            **found
        )

        logger.info(
            f"Extraction complete: {len(fields.evidence_fields())}/{len(self._extractors)} fields "
            f"found ({', '.join(sorted(defaulted)) or 'no'} defaults applied)"
        )
        return fields
