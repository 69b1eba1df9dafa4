"""
Field Extraction Module for the Receipt Engine.

Independent extractors, each a pure function of the fused text and the
document profile:
    - amount, currency
    - date
    - merchant
    - category, transaction type
    - payment method, transaction id
    - line items, taxes

``FieldExtractor`` runs them all with per-field failure isolation.
"""

from .amount import extract_amount, extract_currency, rank_amount_candidates
from .candidates import Candidate
from .classification import (
    FALLBACK_CATEGORY,
    CATEGORY_KEYWORDS,
    classify_category,
    classify_transaction_type,
)
from .dates import extract_date
from .extraction_result import ExtractedFields, LineItem, TaxEntry, TransactionType, SCORED_FIELDS
from .extractor import FieldExtractor, FIELD_DEFAULTS
from .itemization import extract_line_items, extract_taxes
from .merchant import extract_merchant
from .normalizers import AmountNormalizer, DateNormalizer
from .payment import extract_payment_method, extract_transaction_id

__all__ = [
    'FieldExtractor',
    'FIELD_DEFAULTS',
    'ExtractedFields',
    'LineItem',
    'TaxEntry',
    'TransactionType',
    'SCORED_FIELDS',
    'Candidate',
    'AmountNormalizer',
    'DateNormalizer',
    'FALLBACK_CATEGORY',
    'CATEGORY_KEYWORDS',
    'extract_amount',
    'extract_currency',
    'rank_amount_candidates',
    'extract_date',
    'extract_merchant',
    'classify_category',
    'classify_transaction_type',
    'extract_payment_method',
    'extract_transaction_id',
    'extract_line_items',
    'extract_taxes',
]
