"""
Amount extraction.

Every number the text presents as money becomes a candidate, scored by
the words around it:

    base                                     0.5
    total, grand total, amount due, ...     +0.4
    amount / bill keyword                   +0.3
    currency symbol or code                 +0.2
    payment verb (paid, debited, ...)       +0.2
    within the typical consumer range       +0.1

The highest score wins. Candidates within ``tie_tolerance`` of the best
are treated as tied and the larger magnitude is taken, since settling on
a subtotal or a single line item is the worse mistake. Taking the first
number in the text is exactly what this avoids.

"Total" followed by items, qty, tax, gst, discount or savings names a
count or a component, not the payable, and earns no total bonus.
"""

import re
from decimal import Decimal
from typing import List, Optional, Tuple

from receipt_engine.classifier.document_profile import DocumentProfile
from .candidates import Candidate
from .normalizers import AmountNormalizer

MAX_AMOUNT = Decimal("10000000")
TYPICAL_RANGE = (Decimal("10"), Decimal("50000"))
TIE_TOLERANCE = 0.05

BASE_CONFIDENCE = 0.5
TOTAL_BONUS = 0.4
AMOUNT_KEYWORD_BONUS = 0.3
CURRENCY_BONUS = 0.2
PAYMENT_VERB_BONUS = 0.2
TYPICAL_RANGE_BONUS = 0.1

_NUMBER = r'(?<![\d,])(?<!\d\.)(\d{1,3}(?:,\d{2,3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)(?![\d])'
_CURRENCY_PREFIX = r'(?:₹|\$|€|£|\b(?:rs|inr|usd|eur|gbp)\b\.?)'

# "total" followed by one of these counts or itemizes something else
_TOTAL_QUALIFIERS = r'(?![ \t]*(?:items?|qty|quantity|tax|gst|discount|savings?)\b)'
# phrases that name the payable total
_TOTAL_PHRASES = (
    r'grand\s*total|net\s*total|total\s*amount|total\s*due|amount\s*due|amount\s*paid|'
    r'net\s*amount|final\s*amount|balance\s*due'
)

# (rule name, pattern), most contextually specific first
AMOUNT_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ('keyword_total', re.compile(
        r'\b(?:' + _TOTAL_PHRASES + r'|bill\s*amount|sub\s*total|total' + _TOTAL_QUALIFIERS +
        r'|amount|bill)\b[^\d\n]{0,20}?' + _NUMBER,
        re.IGNORECASE)),
    ('currency_symbol', re.compile(_CURRENCY_PREFIX + r'\s*' + _NUMBER, re.IGNORECASE)),
    ('currency_word', re.compile(
        _NUMBER + r'\s*(?:rupees?|rs\b\.?|inr\b|dollars?|usd\b|euros?|eur\b|pounds?|gbp\b)',
        re.IGNORECASE)),
    ('payment_verb', re.compile(
        r'\b(?:paid|pay|payment\s+of|sent|received|debited|credited|charged|transferred)\b'
        r'[^\d\n]{0,20}?' + _NUMBER,
        re.IGNORECASE)),
    ('standalone_trailing', re.compile(
        r'(?:^|[ \t])' + _NUMBER + r'[ \t]*(?:only|/-)?[ \t]*$',
        re.IGNORECASE | re.MULTILINE)),
]

_TOTAL_KEYWORD = re.compile(
    r'\b(?:' + _TOTAL_PHRASES + r'|total' + _TOTAL_QUALIFIERS + r')\b', re.IGNORECASE)
_AMOUNT_KEYWORD = re.compile(r'\b(?:amount|bill)\b', re.IGNORECASE)
_CURRENCY_MARK = re.compile(
    r'₹|\$|€|£|\b(?:rs|inr|usd|eur|gbp|rupees?|dollars?|euros?|pounds?)\b', re.IGNORECASE)
_PAYMENT_VERB = re.compile(
    r'\b(?:paid|pay|payment|sent|received|debited|credited|charged|transferred)\b', re.IGNORECASE)

# (ISO code, pattern) used to report the document currency
CURRENCY_MARKERS = [
    ('INR', re.compile(r'₹|\b(?:rs|inr|rupees?)\b', re.IGNORECASE)),
    ('USD', re.compile(r'\$|\b(?:usd|dollars?)\b', re.IGNORECASE)),
    ('EUR', re.compile(r'€|\b(?:eur|euros?)\b', re.IGNORECASE)),
    ('GBP', re.compile(r'£|\b(?:gbp|pounds?)\b', re.IGNORECASE)),
]

_normalizer = AmountNormalizer()


def score_context(
    context: str,
    value: Decimal,
    typical_range: Tuple[Decimal, Decimal] = TYPICAL_RANGE
) -> float:
    """Heuristic confidence of an amount read from ``context``."""
    confidence = BASE_CONFIDENCE
    if _TOTAL_KEYWORD.search(context):
        confidence += TOTAL_BONUS
    if _AMOUNT_KEYWORD.search(context):
        confidence += AMOUNT_KEYWORD_BONUS
    if _CURRENCY_MARK.search(context):
        confidence += CURRENCY_BONUS
    if _PAYMENT_VERB.search(context):
        confidence += PAYMENT_VERB_BONUS
    if typical_range[0] <= value <= typical_range[1]:
        confidence += TYPICAL_RANGE_BONUS
    return round(confidence, 4)


def rank_amount_candidates(
    text: str,
    max_amount: Decimal = MAX_AMOUNT,
    typical_range: Tuple[Decimal, Decimal] = TYPICAL_RANGE,
    tie_tolerance: float = TIE_TOLERANCE
) -> List[Candidate]:
    """
    All plausible amount candidates, best first.

    Candidates are ordered by confidence; those within ``tie_tolerance``
    of each other are ordered by magnitude (larger first), then by rule
    rank and position.
    """
    candidates = []

    for rank, (rule, pattern) in enumerate(AMOUNT_PATTERNS):
        for match in pattern.finditer(text or ''):
            value = _normalizer.normalize(match.group(1))
            if value is None or value <= 0 or value >= max_amount:
                continue

            context = match.group(0).strip()
            candidates.append(Candidate(
                value=value,
                confidence=score_context(context, value, typical_range),
                rule=rule,
                context=context,
                rank=rank,
                position=match.start(1),
            ))

    return _order(candidates, tie_tolerance)


def _order(candidates: List[Candidate], tie_tolerance: float) -> List[Candidate]:
    remaining = sorted(candidates, key=lambda c: (-c.confidence, c.rank, c.position))
    ordered = []

    while remaining:
        best_confidence = remaining[0].confidence
        tied = [c for c in remaining if best_confidence - c.confidence <= tie_tolerance + 1e-9]
        tied.sort(key=lambda c: (-c.value, -c.confidence, c.rank, c.position))
        ordered.append(tied[0])
        remaining.remove(tied[0])

    return ordered


def find_amount(
    text: str,
    profile: Optional[DocumentProfile] = None,
    max_amount: Decimal = MAX_AMOUNT,
    typical_range: Tuple[Decimal, Decimal] = TYPICAL_RANGE,
    tie_tolerance: float = TIE_TOLERANCE
) -> Optional[Candidate]:
    ranked = rank_amount_candidates(text, max_amount, typical_range, tie_tolerance)
    return ranked[0] if ranked else None


def extract_amount(text: str, profile: Optional[DocumentProfile] = None, **limits) -> Optional[Decimal]:
    """
    Best transaction total in ``text``.

    Example:
        >>> extract_amount("Grand Total: ₹1,250.75\\nSubtotal: ₹999.00")
        Decimal('1250.75')
    """
    best = find_amount(text, profile, **limits)
    return best.value if best is not None else None


def find_currency(text: str, profile: Optional[DocumentProfile] = None) -> Optional[Candidate]:
    """The currency whose marker appears first in the text."""
    found = None
    for code, pattern in CURRENCY_MARKERS:
        match = pattern.search(text or '')
        if match and (found is None or match.start() < found.position):
            found = Candidate(value=code, confidence=0.8, rule='currency_marker',
                              context=match.group(0), position=match.start())
    return found


def extract_currency(text: str, profile: Optional[DocumentProfile] = None) -> Optional[str]:
    found = find_currency(text, profile)
    return found.value if found is not None else None
