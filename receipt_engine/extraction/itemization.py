"""
Line-item and tax extraction.

Both work line by line and are best-effort: a document that is not
itemized, or whose layout defeats the patterns, simply yields None.
"""

import re
from decimal import Decimal
from typing import List, Optional

from receipt_engine.classifier.document_profile import DocumentProfile
from .candidates import Candidate
from .extraction_result import LineItem, TaxEntry
from .normalizers import AmountNormalizer

_PRICE = r'\d{1,3}(?:,\d{2,3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?'
_CURRENCY = r'(?:₹|\$|€|£|rs\.?|inr)?'
_DESCRIPTION = r"(?P<desc>[A-Za-z][A-Za-z0-9 &.'()/+-]{1,48}?)"

ITEM_PATTERNS = [
    ('qty_x_unit', re.compile(
        r'^\s*' + _DESCRIPTION + r'\s+(?P<qty>\d{1,3})\s*[xX@*]\s*' + _CURRENCY + r'\s*(?P<unit>' + _PRICE +
        r')\s+' + _CURRENCY + r'\s*(?P<total>' + _PRICE + r')\s*$', re.IGNORECASE)),
    ('qty_unit_total', re.compile(
        r'^\s*' + _DESCRIPTION + r'\s+(?P<qty>\d{1,3})\s+' + _CURRENCY + r'\s*(?P<unit>\d+\.\d{2})\s+' +
        _CURRENCY + r'\s*(?P<total>\d+\.\d{2})\s*$', re.IGNORECASE)),
    ('description_total', re.compile(
        r'^\s*' + _DESCRIPTION + r'\s+' + _CURRENCY + r'\s*(?P<total>\d{1,3}(?:,\d{3})*\.\d{2}|\d+\.\d{2})\s*$',
        re.IGNORECASE)),
]

# Lines that carry amounts but are not purchased items
SUMMARY_WORDS = re.compile(
    r'\b(?:total|subtotal|sub\s*total|tax|gst|cgst|sgst|igst|vat|cess|amount|balance|change|'
    r'cash|card|discount|due|paid|round(?:ing)?\s*off|tip|service\s*charge|savings|net)\b',
    re.IGNORECASE
)

TAX_LINE = re.compile(
    r'\b(?P<kind>cgst|sgst|igst|utgst|gst|vat|service\s*tax|sales\s*tax|cess)\b'
    r'[^\n%]*?(?P<rate>\d{1,2}(?:\.\d{1,2})?)\s*%'
    r'[^\n]*?' + _CURRENCY + r'\s*(?P<amount>\d{1,3}(?:,\d{2,3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)\s*$',
    re.IGNORECASE | re.MULTILINE
)

_normalizer = AmountNormalizer()
_ROUNDING_SLACK = Decimal("0.01")


def _line_item_from(match) -> Optional[LineItem]:
    description = ' '.join(match.group('desc').split()).strip(" .-")
    if len(description) < 2 or SUMMARY_WORDS.search(description):
        return None

    total = _normalizer.normalize(match.group('total'))
    if total is None or total <= 0:
        return None

    quantity = unit_price = None
    groups = match.groupdict()
    if groups.get('qty'):
        quantity = Decimal(groups['qty'])
        if quantity <= 0:
            return None
    if groups.get('unit'):
        unit_price = _normalizer.normalize(groups['unit'])
        # A unit price that does not multiply out to the total is a misread
        if unit_price is not None and quantity is not None:
            slack = max(_ROUNDING_SLACK, total * _ROUNDING_SLACK)
            if abs(unit_price * quantity - total) > slack:
                unit_price = None

    return LineItem(description=description, total_price=total,
                    quantity=quantity, unit_price=unit_price)


def find_line_items(text: str, profile: Optional[DocumentProfile] = None) -> Optional[Candidate]:
    if profile is not None and not profile.is_itemized:
        return None

    items = []
    for line in (text or '').splitlines():
        for _rule, pattern in ITEM_PATTERNS:
            match = pattern.match(line)
            if match is None:
                continue
            item = _line_item_from(match)
            if item is not None:
                items.append(item)
            break

    if not items:
        return None

    with_quantity = sum(1 for i in items if i.quantity is not None)
    return Candidate(
        value=items,
        confidence=0.5 + 0.3 * with_quantity / len(items),
        rule='line_patterns',
        context=f"{len(items)} items",
    )


def extract_line_items(text: str, profile: Optional[DocumentProfile] = None):
    """
    Purchased items, or None when the text is not itemized.

    Example:
        >>> extract_line_items("Masala Dosa 2 x 60.00 120.00")[0].total_price
        Decimal('120.00')
    """
    found = find_line_items(text, profile)
    return found.value if found is not None else None


def _canonical_tax_kind(raw: str) -> str:
    return ' '.join(raw.upper().split())


def find_taxes(text: str, profile: Optional[DocumentProfile] = None) -> Optional[Candidate]:
    entries: List[TaxEntry] = []
    for match in TAX_LINE.finditer(text or ''):
        rate = Decimal(match.group('rate'))
        amount = _normalizer.normalize(match.group('amount'))
        if amount is None or amount <= 0 or not (0 < rate <= 100):
            continue

        entry = TaxEntry(kind=_canonical_tax_kind(match.group('kind')), rate=rate, amount=amount)
        if entry not in entries:
            entries.append(entry)

    if not entries:
        return None
    return Candidate(value=entries, confidence=0.7, rule='tax_lines', context=f"{len(entries)} entries")


def extract_taxes(text: str, profile: Optional[DocumentProfile] = None):
    """
    Tax lines, or None when no tax with a rate and amount is printed.

    Example:
        >>> extract_taxes("CGST @ 2.5% 11.25")[0].kind
        'CGST'
    """
    found = find_taxes(text, profile)
    return found.value if found is not None else None
