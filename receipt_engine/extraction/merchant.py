"""
Merchant extraction.

Rules, most specific first:
    - labels: "Merchant:", "Vendor:", "Store:", "Billed by:" ...
    - payee phrases: "paid to X", "sent to X", "from X", "to X", "at X"
    - legal suffixes: "X Pvt Ltd", "X Inc", "X LLC" ...

A match is cleaned and kept only if its length falls inside the
plausible-name band and it is not a generic receipt word.
"""

import re
from typing import List, Optional, Tuple

from receipt_engine.classifier.document_profile import DocumentProfile, DocumentType
from .candidates import Candidate

MIN_LENGTH = 3
MAX_LENGTH = 49

_NAME = r"([A-Za-z][A-Za-z0-9&.' \t-]*?)"

LABEL_RULE = ('label', re.compile(
    r'\b(?:merchant|vendor|store|shop|seller|business|billed\s*by|bill\s*from|'
    r'invoice\s*from|sold\s*by|payee)\b[ \t]*[:\-][ \t]*' + _NAME + r'[ \t]*(?:$|\d|[,|])',
    re.IGNORECASE | re.MULTILINE
), 0.85)

PAYEE_RULE = ('payee_phrase', re.compile(
    r'\b(?:paid\s+to|sent\s+to|payment\s+to|from|to|at)[ \t]+' + _NAME +
    r'(?=[ \t]+(?:pvt|ltd|inc|via|on|for|using|upi|ref)\b|[ \t]*(?:$|\d|[,|]))',
    re.IGNORECASE | re.MULTILINE
), 0.7)

LEGAL_SUFFIX_RULE = ('legal_suffix', re.compile(
    r'^[ \t]*' + _NAME +
    r'[ \t]+(?:pvt\.?[ \t]*ltd\.?|private[ \t]+limited|limited|ltd\.?|inc\.?|llc|llp|corp\.?)[ \t]*$',
    re.IGNORECASE | re.MULTILINE
), 0.75)

# Words that look like names to the patterns but never are merchants
STOP_WORDS = {
    'the', 'and', 'for', 'you', 'your', 'our', 'this', 'that', 'with',
    'total', 'amount', 'date', 'time', 'bill', 'invoice', 'receipt', 'cash',
    'card', 'bank', 'account', 'payment', 'customer', 'thank', 'thanks',
    'balance', 'tax', 'gst', 'subtotal', 'change', 'upi', 'wallet', 'pay',
}


def clean_merchant_name(raw: str) -> str:
    """Collapse whitespace and strip punctuation left around a name."""
    name = re.sub(r'[^A-Za-z0-9&.\' -]', ' ', raw)
    name = ' '.join(name.split())
    return name.strip(" .'-&")


def _plausible(name: str, min_length: int, max_length: int) -> bool:
    if not (min_length <= len(name) <= max_length):
        return False
    if name.lower() in STOP_WORDS:
        return False
    return bool(re.search(r'[A-Za-z]{2}', name))


def _ordered_rules(profile: Optional[DocumentProfile]) -> List[Tuple[str, re.Pattern, float]]:
    if profile is not None and profile.document_type == DocumentType.PAYMENT_SCREENSHOT:
        return [PAYEE_RULE, LABEL_RULE, LEGAL_SUFFIX_RULE]
    return [LABEL_RULE, PAYEE_RULE, LEGAL_SUFFIX_RULE]


def find_merchant(
    text: str,
    profile: Optional[DocumentProfile] = None,
    min_length: int = MIN_LENGTH,
    max_length: int = MAX_LENGTH
) -> Optional[Candidate]:
    for rank, (rule, pattern, confidence) in enumerate(_ordered_rules(profile)):
        for match in pattern.finditer(text or ''):
            name = clean_merchant_name(match.group(1))
            if _plausible(name, min_length, max_length):
                return Candidate(
                    value=name,
                    confidence=confidence,
                    rule=rule,
                    context=match.group(0).strip(),
                    rank=rank,
                    position=match.start(1),
                )
    return None


def extract_merchant(text: str, profile: Optional[DocumentProfile] = None, **limits) -> Optional[str]:
    """
    Merchant name, or None when no plausible name is present.

    Example:
        >>> extract_merchant("Merchant: Dominos Pizza\\nTotal: 450")
        'Dominos Pizza'
    """
    found = find_merchant(text, profile, **limits)
    return found.value if found is not None else None
