"""
Payment method and transaction identifier extraction.

Payment method candidates, best first: an explicit "Payment mode:" label,
a named payment platform, UPI, card type, net banking, wallet, cash.

Transaction ids are read behind their labels (Transaction ID, UTR, RRN,
Order ID, ...) and must be 6-40 characters with at least one digit.
"""

import re
from typing import List, Optional, Tuple

from receipt_engine.classifier.document_profile import DocumentProfile, DocumentType
from .candidates import Candidate

# (display name, pattern), most specific first
PAYMENT_METHODS: List[Tuple[str, re.Pattern]] = [
    ('Paytm', re.compile(r'\bpaytm\b', re.IGNORECASE)),
    ('PhonePe', re.compile(r'\bphone\s*pe\b', re.IGNORECASE)),
    ('Google Pay', re.compile(r'\b(?:google\s*pay|g\s*pay|tez)\b', re.IGNORECASE)),
    ('Amazon Pay', re.compile(r'\bamazon\s*pay\b', re.IGNORECASE)),
    ('Razorpay', re.compile(r'\brazorpay\b', re.IGNORECASE)),
    ('MobiKwik', re.compile(r'\bmobikwik\b', re.IGNORECASE)),
    ('Freecharge', re.compile(r'\bfreecharge\b', re.IGNORECASE)),
    ('BHIM', re.compile(r'\bbhim\b', re.IGNORECASE)),
    ('UPI', re.compile(r'\bupi\b', re.IGNORECASE)),
    ('Credit Card', re.compile(r'\bcredit\s*card\b', re.IGNORECASE)),
    ('Debit Card', re.compile(r'\bdebit\s*card\b', re.IGNORECASE)),
    ('Card', re.compile(r'\b(?:card|visa|mastercard|rupay|amex)\b', re.IGNORECASE)),
    ('Net Banking', re.compile(r'\b(?:net\s*banking|netbanking|imps|neft|rtgs)\b', re.IGNORECASE)),
    ('Wallet', re.compile(r'\bwallet\b', re.IGNORECASE)),
    ('Cash', re.compile(r'\bcash\b(?!\s*back)', re.IGNORECASE)),
]

PAYMENT_LABEL = re.compile(
    r'\b(?:payment\s*(?:method|mode|type)|paid\s*(?:via|using|by)|mode\s*of\s*payment|tender(?:ed)?)\b'
    r'[ \t]*[:\-]?[ \t]*([A-Za-z][A-Za-z ]{1,30}?)[ \t]*(?:$|[,|\d])',
    re.IGNORECASE | re.MULTILINE
)

TRANSACTION_ID_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ('transaction_id', re.compile(
        r'\b(?:transaction|txn|trans)\s*(?:id|no\.?|number|ref(?:erence)?)\s*[:#.\-]?\s*([A-Za-z0-9][A-Za-z0-9_\-]{3,})',
        re.IGNORECASE)),
    ('utr', re.compile(r'\b(?:utr|rrn|upi\s*ref(?:erence)?)\s*(?:no\.?|number|id)?\s*[:#.\-]?\s*([A-Za-z0-9]{4,})',
                       re.IGNORECASE)),
    ('payment_id', re.compile(
        r'\b(?:payment|order|booking)\s*(?:id|no\.?|number)\s*[:#.\-]?\s*([A-Za-z0-9][A-Za-z0-9_\-]{3,})',
        re.IGNORECASE)),
    ('reference', re.compile(
        r'\b(?:ref(?:erence)?|invoice|bill|receipt)\s*(?:id|no\.?|number|#)\s*[:#.\-]?\s*([A-Za-z0-9][A-Za-z0-9_/\-]{3,})',
        re.IGNORECASE)),
]

MIN_ID_LENGTH = 6
MAX_ID_LENGTH = 40


def canonical_payment_method(raw: str) -> Optional[str]:
    """Map free text to a known display name; None when it names no method."""
    for name, pattern in PAYMENT_METHODS:
        if pattern.search(raw):
            return name
    return None


def find_payment_method(text: str, profile: Optional[DocumentProfile] = None) -> Optional[Candidate]:
    text = text or ''

    for label in PAYMENT_LABEL.finditer(text):
        method = canonical_payment_method(label.group(1))
        if method is None:
            continue
        return Candidate(
            value=method,
            confidence=0.9,
            rule='label',
            context=label.group(0).strip(),
            position=label.start(1),
        )

    for rank, (name, pattern) in enumerate(PAYMENT_METHODS, 1):
        match = pattern.search(text)
        if match is not None:
            return Candidate(
                value=name,
                confidence=0.8 if rank <= 9 else 0.65,
                rule='keyword',
                context=match.group(0),
                rank=rank,
                position=match.start(),
            )
    return None


def extract_payment_method(text: str, profile: Optional[DocumentProfile] = None) -> Optional[str]:
    """
    Payment method display name.

    Example:
        >>> extract_payment_method("Paid via PhonePe UPI")
        'PhonePe'
    """
    found = find_payment_method(text, profile)
    return found.value if found is not None else None


def is_plausible_transaction_id(value: str) -> bool:
    return (
        MIN_ID_LENGTH <= len(value) <= MAX_ID_LENGTH
        and any(ch.isdigit() for ch in value)
    )


def _ordered_id_patterns(profile: Optional[DocumentProfile]) -> List[Tuple[str, re.Pattern]]:
    if profile is not None and profile.document_type == DocumentType.PAYMENT_SCREENSHOT:
        by_name = dict(TRANSACTION_ID_PATTERNS)
        return [('utr', by_name['utr'])] + [p for p in TRANSACTION_ID_PATTERNS if p[0] != 'utr']
    return TRANSACTION_ID_PATTERNS


def find_transaction_id(text: str, profile: Optional[DocumentProfile] = None) -> Optional[Candidate]:
    for rank, (rule, pattern) in enumerate(_ordered_id_patterns(profile)):
        for match in pattern.finditer(text or ''):
            value = match.group(1).strip('-_/')
            if is_plausible_transaction_id(value):
                return Candidate(
                    value=value,
                    confidence=0.85 if rank == 0 else 0.75,
                    rule=rule,
                    context=match.group(0),
                    rank=rank,
                    position=match.start(1),
                )
    return None


def extract_transaction_id(text: str, profile: Optional[DocumentProfile] = None) -> Optional[str]:
    """
    Transaction / order / reference identifier.

    Example:
        >>> extract_transaction_id("UPI Ref No: 412345678901")
        '412345678901'
    """
    found = find_transaction_id(text, profile)
    return found.value if found is not None else None
