"""
Date extraction.

Tries, in order: dates behind a "date:" style label, numeric dates with
slashes/dashes/dots, ISO dates, and month-name dates. The first literal
that is a real calendar date wins; impossible dates such as 32/13/2024
are skipped without error.
"""

import re
from typing import Callable, List, Optional, Tuple

from receipt_engine.classifier.document_profile import DocumentProfile
from .candidates import Candidate
from .normalizers import DateNormalizer

_MONTH = r'(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?'

LABEL_PATTERN = re.compile(
    r'\b(?:invoice\s*date|bill\s*date|txn\s*date|transaction\s*date|order\s*date|'
    r'payment\s*date|dated|date)\b\s*[:\-]?\s*(?P<body>[^\n]{4,40})',
    re.IGNORECASE
)

NUMERIC_PATTERN = re.compile(r'(?<![\d/\-.])(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4}|\d{2})(?![\d/\-])')
ISO_PATTERN = re.compile(r'(?<![\d/\-.])(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})(?![\d/\-])')
DAY_MONTH_PATTERN = re.compile(
    r'\b(\d{1,2}(?:st|nd|rd|th)?[\s\-]+' + _MONTH + r'[\s\-,]+\d{2,4})\b', re.IGNORECASE)
MONTH_DAY_PATTERN = re.compile(
    r'\b(' + _MONTH + r'\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{2,4})\b', re.IGNORECASE)

LABELED_CONFIDENCE = 0.9
UNLABELED_CONFIDENCE = 0.7


def _date_forms(normalizer: DateNormalizer) -> List[Tuple[str, re.Pattern, Callable]]:
    return [
        ('numeric', NUMERIC_PATTERN, lambda m: normalizer.from_numeric(*m.groups())),
        ('iso', ISO_PATTERN, lambda m: normalizer.from_iso_parts(*m.groups())),
        ('day_month_name', DAY_MONTH_PATTERN, lambda m: normalizer.from_text(m.group(1))),
        ('month_name_day', MONTH_DAY_PATTERN, lambda m: normalizer.from_text(m.group(1))),
    ]


def _first_valid(
    text: str,
    normalizer: DateNormalizer,
    confidence: float,
    prefix: str,
    offset: int = 0
) -> Optional[Candidate]:
    for rank, (rule, pattern, parse) in enumerate(_date_forms(normalizer)):
        for match in pattern.finditer(text):
            parsed = parse(match)
            if parsed is not None:
                return Candidate(
                    value=normalizer.to_iso(parsed),
                    confidence=confidence,
                    rule=f"{prefix}{rule}",
                    context=match.group(0),
                    rank=rank,
                    position=offset + match.start(),
                )
    return None


def find_date(
    text: str,
    profile: Optional[DocumentProfile] = None,
    day_first: Optional[bool] = None
) -> Optional[Candidate]:
    normalizer = DateNormalizer(day_first=day_first)
    text = text or ''

    for label in LABEL_PATTERN.finditer(text):
        found = _first_valid(label.group('body'), normalizer, LABELED_CONFIDENCE,
                             'labeled_', offset=label.start('body'))
        if found is not None:
            return found

    return _first_valid(text, normalizer, UNLABELED_CONFIDENCE, '')


def extract_date(
    text: str,
    profile: Optional[DocumentProfile] = None,
    day_first: Optional[bool] = None
) -> Optional[str]:
    """
    First valid date in ``text`` as an ISO-8601 string.

    Example:
        >>> extract_date("Date: 15/01/2024")
        '2024-01-15'
        >>> extract_date("32/13/2024") is None
        True
    """
    found = find_date(text, profile, day_first)
    return found.value if found is not None else None
