"""
Data Normalizers Module.

Turns printed dates and amounts into canonical values:
    - dates become ``datetime.date`` / ISO strings
    - amounts become two-place ``Decimal``s
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from dateutil import parser as date_parser

from config import get_config
from receipt_engine.utils.helpers import to_decimal
from receipt_engine.utils.logger import get_logger

logger = get_logger(__name__)

# Anything before 2000-01-01 is an unfilled default, not a parsed value
_SENTINEL_DEFAULT = datetime(1900, 1, 1)


class DateNormalizer:
    """
    Normalizes date literals to ISO-8601.

    Numeric dates are ambiguous between day-first and month-first; the
    configured order is tried first and the other only when the first is
    not a real calendar date.

    Example:
        >>> normalizer = DateNormalizer(day_first=True)
        >>> normalizer.from_numeric("15", "01", "2024")
        datetime.date(2024, 1, 15)
        >>> normalizer.from_numeric("32", "13", "2024") is None
        True
    """

    def __init__(self, day_first: Optional[bool] = None) -> None:
        self.day_first = (
            day_first if day_first is not None
            else bool(get_config("extraction.date.day_first", True))
        )

    @staticmethod
    def _expand_year(year: str) -> int:
        value = int(year)
        if len(year) <= 2:
            value += 2000
        return value

    @staticmethod
    def _build(year: int, month: int, day: int) -> Optional[date]:
        try:
            return date(year, month, day)
        except ValueError:
            return None

    def from_numeric(self, first: str, second: str, year: str) -> Optional[date]:
        """Build a date from ``first/second/year`` in either order."""
        full_year = self._expand_year(year)
        a, b = int(first), int(second)

        orders = [(b, a), (a, b)] if self.day_first else [(a, b), (b, a)]
        for month, day in orders:
            parsed = self._build(full_year, month, day)
            if parsed is not None:
                return parsed
        return None

    def from_iso_parts(self, year: str, month: str, day: str) -> Optional[date]:
        return self._build(int(year), int(month), int(day))

    def from_text(self, date_str: str) -> Optional[date]:
        """
        Parse a month-name date ("15 Jan 2024", "January 15, 2024").

        Returns None unless day, month and year are all present.
        """
        cleaned = re.sub(r'(\d+)(st|nd|rd|th)\b', r'\1', date_str, flags=re.IGNORECASE)
        cleaned = ' '.join(cleaned.replace(',', ' ').split())

        try:
            parsed = date_parser.parse(cleaned, dayfirst=self.day_first, default=_SENTINEL_DEFAULT)
        except (ValueError, OverflowError) as e:
            logger.debug(f"Could not parse date '{date_str}': {e}")
            return None

        if parsed.year == _SENTINEL_DEFAULT.year:
            return None
        return parsed.date()

    @staticmethod
    def to_iso(value: date) -> str:
        return value.strftime("%Y-%m-%d")

    @staticmethod
    def parse_iso(value: str) -> Optional[date]:
        """Parse a strict ISO ``YYYY-MM-DD`` string."""
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except (TypeError, ValueError):
            return None


class AmountNormalizer:
    """
    Normalizes printed amounts to two-place Decimals.

    Handles currency symbols and codes, Indian and Western digit grouping,
    and the European comma-decimal form.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("₹1,250.75")
        Decimal('1250.75')
        >>> normalizer.normalize("€ 1.234,56")
        Decimal('1234.56')
    """

    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹']
    CURRENCY_CODES = ['USD', 'EUR', 'GBP', 'JPY', 'INR', 'RS', 'RS.']

    def normalize(self, amount_str: str) -> Optional[Decimal]:
        if not amount_str:
            return None

        cleaned = self._clean_amount_string(amount_str)
        if not cleaned or not re.search(r'\d', cleaned):
            return None

        cleaned = self._handle_european_format(cleaned)
        return to_decimal(cleaned.replace(',', ''))

    def _clean_amount_string(self, amount_str: str) -> str:
        cleaned = ' '.join(amount_str.split())
        for symbol in self.CURRENCY_SYMBOLS:
            cleaned = cleaned.replace(symbol, '')
        cleaned = re.sub(r'\b(?:usd|eur|gbp|jpy|inr|rs)\b\.?', '', cleaned, flags=re.IGNORECASE)
        cleaned = re.sub(r'/-\s*$', '', cleaned)
        return re.sub(r'[^\d,.]', '', cleaned)

    @staticmethod
    def _handle_european_format(amount_str: str) -> str:
        """Swap separators when a single comma is the decimal mark."""
        if amount_str.count(',') != 1:
            return amount_str

        comma_pos = amount_str.rfind(',')
        dot_pos = amount_str.rfind('.')
        after_comma = amount_str[comma_pos + 1:]

        if comma_pos > dot_pos and len(after_comma) <= 2 and after_comma.isdigit():
            return amount_str.replace('.', '').replace(',', '.')
        return amount_str
