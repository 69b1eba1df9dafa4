"""
Field Validators Module.

One plausibility check per field, each returning a ``FieldVerdict``.
Validators only assess: they never change the extracted values, and a
check that breaks yields an invalid verdict instead of an exception.

Verdict confidence:
    - invalid values get a low fixed confidence
    - fallback values (category "Other", default expense) get
      ``defaulted_confidence``
    - valid values get at least ``valid_floor``, scaled up toward the
      field's base confidence by the extractor's own confidence
"""

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from config import get_config
from receipt_engine.extraction.classification import CATEGORY_KEYWORDS, FALLBACK_CATEGORY
from receipt_engine.extraction.extraction_result import ExtractedFields, TransactionType, SCORED_FIELDS
from receipt_engine.extraction.normalizers import DateNormalizer
from receipt_engine.utils.logger import get_logger

logger = get_logger(__name__)

INVALID_CONFIDENCE = 0.1

# Repeated digits are usually placeholders or misreads
SUSPICIOUS_AMOUNT = re.compile(r'^(?:1{4,}|9{4,})(?:\.0+)?$')

# Identifier shapes issued by common Indian payment rails
KNOWN_ID_SHAPES = [
    re.compile(r'^\d{12}$'),                   # UPI UTR / RRN
    re.compile(r'^T\d{20,22}$'),               # PhonePe
    re.compile(r'^pay_[A-Za-z0-9]{14}$'),      # Razorpay
    re.compile(r'^[A-Z]{2,4}\d{8,20}$'),       # bank / wallet references
]


@dataclass
class FieldVerdict:
    """
    Assessment of one extracted field.

    Attributes:
        field: Field name.
        is_valid: Whether the value passed its plausibility check.
        confidence: Confidence in the value, in [0, 1].
        correction_suggestions: Hints for a reviewer.
        rationale: Why the verdict came out this way.
    """
    field: str
    is_valid: bool
    confidence: float
    correction_suggestions: List[str] = field(default_factory=list)
    rationale: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field': self.field,
            'is_valid': self.is_valid,
            'confidence': round(self.confidence, 4),
            'correction_suggestions': list(self.correction_suggestions),
            'rationale': self.rationale,
        }


# (is_valid, base confidence, suggestions, rationale)
CheckResult = Tuple[bool, float, List[str], str]


class Validator:
    """
    Produces one ``FieldVerdict`` per populated field.

    Example:
        >>> validator = Validator()
        >>> verdicts = validator.validate(ExtractedFields(amount=Decimal("0.00")))
        >>> verdicts[0].is_valid
        False
    """

    def __init__(
        self,
        max_amount: Optional[Decimal] = None,
        min_year: Optional[int] = None,
        max_year: Optional[int] = None,
        future_tolerance_days: Optional[int] = None,
        min_merchant_length: Optional[int] = None,
        valid_floor: Optional[float] = None,
        defaulted_confidence: Optional[float] = None,
        categories: Optional[List[str]] = None,
        today: Optional[date] = None
    ) -> None:
        self.max_amount = Decimal(str(
            max_amount if max_amount is not None
            else get_config("extraction.amount.max_amount", 10000000)
        ))
        self.min_year = int(min_year or get_config("validation.min_year", 2000))
        self.max_year = int(max_year or get_config("validation.max_year", 2100))
        self.future_tolerance = timedelta(days=int(
            future_tolerance_days if future_tolerance_days is not None
            else get_config("validation.future_tolerance_days", 30)
        ))
        self.min_merchant_length = int(
            min_merchant_length or get_config("extraction.merchant.min_length", 3)
        )
        self.valid_floor = float(
            valid_floor if valid_floor is not None else get_config("validation.valid_floor", 0.6)
        )
        self.defaulted_confidence = float(
            defaulted_confidence if defaulted_confidence is not None
            else get_config("validation.defaulted_confidence", 0.3)
        )
        known = categories or (
            list(CATEGORY_KEYWORDS) + list((get_config("extraction.categories", {}) or {}).keys())
        )
        self.categories = set(known) | {FALLBACK_CATEGORY}
        self._today = today

        self._checks: Dict[str, Callable[[Any, ExtractedFields], CheckResult]] = {
            'amount': self._check_amount,
            'date': self._check_date,
            'merchant': self._check_merchant,
            'category': self._check_category,
            'transaction_type': self._check_transaction_type,
            'payment_method': self._check_payment_method,
            'transaction_id': self._check_transaction_id,
            'line_items': self._check_line_items,
            'taxes': self._check_taxes,
            'currency': self._check_currency,
        }

    @property
    def today(self) -> date:
        return self._today or date.today()

    def validate(self, fields: ExtractedFields) -> List[FieldVerdict]:
        """Assess every populated field, in ``SCORED_FIELDS`` order. Never raises."""
        verdicts = []
        for name in SCORED_FIELDS:
            value = getattr(fields, name)
            if value is None:
                continue
            verdicts.append(self.validate_field(name, value, fields))

        invalid = [v.field for v in verdicts if not v.is_valid]
        if invalid:
            logger.info(f"Validation flagged: {', '.join(invalid)}")
        return verdicts

    def validate_field(self, name: str, value: Any, fields: Optional[ExtractedFields] = None) -> FieldVerdict:
        fields = fields or ExtractedFields()
        check = self._checks.get(name)
        if check is None:
            return FieldVerdict(name, False, 0.0, [], f"No validator for field '{name}'")

        try:
            is_valid, base, suggestions, rationale = check(value, fields)
        except Exception as e:
            logger.warning(f"Validator for {name} failed: {e}")
            return FieldVerdict(name, False, 0.0, ["Review this field manually"], f"Validator error: {e}")

        if not is_valid:
            confidence = INVALID_CONFIDENCE
        elif name in fields.defaulted:
            confidence = self.defaulted_confidence
            rationale = f"{rationale}; fallback value, no supporting text found"
        else:
            scale = fields.extraction_confidence.get(name, 1.0)
            base = max(base, self.valid_floor)
            confidence = self.valid_floor + (base - self.valid_floor) * scale

        return FieldVerdict(
            field=name,
            is_valid=is_valid,
            confidence=max(0.0, min(1.0, confidence)),
            correction_suggestions=suggestions,
            rationale=rationale,
        )

    # -------------------------------------------------------------------------
    # Per-field checks
    # -------------------------------------------------------------------------

    def _check_amount(self, amount: Decimal, fields: ExtractedFields) -> CheckResult:
        if amount <= 0:
            return False, 0.0, ["Amount should be greater than 0"], f"Amount {amount} is not positive"
        if amount >= self.max_amount:
            return (False, 0.0,
                    [f"Amount should be below {self.max_amount}; check for a misread reference number"],
                    f"Amount {amount} exceeds the plausible ceiling")
        if SUSPICIOUS_AMOUNT.match(str(amount)):
            return (True, self.valid_floor, ["Amount looks like a placeholder; confirm it"],
                    "Amount is a repeated-digit pattern")
        return True, 0.9, [], "Amount is positive and below the ceiling"

    def _check_date(self, value: str, fields: ExtractedFields) -> CheckResult:
        parsed = DateNormalizer.parse_iso(value)
        if parsed is None:
            return False, 0.0, ["Enter the date as YYYY-MM-DD"], f"'{value}' is not a calendar date"
        if parsed.year < self.min_year:
            return False, 0.0, ["Check the year"], f"Year {parsed.year} is too old"
        if parsed.year > self.max_year:
            return False, 0.0, ["Check the year"], f"Year {parsed.year} is too far in the future"
        if parsed > self.today + self.future_tolerance:
            return (True, self.valid_floor, ["Date is in the future; day and month may be swapped"],
                    "Date is later than expected for a completed transaction")
        return True, 0.85, [], "Date is a real calendar date in range"

    def _check_merchant(self, value: str, fields: ExtractedFields) -> CheckResult:
        if len(value.strip()) < self.min_merchant_length:
            return False, 0.0, ["Merchant name looks truncated"], "Merchant name is too short"
        return True, 0.8, [], "Merchant name has a plausible length"

    def _check_category(self, value: str, fields: ExtractedFields) -> CheckResult:
        if value not in self.categories:
            return False, 0.0, [f"Choose one of: {', '.join(sorted(self.categories))}"], \
                f"Unknown category '{value}'"
        if value == FALLBACK_CATEGORY:
            return True, self.valid_floor, ["Pick a more specific category"], "No category keywords matched"
        return True, 0.75, [], "Category keywords matched"

    def _check_transaction_type(self, value: Any, fields: ExtractedFields) -> CheckResult:
        if not isinstance(value, TransactionType):
            return False, 0.0, ["Choose income or expense"], f"Unknown transaction type '{value}'"
        return True, 0.75, [], f"Classified as {value.value}"

    def _check_payment_method(self, value: str, fields: ExtractedFields) -> CheckResult:
        if not value.strip():
            return False, 0.0, ["Select a payment method"], "Payment method is empty"
        return True, 0.75, [], "Payment method recognized"

    def _check_transaction_id(self, value: str, fields: ExtractedFields) -> CheckResult:
        if not (6 <= len(value) <= 40) or not re.match(r'^[A-Za-z0-9_/\-]+$', value):
            return False, 0.0, ["Transaction id should be 6-40 letters or digits"], \
                "Transaction id has an implausible shape"
        if any(shape.match(value) for shape in KNOWN_ID_SHAPES):
            return True, 0.9, [], "Transaction id matches a known format"
        return True, 0.7, [], "Transaction id has a plausible shape"

    def _check_line_items(self, items: list, fields: ExtractedFields) -> CheckResult:
        if not items or any(item.total_price <= 0 for item in items):
            return False, 0.0, ["Remove items without a positive price"], "Line items contain non-positive totals"

        suggestions = []
        items_total = sum((item.total_price for item in items), Decimal("0"))
        if fields.amount is not None and items_total > fields.amount:
            suggestions.append("Line items add up to more than the total; some may be misread")
        return True, 0.65, suggestions, f"{len(items)} line items with positive totals"

    def _check_taxes(self, taxes: list, fields: ExtractedFields) -> CheckResult:
        if not taxes or any(not (0 < t.rate <= 100) or t.amount <= 0 for t in taxes):
            return False, 0.0, ["Check tax rates and amounts"], "Tax entries have implausible rates or amounts"

        suggestions = []
        tax_total = sum((t.amount for t in taxes), Decimal("0"))
        if fields.amount is not None and tax_total >= fields.amount:
            suggestions.append("Taxes are not smaller than the total; the total may be misread")
        return True, 0.7, suggestions, f"{len(taxes)} tax entries in range"

    def _check_currency(self, value: str, fields: ExtractedFields) -> CheckResult:
        if not re.match(r'^[A-Z]{3}$', value or ''):
            return False, 0.0, ["Use a three-letter currency code"], f"'{value}' is not a currency code"
        return True, 0.7, [], "Currency marker found"
