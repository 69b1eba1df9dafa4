"""
Extracted Field Records.

Classes:
    TransactionType: income / expense
    LineItem: One purchased item
    TaxEntry: One tax line (GST, VAT, ...)
    ExtractedFields: Everything the extractors found in one document
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


class TransactionType(str, Enum):
    INCOME = 'income'
    EXPENSE = 'expense'


@dataclass(frozen=True)
class LineItem:
    """
    A purchased item.

    Attributes:
        description: Item text as printed.
        total_price: Line total.
        quantity: Units, when printed.
        unit_price: Price per unit, when printed and consistent with the total.
    """
    description: str
    total_price: Decimal
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'quantity': _decimal_str(self.quantity),
            'unit_price': _decimal_str(self.unit_price),
            'total_price': _decimal_str(self.total_price),
        }


@dataclass(frozen=True)
class TaxEntry:
    """
    A tax line.

    Attributes:
        kind: Canonical tax name (GST, CGST, SGST, IGST, VAT, SERVICE TAX, ...).
        rate: Percentage rate.
        amount: Tax amount.
    """
    kind: str
    rate: Decimal
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'rate': _decimal_str(self.rate),
            'amount': _decimal_str(self.amount),
        }


# Fields that count toward completeness and receive a verdict
SCORED_FIELDS = (
    'amount',
    'date',
    'merchant',
    'category',
    'transaction_type',
    'payment_method',
    'transaction_id',
    'line_items',
    'taxes',
    'currency',
)


@dataclass
class ExtractedFields:
    """
    Canonical output record of field extraction.

    Every field is optional; ``None`` means "not found", never "failed".

    Attributes:
        amount: Transaction total, positive, two decimal places.
        date: ISO-8601 date string.
        merchant: Merchant or payee name.
        category: Spending category label.
        transaction_type: Income or expense.
        payment_method: Display name of the payment method.
        transaction_id: Transaction / order / reference identifier.
        line_items: Purchased items, when the document is itemized.
        taxes: Tax lines, when printed.
        currency: ISO currency code.
        raw_text: Fused OCR text, kept for audit.
        defaulted: Fields filled with a documented fallback instead of evidence.
        extraction_confidence: Heuristic confidence reported per field.
        warnings: Extractors that failed, kept for diagnostics.
    """
    amount: Optional[Decimal] = None
    date: Optional[str] = None
    merchant: Optional[str] = None
    category: Optional[str] = None
    transaction_type: Optional[TransactionType] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    line_items: Optional[List[LineItem]] = None
    taxes: Optional[List[TaxEntry]] = None
    currency: Optional[str] = None
    raw_text: str = ''
    defaulted: FrozenSet[str] = field(default_factory=frozenset)
    extraction_confidence: Dict[str, float] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def populated_fields(self) -> List[str]:
        """Names of scored fields that carry a value."""
        return [name for name in SCORED_FIELDS if getattr(self, name) is not None]

    def evidence_fields(self) -> List[str]:
        """Populated fields that were found in the text rather than defaulted."""
        return [name for name in self.populated_fields() if name not in self.defaulted]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'amount': _decimal_str(self.amount),
            'date': self.date,
            'merchant': self.merchant,
            'category': self.category,
            'transaction_type': self.transaction_type.value if self.transaction_type else None,
            'payment_method': self.payment_method,
            'transaction_id': self.transaction_id,
            'line_items': [i.to_dict() for i in self.line_items] if self.line_items is not None else None,
            'taxes': [t.to_dict() for t in self.taxes] if self.taxes is not None else None,
            'currency': self.currency,
            'raw_text': self.raw_text,
            'defaulted': sorted(self.defaulted),
            'extraction_confidence': {
                k: round(v, 4) for k, v in sorted(self.extraction_confidence.items())
            },
            'warnings': list(self.warnings),
        }

    def __repr__(self) -> str:
        return (
            f"ExtractedFields(amount={self.amount}, date={self.date!r}, "
            f"merchant={self.merchant!r}, category={self.category!r})"
        )


def _decimal_str(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None
