"""
Category and transaction-type classification.

Category: every keyword of a category that occurs in the body scores its
length; occurrences in the merchant name score double that. The highest
total wins, earlier table entries win ties, and no match at all leaves
the category to the fallback applied by ``FieldExtractor``.

Transaction type: income keywords mark the document as income. Without
one, the type is left to the expense default.
"""

import re
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from receipt_engine.classifier.document_profile import DocumentProfile
from .candidates import Candidate
from .extraction_result import TransactionType

FALLBACK_CATEGORY = 'Other'

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    'Food & Dining': [
        'food', 'restaurant', 'cafe', 'dining', 'zomato', 'swiggy', 'dominos',
        'pizza', 'meal', 'burger', 'kitchen', 'bakery', 'coffee',
    ],
    'Groceries': [
        'grocery', 'groceries', 'vegetables', 'fruits', 'supermarket', 'mart',
        'bigbasket', 'grofers', 'blinkit',
    ],
    'Transportation': [
        'uber', 'ola', 'taxi', 'fuel', 'petrol', 'diesel', 'metro', 'bus',
        'train', 'irctc', 'parking', 'toll',
    ],
    'Travel': ['makemytrip', 'goibibo', 'flight', 'airline', 'hotel', 'booking'],
    'Shopping': ['amazon', 'flipkart', 'myntra', 'shopping', 'mall', 'fashion', 'clothing'],
    'Utilities': [
        'electricity', 'water', 'gas', 'internet', 'broadband', 'mobile',
        'recharge', 'airtel', 'jio', 'vodafone', 'bsnl',
    ],
    'Entertainment': [
        'movie', 'netflix', 'spotify', 'game', 'entertainment', 'cinema',
        'bookmyshow', 'streaming',
    ],
    'Healthcare': [
        'hospital', 'doctor', 'medicine', 'pharmacy', 'medical', 'health',
        'clinic', 'apollo', 'medplus', 'pharmeasy',
    ],
    'Education': ['school', 'college', 'tuition', 'course', 'university', 'books'],
}

INCOME_PATTERN = re.compile(
    r'\b(?:received|credited|credit(?!\s*card)|refund(?:ed)?|cashback|salary|'
    r'bonus|income|reimbursement|interest\s+earned)\b',
    re.IGNORECASE
)


def build_category_table(extra: Optional[Mapping[str, Iterable[str]]] = None) -> Dict[str, List[str]]:
    """Built-in table with ``extra`` keywords merged in (new categories appended)."""
    table = {name: list(words) for name, words in CATEGORY_KEYWORDS.items()}
    for name, words in (extra or {}).items():
        merged = table.setdefault(name, [])
        for word in words:
            word = str(word).lower().strip()
            if word and word not in merged:
                merged.append(word)
    return table


def _occurrences(keyword: str, text: str) -> int:
    return 1 if re.search(r'\b' + re.escape(keyword) + r'\b', text) else 0


def score_categories(
    text: str,
    merchant: Optional[str] = None,
    table: Optional[Mapping[str, List[str]]] = None
) -> List[Tuple[str, int]]:
    """(category, score) pairs with a positive score, in table order."""
    body = (text or '').lower()
    merchant_text = (merchant or '').lower()
    scores = []

    for category, keywords in (table or CATEGORY_KEYWORDS).items():
        score = 0
        for keyword in keywords:
            score += len(keyword) * _occurrences(keyword, body)
            score += 2 * len(keyword) * _occurrences(keyword, merchant_text)
        if score > 0:
            scores.append((category, score))

    return scores


def find_category(
    text: str,
    profile: Optional[DocumentProfile] = None,
    merchant: Optional[str] = None,
    table: Optional[Mapping[str, List[str]]] = None
) -> Optional[Candidate]:
    scores = score_categories(text, merchant, table)
    if not scores:
        return None

    best_rank, (category, score) = max(enumerate(scores), key=lambda pair: (pair[1][1], -pair[0]))
    total = sum(s for _, s in scores)
    return Candidate(
        value=category,
        confidence=0.5 + 0.5 * score / total,
        rule='keyword_score',
        context=f"score={score}",
        rank=best_rank,
    )


def classify_category(
    text: str,
    profile: Optional[DocumentProfile] = None,
    merchant: Optional[str] = None,
    table: Optional[Mapping[str, List[str]]] = None
) -> Optional[str]:
    """
    Best-scoring category, or None when no keyword matched.

    Example:
        >>> classify_category("", merchant="Dominos Pizza")
        'Food & Dining'
    """
    found = find_category(text, profile, merchant, table)
    return found.value if found is not None else None


def find_transaction_type(text: str, profile: Optional[DocumentProfile] = None) -> Optional[Candidate]:
    match = INCOME_PATTERN.search(text or '')
    if match is None:
        return None
    return Candidate(
        value=TransactionType.INCOME,
        confidence=0.8,
        rule='income_keyword',
        context=match.group(0),
        position=match.start(),
    )


def classify_transaction_type(text: str, profile: Optional[DocumentProfile] = None) -> TransactionType:
    """
    Income when an income keyword is present, otherwise expense.

    Expense is a deliberate default: receipts record spending far more
    often than earnings.
    """
    found = find_transaction_type(text, profile)
    return found.value if found is not None else TransactionType.EXPENSE
