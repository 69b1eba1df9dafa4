"""
Metrics Calculator Module.

Compares extracted records with ground truth, field by field.

Comparison rules:
    - amount: numeric, within a relative tolerance
    - date: same calendar digits (separators ignored)
    - merchant, payment_method: case/space-normalized, with a
      Levenshtein-similarity partial match
    - everything else: case/space-normalized exact match

Metrics:
    - per-field accuracy (exact), partial accuracy, extraction rate
    - average verdict confidence per field
    - overall accuracy / extraction rate (mean over fields)
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from config import get_config
from receipt_engine.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_FIELDS = [
    'amount',
    'date',
    'merchant',
    'category',
    'transaction_type',
    'payment_method',
    'transaction_id',
]

# Free-text fields where near misses still count as partial matches
FUZZY_FIELDS = {'merchant', 'payment_method'}


@dataclass
class FieldMetrics:
    """
    Metrics for one field across all samples.

    Attributes:
        field_name: Name of the field.
        total_samples: Samples evaluated.
        extracted_count: Samples where the field had a value.
        correct_count: Exact matches.
        partial_match_count: Exact or partial matches.
        missing_count: Samples where the field was empty.
        confidence_sum: Sum of verdict confidences seen for this field.
        confidence_count: Number of confidences summed.
    """
    field_name: str
    total_samples: int = 0
    extracted_count: int = 0
    correct_count: int = 0
    partial_match_count: int = 0
    missing_count: int = 0
    confidence_sum: float = 0.0
    confidence_count: int = 0

    @property
    def accuracy(self) -> float:
        return self.correct_count / self.total_samples if self.total_samples else 0.0

    @property
    def partial_accuracy(self) -> float:
        return self.partial_match_count / self.total_samples if self.total_samples else 0.0

    @property
    def extraction_rate(self) -> float:
        return self.extracted_count / self.total_samples if self.total_samples else 0.0

    @property
    def avg_confidence(self) -> float:
        return self.confidence_sum / self.confidence_count if self.confidence_count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'accuracy': round(self.accuracy, 4),
            'partial_accuracy': round(self.partial_accuracy, 4),
            'extraction_rate': round(self.extraction_rate, 4),
            'extracted_count': self.extracted_count,
            'correct_count': self.correct_count,
            'missing_count': self.missing_count,
            'avg_confidence': round(self.avg_confidence, 4),
        }


@dataclass
class EvaluationResult:
    """
    Batch evaluation summary.

    Attributes:
        field_metrics: Field name -> FieldMetrics.
        total_samples: Number of documents evaluated.
        pass_threshold: Overall accuracy a run needs to pass.
        timestamp: ISO timestamp of the evaluation.
    """
    field_metrics: Dict[str, FieldMetrics] = field(default_factory=dict)
    total_samples: int = 0
    pass_threshold: float = 0.95
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def _mean(self, attribute: str) -> float:
        if not self.field_metrics:
            return 0.0
        return sum(getattr(m, attribute) for m in self.field_metrics.values()) / len(self.field_metrics)

    @property
    def overall_accuracy(self) -> float:
        return self._mean('accuracy')

    @property
    def overall_extraction_rate(self) -> float:
        return self._mean('extraction_rate')

    @property
    def avg_confidence(self) -> float:
        return self._mean('avg_confidence')

    @property
    def passed(self) -> bool:
        return self.total_samples > 0 and self.overall_accuracy >= self.pass_threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall_accuracy': round(self.overall_accuracy, 4),
            'overall_extraction_rate': round(self.overall_extraction_rate, 4),
            'avg_confidence': round(self.avg_confidence, 4),
            'total_samples': self.total_samples,
            'pass_threshold': self.pass_threshold,
            'passed': self.passed,
            'timestamp': self.timestamp,
            'field_metrics': {name: m.to_dict() for name, m in self.field_metrics.items()},
        }

    def print_report(self) -> str:
        """Formatted plain-text report."""
        lines = [
            "=" * 60,
            "RECEIPT EXTRACTION EVALUATION REPORT",
            "=" * 60,
            f"Timestamp: {self.timestamp}",
            f"Total Samples: {self.total_samples}",
            "-" * 60,
            "",
            "OVERALL METRICS:",
            f"  Accuracy:        {self.overall_accuracy * 100:.1f}%",
            f"  Extraction Rate: {self.overall_extraction_rate * 100:.1f}%",
            f"  Avg Confidence:  {self.avg_confidence:.2f}",
            f"  Result:          {'PASS' if self.passed else 'FAIL'} "
            f"(threshold {self.pass_threshold * 100:.0f}%)",
            "",
            "-" * 60,
            "FIELD-LEVEL METRICS:",
            "",
        ]

        for name, m in self.field_metrics.items():
            lines.extend([
                f"  {name}:",
                f"    Accuracy:        {m.accuracy * 100:.1f}%",
                f"    Partial Match:   {m.partial_accuracy * 100:.1f}%",
                f"    Extracted/Total: {m.extracted_count}/{m.total_samples}",
                f"    Avg Confidence:  {m.avg_confidence:.2f}",
                ""
            ])

        lines.append("=" * 60)
        return "\n".join(lines)


def levenshtein_similarity(s1: str, s2: str) -> float:
    """
    1 - edit distance / longer length.

    Example:
        >>> levenshtein_similarity("dominos", "dominoes")
        0.875
    """
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, 1):
        current = [i]
        for j, c2 in enumerate(s2, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (c1 != c2),
            ))
        previous = current

    return 1.0 - previous[-1] / max(len(s1), len(s2))


class MetricsCalculator:
    """
    Computes evaluation metrics for extracted records.

    Example:
        >>> calculator = MetricsCalculator()
        >>> result = calculator.evaluate(predictions, ground_truth)
        >>> print(result.print_report())
    """

    def __init__(
        self,
        fields: Optional[List[str]] = None,
        amount_tolerance: Optional[float] = None,
        partial_match_threshold: Optional[float] = None,
        pass_threshold: Optional[float] = None
    ) -> None:
        self.fields = fields or get_config("evaluation.fields", DEFAULT_FIELDS) or DEFAULT_FIELDS
        self.amount_tolerance = Decimal(str(
            amount_tolerance if amount_tolerance is not None
            else get_config("evaluation.amount_tolerance", 0.01)
        ))
        self.partial_match_threshold = float(
            partial_match_threshold if partial_match_threshold is not None
            else get_config("evaluation.partial_match_threshold", 0.8)
        )
        self.pass_threshold = float(
            pass_threshold if pass_threshold is not None
            else get_config("evaluation.pass_threshold", 0.95)
        )
        logger.debug(f"MetricsCalculator initialized (fields: {len(self.fields)})")

    def evaluate(
        self,
        predictions: List[Dict[str, Any]],
        ground_truth: List[Dict[str, Any]],
        confidence_scores: Optional[List[Dict[str, float]]] = None
    ) -> EvaluationResult:
        """
        Evaluate predictions against ground truth, pairwise.

        Raises:
            ValueError: If the two lists differ in length.
        """
        if len(predictions) != len(ground_truth):
            raise ValueError(
                f"Predictions ({len(predictions)}) and ground truth "
                f"({len(ground_truth)}) must have same length"
            )

        field_metrics = {
            name: FieldMetrics(field_name=name, total_samples=len(predictions))
            for name in self.fields
        }

        for idx, (pred, gt) in enumerate(zip(predictions, ground_truth)):
            confidences = confidence_scores[idx] if confidence_scores else {}

            for name in self.fields:
                metrics = field_metrics[name]
                if name in confidences:
                    metrics.confidence_sum += float(confidences[name])
                    metrics.confidence_count += 1

                if _is_blank(pred.get(name)):
                    metrics.missing_count += 1
                    continue
                metrics.extracted_count += 1

                is_exact, is_partial = self.compare_values(pred.get(name), gt.get(name), name)
                if is_exact:
                    metrics.correct_count += 1
                if is_partial:
                    metrics.partial_match_count += 1

        return EvaluationResult(
            field_metrics=field_metrics,
            total_samples=len(predictions),
            pass_threshold=self.pass_threshold,
        )

    def evaluate_single(
        self,
        prediction: Dict[str, Any],
        ground_truth: Dict[str, Any],
        confidence_scores: Optional[Dict[str, float]] = None
    ) -> Dict[str, Any]:
        """Per-field comparison for one document."""
        results = {}
        for name in self.fields:
            predicted = prediction.get(name)
            expected = ground_truth.get(name)
            is_exact, is_partial = self.compare_values(predicted, expected, name)
            results[name] = {
                'predicted': predicted,
                'ground_truth': expected,
                'exact_match': is_exact,
                'partial_match': is_partial,
                'confidence': (confidence_scores or {}).get(name, 0.0),
                'extracted': not _is_blank(predicted),
            }
        return results

    def compare_values(self, predicted: Any, expected: Any, field_name: str) -> Tuple[bool, bool]:
        """(is_exact_match, is_partial_match); an exact match is also partial."""
        if _is_blank(expected) or _is_blank(predicted):
            return False, False

        if field_name == 'amount':
            matched = self._amounts_match(predicted, expected)
            return matched, matched

        pred_norm = self._normalize_value(predicted, field_name)
        gt_norm = self._normalize_value(expected, field_name)
        if pred_norm == gt_norm:
            return True, True

        if field_name in FUZZY_FIELDS:
            similarity = levenshtein_similarity(pred_norm, gt_norm)
            return False, similarity >= self.partial_match_threshold

        return False, False

    def _amounts_match(self, predicted: Any, expected: Any) -> bool:
        pred_amount = _to_number(predicted)
        gt_amount = _to_number(expected)
        if pred_amount is None or gt_amount is None:
            return False
        if gt_amount == 0:
            return pred_amount == 0
        return abs(pred_amount - gt_amount) <= abs(gt_amount) * self.amount_tolerance

    @staticmethod
    def _normalize_value(value: Any, field_name: str) -> str:
        text = ' '.join(str(value).strip().lower().split())
        if field_name == 'date':
            text = re.sub(r'[^\d]', '', text)
        return text


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_number(value: Any) -> Optional[Decimal]:
    cleaned = re.sub(r'[^\d.\-]', '', str(value))
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None
