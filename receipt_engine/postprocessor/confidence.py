"""
Confidence Aggregation Module.

Combines field verdicts and the document profile into one overall
confidence in [0, 1], and maps it to an accept / review / reject
decision.

    score = base
          + mean_weight * mean(verdict confidences)
          + min(completeness_step * n_validated, completeness_cap)
          + quality_adjustment[quality_hint]
          + document_type_bonus (known document type only)

``n_validated`` counts valid verdicts on evidence-backed fields. With
``completeness_step >= mean_weight * (1 - valid_floor) / 2`` one more
validated field can never lower the score, however much it drags the
mean down.
"""

from typing import Dict, List, Optional

from config import get_config
from receipt_engine.classifier.document_profile import DocumentProfile, DocumentType, QualityHint
from receipt_engine.extraction.extraction_result import SCORED_FIELDS
from receipt_engine.utils.exceptions import ConfigurationError
from receipt_engine.utils.helpers import clamp
from receipt_engine.utils.logger import get_logger
from .validators import FieldVerdict

logger = get_logger(__name__)

ACCEPT = 'accept'
REVIEW = 'review'
REJECT = 'reject'

_EPSILON = 1e-9

DEFAULT_QUALITY_ADJUSTMENT = {
    QualityHint.EXCELLENT.value: 0.10,
    QualityHint.GOOD.value: 0.05,
    QualityHint.FAIR.value: 0.0,
    QualityHint.POOR.value: -0.10,
}


class ConfidenceAggregator:
    """
    Scores one document.

    Example:
        >>> aggregator = ConfidenceAggregator()
        >>> aggregator.score([], DocumentProfile())
        0.2
    """

    def __init__(
        self,
        base: Optional[float] = None,
        mean_weight: Optional[float] = None,
        completeness_step: Optional[float] = None,
        completeness_cap: Optional[float] = None,
        document_type_bonus: Optional[float] = None,
        quality_adjustment: Optional[Dict[str, float]] = None,
        accept_threshold: Optional[float] = None,
        reject_threshold: Optional[float] = None,
        valid_floor: Optional[float] = None
    ):
        def setting(value, key, default):
            return float(value if value is not None else get_config(f"confidence.{key}", default))

        self.base = setting(base, "base", 0.1)
        self.mean_weight = setting(mean_weight, "mean_weight", 0.3)
        self.completeness_step = setting(completeness_step, "completeness_step", 0.06)
        self.completeness_cap = setting(completeness_cap, "completeness_cap", 0.6)
        self.document_type_bonus = setting(document_type_bonus, "document_type_bonus", 0.05)
        self.accept_threshold = setting(accept_threshold, "accept_threshold", 0.8)
        self.reject_threshold = setting(reject_threshold, "reject_threshold", 0.3)

        adjustments = dict(DEFAULT_QUALITY_ADJUSTMENT)
        adjustments.update(
            quality_adjustment or get_config("confidence.quality_adjustment", {}) or {}
        )
        self.quality_adjustment = {str(k): float(v) for k, v in adjustments.items()}

        floor = float(valid_floor if valid_floor is not None else get_config("validation.valid_floor", 0.6))
        self._check_monotonic(floor)

    def _check_monotonic(self, valid_floor: float) -> None:
        needed_step = self.mean_weight * (1.0 - valid_floor) / 2
        if self.completeness_step < needed_step - _EPSILON:
            raise ConfigurationError(
                "completeness_step too small to keep the score monotonic",
                {"completeness_step": self.completeness_step, "minimum": round(needed_step, 4)}
            )
        if self.completeness_cap < self.completeness_step * len(SCORED_FIELDS) - _EPSILON:
            raise ConfigurationError(
                "completeness_cap must cover every scored field",
                {"completeness_cap": self.completeness_cap, "fields": len(SCORED_FIELDS)}
            )
        if self.reject_threshold > self.accept_threshold:
            raise ConfigurationError(
                "reject_threshold must not exceed accept_threshold",
                {"reject": self.reject_threshold, "accept": self.accept_threshold}
            )

    def score(
        self,
        verdicts: List[FieldVerdict],
        profile: Optional[DocumentProfile] = None,
        defaulted=frozenset()
    ) -> float:
        """Overall confidence in [0, 1]."""
        profile = profile or DocumentProfile()

        if verdicts:
            mean = sum(v.confidence for v in verdicts) / len(verdicts)
        else:
            mean = 0.0
        validated = sum(1 for v in verdicts if v.is_valid and v.field not in defaulted)

        total = (
            self.base
            + self.mean_weight * mean
            + min(self.completeness_step * validated, self.completeness_cap)
            + self.quality_adjustment.get(profile.quality_hint.value, 0.0)
        )
        if profile.document_type != DocumentType.UNKNOWN:
            total += self.document_type_bonus

        result = round(clamp(total), 4)
        logger.debug(f"Confidence {result} (mean={mean:.3f}, validated={validated})")
        return result

    def decision(self, score: float) -> str:
        """accept, review or reject."""
        if score >= self.accept_threshold:
            return ACCEPT
        if score < self.reject_threshold:
            return REJECT
        return REVIEW
