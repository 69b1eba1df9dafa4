import itertools

import pytest

from receipt_engine.classifier import DocumentProfile, DocumentType, QualityHint
from receipt_engine.postprocessor import ConfidenceAggregator, FieldVerdict
from receipt_engine.utils.exceptions import ConfigurationError

FIELDS = ["amount", "date", "merchant", "category", "transaction_type",
          "payment_method", "transaction_id", "line_items", "taxes", "currency"]
QUALITY_ORDER = [QualityHint.EXCELLENT, QualityHint.GOOD, QualityHint.FAIR, QualityHint.POOR]


def valid(field, confidence):
    return FieldVerdict(field, True, confidence)


def test_score_is_bounded():
    aggregator = ConfidenceAggregator()
    best = [valid(f, 1.0) for f in FIELDS]
    worst = [FieldVerdict(f, False, 0.0) for f in FIELDS]
    excellent = DocumentProfile(quality_hint=QualityHint.EXCELLENT)
    poor_unknown = DocumentProfile(document_type=DocumentType.UNKNOWN, quality_hint=QualityHint.POOR)

    assert 0.0 <= aggregator.score(best, excellent) <= 1.0
    assert 0.0 <= aggregator.score(worst, poor_unknown) <= 1.0
    assert aggregator.score([], poor_unknown) == 0.0


@pytest.mark.parametrize("confidences", [
    (1.0, 0.6, 0.6, 0.6),
    (0.6, 1.0, 0.6, 1.0),
    (0.9, 0.6, 0.75, 0.6),
])
def test_adding_a_validated_field_never_lowers_the_score(confidences):
    aggregator = ConfidenceAggregator()
    profile = DocumentProfile(quality_hint=QualityHint.FAIR)
    extra = [FieldVerdict("category", True, 0.3)]
    defaulted = frozenset({"category"})

    previous = aggregator.score(extra, profile, defaulted)
    verdicts = list(extra)
    scored = [f for f in FIELDS if f not in defaulted]
    for field, confidence in zip(scored, confidences):
        verdicts.append(valid(field, confidence))
        current = aggregator.score(verdicts, profile, defaulted)
        assert current >= previous
        previous = current


def test_worst_case_validated_field_keeps_score():
    aggregator = ConfidenceAggregator()
    for n in range(1, len(FIELDS)):
        base = [valid(f, 1.0) for f in FIELDS[:n]]
        grown = base + [valid(FIELDS[n], 0.6)]
        assert aggregator.score(grown) >= aggregator.score(base)


def test_quality_degradation_never_raises_the_score():
    aggregator = ConfidenceAggregator()
    verdicts = [valid("amount", 0.9), valid("date", 0.8)]
    scores = [aggregator.score(verdicts, DocumentProfile(quality_hint=q)) for q in QUALITY_ORDER]
    for better, worse in zip(scores, scores[1:]):
        assert worse <= better


def test_defaulted_fields_do_not_count_as_validated():
    aggregator = ConfidenceAggregator()
    verdicts = [FieldVerdict("category", True, 0.3)]
    assert aggregator.score(verdicts, defaulted=frozenset({"category"})) < aggregator.score(verdicts)


def test_known_document_type_bonus():
    aggregator = ConfidenceAggregator()
    verdicts = [valid("amount", 0.9)]
    known = aggregator.score(verdicts, DocumentProfile(document_type=DocumentType.INVOICE))
    unknown = aggregator.score(verdicts, DocumentProfile(document_type=DocumentType.UNKNOWN))
    assert known == pytest.approx(unknown + 0.05)


def test_decision_thresholds():
    aggregator = ConfidenceAggregator()
    assert aggregator.decision(0.85) == "accept"
    assert aggregator.decision(0.8) == "accept"
    assert aggregator.decision(0.5) == "review"
    assert aggregator.decision(0.29) == "reject"


def test_non_monotonic_settings_are_rejected():
    with pytest.raises(ConfigurationError):
        ConfidenceAggregator(completeness_step=0.01)
    with pytest.raises(ConfigurationError):
        ConfidenceAggregator(completeness_cap=0.3)


def test_score_is_deterministic():
    aggregator = ConfidenceAggregator()
    verdicts = [valid(f, c) for f, c in zip(FIELDS, itertools.cycle([0.6, 0.9]))]
    assert aggregator.score(verdicts) == aggregator.score(list(verdicts))
