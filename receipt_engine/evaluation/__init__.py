"""
Evaluation Module for the Receipt Engine.

Accuracy metrics against labeled ground truth.
"""

from .evaluator import Evaluator, flatten_result
from .ground_truth import GroundTruthLoader
from .metrics import EvaluationResult, FieldMetrics, MetricsCalculator, levenshtein_similarity

__all__ = [
    'Evaluator',
    'flatten_result',
    'GroundTruthLoader',
    'EvaluationResult',
    'FieldMetrics',
    'MetricsCalculator',
    'levenshtein_similarity',
]
