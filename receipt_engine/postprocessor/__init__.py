"""
Post-processing: field validation and confidence aggregation.
"""

from .validators import FieldVerdict, Validator
from .confidence import ConfidenceAggregator, ACCEPT, REVIEW, REJECT

__all__ = [
    'FieldVerdict',
    'Validator',
    'ConfidenceAggregator',
    'ACCEPT',
    'REVIEW',
    'REJECT',
]
