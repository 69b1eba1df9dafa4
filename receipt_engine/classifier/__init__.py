"""
Document Classifier Module for the Receipt Engine.

Produces a ``DocumentProfile`` from file metadata before recognition runs.
"""

from .classifier import DocumentClassifier
from .document_profile import DocumentProfile, DocumentType, LayoutHint, QualityHint

__all__ = [
    'DocumentClassifier',
    'DocumentProfile',
    'DocumentType',
    'LayoutHint',
    'QualityHint',
]
