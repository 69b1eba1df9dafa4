"""
End-to-end extraction pipeline.
"""

from .extraction_result import ExtractionResult, PROCESSING_OCR, PROCESSING_TEXT, PROCESSING_TEXT_LAYER
from .pipeline import ExtractionPipeline

__all__ = [
    'ExtractionPipeline',
    'ExtractionResult',
    'PROCESSING_OCR',
    'PROCESSING_TEXT',
    'PROCESSING_TEXT_LAYER',
]
