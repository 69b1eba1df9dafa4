"""
Receipt Engine - Financial Document Extraction.

Turns receipts, invoices, bank statements and payment screenshots into
structured transaction records with per-field validation and an
overall confidence score.

Modules:
    - input_handler: media-type gate, image decoding, PDF handling
    - classifier: metadata-only document profiling
    - ocr_engine: multi-pass Tesseract recognition and fusion
    - extraction: rule-based field extractors
    - postprocessor: validation and confidence aggregation
    - pipeline: end-to-end orchestration
    - evaluation: accuracy metrics against ground truth

Architecture:
    Input -> Classify -> Preprocess -> OCR -> Extract -> Validate -> Score
                                                                      |
                                                                 Evaluation
"""

__version__ = "1.0.0"

from .pipeline import ExtractionPipeline, ExtractionResult
from .input_handler import RawDocument

__all__ = [
    'ExtractionPipeline',
    'ExtractionResult',
    'RawDocument',
    '__version__',
]
