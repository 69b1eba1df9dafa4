"""
OCR Engine Module for the Receipt Engine.

Provides:
    - TesseractRecognizer: stateful pytesseract handle
    - RecognizerFactory / RecognizerPool: scoped, exclusive ownership
    - OCRRunner: multi-pass recognition fused into one FusedText
"""

from .engine import OCRRunner, fuse_passes, combine_pages
from .ocr_result import OCRWord, RecognitionPass, FusedText
from .resources import RecognizerFactory, RecognizerPool
from .tesseract_backend import TesseractRecognizer

__all__ = [
    'OCRRunner',
    'fuse_passes',
    'combine_pages',
    'OCRWord',
    'RecognitionPass',
    'FusedText',
    'RecognizerFactory',
    'RecognizerPool',
    'TesseractRecognizer',
]
