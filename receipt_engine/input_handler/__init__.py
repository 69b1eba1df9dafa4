"""
Input Handler Module for the Receipt Engine.

Provides:
    - Media-type validation of incoming documents
    - Image decoding and OCR-oriented enhancement
    - PDF rasterization and text-layer extraction

Supported formats:
    - PDF (digital and scanned)
    - Images: PNG, JPEG, TIFF, BMP, GIF, WebP
"""

from .handler import InputHandler, RawDocument, LoadedDocument
from .image_processor import ImagePreprocessor
from .pdf_processor import PDFProcessor

__all__ = [
    'InputHandler',
    'RawDocument',
    'LoadedDocument',
    'ImagePreprocessor',
    'PDFProcessor',
]
