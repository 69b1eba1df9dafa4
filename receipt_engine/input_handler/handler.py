"""
Main Input Handler Module.

Entry point for documents: checks the declared media type, then turns
the payload into either page images (for OCR) or embedded text (for
digital PDFs).

Usage:
    from receipt_engine.input_handler import InputHandler, RawDocument

    handler = InputHandler()
    loaded = handler.load(RawDocument.from_path("receipt.jpg"))
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from PIL import Image

from config import get_config
from receipt_engine.utils.logger import get_logger
from receipt_engine.utils.helpers import guess_media_type
from receipt_engine.utils.exceptions import UnsupportedInputFailure

from .image_processor import ImagePreprocessor
from .pdf_processor import PDFProcessor

logger = get_logger(__name__)

PDF_MEDIA_TYPE = 'application/pdf'
DEFAULT_MEDIA_TYPES = (
    'image/png',
    'image/jpeg',
    'image/tiff',
    'image/bmp',
    'image/gif',
    'image/webp',
    PDF_MEDIA_TYPE,
)
# Non-standard spellings seen from browsers and upload widgets
MEDIA_TYPE_ALIASES = {
    'image/jpg': 'image/jpeg',
    'image/pjpeg': 'image/jpeg',
    'image/x-png': 'image/png',
    'image/tif': 'image/tiff',
    'image/x-ms-bmp': 'image/bmp',
    'application/x-pdf': PDF_MEDIA_TYPE,
}


@dataclass
class RawDocument:
    """
    A document as handed over by the caller.

    Attributes:
        payload: Raw file bytes.
        media_type: Declared media type (e.g. "image/jpeg").
        filename: Optional original filename, used as a classification hint.
    """
    payload: bytes
    media_type: str
    filename: Optional[str] = None

    @property
    def byte_size(self) -> int:
        return len(self.payload)

    @property
    def source(self) -> str:
        return self.filename or '<bytes>'

    @classmethod
    def from_path(cls, filepath: Union[str, Path], media_type: Optional[str] = None) -> 'RawDocument':
        """Read a file from disk, guessing its media type from the extension."""
        path = Path(filepath)
        return cls(
            payload=path.read_bytes(),
            media_type=media_type or guess_media_type(path),
            filename=path.name,
        )

    def __repr__(self) -> str:
        return (
            f"RawDocument(filename={self.filename!r}, "
            f"media_type={self.media_type!r}, bytes={self.byte_size})"
        )


@dataclass
class LoadedDocument:
    """
    A document ready for recognition.

    Exactly one of ``images`` / ``embedded_text`` carries content:
    scanned inputs produce page images, digital PDFs produce text.
    """
    source: str
    media_type: str
    images: List[Image.Image] = field(default_factory=list)
    embedded_text: Optional[str] = None

    @property
    def page_count(self) -> int:
        return len(self.images) if self.images else (1 if self.embedded_text else 0)

    @property
    def has_text_layer(self) -> bool:
        return self.embedded_text is not None


class InputHandler:
    """
    Media-type gate and loader for ``RawDocument`` payloads.

    Example:
        >>> handler = InputHandler()
        >>> handler.normalize_media_type("image/JPG")
        'image/jpeg'
        >>> loaded = handler.load(document)
        >>> loaded.page_count
        1
    """

    def __init__(
        self,
        supported_media_types: Optional[Sequence[str]] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        pdf_processor: Optional[PDFProcessor] = None
    ) -> None:
        types = supported_media_types or get_config(
            "input.supported_media_types", list(DEFAULT_MEDIA_TYPES)
        )
        self.supported_media_types = {t.lower() for t in types}
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.pdf_processor = pdf_processor or PDFProcessor()

        logger.debug(f"InputHandler initialized with media types: {sorted(self.supported_media_types)}")

    def normalize_media_type(self, media_type: Optional[str]) -> str:
        """Lowercase, drop parameters (``; charset=...``) and resolve aliases."""
        base = (media_type or '').split(';', 1)[0].strip().lower()
        return MEDIA_TYPE_ALIASES.get(base, base)

    def validate(self, document: RawDocument) -> str:
        """
        Check that a document can be processed at all.

        Returns:
            The normalized media type.

        Raises:
            UnsupportedInputFailure: For unsupported media types or empty payloads.
        """
        media_type = self.normalize_media_type(document.media_type)

        if media_type not in self.supported_media_types:
            raise UnsupportedInputFailure(
                document.media_type or '<missing>',
                sorted(self.supported_media_types)
            )

        if not document.payload:
            raise UnsupportedInputFailure(
                media_type,
                sorted(self.supported_media_types),
                reason="empty payload"
            )

        return media_type

    def load(self, document: RawDocument) -> LoadedDocument:
        """
        Decode a validated document into page images or embedded text.

        Raises:
            UnsupportedInputFailure: If the document fails ``validate``.
            PreprocessingFailure: If the payload cannot be decoded.
        """
        media_type = self.validate(document)
        source = document.source

        if media_type == PDF_MEDIA_TYPE:
            text = self.pdf_processor.extract_text_layer(document.payload, source)
            if text is not None:
                return LoadedDocument(source=source, media_type=media_type, embedded_text=text)
            images = self.pdf_processor.rasterize(document.payload, source)
        else:
            images = [self.preprocessor.decode(document.payload, source)]

        logger.info(f"Loaded {source} ({media_type}, {len(images)} page(s))")
        return LoadedDocument(source=source, media_type=media_type, images=images)
