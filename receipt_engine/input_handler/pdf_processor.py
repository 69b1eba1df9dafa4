"""
PDF Processor Module.

Two ways into a PDF:
    - Digital PDFs carry a text layer, read with pdfplumber; when enough
      text is present, OCR is skipped altogether.
    - Scanned PDFs are rasterized page by page with PyMuPDF and go
      through the normal image path.
"""

import io
from typing import List, Optional

import fitz  # PyMuPDF
import pdfplumber
from PIL import Image

from config import get_config
from receipt_engine.utils.logger import get_logger
from receipt_engine.utils.exceptions import PreprocessingFailure

logger = get_logger(__name__)


class PDFProcessor:
    """
    Processor for PDF payloads.

    Attributes:
        dpi: Rasterization resolution.
        max_pages: Maximum number of pages read or rendered.
        text_layer_min_chars: Minimum embedded text for a PDF to count as digital.

    Example:
        >>> processor = PDFProcessor()
        >>> text = processor.extract_text_layer(payload, "invoice.pdf")
        >>> if text is None:
        ...     pages = processor.rasterize(payload, "invoice.pdf")
    """

    def __init__(
        self,
        dpi: Optional[int] = None,
        max_pages: Optional[int] = None,
        text_layer_min_chars: Optional[int] = None
    ) -> None:
        self.dpi = int(dpi or get_config("input.pdf.dpi", 300))
        self.max_pages = int(max_pages or get_config("input.pdf.max_pages", 3))
        self.text_layer_min_chars = int(
            text_layer_min_chars if text_layer_min_chars is not None
            else get_config("input.pdf.text_layer_min_chars", 50)
        )

        logger.debug(f"PDFProcessor initialized (DPI={self.dpi}, max_pages={self.max_pages})")

    def extract_text_layer(self, payload: bytes, source: str = "<bytes>") -> Optional[str]:
        """
        Return the embedded text of a digital PDF, or None for scanned ones.

        Raises:
            PreprocessingFailure: If the payload is not a readable PDF.
        """
        try:
            with pdfplumber.open(io.BytesIO(payload)) as pdf:
                page_texts = []
                for page in pdf.pages[:self.max_pages]:
                    page_texts.append(page.extract_text() or '')
        except Exception as e:
            logger.error(f"Could not read PDF {source}: {e}")
            raise PreprocessingFailure(source, str(e))

        text = '\n'.join(t.strip() for t in page_texts if t.strip())
        if len(text) < self.text_layer_min_chars:
            logger.debug(f"{source}: text layer has {len(text)} chars, treating as scanned")
            return None

        logger.info(f"{source}: using embedded text layer ({len(text)} chars)")
        return text

    def rasterize(self, payload: bytes, source: str = "<bytes>") -> List[Image.Image]:
        """
        Render up to ``max_pages`` pages as RGB images.

        Raises:
            PreprocessingFailure: If the PDF cannot be rendered or has no pages.
        """
        images = []
        zoom = self.dpi / 72.0
        matrix = fitz.Matrix(zoom, zoom)

        try:
            with fitz.open(stream=payload, filetype="pdf") as doc:
                for page_num in range(min(len(doc), self.max_pages)):
                    pixmap = doc.load_page(page_num).get_pixmap(matrix=matrix)
                    image = Image.open(io.BytesIO(pixmap.tobytes("png")))
                    images.append(image.convert('RGB'))
        except Exception as e:
            logger.error(f"PyMuPDF rasterization failed for {source}: {e}")
            raise PreprocessingFailure(source, str(e))

        if not images:
            raise PreprocessingFailure(source, "PDF has no pages")

        logger.info(f"Rasterized {source} into {len(images)} page(s)")
        return images
