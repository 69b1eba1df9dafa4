"""
OCR Runner.

Recognizes each page once per configured page-segmentation mode and
fuses the candidates into a single ``FusedText``:

    - text: the longest candidate (a cut-off transcript is a far more
      common failure than an invented one); ties keep the earlier mode
    - confidence: mean of the candidates' normalized confidences

The recognizer is owned by the caller for the duration of the document.
The runner configures it per pass and always resets it before returning,
including when a pass fails.
"""

import time
from typing import List, Optional, Sequence

from PIL import Image

from config import get_config
from receipt_engine.utils.logger import get_logger
from receipt_engine.utils.exceptions import ReceiptEngineError, RecognitionFailure
from .ocr_result import FusedText, RecognitionPass

logger = get_logger(__name__)


def fuse_passes(passes: Sequence[RecognitionPass]) -> FusedText:
    """
    Fuse the passes of one page.

    Raises:
        ValueError: If ``passes`` is empty.
    """
    if not passes:
        raise ValueError("at least one recognition pass is required")

    best = passes[0]
    for candidate in passes[1:]:
        if candidate.length > best.length:
            best = candidate

    confidence = sum(p.confidence for p in passes) / len(passes)
    return FusedText(
        text=best.text.strip(),
        confidence=max(0.0, min(1.0, confidence)),
        passes=list(passes),
        page_count=1,
    )


def combine_pages(pages: Sequence[FusedText]) -> FusedText:
    """Join per-page results into one document-level result."""
    if not pages:
        raise ValueError("at least one page is required")
    if len(pages) == 1:
        return pages[0]

    passes: List[RecognitionPass] = []
    for page in pages:
        passes.extend(page.passes)

    return FusedText(
        text='\n'.join(p.text for p in pages if p.text),
        confidence=sum(p.confidence for p in pages) / len(pages),
        passes=passes,
        page_count=len(pages),
    )


class OCRRunner:
    """
    Multi-pass recognition with fusion.

    Attributes:
        segmentation_modes: Page segmentation modes, one pass each.
        timeout_seconds: Wall-clock budget for a whole document.

    Example:
        >>> runner = OCRRunner()
        >>> with RecognizerFactory().acquire() as recognizer:
        ...     fused = runner.run([page], recognizer, source="receipt.jpg")
        >>> fused.confidence
        0.87
    """

    def __init__(
        self,
        segmentation_modes: Optional[Sequence[int]] = None,
        timeout_seconds: Optional[float] = None
    ) -> None:
        modes = segmentation_modes or get_config("ocr.segmentation_modes", [1, 6])
        self.segmentation_modes = [int(m) for m in modes]
        self.timeout_seconds = float(
            timeout_seconds if timeout_seconds is not None
            else get_config("ocr.timeout_seconds", 30)
        )
        if len(self.segmentation_modes) < 2:
            logger.warning("Fewer than two segmentation modes configured; fusion has nothing to compare")

    def run(
        self,
        images: Sequence[Image.Image],
        recognizer,
        source: str = "<bytes>",
        timeout_seconds: Optional[float] = None
    ) -> FusedText:
        """
        Recognize and fuse every page.

        Args:
            images: Preprocessed page images.
            recognizer: An opened recognizer owned by the caller.
            source: Name used in logs and failures.
            timeout_seconds: Overrides the configured budget; 0 disables it.

        Raises:
            RecognitionFailure: On engine errors or when the budget runs out.
        """
        if not images:
            raise RecognitionFailure(source, "no page images to recognize")

        budget = self.timeout_seconds if timeout_seconds is None else float(timeout_seconds)
        deadline = time.monotonic() + budget if budget > 0 else None

        pages = []
        try:
            for page_number, image in enumerate(images, 1):
                passes = []
                for mode in self.segmentation_modes:
                    remaining = self._remaining(deadline, source)
                    recognizer.configure(segmentation_mode=mode)
                    passes.append(self._recognize(recognizer, image, remaining, source))

                page = fuse_passes(passes)
                logger.debug(
                    f"{source} page {page_number}: kept psm {self._winning_mode(page)} "
                    f"({len(page.text)} chars, confidence {page.confidence:.2f})"
                )
                pages.append(page)
        finally:
            recognizer.reset()

        fused = combine_pages(pages)
        logger.info(
            f"OCR completed for {source}: {len(fused.text)} chars, "
            f"{fused.page_count} page(s), confidence {fused.confidence:.2f}"
        )
        return fused

    @staticmethod
    def _remaining(deadline: Optional[float], source: str) -> Optional[float]:
        if deadline is None:
            return None
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise RecognitionFailure(source, "time budget exhausted", timed_out=True)
        return remaining

    @staticmethod
    def _recognize(recognizer, image: Image.Image, timeout: Optional[float], source: str) -> RecognitionPass:
        try:
            return recognizer.recognize(image, timeout=timeout)
        except RecognitionFailure as e:
            raise RecognitionFailure(source, e.details.get('reason'), timed_out=e.timed_out)
        except ReceiptEngineError:
            raise
        except Exception as e:
            logger.error(f"Recognizer error on {source}: {e}")
            raise RecognitionFailure(source, str(e))

    @staticmethod
    def _winning_mode(page: FusedText) -> Optional[int]:
        for recognition in page.passes:
            if recognition.text.strip() == page.text:
                return recognition.segmentation_mode
        return None
