"""
Tesseract Recognizer.

A stateful wrapper around pytesseract. The state that matters between
calls (page segmentation mode and engine variables) lives on the
instance, which is why recognizers are handed out through
``RecognizerFactory`` / ``RecognizerPool`` and reset after every
document.

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package
"""

import time
from typing import Any, Dict, List, Optional

import pytesseract
from PIL import Image

from config import get_config
from receipt_engine.utils.logger import get_logger
from receipt_engine.utils.exceptions import InitializationFailure, RecognitionFailure
from .ocr_result import OCRWord, RecognitionPass

logger = get_logger(__name__)


class TesseractRecognizer:
    """
    Exclusively-owned Tesseract handle.

    Lifecycle: ``open`` -> (``configure`` -> ``recognize``)* -> ``reset``
    -> ... -> ``release``.

    Attributes:
        language: Tesseract language code (e.g. "eng").
        oem: OCR Engine Mode (0-3).
        segmentation_mode: Current page segmentation mode.
        variables: Extra ``-c name=value`` settings for the current document.

    Example:
        >>> recognizer = TesseractRecognizer().open()
        >>> recognizer.configure(segmentation_mode=6)
        >>> recognition = recognizer.recognize(image, timeout=10)
        >>> recognizer.release()
    """

    engine_name = "tesseract"

    def __init__(
        self,
        language: Optional[str] = None,
        oem: Optional[int] = None,
        default_segmentation_mode: int = 3,
        tesseract_cmd: Optional[str] = None
    ) -> None:
        self.language = language or get_config("ocr.language", "eng")
        self.oem = int(oem if oem is not None else get_config("ocr.oem", 3))
        self.default_segmentation_mode = default_segmentation_mode
        self.tesseract_cmd = tesseract_cmd or get_config("ocr.tesseract_cmd")

        self.segmentation_mode = default_segmentation_mode
        self.variables: Dict[str, Any] = {}
        self._open = False
        self.version: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> 'TesseractRecognizer':
        """
        Verify that Tesseract can be run.

        Raises:
            InitializationFailure: If the binary is missing or unusable.
        """
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd

        try:
            self.version = str(pytesseract.get_tesseract_version())
        except (pytesseract.TesseractNotFoundError, OSError, RuntimeError) as e:
            raise InitializationFailure(self.engine_name, str(e))

        self._open = True
        logger.debug(f"Tesseract {self.version} opened (lang={self.language}, oem={self.oem})")
        return self

    def configure(self, segmentation_mode: Optional[int] = None, **variables: Any) -> None:
        """Set the segmentation mode and/or engine variables for the next calls."""
        if segmentation_mode is not None:
            self.segmentation_mode = int(segmentation_mode)
        self.variables.update(variables)

    def reset(self) -> None:
        """Drop any per-document configuration."""
        self.segmentation_mode = self.default_segmentation_mode
        self.variables.clear()

    def release(self) -> None:
        self.reset()
        self._open = False
        logger.debug("Tesseract recognizer released")

    def _build_config(self) -> str:
        parts = [f"--psm {self.segmentation_mode}", f"--oem {self.oem}"]
        for name, value in sorted(self.variables.items()):
            parts.append(f"-c {name}={value}")
        return ' '.join(parts)

    def recognize(self, image: Image.Image, timeout: Optional[float] = None) -> RecognitionPass:
        """
        Recognize one image with the current configuration.

        Args:
            image: Preprocessed page image.
            timeout: Seconds before Tesseract is killed; None or 0 means no limit.

        Raises:
            InitializationFailure: If the recognizer was not opened.
            RecognitionFailure: If Tesseract fails or exceeds ``timeout``.
        """
        if not self._open:
            raise InitializationFailure(self.engine_name, "recognizer used before open()")

        config = self._build_config()
        start_time = time.time()
        logger.debug(f"Running Tesseract (config: {config}, timeout={timeout})")

        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config=config,
                output_type=pytesseract.Output.DICT,
                timeout=timeout or 0
            )
        except RuntimeError as e:
            # Covers TesseractError too; a killed process reports "Tesseract process timeout"
            timed_out = 'timeout' in str(e).lower()
            raise RecognitionFailure("image", str(e), timed_out=timed_out)

        words = self._parse_tesseract_output(data)
        recognition = RecognitionPass(
            text=self._assemble_text(words),
            confidence=self._mean_confidence(words),
            segmentation_mode=self.segmentation_mode,
            words=words,
            processing_time=time.time() - start_time,
        )

        logger.debug(
            f"psm {self.segmentation_mode}: {len(words)} words, "
            f"confidence {recognition.confidence:.2f} ({recognition.processing_time:.2f}s)"
        )
        return recognition

    def _parse_tesseract_output(self, data: Dict[str, List]) -> List[OCRWord]:
        """Convert ``image_to_data`` output into words, skipping empty boxes."""
        words = []

        for i, text in enumerate(data.get('text', [])):
            if not text or not text.strip():
                continue

            try:
                conf = float(data['conf'][i])
            except (TypeError, ValueError):
                conf = 0.0
            if conf < 0:
                conf = 0.0  # Tesseract returns -1 for non-word boxes

            words.append(OCRWord(
                text=text.strip(),
                confidence=conf,
                line_key=(data['block_num'][i], data['par_num'][i], data['line_num'][i]),
            ))

        return words

    @staticmethod
    def _assemble_text(words: List[OCRWord]) -> str:
        lines: Dict[tuple, List[str]] = {}
        for word in words:
            lines.setdefault(word.line_key, []).append(word.text)
        return '\n'.join(' '.join(tokens) for tokens in lines.values())

    @staticmethod
    def _mean_confidence(words: List[OCRWord]) -> float:
        if not words:
            return 0.0
        return sum(w.confidence for w in words) / len(words) / 100.0
