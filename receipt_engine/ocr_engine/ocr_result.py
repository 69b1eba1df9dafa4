"""
OCR Result Data Classes.

Classes:
    OCRWord: A recognized word with its Tesseract confidence
    RecognitionPass: Output of one recognition run in one segmentation mode
    FusedText: The single best text chosen from several passes
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class OCRWord:
    """
    A single recognized word.

    Attributes:
        text: Recognized text.
        confidence: Tesseract confidence, 0-100 (``-1`` already mapped to 0).
        line_key: (block, paragraph, line) numbers used to rebuild lines.
    """
    text: str
    confidence: float = 0.0
    line_key: Tuple[int, int, int] = (0, 0, 0)

    def __repr__(self) -> str:
        return f"OCRWord('{self.text}', conf={self.confidence:.1f})"


@dataclass
class RecognitionPass:
    """
    Output of one recognition run.

    Attributes:
        text: Transcript with one line per recognized text line.
        confidence: Mean word confidence normalized to [0, 1].
        segmentation_mode: Tesseract page segmentation mode used.
        words: Recognized words (may be empty for fakes and tests).
        processing_time: Seconds spent in the engine.
    """
    text: str
    confidence: float
    segmentation_mode: Optional[int] = None
    words: List[OCRWord] = field(default_factory=list)
    processing_time: float = 0.0

    @property
    def length(self) -> int:
        return len(self.text.strip())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'segmentation_mode': self.segmentation_mode,
            'confidence': round(self.confidence, 4),
            'length': self.length,
            'word_count': len(self.words),
            'processing_time': round(self.processing_time, 3),
        }


@dataclass
class FusedText:
    """
    Best text for a document plus its recognition confidence.

    Attributes:
        text: Chosen transcript (pages joined by newlines).
        confidence: Recognition confidence in [0, 1].
        passes: Candidate passes the text was chosen from.
        page_count: Number of pages that contributed.
    """
    text: str
    confidence: float
    passes: List[RecognitionPass] = field(default_factory=list)
    page_count: int = 1

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'confidence': round(self.confidence, 4),
            'page_count': self.page_count,
            'passes': [p.to_dict() for p in self.passes],
        }
