"""
Candidate values produced by the field extractors.

Every extractor scans the text with ranked rules and yields candidates;
the public ``extract_*`` functions return only the winning value, while
``FieldExtractor`` also records the winner's confidence.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Candidate:
    """
    A possible value for one field.

    Attributes:
        value: Parsed value (Decimal, ISO date string, name, ...).
        confidence: Heuristic confidence; may exceed 1 for stacked bonuses.
        rule: Name of the rule that produced it.
        context: Matched text the value was read from.
        rank: Position of the rule in its extractor's ranking (0 = most specific).
        position: Offset of the match in the text.
    """
    value: Any
    confidence: float
    rule: str
    context: str = ''
    rank: int = 0
    position: int = 0

    @property
    def normalized_confidence(self) -> float:
        return max(0.0, min(1.0, self.confidence))


def value_of(candidate: Optional[Candidate]) -> Any:
    return candidate.value if candidate is not None else None
