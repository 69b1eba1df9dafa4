"""
Helper Utilities Module.

Generic helpers shared across stages.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - generate_timestamp: Generate formatted timestamps
    - guess_media_type: Map a filename to a media type
    - clamp: Bound a number to an interval
    - to_decimal: Parse a printed amount into a Decimal
"""

import mimetypes
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from pathlib import Path
from typing import Optional, Union

# mimetypes has no entry for these on some platforms
_EXTRA_MEDIA_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.tif': 'image/tiff',
    '.tiff': 'image/tiff',
    '.bmp': 'image/bmp',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
    '.pdf': 'application/pdf',
}

TWO_PLACES = Decimal("0.01")


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it and its parents if necessary.

    Example:
        >>> ensure_directory("outputs/reports")
        PosixPath('outputs/reports')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Return the lowercase extension including the dot, or "" if none.

    Example:
        >>> get_file_extension("receipt.JPG")
        ".jpg"
    """
    return Path(filepath).suffix.lower()


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """Return the current local time formatted with ``format_str``."""
    return datetime.now().strftime(format_str)


def guess_media_type(filepath: Union[str, Path]) -> str:
    """
    Guess the media type of a file from its extension.

    Returns ``application/octet-stream`` when the extension is unknown so
    that the input handler can reject it with a proper failure.

    Example:
        >>> guess_media_type("scan.pdf")
        "application/pdf"
    """
    extension = get_file_extension(filepath)
    if extension in _EXTRA_MEDIA_TYPES:
        return _EXTRA_MEDIA_TYPES[extension]
    media_type, _ = mimetypes.guess_type(str(filepath))
    return media_type or 'application/octet-stream'


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Bound ``value`` to ``[lower, upper]``."""
    return max(lower, min(upper, value))


def to_decimal(text: str) -> Optional[Decimal]:
    """
    Parse a printed amount ("1,250.75", "1,23,456") into a 2-place Decimal.

    Grouping commas and spaces are removed. Returns None when the text is
    not a finite number.

    Example:
        >>> to_decimal("1,250.75")
        Decimal('1250.75')
    """
    cleaned = re.sub(r'[,\s]', '', text or '')
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    try:
        return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # exponent too large for two places
        return None
