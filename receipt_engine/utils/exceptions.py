"""
Custom Exceptions Module.

Failures raised by the receipt engine. Only the stages that have to read
the document (input loading, preprocessing, recognition) raise; field
extraction, validation and scoring always return a result. A document in
which nothing could be found is an ``ExtractionResult`` with
``no_signal`` set, not an exception.

Exception Hierarchy:
    ReceiptEngineError (base)
    ├── ExtractionFailure
    │   ├── InitializationFailure      (retryable)
    │   ├── UnsupportedInputFailure
    │   ├── PreprocessingFailure
    │   └── RecognitionFailure         (retryable)
    └── ConfigurationError
"""

from typing import Any, Dict, List, Optional


class ReceiptEngineError(Exception):
    """
    Base exception for all receipt engine errors.

    Attributes:
        message: Human-readable error message.
        details: Additional context for logs and API responses.
        retryable: Whether the same input may succeed on a later attempt.
    """

    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form for callers that surface the error."""
        return {
            'error': type(self).__name__,
            'message': self.message,
            'retryable': self.retryable,
            'details': self.details,
        }


# =============================================================================
# PIPELINE FAILURES
# =============================================================================

class ExtractionFailure(ReceiptEngineError):
    """Base for failures that abort the pipeline before any result exists."""
    pass


class InitializationFailure(ExtractionFailure):
    """Raised when a recognizer could not be acquired or configured."""

    retryable = True

    def __init__(self, engine: str, reason: Optional[str] = None):
        message = f"Could not initialize recognizer: {engine}"
        details = {"engine": engine, "reason": reason}
        super().__init__(message, details)


class UnsupportedInputFailure(ExtractionFailure):
    """
    Raised when the declared media type is not supported.

    Example:
        >>> raise UnsupportedInputFailure("text/plain", ["image/png", "application/pdf"])
    """

    def __init__(
        self,
        media_type: str,
        supported_types: Optional[List[str]] = None,
        reason: Optional[str] = None
    ):
        message = f"Unsupported input media type: '{media_type}'"
        details = {"media_type": media_type, "supported_types": supported_types or []}
        if reason:
            details["reason"] = reason
        super().__init__(message, details)


class PreprocessingFailure(ExtractionFailure):
    """Raised when a supported document cannot be decoded or enhanced."""

    def __init__(self, source: str, reason: Optional[str] = None):
        message = f"Could not prepare document for recognition: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


class RecognitionFailure(ExtractionFailure):
    """Raised when the recognizer errors or exceeds its time budget."""

    retryable = True

    def __init__(self, source: str, reason: Optional[str] = None, timed_out: bool = False):
        message = f"Text recognition {'timed out' if timed_out else 'failed'} for: {source}"
        details = {"source": source, "reason": reason, "timed_out": timed_out}
        self.timed_out = timed_out
        super().__init__(message, details)


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(ReceiptEngineError):
    """Raised when settings or auxiliary data files are malformed."""
    pass


__all__ = [
    'ReceiptEngineError',
    'ExtractionFailure',
    'InitializationFailure',
    'UnsupportedInputFailure',
    'PreprocessingFailure',
    'RecognitionFailure',
    'ConfigurationError',
]
