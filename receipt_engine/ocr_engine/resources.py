"""
Scoped recognizer ownership.

A recognizer carries per-document state, so it must never be shared by
two documents at once. Two providers hand them out:

    RecognizerFactory: a fresh instance per ``acquire()``, released on exit.
    RecognizerPool: a fixed set of instances leased one holder at a time
                    and reset before they go back.

Both expose ``acquire()`` as a context manager, so callers write::

    with provider.acquire() as recognizer:
        fused = runner.run(pages, recognizer)
"""

import queue
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from config import get_config
from receipt_engine.utils.logger import get_logger
from receipt_engine.utils.exceptions import InitializationFailure, ReceiptEngineError
from .tesseract_backend import TesseractRecognizer

logger = get_logger(__name__)


def _open_recognizer(build: Callable[[], TesseractRecognizer]) -> TesseractRecognizer:
    try:
        recognizer = build()
        opened = recognizer.open()
    except ReceiptEngineError:
        raise
    except Exception as e:
        raise InitializationFailure(getattr(build, '__name__', 'recognizer'), str(e))
    return opened if opened is not None else recognizer


class RecognizerFactory:
    """
    One fresh recognizer per scope.

    Args:
        build: Zero-argument callable returning an unopened recognizer.
               Defaults to ``TesseractRecognizer`` with settings from config.
    """

    def __init__(self, build: Optional[Callable[[], TesseractRecognizer]] = None) -> None:
        self.build = build or TesseractRecognizer

    def create(self) -> TesseractRecognizer:
        """Open and return a recognizer the caller must release."""
        return _open_recognizer(self.build)

    @contextmanager
    def acquire(self) -> Iterator[TesseractRecognizer]:
        recognizer = self.create()
        try:
            yield recognizer
        finally:
            recognizer.release()


class RecognizerPool:
    """
    Fixed-size pool of exclusively leased recognizers.

    Instances are opened lazily up to ``size``; a holder that cannot get
    one within ``acquire_timeout`` seconds gets an ``InitializationFailure``.

    Example:
        >>> pool = RecognizerPool(size=2)
        >>> with pool.acquire() as recognizer:
        ...     fused = runner.run(pages, recognizer)
        >>> pool.close()
    """

    def __init__(
        self,
        build: Optional[Callable[[], TesseractRecognizer]] = None,
        size: Optional[int] = None,
        acquire_timeout: Optional[float] = None
    ) -> None:
        self.build = build or TesseractRecognizer
        self.size = int(size or get_config("ocr.pool.size", 2))
        self.acquire_timeout = float(
            acquire_timeout if acquire_timeout is not None
            else get_config("ocr.pool.acquire_timeout", 60)
        )
        if self.size < 1:
            raise ValueError("pool size must be at least 1")

        self._idle: "queue.Queue[TesseractRecognizer]" = queue.Queue()
        self._created: List[TesseractRecognizer] = []
        self._lock = threading.Lock()
        self._closed = False

    @property
    def created_count(self) -> int:
        return len(self._created)

    def _checkout(self, timeout: float) -> TesseractRecognizer:
        try:
            return self._idle.get_nowait()
        except queue.Empty:
            pass

        with self._lock:
            if len(self._created) < self.size:
                recognizer = _open_recognizer(self.build)
                self._created.append(recognizer)
                logger.debug(f"Pool opened recognizer {len(self._created)}/{self.size}")
                return recognizer

        try:
            return self._idle.get(timeout=timeout)
        except queue.Empty:
            raise InitializationFailure(
                "recognizer pool",
                f"no recognizer became free within {timeout:.1f}s"
            )

    @contextmanager
    def acquire(self, timeout: Optional[float] = None) -> Iterator[TesseractRecognizer]:
        if self._closed:
            raise InitializationFailure("recognizer pool", "pool is closed")

        recognizer = self._checkout(self.acquire_timeout if timeout is None else timeout)
        try:
            yield recognizer
        finally:
            recognizer.reset()
            self._idle.put(recognizer)

    def close(self) -> None:
        """Release every instance the pool has opened."""
        self._closed = True
        with self._lock:
            for recognizer in self._created:
                recognizer.release()
            self._created.clear()
        while True:
            try:
                self._idle.get_nowait()
            except queue.Empty:
                break
        logger.debug("Recognizer pool closed")

    def __enter__(self) -> 'RecognizerPool':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
