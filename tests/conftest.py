import io
import os
import sys

import pytest
from PIL import Image, ImageDraw

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from config import ConfigurationManager
from receipt_engine.ocr_engine import RecognitionPass, RecognizerFactory
from receipt_engine.pipeline import ExtractionPipeline


DOMINOS_RECEIPT = """Dominos Pizza
Merchant: Dominos Pizza
Date: 15/01/2024
Farmhouse Pizza 2 x 200.00 400.00
Garlic Bread 50.00
Subtotal: 450.00
CGST @ 2.5% 11.25
SGST @ 2.5% 11.25
Grand Total: Rs 472.50
Payment Mode: Credit Card
Transaction ID: TXN12345678
"""

UPI_SCREENSHOT = """Payment successful
Paid to Sharma General Store
Rs 500
15 Jan 2024
Paid via PhonePe
UPI Ref No: 412345678901
"""


class FakeRecognizer:
    """Scripted recognizer: text per segmentation mode, optional failure."""

    def __init__(self, texts=None, confidence=0.9, error=None):
        self.texts = texts or {}
        self.confidence = confidence
        self.error = error
        self.segmentation_mode = None
        self.variables = {}
        self.opened = 0
        self.resets = 0
        self.releases = 0
        self.calls = []

    def open(self):
        self.opened += 1
        return self

    def configure(self, segmentation_mode=None, **variables):
        if segmentation_mode is not None:
            self.segmentation_mode = segmentation_mode
        self.variables.update(variables)

    def recognize(self, image, timeout=None):
        self.calls.append((self.segmentation_mode, timeout))
        if self.error is not None:
            raise self.error
        return RecognitionPass(
            text=self.texts.get(self.segmentation_mode, ''),
            confidence=self.confidence,
            segmentation_mode=self.segmentation_mode,
        )

    def reset(self):
        self.resets += 1
        self.segmentation_mode = None
        self.variables.clear()

    def release(self):
        self.reset()
        self.releases += 1


class TrackingProvider:
    """Recognizer provider that hands out a single fake and counts leases."""

    def __init__(self, recognizer):
        self.recognizer = recognizer
        self.acquired = 0
        self.factory = RecognizerFactory(build=lambda: recognizer)

    def acquire(self):
        self.acquired += 1
        return self.factory.acquire()


def image_bytes(size=(120, 80), fmt="PNG", mode="RGB", color=(255, 255, 255)):
    image = Image.new(mode, size, color)
    ImageDraw.Draw(image).rectangle([10, 10, 60, 30], fill=(0, 0, 0) if mode == "RGB" else 0)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def receipt_text():
    return DOMINOS_RECEIPT


@pytest.fixture
def upi_text():
    return UPI_SCREENSHOT


@pytest.fixture
def png_bytes():
    return image_bytes()


@pytest.fixture
def fake_recognizer():
    return FakeRecognizer(texts={1: "Dominos", 6: DOMINOS_RECEIPT})


@pytest.fixture
def provider(fake_recognizer):
    return TrackingProvider(fake_recognizer)


@pytest.fixture
def pipeline(provider):
    return ExtractionPipeline(recognizers=provider, timeout_seconds=0)


@pytest.fixture
def fresh_config():
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()
