import threading
import time

import pytest
import pytesseract
from PIL import Image

from receipt_engine.ocr_engine import (
    OCRRunner,
    RecognitionPass,
    RecognizerFactory,
    RecognizerPool,
    TesseractRecognizer,
    fuse_passes,
)
from receipt_engine.ocr_engine import tesseract_backend
from receipt_engine.utils.exceptions import InitializationFailure, RecognitionFailure

from conftest import FakeRecognizer

PAGE = Image.new("L", (30, 20), 255)


def test_fusion_keeps_longest_text():
    fused = fuse_passes([
        RecognitionPass("Total 450", 0.8, 1),
        RecognitionPass("Dominos\nTotal 450", 0.6, 6),
    ])
    assert fused.text == "Dominos\nTotal 450"
    assert fused.confidence == pytest.approx(0.7)


def test_fusion_tie_keeps_earlier_pass():
    fused = fuse_passes([RecognitionPass("abc", 0.9, 1), RecognitionPass("xyz", 0.9, 6)])
    assert fused.text == "abc"


def test_runner_makes_one_pass_per_mode_and_resets():
    recognizer = FakeRecognizer(texts={1: "short", 6: "the longer text"})
    fused = OCRRunner(segmentation_modes=[1, 6], timeout_seconds=30).run([PAGE, PAGE], recognizer)

    assert [mode for mode, _ in recognizer.calls] == [1, 6, 1, 6]
    assert all(0 < timeout <= 30 for _, timeout in recognizer.calls)
    assert fused.text == "the longer text\nthe longer text"
    assert fused.page_count == 2
    assert recognizer.resets == 1
    assert recognizer.segmentation_mode is None


def test_runner_wraps_engine_errors_and_still_resets():
    recognizer = FakeRecognizer(error=RuntimeError("engine crashed"))
    with pytest.raises(RecognitionFailure) as excinfo:
        OCRRunner(timeout_seconds=0).run([PAGE], recognizer, source="r.png")
    assert excinfo.value.details["source"] == "r.png"
    assert recognizer.resets == 1


def test_runner_keeps_timeout_flag():
    recognizer = FakeRecognizer(error=RecognitionFailure("image", "Tesseract process timeout", timed_out=True))
    with pytest.raises(RecognitionFailure) as excinfo:
        OCRRunner().run([PAGE], recognizer, source="r.png")
    assert excinfo.value.timed_out
    assert excinfo.value.retryable


def test_runner_enforces_document_budget():
    class SlowRecognizer(FakeRecognizer):
        def recognize(self, image, timeout=None):
            time.sleep(0.05)
            return super().recognize(image, timeout)

    recognizer = SlowRecognizer(texts={1: "a", 6: "b"})
    with pytest.raises(RecognitionFailure) as excinfo:
        OCRRunner(segmentation_modes=[1, 6], timeout_seconds=0.01).run([PAGE], recognizer)
    assert excinfo.value.timed_out
    assert len(recognizer.calls) == 1
    assert recognizer.resets == 1


def test_runner_needs_pages():
    with pytest.raises(RecognitionFailure):
        OCRRunner().run([], FakeRecognizer())


def test_tesseract_output_is_assembled_by_line(monkeypatch):
    data = {
        "text": ["Grand", "Total", "", "450.00"],
        "conf": ["90", "80", "-1", "70"],
        "block_num": [1, 1, 1, 1],
        "par_num": [1, 1, 1, 1],
        "line_num": [1, 1, 1, 2],
    }
    monkeypatch.setattr(tesseract_backend.pytesseract, "get_tesseract_version", lambda: "5.3.0")
    monkeypatch.setattr(tesseract_backend.pytesseract, "image_to_data", lambda *args, **kwargs: data)

    recognizer = TesseractRecognizer(language="eng", oem=3).open()
    recognizer.configure(segmentation_mode=6)
    recognition = recognizer.recognize(PAGE, timeout=5)

    assert recognition.text == "Grand Total\n450.00"
    assert recognition.confidence == pytest.approx(0.8)
    assert recognition.segmentation_mode == 6


def test_tesseract_timeout_is_a_recognition_failure(monkeypatch):
    def timeout(*args, **kwargs):
        raise RuntimeError("Tesseract process timeout")

    monkeypatch.setattr(tesseract_backend.pytesseract, "get_tesseract_version", lambda: "5.3.0")
    monkeypatch.setattr(tesseract_backend.pytesseract, "image_to_data", timeout)

    recognizer = TesseractRecognizer().open()
    with pytest.raises(RecognitionFailure) as excinfo:
        recognizer.recognize(PAGE, timeout=1)
    assert excinfo.value.timed_out


def test_missing_tesseract_is_an_initialization_failure(monkeypatch):
    def missing():
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(tesseract_backend.pytesseract, "get_tesseract_version", missing)
    with pytest.raises(InitializationFailure):
        RecognizerFactory().create()


def test_recognize_before_open():
    with pytest.raises(InitializationFailure):
        TesseractRecognizer().recognize(PAGE)


def test_configuration_does_not_leak_across_documents():
    recognizer = TesseractRecognizer()
    recognizer.configure(segmentation_mode=11, tessedit_char_whitelist="0123456789")
    recognizer.reset()
    assert recognizer.segmentation_mode == recognizer.default_segmentation_mode
    assert recognizer.variables == {}


def test_factory_releases_after_scope():
    recognizer = FakeRecognizer()
    with RecognizerFactory(build=lambda: recognizer).acquire() as held:
        assert held is recognizer
        assert recognizer.opened == 1
    assert recognizer.releases == 1


def test_factory_wraps_build_errors():
    def broken():
        raise OSError("no such binary")

    with pytest.raises(InitializationFailure):
        RecognizerFactory(build=broken).create()


def test_pool_times_out_when_exhausted():
    pool = RecognizerPool(build=FakeRecognizer, size=1, acquire_timeout=0.05)
    with pool.acquire():
        with pytest.raises(InitializationFailure):
            with pool.acquire():
                pass
    pool.close()


def test_pool_never_shares_an_instance():
    pool = RecognizerPool(build=FakeRecognizer, size=2, acquire_timeout=5)
    in_use = set()
    lock = threading.Lock()
    overlaps = []

    def work():
        for _ in range(20):
            with pool.acquire() as recognizer:
                with lock:
                    if id(recognizer) in in_use:
                        overlaps.append(id(recognizer))
                    in_use.add(id(recognizer))
                time.sleep(0.001)
                with lock:
                    in_use.discard(id(recognizer))

    threads = [threading.Thread(target=work) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []
    assert pool.created_count <= 2
    pool.close()


def test_pool_resets_on_return():
    with RecognizerPool(build=FakeRecognizer, size=1) as pool:
        with pool.acquire() as recognizer:
            recognizer.configure(segmentation_mode=6)
        assert recognizer.segmentation_mode is None
        assert recognizer.resets == 1
