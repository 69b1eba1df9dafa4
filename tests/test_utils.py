import logging
from decimal import Decimal

import pytest

from receipt_engine.utils.exceptions import (
    ConfigurationError,
    InitializationFailure,
    PreprocessingFailure,
    RecognitionFailure,
    UnsupportedInputFailure,
)
from receipt_engine.utils.helpers import clamp, ensure_directory, guess_media_type, to_decimal
from receipt_engine.utils.logger import ROOT_LOGGER_NAME, get_logger, setup_logger


def test_get_logger_nests_under_package_root():
    assert get_logger("receipt_engine.pipeline").name == "receipt_engine.pipeline"
    assert get_logger("main").name == "receipt_engine.main"
    assert get_logger(ROOT_LOGGER_NAME).name == ROOT_LOGGER_NAME


def test_setup_logger_writes_rotating_file(tmp_path):
    log_file = tmp_path / "logs" / "engine.log"
    logger = setup_logger(level="DEBUG", log_file=str(log_file), colorize=False)
    try:
        get_logger("tests").info("hello from the tests")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from the tests" in log_file.read_text()
        assert logger.level == logging.DEBUG
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()


@pytest.mark.parametrize("text, expected", [
    ("1,250.75", Decimal("1250.75")),
    ("1,23,456", Decimal("123456.00")),
    ("472.5", Decimal("472.50")),
    (" 10 ", Decimal("10.00")),
])
def test_to_decimal(text, expected):
    assert to_decimal(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1e999999999", "NaN"])
def test_to_decimal_rejects_non_numbers(text):
    assert to_decimal(text) is None


def test_guess_media_type():
    assert guess_media_type("scan.PDF") == "application/pdf"
    assert guess_media_type("receipt.jpg") == "image/jpeg"
    assert guess_media_type("archive.unknownext") == "application/octet-stream"


def test_clamp():
    assert clamp(1.4) == 1.0
    assert clamp(-0.2) == 0.0
    assert clamp(5, 0, 10) == 5


def test_ensure_directory(tmp_path):
    target = ensure_directory(tmp_path / "a" / "b")
    assert target.is_dir()


def test_failures_are_serializable_and_flag_retries():
    timeout = RecognitionFailure("r.jpg", "Tesseract process timeout", timed_out=True)
    assert timeout.retryable
    assert timeout.to_dict()["details"]["timed_out"] is True
    assert "timed out" in timeout.message

    assert InitializationFailure("tesseract").retryable
    assert not PreprocessingFailure("r.jpg").retryable

    unsupported = UnsupportedInputFailure("text/plain", ["image/png"], reason="not an image")
    data = unsupported.to_dict()
    assert data["error"] == "UnsupportedInputFailure"
    assert data["details"]["reason"] == "not an image"
    assert "Details" in str(unsupported)


def test_configuration_error_without_details():
    assert str(ConfigurationError("bad settings")) == "bad settings"
