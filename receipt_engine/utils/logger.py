"""
Logging Configuration Module.

Centralized logging for the receipt engine. Every module logs through a
child of the ``receipt_engine`` logger so a single call to
``setup_logger`` (or ``setup_logger_from_config``) controls the whole
hierarchy.

Usage:
    from receipt_engine.utils.logger import setup_logger, get_logger

    setup_logger()
    logger = get_logger(__name__)
    logger.info("Extracting receipt...")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style

colorama.init()

ROOT_LOGGER_NAME = "receipt_engine"


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colors console output by level.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Red (bold)
    """

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }
    RESET = Style.RESET_ALL

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, '')
        message = super().format(record)
        return f"{color}{message}{self.RESET}"


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 5242880,  # 5 MB
    backup_count: int = 3,
    colorize: bool = True
) -> logging.Logger:
    """
    Configure the ``receipt_engine`` logger.

    Call once at application startup; loggers obtained through
    ``get_logger`` inherit the handlers configured here.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Custom log format string.
        date_format: Custom date format string.
        log_file: Path to a rotating log file. None disables file logging.
        max_bytes: Size at which the log file is rotated.
        backup_count: Number of rotated files to keep.
        colorize: Whether to color console output.

    Returns:
        The configured application logger.
    """
    if log_format is None:
        log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    if date_format is None:
        date_format = "%Y-%m-%d %H:%M:%S"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    app_logger.setLevel(numeric_level)
    app_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    if colorize:
        console_handler.setFormatter(ColoredFormatter(log_format, datefmt=date_format))
    else:
        console_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    app_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        app_logger.addHandler(file_handler)

    app_logger.propagate = False
    app_logger.debug("Logging initialized at level %s", level.upper())
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``receipt_engine`` namespace.

    Module names that already live in the package (``receipt_engine.*``)
    are used as-is; anything else is nested under the root name.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger_from_config() -> logging.Logger:
    """Initialize logging from the ``logging`` section of settings.yaml."""
    from config import get_config

    log_file = None
    if get_config("logging.file.enabled", False):
        log_file = get_config("logging.file.path")

    return setup_logger(
        level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 5242880),
        backup_count=get_config("logging.file.backup_count", 3),
        colorize=get_config("logging.console.colorize", True),
    )
