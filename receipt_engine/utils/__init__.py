"""
Utility Module for the Receipt Engine.

Shared pieces used by every stage:
    - Logging configuration
    - Failure taxonomy
    - Small file and number helpers
"""

from .logger import setup_logger, setup_logger_from_config, get_logger
from .helpers import (
    ensure_directory,
    get_file_extension,
    generate_timestamp,
    guess_media_type,
    clamp,
    to_decimal,
)

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'generate_timestamp',
    'guess_media_type',
    'clamp',
    'to_decimal',
]
