"""
Logging configuration shared by the API and the CLI scripts.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from config import get_settings

LOG_FORMAT = "[%(levelname)s] %(message)s"


def setup_logging(
    level: Optional[Union[str, int]] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Configure the root logger with a stdout handler and an optional file handler."""
    settings = get_settings()
    level = level or settings.logging.level
    log_file = log_file or settings.logging.file

    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger()
    logger.setLevel(level)

    # Drop existing handlers so repeated calls do not duplicate output
    if logger.handlers:
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8", mode="a")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
