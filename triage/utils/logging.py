"""
Logging configuration for Triage Assist.

Everything logs under the ``triage`` namespace. Records carry patient and
record ids only; names and clinical text stay out of log lines.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional


ROOT_LOGGER = "triage"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``triage`` logger.

    Args:
        level: Log level name; falls back to LOG_LEVEL, then INFO
        log_file: Optional path; parent directories are created

    Returns:
        The configured root logger for the package
    """
    level_num = getattr(logging, (level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level_num)
    logger.handlers = [_handler(logging.StreamHandler(sys.stdout), level_num)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_path), level_num))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level_num, logging.WARNING))

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``triage`` or a ``triage.<name>`` child logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)
