"""
Logging setup for the banking CSV service.

Module loggers hang under the "bankdisplay" logger, which owns the one
stdout handler. The level comes from the caller or LOG_LEVEL.
"""
import logging
import os
import sys
from typing import Optional

ROOT_LOGGER_NAME = "bankdisplay"
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def configure_root_logger(level: Optional[str] = None) -> logging.Logger:
    """Attach the stdout handler to the package logger once and set its level."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(_resolve_level(level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    return root


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Return a module logger under the package logger.

    Args:
        name: Logger name (usually __name__)
        level: Level override for this logger only (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    configure_root_logger()
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(_resolve_level(level))
    return logger
