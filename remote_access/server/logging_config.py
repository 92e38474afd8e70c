"""Logging configuration for server diagnostics."""
import logging
import sys
from logging.handlers import RotatingFileHandler

from .config import SERVER_LOG_FILE

LOGGER_NAME = "remote_access_server"


def configure_logging() -> logging.Logger:
    """Configure the server diagnostic logger with a rotating file handler.

    Falls back to stderr when the log file cannot be opened.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        try:
            handler: logging.Handler = RotatingFileHandler(
                SERVER_LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
            )
        except OSError:
            handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
