from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Logging initialization with labeled prefixes.

Application logger `spreadsheet_import` prints `LABEL message` lines
(INFO|WARN|ERROR|SUMMARY). Library modules log through
`logging.getLogger(__name__)` and propagate here; nothing is configured until
setup_logging() is called (CLI entrypoint), so embedding applications keep
control of their own handlers.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "spreadsheet_import"

# INFO=20 < SUMMARY < WARNING=30
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """`LABEL message`; WARNING is shortened to WARN, SUMMARY has its own label."""

    LEVEL_LABELS = {
        logging.WARNING: "WARN",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def _apply_level(logger: logging.Logger, level: int) -> None:
    logger.setLevel(level)
    for h in logger.handlers:
        h.setLevel(level)


def setup_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Configure the application logger. Idempotent.

    A second call only adjusts the level (e.g. `--debug`); handlers are not duplicated.

    Args:
        debug: DEBUG instead of INFO for logger and handler
        stream: output stream, stdout by default (CLI contract)
    """
    global _logger

    level = logging.DEBUG if debug else logging.INFO
    if _logger is not None:
        _apply_level(_logger, level)
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    _apply_level(logger, level)
    # root へ流さない (二重出力防止)
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Application logger; configured with defaults on first use."""
    return _logger if _logger is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Drop handlers and forget the configured logger. Mainly for tests."""
    global _logger
    if _logger is not None:
        for h in _logger.handlers[:]:
            _logger.removeHandler(h)
        _logger.propagate = True
        _logger.setLevel(logging.NOTSET)
    _logger = None
