"""
Logging configuration for scan runs.

This module provides structured (JSON lines) logging of scan events:
domain start/finish, skipped files, rule evaluation and external tool
failures.
"""

import json
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Any

from .core.exceptions import InvalidConfigError

SCAN_LOGGER_NAME = "nodesecurescan"


class ScanEventFormatter(logging.Formatter):
    """Custom formatter for scan event logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log records with structured data."""
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "event"):
            log_entry["event"] = record.event

        # Scan context
        for field in ["domain", "rule_id", "file", "tool"]:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        # Outcome fields
        for field in ["duration", "issues", "score", "error"]:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def configure_logging(
    log_file: str | None = None,
    log_level: str = "WARNING",
    enable_console: bool = True,
) -> None:
    """
    Configure logging for scan runs.

    Args:
        log_file: Path to a JSON-lines log file (optional)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_console: Whether to also log to stderr

    Raises:
        InvalidConfigError: If log_level is not a logging level name.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise InvalidConfigError(f"Unknown log level: {log_level}")

    logger = logging.getLogger(SCAN_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    logger.handlers.clear()

    formatter = ScanEventFormatter()

    if log_file:
        # Daily rotation, one week of history
        file_handler = TimedRotatingFileHandler(
            log_file,
            when="D",
            interval=1,
            backupCount=7,
            encoding="utf-8",
            utc=False,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)


def get_scan_logger() -> logging.Logger:
    """Get the package root logger."""
    return logging.getLogger(SCAN_LOGGER_NAME)
