"""Logging configuration for sca-results."""

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict, Optional

LOGGER_NAME = "sca_results"

# Attributes that every LogRecord carries; anything else came in via ``extra=``
_RESERVED_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


def setup_logging(level: str = "INFO", structured: bool = False) -> logging.Logger:
    """
    Set up the package logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Emit one JSON object per line instead of plain text

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Configure once; later calls only adjust the level
    if logger.handlers:
        set_log_level(level, logger)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
    logger.addHandler(handler)
    set_log_level(level, logger)

    return logger


def set_log_level(level: str, target: Optional[logging.Logger] = None) -> None:
    """Change the level of the package logger and its handlers."""
    target = target or logging.getLogger(LOGGER_NAME)
    numeric = getattr(logging, level.upper(), logging.INFO)
    target.setLevel(numeric)
    for handler in target.handlers:
        handler.setLevel(numeric)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Context passed through ``extra=`` (analysis_id, plugin, workspace, ...)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


logger = setup_logging(
    level=os.getenv("LOG_LEVEL", "INFO"),
    structured=os.getenv("LOG_FORMAT", "").lower() == "json",
)
