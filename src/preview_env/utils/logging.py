"""
Logging utilities for preview environment runs.

Provides structured JSON logging with a correlation ID shared by every step of a run.
"""

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredLogger:
    """
    JSON logger with correlation ID support.

    Example:
        logger = StructuredLogger(__name__)
        logger.info("Uploading file", bucket="pr-42-site", key="index.html")
    """

    def __init__(self, name: str, correlation_id: Optional[str] = None) -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))
        self.correlation_id = correlation_id or str(uuid.uuid4())

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        """Internal method to emit structured JSON logs."""
        if not self.logger.isEnabledFor(logging.getLevelName(level)):
            return

        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "message": message,
            "correlationId": self.correlation_id,
            **kwargs,
        }

        # Remove None values
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        print(json.dumps(log_entry, default=str))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info level message."""
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning level message."""
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error level message."""
        self._log("ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug level message."""
        self._log("DEBUG", message, **kwargs)


_loggers: Dict[str, StructuredLogger] = {}
_run_correlation_id: Optional[str] = None


def get_logger(name: str, correlation_id: Optional[str] = None) -> StructuredLogger:
    """
    Get a cached StructuredLogger for a module.

    Passing a correlation ID rebinds the cached logger to it, so a run can stamp
    every module's output with the same ID.
    """
    logger = _loggers.get(name)
    if logger is None:
        logger = StructuredLogger(name, correlation_id or _run_correlation_id)
        _loggers[name] = logger
    elif correlation_id:
        logger.correlation_id = correlation_id
    return logger


def bind_correlation_id(correlation_id: str) -> None:
    """Point every cached logger, and any created later, at a new correlation ID."""
    global _run_correlation_id
    _run_correlation_id = correlation_id
    for logger in _loggers.values():
        logger.correlation_id = correlation_id


def new_correlation_id(prefix: str) -> str:
    """Generate a run correlation ID, e.g. ``pr-42-site-1a2b3c4d``."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"
