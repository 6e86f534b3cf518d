"""Structured logging for the gateway."""

import logging
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Union
from enum import Enum


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL
}


class StructuredLogger:
    """
    Structured logger for gateway components.

    Outputs one JSON object per line: timestamp, level, logger name,
    message and any keyword fields passed to the call.
    """

    def __init__(
        self,
        name: str,
        level: Union[LogLevel, str] = LogLevel.INFO,
        extra_fields: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            level: Logging level (enum or name such as "INFO")
            extra_fields: Additional fields to include in all logs
        """
        self.name = name
        self.level = LogLevel(level.lower()) if isinstance(level, str) else level
        self.extra_fields = extra_fields or {}
        self._logger = logging.getLogger(name)
        self._configure_logger()

    def _configure_logger(self) -> None:
        """Configure the underlying logger."""
        # Per-instance levels are applied in _log
        self._logger.setLevel(logging.DEBUG)

        # Reconfiguring the same name must not stack handlers
        self._logger.handlers = []

        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        self._logger.addHandler(handler)

    def _log(
        self,
        level: LogLevel,
        message: str,
        **kwargs: Any
    ) -> None:
        """
        Internal logging method.

        Args:
            level: Log level
            message: Log message
            **kwargs: Additional fields
        """
        if not self.is_enabled_for(level):
            return

        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "logger": self.name,
            "message": message,
            **self.extra_fields,
            **kwargs
        }

        self._logger.log(_LEVEL_MAP[level], json.dumps(log_data, default=str))

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        """Log critical message."""
        self._log(LogLevel.CRITICAL, message, **kwargs)

    def is_enabled_for(self, level: LogLevel) -> bool:
        """Check whether a message at ``level`` would be emitted."""
        return _LEVEL_MAP[level] >= _LEVEL_MAP[self.level]


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        # The message is already JSON from StructuredLogger
        return record.getMessage()


def get_logger(
    name: str,
    level: Union[LogLevel, str] = LogLevel.INFO,
    **extra_fields: Any
) -> StructuredLogger:
    """
    Get or create a structured logger.

    Args:
        name: Logger name
        level: Logging level
        **extra_fields: Additional fields to include in all logs

    Returns:
        Structured logger instance
    """
    return StructuredLogger(name, level, extra_fields)
